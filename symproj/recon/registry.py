# Copyright 2025-2026 The symproj contributors
#
# This file is part of symproj.
#
# This Source Code Form is subject to the terms of the Mozilla Public License,
# v. 2.0. If a copy of the MPL was not distributed with this file, You can
# obtain one at https://mozilla.org/MPL/2.0/.

"""Registries of projector components and configuration by mappings.

Components are looked up by case-insensitive name. Further implementations
can be added with the ``register_*`` functions.
"""

from collections import OrderedDict
import copy
import logging

from symproj.recon.back_projector import (
    BackProjectorByBinUsingProjMatrixByBin)
from symproj.recon.forward_projector import (
    ForwardProjectorByBinUsingProjMatrixByBin)
from symproj.recon.proj_matrix import (
    ProjMatrixByBinFromRows, ProjMatrixByBinUsingLineSampling)
from symproj.symmetries.base import DataSymmetriesForBins
from symproj.symmetries.cartesian import DataSymmetriesForBinsPETCartesianGrid
from symproj.symmetries.trivial import TrivialDataSymmetriesForBins
from symproj.util.utility import is_string

__all__ = ('SYMMETRY_IMPLS', 'PROJ_MATRIX_IMPLS', 'BACK_PROJECTOR_IMPLS',
           'FORWARD_PROJECTOR_IMPLS', 'DEFAULT_CONFIG',
           'register_symmetries', 'register_proj_matrix',
           'register_back_projector', 'register_forward_projector',
           'symmetries_from_config', 'proj_matrix_from_config',
           'projectors_from_config')

_logger = logging.getLogger(__name__)

SYMMETRY_IMPLS = OrderedDict([
    ('trivial', TrivialDataSymmetriesForBins),
    ('cartesian', DataSymmetriesForBinsPETCartesianGrid),
])
PROJ_MATRIX_IMPLS = OrderedDict([
    ('line_sampling', ProjMatrixByBinUsingLineSampling),
    ('from_rows', ProjMatrixByBinFromRows),
])
BACK_PROJECTOR_IMPLS = OrderedDict([
    ('proj_matrix', BackProjectorByBinUsingProjMatrixByBin),
])
FORWARD_PROJECTOR_IMPLS = OrderedDict([
    ('proj_matrix', ForwardProjectorByBinUsingProjMatrixByBin),
])

DEFAULT_CONFIG = {
    'projection_matrix': {'type': 'line_sampling',
                          'max_cache_size': None,
                          'check_cache': False,
                          'symmetries': {'type': 'cartesian'}},
    'back_projector': {'type': 'proj_matrix'},
    'forward_projector': {'type': 'proj_matrix'},
    'num_threads': 1,
}


def _register(registry, kind, name, factory):
    if not is_string(name):
        raise TypeError('`name` must be a string, got {!r}'.format(name))
    if not callable(factory):
        raise TypeError('`factory` must be callable, got {!r}'
                        ''.format(factory))
    registry[name.lower()] = factory
    _logger.debug('registered %s %r', kind, name)


def register_symmetries(name, factory):
    """Add a symmetry engine ``factory(proj_data_info, image_geometry,
    **kwargs)`` under ``name``."""
    _register(SYMMETRY_IMPLS, 'symmetries', name, factory)


def register_proj_matrix(name, factory):
    """Add a projection matrix ``factory(**kwargs)`` under ``name``."""
    _register(PROJ_MATRIX_IMPLS, 'projection matrix', name, factory)


def register_back_projector(name, factory):
    """Add a back projector ``factory(proj_matrix, num_threads)``."""
    _register(BACK_PROJECTOR_IMPLS, 'back projector', name, factory)


def register_forward_projector(name, factory):
    """Add a forward projector ``factory(proj_matrix, num_threads)``."""
    _register(FORWARD_PROJECTOR_IMPLS, 'forward projector', name, factory)


def _lookup(registry, kind, name):
    if not is_string(name):
        raise TypeError('{} type must be a string, got {!r}'
                        ''.format(kind, name))
    try:
        return registry[name.lower()]
    except KeyError:
        raise ValueError('{} type {!r} not understood, known types: {}'
                         ''.format(kind, name, list(registry)))


def _split_config(config, kind):
    """Return ``(type name, remaining keyword arguments)``."""
    if is_string(config):
        return config, {}
    try:
        kwargs = dict(config)
    except (TypeError, ValueError):
        raise TypeError('{} configuration must be a string or a mapping, got '
                        '{!r}'.format(kind, config))
    try:
        name = kwargs.pop('type')
    except KeyError:
        raise ValueError('{} configuration {!r} has no `type`'
                         ''.format(kind, config))
    return name, kwargs


def symmetries_from_config(config, proj_data_info, image_geometry):
    """Create a symmetry engine.

    Parameters
    ----------
    config : str, mapping or `DataSymmetriesForBins`
        Name of the engine, or mapping with the name under ``'type'`` and
        keyword arguments for the engine. An engine instance is returned
        unchanged.
    proj_data_info : `ProjDataInfo`
        Geometry of the projection data.
    image_geometry : `ImageGeometry`
        Geometry of the image.

    Examples
    --------
    >>> from symproj.projdata.info import CylindricalProjDataInfo
    >>> info = CylindricalProjDataInfo(num_rings=2, ring_spacing=4.0,
    ...                                det_radius=50.0, num_views=4,
    ...                                num_tangential_poss=3,
    ...                                tangential_spacing=2.0)
    >>> symmetries_from_config('Trivial', info, None).group_order
    1
    """
    if isinstance(config, DataSymmetriesForBins):
        return config
    name, kwargs = _split_config(config, 'symmetries')
    factory = _lookup(SYMMETRY_IMPLS, 'symmetries', name)
    return factory(proj_data_info, image_geometry, **kwargs)


def proj_matrix_from_config(config):
    """Create a projection matrix, not yet set up.

    Parameters
    ----------
    config : str or mapping
        Name of the matrix type, or mapping with the name under ``'type'``
        and keyword arguments for the matrix. The ``'symmetries'`` entry is
        passed on unchanged, see `symmetries_from_config`.
    """
    name, kwargs = _split_config(config, 'projection matrix')
    factory = _lookup(PROJ_MATRIX_IMPLS, 'projection matrix', name)
    return factory(**kwargs)


def _merged_config(config):
    """Return ``config`` with missing entries taken from `DEFAULT_CONFIG`."""
    if config is None:
        config = {}
    unknown = set(config) - set(DEFAULT_CONFIG)
    if unknown:
        raise TypeError('unknown configuration keys {}, known keys: {}'
                        ''.format(sorted(unknown), sorted(DEFAULT_CONFIG)))
    merged = copy.deepcopy(DEFAULT_CONFIG)
    for key, value in config.items():
        if isinstance(merged[key], dict) and not is_string(value):
            section = dict(value)
            if section.get('type', merged[key]['type']) != merged[key]['type']:
                # Defaults only apply to the default component type
                merged[key] = section
            else:
                merged[key].update(section)
        else:
            merged[key] = value
    return merged


def projectors_from_config(config=None, proj_data_info=None,
                           image_geometry=None):
    """Create a forward and a back projector sharing one matrix.

    Parameters
    ----------
    config : mapping, optional
        Configuration with the keys of `DEFAULT_CONFIG`. Missing entries
        are taken from `DEFAULT_CONFIG`, unknown keys raise `TypeError`.
    proj_data_info : `ProjDataInfo`, optional
        If given together with ``image_geometry``, the projectors are set
        up for these geometries.
    image_geometry : `ImageGeometry`, optional

    Returns
    -------
    forward_projector : `ForwardProjectorByBin`
    back_projector : `BackProjectorByBin`

    Raises
    ------
    ValueError
        If a component type is unknown or the set-up fails.

    Examples
    --------
    >>> fwd, back = projectors_from_config({'num_threads': 2})
    >>> fwd.proj_matrix is back.proj_matrix
    True
    >>> back.num_threads
    2
    """
    config = _merged_config(config)
    matrix = proj_matrix_from_config(config['projection_matrix'])
    num_threads = config['num_threads']

    name, kwargs = _split_config(config['forward_projector'],
                                 'forward projector')
    forward = _lookup(FORWARD_PROJECTOR_IMPLS, 'forward projector', name)(
        matrix, num_threads=num_threads, **kwargs)
    name, kwargs = _split_config(config['back_projector'], 'back projector')
    back = _lookup(BACK_PROJECTOR_IMPLS, 'back projector', name)(
        matrix, num_threads=num_threads, **kwargs)

    if proj_data_info is not None and image_geometry is not None:
        for projector in (forward, back):
            status = projector.set_up(proj_data_info, image_geometry)
            if not status:
                raise ValueError('set-up of {!r} failed: {}'
                                 ''.format(projector, status.reason))
    return forward, back
