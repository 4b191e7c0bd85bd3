# Copyright 2025-2026 The symproj contributors
#
# This file is part of symproj.
#
# This Source Code Form is subject to the terms of the Mozilla Public License,
# v. 2.0. If a copy of the MPL was not distributed with this file, You can
# obtain one at https://mozilla.org/MPL/2.0/.

"""Symmetries of a cylindrical PET scanner with a cartesian image grid."""

import itertools
import logging
import warnings

import numpy as np

from symproj.discr.image import ImageGeometry
from symproj.projdata.info import CylindricalProjDataInfo
from symproj.symmetries.base import DataSymmetriesForBins
from symproj.symmetries.operations import (
    CartesianGridSymmetryOperation, SymmetryLattice)
from symproj.util.utility import signature_string

__all__ = ('DataSymmetriesForBinsPETCartesianGrid',)

_logger = logging.getLogger(__name__)

# Relative tolerance for comparing grid parameters
_RTOL = 1e-6


def _in_plane_closure(generators):
    """Return the subgroup of in-plane elements spanned by ``generators``.

    Elements are ``(quarter_turns, reflect)`` pairs, the identity first.
    """
    def compose(a, b):
        # Rotation after mirror: R(k1) F^r1 R(k2) F^r2 = R(k1 +- k2) F^(r1^r2)
        k1, r1 = a
        k2, r2 = b
        return ((k1 - k2 if r1 else k1 + k2) % 4, r1 != r2)

    elements = [(0, False)]
    frontier = list(elements)
    while frontier:
        new = []
        for elem in frontier:
            for gen in generators:
                prod = compose(gen, elem)
                if prod not in elements and prod not in new:
                    new.append(prod)
        elements.extend(new)
        frontier = new
    return elements


class DataSymmetriesForBinsPETCartesianGrid(DataSymmetriesForBins):

    """Geometric symmetries of span-1 cylindrical PET data.

    The symmetry group is generated by

    - rotations by 90 degrees about the scanner axis
      (``do_symmetry_90degrees``),
    - rotation by 180 degrees and mirroring of ``x``
      (``do_symmetry_180degrees``),
    - mirroring of ``z`` about the scanner centre, which swaps positive
      and negative segments (``do_symmetry_swap_segment``),
    - axial translations by multiples of the ring spacing
      (``do_symmetry_shift_z``).

    Each symmetry is only used if the image grid is invariant under it;
    requested symmetries that the grid does not allow are disabled with a
    `RuntimeWarning`.

    Examples
    --------
    >>> info = CylindricalProjDataInfo(num_rings=3, ring_spacing=4.0,
    ...                                det_radius=50.0, num_views=8,
    ...                                num_tangential_poss=9,
    ...                                tangential_spacing=2.0)
    >>> geom = ImageGeometry.from_proj_data_info(info)
    >>> symm = DataSymmetriesForBinsPETCartesianGrid(info, geom)
    >>> symm.group_order
    80
    >>> from symproj.projdata.indices import Bin
    >>> basic, op = symm.find_basic_bin(Bin(-1, 5, 0, -2))
    >>> basic
    Bin(1, 1, 0, 2)
    >>> op.transform_bin(basic)
    Bin(-1, 5, 0, -2)
    """

    def __init__(self, proj_data_info, image_geometry,
                 do_symmetry_90degrees=True, do_symmetry_180degrees=True,
                 do_symmetry_swap_segment=True, do_symmetry_shift_z=True):
        """Initialize a new instance.

        Parameters
        ----------
        proj_data_info : `CylindricalProjDataInfo`
            Geometry of the projection data.
        image_geometry : `ImageGeometry`
            Geometry of the image.
        do_symmetry_90degrees : bool, optional
            Use rotations by 90 degrees.
        do_symmetry_180degrees : bool, optional
            Use the rotation by 180 degrees and in-plane mirroring.
        do_symmetry_swap_segment : bool, optional
            Use the axial mirroring.
        do_symmetry_shift_z : bool, optional
            Use axial translations.
        """
        if not isinstance(proj_data_info, CylindricalProjDataInfo):
            raise TypeError('`proj_data_info` must be a '
                            '`CylindricalProjDataInfo`, got {!r}'
                            ''.format(proj_data_info))
        if not isinstance(image_geometry, ImageGeometry):
            raise TypeError('`image_geometry` must be an `ImageGeometry`, '
                            'got {!r}'.format(image_geometry))
        super(DataSymmetriesForBinsPETCartesianGrid, self).__init__(
            proj_data_info, image_geometry)

        self.__requested = {
            '90degrees': bool(do_symmetry_90degrees),
            '180degrees': bool(do_symmetry_180degrees),
            'swap_segment': bool(do_symmetry_swap_segment),
            'shift_z': bool(do_symmetry_shift_z)}

        planes_per_ring = self._planes_per_ring()
        allowed = self._allowed_symmetries(planes_per_ring)
        self.__enabled = {}
        for name, requested in self.__requested.items():
            reason = allowed[name]
            enabled = requested and not reason
            if requested and reason:
                msg = ('symmetry {!r} disabled: {}'.format(name, reason))
                _logger.warning(msg)
                warnings.warn(msg, RuntimeWarning)
            self.__enabled[name] = enabled

        self.__lattice = SymmetryLattice(
            num_views=proj_data_info.num_views,
            num_rings=proj_data_info.num_rings,
            image_shape=image_geometry.shape,
            planes_per_ring=planes_per_ring)
        self.__operations = self._build_operations()
        _logger.info('symmetries %s enabled, group order %d',
                     sorted(k for k, v in self.__enabled.items() if v),
                     len(self.__operations))

    # --- Set-up helpers --- #

    def _planes_per_ring(self):
        """Number of image planes per ring spacing, ``0`` if not integral."""
        ratio = (self.proj_data_info.ring_spacing /
                 self.image_geometry.voxel_size[0])
        rounded = int(round(ratio))
        if rounded >= 1 and np.isclose(ratio, rounded, rtol=_RTOL, atol=0):
            return rounded
        return 0

    def _allowed_symmetries(self, planes_per_ring):
        """Return a mapping from symmetry name to the reason against it.

        An empty reason means that the symmetry is allowed.
        """
        info = self.proj_data_info
        geom = self.image_geometry
        nz, ny, nx = geom.shape
        vz, vy, vx = geom.voxel_size
        oz, oy, ox = geom.origin

        reasons = {}
        centred = (np.isclose(oy, 0, atol=_RTOL * vy, rtol=0) and
                   np.isclose(ox, 0, atol=_RTOL * vx, rtol=0))
        if not centred:
            reasons['180degrees'] = ('image is not centred in-plane, origin '
                                     '{}'.format((oy, ox)))
        else:
            reasons['180degrees'] = ''

        if reasons['180degrees']:
            reasons['90degrees'] = reasons['180degrees']
        elif info.num_views % 2 != 0:
            reasons['90degrees'] = ('odd number of views {}'
                                    ''.format(info.num_views))
        elif nx != ny or not np.isclose(vx, vy, rtol=_RTOL, atol=0):
            reasons['90degrees'] = ('image is not square in-plane, shape {}, '
                                    'voxel size {}'.format((ny, nx), (vy, vx)))
        else:
            reasons['90degrees'] = ''

        if not np.isclose(oz, 0, atol=_RTOL * vz, rtol=0):
            reasons['swap_segment'] = ('image is not centred axially, origin '
                                       '{}'.format(oz))
        else:
            reasons['swap_segment'] = ''

        ring_extent = (info.num_rings - 1) / 2.0 * info.ring_spacing
        if planes_per_ring == 0:
            reasons['shift_z'] = ('ring spacing {} is not a multiple of the '
                                  'plane spacing {}'
                                  ''.format(info.ring_spacing, vz))
        elif (geom.min_pt[0] + vz / 2.0 > -ring_extent + _RTOL * vz or
              geom.max_pt[0] - vz / 2.0 < ring_extent - _RTOL * vz):
            reasons['shift_z'] = ('image planes {} do not cover the rings {}'
                                  ''.format((geom.min_pt[0], geom.max_pt[0]),
                                            (-ring_extent, ring_extent)))
        else:
            reasons['shift_z'] = ''
        return reasons

    def _build_operations(self):
        generators = []
        if self.__enabled['180degrees']:
            generators.extend([(2, False), (0, True)])
        if self.__enabled['90degrees']:
            generators.append((1, False))
        in_plane = _in_plane_closure(generators)

        flips = (False, True) if self.__enabled['swap_segment'] else (False,)
        if self.__enabled['shift_z']:
            max_shift = self.proj_data_info.num_rings - 1
            shifts = [0]
            for d in range(1, max_shift + 1):
                shifts.extend([d, -d])
        else:
            shifts = [0]

        return tuple(
            CartesianGridSymmetryOperation(self.__lattice, k, reflect, flip,
                                           shift)
            for (k, reflect), flip, shift in itertools.product(
                in_plane, flips, shifts))

    # --- Public interface --- #

    @property
    def lattice(self):
        return self.__lattice

    @property
    def operations(self):
        return self.__operations

    @property
    def enabled_symmetries(self):
        return dict(self.__enabled)

    @property
    def requested_symmetries(self):
        return dict(self.__requested)

    def __repr__(self):
        posargs = [self.proj_data_info, self.image_geometry]
        optargs = [('do_symmetry_' + name, value, True)
                   for name, value in self.__requested.items()]
        return '{}({})'.format(self.__class__.__name__,
                               signature_string(posargs, optargs))


if __name__ == '__main__':
    from symproj.util.testutils import run_doctests
    run_doctests()
