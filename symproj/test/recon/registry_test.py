# Copyright 2025-2026 The symproj contributors
#
# This file is part of symproj.
#
# This Source Code Form is subject to the terms of the Mozilla Public License,
# v. 2.0. If a copy of the MPL was not distributed with this file, You can
# obtain one at https://mozilla.org/MPL/2.0/.

"""Tests for creating projector components from configuration mappings."""

import pytest

import symproj
from symproj.discr.image import ImageGeometry
from symproj.projdata.info import CylindricalProjDataInfo
from symproj.recon.back_projector import (
    BackProjectorByBinUsingProjMatrixByBin)
from symproj.recon.forward_projector import (
    ForwardProjectorByBinUsingProjMatrixByBin)
from symproj.recon.proj_matrix import (
    ProjMatrixByBinFromRows, ProjMatrixByBinUsingLineSampling)
from symproj.recon.registry import (
    DEFAULT_CONFIG, PROJ_MATRIX_IMPLS, SYMMETRY_IMPLS, projectors_from_config,
    proj_matrix_from_config, register_proj_matrix, register_symmetries,
    symmetries_from_config)
from symproj.symmetries.cartesian import DataSymmetriesForBinsPETCartesianGrid
from symproj.symmetries.trivial import TrivialDataSymmetriesForBins


def toy_scanner():
    return CylindricalProjDataInfo(num_rings=3, ring_spacing=4.0,
                                   det_radius=20.0, num_views=8,
                                   num_tangential_poss=7,
                                   tangential_spacing=2.0)


@pytest.fixture
def geometries():
    info = toy_scanner()
    return info, ImageGeometry.from_proj_data_info(info)


def test_default_config(geometries):
    info, geom = geometries
    forward, back = projectors_from_config(None, info, geom)

    assert isinstance(forward, ForwardProjectorByBinUsingProjMatrixByBin)
    assert isinstance(back, BackProjectorByBinUsingProjMatrixByBin)
    assert forward.proj_matrix is back.proj_matrix
    assert isinstance(forward.proj_matrix, ProjMatrixByBinUsingLineSampling)
    assert forward.is_set_up and back.is_set_up
    assert isinstance(back.symmetries, DataSymmetriesForBinsPETCartesianGrid)
    assert back.symmetries.group_order == 80
    assert back.num_threads == DEFAULT_CONFIG['num_threads']


def test_nested_config(geometries):
    info, geom = geometries
    config = {'projection_matrix': {
        'max_cache_size': 10,
        'symmetries': {'type': 'cartesian', 'do_symmetry_90degrees': False}},
        'num_threads': 2}
    forward, back = projectors_from_config(config, info, geom)

    matrix = forward.proj_matrix
    assert matrix.max_cache_size == 10
    assert not matrix.check_cache
    assert not matrix.symmetries.enabled_symmetries['90degrees']
    assert matrix.symmetries.group_order == 40
    assert forward.num_threads == back.num_threads == 2

    # The defaults are not modified
    assert DEFAULT_CONFIG['projection_matrix']['max_cache_size'] is None


def test_projectors_without_geometries():
    forward, back = projectors_from_config({'num_threads': 3})
    assert not forward.is_set_up
    assert not back.is_set_up
    assert back.num_threads == 3


def test_case_insensitive_lookup(geometries):
    info, geom = geometries
    config = {'projection_matrix': {'type': 'Line_Sampling',
                                    'symmetries': 'TRIVIAL'},
              'back_projector': 'Proj_Matrix'}
    forward, back = projectors_from_config(config, info, geom)
    assert isinstance(back.symmetries, TrivialDataSymmetriesForBins)

    symm = symmetries_from_config({'type': 'Cartesian'}, info, geom)
    assert isinstance(symm, DataSymmetriesForBinsPETCartesianGrid)
    assert symmetries_from_config(symm, info, geom) is symm


def test_config_errors(geometries):
    info, geom = geometries
    with pytest.raises(TypeError):
        projectors_from_config({'projection_matrx': {}})
    with pytest.raises(ValueError):
        projectors_from_config({'projection_matrix': {'type': 'ray_tracing'}})
    with pytest.raises(ValueError):
        projectors_from_config({'forward_projector': 'by_magic'})
    with pytest.raises(ValueError):
        proj_matrix_from_config({'num_samples_per_voxel': 2})
    with pytest.raises(TypeError):
        proj_matrix_from_config(5)
    with pytest.raises(ValueError):
        symmetries_from_config('hexagonal', info, geom)
    with pytest.raises(TypeError):
        symmetries_from_config({'type': 1}, info, geom)


def test_failed_set_up_raises(geometries):
    info, geom = geometries
    config = {'projection_matrix': {
        'type': 'from_rows', 'rows': {(0, 99, 0, 0): [((0, 0, 0), 1.0)]}}}
    with pytest.raises(ValueError):
        projectors_from_config(config, info, geom)


def test_register_custom_components(geometries):
    info, geom = geometries

    def single_row_matrix(**kwargs):
        return ProjMatrixByBinFromRows({(0, 0, 1, 0): [((2, 3, 3), 1.0)]},
                                       **kwargs)

    register_proj_matrix('Single_Row', single_row_matrix)
    register_symmetries('none', TrivialDataSymmetriesForBins)
    try:
        config = {'projection_matrix': {'type': 'single_row',
                                        'symmetries': 'None'}}
        forward, back = projectors_from_config(config, info, geom)
        assert isinstance(forward.proj_matrix, ProjMatrixByBinFromRows)
        assert forward.symmetries.group_order == 1

        image = geom.zero()
        data = info.element()
        data.fill(1.0)
        back.back_project(image, data)
        assert image.asarray().sum() == 1.0
        assert image[2, 3, 3] == 1.0
    finally:
        del PROJ_MATRIX_IMPLS['single_row']
        del SYMMETRY_IMPLS['none']

    with pytest.raises(TypeError):
        register_proj_matrix(1, single_row_matrix)
    with pytest.raises(TypeError):
        register_proj_matrix('not_callable', 'single_row_matrix')


if __name__ == '__main__':
    symproj.util.test_file(__file__)
