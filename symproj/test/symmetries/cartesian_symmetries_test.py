# Copyright 2025-2026 The symproj contributors
#
# This file is part of symproj.
#
# This Source Code Form is subject to the terms of the Mozilla Public License,
# v. 2.0. If a copy of the MPL was not distributed with this file, You can
# obtain one at https://mozilla.org/MPL/2.0/.

"""Tests for the symmetries of cylindrical scanners with cartesian grids."""

import itertools
import warnings

import numpy as np
import pytest

import symproj
from symproj.discr.image import ImageGeometry
from symproj.projdata.indices import Bin, ViewgramIndices
from symproj.projdata.info import CylindricalProjDataInfo
from symproj.symmetries.cartesian import DataSymmetriesForBinsPETCartesianGrid
from symproj.symmetries.related import Densel
from symproj.symmetries.trivial import TrivialDataSymmetriesForBins
from symproj.util.exceptions import OutOfRangeError
from symproj.util.testutils import all_equal, simple_fixture


# --- pytest fixtures --- #


tof = simple_fixture('tof', [False, True])


def toy_scanner(num_views=8, tof=False):
    kwargs = {}
    if tof:
        kwargs.update(num_timing_poss=3, timing_spacing=10.0,
                      timing_fwhm=15.0)
    return CylindricalProjDataInfo(num_rings=3, ring_spacing=4.0,
                                   det_radius=20.0, num_views=num_views,
                                   num_tangential_poss=7,
                                   tangential_spacing=2.0, **kwargs)


@pytest.fixture(scope='module')
def symmetries(tof):
    info = toy_scanner(tof=tof)
    return DataSymmetriesForBinsPETCartesianGrid(
        info, ImageGeometry.from_proj_data_info(info))


# --- Enabling of symmetries --- #


def test_group_order():
    info = toy_scanner()
    geom = ImageGeometry.from_proj_data_info(info)
    # 8 in-plane elements, axial flip, shifts by 0, +-1, +-2 rings
    assert DataSymmetriesForBinsPETCartesianGrid(info, geom).group_order == 80

    symm = DataSymmetriesForBinsPETCartesianGrid(
        info, geom, do_symmetry_90degrees=False)
    assert symm.group_order == 40
    symm = DataSymmetriesForBinsPETCartesianGrid(
        info, geom, do_symmetry_shift_z=False, do_symmetry_swap_segment=False)
    assert symm.group_order == 8
    symm = DataSymmetriesForBinsPETCartesianGrid(
        info, geom, False, False, False, False)
    assert symm.group_order == 1
    assert symm.operations[0].is_trivial


def test_no_warning_if_allowed():
    info = toy_scanner()
    geom = ImageGeometry.from_proj_data_info(info)
    with warnings.catch_warnings():
        warnings.simplefilter('error')
        symm = DataSymmetriesForBinsPETCartesianGrid(info, geom)
    assert all(symm.enabled_symmetries.values())


def test_disabled_symmetries_warn():
    info = toy_scanner()

    # Image shifted in-plane: no in-plane symmetries at all
    geom = ImageGeometry((5, 7, 7), 2.0, origin=(0, 0, 1.0))
    with pytest.warns(RuntimeWarning):
        symm = DataSymmetriesForBinsPETCartesianGrid(info, geom)
    enabled = symm.enabled_symmetries
    assert not enabled['90degrees']
    assert not enabled['180degrees']
    assert enabled['swap_segment'] and enabled['shift_z']
    assert symm.requested_symmetries['90degrees']

    # Non-square image: no rotations by 90 degrees
    geom = ImageGeometry((5, 7, 9), 2.0)
    with pytest.warns(RuntimeWarning, match='90degrees'):
        symm = DataSymmetriesForBinsPETCartesianGrid(info, geom)
    assert symm.enabled_symmetries['180degrees']
    assert symm.group_order == 40

    # Plane spacing not dividing the ring spacing: no axial shifts
    geom = ImageGeometry((3, 7, 7), (3.0, 2.0, 2.0))
    with pytest.warns(RuntimeWarning, match='shift_z'):
        symm = DataSymmetriesForBinsPETCartesianGrid(info, geom)
    assert not symm.enabled_symmetries['shift_z']

    # Image shifted axially: no axial flip and no complete ring coverage
    geom = ImageGeometry((5, 7, 7), 2.0, origin=(1.0, 0, 0))
    with pytest.warns(RuntimeWarning, match='swap_segment'):
        symm = DataSymmetriesForBinsPETCartesianGrid(info, geom)
    assert not symm.enabled_symmetries['swap_segment']
    assert not symm.enabled_symmetries['shift_z']


def test_odd_number_of_views():
    info = toy_scanner(num_views=7)
    geom = ImageGeometry.from_proj_data_info(info)
    with pytest.warns(RuntimeWarning, match='odd number of views'):
        symm = DataSymmetriesForBinsPETCartesianGrid(info, geom)
    assert not symm.enabled_symmetries['90degrees']
    assert symm.enabled_symmetries['180degrees']

    # Symmetries that are not requested are disabled silently
    with warnings.catch_warnings():
        warnings.simplefilter('error')
        DataSymmetriesForBinsPETCartesianGrid(info, geom,
                                              do_symmetry_90degrees=False)


# --- Group structure --- #


def test_composition(symmetries):
    ops = symmetries.operations
    test_bins = [Bin(1, 3, 0, 2), Bin(-2, 6, 0, -3, timing_pos_num=-1),
                 Bin(0, 0, 1, 0)]
    coords = np.array([[0, 0, 0], [1, 2, 6], [4, 3, 3]])
    for a, b in itertools.product(ops[::3], ops[::2]):
        prod = a * b
        for bin in test_bins:
            expected = a.transform_bin(b.transform_bin(bin))
            assert prod.transform_bin(bin).key == expected.key
        expected = a.transform_voxel_indices(b.transform_voxel_indices(coords))
        assert all_equal(prod.transform_voxel_indices(coords), expected)


def test_inverse(symmetries):
    coords = np.array([[0, 0, 0], [1, 2, 6], [4, 3, 3], [2, 6, 1]])
    for op in symmetries.operations:
        inv = op.inverse()
        assert (op * inv).is_trivial
        assert (inv * op).is_trivial
        for bin in (Bin(1, 3, 0, 2), Bin(-1, 7, 1, -1, timing_pos_num=1)):
            assert inv.transform_bin(op.transform_bin(bin)).key == bin.key
        assert all_equal(
            inv.transform_voxel_indices(op.transform_voxel_indices(coords)),
            coords)


def test_bin_values_kept(symmetries):
    bin = Bin(1, 3, 0, 2, value=2.5)
    for op in symmetries.operations:
        assert op.transform_bin(bin).value == 2.5


def test_voxels_stay_in_grid(symmetries):
    # In-plane operations map the grid onto itself
    geom = symmetries.image_geometry
    coords = np.array(list(np.ndindex(*geom.shape)))
    for op in symmetries.operations:
        if op.ring_shift != 0 or op.axial_flip:
            continue
        image = op.transform_voxel_indices(coords)
        assert np.all(geom.in_range(image))
        assert len(set(map(tuple, image))) == len(coords)


# --- Basic bins and orbits --- #


def test_find_basic_bin(symmetries):
    info = symmetries.proj_data_info
    for bin in info.bins():
        basic, op = symmetries.find_basic_bin(bin)
        assert info.contains_bin(basic)
        assert symmetries.is_basic(basic)
        assert op.transform_bin(basic).key == bin.key
        assert symmetries.find_basic_bin(basic)[0].key == basic.key
        assert basic.value == 0.0
        assert basic.segment_num >= 0

    with pytest.raises(OutOfRangeError):
        symmetries.find_basic_bin(Bin(0, 8, 0, 0))


def test_orbits_partition_bins(symmetries):
    info = symmetries.proj_data_info
    all_keys = [bin.key for bin in info.bins()]
    basic_keys = [key for key in all_keys
                  if symmetries.is_basic(Bin.from_key(key))]

    covered = []
    for key in basic_keys:
        related = symmetries.get_related_bins(Bin.from_key(key))
        assert related[0][0].key == key
        assert related[0][1].is_trivial
        for rel_bin, op in related:
            assert op.transform_bin(Bin.from_key(key)).key == rel_bin.key
            assert symmetries.find_basic_bin(rel_bin)[0].key == key
        assert symmetries.num_related_bins(Bin.from_key(key)) == len(related)
        covered.extend(rel_bin.key for rel_bin, _ in related)

    assert len(covered) == len(set(covered))
    assert set(covered) == set(all_keys)
    assert 4 * len(basic_keys) < len(all_keys)


def test_related_bins_restricted(symmetries):
    bin = Bin(0, 1, 1, 2)
    related = symmetries.get_related_bins(bin)
    restricted = symmetries.get_related_bins(bin, min_axial_pos_num=0,
                                             max_axial_pos_num=0,
                                             min_tangential_pos_num=0)
    assert restricted
    assert len(restricted) < len(related)
    related_keys = set(b.key for b, _ in related)
    for rel_bin, _ in restricted:
        assert rel_bin.key in related_keys
        assert rel_bin.axial_pos_num == 0
        assert rel_bin.tangential_pos_num >= 0


def test_viewgram_orbits(symmetries):
    info = symmetries.proj_data_info
    covered = []
    for basic in symmetries.basic_viewgram_indices():
        related = symmetries.get_related_viewgram_indices(basic)
        assert related[0] == basic
        for ind in related:
            found, op = symmetries.find_basic_viewgram_indices(ind)
            assert found == basic
            assert op.transform_viewgram_indices(basic) == ind
        covered.extend(related)

    assert len(covered) == len(set(covered))
    assert set(covered) == set(info.viewgram_indices())

    # Related bins lie in related viewgrams
    for bin in (Bin(1, 3, 0, 2), Bin(0, 5, 2, -3)):
        vg_orbit = symmetries.get_related_viewgram_indices(
            bin.viewgram_indices)
        for rel_bin, _ in symmetries.get_related_bins(bin):
            assert rel_bin.viewgram_indices in vg_orbit


def test_densels(symmetries):
    geom = symmetries.image_geometry
    for densel in [(1, 2, 5), (0, 0, 0), (4, 3, 3), (2, 6, 1)]:
        basic, op = symmetries.find_basic_densel(densel)
        image = op.transform_voxel_indices(np.array([basic]))[0]
        assert tuple(image) == densel

        related = symmetries.get_related_densels(densel)
        assert related.basic_densel == basic
        assert densel in related
        assert min(related) == basic
        assert all(geom.in_range(d)[0] for d in related)

    with pytest.raises(OutOfRangeError):
        symmetries.find_basic_densel((5, 0, 0))


def test_central_voxel_orbit():
    info = toy_scanner()
    geom = ImageGeometry.from_proj_data_info(info)
    symm = DataSymmetriesForBinsPETCartesianGrid(info, geom)
    # In-plane operations fix the central column, axial shifts move it by
    # whole ring spacings, i.e. two planes
    related = symm.get_related_densels((2, 3, 3))
    assert sorted(related) == [Densel(z, 3, 3) for z in (0, 2, 4)]


def test_trivial_symmetries():
    info = toy_scanner()
    symm = TrivialDataSymmetriesForBins(info)
    assert symm.group_order == 1
    for bin in list(info.bins())[::17]:
        basic, op = symm.find_basic_bin(bin)
        assert basic.key == bin.key
        assert op.is_trivial
        assert [b.key for b, _ in symm.get_related_bins(bin)] == [bin.key]

    vg = ViewgramIndices(-1, 3)
    assert symm.get_related_viewgram_indices(vg) == [vg]
    assert symm.is_compatible_with(info)
    assert not symm.is_compatible_with(toy_scanner(num_views=4))


if __name__ == '__main__':
    symproj.util.test_file(__file__)
