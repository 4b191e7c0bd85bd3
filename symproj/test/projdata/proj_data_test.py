# Copyright 2025-2026 The symproj contributors
#
# This file is part of symproj.
#
# This Source Code Form is subject to the terms of the Mozilla Public License,
# v. 2.0. If a copy of the MPL was not distributed with this file, You can
# obtain one at https://mozilla.org/MPL/2.0/.

import numpy as np
import pytest

import symproj
from symproj.projdata.arrays import Segment, Sinogram, Viewgram
from symproj.projdata.indices import (
    Bin, REJECTED_BIN_VALUE, SegmentIndices, SinogramIndices,
    ViewgramIndices)
from symproj.projdata.info import CylindricalProjDataInfo
from symproj.projdata.proj_data import ProjDataInMemory
from symproj.util.exceptions import GeometryMismatchError, OutOfRangeError
from symproj.util.testutils import all_almost_equal, all_equal, noise_array


def scanner(num_views=4):
    return CylindricalProjDataInfo(num_rings=3, ring_spacing=4.0,
                                   det_radius=20.0, num_views=num_views,
                                   num_tangential_poss=5,
                                   tangential_spacing=2.0)


# --- Viewgrams, sinograms and segments --- #


def test_viewgram_shape_and_bins():
    info = scanner()
    vg = Viewgram(info, ViewgramIndices(1, 2))
    assert vg.shape == (2, 5)
    assert vg.view_num == 2

    vg.set_bin_value(Bin(1, 2, 1, -2, value=3.0))
    assert vg.asarray()[1, 0] == 3.0
    assert vg.get_bin_value(Bin(1, 2, 1, -2)) == 3.0

    with pytest.raises(OutOfRangeError):
        vg.get_bin_value(Bin(1, 3, 1, -2))
    with pytest.raises(OutOfRangeError):
        vg.get_bin_value(Bin(0, 2, 1, -2))
    with pytest.raises(OutOfRangeError):
        Viewgram(info, ViewgramIndices(3, 0))
    with pytest.raises(ValueError):
        Viewgram(info, ViewgramIndices(0, 0), np.zeros((2, 5)))


def test_characteristics_mismatch():
    vg1 = Viewgram(scanner(), ViewgramIndices(0, 1))
    vg2 = Viewgram(scanner(num_views=8), ViewgramIndices(0, 1))
    vg3 = Viewgram(scanner(), ViewgramIndices(0, 2))

    assert vg1.has_same_characteristics(vg1.get_empty_copy())
    assert 'num_views' in vg1.characteristics_mismatch(vg2)
    assert 'indices' in vg1.characteristics_mismatch(vg3)
    with pytest.raises(GeometryMismatchError):
        vg1 += vg2
    with pytest.raises(GeometryMismatchError):
        vg1 - vg3
    # Mismatches are value errors for callers that do not know the type
    with pytest.raises(ValueError):
        vg1 *= vg2


def test_array_arithmetic():
    info = scanner()
    indices = SinogramIndices(-1, 0)
    arr1 = noise_array(info.sinogram_shape(-1))
    arr2 = noise_array(info.sinogram_shape(-1))
    sino1 = Sinogram(info, indices, arr1.copy())
    sino2 = Sinogram(info, indices, arr2.copy())

    assert all_almost_equal(sino1 + sino2, arr1 + arr2)
    assert all_almost_equal(sino1 - sino2, arr1 - arr2)
    assert all_almost_equal(sino1 * sino2, arr1 * arr2)
    assert all_almost_equal(2 * sino1, 2 * arr1)

    sino1 += sino2
    assert all_almost_equal(sino1, arr1 + arr2)
    assert sino1.copy() == sino1
    assert sino1.get_empty_copy() != sino1


def test_segment_parts():
    info = scanner()
    seg = Segment(info, SegmentIndices(1))
    data = noise_array(seg.shape)
    seg.asarray()[:] = data

    vg = seg.get_viewgram(3)
    assert all_equal(vg.asarray(), data[:, 3, :])
    vg.fill(1.0)
    # Returned parts are copies
    assert all_equal(seg.asarray()[:, 3, :], data[:, 3, :])
    seg.set_viewgram(vg)
    assert all_equal(seg.asarray()[:, 3, :], np.ones((2, 5)))
    data[:, 3, :] = 1.0

    sino = seg.get_sinogram(1)
    assert all_equal(sino.asarray(), data[1])
    seg.set_sinogram(sino, axial_pos_num=0)
    assert all_equal(seg.asarray()[0], seg.asarray()[1])

    other = Viewgram(info, ViewgramIndices(-1, 3))
    with pytest.raises(GeometryMismatchError):
        seg.set_viewgram(other)


# --- ProjDataInMemory --- #


def test_canonical_order():
    info = scanner()
    values = np.arange(info.num_bins, dtype=float)
    data = ProjDataInMemory.from_array(info, values)

    for i, bin in enumerate(info.bins()):
        assert data.get_bin_value(bin) == values[i]
    assert all_equal(data.asarray(), values)

    with pytest.raises(ValueError):
        data.fill(np.zeros(info.num_bins + 1))


def test_viewgram_access():
    info = scanner()
    data = ProjDataInMemory.from_array(info, noise_array((info.num_bins,)))

    vg = data.get_viewgram(ViewgramIndices(-1, 2))
    for ax in range(2):
        for tang in range(-2, 3):
            bin = Bin(-1, 2, ax, tang)
            assert vg.get_bin_value(bin) == data.get_bin_value(bin)

    vg.fill(7.0)
    data.set_viewgram(vg)
    assert data.get_bin_value(Bin(-1, 2, 1, 0)) == 7.0
    assert data.get_viewgram((-1, 2)) == vg

    wrong = Viewgram(scanner(num_views=8), ViewgramIndices(-1, 2))
    with pytest.raises(GeometryMismatchError):
        data.set_viewgram(wrong)
    with pytest.raises(TypeError):
        data.set_viewgram(data.get_sinogram((0, 0)))


def test_sinogram_access():
    info = scanner()
    data = info.element()
    sino = data.get_sinogram(SinogramIndices(0, 2))
    assert sino.shape == (4, 5)
    sino.fill(2.0)
    data.set_sinogram(sino)
    assert data.get_bin_value(Bin(0, 3, 2, 1)) == 2.0
    assert data.get_bin_value(Bin(0, 3, 1, 1)) == 0.0


def test_accumulate_bins():
    data = scanner().element()
    bins = [Bin(0, 0, 0, 0, value=1.0), Bin(0, 0, 0, 0, value=2.0),
            Bin(1, 1, 0, 0, value=REJECTED_BIN_VALUE)]
    data.accumulate_bins(bins)
    assert data.get_bin_value(Bin(0, 0, 0, 0)) == 3.0
    assert data.get_bin_value(Bin(1, 1, 0, 0)) == 0.0


def test_copy_and_equality():
    info = scanner()
    data = ProjDataInMemory.from_array(info, noise_array((info.num_bins,)))
    copy = data.copy()
    assert copy == data
    copy.set_bin_value(Bin(0, 0, 0, 0, value=100.0))
    assert copy != data

    empty = data.get_empty_copy()
    assert all_equal(empty.asarray(), np.zeros(info.num_bins))
    assert empty.has_same_characteristics(data)
    assert not empty.has_same_characteristics(scanner(num_views=8).element())


if __name__ == '__main__':
    symproj.util.test_file(__file__)
