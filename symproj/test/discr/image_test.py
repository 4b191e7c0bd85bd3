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
from symproj.discr.image import ImageGeometry, VoxelsOnCartesianGrid
from symproj.projdata.info import CylindricalProjDataInfo
from symproj.util.exceptions import GeometryMismatchError, OutOfRangeError
from symproj.util.testutils import all_almost_equal, all_equal, noise_array


# --- ImageGeometry --- #


def test_geometry_init():
    geom = ImageGeometry((3, 4, 5), voxel_size=2.0)
    assert geom.shape == (3, 4, 5)
    assert geom.voxel_size == (2.0, 2.0, 2.0)
    assert geom.origin == (0.0, 0.0, 0.0)
    assert geom.num_voxels == 60
    assert all_almost_equal(geom.min_pt, (-3, -4, -5))
    assert all_almost_equal(geom.max_pt, (3, 4, 5))

    with pytest.raises(ValueError):
        ImageGeometry((3, 4), 1.0)
    with pytest.raises(ValueError):
        ImageGeometry((3, 0, 4), 1.0)
    with pytest.raises(ValueError):
        ImageGeometry((3, 3, 3), (1.0, -1.0, 1.0))
    with pytest.raises(ValueError):
        ImageGeometry((3, 3, 3), (1.0, 1.0))


def test_voxel_centers_roundtrip():
    geom = ImageGeometry((3, 4, 5), (2.0, 1.0, 0.5), origin=(1.0, 0, -1.0))
    coords = np.array([[0, 0, 0], [2, 3, 4], [1, 2, 1]])
    centers = geom.voxel_centers(coords)
    assert all_almost_equal(centers[0], [1.0 - 2.0, -1.5, -1.0 - 1.0])
    assert all_almost_equal(geom.continuous_index(centers), coords)


def test_in_range_and_check_index():
    geom = ImageGeometry((3, 4, 5), 1.0)
    mask = geom.in_range([[0, 0, 0], [2, 3, 4], [3, 0, 0], [0, -1, 0]])
    assert all_equal(mask, [True, True, False, False])

    geom.check_index((2, 3, 4))
    with pytest.raises(OutOfRangeError):
        geom.check_index((2, 4, 4))
    # Out of range errors are also index errors
    with pytest.raises(IndexError):
        geom.check_index((-1, 0, 0))


def test_from_proj_data_info():
    info = CylindricalProjDataInfo(num_rings=3, ring_spacing=4.0,
                                   det_radius=20.0, num_views=8,
                                   num_tangential_poss=8,
                                   tangential_spacing=2.0)
    geom = ImageGeometry.from_proj_data_info(info)
    assert geom.shape == (5, 9, 9)
    assert geom.voxel_size == (2.0, 2.0, 2.0)

    geom = ImageGeometry.from_proj_data_info(info, zoom=2.0)
    assert geom.voxel_size == (2.0, 1.0, 1.0)
    assert geom.shape[1] % 2 == 1


def test_geometry_equality():
    geom1 = ImageGeometry((3, 4, 5), 1.0)
    geom2 = ImageGeometry((3, 4, 5), (1.0, 1.0, 1.0))
    geom3 = ImageGeometry((3, 4, 5), 1.0, origin=(0, 0, 1.0))

    assert geom1 == geom2
    assert hash(geom1) == hash(geom2)
    assert geom1 != geom3
    assert 'origin' in geom1.describe_difference(geom3)
    assert geom1.describe_difference(geom2) == ''


# --- VoxelsOnCartesianGrid --- #


def test_image_element():
    geom = ImageGeometry((2, 3, 4), 1.0)
    data = noise_array(geom.shape)
    image = geom.element(data)
    assert image in geom
    assert all_equal(image.asarray(), data)

    # Data is copied
    data[0, 0, 0] += 1
    assert not all_equal(image.asarray(), data)

    with pytest.raises(ValueError):
        geom.element(np.zeros((2, 3)))
    with pytest.raises(TypeError):
        VoxelsOnCartesianGrid(geom.shape)


def test_image_indexing():
    image = ImageGeometry((2, 3, 4), 1.0).zero()
    image[1, 2, 3] = 5.0
    assert image[1, 2, 3] == 5.0
    with pytest.raises(OutOfRangeError):
        image[2, 0, 0]
    with pytest.raises(OutOfRangeError):
        image[0, 0, 4] = 1.0


def test_accumulate_and_gather():
    image = ImageGeometry((2, 3, 4), 1.0).zero()
    coords = [[0, 0, 0], [1, 2, 3], [0, 0, 0], [2, 0, 0]]
    image.accumulate(coords, [1.0, 2.0, 3.0, 100.0])

    assert image[0, 0, 0] == 4.0
    assert image[1, 2, 3] == 2.0
    assert image.asarray().sum() == 6.0
    assert all_equal(image.gather(coords), [4.0, 2.0, 4.0, 0.0])


def test_image_arithmetic():
    geom = ImageGeometry((2, 3, 4), 1.0)
    x_arr = noise_array(geom.shape)
    y_arr = noise_array(geom.shape)
    x = geom.element(x_arr)
    y = geom.element(y_arr)

    x += y
    assert all_almost_equal(x.asarray(), x_arr + y_arr)
    x -= y
    assert all_almost_equal(x.asarray(), x_arr)
    x *= 2
    assert all_almost_equal(x.asarray(), 2 * x_arr)

    copy = x.copy()
    assert copy == x
    assert copy is not x
    assert all_equal(x.get_empty_copy().asarray(), np.zeros(geom.shape))

    other = ImageGeometry((2, 3, 5), 1.0).zero()
    assert not x.has_same_characteristics(other)
    with pytest.raises(GeometryMismatchError):
        x += other


if __name__ == '__main__':
    symproj.util.test_file(__file__)
