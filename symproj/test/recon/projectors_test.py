# Copyright 2025-2026 The symproj contributors
#
# This file is part of symproj.
#
# This Source Code Form is subject to the terms of the Mozilla Public License,
# v. 2.0. If a copy of the MPL was not distributed with this file, You can
# obtain one at https://mozilla.org/MPL/2.0/.

"""Tests for forward and back projectors using projection matrices."""

import numpy as np
import pytest

import symproj
from symproj.discr.image import ImageGeometry
from symproj.projdata.indices import REJECTED_BIN_VALUE, Bin
from symproj.projdata.info import CylindricalProjDataInfo
from symproj.recon.back_projector import (
    BackProjectorByBinUsingProjMatrixByBin)
from symproj.recon.forward_projector import (
    ForwardProjectorByBinUsingProjMatrixByBin)
from symproj.recon.proj_matrix import (
    ProjMatrixByBinFromRows, ProjMatrixByBinUsingLineSampling)
from symproj.util.exceptions import GeometryMismatchError, NotSetUpError
from symproj.util.testutils import (
    all_almost_equal, noise_array, simple_fixture)


# --- pytest fixtures --- #


tof = simple_fixture('tof', [False, True])
num_threads = simple_fixture('num_threads', [1, 3])


def toy_scanner(num_views=8, tof=False):
    kwargs = {}
    if tof:
        kwargs.update(num_timing_poss=3, timing_spacing=10.0,
                      timing_fwhm=15.0)
    return CylindricalProjDataInfo(num_rings=3, ring_spacing=4.0,
                                   det_radius=20.0, num_views=num_views,
                                   num_tangential_poss=7,
                                   tangential_spacing=2.0, **kwargs)


def projectors(info, num_threads=1, matrix=None, geom=None):
    """Return set-up forward and back projectors sharing one matrix."""
    if matrix is None:
        matrix = ProjMatrixByBinUsingLineSampling()
    if geom is None:
        geom = ImageGeometry.from_proj_data_info(info)
    forward = ForwardProjectorByBinUsingProjMatrixByBin(matrix, num_threads)
    back = BackProjectorByBinUsingProjMatrixByBin(matrix, num_threads)
    assert forward.set_up(info, geom)
    assert back.set_up(info, geom)
    return forward, back, geom


def noise_data(info):
    return info.element(noise_array((info.num_bins,)))


def noise_image(geom):
    return geom.element(noise_array(geom.shape))


# --- Small explicit rows --- #


def test_three_voxel_row():
    info = CylindricalProjDataInfo(num_rings=1, ring_spacing=4.0,
                                   det_radius=50.0, num_views=1,
                                   num_tangential_poss=1,
                                   tangential_spacing=2.0)
    geom = ImageGeometry((3, 1, 1), 1.0)
    matrix = ProjMatrixByBinFromRows(
        {(0, 0, 0, 0): [((0, 0, 0), 1.0), ((1, 0, 0), 2.0),
                        ((2, 0, 0), 3.0)]})
    forward, back, _ = projectors(info, matrix=matrix, geom=geom)
    assert back.image_geometry == geom

    data = info.element()
    data.fill(2.0)
    image = geom.zero()
    back.back_project(image, data)
    assert all_almost_equal(image.asarray().ravel(), [2.0, 4.0, 6.0])

    # Back projection accumulates
    back.back_project(image, data)
    assert all_almost_equal(image.asarray().ravel(), [4.0, 8.0, 12.0])

    forward.forward_project(data, geom.element(np.ones((3, 1, 1))))
    assert all_almost_equal(data.asarray(), [6.0])

    # Rejected and zero values do not contribute
    data.fill(REJECTED_BIN_VALUE)
    image = geom.zero()
    back.back_project(image, data)
    assert all_almost_equal(image.asarray().ravel(), [0.0, 0.0, 0.0])


# --- Line sampling --- #


def test_adjointness(tof, num_threads):
    info = toy_scanner(tof=tof)
    forward, back, geom = projectors(info, num_threads)

    x = noise_image(geom)
    y = noise_data(info)
    proj = info.element()
    forward.forward_project(proj, x)
    backproj = geom.zero()
    back.back_project(backproj, y)

    lhs = np.dot(proj.asarray(), y.asarray())
    rhs = np.vdot(x.asarray(), backproj.asarray())
    scale = np.linalg.norm(proj.asarray()) * np.linalg.norm(y.asarray())
    assert lhs == pytest.approx(rhs, rel=1e-8, abs=1e-10 * scale)


def test_projection_matches_sparse_matrix(tof):
    info = toy_scanner(tof=tof)
    forward, back, geom = projectors(info)
    matrix = forward.proj_matrix.as_sparse_matrix(use_symmetries=False)

    x = noise_image(geom)
    proj = info.element()
    forward.forward_project(proj, x)
    assert all_almost_equal(proj.asarray(), matrix.dot(x.asarray().ravel()))

    y = noise_data(info)
    backproj = geom.zero()
    back.back_project(backproj, y)
    assert all_almost_equal(backproj.asarray().ravel(),
                            matrix.T.dot(y.asarray()))


def test_parallel_equals_serial(tof):
    info = toy_scanner(tof=tof)
    serial_fwd, serial_back, geom = projectors(info, num_threads=1)
    par_fwd, par_back, _ = projectors(info, num_threads=3)
    assert par_back.num_threads == 3

    x = noise_image(geom)
    serial_proj, par_proj = info.element(), info.element()
    serial_fwd.forward_project(serial_proj, x)
    par_fwd.forward_project(par_proj, x)
    assert all_almost_equal(serial_proj.asarray(), par_proj.asarray())

    y = noise_data(info)
    serial_image, par_image = geom.zero(), geom.zero()
    serial_back.back_project(serial_image, y)
    par_back.back_project(par_image, y)
    assert all_almost_equal(serial_image.asarray(), par_image.asarray())


def test_rejected_bins_are_skipped():
    info = toy_scanner()
    _, back, geom = projectors(info)
    y = noise_data(info)
    zeroed = y.copy()

    for bin in (Bin(0, 3, 1, 2), Bin(-2, 5, 0, -3), Bin(1, 0, 0, 0)):
        bin.reject()
        y.set_bin_value(bin)
        bin.value = 0.0
        zeroed.set_bin_value(bin)

    image1, image2 = geom.zero(), geom.zero()
    back.back_project(image1, y)
    back.back_project(image2, zeroed)
    assert all_almost_equal(image1.asarray(), image2.asarray())


def test_forward_projection_overwrites():
    info = toy_scanner()
    forward, _, geom = projectors(info)
    x = noise_image(geom)

    proj1 = info.element()
    proj2 = info.element()
    proj2.fill(7.0)
    forward.forward_project(proj1, x)
    forward.forward_project(proj2, x)
    assert proj1 == proj2


def test_related_viewgrams():
    info = toy_scanner()
    forward, back, geom = projectors(info)
    x = noise_image(geom)
    full = info.element()
    forward.forward_project(full, x)

    y = noise_data(info)
    full_back = geom.zero()
    back.back_project(full_back, y)

    unit_back = geom.zero()
    for indices in forward.symmetries.basic_viewgram_indices():
        unit = info.element().get_related_viewgrams(indices,
                                                    forward.symmetries)
        forward.forward_project(unit, x)
        for viewgram in unit:
            expected = full.get_viewgram(viewgram.indices)
            assert all_almost_equal(viewgram.asarray(), expected.asarray())

        back.back_project(unit_back,
                          y.get_related_viewgrams(indices, back.symmetries))

    assert all_almost_equal(unit_back.asarray(), full_back.asarray())


def test_range_restriction():
    info = toy_scanner()
    forward, back, geom = projectors(info)
    x = noise_image(geom)
    y = noise_data(info)

    mask = np.array([b.axial_pos_num == 0 and -1 <= b.tangential_pos_num <= 2
                     for b in info.bins()])

    full = info.element()
    forward.forward_project(full, x)
    restricted = info.element()
    restricted.fill(5.0)
    forward.forward_project(restricted, x, min_axial_pos_num=0,
                            max_axial_pos_num=0, min_tangential_pos_num=-1,
                            max_tangential_pos_num=2)
    assert all_almost_equal(restricted.asarray(),
                            np.where(mask, full.asarray(), 0.0))

    restricted_back = geom.zero()
    back.back_project(restricted_back, y, max_axial_pos_num=0,
                      min_tangential_pos_num=-1, max_tangential_pos_num=2)
    masked_back = geom.zero()
    back.back_project(masked_back,
                      info.element(np.where(mask, y.asarray(), 0.0)))
    assert all_almost_equal(restricted_back.asarray(),
                            masked_back.asarray())


def test_single_bins():
    info = toy_scanner()
    forward, back, geom = projectors(info)
    x = noise_image(geom)
    full = info.element()
    forward.forward_project(full, x)

    bin = Bin(-1, 6, 1, -2)
    value = forward.forward_project_bin(bin, x)
    assert bin.value == value
    assert value == pytest.approx(full.get_bin_value(bin))

    image = geom.zero()
    bin.value = 3.0
    back.back_project_bin(image, bin)
    data = info.element()
    data.set_bin_value(bin)
    expected = geom.zero()
    back.back_project(expected, data)
    assert all_almost_equal(image.asarray(), expected.asarray())

    # Rejected bins leave the image unchanged
    bin.reject()
    back.back_project_bin(image, bin)
    assert all_almost_equal(image.asarray(), expected.asarray())


# --- Errors and set-up --- #


def test_not_set_up():
    info = toy_scanner()
    geom = ImageGeometry.from_proj_data_info(info)
    matrix = ProjMatrixByBinUsingLineSampling()
    forward = ForwardProjectorByBinUsingProjMatrixByBin(matrix)
    back = BackProjectorByBinUsingProjMatrixByBin(matrix)
    assert not forward.is_set_up

    with pytest.raises(NotSetUpError):
        forward.forward_project(info.element(), geom.zero())
    with pytest.raises(NotSetUpError):
        back.back_project(geom.zero(), info.element())
    with pytest.raises(NotSetUpError):
        back.symmetries

    status = back.set_up(info, 'geometry')
    assert not status
    assert not back.is_set_up


def test_geometry_mismatch():
    info = toy_scanner()
    forward, back, geom = projectors(info)

    other_geom = ImageGeometry((5, 9, 9), 2.0)
    with pytest.raises(GeometryMismatchError):
        back.back_project(other_geom.zero(), noise_data(info))
    with pytest.raises(GeometryMismatchError):
        forward.forward_project(info.element(), other_geom.zero())

    image = geom.zero()
    other_info = toy_scanner(num_views=4)
    with pytest.raises(GeometryMismatchError):
        back.back_project(image, noise_data(other_info))
    assert all_almost_equal(image.asarray(), geom.zero().asarray())

    with pytest.raises(TypeError):
        back.back_project(image.asarray(), info.element())
    with pytest.raises(TypeError):
        forward.forward_project(info.element().asarray(), image)


def test_shared_matrix_set_up():
    info = toy_scanner()
    forward, back, geom = projectors(info)
    assert forward.proj_matrix is back.proj_matrix
    forward.proj_matrix.get_row(Bin(0, 0, 0, 0))

    # Setting up with the same geometry keeps the cached rows
    assert back.set_up(info, geom)
    assert back.proj_matrix.cache_info().currsize == 1


def test_invalid_arguments():
    matrix = ProjMatrixByBinUsingLineSampling()
    with pytest.raises(ValueError):
        BackProjectorByBinUsingProjMatrixByBin(matrix, num_threads=0)
    with pytest.raises(TypeError):
        ForwardProjectorByBinUsingProjMatrixByBin('line_sampling')


if __name__ == '__main__':
    symproj.util.test_file(__file__)
