# Copyright 2025-2026 The symproj contributors
#
# This file is part of symproj.
#
# This Source Code Form is subject to the terms of the Mozilla Public License,
# v. 2.0. If a copy of the MPL was not distributed with this file, You can
# obtain one at https://mozilla.org/MPL/2.0/.

"""Back projection of projection data into images."""

import logging

from symproj.projdata.indices import is_rejected_value
from symproj.recon.projector import (
    ProjectorByBin, ProjectorByBinUsingProjMatrixByBin)

__all__ = ('BackProjectorByBin', 'BackProjectorByBinUsingProjMatrixByBin')

_logger = logging.getLogger(__name__)


def _contributes(value):
    """Return ``True`` if a bin value adds anything to a back projection."""
    return value != 0 and not is_rejected_value(value)


class BackProjectorByBin(ProjectorByBin):

    """Abstract back projector, the adjoint of a forward projector.

    Back projection adds the transposed projection matrix applied to the
    data to the image. Rejected bins, i.e. bins carrying the rejection
    sentinel, are skipped.
    """

    def back_project(self, image, data, min_axial_pos_num=None,
                     max_axial_pos_num=None, min_tangential_pos_num=None,
                     max_tangential_pos_num=None):
        """Add the back projection of ``data`` to ``image``.

        Parameters
        ----------
        image : `VoxelsOnCartesianGrid`
            Image to accumulate into. Must have the set-up geometry.
        data : `RelatedViewgrams` or `ProjDataInMemory`
            Projection data with the set-up geometry. Full data are split
            into groups of related viewgrams, processed in parallel if
            `num_threads` is larger than 1.
        min_axial_pos_num, max_axial_pos_num : int, optional
            Only back project bins with axial positions in this range.
        min_tangential_pos_num, max_tangential_pos_num : int, optional
            Only back project bins with tangential positions in this range.

        Raises
        ------
        NotSetUpError
            If called before a successful `set_up`.
        GeometryMismatchError
            If ``image`` or ``data`` do not match the set-up geometries.
            Nothing is accumulated in this case.
        """
        self._check_set_up()
        self._check_image(image)
        self._check_data(data)
        axial_range, tang_range = self._ranges(
            min_axial_pos_num, max_axial_pos_num, min_tangential_pos_num,
            max_tangential_pos_num)
        units = self._units(data)

        if self.num_threads == 1 or len(units) <= 1:
            for unit in units:
                self._back_project_unit(image, unit, axial_range, tang_range)
            return

        def work(chunk):
            # Private buffer per worker, merged after all workers finished
            buffer = image.get_empty_copy()
            for unit in chunk:
                self._back_project_unit(buffer, unit, axial_range,
                                        tang_range)
            return buffer

        for buffer in self._map_units(work, units):
            image += buffer

    def back_project_bin(self, image, bin):
        """Add the back projection of a single ``bin`` to ``image``."""
        raise NotImplementedError('abstract method')

    def _back_project_unit(self, image, unit, axial_range, tang_range):
        raise NotImplementedError('abstract method')


class BackProjectorByBinUsingProjMatrixByBin(
        BackProjectorByBin, ProjectorByBinUsingProjMatrixByBin):

    """Back projector using the rows of a `ProjMatrixByBin`.

    For each orbit of requested bins, the row of the basic bin is fetched
    once and, transformed by the symmetry operations, scattered with the
    value of each related bin. Orbits without any valid, nonzero value are
    skipped without fetching their row.

    Examples
    --------
    >>> from symproj.discr.image import ImageGeometry
    >>> from symproj.projdata.info import CylindricalProjDataInfo
    >>> from symproj.recon.proj_matrix import ProjMatrixByBinFromRows
    >>> info = CylindricalProjDataInfo(num_rings=1, ring_spacing=4.0,
    ...                                det_radius=50.0, num_views=1,
    ...                                num_tangential_poss=1,
    ...                                tangential_spacing=2.0)
    >>> geom = ImageGeometry((3, 1, 1), 1.0)
    >>> matrix = ProjMatrixByBinFromRows(
    ...     {(0, 0, 0, 0): [((1, 0, 0), 0.5), ((2, 0, 0), 0.5)]})
    >>> back_projector = BackProjectorByBinUsingProjMatrixByBin(matrix)
    >>> bool(back_projector.set_up(info, geom))
    True
    >>> data = info.element()
    >>> data.fill(2.0)
    >>> image = geom.zero()
    >>> back_projector.back_project(image, data)
    >>> image.asarray().ravel().tolist()
    [0.0, 1.0, 1.0]
    """

    def back_project_bin(self, image, bin):
        self._check_set_up()
        self._check_image(image)
        if bin.is_rejected or bin.value == 0:
            return
        row = self.proj_matrix.get_proj_matrix_elems_for_one_bin(bin)
        row.back_project(image, bin.value)

    def _back_project_unit(self, image, unit, axial_range, tang_range):
        matrix = self.proj_matrix
        for basic_bin, members in self.iter_orbits(unit, axial_range,
                                                   tang_range):
            values = [member.value for member in members]
            if not any(_contributes(v) for v in values):
                continue
            row = matrix.get_row(basic_bin)
            if len(row) == 0:
                continue
            for member, value in zip(members, values):
                if _contributes(value):
                    row.transformed(member.op).back_project(image, value)
