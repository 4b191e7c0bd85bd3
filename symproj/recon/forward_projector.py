# Copyright 2025-2026 The symproj contributors
#
# This file is part of symproj.
#
# This Source Code Form is subject to the terms of the Mozilla Public License,
# v. 2.0. If a copy of the MPL was not distributed with this file, You can
# obtain one at https://mozilla.org/MPL/2.0/.

"""Forward projection of images into projection data."""

from symproj.projdata.proj_data import ProjDataInMemory
from symproj.recon.projector import (
    ProjectorByBin, ProjectorByBinUsingProjMatrixByBin)

__all__ = ('ForwardProjectorByBin',
           'ForwardProjectorByBinUsingProjMatrixByBin')


class ForwardProjectorByBin(ProjectorByBin):

    """Abstract forward projector.

    Forward projection computes the projection matrix applied to an image.
    The output values are overwritten, not accumulated.
    """

    def forward_project(self, data, image, min_axial_pos_num=None,
                        max_axial_pos_num=None, min_tangential_pos_num=None,
                        max_tangential_pos_num=None):
        """Store the forward projection of ``image`` in ``data``.

        Parameters
        ----------
        data : `RelatedViewgrams` or `ProjDataInMemory`
            Output with the set-up geometry. Bins outside the requested
            ranges are set to zero.
        image : `VoxelsOnCartesianGrid`
            Image with the set-up geometry.
        min_axial_pos_num, max_axial_pos_num : int, optional
            Only compute bins with axial positions in this range.
        min_tangential_pos_num, max_tangential_pos_num : int, optional
            Only compute bins with tangential positions in this range.
        """
        self._check_set_up()
        self._check_image(image)
        self._check_data(data)
        axial_range, tang_range = self._ranges(
            min_axial_pos_num, max_axial_pos_num, min_tangential_pos_num,
            max_tangential_pos_num)
        units = self._units(data)

        def work(chunk):
            # Units hold disjoint viewgrams
            for unit in chunk:
                for vg in unit:
                    vg.fill(0)
                self._forward_project_unit(unit, image, axial_range,
                                           tang_range)
            return chunk

        self._map_units(work, units)
        if isinstance(data, ProjDataInMemory):
            for unit in units:
                data.set_related_viewgrams(unit)

    def forward_project_bin(self, bin, image):
        """Return the forward projection of ``image`` for ``bin``.

        The value is also stored in ``bin``.
        """
        raise NotImplementedError('abstract method')

    def _forward_project_unit(self, unit, image, axial_range, tang_range):
        raise NotImplementedError('abstract method')


class ForwardProjectorByBinUsingProjMatrixByBin(
        ForwardProjectorByBin, ProjectorByBinUsingProjMatrixByBin):

    """Forward projector using the rows of a `ProjMatrixByBin`.

    Examples
    --------
    >>> from symproj.discr.image import ImageGeometry
    >>> from symproj.projdata.indices import Bin
    >>> from symproj.projdata.info import CylindricalProjDataInfo
    >>> from symproj.recon.proj_matrix import ProjMatrixByBinFromRows
    >>> info = CylindricalProjDataInfo(num_rings=1, ring_spacing=4.0,
    ...                                det_radius=50.0, num_views=1,
    ...                                num_tangential_poss=1,
    ...                                tangential_spacing=2.0)
    >>> geom = ImageGeometry((3, 1, 1), 1.0)
    >>> matrix = ProjMatrixByBinFromRows(
    ...     {(0, 0, 0, 0): [((1, 0, 0), 0.5), ((2, 0, 0), 0.5)]})
    >>> forward_projector = ForwardProjectorByBinUsingProjMatrixByBin(matrix)
    >>> bool(forward_projector.set_up(info, geom))
    True
    >>> image = geom.element([[[1.0]], [[2.0]], [[4.0]]])
    >>> forward_projector.forward_project_bin(Bin(0, 0, 0, 0), image)
    3.0
    """

    def forward_project_bin(self, bin, image):
        self._check_set_up()
        self._check_image(image)
        row = self.proj_matrix.get_proj_matrix_elems_for_one_bin(bin)
        bin.value = row.forward_project(image)
        return bin.value

    def _forward_project_unit(self, unit, image, axial_range, tang_range):
        matrix = self.proj_matrix
        for basic_bin, members in self.iter_orbits(unit, axial_range,
                                                   tang_range):
            row = matrix.get_row(basic_bin)
            if len(row) == 0:
                continue
            for member in members:
                member.value = row.transformed(member.op).forward_project(
                    image)
