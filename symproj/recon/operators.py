# Copyright 2025-2026 The symproj contributors
#
# This file is part of symproj.
#
# This Source Code Form is subject to the terms of the Mozilla Public License,
# v. 2.0. If a copy of the MPL was not distributed with this file, You can
# obtain one at https://mozilla.org/MPL/2.0/.

"""Forward and back projection as linear operators."""

from symproj.discr.image import ImageGeometry
from symproj.operator.operator import Operator
from symproj.projdata.info import ProjDataInfo
from symproj.recon.back_projector import (
    BackProjectorByBinUsingProjMatrixByBin)
from symproj.recon.forward_projector import (
    ForwardProjectorByBinUsingProjMatrixByBin)
from symproj.recon.proj_matrix import (
    ProjMatrixByBin, ProjMatrixByBinUsingLineSampling)

__all__ = ('ProjectionOperator', 'BackProjectionOperator')


def _set_up(projector, proj_data_info, image_geometry):
    status = projector.set_up(proj_data_info, image_geometry)
    if not status:
        raise ValueError('set-up of {!r} failed: {}'
                         ''.format(projector, status.reason))
    return projector


class ProjectionOperator(Operator):

    """Linear forward projection from images to projection data.

    Examples
    --------
    >>> from symproj.projdata.info import CylindricalProjDataInfo
    >>> from symproj.recon.proj_matrix import ProjMatrixByBinFromRows
    >>> info = CylindricalProjDataInfo(num_rings=1, ring_spacing=4.0,
    ...                                det_radius=50.0, num_views=1,
    ...                                num_tangential_poss=1,
    ...                                tangential_spacing=2.0)
    >>> geom = ImageGeometry((3, 1, 1), 1.0)
    >>> matrix = ProjMatrixByBinFromRows({(0, 0, 0, 0): [((2, 0, 0), 3.0)]})
    >>> proj = ProjectionOperator(geom, info, matrix)
    >>> proj([[[0.0]], [[0.0]], [[1.0]]]).asarray().tolist()
    [3.0]
    >>> proj.adjoint([2.0]).asarray().ravel().tolist()
    [0.0, 0.0, 6.0]
    """

    def __init__(self, image_geometry, proj_data_info, proj_matrix=None,
                 num_threads=1):
        """Initialize a new instance.

        Parameters
        ----------
        image_geometry : `ImageGeometry`
            Domain of the operator.
        proj_data_info : `ProjDataInfo`
            Range of the operator.
        proj_matrix : `ProjMatrixByBin`, optional
            Matrix defining the projection. Default:
            `ProjMatrixByBinUsingLineSampling` with default parameters.
        num_threads : positive int, optional
            Maximum number of threads for the projections.

        Raises
        ------
        ValueError
            If the matrix cannot be set up for the geometries.
        """
        if not isinstance(image_geometry, ImageGeometry):
            raise TypeError('`image_geometry` must be an `ImageGeometry`, '
                            'got {!r}'.format(image_geometry))
        if not isinstance(proj_data_info, ProjDataInfo):
            raise TypeError('`proj_data_info` must be a `ProjDataInfo`, '
                            'got {!r}'.format(proj_data_info))
        if proj_matrix is None:
            proj_matrix = ProjMatrixByBinUsingLineSampling()
        elif not isinstance(proj_matrix, ProjMatrixByBin):
            raise TypeError('`proj_matrix` must be a `ProjMatrixByBin`, got '
                            '{!r}'.format(proj_matrix))

        super(ProjectionOperator, self).__init__(
            domain=image_geometry, range=proj_data_info, linear=True)
        self.__proj_matrix = proj_matrix
        self.__num_threads = num_threads
        self.__projector = _set_up(
            ForwardProjectorByBinUsingProjMatrixByBin(proj_matrix,
                                                      num_threads),
            proj_data_info, image_geometry)

    @property
    def proj_matrix(self):
        return self.__proj_matrix

    @property
    def num_threads(self):
        return self.__num_threads

    @property
    def projector(self):
        return self.__projector

    def _call(self, x, out):
        self.projector.forward_project(out, x)

    @property
    def adjoint(self):
        """Back projection with the same matrix."""
        return BackProjectionOperator(self.domain, self.range,
                                      self.proj_matrix, self.num_threads)


class BackProjectionOperator(Operator):

    """Linear back projection from projection data to images.

    This is the adjoint of `ProjectionOperator`.
    """

    def __init__(self, image_geometry, proj_data_info, proj_matrix=None,
                 num_threads=1):
        """Initialize a new instance.

        Parameters
        ----------
        image_geometry : `ImageGeometry`
            Range of the operator.
        proj_data_info : `ProjDataInfo`
            Domain of the operator.
        proj_matrix, num_threads :
            See `ProjectionOperator`.
        """
        if proj_matrix is None:
            proj_matrix = ProjMatrixByBinUsingLineSampling()
        super(BackProjectionOperator, self).__init__(
            domain=proj_data_info, range=image_geometry, linear=True)
        self.__proj_matrix = proj_matrix
        self.__num_threads = num_threads
        self.__projector = _set_up(
            BackProjectorByBinUsingProjMatrixByBin(proj_matrix, num_threads),
            proj_data_info, image_geometry)

    @property
    def proj_matrix(self):
        return self.__proj_matrix

    @property
    def num_threads(self):
        return self.__num_threads

    @property
    def projector(self):
        return self.__projector

    def _call(self, x, out):
        out.fill(0)
        self.projector.back_project(out, x)

    @property
    def adjoint(self):
        """Forward projection with the same matrix."""
        return ProjectionOperator(self.range, self.domain, self.proj_matrix,
                                  self.num_threads)
