# Copyright 2025-2026 The symproj contributors
#
# This file is part of symproj.
#
# This Source Code Form is subject to the terms of the Mozilla Public License,
# v. 2.0. If a copy of the MPL was not distributed with this file, You can
# obtain one at https://mozilla.org/MPL/2.0/.

"""Common machinery of forward and back projectors."""

from concurrent.futures import ThreadPoolExecutor
import logging

from symproj.discr.image import ImageGeometry, VoxelsOnCartesianGrid
from symproj.projdata.indices import Bin
from symproj.projdata.info import ProjDataInfo
from symproj.projdata.proj_data import ProjDataInMemory
from symproj.recon.proj_matrix import ProjMatrixByBin, SetUpStatus
from symproj.symmetries.related import RelatedViewgrams
from symproj.util.exceptions import GeometryMismatchError, NotSetUpError
from symproj.util.utility import normalized_range

__all__ = ('ProjectorByBin', 'ProjectorByBinUsingProjMatrixByBin',
           'OrbitMember')

_logger = logging.getLogger(__name__)


class OrbitMember(object):

    """Bin of a work unit, with the operation from its basic bin.

    ``viewgram`` and ``position`` locate the value of the bin in the
    unit's data.
    """

    __slots__ = ('bin', 'op', 'viewgram', 'position')

    def __init__(self, bin, op, viewgram, position):
        self.bin = bin
        self.op = op
        self.viewgram = viewgram
        self.position = position

    @property
    def value(self):
        return float(self.viewgram.asarray()[self.position])

    @value.setter
    def value(self, value):
        self.viewgram.asarray()[self.position] = value


class ProjectorByBin(object):

    """Base class of projectors working on groups of related viewgrams.

    Subclasses provide `symmetries` and `_set_up_impl`.
    """

    def __init__(self, num_threads=1):
        num_threads = int(num_threads)
        if num_threads < 1:
            raise ValueError('`num_threads` must be positive, got {}'
                             ''.format(num_threads))
        self.__num_threads = num_threads
        self.__proj_data_info = None
        self.__image_geometry = None

    @property
    def num_threads(self):
        """Maximum number of threads used for projecting full data."""
        return self.__num_threads

    @property
    def proj_data_info(self):
        return self.__proj_data_info

    @property
    def image_geometry(self):
        return self.__image_geometry

    @property
    def is_set_up(self):
        return self.__proj_data_info is not None

    @property
    def symmetries(self):
        raise NotImplementedError('abstract method')

    def set_up(self, proj_data_info, image_geometry):
        """Prepare the projector for the given geometries.

        On failure, the previous configuration is kept.

        Returns
        -------
        status : `SetUpStatus`
        """
        if not isinstance(proj_data_info, ProjDataInfo):
            return SetUpStatus.no('`proj_data_info` must be a ProjDataInfo, '
                                  'got {!r}'.format(proj_data_info))
        if not isinstance(image_geometry, ImageGeometry):
            return SetUpStatus.no('`image_geometry` must be an '
                                  'ImageGeometry, got {!r}'
                                  ''.format(image_geometry))
        status = self._set_up_impl(proj_data_info, image_geometry)
        if status:
            self.__proj_data_info = proj_data_info
            self.__image_geometry = image_geometry
        else:
            _logger.error('set-up of %s failed: %s',
                          self.__class__.__name__, status.reason)
        return status

    def _set_up_impl(self, proj_data_info, image_geometry):
        raise NotImplementedError('abstract method')

    # --- Checks --- #

    def _check_set_up(self):
        if not self.is_set_up:
            raise NotSetUpError('{} used before a successful `set_up`'
                                ''.format(self.__class__.__name__))

    def _check_image(self, image):
        if not isinstance(image, VoxelsOnCartesianGrid):
            raise TypeError('`image` must be a `VoxelsOnCartesianGrid`, got '
                            '{!r}'.format(image))
        diff = self.image_geometry.describe_difference(image.geometry)
        if diff:
            raise GeometryMismatchError(
                'image does not match the set-up geometry: ' + diff)

    def _check_data(self, data):
        if not isinstance(data, (RelatedViewgrams, ProjDataInMemory)):
            raise TypeError('`data` must be `RelatedViewgrams` or '
                            '`ProjDataInMemory`, got {!r}'.format(data))
        diff = self.proj_data_info.describe_difference(data.proj_data_info)
        if diff:
            raise GeometryMismatchError(
                'projection data do not match the set-up geometry: ' + diff)

    # --- Work units --- #

    def _ranges(self, min_axial_pos_num, max_axial_pos_num,
                min_tangential_pos_num, max_tangential_pos_num):
        tang_range = normalized_range(
            (min_tangential_pos_num, max_tangential_pos_num),
            self.proj_data_info.valid_tangential_range(),
            'tangential_pos_num')
        return (min_axial_pos_num, max_axial_pos_num), tang_range

    def iter_orbits(self, unit, axial_range=(None, None),
                    tang_range=(None, None)):
        """Iterate over the orbits of the requested bins of ``unit``.

        Each requested bin of ``unit`` is visited exactly once, as a member
        of the orbit of its basic bin. Members whose viewgram is not part
        of ``unit`` are left out.

        Parameters
        ----------
        unit : `RelatedViewgrams`
            Viewgrams to visit.
        axial_range, tang_range : 2-tuple of int or None, optional
            Requested inclusive ranges of axial and tangential positions.

        Yields
        ------
        basic_bin : `Bin`
        members : list of `OrbitMember`
        """
        info = self.proj_data_info
        symmetries = self.symmetries
        t_min_valid, _ = info.valid_tangential_range()
        t_min, t_max = normalized_range(tang_range,
                                        info.valid_tangential_range(),
                                        'tangential_pos_num')
        viewgrams = {vg.indices: vg for vg in unit}

        done = set()
        for vg in unit:
            seg = vg.segment_num
            a_min_valid, _ = info.valid_axial_range(seg)
            a_min, a_max = normalized_range(axial_range,
                                            info.valid_axial_range(seg),
                                            'axial_pos_num')
            for ax in range(a_min, a_max + 1):
                for tang in range(t_min, t_max + 1):
                    bin = Bin(seg, vg.view_num, ax, tang, vg.timing_pos_num)
                    if bin.key in done:
                        continue
                    basic_bin, _ = symmetries.find_basic_bin(bin)
                    members = []
                    for related, op in symmetries.get_related_bins(
                            basic_bin, axial_range[0], axial_range[1],
                            t_min, t_max):
                        owner = viewgrams.get(related.viewgram_indices)
                        if owner is None or related.key in done:
                            continue
                        done.add(related.key)
                        r_a_min, _ = info.valid_axial_range(
                            related.segment_num)
                        position = (related.axial_pos_num - r_a_min,
                                    related.tangential_pos_num - t_min_valid)
                        members.append(OrbitMember(related, op, owner,
                                                   position))
                    yield basic_bin, members

    def _units(self, data):
        """Split ``data`` into `RelatedViewgrams` work units."""
        if isinstance(data, RelatedViewgrams):
            return [data]
        symmetries = self.symmetries
        return [data.get_related_viewgrams(ind, symmetries)
                for ind in symmetries.basic_viewgram_indices()]

    def _map_units(self, func, units):
        """Apply ``func`` to chunks of ``units``, in parallel if allowed.

        Returns
        -------
        results : list
            Results of ``func`` for each chunk.
        """
        num_workers = min(self.num_threads, len(units))
        _logger.debug('%s: %d work units on %d thread(s)',
                      self.__class__.__name__, len(units), max(num_workers, 1))
        if num_workers <= 1:
            return [func(units)]
        chunks = [units[i::num_workers] for i in range(num_workers)]
        with ThreadPoolExecutor(max_workers=num_workers) as executor:
            return list(executor.map(func, chunks))


class ProjectorByBinUsingProjMatrixByBin(ProjectorByBin):

    """Projector taking its rows from a `ProjMatrixByBin`."""

    def __init__(self, proj_matrix, num_threads=1):
        """Initialize a new instance.

        Parameters
        ----------
        proj_matrix : `ProjMatrixByBin`
            Matrix providing the rows. It may be shared with other
            projectors.
        num_threads : positive int, optional
            Maximum number of threads used for projecting full data.
        """
        if not isinstance(proj_matrix, ProjMatrixByBin):
            raise TypeError('`proj_matrix` must be a `ProjMatrixByBin`, got '
                            '{!r}'.format(proj_matrix))
        super(ProjectorByBinUsingProjMatrixByBin, self).__init__(num_threads)
        self.__proj_matrix = proj_matrix

    @property
    def proj_matrix(self):
        return self.__proj_matrix

    @property
    def symmetries(self):
        self._check_set_up()
        return self.proj_matrix.symmetries

    def _set_up_impl(self, proj_data_info, image_geometry):
        matrix = self.proj_matrix
        if (matrix.is_set_up and
                matrix.proj_data_info == proj_data_info and
                matrix.image_geometry == image_geometry):
            return SetUpStatus.yes()
        return matrix.set_up(proj_data_info, image_geometry)

    def __repr__(self):
        if self.num_threads == 1:
            return '{}({!r})'.format(self.__class__.__name__,
                                     self.proj_matrix)
        return '{}({!r}, num_threads={})'.format(
            self.__class__.__name__, self.proj_matrix, self.num_threads)
