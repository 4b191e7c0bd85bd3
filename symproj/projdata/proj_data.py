# Copyright 2025-2026 The symproj contributors
#
# This file is part of symproj.
#
# This Source Code Form is subject to the terms of the Mozilla Public License,
# v. 2.0. If a copy of the MPL was not distributed with this file, You can
# obtain one at https://mozilla.org/MPL/2.0/.

"""In-memory projection data."""

import numpy as np

from symproj.projdata.arrays import Segment, Sinogram, Viewgram
from symproj.projdata.indices import (
    SegmentIndices, SinogramIndices, ViewgramIndices)
from symproj.projdata.info import ProjDataInfo
from symproj.util.exceptions import GeometryMismatchError

__all__ = ('ProjDataInMemory',)


class ProjDataInMemory(object):

    """Projection data held in memory, one `Segment` per segment index.

    Examples
    --------
    >>> from symproj.projdata.info import CylindricalProjDataInfo
    >>> info = CylindricalProjDataInfo(num_rings=2, ring_spacing=4.0,
    ...                                det_radius=50.0, num_views=4,
    ...                                num_tangential_poss=3,
    ...                                tangential_spacing=2.0)
    >>> from symproj.projdata.indices import Bin
    >>> data = ProjDataInMemory(info)
    >>> data.asarray().shape
    (48,)
    >>> data.set_bin_value(Bin(1, 2, 0, -1, value=3.0))
    >>> data.get_bin_value(Bin(1, 2, 0, -1))
    3.0
    """

    def __init__(self, proj_data_info, dtype='float64'):
        """Initialize a new zero-filled instance.

        Parameters
        ----------
        proj_data_info : `ProjDataInfo`
            Geometry of the data.
        dtype : optional
            Data type of the stored values.
        """
        if not isinstance(proj_data_info, ProjDataInfo):
            raise TypeError('`proj_data_info` must be a `ProjDataInfo`, '
                            'got {!r}'.format(proj_data_info))
        self.__proj_data_info = proj_data_info
        self.__dtype = np.dtype(dtype)
        self.__segments = {ind: Segment(proj_data_info, ind, dtype=dtype)
                           for ind in proj_data_info.segment_indices()}

    @classmethod
    def from_array(cls, proj_data_info, array, dtype='float64'):
        """Create projection data from a flat array in canonical order.

        See Also
        --------
        asarray
        ProjDataInfo.bins : definition of the canonical order
        """
        proj_data = cls(proj_data_info, dtype=dtype)
        proj_data.fill(array)
        return proj_data

    @property
    def proj_data_info(self):
        return self.__proj_data_info

    @property
    def dtype(self):
        return self.__dtype

    @property
    def size(self):
        return self.proj_data_info.num_bins

    # --- Segments --- #

    def get_segment(self, indices):
        """Return the segment with the given indices (not a copy)."""
        if not isinstance(indices, SegmentIndices):
            indices = SegmentIndices(*indices)
        self.proj_data_info.check_segment_indices(indices)
        return self.__segments[indices]

    def set_segment(self, segment):
        """Overwrite a segment with the values of ``segment``."""
        mine = self.get_segment(segment.indices)
        mine._check_characteristics(segment)
        mine.asarray()[:] = segment.asarray()

    # --- Viewgrams and sinograms --- #

    def get_viewgram(self, indices):
        """Return a copy of the viewgram with the given indices."""
        if not isinstance(indices, ViewgramIndices):
            indices = ViewgramIndices(*indices)
        return self.get_segment(indices.segment_indices).get_viewgram(
            indices.view_num)

    def set_viewgram(self, viewgram):
        if not isinstance(viewgram, Viewgram):
            raise TypeError('`viewgram` must be a `Viewgram`, got {!r}'
                            ''.format(viewgram))
        self._check_info(viewgram)
        self.get_segment(viewgram.indices.segment_indices).set_viewgram(
            viewgram)

    def get_sinogram(self, indices):
        """Return a copy of the sinogram with the given indices."""
        if not isinstance(indices, SinogramIndices):
            indices = SinogramIndices(*indices)
        return self.get_segment(indices.segment_indices).get_sinogram(
            indices.axial_pos_num)

    def set_sinogram(self, sinogram):
        if not isinstance(sinogram, Sinogram):
            raise TypeError('`sinogram` must be a `Sinogram`, got {!r}'
                            ''.format(sinogram))
        self._check_info(sinogram)
        self.get_segment(sinogram.indices.segment_indices).set_sinogram(
            sinogram)

    def get_related_viewgrams(self, indices, symmetries):
        """Return the viewgrams related to ``indices`` under ``symmetries``.

        Parameters
        ----------
        indices : `ViewgramIndices`
            Any member of the group of related viewgrams.
        symmetries : `DataSymmetriesForBins`
            Symmetries defining the relation.

        Returns
        -------
        related : `RelatedViewgrams`
            Copies of the related viewgrams, basic viewgram first.
        """
        from symproj.symmetries.related import RelatedViewgrams
        if not isinstance(indices, ViewgramIndices):
            indices = ViewgramIndices(*indices)
        members = symmetries.get_related_viewgram_indices(indices)
        return RelatedViewgrams([self.get_viewgram(ind) for ind in members],
                                symmetries)

    def set_related_viewgrams(self, related):
        """Store all viewgrams of ``related``."""
        for viewgram in related:
            self.set_viewgram(viewgram)

    # --- Single bins --- #

    def get_bin_value(self, bin):
        return self.get_segment(bin.segment_indices).get_bin_value(bin)

    def set_bin_value(self, bin):
        self.get_segment(bin.segment_indices).set_bin_value(bin)

    def accumulate_bins(self, bins):
        """Add the values of ``bins`` to the stored values.

        Rejected bins are skipped.
        """
        for bin in bins:
            if bin.is_rejected:
                continue
            segment = self.get_segment(bin.segment_indices)
            segment.asarray()[segment._bin_position(bin)] += bin.value

    # --- Whole data --- #

    def _check_info(self, other):
        if other.proj_data_info != self.proj_data_info:
            raise GeometryMismatchError(
                'projection data descriptors differ: {}'.format(
                    self.proj_data_info.describe_difference(
                        other.proj_data_info)))

    def _ordered_segments(self):
        return [self.__segments[ind]
                for ind in self.proj_data_info.segment_indices()]

    def asarray(self):
        """Return a flat copy of all values in canonical order."""
        return np.concatenate([seg.asarray().ravel()
                               for seg in self._ordered_segments()])

    def fill(self, value):
        """Set all values to a scalar or to a flat array in canonical order.
        """
        value = np.asarray(value, dtype=self.dtype)
        if value.ndim == 0:
            for seg in self.__segments.values():
                seg.fill(value)
            return

        if value.shape != (self.size,):
            raise ValueError('`value` must be a scalar or have shape ({},), '
                             'got {}'.format(self.size, value.shape))
        offset = 0
        for seg in self._ordered_segments():
            arr = seg.asarray()
            arr[...] = value[offset:offset + arr.size].reshape(arr.shape)
            offset += arr.size

    def copy(self):
        return ProjDataInMemory.from_array(self.proj_data_info,
                                           self.asarray(), dtype=self.dtype)

    def get_empty_copy(self):
        return ProjDataInMemory(self.proj_data_info, dtype=self.dtype)

    def characteristics_mismatch(self, other):
        """Return a string explaining why ``other`` is incompatible."""
        if not isinstance(other, ProjDataInMemory):
            return 'expected ProjDataInMemory, got {!r}'.format(other)
        diff = self.proj_data_info.describe_difference(other.proj_data_info)
        if diff:
            return 'projection data descriptors differ: ' + diff
        return ''

    def has_same_characteristics(self, other):
        return not self.characteristics_mismatch(other)

    def __eq__(self, other):
        if other is self:
            return True
        return (isinstance(other, ProjDataInMemory) and
                other.proj_data_info == self.proj_data_info and
                np.array_equal(other.asarray(), self.asarray()))

    def __ne__(self, other):
        return not self.__eq__(other)

    __hash__ = None

    def __repr__(self):
        return '{}({!r})'.format(self.__class__.__name__, self.proj_data_info)


if __name__ == '__main__':
    from symproj.util.testutils import run_doctests
    run_doctests()
