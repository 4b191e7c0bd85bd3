# Copyright 2025-2026 The symproj contributors
#
# This file is part of symproj.
#
# This Source Code Form is subject to the terms of the Mozilla Public License,
# v. 2.0. If a copy of the MPL was not distributed with this file, You can
# obtain one at https://mozilla.org/MPL/2.0/.

"""Viewgrams, sinograms and segments of projection data.

All three hold a `numpy.ndarray` together with the `ProjDataInfo` they
belong to and the indices fixing their position in the projection data.
Arithmetic between two of them requires the same characteristics, i.e.
the same descriptor and the same indices.
"""

import numpy as np

from symproj.projdata.indices import (
    SegmentIndices, SinogramIndices, ViewgramIndices)
from symproj.projdata.info import ProjDataInfo
from symproj.util.exceptions import GeometryMismatchError, OutOfRangeError

__all__ = ('Viewgram', 'Sinogram', 'Segment')


class _ProjDataArray(object):

    """Base class of the projection data slices."""

    _indices_type = None

    def __init__(self, proj_data_info, indices, data=None, dtype='float64'):
        if not isinstance(proj_data_info, ProjDataInfo):
            raise TypeError('`proj_data_info` must be a `ProjDataInfo`, '
                            'got {!r}'.format(proj_data_info))
        if not isinstance(indices, self._indices_type):
            raise TypeError('`indices` must be `{}`, got {!r}'
                            ''.format(self._indices_type.__name__, indices))
        self._check_indices(proj_data_info, indices)
        self.__proj_data_info = proj_data_info
        self.__indices = indices

        shape = self._shape(proj_data_info, indices)
        if data is None:
            self.__data = np.zeros(shape, dtype=dtype)
        else:
            data = np.asarray(data, dtype=dtype)
            if data.shape != shape:
                raise ValueError('`data` must have shape {}, got {}'
                                 ''.format(shape, data.shape))
            self.__data = data

    # Overridden in subclasses
    @staticmethod
    def _check_indices(proj_data_info, indices):
        raise NotImplementedError

    @staticmethod
    def _shape(proj_data_info, indices):
        raise NotImplementedError

    def _bin_position(self, bin):
        raise NotImplementedError

    @property
    def proj_data_info(self):
        return self.__proj_data_info

    @property
    def indices(self):
        return self.__indices

    @property
    def segment_num(self):
        return self.indices.segment_num

    @property
    def timing_pos_num(self):
        return self.indices.timing_pos_num

    @property
    def shape(self):
        return self.__data.shape

    @property
    def dtype(self):
        return self.__data.dtype

    def asarray(self):
        """Return the underlying array (not a copy)."""
        return self.__data

    def __array__(self, dtype=None, copy=None):
        if dtype is None:
            return self.__data
        return self.__data.astype(dtype)

    def _new(self, data):
        return type(self)(self.proj_data_info, self.indices, data,
                          dtype=data.dtype)

    def get_empty_copy(self):
        """Return a zero-filled array with the same characteristics."""
        return self._new(np.zeros_like(self.__data))

    def copy(self):
        return self._new(self.__data.copy())

    def fill(self, value):
        self.__data.fill(value)

    def characteristics_mismatch(self, other):
        """Return a string explaining why ``other`` is incompatible.

        The string is empty if ``other`` has the same type, descriptor and
        indices as ``self``.
        """
        if type(other) is not type(self):
            return 'expected {}, got {!r}'.format(type(self).__name__, other)
        diff = self.proj_data_info.describe_difference(other.proj_data_info)
        if diff:
            return 'projection data descriptors differ: ' + diff
        if other.indices != self.indices:
            return 'indices differ: {} != {}'.format(self.indices,
                                                    other.indices)
        return ''

    def has_same_characteristics(self, other):
        return not self.characteristics_mismatch(other)

    def _check_characteristics(self, other):
        reason = self.characteristics_mismatch(other)
        if reason:
            raise GeometryMismatchError(reason)

    def get_bin_value(self, bin):
        """Return the value stored for ``bin``."""
        return float(self.__data[self._bin_position(bin)])

    def set_bin_value(self, bin):
        """Store the value of ``bin``."""
        self.__data[self._bin_position(bin)] = bin.value

    def _check_bin_belongs(self, bin):
        self.proj_data_info.check_bin(bin)
        if (bin.segment_num != self.segment_num or
                bin.timing_pos_num != self.timing_pos_num):
            raise OutOfRangeError('{!r} does not belong to {!r}'
                                  ''.format(bin, self.indices))

    # --- Arithmetic --- #

    def _other_data(self, other):
        if isinstance(other, _ProjDataArray):
            self._check_characteristics(other)
            return other.asarray()
        return other

    def __iadd__(self, other):
        self.__data += self._other_data(other)
        return self

    def __isub__(self, other):
        self.__data -= self._other_data(other)
        return self

    def __imul__(self, other):
        self.__data *= self._other_data(other)
        return self

    def __add__(self, other):
        result = self.copy()
        result += other
        return result

    def __sub__(self, other):
        result = self.copy()
        result -= other
        return result

    def __mul__(self, other):
        result = self.copy()
        result *= other
        return result

    __rmul__ = __mul__

    def __eq__(self, other):
        if other is self:
            return True
        return (self.has_same_characteristics(other) and
                np.array_equal(self.__data, other.asarray()))

    def __ne__(self, other):
        return not self.__eq__(other)

    __hash__ = None

    def __repr__(self):
        return '{}({!r}, {!r})'.format(self.__class__.__name__,
                                       self.proj_data_info, self.indices)


class Viewgram(_ProjDataArray):

    """All axial and tangential positions of one view.

    The data has shape ``(num_axial_poss, num_tangential_poss)``.
    """

    _indices_type = ViewgramIndices

    @staticmethod
    def _check_indices(proj_data_info, indices):
        proj_data_info.check_viewgram_indices(indices)

    @staticmethod
    def _shape(proj_data_info, indices):
        return proj_data_info.viewgram_shape(indices.segment_num)

    @property
    def view_num(self):
        return self.indices.view_num

    def _bin_position(self, bin):
        self._check_bin_belongs(bin)
        if bin.view_num != self.view_num:
            raise OutOfRangeError('{!r} does not belong to {!r}'
                                  ''.format(bin, self.indices))
        a_min, _ = self.proj_data_info.valid_axial_range(self.segment_num)
        t_min, _ = self.proj_data_info.valid_tangential_range()
        return (bin.axial_pos_num - a_min, bin.tangential_pos_num - t_min)


class Sinogram(_ProjDataArray):

    """All views and tangential positions of one axial position.

    The data has shape ``(num_views, num_tangential_poss)``.
    """

    _indices_type = SinogramIndices

    @staticmethod
    def _check_indices(proj_data_info, indices):
        proj_data_info.check_sinogram_indices(indices)

    @staticmethod
    def _shape(proj_data_info, indices):
        return proj_data_info.sinogram_shape(indices.segment_num)

    @property
    def axial_pos_num(self):
        return self.indices.axial_pos_num

    def _bin_position(self, bin):
        self._check_bin_belongs(bin)
        if bin.axial_pos_num != self.axial_pos_num:
            raise OutOfRangeError('{!r} does not belong to {!r}'
                                  ''.format(bin, self.indices))
        v_min, _ = self.proj_data_info.valid_view_range(self.segment_num)
        t_min, _ = self.proj_data_info.valid_tangential_range()
        return (bin.view_num - v_min, bin.tangential_pos_num - t_min)


class Segment(_ProjDataArray):

    """All bins of one segment and timing position.

    The data is stored as a stack of sinograms with shape
    ``(num_axial_poss, num_views, num_tangential_poss)``.

    Examples
    --------
    >>> from symproj.projdata.info import CylindricalProjDataInfo
    >>> info = CylindricalProjDataInfo(num_rings=3, ring_spacing=4.0,
    ...                                det_radius=50.0, num_views=4,
    ...                                num_tangential_poss=5,
    ...                                tangential_spacing=2.0)
    >>> seg = Segment(info, SegmentIndices(1))
    >>> seg.shape
    (2, 4, 5)
    >>> seg.get_viewgram(3).shape
    (2, 5)
    """

    _indices_type = SegmentIndices

    @staticmethod
    def _check_indices(proj_data_info, indices):
        proj_data_info.check_segment_indices(indices)

    @staticmethod
    def _shape(proj_data_info, indices):
        return proj_data_info.segment_shape(indices.segment_num)

    def _bin_position(self, bin):
        self._check_bin_belongs(bin)
        a_min, _ = self.proj_data_info.valid_axial_range(self.segment_num)
        v_min, _ = self.proj_data_info.valid_view_range(self.segment_num)
        t_min, _ = self.proj_data_info.valid_tangential_range()
        return (bin.axial_pos_num - a_min, bin.view_num - v_min,
                bin.tangential_pos_num - t_min)

    def _view_pos(self, view_num):
        v_min, _ = self.proj_data_info.valid_view_range(self.segment_num)
        return view_num - v_min

    def _axial_pos(self, axial_pos_num):
        a_min, _ = self.proj_data_info.valid_axial_range(self.segment_num)
        return axial_pos_num - a_min

    def get_viewgram(self, view_num):
        """Return a copy of the viewgram with the given view."""
        indices = ViewgramIndices(self.segment_num, view_num,
                                  self.timing_pos_num)
        self.proj_data_info.check_viewgram_indices(indices)
        data = self.asarray()[:, self._view_pos(view_num), :]
        return Viewgram(self.proj_data_info, indices, data.copy(),
                        dtype=self.dtype)

    def set_viewgram(self, viewgram):
        """Overwrite the corresponding view with ``viewgram``."""
        self._check_part(viewgram)
        self.asarray()[:, self._view_pos(viewgram.view_num), :] = (
            viewgram.asarray())

    def get_sinogram(self, axial_pos_num):
        """Return a copy of the sinogram with the given axial position."""
        indices = SinogramIndices(self.segment_num, axial_pos_num,
                                  self.timing_pos_num)
        self.proj_data_info.check_sinogram_indices(indices)
        data = self.asarray()[self._axial_pos(axial_pos_num)]
        return Sinogram(self.proj_data_info, indices, data.copy(),
                        dtype=self.dtype)

    def set_sinogram(self, sinogram, axial_pos_num=None):
        """Overwrite an axial position with ``sinogram``.

        Parameters
        ----------
        sinogram : `Sinogram`
            Values to store.
        axial_pos_num : int, optional
            Axial position to overwrite. Default: the axial position of
            ``sinogram``.
        """
        self._check_part(sinogram)
        if axial_pos_num is None:
            axial_pos_num = sinogram.axial_pos_num
        self.proj_data_info.check_sinogram_indices(SinogramIndices(
            self.segment_num, axial_pos_num, self.timing_pos_num))
        self.asarray()[self._axial_pos(axial_pos_num)] = sinogram.asarray()

    def _check_part(self, part):
        if (part.proj_data_info != self.proj_data_info or
                part.indices.segment_indices != self.indices):
            raise GeometryMismatchError(
                '{!r} is not part of segment {!r}'.format(part, self.indices))


if __name__ == '__main__':
    from symproj.util.testutils import run_doctests
    run_doctests()
