# Copyright 2025-2026 The symproj contributors
#
# This file is part of symproj.
#
# This Source Code Form is subject to the terms of the Mozilla Public License,
# v. 2.0. If a copy of the MPL was not distributed with this file, You can
# obtain one at https://mozilla.org/MPL/2.0/.

"""Index types identifying projection samples and 2D/3D slices."""

from collections import namedtuple

from symproj.util.utility import safe_int_conv, signature_string

__all__ = ('SegmentIndices', 'ViewgramIndices', 'SinogramIndices', 'Bin',
           'REJECTED_BIN_VALUE', 'is_rejected_value')


# Value stored in a bin to flag it as rejected, see `Bin.reject`
REJECTED_BIN_VALUE = -1.0


def is_rejected_value(value):
    """Return ``True`` if ``value`` is the rejection sentinel.

    Examples
    --------
    >>> is_rejected_value(-1)
    True
    >>> is_rejected_value(-0.5)
    False
    """
    return value == REJECTED_BIN_VALUE


class SegmentIndices(namedtuple('SegmentIndices',
                                ['segment_num', 'timing_pos_num'])):

    """Indices fixing a segment, i.e. a 3D part of the projection data.

    Examples
    --------
    >>> SegmentIndices(1)
    SegmentIndices(segment_num=1, timing_pos_num=0)
    >>> SegmentIndices(1) == SegmentIndices(1, 0)
    True
    """

    __slots__ = ()

    def __new__(cls, segment_num, timing_pos_num=0):
        return super(SegmentIndices, cls).__new__(
            cls, safe_int_conv(segment_num, 'segment_num'),
            safe_int_conv(timing_pos_num, 'timing_pos_num'))

    @property
    def segment_indices(self):
        return self


class ViewgramIndices(namedtuple('ViewgramIndices',
                                 ['segment_num', 'view_num',
                                  'timing_pos_num'])):

    """Indices fixing a viewgram (axial x tangential positions).

    Examples
    --------
    >>> vg = ViewgramIndices(-1, 3)
    >>> vg.segment_indices
    SegmentIndices(segment_num=-1, timing_pos_num=0)
    """

    __slots__ = ()

    def __new__(cls, segment_num, view_num, timing_pos_num=0):
        return super(ViewgramIndices, cls).__new__(
            cls, safe_int_conv(segment_num, 'segment_num'),
            safe_int_conv(view_num, 'view_num'),
            safe_int_conv(timing_pos_num, 'timing_pos_num'))

    @property
    def segment_indices(self):
        """The `SegmentIndices` this viewgram belongs to."""
        return SegmentIndices(self.segment_num, self.timing_pos_num)


class SinogramIndices(namedtuple('SinogramIndices',
                                 ['segment_num', 'axial_pos_num',
                                  'timing_pos_num'])):

    """Indices fixing a sinogram (view x tangential positions)."""

    __slots__ = ()

    def __new__(cls, segment_num, axial_pos_num, timing_pos_num=0):
        return super(SinogramIndices, cls).__new__(
            cls, safe_int_conv(segment_num, 'segment_num'),
            safe_int_conv(axial_pos_num, 'axial_pos_num'),
            safe_int_conv(timing_pos_num, 'timing_pos_num'))

    @property
    def segment_indices(self):
        """The `SegmentIndices` this sinogram belongs to."""
        return SegmentIndices(self.segment_num, self.timing_pos_num)


class Bin(object):

    """A single projection sample and its value.

    The index fields are fixed at construction, while `value` is a free
    accumulator. The special value `REJECTED_BIN_VALUE` marks a sample as
    rejected; code scattering or gathering bin values must skip such bins.

    Examples
    --------
    >>> b = Bin(1, 2, 3, -4, value=2.5)
    >>> b.key
    (1, 2, 3, -4, 0)
    >>> b *= 2
    >>> b.value
    5.0
    >>> b.reject()
    >>> b.is_rejected
    True
    """

    __slots__ = ('__segment_num', '__view_num', '__axial_pos_num',
                 '__tangential_pos_num', '__timing_pos_num', 'value',
                 'time_frame_num')

    def __init__(self, segment_num, view_num, axial_pos_num,
                 tangential_pos_num, timing_pos_num=0, value=0.0,
                 time_frame_num=1):
        """Initialize a new instance.

        Parameters
        ----------
        segment_num, view_num, axial_pos_num, tangential_pos_num : int
            Position of the sample in the projection data.
        timing_pos_num : int, optional
            Time-of-flight position, ``0`` for non-TOF data.
        value : float, optional
            Value of the sample.
        time_frame_num : int, optional
            Time frame the sample belongs to.
        """
        self.__segment_num = safe_int_conv(segment_num, 'segment_num')
        self.__view_num = safe_int_conv(view_num, 'view_num')
        self.__axial_pos_num = safe_int_conv(axial_pos_num, 'axial_pos_num')
        self.__tangential_pos_num = safe_int_conv(tangential_pos_num,
                                                  'tangential_pos_num')
        self.__timing_pos_num = safe_int_conv(timing_pos_num,
                                              'timing_pos_num')
        self.value = float(value)
        self.time_frame_num = safe_int_conv(time_frame_num, 'time_frame_num')

    @classmethod
    def from_key(cls, key, value=0.0):
        """Create a bin from an index tuple as returned by `key`."""
        return cls(*key, value=value)

    @property
    def segment_num(self):
        return self.__segment_num

    @property
    def view_num(self):
        return self.__view_num

    @property
    def axial_pos_num(self):
        return self.__axial_pos_num

    @property
    def tangential_pos_num(self):
        return self.__tangential_pos_num

    @property
    def timing_pos_num(self):
        return self.__timing_pos_num

    @property
    def key(self):
        """Index tuple ``(segment, view, axial, tangential, timing)``.

        The key identifies the sample independently of its value and time
        frame and is used for hashing, caching and ordering.
        """
        return (self.__segment_num, self.__view_num, self.__axial_pos_num,
                self.__tangential_pos_num, self.__timing_pos_num)

    @property
    def segment_indices(self):
        return SegmentIndices(self.segment_num, self.timing_pos_num)

    @property
    def viewgram_indices(self):
        return ViewgramIndices(self.segment_num, self.view_num,
                               self.timing_pos_num)

    @property
    def sinogram_indices(self):
        return SinogramIndices(self.segment_num, self.axial_pos_num,
                               self.timing_pos_num)

    @property
    def is_rejected(self):
        """``True`` if this bin carries the rejection sentinel."""
        return is_rejected_value(self.value)

    def reject(self):
        """Flag this bin as rejected."""
        self.value = REJECTED_BIN_VALUE

    def get_empty_copy(self):
        """Return a copy with the same indices and value ``0``."""
        return Bin(*self.key, value=0.0)

    def copy(self):
        return Bin(*self.key, value=self.value,
                   time_frame_num=self.time_frame_num)

    def __iadd__(self, other):
        self.value += float(other)
        return self

    def __imul__(self, other):
        self.value *= float(other)
        return self

    def __itruediv__(self, other):
        other = float(other)
        if other == 0.0:
            self.value = 0.0
        else:
            self.value /= other
        return self

    def __eq__(self, other):
        return (isinstance(other, Bin) and
                self.key == other.key and
                self.time_frame_num == other.time_frame_num and
                self.value == other.value)

    def __ne__(self, other):
        return not self.__eq__(other)

    def __hash__(self):
        return hash(self.key)

    def __repr__(self):
        posargs = list(self.key[:4])
        optargs = [('timing_pos_num', self.timing_pos_num, 0),
                   ('value', self.value, 0.0),
                   ('time_frame_num', self.time_frame_num, 1)]
        return '{}({})'.format(self.__class__.__name__,
                               signature_string(posargs, optargs))


if __name__ == '__main__':
    from symproj.util.testutils import run_doctests
    run_doctests()
