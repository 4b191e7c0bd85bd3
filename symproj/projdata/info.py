# Copyright 2025-2026 The symproj contributors
#
# This file is part of symproj.
#
# This Source Code Form is subject to the terms of the Mozilla Public License,
# v. 2.0. If a copy of the MPL was not distributed with this file, You can
# obtain one at https://mozilla.org/MPL/2.0/.

"""Descriptors of the projection data geometry."""

from abc import ABC, abstractmethod

import numpy as np

from symproj.projdata.indices import (
    Bin, SegmentIndices, SinogramIndices, ViewgramIndices)
from symproj.util.exceptions import OutOfRangeError
from symproj.util.utility import safe_int_conv, signature_string

__all__ = ('ProjDataInfo', 'CylindricalProjDataInfo')


def _check_in(value, rng, name, context):
    if not rng[0] <= value <= rng[1]:
        raise OutOfRangeError('{} {} out of range [{}, {}]{}'
                              ''.format(name, value, rng[0], rng[1], context))


class ProjDataInfo(ABC):

    """Abstract description of the projection data geometry.

    A descriptor is immutable: it answers range queries for all indices of
    the projection data and maps indices to physical coordinates. It is
    shared by all arrays created for it.

    All ranges are inclusive ``(min, max)`` tuples.
    """

    @abstractmethod
    def valid_segment_range(self):
        """Range of segment numbers."""

    @abstractmethod
    def valid_view_range(self, segment_num):
        """Range of view numbers in a segment."""

    @abstractmethod
    def valid_axial_range(self, segment_num):
        """Range of axial positions in a segment."""

    @abstractmethod
    def valid_tangential_range(self):
        """Range of tangential positions."""

    @abstractmethod
    def valid_timing_range(self):
        """Range of timing (time-of-flight) positions."""

    @abstractmethod
    def physical_coordinates(self, bin):
        """Return the end points of the line of response of ``bin``.

        Returns
        -------
        points : `numpy.ndarray`, shape ``(2, 3)``
            The two ``(z, y, x)`` detection points in mm.
        """

    @abstractmethod
    def describe_difference(self, other):
        """Return a string explaining how ``other`` differs from ``self``.

        The string is empty if both descriptors are equal.
        """

    # --- Derived queries --- #

    def check_segment_indices(self, indices):
        """Raise `OutOfRangeError` if ``indices`` are not valid."""
        _check_in(indices.segment_num, self.valid_segment_range(),
                  'segment_num', '')
        _check_in(indices.timing_pos_num, self.valid_timing_range(),
                  'timing_pos_num', '')

    def check_viewgram_indices(self, indices):
        """Raise `OutOfRangeError` if ``indices`` are not valid."""
        self.check_segment_indices(indices)
        _check_in(indices.view_num,
                  self.valid_view_range(indices.segment_num),
                  'view_num', ' for segment {}'.format(indices.segment_num))

    def check_sinogram_indices(self, indices):
        """Raise `OutOfRangeError` if ``indices`` are not valid."""
        self.check_segment_indices(indices)
        _check_in(indices.axial_pos_num,
                  self.valid_axial_range(indices.segment_num),
                  'axial_pos_num',
                  ' for segment {}'.format(indices.segment_num))

    def check_bin(self, bin):
        """Raise `OutOfRangeError` if ``bin`` is not a valid sample."""
        self.check_viewgram_indices(bin.viewgram_indices)
        _check_in(bin.axial_pos_num,
                  self.valid_axial_range(bin.segment_num),
                  'axial_pos_num', ' for segment {}'.format(bin.segment_num))
        _check_in(bin.tangential_pos_num, self.valid_tangential_range(),
                  'tangential_pos_num', '')

    def contains_bin(self, bin):
        """Return ``True`` if ``bin`` lies within the valid ranges."""
        try:
            self.check_bin(bin)
        except OutOfRangeError:
            return False
        return True

    def segment_indices(self):
        """Return a list of all valid `SegmentIndices`, in canonical order."""
        seg_min, seg_max = self.valid_segment_range()
        t_min, t_max = self.valid_timing_range()
        return [SegmentIndices(seg, t)
                for seg in range(seg_min, seg_max + 1)
                for t in range(t_min, t_max + 1)]

    def viewgram_indices(self):
        """Return a list of all valid `ViewgramIndices`."""
        result = []
        for seg_ind in self.segment_indices():
            v_min, v_max = self.valid_view_range(seg_ind.segment_num)
            result.extend(ViewgramIndices(seg_ind.segment_num, v,
                                          seg_ind.timing_pos_num)
                          for v in range(v_min, v_max + 1))
        return result

    def sinogram_indices(self):
        """Return a list of all valid `SinogramIndices`."""
        result = []
        for seg_ind in self.segment_indices():
            a_min, a_max = self.valid_axial_range(seg_ind.segment_num)
            result.extend(SinogramIndices(seg_ind.segment_num, a,
                                          seg_ind.timing_pos_num)
                          for a in range(a_min, a_max + 1))
        return result

    def bins(self):
        """Iterate over all valid bins in canonical order.

        The canonical order is segment, timing position, axial position,
        view and tangential position, the last one varying fastest. It is
        the order of `ProjDataInMemory.asarray`.
        """
        t_min, t_max = self.valid_tangential_range()
        for seg_ind in self.segment_indices():
            seg = seg_ind.segment_num
            a_min, a_max = self.valid_axial_range(seg)
            v_min, v_max = self.valid_view_range(seg)
            for a in range(a_min, a_max + 1):
                for v in range(v_min, v_max + 1):
                    for t in range(t_min, t_max + 1):
                        yield Bin(seg, v, a, t, seg_ind.timing_pos_num)

    def segment_shape(self, segment_num):
        """Shape ``(axial, view, tangential)`` of a segment."""
        a_min, a_max = self.valid_axial_range(segment_num)
        v_min, v_max = self.valid_view_range(segment_num)
        t_min, t_max = self.valid_tangential_range()
        return (a_max - a_min + 1, v_max - v_min + 1, t_max - t_min + 1)

    def viewgram_shape(self, segment_num):
        """Shape ``(axial, tangential)`` of a viewgram."""
        num_axial, _, num_tang = self.segment_shape(segment_num)
        return (num_axial, num_tang)

    def sinogram_shape(self, segment_num):
        """Shape ``(view, tangential)`` of a sinogram."""
        _, num_views, num_tang = self.segment_shape(segment_num)
        return (num_views, num_tang)

    @property
    def num_bins(self):
        """Total number of bins."""
        return sum(int(np.prod(self.segment_shape(ind.segment_num)))
                   for ind in self.segment_indices())

    def element(self, data=None):
        """Return a `ProjDataInMemory` for this descriptor.

        Parameters
        ----------
        data : array-like, optional
            Flat values in canonical bin order, see `bins`. Default: zeros.
        """
        from symproj.projdata.proj_data import ProjDataInMemory
        if data is None:
            return ProjDataInMemory(self)
        return ProjDataInMemory.from_array(self, data)

    def __contains__(self, other):
        """Return ``other in self``."""
        from symproj.projdata.proj_data import ProjDataInMemory
        return (isinstance(other, ProjDataInMemory) and
                other.proj_data_info == self)

    def __eq__(self, other):
        if other is self:
            return True
        return (isinstance(other, ProjDataInfo) and
                not self.describe_difference(other))

    def __ne__(self, other):
        return not self.__eq__(other)

    def __hash__(self):
        return hash(type(self))


class CylindricalProjDataInfo(ProjDataInfo):

    """Arc-corrected span-1 data of a cylindrical PET scanner.

    Index conventions:

    - View ``v`` has azimuthal angle ``phi = v * pi / num_views``.
    - Tangential position ``t`` has signed distance
      ``s = t * tangential_spacing`` from the scanner axis, ranging over
      ``-(n // 2), ..., -(n // 2) + n - 1``.
    - The segment number is the ring difference ``r2 - r1`` and the axial
      position is ``min(r1, r2)``.
    - The line of response runs from detector 1 (ring ``r1``) to
      detector 2 (ring ``r2``). Timing position ``k`` is centred
      ``k * timing_spacing`` from the midpoint towards detector 2.

    Examples
    --------
    >>> info = CylindricalProjDataInfo(num_rings=4, ring_spacing=4.0,
    ...                                det_radius=50.0, num_views=8,
    ...                                num_tangential_poss=9,
    ...                                tangential_spacing=2.0)
    >>> info.valid_segment_range()
    (-3, 3)
    >>> info.valid_axial_range(-2)
    (0, 1)
    >>> info.ring_pair(Bin(-2, 0, 1, 0))
    (3, 1)
    """

    def __init__(self, num_rings, ring_spacing, det_radius, num_views,
                 num_tangential_poss, tangential_spacing, max_segment_num=None,
                 num_timing_poss=1, timing_spacing=None, timing_fwhm=None):
        """Initialize a new instance.

        Parameters
        ----------
        num_rings : positive int
            Number of detector rings.
        ring_spacing : positive float
            Axial distance between neighbouring rings in mm.
        det_radius : positive float
            Radius of the detector cylinder in mm.
        num_views : positive int
            Number of azimuthal angles, covering ``[0, pi)``.
        num_tangential_poss : positive int
            Number of tangential positions.
        tangential_spacing : positive float
            Distance between tangential positions in mm.
        max_segment_num : nonnegative int, optional
            Largest ring difference kept. Default: ``num_rings - 1``.
        num_timing_poss : positive odd int, optional
            Number of time-of-flight positions. ``1`` means non-TOF data.
        timing_spacing : positive float, optional
            Width of a timing position along the line of response in mm.
            Required for TOF data.
        timing_fwhm : positive float, optional
            FWHM of the TOF kernel along the line of response in mm.
            Required for TOF data.
        """
        self.__num_rings = safe_int_conv(num_rings, 'num_rings')
        self.__num_views = safe_int_conv(num_views, 'num_views')
        self.__num_tangential_poss = safe_int_conv(num_tangential_poss,
                                                   'num_tangential_poss')
        self.__num_timing_poss = safe_int_conv(num_timing_poss,
                                               'num_timing_poss')
        self.__ring_spacing = float(ring_spacing)
        self.__det_radius = float(det_radius)
        self.__tangential_spacing = float(tangential_spacing)

        for name in ('num_rings', 'num_views', 'num_tangential_poss',
                     'num_timing_poss', 'ring_spacing', 'det_radius',
                     'tangential_spacing'):
            value = getattr(self, name)
            if value <= 0:
                raise ValueError('`{}` must be positive, got {}'
                                 ''.format(name, value))

        if max_segment_num is None:
            max_segment_num = self.num_rings - 1
        self.__max_segment_num = safe_int_conv(max_segment_num,
                                               'max_segment_num')
        if not 0 <= self.max_segment_num < self.num_rings:
            raise ValueError('`max_segment_num` must be in [0, {}], got {}'
                             ''.format(self.num_rings - 1, max_segment_num))

        t_min, t_max = self.valid_tangential_range()
        max_s = max(-t_min, t_max) * self.tangential_spacing
        if max_s >= self.det_radius:
            raise ValueError('tangential range extends to {} mm, outside '
                             'the detector radius {}'
                             ''.format(max_s, self.det_radius))

        if self.num_timing_poss % 2 != 1:
            raise ValueError('`num_timing_poss` must be odd, got {}'
                             ''.format(self.num_timing_poss))
        if self.num_timing_poss > 1:
            if timing_spacing is None or timing_fwhm is None:
                raise ValueError('TOF data requires `timing_spacing` and '
                                 '`timing_fwhm`')
            timing_spacing = float(timing_spacing)
            timing_fwhm = float(timing_fwhm)
            if timing_spacing <= 0 or timing_fwhm <= 0:
                raise ValueError('`timing_spacing` and `timing_fwhm` must be '
                                 'positive, got {} and {}'
                                 ''.format(timing_spacing, timing_fwhm))
        else:
            timing_spacing = timing_fwhm = None
        self.__timing_spacing = timing_spacing
        self.__timing_fwhm = timing_fwhm

    # --- Parameters --- #

    @property
    def num_rings(self):
        return self.__num_rings

    @property
    def ring_spacing(self):
        return self.__ring_spacing

    @property
    def det_radius(self):
        return self.__det_radius

    @property
    def num_views(self):
        return self.__num_views

    @property
    def num_tangential_poss(self):
        return self.__num_tangential_poss

    @property
    def tangential_spacing(self):
        return self.__tangential_spacing

    @property
    def max_segment_num(self):
        return self.__max_segment_num

    @property
    def num_timing_poss(self):
        return self.__num_timing_poss

    @property
    def timing_spacing(self):
        return self.__timing_spacing

    @property
    def timing_fwhm(self):
        return self.__timing_fwhm

    @property
    def is_tof(self):
        """``True`` if the data has more than one timing position."""
        return self.num_timing_poss > 1

    # --- Ranges --- #

    def valid_segment_range(self):
        return (-self.max_segment_num, self.max_segment_num)

    def valid_view_range(self, segment_num):
        _check_in(segment_num, self.valid_segment_range(), 'segment_num', '')
        return (0, self.num_views - 1)

    def valid_axial_range(self, segment_num):
        _check_in(segment_num, self.valid_segment_range(), 'segment_num', '')
        return (0, self.num_rings - 1 - abs(segment_num))

    def valid_tangential_range(self):
        t_min = -(self.num_tangential_poss // 2)
        return (t_min, t_min + self.num_tangential_poss - 1)

    def valid_timing_range(self):
        half = self.num_timing_poss // 2
        return (-half, half)

    # --- Geometry --- #

    def phi(self, bin):
        """Azimuthal angle of the view of ``bin`` in radians."""
        return np.pi * bin.view_num / self.num_views

    def s(self, bin):
        """Signed distance of the line of response from the axis in mm."""
        return bin.tangential_pos_num * self.tangential_spacing

    def ring_pair(self, bin):
        """Return the rings ``(r1, r2)`` of detector 1 and 2 of ``bin``."""
        seg, ax = bin.segment_num, bin.axial_pos_num
        return (ax + max(0, -seg), ax + max(0, seg))

    def ring_z(self, ring):
        """Axial position of the centre of ``ring`` in mm."""
        return (ring - (self.num_rings - 1) / 2.0) * self.ring_spacing

    def timing_center(self, bin):
        """Centre of the timing position of ``bin`` along the LOR in mm.

        Measured from the midpoint of the line of response towards
        detector 2.
        """
        if not self.is_tof:
            return 0.0
        return bin.timing_pos_num * self.timing_spacing

    def lor(self, bin):
        """Return the end points of the line of response of ``bin``.

        Returns
        -------
        p1, p2 : `numpy.ndarray`, shape ``(3,)``
            ``(z, y, x)`` positions of detector 1 and detector 2.
        """
        phi = self.phi(bin)
        s = self.s(bin)
        half_length = np.sqrt(self.det_radius ** 2 - s ** 2)
        cos_phi, sin_phi = np.cos(phi), np.sin(phi)
        # In-plane normal n = (cos, sin) and direction d = (-sin, cos),
        # both given here as (y, x)
        mid_y, mid_x = s * sin_phi, s * cos_phi
        dir_y, dir_x = cos_phi, -sin_phi
        r1, r2 = self.ring_pair(bin)
        p1 = np.array([self.ring_z(r1),
                       mid_y - half_length * dir_y,
                       mid_x - half_length * dir_x])
        p2 = np.array([self.ring_z(r2),
                       mid_y + half_length * dir_y,
                       mid_x + half_length * dir_x])
        return p1, p2

    def physical_coordinates(self, bin):
        self.check_bin(bin)
        return np.array(self.lor(bin))

    def describe_difference(self, other):
        if not isinstance(other, CylindricalProjDataInfo):
            return 'not a CylindricalProjDataInfo: {!r}'.format(other)
        parts = []
        for name in ('num_rings', 'num_views', 'num_tangential_poss',
                     'max_segment_num', 'num_timing_poss'):
            mine, theirs = getattr(self, name), getattr(other, name)
            if mine != theirs:
                parts.append('{} {} != {}'.format(name, mine, theirs))
        for name in ('ring_spacing', 'det_radius', 'tangential_spacing',
                     'timing_spacing', 'timing_fwhm'):
            mine, theirs = getattr(self, name), getattr(other, name)
            if mine is None or theirs is None:
                same = mine is theirs
            else:
                same = np.isclose(mine, theirs, rtol=1e-9, atol=0)
            if not same:
                parts.append('{} {} != {}'.format(name, mine, theirs))
        return '; '.join(parts)

    def __hash__(self):
        return hash((type(self), self.num_rings, self.num_views,
                     self.num_tangential_poss, self.max_segment_num,
                     self.num_timing_poss))

    def __repr__(self):
        posargs = []
        optargs = [('num_rings', self.num_rings, None),
                   ('ring_spacing', self.ring_spacing, None),
                   ('det_radius', self.det_radius, None),
                   ('num_views', self.num_views, None),
                   ('num_tangential_poss', self.num_tangential_poss, None),
                   ('tangential_spacing', self.tangential_spacing, None),
                   ('max_segment_num', self.max_segment_num,
                    self.num_rings - 1),
                   ('num_timing_poss', self.num_timing_poss, 1),
                   ('timing_spacing', self.timing_spacing, None),
                   ('timing_fwhm', self.timing_fwhm, None)]
        return '{}({})'.format(self.__class__.__name__,
                               signature_string(posargs, optargs))


if __name__ == '__main__':
    from symproj.util.testutils import run_doctests
    run_doctests()
