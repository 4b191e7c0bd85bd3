# Copyright 2025-2026 The symproj contributors
#
# This file is part of symproj.
#
# This Source Code Form is subject to the terms of the Mozilla Public License,
# v. 2.0. If a copy of the MPL was not distributed with this file, You can
# obtain one at https://mozilla.org/MPL/2.0/.

"""Abstract symmetry engine for projection data and images.

A symmetry engine holds a finite group of `SymmetryOperation`'s under
which the projection matrix is invariant. The orbits of this group
partition the valid bins; each orbit has a distinguished *basic* member
for which the projection matrix row is computed, all other rows follow by
applying the operation mapping the basic bin onto them.
"""

from abc import ABC, abstractmethod

import numpy as np

from symproj.projdata.indices import Bin, ViewgramIndices
from symproj.projdata.info import ProjDataInfo
from symproj.symmetries.related import Densel, RelatedDensels
from symproj.util.exceptions import OutOfRangeError
from symproj.util.utility import normalized_range

__all__ = ('DataSymmetriesForBins',)


def _signed_key(n):
    return (n < 0, abs(n))


def basic_bin_order_key(key):
    """Sort key selecting the basic member of an orbit of bin keys.

    Prefers non-negative segments, then small views, non-negative timing
    positions, small axial positions and non-negative tangential positions.
    """
    seg, view, ax, tang, timing = key
    return (_signed_key(seg) + (view,) + _signed_key(timing) + (ax,) +
            _signed_key(tang))


def basic_viewgram_order_key(indices):
    """Sort key selecting the basic member of an orbit of viewgrams."""
    return (_signed_key(indices.segment_num) + (indices.view_num,) +
            _signed_key(indices.timing_pos_num))


class DataSymmetriesForBins(ABC):

    """Abstract finite symmetry group acting on bins and voxels.

    Subclasses provide `operations`, the group elements with the identity
    first. Everything else is derived from them: orbits, basic elements
    and the operations relating orbit members. All derived queries are
    pure functions of their arguments and are memoized.
    """

    def __init__(self, proj_data_info, image_geometry=None):
        """Initialize a new instance.

        Parameters
        ----------
        proj_data_info : `ProjDataInfo`
            Geometry of the projection data.
        image_geometry : `ImageGeometry`, optional
            Geometry of the image. Required for queries about voxels.
        """
        if not isinstance(proj_data_info, ProjDataInfo):
            raise TypeError('`proj_data_info` must be a `ProjDataInfo`, '
                            'got {!r}'.format(proj_data_info))
        self.__proj_data_info = proj_data_info
        self.__image_geometry = image_geometry
        self.__basic_bin_cache = {}
        self.__related_bins_cache = {}
        self.__basic_vg_cache = {}
        self.__related_vg_cache = {}

    @property
    def proj_data_info(self):
        return self.__proj_data_info

    @property
    def image_geometry(self):
        return self.__image_geometry

    @property
    @abstractmethod
    def operations(self):
        """Tuple of all group elements, identity first."""

    @property
    def group_order(self):
        """Number of elements of the symmetry group."""
        return len(self.operations)

    @property
    def enabled_symmetries(self):
        """Mapping from symmetry name to whether it is in use."""
        return {}

    def is_compatible_with(self, proj_data_info, image_geometry=None):
        """Return ``True`` if the symmetries hold for the given geometries.

        Parameters
        ----------
        proj_data_info : `ProjDataInfo`
            Geometry of the projection data.
        image_geometry : `ImageGeometry`, optional
            Geometry of the image. Only compared if both this engine and
            the caller provide one.
        """
        if proj_data_info != self.proj_data_info:
            return False
        if image_geometry is None or self.image_geometry is None:
            return True
        return image_geometry == self.image_geometry

    # --- Bins --- #

    def _orbit(self, bin):
        """Return ``[(bin_key, op), ...]`` of the valid images of ``bin``.

        Each image appears once, with the first operation producing it.
        """
        info = self.proj_data_info
        seen = set()
        orbit = []
        for op in self.operations:
            image = op.transform_bin(bin)
            key = image.key
            if key in seen or not info.contains_bin(image):
                continue
            seen.add(key)
            orbit.append((key, op))
        return orbit

    def _basic_of(self, bin):
        """Return ``(basic_key, op)`` with ``op`` mapping basic onto bin."""
        key = bin.key
        try:
            return self.__basic_bin_cache[key]
        except KeyError:
            pass

        self.proj_data_info.check_bin(bin)
        basic_key, op = min(self._orbit(Bin.from_key(key)),
                            key=lambda item: basic_bin_order_key(item[0]))
        result = (basic_key, op.inverse())
        self.__basic_bin_cache[key] = result
        return result

    def find_basic_bin(self, bin):
        """Return the basic bin of the orbit of ``bin``.

        Parameters
        ----------
        bin : `Bin`
            Any valid bin.

        Returns
        -------
        basic_bin : `Bin`
            Basic member of the orbit, with value ``0``.
        op : `SymmetryOperation`
            Operation mapping ``basic_bin`` onto ``bin``.

        Raises
        ------
        OutOfRangeError
            If ``bin`` is not a valid bin.
        """
        basic_key, op = self._basic_of(bin)
        return Bin.from_key(basic_key), op

    def is_basic(self, bin):
        """Return ``True`` if ``bin`` is the basic member of its orbit."""
        return self._basic_of(bin)[0] == bin.key

    def _related_of_basic(self, basic_key):
        try:
            return self.__related_bins_cache[basic_key]
        except KeyError:
            pass
        related = self._orbit(Bin.from_key(basic_key))
        self.__related_bins_cache[basic_key] = related
        return related

    def get_related_bins(self, bin, min_axial_pos_num=None,
                         max_axial_pos_num=None, min_tangential_pos_num=None,
                         max_tangential_pos_num=None):
        """Return the members of the orbit of ``bin``.

        Parameters
        ----------
        bin : `Bin`
            Any valid bin.
        min_axial_pos_num, max_axial_pos_num : int, optional
            Keep only members with axial positions in this range.
        min_tangential_pos_num, max_tangential_pos_num : int, optional
            Keep only members with tangential positions in this range.

        Returns
        -------
        related : list of ``(Bin, SymmetryOperation)``
            Orbit members with the operations mapping the basic bin onto
            them. Without range restrictions, the first entry is the basic
            bin with the identity. Each member appears once.
        """
        basic_key, _ = self._basic_of(bin)
        related = self._related_of_basic(basic_key)

        restricted = (min_axial_pos_num, max_axial_pos_num,
                      min_tangential_pos_num, max_tangential_pos_num)
        if all(lim is None for lim in restricted):
            return [(Bin.from_key(key), op) for key, op in related]

        t_min, t_max = normalized_range(
            (min_tangential_pos_num, max_tangential_pos_num),
            self.proj_data_info.valid_tangential_range(), 'tangential_pos_num')
        result = []
        for key, op in related:
            seg, _, ax, tang, _ = key
            a_min, a_max = normalized_range(
                (min_axial_pos_num, max_axial_pos_num),
                self.proj_data_info.valid_axial_range(seg), 'axial_pos_num')
            if a_min <= ax <= a_max and t_min <= tang <= t_max:
                result.append((Bin.from_key(key), op))
        return result

    def num_related_bins(self, bin):
        """Return the size of the orbit of ``bin``."""
        basic_key, _ = self._basic_of(bin)
        return len(self._related_of_basic(basic_key))

    # --- Viewgrams --- #

    def _viewgram_orbit(self, indices):
        info = self.proj_data_info
        seen = set()
        orbit = []
        for op in self.operations:
            image = op.transform_viewgram_indices(indices)
            if image in seen:
                continue
            try:
                info.check_viewgram_indices(image)
            except OutOfRangeError:
                continue
            seen.add(image)
            orbit.append((image, op))
        return orbit

    def _basic_viewgram_of(self, indices):
        if not isinstance(indices, ViewgramIndices):
            indices = ViewgramIndices(*indices)
        try:
            return self.__basic_vg_cache[indices]
        except KeyError:
            pass

        self.proj_data_info.check_viewgram_indices(indices)
        basic, op = min(self._viewgram_orbit(indices),
                        key=lambda item: basic_viewgram_order_key(item[0]))
        result = (basic, op.inverse())
        self.__basic_vg_cache[indices] = result
        return result

    def find_basic_viewgram_indices(self, indices):
        """Return the basic viewgram of the orbit of ``indices``.

        Returns
        -------
        basic : `ViewgramIndices`
        op : `SymmetryOperation`
            Operation mapping ``basic`` onto ``indices``.
        """
        return self._basic_viewgram_of(indices)

    def is_basic_viewgram_indices(self, indices):
        """Return ``True`` if ``indices`` is basic in its orbit."""
        return self._basic_viewgram_of(indices)[0] == indices

    def get_related_viewgram_indices(self, indices):
        """Return the orbit of ``indices``, basic viewgram first."""
        basic, _ = self._basic_viewgram_of(indices)
        try:
            return list(self.__related_vg_cache[basic])
        except KeyError:
            pass
        related = [image for image, _ in self._viewgram_orbit(basic)]
        self.__related_vg_cache[basic] = related
        return list(related)

    def basic_viewgram_indices(self):
        """Return the basic viewgrams of the whole projection data.

        Their orbits partition all viewgrams of `proj_data_info`.
        """
        return [ind for ind in self.proj_data_info.viewgram_indices()
                if self.is_basic_viewgram_indices(ind)]

    # --- Voxels --- #

    def _check_voxel(self, densel):
        if self.image_geometry is None:
            raise ValueError('symmetries on voxels require an image geometry')
        self.image_geometry.check_index(tuple(densel))

    def _densel_orbit(self, densel):
        self._check_voxel(densel)
        coords = np.array([tuple(densel)], dtype=int)
        seen = set()
        orbit = []
        for op in self.operations:
            image = tuple(int(c) for c in op.transform_voxel_indices(coords)[0])
            if image in seen or not self.image_geometry.in_range(image)[0]:
                continue
            seen.add(image)
            orbit.append((Densel(*image), op))
        return orbit

    def find_basic_densel(self, densel):
        """Return the basic voxel of the orbit of ``densel``.

        Returns
        -------
        basic : `Densel`
            Lexicographically smallest ``(z, y, x)`` in the orbit.
        op : `SymmetryOperation`
            Operation mapping ``basic`` onto ``densel``.
        """
        basic, op = min(self._densel_orbit(densel), key=lambda item: item[0])
        return basic, op.inverse()

    def get_related_densels(self, densel):
        """Return the orbit of ``densel`` as `RelatedDensels`."""
        basic, _ = self.find_basic_densel(densel)
        return RelatedDensels([d for d, _ in self._densel_orbit(basic)], self)

    def __repr__(self):
        return '{}({!r})'.format(self.__class__.__name__, self.proj_data_info)


if __name__ == '__main__':
    from symproj.util.testutils import run_doctests
    run_doctests()
