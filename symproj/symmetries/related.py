# Copyright 2025-2026 The symproj contributors
#
# This file is part of symproj.
#
# This Source Code Form is subject to the terms of the Mozilla Public License,
# v. 2.0. If a copy of the MPL was not distributed with this file, You can
# obtain one at https://mozilla.org/MPL/2.0/.

"""Groups of projection data slices and voxels related by symmetry."""

from collections import namedtuple

from symproj.projdata.arrays import Viewgram
from symproj.util.exceptions import GeometryMismatchError

__all__ = ('RelatedViewgrams', 'Densel', 'RelatedDensels')


class RelatedViewgrams(object):

    """Viewgrams forming one orbit of a symmetry group.

    This is the unit of work of the projectors: the rows needed for all
    bins of all viewgrams in the group follow from the rows of the basic
    bins of the first viewgram's orbit.
    """

    def __init__(self, viewgrams, symmetries):
        """Initialize a new instance.

        Parameters
        ----------
        viewgrams : sequence of `Viewgram`
            The related viewgrams, basic viewgram first.
        symmetries : `DataSymmetriesForBins`
            Symmetries relating the viewgrams.

        Raises
        ------
        ValueError
            If ``viewgrams`` is empty, does not start with the basic
            viewgram, contains viewgrams of different orbits or contains
            the same viewgram twice.
        """
        viewgrams = list(viewgrams)
        if not viewgrams:
            raise ValueError('`viewgrams` cannot be empty')
        for vg in viewgrams:
            if not isinstance(vg, Viewgram):
                raise TypeError('`viewgrams` must contain `Viewgram`s, got '
                                '{!r}'.format(vg))
            if vg.proj_data_info != viewgrams[0].proj_data_info:
                raise GeometryMismatchError(
                    'viewgrams have different projection data descriptors')

        basic = viewgrams[0].indices
        if not symmetries.is_basic_viewgram_indices(basic):
            raise ValueError('first viewgram {} is not basic'.format(basic))

        seen = set()
        operations = []
        for vg in viewgrams:
            if vg.indices in seen:
                raise ValueError('viewgram {} occurs twice'
                                 ''.format(vg.indices))
            seen.add(vg.indices)
            other_basic, op = symmetries.find_basic_viewgram_indices(
                vg.indices)
            if other_basic != basic:
                raise ValueError('viewgram {} is not related to {}'
                                 ''.format(vg.indices, basic))
            operations.append(op)

        self.__viewgrams = viewgrams
        self.__operations = operations
        self.__symmetries = symmetries

    @property
    def symmetries(self):
        return self.__symmetries

    @property
    def proj_data_info(self):
        return self.__viewgrams[0].proj_data_info

    def get_basic_viewgram_indices(self):
        return self.__viewgrams[0].indices

    def viewgram_indices(self):
        """Return the indices of all viewgrams, in order."""
        return [vg.indices for vg in self.__viewgrams]

    def find(self, indices):
        """Return the viewgram with the given indices.

        Raises
        ------
        KeyError
            If no viewgram of this group has these indices.
        """
        for vg in self.__viewgrams:
            if vg.indices == indices:
                return vg
        raise KeyError('{} not in {!r}'.format(indices, self))

    def __contains__(self, indices):
        return any(vg.indices == indices for vg in self.__viewgrams)

    def get_bin_value(self, bin):
        return self.find(bin.viewgram_indices).get_bin_value(bin)

    def __iter__(self):
        return iter(self.__viewgrams)

    def __len__(self):
        return len(self.__viewgrams)

    def __getitem__(self, index):
        return self.__viewgrams[index]

    def get_symmetry_operation(self, index):
        """Return the operation mapping the basic viewgram onto entry
        ``index``."""
        return self.__operations[index]

    def items(self):
        """Return ``(viewgram, operation)`` pairs, basic viewgram first."""
        return list(zip(self.__viewgrams, self.__operations))

    def get_empty_copy(self):
        """Return a group with the same viewgram indices and zero values."""
        return RelatedViewgrams([vg.get_empty_copy()
                                 for vg in self.__viewgrams],
                                self.symmetries)

    def copy(self):
        return RelatedViewgrams([vg.copy() for vg in self.__viewgrams],
                                self.symmetries)

    def characteristics_mismatch(self, other):
        """Return a string explaining why ``other`` is incompatible."""
        if not isinstance(other, RelatedViewgrams):
            return 'expected RelatedViewgrams, got {!r}'.format(other)
        if len(other) != len(self):
            return 'number of viewgrams {} != {}'.format(len(self),
                                                        len(other))
        for mine, theirs in zip(self, other):
            reason = mine.characteristics_mismatch(theirs)
            if reason:
                return reason
        return ''

    def has_same_characteristics(self, other):
        return not self.characteristics_mismatch(other)

    def __iadd__(self, other):
        reason = self.characteristics_mismatch(other)
        if reason:
            raise GeometryMismatchError(reason)
        for mine, theirs in zip(self, other):
            mine += theirs
        return self

    def __eq__(self, other):
        return (self.has_same_characteristics(other) and
                all(mine == theirs for mine, theirs in zip(self, other)))

    def __ne__(self, other):
        return not self.__eq__(other)

    __hash__ = None

    def __repr__(self):
        return '{}({})'.format(self.__class__.__name__,
                               self.viewgram_indices())


class Densel(namedtuple('Densel', ['z', 'y', 'x'])):

    """Integer voxel coordinate ``(z, y, x)``."""

    __slots__ = ()


class RelatedDensels(object):

    """Voxels forming one orbit of a symmetry group, basic voxel first."""

    def __init__(self, densels, symmetries):
        """Initialize a new instance.

        Parameters
        ----------
        densels : sequence of `array-like`
            Voxel indices ``(z, y, x)`` of the orbit, basic voxel first.
        symmetries : `DataSymmetriesForBins`
            Symmetries relating the voxels.

        Raises
        ------
        ValueError
            If ``densels`` is empty, does not start with the basic voxel,
            contains voxels of different orbits or contains the same
            voxel twice.
        """
        densels = [Densel(*d) for d in densels]
        if not densels:
            raise ValueError('`densels` cannot be empty')

        basic = densels[0]
        if symmetries.find_basic_densel(basic)[0] != basic:
            raise ValueError('first densel {} is not basic'.format(basic))

        seen = set()
        operations = []
        for densel in densels:
            if densel in seen:
                raise ValueError('densel {} occurs twice'.format(densel))
            seen.add(densel)
            other_basic, op = symmetries.find_basic_densel(densel)
            if other_basic != basic:
                raise ValueError('densel {} is not related to {}'
                                 ''.format(densel, basic))
            operations.append(op)

        self.__densels = densels
        self.__operations = operations
        self.__symmetries = symmetries

    @property
    def symmetries(self):
        return self.__symmetries

    @property
    def basic_densel(self):
        return self.__densels[0]

    def get_symmetry_operation(self, index):
        """Return the operation mapping the basic voxel onto entry
        ``index``."""
        return self.__operations[index]

    def items(self):
        """Return ``(densel, operation)`` pairs, basic voxel first."""
        return list(zip(self.__densels, self.__operations))

    def get_empty_copy(self):
        return RelatedDensels(self.__densels, self.symmetries)

    def __iter__(self):
        return iter(self.__densels)

    def __len__(self):
        return len(self.__densels)

    def __getitem__(self, index):
        return self.__densels[index]

    def __contains__(self, densel):
        return Densel(*densel) in self.__densels

    def __repr__(self):
        return '{}({})'.format(self.__class__.__name__, self.__densels)
