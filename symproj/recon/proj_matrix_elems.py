# Copyright 2025-2026 The symproj contributors
#
# This file is part of symproj.
#
# This Source Code Form is subject to the terms of the Mozilla Public License,
# v. 2.0. If a copy of the MPL was not distributed with this file, You can
# obtain one at https://mozilla.org/MPL/2.0/.

"""Sparse rows of the projection matrix."""

import numpy as np

from symproj.projdata.indices import Bin
from symproj.util.exceptions import CacheInconsistencyError

__all__ = ('ProjMatrixElemsForOneBin',)


class ProjMatrixElemsForOneBin(object):

    """The nonzero weights between one bin and the image voxels.

    A row is stored as an ``(n, 3)`` integer array of ``(z, y, x)`` voxel
    coordinates and an ``(n,)`` array of weights. Rows are immutable;
    all modifying methods return new rows.

    Examples
    --------
    >>> from symproj.discr.image import ImageGeometry
    >>> row = ProjMatrixElemsForOneBin.from_pairs(
    ...     Bin(0, 0, 0, 0), [((1, 0, 0), 0.5), ((2, 0, 0), 0.5)])
    >>> image = ImageGeometry((3, 1, 1), 1.0).zero()
    >>> row.back_project(image, 2.0)
    >>> image.asarray().ravel().tolist()
    [0.0, 1.0, 1.0]
    >>> row.forward_project(image)
    1.0
    """

    def __init__(self, bin, coords=None, weights=None):
        """Initialize a new instance.

        Parameters
        ----------
        bin : `Bin`
            The bin this row belongs to. Only its indices are used.
        coords : array-like, shape ``(n, 3)``, optional
            Integer voxel coordinates. Default: empty row.
        weights : array-like, shape ``(n,)``, optional
            Weights of the voxels. Required if ``coords`` is given.
        """
        if not isinstance(bin, Bin):
            raise TypeError('`bin` must be a `Bin`, got {!r}'.format(bin))
        if coords is None:
            coords = np.empty((0, 3), dtype=int)
            weights = np.empty(0, dtype=float)
        elif weights is None:
            raise ValueError('`weights` must be given with `coords`')

        coords = np.array(coords, dtype=int).reshape(-1, 3)
        weights = np.array(weights, dtype=float).reshape(-1)
        if coords.shape[0] != weights.shape[0]:
            raise ValueError('`coords` and `weights` must have the same '
                             'length, got {} and {}'
                             ''.format(coords.shape[0], weights.shape[0]))
        coords.flags.writeable = False
        weights.flags.writeable = False
        self.__bin = bin.get_empty_copy()
        self.__coords = coords
        self.__weights = weights

    @classmethod
    def from_pairs(cls, bin, pairs):
        """Create a row from ``[((z, y, x), weight), ...]``."""
        pairs = list(pairs)
        if not pairs:
            return cls(bin)
        coords, weights = zip(*pairs)
        return cls(bin, coords, weights)

    @property
    def bin(self):
        return self.__bin

    @property
    def coords(self):
        """Read-only ``(n, 3)`` array of voxel coordinates."""
        return self.__coords

    @property
    def weights(self):
        """Read-only ``(n,)`` array of weights."""
        return self.__weights

    def __len__(self):
        return self.__weights.shape[0]

    def value_sum(self):
        """Return the sum of all weights."""
        return float(np.sum(self.__weights))

    def has_duplicates(self):
        if len(self) < 2:
            return False
        return np.unique(self.__coords, axis=0).shape[0] != len(self)

    def check_state(self):
        """Raise `CacheInconsistencyError` if a voxel occurs twice."""
        if self.has_duplicates():
            raise CacheInconsistencyError(
                'row of {!r} contains duplicate voxel coordinates'
                ''.format(self.bin))

    def merge_duplicates(self):
        """Return a row where repeated voxels have their weights summed.

        The voxels of the result are sorted in C order.
        """
        if len(self) == 0:
            return self
        unique, inverse = np.unique(self.__coords, axis=0,
                                    return_inverse=True)
        weights = np.zeros(unique.shape[0], dtype=float)
        np.add.at(weights, inverse.reshape(-1), self.__weights)
        return ProjMatrixElemsForOneBin(self.bin, unique, weights)

    def sort(self):
        """Return a row with voxels sorted in C order."""
        order = np.lexsort((self.__coords[:, 2], self.__coords[:, 1],
                            self.__coords[:, 0]))
        return ProjMatrixElemsForOneBin(self.bin, self.__coords[order],
                                        self.__weights[order])

    def transformed(self, op):
        """Return the row of the bin related by the symmetry ``op``."""
        if op.is_trivial:
            return self
        return ProjMatrixElemsForOneBin(op.transform_bin(self.bin),
                                        op.transform_voxel_indices(
                                            self.__coords),
                                        self.__weights)

    def back_project(self, image, value):
        """Add ``value`` times this row to ``image``.

        Voxels outside the image are ignored.
        """
        image.accumulate(self.__coords, self.__weights * value)

    def forward_project(self, image):
        """Return the inner product of this row with ``image``."""
        return float(np.dot(self.__weights, image.gather(self.__coords)))

    def as_dict(self):
        """Return a mapping from voxel coordinate tuples to weights."""
        merged = self.merge_duplicates()
        return {tuple(int(c) for c in coord): float(w)
                for coord, w in zip(merged.coords, merged.weights)}

    def equals(self, other, atol=1e-9):
        """Return ``True`` if both rows have the same weights up to ``atol``.

        Voxels missing in one row count as weight zero, so rows differing
        only by (almost) vanishing entries are equal.
        """
        if not isinstance(other, ProjMatrixElemsForOneBin):
            return False
        mine = self.as_dict()
        theirs = other.as_dict()
        for coord in set(mine) | set(theirs):
            if abs(mine.get(coord, 0.0) - theirs.get(coord, 0.0)) > atol:
                return False
        return True

    def __eq__(self, other):
        return (isinstance(other, ProjMatrixElemsForOneBin) and
                other.bin.key == self.bin.key and
                np.array_equal(other.coords, self.coords) and
                np.array_equal(other.weights, self.weights))

    def __ne__(self, other):
        return not self.__eq__(other)

    __hash__ = None

    def __repr__(self):
        return '{}({!r}, <{} elements>)'.format(self.__class__.__name__,
                                               self.bin, len(self))


if __name__ == '__main__':
    from symproj.util.testutils import run_doctests
    run_doctests()
