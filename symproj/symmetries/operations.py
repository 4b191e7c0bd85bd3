# Copyright 2025-2026 The symproj contributors
#
# This file is part of symproj.
#
# This Source Code Form is subject to the terms of the Mozilla Public License,
# v. 2.0. If a copy of the MPL was not distributed with this file, You can
# obtain one at https://mozilla.org/MPL/2.0/.

"""Geometric symmetry operations acting on bins and voxels."""

from abc import ABC, abstractmethod
from collections import namedtuple

import numpy as np

from symproj.projdata.indices import Bin, ViewgramIndices
from symproj.util.utility import safe_int_conv, signature_string

__all__ = ('SymmetryOperation', 'TrivialSymmetryOperation',
           'SymmetryLattice', 'CartesianGridSymmetryOperation')


class SymmetryOperation(ABC):

    """Abstract geometric symmetry of a scanner and its image grid.

    A symmetry operation maps bins onto bins and voxels onto voxels such
    that the projection matrix weight between a bin and a voxel equals the
    weight between their images. Operations compose (``a * b`` applies
    ``b`` first) and have inverses.
    """

    @abstractmethod
    def transform_bin(self, bin):
        """Return the image of ``bin``, keeping its value."""

    @abstractmethod
    def transform_viewgram_indices(self, indices):
        """Return the image of ``indices``."""

    @abstractmethod
    def transform_voxel_indices(self, coords):
        """Return the images of integer voxel coordinates.

        Parameters
        ----------
        coords : `numpy.ndarray`, shape ``(n, 3)``
            ``(z, y, x)`` voxel coordinates.

        Returns
        -------
        new_coords : `numpy.ndarray`, shape ``(n, 3)``
        """

    @abstractmethod
    def inverse(self):
        """Return the inverse operation."""

    @abstractmethod
    def compose(self, other):
        """Return the operation applying ``other`` first, then ``self``."""

    @property
    def is_trivial(self):
        """``True`` if this is the identity."""
        return False

    def transform_row(self, row):
        """Return the projection matrix row of the related bin.

        Only the voxel coordinates move, the weights are unchanged.
        """
        return row.transformed(self)

    def __mul__(self, other):
        if not isinstance(other, SymmetryOperation):
            return NotImplemented
        return self.compose(other)


class TrivialSymmetryOperation(SymmetryOperation):

    """The identity operation."""

    def transform_bin(self, bin):
        return bin.copy()

    def transform_viewgram_indices(self, indices):
        return indices

    def transform_voxel_indices(self, coords):
        return np.array(coords, dtype=int, copy=True).reshape(-1, 3)

    def inverse(self):
        return self

    def compose(self, other):
        return other

    @property
    def is_trivial(self):
        return True

    def transform_row(self, row):
        return row

    def __eq__(self, other):
        return (isinstance(other, TrivialSymmetryOperation) or
                (isinstance(other, SymmetryOperation) and other.is_trivial))

    def __hash__(self):
        return hash(TrivialSymmetryOperation)

    def __repr__(self):
        return '{}()'.format(self.__class__.__name__)


class SymmetryLattice(namedtuple('SymmetryLattice',
                                 ['num_views', 'num_rings', 'image_shape',
                                  'planes_per_ring'])):

    """Discretization data needed to apply cartesian grid symmetries.

    Parameters
    ----------
    num_views : int
        Number of views covering ``[0, pi)``.
    num_rings : int
        Number of detector rings.
    image_shape : 3-tuple of int
        Image shape ``(z, y, x)``.
    planes_per_ring : int
        Number of image planes per ring spacing, ``0`` if the ratio is not
        integral (axial shifts are then unavailable).
    """

    __slots__ = ()


# Rotations by k * 90 degrees in (x, y), counter-clockwise
_ROTATIONS = tuple(np.array(m, dtype=int) for m in
                   ([[1, 0], [0, 1]], [[0, -1], [1, 0]],
                    [[-1, 0], [0, -1]], [[0, 1], [-1, 0]]))
_REFLECT_X = np.array([[-1, 0], [0, 1]], dtype=int)


def _in_plane_matrix(quarter_turns, reflect):
    rot = _ROTATIONS[quarter_turns % 4]
    return rot.dot(_REFLECT_X) if reflect else rot


def _from_in_plane_matrix(matrix):
    reflect = int(round(np.linalg.det(matrix))) < 0
    rot = matrix.dot(_REFLECT_X) if reflect else matrix
    for k, candidate in enumerate(_ROTATIONS):
        if np.array_equal(rot, candidate):
            return k, reflect
    raise ValueError('{!r} is not an element of the dihedral group'
                     ''.format(matrix))


class CartesianGridSymmetryOperation(SymmetryOperation):

    """Symmetry of a cylindrical scanner with a cartesian image grid.

    The operation is the physical map ::

        (x, y) -> R(quarter_turns) F(reflect) (x, y)
        z      -> sigma * z + ring_shift * ring_spacing

    where ``F`` mirrors ``x``, ``R`` rotates by multiples of 90 degrees
    and ``sigma = -1`` if ``axial_flip`` else ``1``. All positions are taken
    relative to the scanner centre, which coincides with the image centre.

    Examples
    --------
    >>> lattice = SymmetryLattice(num_views=8, num_rings=4,
    ...                           image_shape=(7, 5, 5), planes_per_ring=2)
    >>> rot = CartesianGridSymmetryOperation(lattice, quarter_turns=1)
    >>> rot.transform_bin(Bin(1, 2, 0, 3))
    Bin(1, 6, 0, 3)
    >>> rot.transform_bin(Bin(1, 5, 0, 3))
    Bin(-1, 1, 0, -3)
    >>> (rot * rot.inverse()).is_trivial
    True
    """

    def __init__(self, lattice, quarter_turns=0, reflect=False,
                 axial_flip=False, ring_shift=0):
        """Initialize a new instance.

        Parameters
        ----------
        lattice : `SymmetryLattice`
            Scanner and image discretization.
        quarter_turns : int, optional
            Number of in-plane rotations by 90 degrees.
        reflect : bool, optional
            If ``True``, mirror ``x`` before rotating.
        axial_flip : bool, optional
            If ``True``, mirror ``z`` about the scanner centre.
        ring_shift : int, optional
            Axial translation in units of the ring spacing, applied after
            the flip.
        """
        if not isinstance(lattice, SymmetryLattice):
            raise TypeError('`lattice` must be a `SymmetryLattice`, got {!r}'
                            ''.format(lattice))
        self.__lattice = lattice
        self.__quarter_turns = safe_int_conv(quarter_turns,
                                             'quarter_turns') % 4
        self.__reflect = bool(reflect)
        self.__axial_flip = bool(axial_flip)
        self.__ring_shift = safe_int_conv(ring_shift, 'ring_shift')

        if self.quarter_turns % 2 == 1 and lattice.num_views % 2 != 0:
            raise ValueError('rotations by 90 degrees require an even number '
                             'of views, got {}'.format(lattice.num_views))
        nz, ny, nx = lattice.image_shape
        if self.quarter_turns % 2 == 1 and nx != ny:
            raise ValueError('rotations by 90 degrees require a square '
                             'image, got shape {}'.format(lattice.image_shape))
        if self.ring_shift != 0 and lattice.planes_per_ring <= 0:
            raise ValueError('axial shifts require an integer number of '
                             'planes per ring')

        self.__matrix = _in_plane_matrix(self.quarter_turns, self.reflect)

    @property
    def lattice(self):
        return self.__lattice

    @property
    def quarter_turns(self):
        return self.__quarter_turns

    @property
    def reflect(self):
        return self.__reflect

    @property
    def axial_flip(self):
        return self.__axial_flip

    @property
    def ring_shift(self):
        return self.__ring_shift

    @property
    def sigma(self):
        return -1 if self.axial_flip else 1

    @property
    def is_trivial(self):
        return (self.quarter_turns == 0 and not self.reflect and
                not self.axial_flip and self.ring_shift == 0)

    # --- Action on projection data indices --- #

    def _transform_view(self, view_num):
        """Return ``(new_view, s_sign, reversed)`` for ``view_num``.

        The view angle is mapped and wrapped back into ``[0, pi)``. Each
        wrap by ``pi`` negates the tangential position and reverses the
        orientation of the line of response, as does a mirroring.
        """
        num_views = self.lattice.num_views
        view = num_views - view_num if self.reflect else view_num
        view += self.quarter_turns * num_views // 2
        wraps, new_view = divmod(view, num_views)
        odd_wraps = wraps % 2 == 1
        return new_view, (-1 if odd_wraps else 1), self.reflect != odd_wraps

    def _transform_ring(self, ring):
        num_rings = self.lattice.num_rings
        if self.axial_flip:
            ring = num_rings - 1 - ring
        return ring + self.ring_shift

    def transform_bin(self, bin):
        new_view, s_sign, rev = self._transform_view(bin.view_num)
        seg, ax = bin.segment_num, bin.axial_pos_num
        r1 = self._transform_ring(ax + max(0, -seg))
        r2 = self._transform_ring(ax + max(0, seg))
        timing = bin.timing_pos_num
        if rev:
            r1, r2 = r2, r1
            timing = -timing
        return Bin(r2 - r1, new_view, min(r1, r2),
                   s_sign * bin.tangential_pos_num, timing,
                   value=bin.value, time_frame_num=bin.time_frame_num)

    def transform_viewgram_indices(self, indices):
        new_view, _, rev = self._transform_view(indices.view_num)
        seg = self.sigma * indices.segment_num
        timing = indices.timing_pos_num
        if rev:
            seg = -seg
            timing = -timing
        return ViewgramIndices(seg, new_view, timing)

    # --- Action on voxels --- #

    def transform_voxel_indices(self, coords):
        coords = np.asarray(coords, dtype=int).reshape(-1, 3)
        nz, ny, nx = self.lattice.image_shape
        result = np.empty_like(coords)

        # Doubled centred in-plane coordinates are integers for even and
        # odd image sizes alike
        xy = np.stack([2 * coords[:, 2] - (nx - 1),
                       2 * coords[:, 1] - (ny - 1)])
        new_x, new_y = self.__matrix.dot(xy)
        result[:, 2] = (new_x + nx - 1) // 2
        result[:, 1] = (new_y + ny - 1) // 2

        z = coords[:, 0]
        if self.axial_flip:
            z = nz - 1 - z
        result[:, 0] = z + self.ring_shift * self.lattice.planes_per_ring
        return result

    # --- Group structure --- #

    def _with(self, matrix, axial_flip, ring_shift):
        quarter_turns, reflect = _from_in_plane_matrix(matrix)
        return CartesianGridSymmetryOperation(
            self.lattice, quarter_turns, reflect, axial_flip, ring_shift)

    def inverse(self):
        return self._with(self.__matrix.T, self.axial_flip,
                          -self.sigma * self.ring_shift)

    def compose(self, other):
        if isinstance(other, TrivialSymmetryOperation):
            return self
        if not isinstance(other, CartesianGridSymmetryOperation):
            raise TypeError('cannot compose with {!r}'.format(other))
        if other.lattice != self.lattice:
            raise ValueError('cannot compose operations on different '
                             'lattices')
        return self._with(self.__matrix.dot(other.__matrix),
                          self.axial_flip != other.axial_flip,
                          self.sigma * other.ring_shift + self.ring_shift)

    def __eq__(self, other):
        if isinstance(other, TrivialSymmetryOperation):
            return self.is_trivial
        return (isinstance(other, CartesianGridSymmetryOperation) and
                other.lattice == self.lattice and
                other.quarter_turns == self.quarter_turns and
                other.reflect == self.reflect and
                other.axial_flip == self.axial_flip and
                other.ring_shift == self.ring_shift)

    def __ne__(self, other):
        return not self.__eq__(other)

    def __hash__(self):
        if self.is_trivial:
            return hash(TrivialSymmetryOperation)
        return hash((self.lattice, self.quarter_turns, self.reflect,
                     self.axial_flip, self.ring_shift))

    def __repr__(self):
        posargs = [self.lattice]
        optargs = [('quarter_turns', self.quarter_turns, 0),
                   ('reflect', self.reflect, False),
                   ('axial_flip', self.axial_flip, False),
                   ('ring_shift', self.ring_shift, 0)]
        return '{}({})'.format(self.__class__.__name__,
                               signature_string(posargs, optargs))


if __name__ == '__main__':
    from symproj.util.testutils import run_doctests
    run_doctests()
