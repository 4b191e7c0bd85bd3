# Copyright 2025-2026 The symproj contributors
#
# This file is part of symproj.
#
# This Source Code Form is subject to the terms of the Mozilla Public License,
# v. 2.0. If a copy of the MPL was not distributed with this file, You can
# obtain one at https://mozilla.org/MPL/2.0/.

"""Voxelized images on a cartesian grid."""

import numpy as np

from symproj.util.exceptions import GeometryMismatchError, OutOfRangeError
from symproj.util.utility import safe_int_conv, signature_string

__all__ = ('ImageGeometry', 'VoxelsOnCartesianGrid')


def _float_triple(value, name):
    arr = np.array(value, dtype=float, ndmin=1)
    if arr.size == 1:
        arr = np.repeat(arr, 3)
    if arr.shape != (3,):
        raise ValueError('`{}` must have 3 entries, got {!r}'
                         ''.format(name, value))
    return tuple(float(v) for v in arr)


class ImageGeometry(object):

    """Discretization of a 3D volume into a cartesian voxel grid.

    Axes are ordered ``(z, y, x)``, where ``z`` is the scanner axis. Voxel
    ``(k, j, i)`` is centred at ::

        origin + (index - (shape - 1) / 2) * voxel_size

    so that for the default ``origin`` the grid is centred on the scanner
    centre along all axes.

    Examples
    --------
    >>> geom = ImageGeometry((3, 5, 5), voxel_size=(2.0, 1.0, 1.0))
    >>> geom.voxel_centers([[0, 2, 2]]).tolist()
    [[-2.0, 0.0, 0.0]]
    >>> geom.num_voxels
    75
    """

    def __init__(self, shape, voxel_size, origin=(0.0, 0.0, 0.0)):
        """Initialize a new instance.

        Parameters
        ----------
        shape : sequence of 3 positive ints
            Number of voxels along ``(z, y, x)``.
        voxel_size : positive float or sequence of 3 positive floats
            Voxel extent along ``(z, y, x)`` in mm.
        origin : sequence of 3 floats, optional
            Physical position of the grid centre in mm.
        """
        shape_in = shape
        try:
            shape = tuple(safe_int_conv(n, 'shape') for n in shape)
        except TypeError:
            raise TypeError('`shape` must be a sequence, got {!r}'
                            ''.format(shape_in))
        if len(shape) != 3 or any(n <= 0 for n in shape):
            raise ValueError('`shape` must contain 3 positive integers, got '
                             '{!r}'.format(shape_in))

        voxel_size = _float_triple(voxel_size, 'voxel_size')
        if any(v <= 0 for v in voxel_size):
            raise ValueError('`voxel_size` must be positive, got {!r}'
                             ''.format(voxel_size))

        self.__shape = shape
        self.__voxel_size = voxel_size
        self.__origin = _float_triple(origin, 'origin')

    @classmethod
    def from_proj_data_info(cls, proj_data_info, num_xy=None,
                            voxel_size_xy=None, zoom=1.0):
        """Return a grid matched to a cylindrical scanner.

        The planes are half a ring spacing apart, with one plane for each
        ring and one between each pair of neighbouring rings. In-plane, the
        voxel size is the tangential spacing divided by ``zoom`` and the
        number of voxels is odd and large enough to cover the tangential
        range.

        Parameters
        ----------
        proj_data_info : `CylindricalProjDataInfo`
            Scanner description.
        num_xy : positive int, optional
            Number of voxels along x and y.
        voxel_size_xy : positive float, optional
            In-plane voxel size in mm.
        zoom : positive float, optional
            In-plane zoom factor, only used when ``voxel_size_xy`` is not
            given.
        """
        info = proj_data_info
        zoom = float(zoom)
        if zoom <= 0:
            raise ValueError('`zoom` must be positive, got {}'.format(zoom))
        if voxel_size_xy is None:
            voxel_size_xy = info.tangential_spacing / zoom
        if num_xy is None:
            num_tang = info.num_tangential_poss
            num_xy = int(np.ceil(num_tang * info.tangential_spacing /
                                 voxel_size_xy))
            if num_xy % 2 == 0:
                num_xy += 1
        num_z = 2 * info.num_rings - 1
        return cls((num_z, num_xy, num_xy),
                   (info.ring_spacing / 2.0, voxel_size_xy, voxel_size_xy))

    @property
    def shape(self):
        """Number of voxels along ``(z, y, x)``."""
        return self.__shape

    @property
    def voxel_size(self):
        """Voxel extent along ``(z, y, x)``."""
        return self.__voxel_size

    @property
    def origin(self):
        """Physical position of the grid centre."""
        return self.__origin

    @property
    def ndim(self):
        return 3

    @property
    def num_voxels(self):
        return int(np.prod(self.shape))

    @property
    def min_pt(self):
        """Lower corner of the volume covered by the grid."""
        return tuple(o - n * v / 2.0 for o, n, v in
                     zip(self.origin, self.shape, self.voxel_size))

    @property
    def max_pt(self):
        """Upper corner of the volume covered by the grid."""
        return tuple(o + n * v / 2.0 for o, n, v in
                     zip(self.origin, self.shape, self.voxel_size))

    def voxel_centers(self, coords):
        """Physical centres of voxels given by integer coordinates.

        Parameters
        ----------
        coords : array-like, shape ``(n, 3)``
            Integer ``(z, y, x)`` voxel coordinates.

        Returns
        -------
        centers : `numpy.ndarray`, shape ``(n, 3)``
        """
        coords = np.asarray(coords, dtype=float).reshape(-1, 3)
        shape = np.array(self.shape, dtype=float)
        return (np.array(self.origin) +
                (coords - (shape - 1) / 2.0) * np.array(self.voxel_size))

    def continuous_index(self, points):
        """Inverse of `voxel_centers` for arbitrary physical points."""
        points = np.asarray(points, dtype=float).reshape(-1, 3)
        shape = np.array(self.shape, dtype=float)
        return ((points - np.array(self.origin)) / np.array(self.voxel_size) +
                (shape - 1) / 2.0)

    def in_range(self, coords):
        """Return a boolean mask of the coordinates inside the grid."""
        coords = np.asarray(coords).reshape(-1, 3)
        return np.all((coords >= 0) & (coords < np.array(self.shape)),
                      axis=1)

    def check_index(self, index):
        """Raise `OutOfRangeError` if ``index`` is not a valid voxel."""
        if len(index) != 3 or not self.in_range(np.array(index))[0]:
            raise OutOfRangeError('voxel index {!r} out of range for shape '
                                  '{}'.format(tuple(index), self.shape))

    def ravel_index(self, coords):
        """Return C-order linear indices of ``(n, 3)`` voxel coordinates."""
        coords = np.asarray(coords, dtype=int).reshape(-1, 3)
        return np.ravel_multi_index(coords.T, self.shape)

    def element(self, data=None, dtype='float64'):
        """Create an image with this geometry.

        Parameters
        ----------
        data : array-like, optional
            Voxel values of shape `shape`. Default: zeros.
        dtype : optional
            Data type of the voxel values.
        """
        return VoxelsOnCartesianGrid(self, data, dtype=dtype)

    def zero(self, dtype='float64'):
        """Return an image with all voxels set to zero."""
        return self.element(dtype=dtype)

    def __contains__(self, other):
        """Return ``other in self``."""
        return (isinstance(other, VoxelsOnCartesianGrid) and
                other.geometry == self)

    def describe_difference(self, other):
        """Return a string explaining how ``other`` differs from ``self``.

        The string is empty if both geometries are equal.
        """
        if not isinstance(other, ImageGeometry):
            return 'not an ImageGeometry: {!r}'.format(other)
        parts = []
        if self.shape != other.shape:
            parts.append('shape {} != {}'.format(self.shape, other.shape))
        if not np.allclose(self.voxel_size, other.voxel_size, rtol=1e-9,
                           atol=0):
            parts.append('voxel_size {} != {}'.format(self.voxel_size,
                                                      other.voxel_size))
        if not np.allclose(self.origin, other.origin, rtol=0, atol=1e-9):
            parts.append('origin {} != {}'.format(self.origin, other.origin))
        return '; '.join(parts)

    def __eq__(self, other):
        if other is self:
            return True
        return (isinstance(other, ImageGeometry) and
                not self.describe_difference(other))

    def __ne__(self, other):
        return not self.__eq__(other)

    def __hash__(self):
        return hash((type(self), self.shape))

    def __repr__(self):
        posargs = [self.shape, self.voxel_size]
        optargs = [('origin', self.origin, (0.0, 0.0, 0.0))]
        return '{}({})'.format(self.__class__.__name__,
                               signature_string(posargs, optargs))


class VoxelsOnCartesianGrid(object):

    """Mutable voxel values on an `ImageGeometry`.

    Examples
    --------
    >>> image = ImageGeometry((3, 1, 1), 1.0).element()
    >>> image[1, 0, 0] = 2.0
    >>> image.accumulate([[1, 0, 0], [5, 0, 0]], [0.5, 7.0])
    >>> image.asarray().ravel().tolist()
    [0.0, 2.5, 0.0]
    """

    def __init__(self, geometry, data=None, dtype='float64'):
        """Initialize a new instance.

        Parameters
        ----------
        geometry : `ImageGeometry`
            Grid on which the values are defined.
        data : array-like, optional
            Values of shape ``geometry.shape``, copied. Default: zeros.
        dtype : optional
            Data type of the voxel values.
        """
        if not isinstance(geometry, ImageGeometry):
            raise TypeError('`geometry` must be an `ImageGeometry`, got {!r}'
                            ''.format(geometry))
        self.__geometry = geometry
        if data is None:
            self.__data = np.zeros(geometry.shape, dtype=dtype)
        else:
            data = np.array(data, dtype=dtype, copy=True)
            if data.shape != geometry.shape:
                raise ValueError('`data.shape` must be {}, got {}'
                                 ''.format(geometry.shape, data.shape))
            self.__data = data

    @property
    def geometry(self):
        """The `ImageGeometry` of this image."""
        return self.__geometry

    @property
    def shape(self):
        return self.__data.shape

    @property
    def dtype(self):
        return self.__data.dtype

    def asarray(self):
        """Return the voxel values as a `numpy.ndarray`.

        The returned array is not a copy; modifying it modifies the image.
        """
        return self.__data

    def __getitem__(self, index):
        self.geometry.check_index(index)
        return self.__data[tuple(index)]

    def __setitem__(self, index, value):
        self.geometry.check_index(index)
        self.__data[tuple(index)] = value

    def accumulate(self, coords, values):
        """Add ``values`` to the voxels at ``coords``.

        Coordinates outside the grid are ignored. Repeated coordinates are
        accumulated repeatedly.

        Parameters
        ----------
        coords : array-like, shape ``(n, 3)``
            Integer voxel coordinates.
        values : array-like, shape ``(n,)``
            Values to add.
        """
        coords = np.asarray(coords, dtype=int).reshape(-1, 3)
        values = np.broadcast_to(np.asarray(values, dtype=self.dtype),
                                 (coords.shape[0],))
        mask = self.geometry.in_range(coords)
        if not np.all(mask):
            coords = coords[mask]
            values = values[mask]
        np.add.at(self.__data, (coords[:, 0], coords[:, 1], coords[:, 2]),
                  values)

    def gather(self, coords):
        """Return the values at ``coords``, zero outside the grid."""
        coords = np.asarray(coords, dtype=int).reshape(-1, 3)
        result = np.zeros(coords.shape[0], dtype=self.dtype)
        mask = self.geometry.in_range(coords)
        inside = coords[mask]
        result[mask] = self.__data[inside[:, 0], inside[:, 1], inside[:, 2]]
        return result

    def fill(self, value):
        self.__data.fill(value)

    def copy(self):
        return VoxelsOnCartesianGrid(self.geometry, self.__data,
                                     dtype=self.dtype)

    def get_empty_copy(self):
        """Return an image with the same geometry and all voxels zero."""
        return VoxelsOnCartesianGrid(self.geometry, dtype=self.dtype)

    def characteristics_mismatch(self, other):
        """Return why ``other`` cannot be combined with ``self``.

        An empty string means that both images have the same
        characteristics.
        """
        if not isinstance(other, VoxelsOnCartesianGrid):
            return 'not a VoxelsOnCartesianGrid: {!r}'.format(other)
        return self.geometry.describe_difference(other.geometry)

    def has_same_characteristics(self, other):
        return not self.characteristics_mismatch(other)

    def _check_characteristics(self, other):
        explanation = self.characteristics_mismatch(other)
        if explanation:
            raise GeometryMismatchError(
                'images have different characteristics: {}'
                ''.format(explanation))

    def __iadd__(self, other):
        if isinstance(other, VoxelsOnCartesianGrid):
            self._check_characteristics(other)
            self.__data += other.asarray()
        else:
            self.__data += other
        return self

    def __isub__(self, other):
        if isinstance(other, VoxelsOnCartesianGrid):
            self._check_characteristics(other)
            self.__data -= other.asarray()
        else:
            self.__data -= other
        return self

    def __imul__(self, other):
        self.__data *= other
        return self

    def __eq__(self, other):
        return (self.has_same_characteristics(other) and
                np.array_equal(self.__data, other.asarray()))

    def __ne__(self, other):
        return not self.__eq__(other)

    __hash__ = None

    def __repr__(self):
        return '{}({!r})'.format(self.__class__.__name__, self.geometry)


if __name__ == '__main__':
    from symproj.util.testutils import run_doctests
    run_doctests()
