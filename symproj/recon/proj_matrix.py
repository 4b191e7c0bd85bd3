# Copyright 2025-2026 The symproj contributors
#
# This file is part of symproj.
#
# This Source Code Form is subject to the terms of the Mozilla Public License,
# v. 2.0. If a copy of the MPL was not distributed with this file, You can
# obtain one at https://mozilla.org/MPL/2.0/.

"""Projection matrices computed row by row, using symmetries."""

from abc import ABC, abstractmethod
from collections import OrderedDict, namedtuple
import logging
import threading

import numpy as np
import scipy.sparse
from scipy.special import erf

from symproj.discr.image import ImageGeometry
from symproj.projdata.indices import Bin
from symproj.projdata.info import CylindricalProjDataInfo, ProjDataInfo
from symproj.recon.proj_matrix_elems import ProjMatrixElemsForOneBin
from symproj.symmetries.base import DataSymmetriesForBins
from symproj.util.exceptions import (
    CacheInconsistencyError, NotSetUpError, OutOfRangeError)
from symproj.util.log import log_symmetries
from symproj.util.utility import signature_string

__all__ = ('SetUpStatus', 'CacheInfo', 'ProjMatrixByBin',
           'ProjMatrixByBinUsingLineSampling', 'ProjMatrixByBinFromRows')

_logger = logging.getLogger(__name__)


class SetUpStatus(namedtuple('SetUpStatus', ['succeeded', 'reason'])):

    """Outcome of a ``set_up`` call, truthy if it succeeded.

    Examples
    --------
    >>> bool(SetUpStatus.yes())
    True
    >>> status = SetUpStatus.no('wrong scanner')
    >>> bool(status), status.reason
    (False, 'wrong scanner')
    """

    __slots__ = ()

    @classmethod
    def yes(cls):
        return cls(True, '')

    @classmethod
    def no(cls, reason):
        return cls(False, str(reason))

    def __bool__(self):
        return bool(self.succeeded)


CacheInfo = namedtuple('CacheInfo', ['hits', 'misses', 'maxsize', 'currsize'])


class ProjMatrixByBin(ABC):

    """Abstract projection matrix giving access to one row at a time.

    Rows are computed for basic bins only and cached; the row of any other
    bin is the row of its basic bin transformed by the symmetry relating
    them. Subclasses implement `_compute_row`.

    The cache is safe for concurrent readers and writers: a single lock
    protects the LRU store while rows are computed outside of it, so two
    threads missing the same row both compute it and store equal rows.
    """

    def __init__(self, symmetries=None, max_cache_size=None,
                 check_cache=False):
        """Initialize a new instance.

        Parameters
        ----------
        symmetries : optional
            Symmetries to use. Can be a `DataSymmetriesForBins` instance, a
            name in ``SYMMETRY_IMPLS``, a mapping with a ``'type'`` key and
            keyword arguments for the engine, or ``None`` for the default
            of the matrix type.
        max_cache_size : nonnegative int, optional
            Maximum number of cached rows. ``None`` means unbounded, ``0``
            disables caching.
        check_cache : bool, optional
            If ``True``, recompute rows on cache hits and raise
            `CacheInconsistencyError` if they differ from the cached rows.
        """
        if max_cache_size is not None:
            max_cache_size = int(max_cache_size)
            if max_cache_size < 0:
                raise ValueError('`max_cache_size` must be nonnegative or '
                                 'None, got {}'.format(max_cache_size))
        self.__symmetries_config = symmetries
        self.__max_cache_size = max_cache_size
        self.__check_cache = bool(check_cache)

        self.__lock = threading.Lock()
        self.__cache = OrderedDict()
        self.__hits = 0
        self.__misses = 0

        self.__symmetries = None
        self.__proj_data_info = None
        self.__image_geometry = None

    # --- Set-up --- #

    def set_up(self, proj_data_info, image_geometry):
        """Prepare the matrix for the given geometries.

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

        reason = self._check_geometry(proj_data_info, image_geometry)
        if reason:
            _logger.error('set-up of %s failed: %s',
                          self.__class__.__name__, reason)
            return SetUpStatus.no(reason)

        try:
            symmetries = self._make_symmetries(proj_data_info,
                                               image_geometry)
        except (TypeError, ValueError) as err:
            _logger.error('set-up of %s failed: %s',
                          self.__class__.__name__, err)
            return SetUpStatus.no(err)
        if not symmetries.is_compatible_with(proj_data_info, image_geometry):
            reason = 'symmetries {!r} do not match the geometry'.format(
                symmetries)
            _logger.error('set-up of %s failed: %s',
                          self.__class__.__name__, reason)
            return SetUpStatus.no(reason)

        self.__proj_data_info = proj_data_info
        self.__image_geometry = image_geometry
        self.__symmetries = symmetries
        self.clear_cache()
        log_symmetries(symmetries, _logger)
        return SetUpStatus.yes()

    def _check_geometry(self, proj_data_info, image_geometry):
        """Return a reason why the geometries are unsupported, or ``''``."""
        return ''

    def _default_symmetries(self):
        """Name or configuration of the symmetries used by default."""
        return 'trivial'

    def _make_symmetries(self, proj_data_info, image_geometry):
        config = self.__symmetries_config
        if isinstance(config, DataSymmetriesForBins):
            return config
        if config is None:
            config = self._default_symmetries()
        from symproj.recon.registry import symmetries_from_config
        return symmetries_from_config(config, proj_data_info, image_geometry)

    @property
    def is_set_up(self):
        return self.__symmetries is not None

    def _check_set_up(self):
        if not self.is_set_up:
            raise NotSetUpError('{} used before a successful `set_up`'
                                ''.format(self.__class__.__name__))

    @property
    def symmetries(self):
        """The `DataSymmetriesForBins` in use."""
        self._check_set_up()
        return self.__symmetries

    @property
    def proj_data_info(self):
        return self.__proj_data_info

    @property
    def image_geometry(self):
        return self.__image_geometry

    # --- Cache --- #

    @property
    def max_cache_size(self):
        return self.__max_cache_size

    @property
    def check_cache(self):
        return self.__check_cache

    def clear_cache(self):
        """Remove all cached rows and reset the statistics."""
        with self.__lock:
            self.__cache.clear()
            self.__hits = 0
            self.__misses = 0

    def cache_info(self):
        """Return hits, misses, maximum and current size of the cache."""
        with self.__lock:
            return CacheInfo(self.__hits, self.__misses,
                             self.__max_cache_size, len(self.__cache))

    def _cache_lookup(self, key):
        with self.__lock:
            row = self.__cache.get(key)
            if row is None:
                self.__misses += 1
            else:
                self.__hits += 1
                self.__cache.move_to_end(key)
            return row

    def _cache_store(self, key, row):
        if self.__max_cache_size == 0:
            return
        with self.__lock:
            self.__cache[key] = row
            self.__cache.move_to_end(key)
            if self.__max_cache_size is not None:
                while len(self.__cache) > self.__max_cache_size:
                    self.__cache.popitem(last=False)

    # --- Rows --- #

    @abstractmethod
    def _compute_row(self, bin):
        """Compute the row of ``bin`` without symmetries or caching."""

    def compute_row_directly(self, bin):
        """Return the row of any valid ``bin``, bypassing symmetries.

        This is the reference for the rows obtained from basic bins by
        symmetry.
        """
        self._check_set_up()
        self.proj_data_info.check_bin(bin)
        row = self._compute_row(bin)
        row.check_state()
        return row

    def get_row(self, basic_bin):
        """Return the row of a basic bin, from the cache if possible.

        Raises
        ------
        ValueError
            If ``basic_bin`` is not basic for `symmetries`.
        CacheInconsistencyError
            If the row contains a voxel twice, or if `check_cache` is set
            and the cached row differs from a recomputation.
        """
        self._check_set_up()
        if not self.symmetries.is_basic(basic_bin):
            raise ValueError('{!r} is not a basic bin'.format(basic_bin))

        key = basic_bin.key
        row = self._cache_lookup(key)
        if row is not None:
            if self.check_cache:
                fresh = self._compute_row(Bin.from_key(key))
                if not fresh.equals(row, atol=1e-9 * max(1.0,
                                                         abs(row.value_sum()))):
                    raise CacheInconsistencyError(
                        'cached row of {!r} differs from its recomputation'
                        ''.format(basic_bin))
            return row

        row = self._compute_row(Bin.from_key(key))
        row.check_state()
        self._cache_store(key, row)
        return row

    def get_proj_matrix_elems_for_one_bin(self, bin):
        """Return the row of any valid ``bin``, using symmetries."""
        self._check_set_up()
        basic_bin, op = self.symmetries.find_basic_bin(bin)
        return self.get_row(basic_bin).transformed(op)

    def as_sparse_matrix(self, use_symmetries=True):
        """Return the whole matrix as a `scipy.sparse.csr_matrix`.

        Rows follow the canonical bin order of `ProjDataInMemory.asarray`,
        columns the C order of the image voxels. Intended for testing and
        small problems.

        Parameters
        ----------
        use_symmetries : bool, optional
            If ``False``, compute every row directly.
        """
        self._check_set_up()
        geom = self.image_geometry
        data, indices, indptr = [], [], [0]
        for bin in self.proj_data_info.bins():
            if use_symmetries:
                row = self.get_proj_matrix_elems_for_one_bin(bin)
            else:
                row = self.compute_row_directly(bin)
            mask = geom.in_range(row.coords)
            data.append(row.weights[mask])
            indices.append(geom.ravel_index(row.coords[mask]))
            indptr.append(indptr[-1] + int(np.count_nonzero(mask)))

        matrix = scipy.sparse.csr_matrix(
            (np.concatenate(data) if data else np.empty(0),
             np.concatenate(indices) if indices else np.empty(0, dtype=int),
             np.array(indptr)),
            shape=(self.proj_data_info.num_bins, geom.num_voxels))
        matrix.sum_duplicates()
        return matrix


class ProjMatrixByBinUsingLineSampling(ProjMatrixByBin):

    """Projection matrix sampling each line of response at regular steps.

    The line of response between the two detectors is divided into
    segments of equal length, and the length of each segment is
    distributed to the 8 voxels around its midpoint with trilinear
    interpolation weights. For time-of-flight data, each step is further
    weighted with the integral of the Gaussian timing kernel over the
    timing position of the bin.

    Since the sample points depend only on the line of response, the rows
    are invariant under the symmetries of
    `DataSymmetriesForBinsPETCartesianGrid`.
    """

    def __init__(self, num_samples_per_voxel=2, use_tof=True,
                 symmetries=None, max_cache_size=None, check_cache=False):
        """Initialize a new instance.

        Parameters
        ----------
        num_samples_per_voxel : positive int, optional
            Number of sample points per smallest voxel extent along the
            line of response.
        use_tof : bool, optional
            If ``True``, use the time-of-flight kernel for TOF data.
            Otherwise all timing positions get the non-TOF row.
        symmetries, max_cache_size, check_cache :
            See `ProjMatrixByBin`.
        """
        super(ProjMatrixByBinUsingLineSampling, self).__init__(
            symmetries=symmetries, max_cache_size=max_cache_size,
            check_cache=check_cache)
        self.__num_samples_per_voxel = int(num_samples_per_voxel)
        if self.num_samples_per_voxel <= 0:
            raise ValueError('`num_samples_per_voxel` must be positive, got '
                             '{}'.format(num_samples_per_voxel))
        self.__use_tof = bool(use_tof)

    @property
    def num_samples_per_voxel(self):
        return self.__num_samples_per_voxel

    @property
    def use_tof(self):
        return self.__use_tof

    def _check_geometry(self, proj_data_info, image_geometry):
        if not isinstance(proj_data_info, CylindricalProjDataInfo):
            return ('line sampling requires a CylindricalProjDataInfo, got '
                    '{!r}'.format(proj_data_info))
        return ''

    def _default_symmetries(self):
        return 'cartesian'

    def _num_samples(self, bin):
        """Number of sample points, a function of ``|s|`` and ``|segment|``.
        """
        length = self._lor_length(bin)
        step = min(self.image_geometry.voxel_size) / self.num_samples_per_voxel
        return max(1, int(np.ceil(length / step - 1e-9)))

    def _lor_length(self, bin):
        info = self.proj_data_info
        s = info.s(bin)
        in_plane = 2.0 * np.sqrt(info.det_radius ** 2 - s ** 2)
        dz = bin.segment_num * info.ring_spacing
        return float(np.sqrt(in_plane ** 2 + dz ** 2))

    def _tof_weights(self, bin, offsets):
        """Timing kernel integrated over the timing position of ``bin``.

        ``offsets`` are the signed distances of the samples from the
        midpoint of the line of response, positive towards detector 2.
        """
        info = self.proj_data_info
        sigma = info.timing_fwhm / (2.0 * np.sqrt(2.0 * np.log(2.0)))
        center = info.timing_center(bin)
        half_width = info.timing_spacing / 2.0
        scale = sigma * np.sqrt(2.0)
        return 0.5 * (erf((center + half_width - offsets) / scale) -
                      erf((center - half_width - offsets) / scale))

    def _compute_row(self, bin):
        info = self.proj_data_info
        geom = self.image_geometry
        p1, p2 = info.lor(bin)
        length = self._lor_length(bin)
        num = self._num_samples(bin)

        fractions = (np.arange(num) + 0.5) / num
        points = p1[None, :] + fractions[:, None] * (p2 - p1)[None, :]
        step_weights = np.full(num, length / num)
        if info.is_tof and self.use_tof:
            step_weights *= self._tof_weights(bin, (fractions - 0.5) * length)

        cont_index = geom.continuous_index(points)
        base = np.floor(cont_index).astype(int)
        frac = cont_index - base

        coords, weights = [], []
        for corner in np.ndindex(2, 2, 2):
            corner = np.array(corner)
            corner_weights = np.prod(np.where(corner == 1, frac, 1.0 - frac),
                                     axis=1)
            coords.append(base + corner)
            weights.append(corner_weights * step_weights)
        coords = np.concatenate(coords)
        weights = np.concatenate(weights)

        # Drop voxels outside the image and vanishing interpolation weights
        keep = geom.in_range(coords) & (weights > 1e-9 * length / num)
        row = ProjMatrixElemsForOneBin(bin, coords[keep], weights[keep])
        return row.merge_duplicates()

    def __repr__(self):
        optargs = [('num_samples_per_voxel', self.num_samples_per_voxel, 2),
                   ('use_tof', self.use_tof, True),
                   ('max_cache_size', self.max_cache_size, None),
                   ('check_cache', self.check_cache, False)]
        return '{}({})'.format(self.__class__.__name__,
                               signature_string([], optargs))


class ProjMatrixByBinFromRows(ProjMatrixByBin):

    """Projection matrix with explicitly given rows.

    Bins without a given row have an empty row. By default no symmetries
    are used, which is valid for arbitrary rows.

    Examples
    --------
    >>> from symproj.projdata.info import CylindricalProjDataInfo
    >>> info = CylindricalProjDataInfo(num_rings=1, ring_spacing=4.0,
    ...                                det_radius=50.0, num_views=2,
    ...                                num_tangential_poss=1,
    ...                                tangential_spacing=2.0)
    >>> matrix = ProjMatrixByBinFromRows({(0, 0, 0, 0): [((1, 0, 0), 0.5)]})
    >>> bool(matrix.set_up(info, ImageGeometry((3, 1, 1), 1.0)))
    True
    >>> len(matrix.get_proj_matrix_elems_for_one_bin(Bin(0, 1, 0, 0)))
    0
    """

    def __init__(self, rows, symmetries=None, max_cache_size=None,
                 check_cache=False):
        """Initialize a new instance.

        Parameters
        ----------
        rows : mapping
            Mapping from bins or bin index tuples (with or without timing
            position) to sequences ``[((z, y, x), weight), ...]``.
        symmetries, max_cache_size, check_cache :
            See `ProjMatrixByBin`.
        """
        super(ProjMatrixByBinFromRows, self).__init__(
            symmetries=symmetries, max_cache_size=max_cache_size,
            check_cache=check_cache)
        self.__rows = {}
        for key, pairs in rows.items():
            if isinstance(key, Bin):
                key = key.key
            key = tuple(int(k) for k in key)
            if len(key) == 4:
                key += (0,)
            if len(key) != 5:
                raise ValueError('row keys must have 4 or 5 indices, got {!r}'
                                 ''.format(key))
            self.__rows[key] = [(tuple(int(c) for c in coord), float(w))
                                for coord, w in pairs]

    def _check_geometry(self, proj_data_info, image_geometry):
        for key, pairs in self.__rows.items():
            try:
                proj_data_info.check_bin(Bin.from_key(key))
            except OutOfRangeError as err:
                return 'row of invalid bin {}: {}'.format(key, err)
            for coord, _ in pairs:
                if not image_geometry.in_range(coord)[0]:
                    return ('row of bin {} contains voxel {} outside the '
                            'image'.format(key, coord))
        return ''

    def _compute_row(self, bin):
        return ProjMatrixElemsForOneBin.from_pairs(
            bin, self.__rows.get(bin.key, []))


if __name__ == '__main__':
    from symproj.util.testutils import run_doctests
    run_doctests()
