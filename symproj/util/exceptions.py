# Copyright 2025-2026 The symproj contributors
#
# This file is part of symproj.
#
# This Source Code Form is subject to the terms of the Mozilla Public License,
# v. 2.0. If a copy of the MPL was not distributed with this file, You can
# obtain one at https://mozilla.org/MPL/2.0/.

"""Exceptions specific to symproj."""

__all__ = ('SymprojError', 'OutOfRangeError', 'GeometryMismatchError',
           'CacheInconsistencyError', 'NotSetUpError',
           'OpTypeError', 'OpDomainError', 'OpRangeError')


class SymprojError(Exception):
    """Base class of all symproj specific errors."""


class OutOfRangeError(SymprojError, IndexError):
    """Exception for indices outside their declared valid range.

    Raised when a bin, a viewgram/sinogram/segment index or a voxel
    coordinate does not lie in the range given by the corresponding
    geometry descriptor. This always signals a programming error; indices
    are never clamped.
    """


class GeometryMismatchError(SymprojError, ValueError):
    """Exception for incompatible geometries.

    Raised when image and projection data descriptors disagree, or when
    two arrays with different characteristics are combined.
    """


class CacheInconsistencyError(SymprojError, RuntimeError):
    """Exception for violated projection matrix invariants.

    Raised for duplicate voxels within one row or for a cached row that
    differs from its recomputation. Indicates a bug in the projection
    matrix implementation.
    """


class NotSetUpError(SymprojError, RuntimeError):
    """Exception for objects used before a successful ``set_up``."""


class OpTypeError(TypeError):
    """Exception for operator type errors.

    Raised by `Operator` subclasses when called with input not in the
    domain or with ``out`` not in the range.
    """


class OpDomainError(OpTypeError):
    """Exception for input outside `Operator.domain`."""


class OpRangeError(OpTypeError):
    """Exception for output outside `Operator.range`."""
