# Copyright 2025-2026 The symproj contributors
#
# This file is part of symproj.
#
# This Source Code Form is subject to the terms of the Mozilla Public License,
# v. 2.0. If a copy of the MPL was not distributed with this file, You can
# obtain one at https://mozilla.org/MPL/2.0/.

"""Symmetry engine without any symmetries."""

from symproj.symmetries.base import DataSymmetriesForBins
from symproj.symmetries.operations import TrivialSymmetryOperation

__all__ = ('TrivialDataSymmetriesForBins',)


class TrivialDataSymmetriesForBins(DataSymmetriesForBins):

    """Symmetry group consisting of the identity only.

    Every bin is basic and its own only related bin. This engine is valid
    for any geometry.
    """

    _OPERATIONS = (TrivialSymmetryOperation(),)

    @property
    def operations(self):
        return self._OPERATIONS
