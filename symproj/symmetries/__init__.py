# Copyright 2025-2026 The symproj contributors
#
# This file is part of symproj.
#
# This Source Code Form is subject to the terms of the Mozilla Public License,
# v. 2.0. If a copy of the MPL was not distributed with this file, You can
# obtain one at https://mozilla.org/MPL/2.0/.

"""Symmetries of projection data and images."""

from .operations import *
from .related import *
from .base import *
from .trivial import *
from .cartesian import *

__all__ = ()
__all__ += operations.__all__
__all__ += related.__all__
__all__ += base.__all__
__all__ += trivial.__all__
__all__ += cartesian.__all__
