# Copyright 2025-2026 The symproj contributors
#
# This file is part of symproj.
#
# This Source Code Form is subject to the terms of the Mozilla Public License,
# v. 2.0. If a copy of the MPL was not distributed with this file, You can
# obtain one at https://mozilla.org/MPL/2.0/.

"""Image discretization."""

from .image import *

__all__ = ()
__all__ += image.__all__
