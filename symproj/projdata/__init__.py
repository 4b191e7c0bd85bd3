# Copyright 2025-2026 The symproj contributors
#
# This file is part of symproj.
#
# This Source Code Form is subject to the terms of the Mozilla Public License,
# v. 2.0. If a copy of the MPL was not distributed with this file, You can
# obtain one at https://mozilla.org/MPL/2.0/.

"""Projection data: indices, geometry descriptors and containers."""

from .indices import *
from .info import *
from .arrays import *
from .proj_data import *
from .rejection import *

__all__ = ()
__all__ += indices.__all__
__all__ += info.__all__
__all__ += arrays.__all__
__all__ += proj_data.__all__
__all__ += rejection.__all__
