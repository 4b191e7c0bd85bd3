# Copyright 2025-2026 The symproj contributors
#
# This file is part of symproj.
#
# This Source Code Form is subject to the terms of the Mozilla Public License,
# v. 2.0. If a copy of the MPL was not distributed with this file, You can
# obtain one at https://mozilla.org/MPL/2.0/.

"""Utilities mainly for internal use."""

from .exceptions import *
from .log import *
from .testutils import *
from .utility import *

__all__ = ()
__all__ += exceptions.__all__
__all__ += log.__all__
__all__ += testutils.__all__
__all__ += utility.__all__
