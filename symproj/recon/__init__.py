# Copyright 2025-2026 The symproj contributors
#
# This file is part of symproj.
#
# This Source Code Form is subject to the terms of the Mozilla Public License,
# v. 2.0. If a copy of the MPL was not distributed with this file, You can
# obtain one at https://mozilla.org/MPL/2.0/.

"""Projection matrices and projectors for reconstruction."""

from .proj_matrix_elems import *
from .proj_matrix import *
from .projector import *
from .back_projector import *
from .forward_projector import *
from .operators import *
from .registry import *

__all__ = ()
__all__ += proj_matrix_elems.__all__
__all__ += proj_matrix.__all__
__all__ += projector.__all__
__all__ += back_projector.__all__
__all__ += forward_projector.__all__
__all__ += operators.__all__
__all__ += registry.__all__
