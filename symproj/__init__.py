# Copyright 2025-2026 The symproj contributors
#
# This file is part of symproj.
#
# This Source Code Form is subject to the terms of the Mozilla Public License,
# v. 2.0. If a copy of the MPL was not distributed with this file, You can
# obtain one at https://mozilla.org/MPL/2.0/.

"""symproj (symmetry-reduced projectors).

symproj is a Python library for PET forward and back projection with
projection matrices that are stored only for bins that are basic with
respect to the geometric symmetries of the scanner.
"""

from os import path

import numpy as np

__all__ = ('util', 'discr', 'projdata', 'symmetries', 'operator', 'recon')

# Set package version
curdir = path.abspath(path.dirname(__file__))

with open(path.join(curdir, 'VERSION')) as version_file:
    __version__ = version_file.read().strip()

# Set printing line width to 71 to allow method docstrings to not extend
# beyond 79 characters (2 times indent of 4)
np.set_printoptions(linewidth=71)

# Subpackages keep their namespaces separate from top-level, only the
# modules themselves are imported, in dependency order
from . import util
from . import discr
from . import projdata
from . import symmetries
from . import operator
from . import recon

# Add `test` function to global namespace so users can run `symproj.test()`
from .util import test
