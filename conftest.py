# Copyright 2025-2026 The symproj contributors
#
# This file is part of symproj.
#
# This Source Code Form is subject to the terms of the Mozilla Public License,
# v. 2.0. If a copy of the MPL was not distributed with this file, You can
# obtain one at https://mozilla.org/MPL/2.0/.

"""Test configuration file, see ``symproj.util.pytest_config``."""

from symproj.util.pytest_config import *  # noqa
