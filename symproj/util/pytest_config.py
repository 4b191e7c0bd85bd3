# Copyright 2025-2026 The symproj contributors
#
# This file is part of symproj.
#
# This Source Code Form is subject to the terms of the Mozilla Public License,
# v. 2.0. If a copy of the MPL was not distributed with this file, You can
# obtain one at https://mozilla.org/MPL/2.0/.

"""Test configuration file."""

import os
from os import path

import numpy as np
import pytest

import symproj
from symproj.util.testutils import simple_fixture


# --- Add numpy and symproj to all doctests ---


@pytest.fixture(autouse=True)
def add_doctest_np_symproj(doctest_namespace):
    doctest_namespace['np'] = np
    doctest_namespace['symproj'] = symproj


# --- Ignored files ---


this_dir = path.dirname(__file__)
symproj_root = path.abspath(path.join(this_dir, '..', '..'))
collect_ignore = [path.join(symproj_root, 'setup.py'),
                  path.join(symproj_root, 'examples')]
collect_ignore = [path.normcase(ignored) for ignored in collect_ignore]


def pytest_ignore_collect(collection_path, config):
    normalized = path.normcase(str(collection_path))
    if any(normalized.startswith(ignored) for ignored in collect_ignore):
        return True
    return None


# --- Reusable fixtures --- #

# NOTE: All global fixtures are prefixed with `symproj_` to avoid conflicts
# with fixtures of other packages.

symproj_num_threads = simple_fixture(name='num_threads', params=[1, 3])

symproj_tof = simple_fixture(name='tof', params=[False, True])


@pytest.fixture(scope='module', params=['trivial', 'cartesian'],
                ids=[" symmetries='trivial' ", " symmetries='cartesian' "])
def symproj_symmetries_type(request):
    """Name of a registered symmetry engine."""
    return request.param


if __name__ == '__main__':
    print(os.getcwd())
