# Copyright 2025-2026 The symproj contributors
#
# This file is part of symproj.
#
# This Source Code Form is subject to the terms of the Mozilla Public License,
# v. 2.0. If a copy of the MPL was not distributed with this file, You can
# obtain one at https://mozilla.org/MPL/2.0/.

"""Setup script for symproj.

Installation command::

    pip install [--user] [-e] .
"""

import os

from setuptools import setup, find_packages


root_path = os.path.dirname(__file__)

with open(os.path.join(root_path, 'requirements.txt')) as f:
    requires = [line.strip() for line in f
                if line.strip() and not line.startswith('#')]
with open(os.path.join(root_path, 'test_requirements.txt')) as f:
    test_requires = [line.strip() for line in f
                     if line.strip() and not line.startswith('#')]
with open(os.path.join(root_path, 'symproj', 'VERSION')) as f:
    version = f.read().strip()

long_description = """
symproj is a Python library for forward and back projection of PET data
with projection matrices computed row by row. Only the rows of bins that
are basic with respect to the geometric symmetries of the scanner are
computed and cached; all other rows follow by applying the symmetry
operations relating the bins.

Features
========

- Span-1 cylindrical PET projection data, optionally with time-of-flight
  positions, held in memory as segments, viewgrams and sinograms.
- Symmetry engines for in-plane rotations and mirroring, axial mirroring
  and axial translations, enabled only where the image grid allows them.
- A thread-safe LRU cache of projection matrix rows.
- Forward and back projectors working on groups of related viewgrams,
  optionally in parallel, and linear operator wrappers for them.
"""

setup(
    name='symproj',

    version=version,

    description='Symmetry-reduced PET projectors',
    long_description=long_description,

    author='symproj contributors',

    license='MPL-2.0',

    # See https://pypi.python.org/pypi?%3Aaction=list_classifiers
    classifiers=[
        'Development Status :: 3 - Alpha',

        'Intended Audience :: Developers',
        'Intended Audience :: Science/Research',
        'Topic :: Scientific/Engineering',
        'Topic :: Scientific/Engineering :: Medical Science Apps.',

        'License :: OSI Approved :: Mozilla Public License 2.0 (MPL 2.0)',

        'Programming Language :: Python :: 3',

        'Operating System :: OS Independent'
    ],

    keywords='research imaging tomography PET projection symmetries',

    packages=find_packages(include=['symproj', 'symproj.*'],
                           exclude=['*test*']),
    package_dir={'symproj': 'symproj'},
    package_data={'symproj': ['VERSION']},

    python_requires='>=3.7',
    install_requires=requires,
    extras_require={
        'testing': test_requires,
    },
)
