# Copyright 2025-2026 The symproj contributors
#
# This file is part of symproj.
#
# This Source Code Form is subject to the terms of the Mozilla Public License,
# v. 2.0. If a copy of the MPL was not distributed with this file, You can
# obtain one at https://mozilla.org/MPL/2.0/.

"""Utilities for internal use."""

from collections import OrderedDict

import numpy as np

__all__ = (
    'is_string',
    'safe_int_conv',
    'normalized_range',
    'signature_string',
    'unique',
)


def is_string(obj):
    """Return ``True`` if ``obj`` behaves like a string, ``False`` else."""
    try:
        obj + ''
    except TypeError:
        return False
    else:
        return True


def safe_int_conv(number, name='number'):
    """Safely convert a scalar number to integer.

    Parameters
    ----------
    number : int or integer-valued float
        Value to convert.
    name : str, optional
        Name used in the error message.

    Raises
    ------
    ValueError
        If ``number`` is not an integer, e.g. ``1.5``.

    Examples
    --------
    >>> safe_int_conv(3.0)
    3
    >>> safe_int_conv(np.int64(-2))
    -2
    """
    try:
        return int(np.array(number).astype(int, casting='safe'))
    except TypeError:
        num_int = int(number)
        if num_int != number:
            raise ValueError('`{}` must be an integer, got {!r}'
                             ''.format(name, number))
        return num_int


def normalized_range(rng, default, name='range'):
    """Return an inclusive ``(min, max)`` range with defaults filled in.

    Parameters
    ----------
    rng : 2-tuple of int or None
        Requested range. ``None`` entries are replaced by the corresponding
        entry of ``default``.
    default : 2-tuple of int
        Full inclusive range.
    name : str, optional
        Name used in error messages.

    Returns
    -------
    normalized : tuple of int
        Intersection of the requested range with ``default``.

    Examples
    --------
    >>> normalized_range((None, 3), (-2, 5))
    (-2, 3)
    >>> normalized_range((-9, 9), (-2, 5))
    (-2, 5)
    """
    lo, hi = rng
    dlo, dhi = default
    lo = dlo if lo is None else max(safe_int_conv(lo, name), dlo)
    hi = dhi if hi is None else min(safe_int_conv(hi, name), dhi)
    return lo, hi


def signature_string(posargs, optargs, sep=', '):
    """Return a stringified signature from given arguments.

    Parameters
    ----------
    posargs : sequence
        Positional argument values, always included in the returned string.
    optargs : sequence of 3-tuples
        Optional arguments with names and defaults, given in the form::

            [(name1, value1, default1), (name2, value2, default2), ...]

        Only those parameters that are different from the given default
        are included as ``name=value`` keyword pairs.
    sep : str, optional
        Separator for the argument strings.

    Returns
    -------
    signature : string
        Stringification of a signature, typically used in the form::

            '{}({})'.format(self.__class__.__name__, signature)

    Examples
    --------
    >>> signature_string([1, 'hello'], [('spacing', 0.5, 1.0),
    ...                                 ('num', 3, 3)])
    "1, 'hello', spacing=0.5"
    """
    parts = [repr(arg) for arg in posargs]
    for name, value, default in optargs:
        if np.array_equal(value, default):
            continue
        if isinstance(value, np.ndarray):
            value = tuple(value.tolist())
        parts.append('{}={!r}'.format(name, value))
    return sep.join(parts)


def unique(seq):
    """Return the unique values in a sequence, keeping the order.

    Examples
    --------
    >>> unique([1, 2, 3, 3])
    [1, 2, 3]
    >>> unique((1, [1], [1]))
    [1, [1]]
    """
    try:
        return list(OrderedDict.fromkeys(seq))
    except TypeError:
        # Unhashable, resort to O(n^2)
        unique_values = []
        for i in seq:
            if i not in unique_values:
                unique_values.append(i)
        return unique_values


if __name__ == '__main__':
    from symproj.util.testutils import run_doctests
    run_doctests()
