# Copyright 2025-2026 The symproj contributors
#
# This file is part of symproj.
#
# This Source Code Form is subject to the terms of the Mozilla Public License,
# v. 2.0. If a copy of the MPL was not distributed with this file, You can
# obtain one at https://mozilla.org/MPL/2.0/.

"""Testing utilities."""

import os
from itertools import zip_longest

import numpy as np

from symproj.util.utility import is_string

__all__ = (
    'all_equal',
    'all_almost_equal',
    'simple_fixture',
    'noise_array',
    'test',
    'run_doctests',
    'test_file',
)


def _dtype_ndigits(dtype, default=None):
    """Return the number of correct digits expected for a given dtype.

    - ``np.float16``: ``1``
    - ``np.float32``: ``3``
    - Others: ``default`` if given, otherwise ``5``
    """
    small_dtypes = [np.float32]
    tiny_dtypes = [np.float16]

    if dtype in tiny_dtypes:
        return 1
    elif dtype in small_dtypes:
        return 3
    else:
        return default if default is not None else 5


def _ndigits(a, b, default=None):
    """Return number of expected correct digits comparing ``a`` and ``b``."""
    dtype1 = getattr(a, 'dtype', object)
    dtype2 = getattr(b, 'dtype', object)
    return min(_dtype_ndigits(dtype1, default),
               _dtype_ndigits(dtype2, default))


def all_equal(iter1, iter2):
    """Return ``True`` if all elements in ``a`` and ``b`` are equal."""
    # Direct comparison for scalars, tuples or lists
    try:
        if iter1 == iter2:
            return True
    except ValueError:  # Raised by NumPy when comparing arrays
        pass

    if iter1 is None and iter2 is None:
        return True

    # If one nested iterator is exhausted, go to direct comparison
    try:
        it1 = iter(iter1)
        it2 = iter(iter2)
    except TypeError:
        try:
            return iter1 == iter2
        except ValueError:
            return False

    diff_length_sentinel = object()
    for [ip1, ip2] in zip_longest(it1, it2, fillvalue=diff_length_sentinel):
        if ip1 is diff_length_sentinel or ip2 is diff_length_sentinel:
            return False

        if not all_equal(ip1, ip2):
            return False

    return True


def all_almost_equal_array(v1, v2, ndigits):
    return np.allclose(v1, v2,
                       rtol=10 ** -ndigits, atol=10 ** -ndigits,
                       equal_nan=True)


def all_almost_equal(iter1, iter2, ndigits=None):
    """Return ``True`` if all elements in ``a`` and ``b`` are almost equal."""
    try:
        if iter1 is iter2 or iter1 == iter2:
            return True
    except ValueError:
        pass

    if iter1 is None and iter2 is None:
        return True

    if hasattr(iter1, '__array__') and hasattr(iter2, '__array__'):
        if ndigits is None:
            ndigits = _ndigits(iter1, iter2, None)
        return all_almost_equal_array(np.asarray(iter1), np.asarray(iter2),
                                      ndigits)

    try:
        it1 = iter(iter1)
        it2 = iter(iter2)
    except TypeError:
        if ndigits is None:
            ndigits = _ndigits(iter1, iter2, None)
        return np.isclose(iter1, iter2,
                          atol=10 ** -ndigits, rtol=10 ** -ndigits,
                          equal_nan=True)

    diff_length_sentinel = object()
    for [ip1, ip2] in zip_longest(it1, it2, fillvalue=diff_length_sentinel):
        if ip1 is diff_length_sentinel or ip2 is diff_length_sentinel:
            return False

        if not all_almost_equal(ip1, ip2, ndigits):
            return False

    return True


def simple_fixture(name, params, fmt=None):
    """Helper to create a pytest fixture using only name and params.

    Parameters
    ----------
    name : str
        Name of the parameters used for the ``ids`` argument
        to `pytest.fixture`.
    params : sequence
        Values to be taken as parameters in the fixture. Values wrapped
        in `pytest.param` are unwrapped for the generation of the test IDs.
    fmt : str, optional
        Use this format string for the generation of the ``ids``.
        For each value, the id string is generated as ::

            fmt.format(name=name, value=value)

        hence the format string must use ``{name}`` and ``{value}``.
        Default format strings are:

            - ``" {name}='{value}' "`` for string parameters,
            - ``" {name}={value} "`` for other types.
    """
    import pytest

    if fmt is None:
        fmt_str = " {name}='{value}' "
        fmt_default = " {name}={value} "

        ids = []
        for p in params:
            value = p.values[0] if hasattr(p, 'values') else p
            if is_string(value):
                ids.append(fmt_str.format(name=name, value=value))
            else:
                ids.append(fmt_default.format(name=name, value=value))
    else:
        ids = [fmt.format(name=name, value=p) for p in params]

    wrapper = pytest.fixture(scope='module', ids=ids, params=params)
    return wrapper(lambda request: request.param)


def noise_array(shape, dtype='float64'):
    """Generate a white noise array of a given shape.

    The array contains white noise with standard deviation 1 in the case of
    floating point dtypes and uniformly drawn values between -10 and 10 in
    the case of integer dtypes.

    Notes
    -----
    This method is intended for internal testing purposes.

    Examples
    --------
    >>> noise_array((2, 3)).shape
    (2, 3)
    """
    dtype = np.dtype(dtype)
    if np.issubdtype(dtype, np.signedinteger):
        arr = np.random.randint(-10, 10, shape)
    elif np.issubdtype(dtype, np.floating):
        arr = np.random.randn(*shape)
    else:
        raise ValueError('bad dtype {}'.format(dtype))
    return arr.astype(dtype, copy=False)


def test(arguments=None):
    """Run symproj tests given by arguments."""
    try:
        import pytest
    except ImportError:
        raise ImportError(
            'symproj tests cannot be run without `pytest` installed.\n'
            'Run `$ pip install [--user] symproj[testing]` in order to '
            'install `pytest`.'
        )

    this_dir = os.path.dirname(__file__)
    root = os.path.abspath(os.path.join(this_dir, os.pardir, os.pardir))

    args = ['{root}/symproj'.format(root=root)]
    if arguments is not None:
        args.extend(arguments)

    pytest.main(args)


def run_doctests(skip_if=False, **kwargs):
    """Run all doctests in the current module.

    This function calls ``doctest.testmod()``, by default with the options
    ``optionflags=doctest.NORMALIZE_WHITESPACE`` and
    ``extraglobs={'symproj': symproj, 'np': np}``. This can be changed with
    keyword arguments.

    Parameters
    ----------
    skip_if : bool
        For ``True``, skip the doctests in this module.
    kwargs :
        Extra keyword arguments passed on to the ``doctest.testmod``
        function.
    """
    from doctest import testmod, NORMALIZE_WHITESPACE, SKIP
    import symproj

    optionflags = kwargs.pop('optionflags', NORMALIZE_WHITESPACE)
    if skip_if:
        optionflags |= SKIP

    extraglobs = kwargs.pop('extraglobs', {'symproj': symproj, 'np': np})
    testmod(optionflags=optionflags, extraglobs=extraglobs, **kwargs)


def test_file(file, args=None):
    """Run tests in file with proper default arguments."""
    try:
        import pytest
    except ImportError:
        raise ImportError('symproj tests cannot be run without `pytest` '
                          'installed.\nRun `$ pip install [--user] '
                          'symproj[testing]` in order to install `pytest`.')

    if args is None:
        args = []

    args.extend([str(file.replace('\\', '/')), '-v', '--capture=sys'])

    pytest.main(args)


if __name__ == '__main__':
    run_doctests()
