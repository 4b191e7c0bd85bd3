# Copyright 2025-2026 The symproj contributors
#
# This file is part of symproj.
#
# This Source Code Form is subject to the terms of the Mozilla Public License,
# v. 2.0. If a copy of the MPL was not distributed with this file, You can
# obtain one at https://mozilla.org/MPL/2.0/.

"""Abstract mathematical operators."""

from symproj.util.exceptions import OpDomainError, OpRangeError

__all__ = ('Operator', 'OpNotImplementedError')


class OpNotImplementedError(NotImplementedError):
    """Exception for operator methods that are not implemented."""


class Operator(object):

    """Abstract mapping between two sets of elements.

    ``domain`` and ``range`` must support ``x in space`` and provide an
    ``element`` method creating a new (zero) element, optionally from
    array-like data. This is the case for `ImageGeometry` and
    `ProjDataInfo`.

    Subclasses implement ``_call(x, out)``, which writes the result of
    the evaluation to ``out``.
    """

    def __init__(self, domain, range, linear=False):
        """Initialize a new instance.

        Parameters
        ----------
        domain :
            Set of elements this operator can be applied to.
        range :
            Set in which the results lie.
        linear : bool, optional
            If ``True``, the operator is linear.
        """
        for name, space in (('domain', domain), ('range', range)):
            if not hasattr(space, 'element'):
                raise TypeError('`{}` must provide an `element` method, got '
                                '{!r}'.format(name, space))
        self.__domain = domain
        self.__range = range
        self.__is_linear = bool(linear)

    @property
    def domain(self):
        """Set of objects on which this operator can be evaluated."""
        return self.__domain

    @property
    def range(self):
        """Set in which the result of an evaluation lies."""
        return self.__range

    @property
    def is_linear(self):
        return self.__is_linear

    def _call(self, x, out):
        """Implementation of the operator evaluation, writing to ``out``."""
        raise OpNotImplementedError('this operator {!r} does not implement '
                                    '`_call`'.format(self))

    def __call__(self, x, out=None):
        """Return ``self(x[, out])``.

        Parameters
        ----------
        x : `domain` element or array-like
            Object to evaluate at. It is converted with
            ``domain.element`` if not already a domain element and is not
            modified.
        out : `range` element, optional
            Object to store the result in. Its initial state does not
            matter.

        Returns
        -------
        out : `range` element
            Result of the evaluation. If ``out`` was given, it is returned.
        """
        if x not in self.domain:
            try:
                x = self.domain.element(x)
            except (TypeError, ValueError):
                raise OpDomainError(
                    'unable to cast {!r} to an element of '
                    'the domain {!r}'.format(x, self.domain))

        if out is None:
            out = self.range.element()
        elif out not in self.range:
            raise OpRangeError('`out` {!r} not an element of the range '
                               '{!r} of {!r}'
                               ''.format(out, self.range, self))

        result = self._call(x, out)
        if result is not None and result is not out:
            raise ValueError('`_call` returned a different value than `out`')
        return out

    @property
    def adjoint(self):
        """Adjoint of this operator, only defined for linear operators."""
        raise OpNotImplementedError('adjoint not implemented for operator '
                                    '{!r}'.format(self))

    def __repr__(self):
        return '{}({!r}, {!r})'.format(self.__class__.__name__,
                                       self.domain, self.range)
