# Copyright 2025-2026 The symproj contributors
#
# This file is part of symproj.
#
# This Source Code Form is subject to the terms of the Mozilla Public License,
# v. 2.0. If a copy of the MPL was not distributed with this file, You can
# obtain one at https://mozilla.org/MPL/2.0/.

"""Random rejection of list-mode events.

Rejected events are not dropped but flagged with the rejection sentinel,
so that code accumulating bins can skip them locally.
"""

import logging

import numpy as np

from symproj.util.utility import safe_int_conv, signature_string

__all__ = ('is_rejected_event', 'RandomRejection')

_logger = logging.getLogger(__name__)


def _zigzag(n):
    """Map a signed integer to a non-negative one, bijectively."""
    return 2 * n if n >= 0 else -2 * n - 1


def is_rejected_event(bin_key, seed, reject_if_above, event_num=0,
                      time_frame_num=1):
    """Return ``True`` if the event is randomly rejected.

    The decision draws a uniform number in ``[0, 1)`` from a random
    generator seeded with all arguments, hence it is reproducible and
    independent of the order in which events are processed.

    Parameters
    ----------
    bin_key : tuple of int
        Indices of the bin the event falls into, see `Bin.key`.
    seed : int
        Seed of the rejection session.
    reject_if_above : float
        Threshold in ``[0, 1]``. An event is rejected if its draw exceeds
        the threshold, so ``1`` keeps every event.
    event_num : int, optional
        Running number of the event within its time frame.
    time_frame_num : int, optional
        Time frame of the event.

    Examples
    --------
    >>> is_rejected_event((0, 1, 2, -3, 0), seed=42, reject_if_above=1.0)
    False
    >>> is_rejected_event((0, 1, 2, -3, 0), seed=42, reject_if_above=0.0)
    True
    """
    entropy = [_zigzag(safe_int_conv(seed, 'seed')),
               _zigzag(safe_int_conv(time_frame_num, 'time_frame_num')),
               _zigzag(safe_int_conv(event_num, 'event_num'))]
    entropy.extend(_zigzag(safe_int_conv(i, 'bin_key')) for i in bin_key)
    draw = np.random.default_rng(np.random.SeedSequence(entropy)).random()
    return draw > reject_if_above


class RandomRejection(object):

    """Session rejecting a random fraction of list-mode events.

    Examples
    --------
    >>> from symproj.projdata.indices import Bin
    >>> keep_all = RandomRejection(seed=1, reject_if_above=1.0)
    >>> bins = [Bin(0, v, 0, 0, value=1.0) for v in range(4)]
    >>> len([b for b in keep_all.filter_bins(bins) if not b.is_rejected])
    4
    """

    def __init__(self, seed=42, reject_if_above=0.5):
        """Initialize a new instance.

        Parameters
        ----------
        seed : nonzero int, optional
            Seed of the random decisions. Sessions with the same seed make
            the same decisions.
        reject_if_above : float, optional
            Fraction of events kept on average, in ``[0, 1]``.
        """
        self.__seed = safe_int_conv(seed, 'seed')
        if self.seed == 0:
            raise ValueError('`seed` must be non-zero, got 0')
        self.__reject_if_above = float(reject_if_above)
        if not 0.0 <= self.reject_if_above <= 1.0:
            raise ValueError('`reject_if_above` must be in [0, 1], got {}'
                             ''.format(reject_if_above))
        self.__time_frame_num = 1
        self.__event_num = 0
        self.__num_rejected = 0

    @property
    def seed(self):
        return self.__seed

    @property
    def reject_if_above(self):
        return self.__reject_if_above

    @property
    def time_frame_num(self):
        return self.__time_frame_num

    @property
    def num_events(self):
        """Number of events processed in the current time frame."""
        return self.__event_num

    @property
    def num_rejected(self):
        """Number of events rejected in the current time frame."""
        return self.__num_rejected

    def start_new_time_frame(self, time_frame_num):
        """Start a new time frame and reset the event counters."""
        if self.num_events:
            _logger.info('time frame %d: rejected %d of %d events',
                         self.time_frame_num, self.num_rejected,
                         self.num_events)
        self.__time_frame_num = safe_int_conv(time_frame_num,
                                              'time_frame_num')
        self.__event_num = 0
        self.__num_rejected = 0

    def process(self, bin):
        """Flag ``bin`` as rejected if its event is randomly rejected.

        Returns
        -------
        rejected : bool
        """
        rejected = is_rejected_event(bin.key, self.seed,
                                     self.reject_if_above,
                                     event_num=self.__event_num,
                                     time_frame_num=self.time_frame_num)
        self.__event_num += 1
        if rejected:
            bin.reject()
            self.__num_rejected += 1
        return rejected

    def filter_bins(self, bins):
        """Yield ``bins`` after processing each of them.

        Rejected bins are yielded as well, carrying the sentinel value.
        """
        for bin in bins:
            self.process(bin)
            yield bin

    def __repr__(self):
        optargs = [('seed', self.seed, 42),
                   ('reject_if_above', self.reject_if_above, 0.5)]
        return '{}({})'.format(self.__class__.__name__,
                               signature_string([], optargs))


if __name__ == '__main__':
    from symproj.util.testutils import run_doctests
    run_doctests()
