# Copyright 2025-2026 The symproj contributors
#
# This file is part of symproj.
#
# This Source Code Form is subject to the terms of the Mozilla Public License,
# v. 2.0. If a copy of the MPL was not distributed with this file, You can
# obtain one at https://mozilla.org/MPL/2.0/.

import logging

import pytest

import symproj
from symproj.projdata.indices import Bin
from symproj.projdata.rejection import RandomRejection, is_rejected_event
from symproj.util.testutils import simple_fixture


seed = simple_fixture('seed', [42, -7, 123456789])


def make_bins(num):
    return [Bin(i % 3 - 1, i % 8, 0, i % 5 - 2, value=1.0)
            for i in range(num)]


def rejected_pattern(rejection, bins):
    return [rejection.process(b.copy()) for b in bins]


def test_reproducible(seed):
    bins = make_bins(200)
    pattern1 = rejected_pattern(RandomRejection(seed, 0.5), bins)
    pattern2 = rejected_pattern(RandomRejection(seed, 0.5), bins)
    assert pattern1 == pattern2


def test_different_seeds_differ():
    bins = make_bins(200)
    pattern1 = rejected_pattern(RandomRejection(1, 0.5), bins)
    pattern2 = rejected_pattern(RandomRejection(2, 0.5), bins)
    assert pattern1 != pattern2


def test_rejected_fraction(seed):
    rejection = RandomRejection(seed, reject_if_above=0.25)
    bins = list(rejection.filter_bins(make_bins(2000)))
    num_rejected = sum(b.is_rejected for b in bins)

    assert num_rejected == rejection.num_rejected
    assert rejection.num_events == 2000
    assert 0.65 < num_rejected / 2000.0 < 0.85


def test_thresholds():
    bins = make_bins(50)
    keep_all = RandomRejection(seed=3, reject_if_above=1.0)
    assert not any(rejected_pattern(keep_all, bins))
    reject_all = RandomRejection(seed=3, reject_if_above=0.0)
    assert all(rejected_pattern(reject_all, bins))


def test_time_frames(caplog):
    rejection = RandomRejection(seed=5)
    bins = make_bins(20)
    frame1 = rejected_pattern(rejection, bins)

    with caplog.at_level(logging.INFO, logger='symproj.projdata.rejection'):
        rejection.start_new_time_frame(2)
    assert any('time frame 1' in rec.getMessage() for rec in caplog.records)
    assert rejection.time_frame_num == 2
    assert rejection.num_events == 0
    assert rejection.num_rejected == 0

    # Decisions depend on the time frame
    frame2 = rejected_pattern(rejection, bins)
    assert frame1 != frame2

    # ... but not on the session, only on the arguments
    event_num = 3
    expected = is_rejected_event(bins[event_num].key, 5, 0.5,
                                 event_num=event_num, time_frame_num=2)
    assert frame2[event_num] == expected


def test_invalid_parameters():
    with pytest.raises(ValueError):
        RandomRejection(seed=0)
    with pytest.raises(ValueError):
        RandomRejection(reject_if_above=1.5)
    with pytest.raises(ValueError):
        RandomRejection(seed=1.5)


if __name__ == '__main__':
    symproj.util.test_file(__file__)
