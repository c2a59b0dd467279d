# Author: PB
# Maintainer: PB
# Original date: 2026.10.17
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ------
# snaptrail/tests/test_cache.py

import pytest

from snaptrail.changes.cache import ResultCache
from snaptrail.changes.models import ChangeKind, ChangeSummary, ComparisonResult, FileChange

KEY = ("/@snapshots/s0", "/@snapshots/s1")


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def result():
    change = FileChange(kind=ChangeKind.LINK, path="a.txt")
    return ComparisonResult(changes=(change,), summary=ChangeSummary(added=1))


class TestResultCache:

    def test_hit_within_ttl(self, clock, result):
        cache = ResultCache(ttl=60, clock=clock)
        cache.set(KEY, result)
        clock.now += 59
        assert cache.get(KEY) == result

    def test_expired_entry_is_evicted(self, clock, result):
        cache = ResultCache(ttl=60, clock=clock)
        cache.set(KEY, result)
        clock.now += 60
        assert cache.get(KEY) is None
        assert len(cache) == 0

    def test_pairs_are_ordered(self, clock, result):
        cache = ResultCache(ttl=60, clock=clock)
        cache.set(KEY, result)
        assert cache.get((KEY[1], KEY[0])) is None

    def test_set_overwrites_and_restarts_ttl(self, clock, result):
        cache = ResultCache(ttl=60, clock=clock)
        cache.set(KEY, result)
        clock.now += 50
        newer = ComparisonResult(changes=(), summary=ChangeSummary())
        cache.set(KEY, newer)
        clock.now += 50
        assert cache.get(KEY) == newer

    def test_invalidate_and_clear(self, clock, result):
        cache = ResultCache(ttl=60, clock=clock)
        cache.set(KEY, result)
        cache.set(("a", "b"), result)

        cache.invalidate(KEY)
        cache.invalidate(KEY)
        assert cache.get(KEY) is None
        assert len(cache) == 1

        cache.clear()
        assert len(cache) == 0
