# Author: PB
# Maintainer: PB
# Original date: 2026.10.17
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ------
# src/snaptrail/changes/cache.py

"""Time-boxed memoization of finished comparisons."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Final, Optional, Tuple

from loguru import logger

from .models import ComparisonResult

DEFAULT_CACHE_TTL: Final = 60 * 60  # seconds

CacheKey = Tuple[str, str]  # (old snapshot path, new snapshot path)


@dataclass(frozen=True)
class CacheEntry:
    result: ComparisonResult
    stored_at: float


class ResultCache:
    """Thread-safe map of (old, new) snapshot pairs to comparison results.

    Entries expire lazily: a read older than the TTL evicts the entry and
    reports a miss. There is no size bound.
    """

    def __init__(self, ttl: float = DEFAULT_CACHE_TTL, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self._clock = clock
        self._entries: Dict[CacheKey, CacheEntry] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get(self, key: CacheKey) -> Optional[ComparisonResult]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._clock() - entry.stored_at < self.ttl:
                return entry.result
            del self._entries[key]
        logger.debug(f"Cache entry for {key[0]} -> {key[1]} expired")
        return None

    def set(self, key: CacheKey, result: ComparisonResult) -> None:
        with self._lock:
            self._entries[key] = CacheEntry(result=result, stored_at=self._clock())

    def invalidate(self, key: CacheKey) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
