# Author: PB
# Maintainer: PB
# Original date: 2026.10.17
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ------
# src/snaptrail/changes/stream.py

"""Streaming comparison of two snapshots.

The driver pulls dump lines one at a time from a LineSource, runs them
through the parser, the orphan resolver and the aggregator, and yields
tagged events. The line source is closed on every exit path, including a
consumer that simply stops iterating.
"""

from __future__ import annotations

from typing import Callable, Dict, Final, Iterator, Optional, Tuple

from loguru import logger

from snaptrail.clients.base import LineSource, SnapshotCatalog
from snaptrail.errors import ChangeStreamError, SnapshotNotFoundError

from . import pathcodec
from .aggregator import ChangeAggregator
from .cache import ResultCache
from .models import (
    ChangeEvent,
    ChangeKind,
    ComparisonResult,
    DoneEvent,
    ErrorEvent,
    FileChange,
    ProgressEvent,
    StreamEvent,
)
from .orphans import OrphanResolver
from .parser import parse_line

PROGRESS_INTERVAL: Final = 100  # lines between progress events

LineSourceFactory = Callable[[str, str], LineSource]


class StreamDriver:
    """Produces the change event stream for (old, new) snapshot pairs."""

    def __init__(
        self,
        source_factory: LineSourceFactory,
        cache: Optional[ResultCache] = None,
        catalog: Optional[SnapshotCatalog] = None,
        progress_interval: int = PROGRESS_INTERVAL,
    ):
        """Initialize the driver.

        Args:
            source_factory: Called with (old, new) snapshot paths on a cache
                miss; returns the dump lines for that pair
            cache: Shared result cache, or None to always run the source
            catalog: When given, both snapshot paths must be listed in it
            progress_interval: Emit a progress event every this many lines
        """
        self.source_factory = source_factory
        self.cache = cache
        self.catalog = catalog
        self.progress_interval = progress_interval

    def stream(self, old_snapshot: str, new_snapshot: str, use_cache: bool = True) -> Iterator[StreamEvent]:
        """Return the event stream for one comparison.

        Snapshot lookup happens here, before the first event, so a bad path
        raises SnapshotNotFoundError instead of producing an error event.
        """
        if self.catalog is not None:
            for path in (old_snapshot, new_snapshot):
                if self.catalog.find(path) is None:
                    raise SnapshotNotFoundError(path)
        if not use_cache and self.cache is not None:
            self.cache.invalidate((old_snapshot, new_snapshot))
        return self._events(old_snapshot, new_snapshot)

    def collect(self, old_snapshot: str, new_snapshot: str, use_cache: bool = True) -> ComparisonResult:
        """Drain the stream and return the final deduplicated changes."""
        changes: Dict[Tuple[ChangeKind, str], FileChange] = {}
        for event in self.stream(old_snapshot, new_snapshot, use_cache=use_cache):
            if isinstance(event, ChangeEvent):
                changes[event.data.key] = event.data
            elif isinstance(event, DoneEvent):
                return ComparisonResult(changes=tuple(changes.values()), summary=event.summary)
            elif isinstance(event, ErrorEvent):
                raise ChangeStreamError(event.message)
        raise ChangeStreamError("Change stream ended without a terminal event")

    def _events(self, old_snapshot: str, new_snapshot: str) -> Iterator[StreamEvent]:
        key = (old_snapshot, new_snapshot)
        cached = self.cache.get(key) if self.cache is not None else None
        if cached is not None:
            logger.info(f"Cache hit for {old_snapshot} -> {new_snapshot}")
            for change in cached.changes:
                if not pathcodec.is_orphan(change.path):
                    yield ChangeEvent(data=change)
            yield DoneEvent(message="Loaded from cache", summary=cached.summary)
            return

        logger.info(f"Comparing {old_snapshot} -> {new_snapshot}")
        resolver = OrphanResolver()
        aggregator = ChangeAggregator()
        line_count = 0
        source: Optional[LineSource] = None
        try:
            source = self.source_factory(old_snapshot, new_snapshot)
            for line in source:
                line_count += 1
                if line_count % self.progress_interval == 0:
                    yield ProgressEvent(message=f"Processed {line_count} lines...")

                parsed = parse_line(line)
                if parsed is None:
                    continue
                for change in resolver.feed(parsed):
                    stored = aggregator.add(change)
                    if stored is not None:
                        yield ChangeEvent(data=stored)

            for change in resolver.flush():
                stored = aggregator.add(change)
                if stored is not None:
                    yield ChangeEvent(data=stored)

            result = ComparisonResult(changes=tuple(aggregator.changes()), summary=aggregator.summary())
            if self.cache is not None:
                self.cache.set(key, result)
            logger.info(
                f"Compared {old_snapshot} -> {new_snapshot}: {line_count:,} lines, "
                f"{len(result.changes):,} changes"
            )
            yield DoneEvent(message=f"Completed. Processed {line_count} lines.", summary=result.summary)
        except Exception as e:
            logger.error(f"Change stream {old_snapshot} -> {new_snapshot} failed: {e}")
            yield ErrorEvent(message=str(e))
        finally:
            if source is not None:
                source.close()
