"""Time sources for the ledger.

The ledger never reads wall-clock time directly; it asks an injected clock.
Tests and replays use ``ManualClock`` so every run sees the same timestamps.
``PinnedClock`` freezes any source for the duration of one call.
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Callable, Iterator


class SystemClock:
    """Wall-clock unix seconds."""

    __slots__ = ()

    def __call__(self) -> int:
        return int(time.time())


class ManualClock:
    """A clock that only moves when told to."""

    __slots__ = ("_now",)

    def __init__(self, now: int = 1_700_000_000) -> None:
        self._now = now

    def __call__(self) -> int:
        return self._now

    def set(self, now: int) -> None:
        self._now = now

    def advance(self, seconds: int) -> int:
        self._now += seconds
        return self._now


class PinnedClock:
    """Reads through to *source* except while pinned.

    Inside ``pin()`` every reading returns the instant taken on entry, so a
    call and everything it triggers share one timestamp. Nested pins keep
    the outer instant.
    """

    __slots__ = ("_source", "_pinned")

    def __init__(self, source: Callable[[], int]) -> None:
        self._source = source
        self._pinned: int | None = None

    def __call__(self) -> int:
        if self._pinned is not None:
            return self._pinned
        return self._source()

    @contextmanager
    def pin(self) -> Iterator[int]:
        if self._pinned is not None:
            yield self._pinned
            return
        self._pinned = self._source()
        try:
            yield self._pinned
        finally:
            self._pinned = None
