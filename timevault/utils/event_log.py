"""Thread-safe append-only log of ledger notifications."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any

from timevault.core.enums import EventKind


@dataclass(frozen=True, slots=True)
class LedgerEvent:
    """A single notification for indexers and the off-chain verifier."""

    seq: int
    timestamp: int
    kind: EventKind
    goal_id: int | None = None
    data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "seq": self.seq,
            "timestamp": self.timestamp,
            "kind": self.kind.name,
            "goal_id": self.goal_id,
            "data": dict(self.data),
        }


class EventLog:
    """Unbounded event log. Writers append; readers snapshot a slice.

    Sequence numbers are dense and assigned on append, so a reader can
    resume from the last ``seq`` it saw.
    """

    __slots__ = ("_buffer", "_lock")

    def __init__(self) -> None:
        self._buffer: list[LedgerEvent] = []
        self._lock = threading.Lock()

    def emit(
        self,
        kind: EventKind,
        timestamp: int,
        goal_id: int | None = None,
        **data: Any,
    ) -> LedgerEvent:
        with self._lock:
            event = LedgerEvent(
                seq=len(self._buffer), timestamp=timestamp,
                kind=kind, goal_id=goal_id, data=data,
            )
            self._buffer.append(event)
        return event

    def since(self, seq: int) -> list[LedgerEvent]:
        """Return all events with seq >= *seq*."""
        with self._lock:
            return self._buffer[max(seq, 0):]

    def latest(self, count: int = 50) -> list[LedgerEvent]:
        """Return the *count* most recent events."""
        with self._lock:
            items = list(self._buffer)
        return items[-count:]

    def of_kind(self, kind: EventKind, goal_id: int | None = None) -> list[LedgerEvent]:
        with self._lock:
            return [
                e for e in self._buffer
                if e.kind == kind and (goal_id is None or e.goal_id == goal_id)
            ]

    def __len__(self) -> int:
        with self._lock:
            return len(self._buffer)

    def clear(self) -> None:
        with self._lock:
            self._buffer.clear()
