"""Replay serialization — records ledger calls for deterministic re-execution."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

REPLAY_VERSION = "1.0"


class ReplayRecorder:
    """Accumulates entry-point calls and flushes them to a JSON replay file.

    Rejected calls are recorded too: replaying them must reject again
    without changing state.
    """

    __slots__ = ("_path", "_calls", "_label")

    def __init__(self, path: str | Path, label: str = "") -> None:
        self._path = Path(path)
        self._label = label
        self._calls: list[dict[str, Any]] = []

    def record_call(
        self,
        timestamp: int,
        op: str,
        caller: str,
        args: dict[str, Any],
        error: str | None = None,
    ) -> None:
        self._calls.append(
            {
                "timestamp": timestamp,
                "op": op,
                "caller": caller,
                "args": dict(args),
                "ok": error is None,
                "error": error,
            }
        )

    @property
    def calls(self) -> list[dict[str, Any]]:
        return list(self._calls)

    def flush(self, fingerprint: str | None = None) -> None:
        """Write accumulated data to disk."""
        replay = {
            "version": REPLAY_VERSION,
            "label": self._label,
            "total_calls": len(self._calls),
            "fingerprint": fingerprint,
            "calls": self._calls,
        }
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(replay, indent=2), encoding="utf-8")
        logger.info("Replay saved to %s (%d calls)", self._path, len(self._calls))


def load_replay(path: str | Path) -> dict[str, Any]:
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if data.get("version") != REPLAY_VERSION:
        raise ValueError(f"Unsupported replay version {data.get('version')!r}")
    return data
