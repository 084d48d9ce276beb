"""Ledger access for the verifier.

LedgerClient          — Abstract base the verifier service talks to.
HttpLedgerClient      — Talks to a running ledger over the REST API.
InProcessLedgerClient — Calls a LedgerManager directly (tests, single-process runs).

When a signer is supplied, every score is submitted with the next nonce
for the goal and the oracle's signature over it; otherwise the client
relies on being the authorized oracle identity.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

import httpx

if TYPE_CHECKING:
    from timevault.api.ledger_manager import LedgerManager
    from timevault.engine.admission import OracleSigner


class LedgerClient(ABC):

    def __init__(self, oracle: str, signer: OracleSigner | None = None) -> None:
        self.oracle = oracle
        self._signer = signer

    @abstractmethod
    def events_since(self, seq: int) -> tuple[list[dict[str, Any]], int]:
        """Return (events with seq >= *seq*, next seq to poll from)."""

    @abstractmethod
    def get_goal(self, goal_id: int) -> dict[str, Any]:
        ...

    @abstractmethod
    def next_nonce(self, goal_id: int) -> int:
        ...

    @abstractmethod
    def _post_score(
        self, goal_id: int, score: int, reason: str,
        nonce: int | None, signature: str | None,
    ) -> str:
        ...

    def submit_score(self, goal_id: int, score: int, reason: str = "") -> str:
        """Push a score to the ledger. Returns the goal status name afterwards."""
        nonce = signature = None
        if self._signer is not None:
            nonce = self.next_nonce(goal_id)
            signature = self._signer.sign(goal_id, score, nonce)
        return self._post_score(goal_id, score, reason, nonce, signature)


class HttpLedgerClient(LedgerClient):

    def __init__(
        self,
        base_url: str,
        oracle: str,
        signer: OracleSigner | None = None,
        *,
        client: httpx.Client | None = None,
        timeout: float = 10.0,
    ) -> None:
        super().__init__(oracle, signer)
        self._client = client or httpx.Client(base_url=base_url, timeout=timeout)
        self._headers = {"X-Caller": oracle}

    def events_since(self, seq: int) -> tuple[list[dict[str, Any]], int]:
        response = self._client.get("/api/v1/events", params={"since": seq})
        response.raise_for_status()
        body = response.json()
        return body["events"], body["next_seq"]

    def get_goal(self, goal_id: int) -> dict[str, Any]:
        response = self._client.get(f"/api/v1/goals/{goal_id}")
        response.raise_for_status()
        return response.json()

    def next_nonce(self, goal_id: int) -> int:
        response = self._client.get(f"/api/v1/goals/{goal_id}/nonce")
        response.raise_for_status()
        return response.json()["next_nonce"]

    def _post_score(
        self, goal_id: int, score: int, reason: str,
        nonce: int | None, signature: str | None,
    ) -> str:
        response = self._client.post(
            f"/api/v1/goals/{goal_id}/score",
            json={"score": score, "reason": reason, "nonce": nonce, "signature": signature},
            headers=self._headers,
        )
        response.raise_for_status()
        return response.json()["status"]

    def close(self) -> None:
        self._client.close()


class InProcessLedgerClient(LedgerClient):

    def __init__(self, manager: LedgerManager, oracle: str, signer: OracleSigner | None = None) -> None:
        super().__init__(oracle, signer)
        self._manager = manager

    def events_since(self, seq: int) -> tuple[list[dict[str, Any]], int]:
        events = self._manager.event_log.since(seq)
        next_seq = events[-1].seq + 1 if events else seq
        return [e.to_dict() for e in events], next_seq

    def get_goal(self, goal_id: int) -> dict[str, Any]:
        return self._manager.read(lambda ledger: ledger.get_goal(goal_id).to_dict())

    def next_nonce(self, goal_id: int) -> int:
        return self._manager.read(lambda ledger: ledger.next_nonce(goal_id))

    def _post_score(
        self, goal_id: int, score: int, reason: str,
        nonce: int | None, signature: str | None,
    ) -> str:
        status = self._manager.execute(
            "set_score", self.oracle, goal_id=goal_id, score=score,
            nonce=nonce, signature=signature, reason=reason,
        )
        return status.name
