"""Verifier service: watches for proof submissions, scores them, pushes scores.

Each goal is scored at most once per process. A goal whose fetch, scoring
or submission fails is not marked processed and is retried on the next
proof event for it.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable

import httpx

from timevault.core.errors import LedgerError
from timevault.verifier.client import LedgerClient
from timevault.verifier.proof_content import ProofFetchError, fetch_proof, parse_proof_content
from timevault.verifier.scoring import ProofScorer, ScoreResult, ScoringError

logger = logging.getLogger(__name__)

_RECOVERABLE = (ProofFetchError, ScoringError, LedgerError, httpx.HTTPError)
_MALFORMED_FEED = (KeyError, TypeError, ValueError)


class VerifierService:
    """Polls the ledger event feed and resolves proofs through a scorer."""

    def __init__(
        self,
        client: LedgerClient,
        scorer: ProofScorer,
        *,
        fetcher: Callable[[str], str] = fetch_proof,
        poll_seconds: float = 5.0,
        pass_threshold: int = 75,
        fail_threshold: int = 40,
    ) -> None:
        self._client = client
        self._scorer = scorer
        self._fetch = fetcher
        self._poll_seconds = poll_seconds
        self._pass_threshold = pass_threshold
        self._fail_threshold = fail_threshold

        self._processed: set[int] = set()
        self._processing: set[int] = set()
        self._next_seq = 0
        self._stop_requested = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def processed(self) -> frozenset[int]:
        return frozenset(self._processed)

    @property
    def next_seq(self) -> int:
        return self._next_seq

    # -- lifecycle --

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop_requested.clear()
        self._thread = threading.Thread(target=self.run, name="verifier-loop", daemon=True)
        self._thread.start()

    def stop(self, timeout: float | None = None) -> None:
        self._stop_requested.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def run(self) -> None:
        """Poll until ``stop()`` is called."""
        logger.info("Verifier running as %s (poll every %.1fs)", self._client.oracle, self._poll_seconds)
        while not self._stop_requested.is_set():
            try:
                self.poll_once()
            except httpx.HTTPError as exc:
                logger.warning("Event poll failed: %s", exc)
            except _MALFORMED_FEED as exc:
                logger.warning("Malformed event feed near seq %d: %r", self._next_seq, exc)
            self._stop_requested.wait(self._poll_seconds)
        logger.info("Verifier stopped.")

    # -- processing --

    def poll_once(self) -> int:
        """Handle every new event. Returns how many proofs were scored."""
        events, self._next_seq = self._client.events_since(self._next_seq)
        scored = 0
        for event in events:
            try:
                scored += self._handle_event(event)
            except _MALFORMED_FEED as exc:
                logger.warning("Skipping malformed event %r: %r", event, exc)
        return scored

    def _handle_event(self, event: dict[str, Any]) -> int:
        kind = event["kind"]
        if kind == "GOAL_CREATED":
            data = event["data"]
            logger.info("Goal #%s created by %s: %s",
                        event["goal_id"], data.get("owner"), data.get("description"))
        elif kind == "GOAL_VERIFIED":
            data = event["data"]
            logger.info("Goal #%s verified: score=%s passed=%s",
                        event["goal_id"], data.get("score"), data.get("passed"))
        elif kind == "PROOF_SUBMITTED":
            result = self.process_proof_submission(event["goal_id"], event["data"]["proof_reference"])
            return int(result is not None)
        return 0

    def process_proof_submission(self, goal_id: int, proof_reference: str) -> ScoreResult | None:
        if goal_id in self._processed or goal_id in self._processing:
            logger.debug("Goal #%d already handled; skipping", goal_id)
            return None
        self._processing.add(goal_id)
        try:
            return self._score_and_submit(goal_id, proof_reference)
        except _RECOVERABLE as exc:
            logger.error("Error processing goal #%d: %s", goal_id, exc)
            return None
        finally:
            self._processing.discard(goal_id)

    def _score_and_submit(self, goal_id: int, proof_reference: str) -> ScoreResult | None:
        goal: dict[str, Any] = self._client.get_goal(goal_id)
        if goal["status"] != "ACTIVE":
            logger.info("Goal #%d is already %s; nothing to score", goal_id, goal["status"])
            self._processed.add(goal_id)
            return None

        logger.info("Goal #%d: fetching proof %s", goal_id, proof_reference)
        proof_text = parse_proof_content(self._fetch(proof_reference))
        result = self._scorer.score(goal["description"], proof_text)
        logger.info("Goal #%d scored %d: %s", goal_id, result.score, result.reason)

        status = self._client.submit_score(goal_id, result.score, result.reason)
        self._processed.add(goal_id)
        logger.info("Goal #%d %s (ledger status %s)", goal_id, self._band(result.score), status)
        return result

    def _band(self, score: int) -> str:
        if score >= self._pass_threshold:
            return "passed, stake can be withdrawn"
        if score < self._fail_threshold:
            return "failed, stake forfeited"
        return "in review, community vote opened"
