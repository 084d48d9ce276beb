"""Proof scoring through an external reasoning service.

ProofScorer  — Abstract base; subclass and implement ``score()``.
GroqScorer   — Llama 3.3 70B via Groq's OpenAI-compatible chat endpoint.

The service's answer is never trusted as-is: unparseable responses become
score 0 with a diagnostic reason, and every score is clamped into [0, 100]
before it can reach the ledger.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

import httpx

logger = logging.getLogger(__name__)

GROQ_BASE_URL = "https://api.groq.com/openai/v1"
DEFAULT_MODEL = "llama-3.3-70b-versatile"
PARSE_FAILURE_REASON = "Failed to parse AI response"

SYSTEM_PROMPT = """You are a strict but fair goal completion verifier for TimeVault.
Score the proof 0-100 based on how well it proves the goal was completed.
Respond ONLY in valid JSON with no markdown: { "score": number, "reason": "short explanation" }

Scoring guide:
- 75-100: Clear, specific proof directly evidencing completion
- 40-74:  Partial or ambiguous proof, needs human review
- 0-39:   No real proof, vague, or clearly incomplete

Be harsh on lazy submissions but fair to genuine attempts."""


class ScoringError(Exception):
    """The scoring service could not be reached or returned an error."""


@dataclass(frozen=True, slots=True)
class ScoreResult:
    score: int
    reason: str


def clamp_score(value: Any) -> int:
    """Coerce *value* to an int in [0, 100]; non-numeric values become 0."""
    try:
        numeric = float(value)
    except (TypeError, ValueError):
        return 0
    if numeric != numeric:
        return 0
    return int(round(min(100.0, max(0.0, numeric))))


def _extract_json(text: str) -> dict[str, Any] | None:
    candidates: list[str] = [text.strip()]
    stripped = text.strip()
    if stripped.startswith("```"):
        first_nl = stripped.find("\n")
        last_fence = stripped.rfind("```")
        if first_nl != -1 and last_fence > first_nl:
            candidates.append(stripped[first_nl + 1:last_fence].strip())

    start = text.find("{")
    end = text.rfind("}")
    if start != -1 and end > start:
        candidates.append(text[start:end + 1])

    for candidate in candidates:
        if not candidate:
            continue
        try:
            parsed = json.loads(candidate)
        except ValueError:
            continue
        if isinstance(parsed, dict):
            return parsed
    return None


def parse_score_response(raw: str) -> ScoreResult:
    parsed = _extract_json(raw or "")
    if parsed is None:
        logger.error("Failed to parse scoring response: %r", raw)
        return ScoreResult(score=0, reason=PARSE_FAILURE_REASON)
    reason = parsed.get("reason")
    if not isinstance(reason, str) or not reason.strip():
        reason = "No reason provided"
    return ScoreResult(score=clamp_score(parsed.get("score") or 0), reason=reason.strip())


class ProofScorer(ABC):

    @abstractmethod
    def score(self, goal_description: str, proof_text: str) -> ScoreResult:
        """Score how well *proof_text* evidences completion of the goal."""


class GroqScorer(ProofScorer):

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        *,
        client: httpx.Client | None = None,
        base_url: str = GROQ_BASE_URL,
        timeout: float = 30.0,
    ) -> None:
        if not api_key:
            raise ValueError("GroqScorer requires an API key")
        self._model = model
        self._client = client or httpx.Client(base_url=base_url, timeout=timeout)
        self._headers = {"Authorization": f"Bearer {api_key}"}

    def score(self, goal_description: str, proof_text: str) -> ScoreResult:
        payload = {
            "model": self._model,
            "max_tokens": 300,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": f"GOAL: {goal_description}\n\nPROOF SUBMITTED: {proof_text}"},
            ],
        }
        try:
            response = self._client.post("/chat/completions", json=payload, headers=self._headers)
            response.raise_for_status()
            body = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise ScoringError(f"Groq scoring failed: {exc}") from exc

        try:
            raw = body["choices"][0]["message"]["content"] or "{}"
        except (KeyError, IndexError, TypeError):
            logger.error("Unexpected Groq response shape: %r", body)
            return ScoreResult(score=0, reason=PARSE_FAILURE_REASON)
        return parse_score_response(raw)

    def close(self) -> None:
        self._client.close()
