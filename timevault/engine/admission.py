"""Verdict admission — who may push an oracle score into the ledger.

VerdictAdmission           — Abstract base; ``admit()`` raises on rejection.
AuthorizedCallerAdmission  — Only the registered oracle identity may call.
SignedVerdictAdmission     — Anyone may relay a verdict carrying the oracle's
                             HMAC-SHA256 signature over (oracle, goal, score,
                             nonce); nonces are strictly increasing per goal.
OracleSigner               — Produces signatures for the signed mode.
"""

from __future__ import annotations

import hashlib
import hmac
from abc import ABC, abstractmethod

from timevault.core.enums import AdmissionMode
from timevault.core.errors import AuthorizationError, LedgerValidationError


def verdict_message(oracle: str, goal_id: int, score: int, nonce: int) -> bytes:
    """Canonical byte string that a verdict signature covers."""
    return f"timevault-verdict|{oracle}|{goal_id}|{score}|{nonce}".encode("utf-8")


class OracleSigner:
    """Holds the oracle key and signs verdicts off-chain."""

    __slots__ = ("oracle", "_key")

    def __init__(self, oracle: str, key: bytes) -> None:
        self.oracle = oracle
        self._key = key

    def sign(self, goal_id: int, score: int, nonce: int) -> str:
        digest = hmac.new(self._key, verdict_message(self.oracle, goal_id, score, nonce), hashlib.sha256)
        return digest.hexdigest()


class VerdictAdmission(ABC):
    """Gate in front of ``set_score`` / ``set_binary_verdict``."""

    def __init__(self, oracle: str) -> None:
        self._oracle = oracle

    @property
    def oracle(self) -> str:
        return self._oracle

    @property
    @abstractmethod
    def mode(self) -> AdmissionMode:
        """Trust model implemented by this admission."""

    @abstractmethod
    def admit(
        self,
        caller: str,
        goal_id: int,
        score: int,
        nonce: int | None,
        signature: str | None,
        last_nonce: int,
    ) -> int | None:
        """Accept or reject a verdict.

        Returns the nonce to record for the goal (None when the mode does
        not use nonces). Raises AuthorizationError on rejection and must
        not mutate anything.
        """

    def rotate(self, oracle: str, key: bytes | None = None) -> None:
        self._oracle = oracle


class AuthorizedCallerAdmission(VerdictAdmission):

    @property
    def mode(self) -> AdmissionMode:
        return AdmissionMode.AUTHORIZED_CALLER

    def admit(self, caller, goal_id, score, nonce, signature, last_nonce):
        if caller != self._oracle:
            raise AuthorizationError("Only the oracle may post verdicts")
        return None


class SignedVerdictAdmission(VerdictAdmission):

    def __init__(self, oracle: str, key: bytes) -> None:
        super().__init__(oracle)
        if not key:
            raise LedgerValidationError("Signed admission requires a non-empty oracle key")
        self._key = key

    @property
    def mode(self) -> AdmissionMode:
        return AdmissionMode.SIGNED

    def admit(self, caller, goal_id, score, nonce, signature, last_nonce):
        if nonce is None or signature is None:
            raise AuthorizationError("Signed verdicts require a nonce and signature")
        if nonce <= last_nonce:
            raise AuthorizationError(f"Stale nonce {nonce} (last accepted {last_nonce})")
        expected = OracleSigner(self._oracle, self._key).sign(goal_id, score, nonce)
        if not hmac.compare_digest(expected, signature):
            raise AuthorizationError("Invalid oracle signature")
        return nonce

    def rotate(self, oracle: str, key: bytes | None = None) -> None:
        super().rotate(oracle)
        if key:
            self._key = key


def build_admission(mode: AdmissionMode, oracle: str, key: bytes = b"") -> VerdictAdmission:
    """Select the admission strategy at deployment."""
    if mode == AdmissionMode.SIGNED:
        return SignedVerdictAdmission(oracle, key)
    return AuthorizedCallerAdmission(oracle)
