"""Off-chain verifier: proof retrieval, scoring and score submission."""

from timevault.verifier.client import HttpLedgerClient, InProcessLedgerClient, LedgerClient
from timevault.verifier.scoring import GroqScorer, ProofScorer, ScoreResult
from timevault.verifier.service import VerifierService

__all__ = [
    "GroqScorer",
    "HttpLedgerClient",
    "InProcessLedgerClient",
    "LedgerClient",
    "ProofScorer",
    "ScoreResult",
    "VerifierService",
]
