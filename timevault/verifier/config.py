from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class VerifierConfig:
    api_url: str
    oracle: str
    oracle_key: bytes | None
    groq_api_key: str | None
    groq_model: str
    gateway_url: str
    fetch_timeout: float
    scoring_timeout: float
    poll_seconds: float
    pass_threshold: int = 75
    fail_threshold: int = 40


def get_verifier_config() -> VerifierConfig:
    key_hex = os.getenv("ORACLE_KEY_HEX", "").strip()
    return VerifierConfig(
        api_url=os.getenv("TIMEVAULT_API_URL", "http://127.0.0.1:8000"),
        oracle=os.getenv("ORACLE_ADDRESS", "0xoracle"),
        oracle_key=bytes.fromhex(key_hex) if key_hex else None,
        groq_api_key=os.getenv("GROQ_API_KEY"),
        groq_model=os.getenv("GROQ_MODEL", "llama-3.3-70b-versatile"),
        gateway_url=os.getenv("IPFS_GATEWAY_URL", "https://gateway.pinata.cloud/ipfs"),
        fetch_timeout=float(os.getenv("PROOF_FETCH_TIMEOUT", "30")),
        scoring_timeout=float(os.getenv("SCORING_TIMEOUT", "30")),
        poll_seconds=float(os.getenv("VERIFIER_POLL_SECONDS", "5")),
    )
