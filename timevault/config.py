"""Ledger configuration with sensible defaults."""

from __future__ import annotations

from dataclasses import dataclass

from timevault.core.enums import AdmissionMode

WEI_PER_COIN = 10**18
DAY_SECONDS = 86_400


@dataclass(frozen=True)
class LedgerConfig:
    """Immutable deployment parameters for a ledger instance."""

    # Identities
    admin: str = "0xadmin"
    oracle: str = "0xoracle"
    ledger_address: str = "0xledger"
    badge_registry_address: str = "0xbadges"
    beneficiary: str | None = None

    # Oracle trust model
    admission_mode: AdmissionMode = AdmissionMode.AUTHORIZED_CALLER
    oracle_key: bytes = b""

    # Stakes
    min_stake: int = WEI_PER_COIN // 100        # 0.01 coin
    beneficiary_share_bps: int = 5000

    # Timing (seconds)
    grace_period: int = DAY_SECONDS
    voting_period: int = 7 * DAY_SECONDS

    # Resolution thresholds
    pass_threshold: int = 75
    fail_threshold: int = 40

    # Badges
    badges_enabled: bool = True

    # API
    faucet_enabled: bool = True

    # Logging / replay
    log_level: str = "INFO"
    replay_file: str = "replay.json"
