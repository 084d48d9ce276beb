"""Immutable snapshot of the ledger for API readers."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

from timevault.core.ledger_state import LedgerState
from timevault.core.models import Goal, Streak, Vote


@dataclass(frozen=True, slots=True)
class Snapshot:
    """Read-only view of the ledger, safe to hand across threads.

    Records are copied and exposed through MappingProxyType so readers
    cannot mutate authoritative state.
    """

    timestamp: int
    goals: tuple[Goal, ...]
    votes: Mapping[int, Vote]
    streaks: Mapping[str, Streak]
    total_staked: int
    total_deposited: int
    total_withdrawn: int
    total_donated: int
    total_stranded: int
    custody_balance: int
    admin: str
    oracle: str
    admission_mode: str
    min_stake: int
    voting_period: int
    grace_period: int
    beneficiary: str | None
    beneficiary_share_bps: int
    badge_registry: str | None

    @classmethod
    def from_state(cls, state: LedgerState, *, timestamp: int, custody_balance: int, **settings) -> Snapshot:
        return cls(
            timestamp=timestamp,
            goals=tuple(g.copy() for g in state.goals),
            votes=MappingProxyType({gid: v.copy() for gid, v in state.votes.items()}),
            streaks=MappingProxyType({owner: s.copy() for owner, s in state.streaks.items()}),
            total_staked=state.total_staked,
            total_deposited=state.total_deposited,
            total_withdrawn=state.total_withdrawn,
            total_donated=state.total_donated,
            total_stranded=state.total_stranded,
            custody_balance=custody_balance,
            **settings,
        )

    @property
    def goal_count(self) -> int:
        return len(self.goals)

    def goals_by_status(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for g in self.goals:
            counts[g.status.name] = counts.get(g.status.name, 0) + 1
        return counts
