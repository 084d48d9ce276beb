"""Core data models and ledger state."""

from timevault.core.bank import Bank
from timevault.core.enums import AdmissionMode, Category, EventKind, GoalStatus
from timevault.core.ledger_state import LedgerState
from timevault.core.models import Badge, Goal, Streak, Vote
from timevault.core.snapshot import Snapshot

__all__ = [
    "AdmissionMode",
    "Badge",
    "Bank",
    "Category",
    "EventKind",
    "Goal",
    "GoalStatus",
    "LedgerState",
    "Snapshot",
    "Streak",
    "Vote",
]
