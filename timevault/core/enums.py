"""Enumerations used throughout the ledger."""

from __future__ import annotations

from enum import IntEnum, unique


@unique
class GoalStatus(IntEnum):
    """Lifecycle states of a goal. COMPLETED and FAILED are terminal."""

    ACTIVE = 0
    COMPLETED = 1
    FAILED = 2
    DISPUTED = 3        # Reserved; mid-range goals stay tagged ACTIVE

    @property
    def terminal(self) -> bool:
        return self in (GoalStatus.COMPLETED, GoalStatus.FAILED)


@unique
class Category(IntEnum):
    """Closed set of goal categories used for badges and display."""

    HEALTH = 0
    WORK = 1
    LEARNING = 2
    FITNESS = 3
    FINANCE = 4
    OTHER = 5


@unique
class AdmissionMode(IntEnum):
    """How oracle verdicts are admitted into the ledger."""

    AUTHORIZED_CALLER = 0   # Only the registered oracle identity may call
    SIGNED = 1              # Anyone may relay a verdict signed by the oracle


@unique
class EventKind(IntEnum):
    """Notifications emitted by the ledger and badge registry."""

    GOAL_CREATED = 0
    PROOF_SUBMITTED = 1
    VERIFICATION_COMPLETE = 2
    GOAL_VERIFIED = 3
    GOAL_RESOLVED = 4
    VOTE_OPENED = 5
    VOTE_CAST = 6
    VOTE_RESOLVED = 7
    BADGE_MINTED = 8
    BADGE_BURNED = 9
    BENEFICIARY_DONATION = 10
    STAKE_WITHDRAWN = 11
    CONFIG_UPDATED = 12
