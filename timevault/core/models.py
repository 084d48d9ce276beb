"""Ledger records: goals, votes, streaks and badges."""

from __future__ import annotations

from dataclasses import dataclass, field

from timevault.core.enums import Category, GoalStatus


@dataclass(slots=True)
class Goal:
    """A staked commitment with a deadline and resolution status."""

    id: int
    owner: str
    stake_amount: int
    deadline: int
    created_at: int
    category: Category
    description: str
    score: int = 0
    scored: bool = False            # Distinguishes "not yet scored" from "scored 0"
    status: GoalStatus = GoalStatus.ACTIVE
    proof_reference: str = ""

    @property
    def resolved(self) -> bool:
        return self.status.terminal

    def copy(self) -> Goal:
        return Goal(
            id=self.id,
            owner=self.owner,
            stake_amount=self.stake_amount,
            deadline=self.deadline,
            created_at=self.created_at,
            category=self.category,
            description=self.description,
            score=self.score,
            scored=self.scored,
            status=self.status,
            proof_reference=self.proof_reference,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "owner": self.owner,
            "stake_amount": self.stake_amount,
            "deadline": self.deadline,
            "created_at": self.created_at,
            "category": self.category.name,
            "description": self.description,
            "score": self.score,
            "scored": self.scored,
            "status": self.status.name,
            "proof_reference": self.proof_reference,
        }


@dataclass(slots=True)
class Vote:
    """Simple-majority community vote on a mid-range goal."""

    goal_id: int
    opened_at: int
    voting_deadline: int            # Advisory; never enforced
    yes_count: int = 0
    no_count: int = 0
    voters: set[str] = field(default_factory=set)
    resolved: bool = False
    outcome: bool = False

    def has_voted(self, voter: str) -> bool:
        return voter in self.voters

    def cast(self, voter: str, support: bool) -> None:
        self.voters.add(voter)
        if support:
            self.yes_count += 1
        else:
            self.no_count += 1

    def tally(self) -> bool:
        """Ties resolve to fail."""
        return self.yes_count > self.no_count

    def copy(self) -> Vote:
        return Vote(
            goal_id=self.goal_id,
            opened_at=self.opened_at,
            voting_deadline=self.voting_deadline,
            yes_count=self.yes_count,
            no_count=self.no_count,
            voters=set(self.voters),
            resolved=self.resolved,
            outcome=self.outcome,
        )

    def to_dict(self) -> dict:
        return {
            "goal_id": self.goal_id,
            "opened_at": self.opened_at,
            "voting_deadline": self.voting_deadline,
            "yes_count": self.yes_count,
            "no_count": self.no_count,
            "voters": sorted(self.voters),
            "resolved": self.resolved,
            "outcome": self.outcome,
        }


@dataclass(slots=True)
class Streak:
    """Consecutive-completion counter for one identity."""

    current: int = 0
    highest: int = 0

    def record_success(self) -> int:
        self.current += 1
        if self.current > self.highest:
            self.highest = self.current
        return self.current

    def record_failure(self) -> None:
        self.current = 0

    def copy(self) -> Streak:
        return Streak(current=self.current, highest=self.highest)


@dataclass(frozen=True, slots=True)
class Badge:
    """Immutable achievement metadata bound to a holder at mint time."""

    badge_id: int
    goal_id: int
    category: Category
    completed_at: int
    streak_at_mint: int

    def to_dict(self) -> dict:
        return {
            "badge_id": self.badge_id,
            "goal_id": self.goal_id,
            "category": self.category.name,
            "completed_at": self.completed_at,
            "streak_at_mint": self.streak_at_mint,
        }
