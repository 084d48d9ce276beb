"""Mutable authoritative ledger storage — only mutated by the GoalLedger."""

from __future__ import annotations

from timevault.core.errors import GoalNotFoundError
from timevault.core.models import Goal, Streak, Vote


class LedgerState:
    """Persisted layout of the goal ledger.

    Goals are a dense list keyed by sequential id; votes, streaks and the
    owner index are sparse maps. total_staked only falls on withdrawal, so
    a failed goal keeps counting its stake. Running totals satisfy:

        custody   == staked - donated
        deposited == staked + withdrawn
        deposited == open stakes + withdrawn + donated + stranded

    where open stakes are the recorded stakes of goals that have not failed.
    """

    __slots__ = (
        "goals", "owner_goals", "votes", "streaks", "verdict_nonces",
        "total_staked", "total_deposited", "total_withdrawn",
        "total_donated", "total_stranded",
    )

    def __init__(self) -> None:
        self.goals: list[Goal] = []
        self.owner_goals: dict[str, list[int]] = {}
        self.votes: dict[int, Vote] = {}
        self.streaks: dict[str, Streak] = {}
        self.verdict_nonces: dict[int, int] = {}
        self.total_staked: int = 0
        self.total_deposited: int = 0
        self.total_withdrawn: int = 0
        self.total_donated: int = 0
        self.total_stranded: int = 0

    @property
    def goal_count(self) -> int:
        return len(self.goals)

    def next_goal_id(self) -> int:
        return len(self.goals)

    def add_goal(self, goal: Goal) -> None:
        self.goals.append(goal)
        self.owner_goals.setdefault(goal.owner, []).append(goal.id)

    def goal(self, goal_id: int) -> Goal:
        if goal_id < 0 or goal_id >= len(self.goals):
            raise GoalNotFoundError(goal_id)
        return self.goals[goal_id]

    def goals_of(self, owner: str) -> list[int]:
        return list(self.owner_goals.get(owner, []))

    def streak(self, owner: str) -> Streak:
        """Return the owner's streak, creating it on first use."""
        streak = self.streaks.get(owner)
        if streak is None:
            streak = Streak()
            self.streaks[owner] = streak
        return streak
