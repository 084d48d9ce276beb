"""Goal ledger — custody of staked value and the goal state machine.

Lifecycle::

    ACTIVE --score >= 75 / verdict pass--> COMPLETED --withdraw--> (stake returned)
    ACTIVE --score <  40 / verdict fail--> FAILED   (donation + stranded residual)
    ACTIVE --40 <= score < 75--> ACTIVE with an open vote --resolve_vote--> COMPLETED | FAILED

Every entry point validates fully before mutating. Entry points that make
external calls (value transfers, badge mint) are guarded against re-entry
and finalize bookkeeping before the call goes out. Badge minting and
beneficiary donations are best-effort; withdrawals are all-or-nothing.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable

from timevault.core.enums import AdmissionMode, Category, EventKind, GoalStatus
from timevault.core.errors import (
    AuthorizationError,
    LedgerValidationError,
    StateError,
    TransferError,
)
from timevault.core.ledger_state import LedgerState
from timevault.core.models import Goal, Streak, Vote
from timevault.core.snapshot import Snapshot
from timevault.engine.admission import VerdictAdmission, build_admission
from timevault.engine.guard import nonreentrant
from timevault.systems.clock import SystemClock
from timevault.utils.event_log import EventLog

if TYPE_CHECKING:
    from timevault.config import LedgerConfig
    from timevault.core.bank import Bank
    from timevault.engine.badge_registry import BadgeRegistry

logger = logging.getLogger(__name__)

BPS_DENOMINATOR = 10_000
MAX_SCORE = 100


class GoalLedger:
    """The goal-resolution contract.

    ``caller`` is the first argument of every entry point and stands in for
    the transaction sender. Amounts are integers in the smallest value unit.
    """

    def __init__(
        self,
        config: LedgerConfig,
        bank: Bank,
        *,
        events: EventLog | None = None,
        badge_registry: BadgeRegistry | None = None,
        clock: Callable[[], int] | None = None,
        admission: VerdictAdmission | None = None,
    ) -> None:
        if config.fail_threshold > config.pass_threshold:
            raise LedgerValidationError("fail_threshold must not exceed pass_threshold")
        self._config = config
        self._bank = bank
        self._events = events if events is not None else EventLog()
        self._clock = clock or SystemClock()
        self._state = LedgerState()
        self._entered = False

        self._address = config.ledger_address
        self._admin = config.admin
        self._admission = admission or build_admission(
            config.admission_mode, config.oracle, config.oracle_key,
        )
        self._min_stake = config.min_stake
        self._voting_period = config.voting_period
        self._beneficiary = config.beneficiary
        self._beneficiary_share_bps = config.beneficiary_share_bps
        self._badge_registry = badge_registry if config.badges_enabled else None
        self._validate_share(self._beneficiary_share_bps)

    # -- properties --

    @property
    def address(self) -> str:
        return self._address

    @property
    def admin(self) -> str:
        return self._admin

    @property
    def oracle(self) -> str:
        return self._admission.oracle

    @property
    def admission_mode(self) -> AdmissionMode:
        return self._admission.mode

    @property
    def min_stake(self) -> int:
        return self._min_stake

    @property
    def voting_period(self) -> int:
        return self._voting_period

    @property
    def grace_period(self) -> int:
        return self._config.grace_period

    @property
    def beneficiary(self) -> str | None:
        return self._beneficiary

    @property
    def beneficiary_share_bps(self) -> int:
        return self._beneficiary_share_bps

    @property
    def badge_registry(self) -> BadgeRegistry | None:
        return self._badge_registry

    @property
    def events(self) -> EventLog:
        return self._events

    @property
    def bank(self) -> Bank:
        return self._bank

    def now(self) -> int:
        return self._clock()

    # ------------------------------------------------------------------
    # Creation & proof submission
    # ------------------------------------------------------------------

    def create_goal(
        self,
        caller: str,
        deadline: int,
        category: int,
        description: str,
        stake: int,
    ) -> int:
        """Lock *stake* from the caller against a new goal. Returns the goal id."""
        now = self.now()
        if stake < self._min_stake:
            raise LedgerValidationError(f"Stake {stake} below minimum {self._min_stake}")
        if deadline <= now:
            raise LedgerValidationError("Deadline must be in the future")
        if not description or not description.strip():
            raise LedgerValidationError("Description must be non-empty")
        try:
            category = Category(category)
        except ValueError:
            raise LedgerValidationError(f"Unknown category {category!r}") from None

        # Value travels with the call; nothing is recorded if it cannot move
        self._bank.transfer(caller, self._address, stake)

        goal_id = self._state.next_goal_id()
        goal = Goal(
            id=goal_id, owner=caller, stake_amount=stake, deadline=deadline,
            created_at=now, category=category, description=description,
        )
        self._state.add_goal(goal)
        self._state.total_staked += stake
        self._state.total_deposited += stake

        self._events.emit(
            EventKind.GOAL_CREATED, now, goal_id,
            owner=caller, stake=stake, deadline=deadline,
            category=category.name, description=description,
        )
        logger.info("Goal #%d created by %s (stake=%d, deadline=%d)", goal_id, caller, stake, deadline)
        return goal_id

    def submit_proof(self, caller: str, goal_id: int, proof_reference: str) -> None:
        goal = self._state.goal(goal_id)
        if caller != goal.owner:
            raise AuthorizationError("Only the goal owner may submit proof")
        if goal.status != GoalStatus.ACTIVE:
            raise StateError(f"Goal {goal_id} is {goal.status.name}, not ACTIVE")
        now = self.now()
        if now > goal.deadline + self._config.grace_period:
            raise StateError(f"Submission window for goal {goal_id} has closed")
        if not proof_reference or not proof_reference.strip():
            raise LedgerValidationError("Proof reference must be non-empty")

        goal.proof_reference = proof_reference
        self._events.emit(
            EventKind.PROOF_SUBMITTED, now, goal_id,
            owner=caller, proof_reference=proof_reference,
        )
        logger.info("Proof submitted for goal #%d: %s", goal_id, proof_reference)

    # ------------------------------------------------------------------
    # Scoring & resolution
    # ------------------------------------------------------------------

    @nonreentrant
    def set_score(
        self,
        caller: str,
        goal_id: int,
        score: int,
        *,
        nonce: int | None = None,
        signature: str | None = None,
        reason: str = "",
    ) -> GoalStatus:
        """Record an oracle score and apply the resolution policy.

        Returns the goal status after the call.
        """
        goal = self._state.goal(goal_id)
        if isinstance(score, bool) or not isinstance(score, int) or not 0 <= score <= MAX_SCORE:
            raise LedgerValidationError(f"Score must be an integer in [0, {MAX_SCORE}]")
        accepted_nonce = self._admission.admit(
            caller, goal_id, score, nonce, signature,
            self._state.verdict_nonces.get(goal_id, 0),
        )
        if goal.status != GoalStatus.ACTIVE:
            raise StateError(f"Goal {goal_id} is already {goal.status.name}")

        if accepted_nonce is not None:
            self._state.verdict_nonces[goal_id] = accepted_nonce
        self._apply_score(caller, goal, score, reason)
        return goal.status

    def set_binary_verdict(
        self,
        caller: str,
        goal_id: int,
        passed: bool,
        *,
        nonce: int | None = None,
        signature: str | None = None,
    ) -> GoalStatus:
        """Pass/fail shortcut: identical to ``set_score`` with 100 or 0."""
        return self.set_score(
            caller, goal_id, MAX_SCORE if passed else 0,
            nonce=nonce, signature=signature, reason="binary verdict",
        )

    def _apply_score(self, caller: str, goal: Goal, score: int, reason: str) -> None:
        now = self.now()
        goal.score = score
        goal.scored = True
        passed = score >= self._config.pass_threshold

        self._events.emit(EventKind.VERIFICATION_COMPLETE, now, goal.id, score=score, reason=reason)
        self._events.emit(
            EventKind.GOAL_VERIFIED, now, goal.id,
            verifier=self._admission.oracle, relayer=caller, score=score, passed=passed,
        )
        logger.info("Goal #%d scored %d by %s", goal.id, score, self._admission.oracle)

        if passed:
            self._complete(goal)
        elif score < self._config.fail_threshold:
            self._fail(goal)
        else:
            self._open_vote(goal, now)

    def _open_vote(self, goal: Goal, now: int) -> None:
        vote = self._state.votes.get(goal.id)
        if vote is None:
            vote = Vote(goal_id=goal.id, opened_at=now, voting_deadline=now + self._voting_period)
            self._state.votes[goal.id] = vote
        self._events.emit(
            EventKind.VOTE_OPENED, now, goal.id,
            score=goal.score, voting_deadline=vote.voting_deadline,
        )
        logger.info("Goal #%d scored mid-range (%d); vote open until %d",
                    goal.id, goal.score, vote.voting_deadline)

    def _complete(self, goal: Goal) -> None:
        goal.status = GoalStatus.COMPLETED
        streak = self._state.streak(goal.owner).record_success()
        self._mint_badge(goal, streak)
        self._events.emit(
            EventKind.GOAL_RESOLVED, self.now(), goal.id,
            status=GoalStatus.COMPLETED.name, owner=goal.owner,
        )
        logger.info("Goal #%d COMPLETED (streak %d)", goal.id, streak)

    def _mint_badge(self, goal: Goal, streak: int) -> None:
        registry = self._badge_registry
        if registry is None:
            return
        try:
            badge_id = registry.mint_badge(self._address, goal.owner, goal.id, goal.category, streak)
        except Exception as exc:
            logger.warning("Badge mint for goal #%d failed: %s", goal.id, exc)
            return
        self._events.emit(
            EventKind.BADGE_MINTED, self.now(), goal.id,
            owner=goal.owner, badge_id=badge_id,
        )

    def _fail(self, goal: Goal) -> None:
        goal.status = GoalStatus.FAILED
        # The stake stays recorded on the goal and in total_staked; only
        # withdrawals lower them
        stake = goal.stake_amount
        self._state.streak(goal.owner).record_failure()

        donated = self._donate(goal, stake)
        self._state.total_donated += donated
        self._state.total_stranded += stake - donated

        self._events.emit(
            EventKind.GOAL_RESOLVED, self.now(), goal.id,
            status=GoalStatus.FAILED.name, owner=goal.owner,
        )
        logger.info("Goal #%d FAILED (donated=%d, stranded=%d)", goal.id, donated, stake - donated)

    def _donate(self, goal: Goal, stake: int) -> int:
        beneficiary = self._beneficiary
        if beneficiary is None or stake == 0:
            return 0
        amount = stake * self._beneficiary_share_bps // BPS_DENOMINATOR
        if amount == 0:
            return 0
        try:
            self._bank.transfer(self._address, beneficiary, amount)
        except TransferError as exc:
            logger.warning("Donation of %d for goal #%d to %s failed: %s", amount, goal.id, beneficiary, exc)
            return 0
        self._events.emit(
            EventKind.BENEFICIARY_DONATION, self.now(), goal.id,
            beneficiary=beneficiary, amount=amount,
        )
        return amount

    # ------------------------------------------------------------------
    # Voting
    # ------------------------------------------------------------------

    def _open_vote_for(self, goal: Goal) -> Vote:
        if goal.status != GoalStatus.ACTIVE:
            raise StateError(f"Goal {goal.id} is already {goal.status.name}")
        vote = self._state.votes.get(goal.id)
        in_band = goal.scored and self._config.fail_threshold <= goal.score < self._config.pass_threshold
        if vote is None or not in_band:
            raise StateError(f"Goal {goal.id} is not open for voting")
        if vote.resolved:
            raise StateError(f"Vote on goal {goal.id} is already resolved")
        return vote

    def vote(self, caller: str, goal_id: int, support: bool) -> None:
        goal = self._state.goal(goal_id)
        vote = self._open_vote_for(goal)
        if vote.has_voted(caller):
            raise StateError(f"{caller} already voted on goal {goal_id}")

        vote.cast(caller, bool(support))
        self._events.emit(
            EventKind.VOTE_CAST, self.now(), goal_id,
            voter=caller, support=bool(support),
            yes_count=vote.yes_count, no_count=vote.no_count,
        )

    @nonreentrant
    def resolve_vote(self, caller: str, goal_id: int) -> bool:
        """Close the vote on a mid-range goal. Callable by anyone; returns the outcome."""
        goal = self._state.goal(goal_id)
        vote = self._open_vote_for(goal)

        outcome = vote.tally()
        vote.resolved = True
        vote.outcome = outcome
        self._events.emit(
            EventKind.VOTE_RESOLVED, self.now(), goal_id,
            resolver=caller, outcome=outcome,
            yes_count=vote.yes_count, no_count=vote.no_count,
        )
        if outcome:
            self._complete(goal)
        else:
            self._fail(goal)
        return outcome

    # ------------------------------------------------------------------
    # Withdrawal
    # ------------------------------------------------------------------

    @nonreentrant
    def withdraw_stake(self, caller: str, goal_id: int) -> int:
        """Return a completed goal's stake to its owner. Returns the amount sent."""
        goal = self._state.goal(goal_id)
        if caller != goal.owner:
            raise AuthorizationError("Only the goal owner may withdraw")
        if goal.status != GoalStatus.COMPLETED:
            raise StateError(f"Goal {goal_id} is {goal.status.name}, not COMPLETED")
        amount = goal.stake_amount
        if amount == 0:
            raise StateError(f"Stake for goal {goal_id} was already withdrawn")

        goal.stake_amount = 0
        self._state.total_staked -= amount
        self._state.total_withdrawn += amount
        try:
            self._bank.transfer(self._address, caller, amount)
        except TransferError:
            goal.stake_amount = amount
            self._state.total_staked += amount
            self._state.total_withdrawn -= amount
            raise

        self._events.emit(EventKind.STAKE_WITHDRAWN, self.now(), goal_id, owner=caller, amount=amount)
        logger.info("Stake of %d withdrawn for goal #%d", amount, goal_id)
        return amount

    # ------------------------------------------------------------------
    # Administration
    # ------------------------------------------------------------------

    def _require_admin(self, caller: str) -> None:
        if caller != self._admin:
            raise AuthorizationError("Only the administrator may change configuration")

    def _config_updated(self, key: str, value: object) -> None:
        self._events.emit(EventKind.CONFIG_UPDATED, self.now(), None, key=key, value=value)
        logger.info("Config %s set to %r", key, value)

    @staticmethod
    def _validate_share(bps: int) -> None:
        if not 0 <= bps <= BPS_DENOMINATOR:
            raise LedgerValidationError(f"Beneficiary share must be within [0, {BPS_DENOMINATOR}] bps")

    def set_oracle(self, caller: str, oracle: str, key: bytes | None = None) -> None:
        self._require_admin(caller)
        if not oracle:
            raise LedgerValidationError("Oracle identity must be non-empty")
        self._admission.rotate(oracle, key)
        self._config_updated("oracle", oracle)

    def set_min_stake(self, caller: str, amount: int) -> None:
        self._require_admin(caller)
        if amount <= 0:
            raise LedgerValidationError("Minimum stake must be positive")
        self._min_stake = amount
        self._config_updated("min_stake", amount)

    def set_voting_period(self, caller: str, seconds: int) -> None:
        self._require_admin(caller)
        if seconds <= 0:
            raise LedgerValidationError("Voting period must be positive")
        self._voting_period = seconds
        self._config_updated("voting_period", seconds)

    def set_beneficiary(self, caller: str, beneficiary: str | None) -> None:
        self._require_admin(caller)
        self._beneficiary = beneficiary or None
        self._config_updated("beneficiary", self._beneficiary)

    def set_beneficiary_share(self, caller: str, bps: int) -> None:
        self._require_admin(caller)
        self._validate_share(bps)
        self._beneficiary_share_bps = bps
        self._config_updated("beneficiary_share_bps", bps)

    def set_badge_registry(self, caller: str, registry: BadgeRegistry | None) -> None:
        self._require_admin(caller)
        self._badge_registry = registry
        self._config_updated("badge_registry", self._config.badge_registry_address if registry else None)

    def transfer_admin(self, caller: str, new_admin: str) -> None:
        self._require_admin(caller)
        if not new_admin:
            raise LedgerValidationError("Admin identity must be non-empty")
        self._admin = new_admin
        self._config_updated("admin", new_admin)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @property
    def goal_count(self) -> int:
        return self._state.goal_count

    @property
    def total_staked(self) -> int:
        return self._state.total_staked

    def get_goal(self, goal_id: int) -> Goal:
        return self._state.goal(goal_id).copy()

    def get_user_goals(self, owner: str) -> list[int]:
        return self._state.goals_of(owner)

    def get_streak(self, owner: str) -> Streak:
        streak = self._state.streaks.get(owner)
        return streak.copy() if streak else Streak()

    def get_vote(self, goal_id: int) -> Vote | None:
        self._state.goal(goal_id)
        vote = self._state.votes.get(goal_id)
        return vote.copy() if vote else None

    def next_nonce(self, goal_id: int) -> int:
        self._state.goal(goal_id)
        return self._state.verdict_nonces.get(goal_id, 0) + 1

    def accounting(self) -> dict[str, int]:
        s = self._state
        return {
            "total_deposited": s.total_deposited,
            "total_staked": s.total_staked,
            "total_withdrawn": s.total_withdrawn,
            "total_donated": s.total_donated,
            "total_stranded": s.total_stranded,
            "custody_balance": self._bank.balance_of(self._address),
        }

    def snapshot(self) -> Snapshot:
        return Snapshot.from_state(
            self._state,
            timestamp=self.now(),
            custody_balance=self._bank.balance_of(self._address),
            admin=self._admin,
            oracle=self._admission.oracle,
            admission_mode=self._admission.mode.name,
            min_stake=self._min_stake,
            voting_period=self._voting_period,
            grace_period=self._config.grace_period,
            beneficiary=self._beneficiary,
            beneficiary_share_bps=self._beneficiary_share_bps,
            badge_registry=self._config.badge_registry_address if self._badge_registry else None,
        )
