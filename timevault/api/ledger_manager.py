"""LedgerManager — owns the ledger and serializes every call into it.

The manager plays the role of the execution environment: one lock around
each entry point gives the ledger its single-writer guarantee, and every
call can be recorded for replay.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Any, Callable

from timevault.core.bank import Bank
from timevault.core.errors import LedgerError, LedgerValidationError
from timevault.core.snapshot import Snapshot
from timevault.engine.badge_registry import BadgeRegistry
from timevault.engine.goal_ledger import GoalLedger
from timevault.systems.clock import ManualClock, PinnedClock, SystemClock
from timevault.systems.fingerprint import ledger_fingerprint
from timevault.utils.event_log import EventLog
from timevault.utils.replay import ReplayRecorder

if TYPE_CHECKING:
    from timevault.config import LedgerConfig

logger = logging.getLogger(__name__)


class ReplayDivergenceError(RuntimeError):
    def __init__(self, index: int, call: dict[str, Any], error: str | None) -> None:
        expected = "ok" if call["ok"] else call.get("error")
        super().__init__(
            f"Replay diverged at call {index} ({call['op']}): recorded {expected}, got {error or 'ok'}"
        )
        self.index = index


class LedgerManager:
    """Builds the ledger stack from config and executes calls one at a time."""

    def __init__(
        self,
        config: LedgerConfig,
        clock: Callable[[], int] | None = None,
        recorder: ReplayRecorder | None = None,
    ) -> None:
        self._config = config
        self._clock = PinnedClock(clock or SystemClock())
        self._recorder = recorder
        self._lock = threading.RLock()

        self._bank: Bank | None = None
        self._events: EventLog | None = None
        self._registry: BadgeRegistry | None = None
        self._ledger: GoalLedger | None = None
        self._build()

    # -- public properties --

    @property
    def config(self) -> LedgerConfig:
        return self._config

    @property
    def ledger(self) -> GoalLedger:
        assert self._ledger is not None
        return self._ledger

    @property
    def registry(self) -> BadgeRegistry:
        assert self._registry is not None
        return self._registry

    @property
    def bank(self) -> Bank:
        assert self._bank is not None
        return self._bank

    @property
    def event_log(self) -> EventLog:
        assert self._events is not None
        return self._events

    @property
    def recorder(self) -> ReplayRecorder | None:
        return self._recorder

    # -- reads --

    def get_snapshot(self) -> Snapshot:
        with self._lock:
            return self.ledger.snapshot()

    def fingerprint(self) -> str:
        return ledger_fingerprint(self.get_snapshot())

    def read(self, fn: Callable[[GoalLedger], Any]) -> Any:
        """Run a read-only function against the ledger under the lock."""
        with self._lock:
            return fn(self.ledger)

    # -- writes --

    def execute(self, op: str, caller: str, **args: Any) -> Any:
        """Dispatch a named entry point. Raises LedgerError subclasses on rejection."""
        with self._lock:
            handler = self._handlers().get(op)
            if handler is None:
                raise LedgerValidationError(f"Unknown operation {op!r}")
            with self._clock.pin() as timestamp:
                try:
                    result = handler(caller, **args)
                except LedgerError as exc:
                    if self._recorder is not None:
                        self._recorder.record_call(timestamp, op, caller, args, error=type(exc).__name__)
                    logger.debug("%s by %s rejected: %s", op, caller, exc)
                    raise
                if self._recorder is not None:
                    self._recorder.record_call(timestamp, op, caller, args)
            return result

    def reset(self) -> None:
        with self._lock:
            self._build()
        logger.info("LedgerManager reset.")

    # -- internals --

    def _build(self) -> None:
        cfg = self._config
        self._bank = Bank()
        self._events = EventLog()
        self._registry = BadgeRegistry(
            admin=cfg.admin, ledger=cfg.ledger_address,
            events=self._events, clock=self._clock,
        )
        self._ledger = GoalLedger(
            cfg, self._bank, events=self._events,
            badge_registry=self._registry, clock=self._clock,
        )
        logger.info(
            "Ledger deployed at %s (admin=%s, oracle=%s, mode=%s)",
            cfg.ledger_address, cfg.admin, cfg.oracle, cfg.admission_mode.name,
        )

    def _fund(self, caller: str, account: str, amount: int) -> int:
        if not self._config.faucet_enabled:
            raise LedgerValidationError("Faucet is disabled")
        self.bank.fund(account, amount)
        return self.bank.balance_of(account)

    def _set_oracle(self, caller: str, oracle: str, key_hex: str | None = None) -> None:
        key = bytes.fromhex(key_hex) if key_hex else None
        self.ledger.set_oracle(caller, oracle, key)

    def _set_badge_registry(self, caller: str, enabled: bool) -> None:
        self.ledger.set_badge_registry(caller, self.registry if enabled else None)

    def replay(self, calls: list[dict[str, Any]], clock: ManualClock) -> int:
        """Re-execute recorded calls against this (fresh) ledger.

        *clock* must be the clock the manager was built with. Returns the number of
        calls replayed; raises ReplayDivergenceError when a call's outcome
        differs from the recording.
        """
        for index, call in enumerate(calls):
            clock.set(call["timestamp"])
            try:
                self.execute(call["op"], call["caller"], **call["args"])
            except LedgerError as exc:
                if call["ok"]:
                    raise ReplayDivergenceError(index, call, type(exc).__name__) from exc
                continue
            if not call["ok"]:
                raise ReplayDivergenceError(index, call, None)
        return len(calls)

    def _handlers(self) -> dict[str, Callable[..., Any]]:
        ledger = self.ledger
        registry = self.registry
        return {
            "fund": self._fund,
            "create_goal": ledger.create_goal,
            "submit_proof": ledger.submit_proof,
            "set_score": ledger.set_score,
            "set_binary_verdict": ledger.set_binary_verdict,
            "vote": ledger.vote,
            "resolve_vote": ledger.resolve_vote,
            "withdraw_stake": ledger.withdraw_stake,
            "set_oracle": self._set_oracle,
            "set_min_stake": ledger.set_min_stake,
            "set_voting_period": ledger.set_voting_period,
            "set_beneficiary": ledger.set_beneficiary,
            "set_beneficiary_share": ledger.set_beneficiary_share,
            "set_badge_registry": self._set_badge_registry,
            "transfer_admin": ledger.transfer_admin,
            "burn_badge": registry.burn,
            "transfer_badge": registry.transfer,
        }
