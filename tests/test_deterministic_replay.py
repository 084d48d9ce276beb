"""Tests for deterministic replay of recorded ledger calls.

A ledger is a pure function of its call sequence and clock readings, so
re-executing a recorded call log against a fresh ledger MUST reproduce the
same state fingerprint, including for calls that were rejected.
"""

import sys
import os
import json
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest

from timevault.api.ledger_manager import LedgerManager, ReplayDivergenceError
from timevault.config import DAY_SECONDS, WEI_PER_COIN, LedgerConfig
from timevault.core.errors import LedgerError
from timevault.systems.clock import ManualClock, PinnedClock
from timevault.systems.fingerprint import ledger_fingerprint
from timevault.utils.replay import ReplayRecorder, load_replay

CONFIG = LedgerConfig(beneficiary="0xcharity")


class TickingClock:
    """Advances one second on every reading, like a slow wall clock."""

    def __init__(self, now: int = 1_700_000_000) -> None:
        self.now = now

    def __call__(self) -> int:
        self.now += 1
        return self.now


def _run_session(manager: LedgerManager, clock: ManualClock) -> None:
    """A short but branchy session: completion, failure, vote, rejections."""
    manager.execute("fund", "0xfaucet", account="0xalice", amount=10 * WEI_PER_COIN)
    manager.execute("fund", "0xfaucet", account="0xbob", amount=10 * WEI_PER_COIN)
    deadline = clock() + 7 * DAY_SECONDS

    for owner in ("0xalice", "0xbob", "0xalice"):
        manager.execute("create_goal", owner, deadline=deadline, category=1,
                        description=f"goal for {owner}", stake=WEI_PER_COIN)
        clock.advance(60)

    manager.execute("submit_proof", "0xalice", goal_id=0, proof_reference="QmProof")
    manager.execute("set_score", "0xoracle", goal_id=0, score=90)
    manager.execute("set_binary_verdict", "0xoracle", goal_id=1, passed=False)
    manager.execute("set_score", "0xoracle", goal_id=2, score=60)
    clock.advance(3600)
    manager.execute("vote", "0xbob", goal_id=2, support=True)
    manager.execute("resolve_vote", "0xcarol", goal_id=2)
    manager.execute("withdraw_stake", "0xalice", goal_id=0)

    for op, caller, args in (
        ("withdraw_stake", "0xalice", {"goal_id": 0}),
        ("set_score", "0xmallory", {"goal_id": 2, "score": 0}),
        ("set_min_stake", "0xmallory", {"amount": 1}),
    ):
        with pytest.raises(LedgerError):
            manager.execute(op, caller, **args)


def _recorded_session(tmp_path):
    clock = ManualClock()
    recorder = ReplayRecorder(tmp_path / "replay.json", label="test")
    manager = LedgerManager(CONFIG, clock=clock, recorder=recorder)
    _run_session(manager, clock)
    fingerprint = manager.fingerprint()
    recorder.flush(fingerprint)
    return fingerprint, tmp_path / "replay.json"


class TestReplay:

    def test_replay_reproduces_fingerprint(self, tmp_path):
        fingerprint, path = _recorded_session(tmp_path)
        data = load_replay(path)
        assert data["fingerprint"] == fingerprint
        assert data["total_calls"] == len(data["calls"])

        clock = ManualClock(0)
        fresh = LedgerManager(CONFIG, clock=clock)
        assert fresh.replay(data["calls"], clock) == data["total_calls"]
        assert fresh.fingerprint() == fingerprint

    def test_rejected_calls_are_recorded(self, tmp_path):
        _, path = _recorded_session(tmp_path)
        calls = load_replay(path)["calls"]
        rejected = [c for c in calls if not c["ok"]]
        assert [c["error"] for c in rejected] == [
            "StateError", "AuthorizationError", "AuthorizationError",
        ]

    def test_divergence_detected(self, tmp_path):
        _, path = _recorded_session(tmp_path)
        calls = load_replay(path)["calls"]
        tampered = [dict(c) for c in calls]
        idx = next(i for i, c in enumerate(tampered) if c["op"] == "withdraw_stake")
        tampered[idx]["caller"] = "0xbob"

        clock = ManualClock(0)
        with pytest.raises(ReplayDivergenceError) as excinfo:
            LedgerManager(CONFIG, clock=clock).replay(tampered, clock)
        assert excinfo.value.index == idx

    def test_unsupported_version_rejected(self, tmp_path):
        path = tmp_path / "old.json"
        path.write_text(json.dumps({"version": "0.1", "calls": []}), encoding="utf-8")
        with pytest.raises(ValueError):
            load_replay(path)


class TestFingerprint:

    def test_identical_sessions_match(self):
        fingerprints = []
        for _ in range(2):
            clock = ManualClock()
            manager = LedgerManager(CONFIG, clock=clock)
            _run_session(manager, clock)
            fingerprints.append(manager.fingerprint())
        assert fingerprints[0] == fingerprints[1]

    def test_external_balances_not_covered(self):
        clock = ManualClock()
        manager = LedgerManager(CONFIG, clock=clock)
        _run_session(manager, clock)
        before = manager.fingerprint()
        manager.execute("fund", "0xfaucet", account="0xalice", amount=1)
        assert manager.fingerprint() == before

    def test_state_change_changes_fingerprint(self):
        clock = ManualClock()
        manager = LedgerManager(CONFIG, clock=clock)
        _run_session(manager, clock)
        before = manager.fingerprint()
        manager.execute("create_goal", "0xalice", deadline=clock() + DAY_SECONDS,
                        category=0, description="one more", stake=WEI_PER_COIN)
        assert manager.fingerprint() != before

    def test_fingerprint_ignores_snapshot_time(self):
        clock = ManualClock()
        manager = LedgerManager(CONFIG, clock=clock)
        _run_session(manager, clock)
        first = ledger_fingerprint(manager.get_snapshot())
        clock.advance(30 * DAY_SECONDS)
        assert ledger_fingerprint(manager.get_snapshot()) == first

    def test_reset_restores_genesis(self):
        clock = ManualClock()
        manager = LedgerManager(CONFIG, clock=clock)
        genesis = manager.fingerprint()
        _run_session(manager, clock)
        manager.reset()
        assert manager.fingerprint() == genesis


class TestClockPinning:

    def test_call_sees_one_instant(self, tmp_path):
        recorder = ReplayRecorder(tmp_path / "ticking.json")
        manager = LedgerManager(CONFIG, clock=TickingClock(), recorder=recorder)
        manager.execute("fund", "0xfaucet", account="0xalice", amount=10 * WEI_PER_COIN)
        gid = manager.execute("create_goal", "0xalice", deadline=1_800_000_000, category=3,
                              description="Run 50km", stake=WEI_PER_COIN)
        manager.execute("set_score", "0xoracle", goal_id=gid, score=95)

        calls = recorder.calls
        goal = manager.ledger.get_goal(gid)
        assert goal.created_at == calls[1]["timestamp"]
        [badge] = manager.registry.badges_of("0xalice")
        assert badge.completed_at == calls[2]["timestamp"]
        assert {e.timestamp for e in manager.event_log.since(0) if e.goal_id == gid} == {
            calls[1]["timestamp"], calls[2]["timestamp"],
        }

    def test_ticking_session_replays_to_same_fingerprint(self, tmp_path):
        recorder = ReplayRecorder(tmp_path / "ticking.json")
        manager = LedgerManager(CONFIG, clock=TickingClock(), recorder=recorder)
        manager.execute("fund", "0xfaucet", account="0xalice", amount=10 * WEI_PER_COIN)
        for score in (90, 10, 60):
            gid = manager.execute("create_goal", "0xalice", deadline=1_800_000_000, category=0,
                                  description="Drink water", stake=WEI_PER_COIN)
            manager.execute("set_score", "0xoracle", goal_id=gid, score=score)
        recorder.flush(manager.fingerprint())

        data = load_replay(tmp_path / "ticking.json")
        clock = ManualClock(0)
        fresh = LedgerManager(CONFIG, clock=clock)
        fresh.replay(data["calls"], clock)
        assert fresh.fingerprint() == data["fingerprint"]

    def test_nested_pin_keeps_outer_instant(self):
        clock = PinnedClock(TickingClock(100))
        with clock.pin() as outer:
            with clock.pin() as inner:
                assert inner == outer == clock()
        assert clock() != outer
