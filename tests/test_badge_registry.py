"""Tests for soulbound badges and best-effort minting from the ledger."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest

from tests.helpers.ledger_harness import ADMIN, ALICE, BOB, LedgerHarness
from timevault.core.enums import Category, EventKind, GoalStatus
from timevault.core.errors import AuthorizationError, SoulboundError, StateError
from timevault.engine.badge_registry import BadgeRegistry
from timevault.systems.clock import ManualClock

LEDGER = "0xledger"


def _registry() -> BadgeRegistry:
    return BadgeRegistry(admin=ADMIN, ledger=LEDGER, clock=ManualClock(1_800_000_000))


class TestMint:

    def test_only_ledger_mints(self):
        reg = _registry()
        with pytest.raises(AuthorizationError):
            reg.mint_badge(ALICE, ALICE, 0, Category.WORK, 1)
        assert reg.balance_of(ALICE) == 0

    def test_unbound_registry_refuses_to_mint(self):
        reg = BadgeRegistry(admin=ADMIN)
        with pytest.raises(AuthorizationError):
            reg.mint_badge(LEDGER, ALICE, 0, Category.WORK, 1)

    def test_metadata_and_counts(self):
        reg = _registry()
        first = reg.mint_badge(LEDGER, ALICE, 3, Category.FITNESS, 1)
        second = reg.mint_badge(LEDGER, ALICE, 7, Category.FITNESS, 2)
        reg.mint_badge(LEDGER, ALICE, 9, Category.FINANCE, 3)

        assert (first, second) == (0, 1)
        assert reg.owner_of(first) == ALICE
        badge = reg.badge(second)
        assert badge.goal_id == 7
        assert badge.streak_at_mint == 2
        assert badge.completed_at == 1_800_000_000
        assert reg.balance_of(ALICE) == 3
        assert reg.category_count(ALICE, Category.FITNESS) == 2
        assert reg.category_count(ALICE, Category.FINANCE) == 1
        assert reg.category_count(ALICE, Category.HEALTH) == 0

    def test_set_ledger_admin_only(self):
        reg = BadgeRegistry(admin=ADMIN)
        with pytest.raises(AuthorizationError):
            reg.set_ledger(ALICE, LEDGER)
        reg.set_ledger(ADMIN, LEDGER)
        assert reg.ledger == LEDGER


class TestSoulbound:

    def test_transfer_always_fails(self):
        reg = _registry()
        badge_id = reg.mint_badge(LEDGER, ALICE, 0, Category.WORK, 1)
        for caller in (ALICE, BOB, ADMIN, LEDGER):
            with pytest.raises(SoulboundError):
                reg.transfer(caller, badge_id, BOB)
        assert reg.owner_of(badge_id) == ALICE
        assert reg.balance_of(BOB) == 0

    def test_soulbound_is_an_authorization_error(self):
        assert issubclass(SoulboundError, AuthorizationError)

    def test_holder_burns(self):
        reg = _registry()
        badge_id = reg.mint_badge(LEDGER, ALICE, 0, Category.WORK, 1)
        reg.burn(ALICE, badge_id)
        assert reg.balance_of(ALICE) == 0
        assert reg.category_count(ALICE, Category.WORK) == 0
        with pytest.raises(StateError):
            reg.owner_of(badge_id)

    def test_non_holder_cannot_burn(self):
        reg = _registry()
        badge_id = reg.mint_badge(LEDGER, ALICE, 0, Category.WORK, 1)
        with pytest.raises(AuthorizationError):
            reg.burn(BOB, badge_id)
        assert reg.owner_of(badge_id) == ALICE

    def test_burned_ids_are_not_reused(self):
        reg = _registry()
        first = reg.mint_badge(LEDGER, ALICE, 0, Category.WORK, 1)
        reg.burn(ALICE, first)
        second = reg.mint_badge(LEDGER, ALICE, 1, Category.WORK, 2)
        assert second == first + 1
        assert reg.minted_count == 2


class TestLedgerIntegration:

    def test_completion_emits_badge_minted(self):
        h = LedgerHarness()
        gid = h.create_goal(ALICE)
        h.score(gid, 80)
        [event] = h.events.of_kind(EventKind.BADGE_MINTED, gid)
        assert event.data["owner"] == ALICE
        assert event.data["badge_id"] == 0

    def test_failing_registry_does_not_block_completion(self):
        h = LedgerHarness()
        h.registry.set_ledger(ADMIN, "0xsomewhere-else")
        gid = h.create_goal(ALICE)
        assert h.score(gid, 80) == GoalStatus.COMPLETED
        assert h.registry.balance_of(ALICE) == 0
        assert h.events.of_kind(EventKind.BADGE_MINTED) == []
        assert h.ledger.get_streak(ALICE).current == 1
        assert h.ledger.withdraw_stake(ALICE, gid) == h.coins(1)

    def test_crashing_registry_does_not_block_completion(self):
        class BrokenRegistry(BadgeRegistry):
            def mint_badge(self, *args, **kwargs):
                raise RuntimeError("storage unavailable")

        h = LedgerHarness()
        h.ledger.set_badge_registry(ADMIN, BrokenRegistry(admin=ADMIN, ledger=LEDGER))
        gid = h.create_goal(ALICE)
        assert h.score(gid, 100) == GoalStatus.COMPLETED
        assert h.events.of_kind(EventKind.BADGE_MINTED) == []

    def test_no_registry_no_badge(self):
        h = LedgerHarness(badges_enabled=False)
        gid = h.create_goal(ALICE)
        h.score(gid, 90)
        assert h.ledger.badge_registry is None
        assert h.registry.balance_of(ALICE) == 0

    def test_failed_goal_mints_nothing(self):
        h = LedgerHarness()
        h.score(h.create_goal(ALICE), 10)
        assert h.registry.balance_of(ALICE) == 0

    def test_streak_recorded_on_badge(self):
        h = LedgerHarness()
        for _ in range(3):
            h.score(h.create_goal(ALICE), 90)
        assert [b.streak_at_mint for b in h.registry.badges_of(ALICE)] == [1, 2, 3]
