"""Soulbound achievement badges — one per completed goal.

Badges are bound to the identity they were minted to. The only
balance-changing operations are ``mint_badge`` (ledger only) and
``burn`` (holder only); every transfer attempt fails.
"""

from __future__ import annotations

import logging
import time
from typing import Callable

from timevault.core.enums import Category, EventKind
from timevault.core.errors import (
    AuthorizationError,
    LedgerValidationError,
    SoulboundError,
    StateError,
)
from timevault.core.models import Badge
from timevault.utils.event_log import EventLog

logger = logging.getLogger(__name__)


class BadgeRegistry:
    """Issues and tracks non-transferable achievement tokens."""

    def __init__(
        self,
        admin: str,
        ledger: str | None = None,
        events: EventLog | None = None,
        clock: Callable[[], int] | None = None,
    ) -> None:
        self._admin = admin
        self._ledger = ledger
        self._events = events if events is not None else EventLog()
        self._clock = clock or (lambda: int(time.time()))
        self._next_badge_id: int = 0
        self._badges: dict[int, Badge] = {}
        self._holders: dict[int, str] = {}
        self._balances: dict[str, int] = {}
        self._category_counts: dict[tuple[str, Category], int] = {}

    # -- administration --

    @property
    def ledger(self) -> str | None:
        return self._ledger

    def set_ledger(self, caller: str, ledger: str) -> None:
        if caller != self._admin:
            raise AuthorizationError("Only the registry admin may set the ledger")
        if not ledger:
            raise LedgerValidationError("Ledger address must be non-empty")
        self._ledger = ledger
        logger.info("Badge registry minter set to %s", ledger)

    # -- mint / burn --

    def mint_badge(
        self,
        caller: str,
        recipient: str,
        goal_id: int,
        category: Category,
        streak: int,
    ) -> int:
        if self._ledger is None or caller != self._ledger:
            raise AuthorizationError("Only the goal ledger may mint badges")
        if not recipient:
            raise LedgerValidationError("Cannot mint to the zero identity")
        category = Category(category)

        badge_id = self._next_badge_id
        self._next_badge_id += 1
        self._badges[badge_id] = Badge(
            badge_id=badge_id,
            goal_id=goal_id,
            category=category,
            completed_at=self._clock(),
            streak_at_mint=streak,
        )
        self._holders[badge_id] = recipient
        self._balances[recipient] = self._balances.get(recipient, 0) + 1
        key = (recipient, category)
        self._category_counts[key] = self._category_counts.get(key, 0) + 1
        logger.debug("Minted badge #%d to %s for goal #%d", badge_id, recipient, goal_id)
        return badge_id

    def burn(self, caller: str, badge_id: int) -> None:
        holder = self._holders.get(badge_id)
        if holder is None:
            raise StateError(f"Badge {badge_id} does not exist")
        if caller != holder:
            raise AuthorizationError("Only the holder may burn a badge")

        badge = self._badges.pop(badge_id)
        del self._holders[badge_id]
        self._balances[holder] -= 1
        self._category_counts[(holder, badge.category)] -= 1
        self._events.emit(
            EventKind.BADGE_BURNED, self._clock(), badge.goal_id,
            holder=holder, badge_id=badge_id,
        )
        logger.info("Badge #%d burned by %s", badge_id, holder)

    def transfer(self, caller: str, badge_id: int, to: str) -> None:
        raise SoulboundError("Badges are soulbound and cannot be transferred")

    # -- reads --

    def owner_of(self, badge_id: int) -> str:
        holder = self._holders.get(badge_id)
        if holder is None:
            raise StateError(f"Badge {badge_id} does not exist")
        return holder

    def badge(self, badge_id: int) -> Badge:
        badge = self._badges.get(badge_id)
        if badge is None:
            raise StateError(f"Badge {badge_id} does not exist")
        return badge

    def balance_of(self, holder: str) -> int:
        return self._balances.get(holder, 0)

    def category_count(self, holder: str, category: Category) -> int:
        return self._category_counts.get((holder, Category(category)), 0)

    def badges_of(self, holder: str) -> list[Badge]:
        return [self._badges[bid] for bid, h in sorted(self._holders.items()) if h == holder]

    @property
    def minted_count(self) -> int:
        return self._next_badge_id
