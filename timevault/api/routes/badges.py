"""Soulbound badge reads, burn, and the always-failing transfer."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from timevault.api.dependencies import get_caller, get_ledger_manager
from timevault.api.ledger_manager import LedgerManager
from timevault.api.schemas import ActionResponse, BadgeHoldingsResponse, BadgeSchema, BadgeTransferRequest
from timevault.core.enums import Category

router = APIRouter()


@router.get("/badges/{badge_id}", response_model=BadgeSchema)
def get_badge(badge_id: int, manager: LedgerManager = Depends(get_ledger_manager)) -> BadgeSchema:
    registry = manager.registry
    holder, badge = manager.read(lambda _: (registry.owner_of(badge_id), registry.badge(badge_id)))
    return BadgeSchema.from_badge(holder, badge)


@router.get("/users/{holder}/badges", response_model=BadgeHoldingsResponse)
def get_holdings(holder: str, manager: LedgerManager = Depends(get_ledger_manager)) -> BadgeHoldingsResponse:
    registry = manager.registry

    def _read(_ledger):
        return (
            registry.balance_of(holder),
            {c.name: registry.category_count(holder, c) for c in Category},
            registry.badges_of(holder),
        )

    balance, by_category, badges = manager.read(_read)
    return BadgeHoldingsResponse(
        holder=holder,
        balance=balance,
        by_category=by_category,
        badges=[BadgeSchema.from_badge(holder, b) for b in badges],
    )


@router.post("/badges/{badge_id}/burn", response_model=ActionResponse)
def burn_badge(
    badge_id: int,
    caller: str = Depends(get_caller),
    manager: LedgerManager = Depends(get_ledger_manager),
) -> ActionResponse:
    manager.execute("burn_badge", caller, badge_id=badge_id)
    return ActionResponse(status="ok", message=f"Badge {badge_id} burned.")


@router.post("/badges/{badge_id}/transfer", response_model=ActionResponse)
def transfer_badge(
    badge_id: int,
    body: BadgeTransferRequest,
    caller: str = Depends(get_caller),
    manager: LedgerManager = Depends(get_ledger_manager),
) -> ActionResponse:
    manager.execute("transfer_badge", caller, badge_id=badge_id, to=body.to)
    return ActionResponse(status="ok", message=f"Badge {badge_id} transferred.")
