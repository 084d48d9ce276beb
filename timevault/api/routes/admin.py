"""Administrator-only configuration setters."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from timevault.api.dependencies import get_caller, get_ledger_manager
from timevault.api.ledger_manager import LedgerManager
from timevault.api.schemas import (
    ActionResponse,
    AdminTransfer,
    BadgeRegistryUpdate,
    BeneficiaryUpdate,
    IntSettingUpdate,
    OracleUpdate,
)

router = APIRouter(prefix="/admin")


def _ok(setting: str) -> ActionResponse:
    return ActionResponse(status="ok", message=f"{setting} updated.")


@router.put("/oracle", response_model=ActionResponse)
def set_oracle(
    body: OracleUpdate,
    caller: str = Depends(get_caller),
    manager: LedgerManager = Depends(get_ledger_manager),
) -> ActionResponse:
    manager.execute("set_oracle", caller, oracle=body.oracle, key_hex=body.key_hex)
    return _ok("oracle")


@router.put("/min-stake", response_model=ActionResponse)
def set_min_stake(
    body: IntSettingUpdate,
    caller: str = Depends(get_caller),
    manager: LedgerManager = Depends(get_ledger_manager),
) -> ActionResponse:
    manager.execute("set_min_stake", caller, amount=body.value)
    return _ok("min_stake")


@router.put("/voting-period", response_model=ActionResponse)
def set_voting_period(
    body: IntSettingUpdate,
    caller: str = Depends(get_caller),
    manager: LedgerManager = Depends(get_ledger_manager),
) -> ActionResponse:
    manager.execute("set_voting_period", caller, seconds=body.value)
    return _ok("voting_period")


@router.put("/beneficiary", response_model=ActionResponse)
def set_beneficiary(
    body: BeneficiaryUpdate,
    caller: str = Depends(get_caller),
    manager: LedgerManager = Depends(get_ledger_manager),
) -> ActionResponse:
    manager.execute("set_beneficiary", caller, beneficiary=body.beneficiary)
    return _ok("beneficiary")


@router.put("/beneficiary-share", response_model=ActionResponse)
def set_beneficiary_share(
    body: IntSettingUpdate,
    caller: str = Depends(get_caller),
    manager: LedgerManager = Depends(get_ledger_manager),
) -> ActionResponse:
    manager.execute("set_beneficiary_share", caller, bps=body.value)
    return _ok("beneficiary_share_bps")


@router.put("/badge-registry", response_model=ActionResponse)
def set_badge_registry(
    body: BadgeRegistryUpdate,
    caller: str = Depends(get_caller),
    manager: LedgerManager = Depends(get_ledger_manager),
) -> ActionResponse:
    manager.execute("set_badge_registry", caller, enabled=body.enabled)
    return _ok("badge_registry")


@router.put("/admin", response_model=ActionResponse)
def transfer_admin(
    body: AdminTransfer,
    caller: str = Depends(get_caller),
    manager: LedgerManager = Depends(get_ledger_manager),
) -> ActionResponse:
    manager.execute("transfer_admin", caller, new_admin=body.new_admin)
    return _ok("admin")
