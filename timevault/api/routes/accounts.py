"""Native value balances and the development faucet."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from timevault.api.dependencies import get_caller, get_ledger_manager
from timevault.api.ledger_manager import LedgerManager
from timevault.api.schemas import AccountSchema, FundRequest

router = APIRouter()


@router.get("/accounts/{address}", response_model=AccountSchema)
def get_account(address: str, manager: LedgerManager = Depends(get_ledger_manager)) -> AccountSchema:
    balance = manager.read(lambda ledger: ledger.bank.balance_of(address))
    return AccountSchema(address=address, balance=balance)


@router.post("/accounts/{address}/fund", response_model=AccountSchema)
def fund_account(
    address: str,
    body: FundRequest,
    caller: str = Depends(get_caller),
    manager: LedgerManager = Depends(get_ledger_manager),
) -> AccountSchema:
    balance = manager.execute("fund", caller, account=address, amount=body.amount)
    return AccountSchema(address=address, balance=balance)
