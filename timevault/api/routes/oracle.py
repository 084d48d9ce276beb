"""Oracle entry points — score and binary verdict submission."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from timevault.api.dependencies import get_caller, get_ledger_manager
from timevault.api.ledger_manager import LedgerManager
from timevault.api.schemas import NonceResponse, ResolutionResponse, ScoreRequest, VerdictRequest

router = APIRouter()


@router.post("/goals/{goal_id}/score", response_model=ResolutionResponse)
def set_score(
    goal_id: int,
    body: ScoreRequest,
    caller: str = Depends(get_caller),
    manager: LedgerManager = Depends(get_ledger_manager),
) -> ResolutionResponse:
    status = manager.execute(
        "set_score", caller, goal_id=goal_id, score=body.score,
        nonce=body.nonce, signature=body.signature, reason=body.reason,
    )
    return ResolutionResponse(goal_id=goal_id, status=status.name)


@router.post("/goals/{goal_id}/verdict", response_model=ResolutionResponse)
def set_binary_verdict(
    goal_id: int,
    body: VerdictRequest,
    caller: str = Depends(get_caller),
    manager: LedgerManager = Depends(get_ledger_manager),
) -> ResolutionResponse:
    status = manager.execute(
        "set_binary_verdict", caller, goal_id=goal_id, passed=body.passed,
        nonce=body.nonce, signature=body.signature,
    )
    return ResolutionResponse(goal_id=goal_id, status=status.name)


@router.get("/goals/{goal_id}/nonce", response_model=NonceResponse)
def next_nonce(goal_id: int, manager: LedgerManager = Depends(get_ledger_manager)) -> NonceResponse:
    return NonceResponse(goal_id=goal_id, next_nonce=manager.read(lambda ledger: ledger.next_nonce(goal_id)))
