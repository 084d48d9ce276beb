"""Community voting on mid-range goals."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from timevault.api.dependencies import get_caller, get_ledger_manager
from timevault.api.ledger_manager import LedgerManager
from timevault.api.schemas import ActionResponse, VoteOutcomeResponse, VoteRequest, VoteSchema

router = APIRouter()


@router.get("/goals/{goal_id}/votes", response_model=VoteSchema)
def get_vote(goal_id: int, manager: LedgerManager = Depends(get_ledger_manager)) -> VoteSchema:
    vote = manager.read(lambda ledger: ledger.get_vote(goal_id))
    if vote is None:
        raise HTTPException(status_code=404, detail=f"No vote opened for goal {goal_id}.")
    return VoteSchema.from_vote(vote)


@router.post("/goals/{goal_id}/votes", response_model=ActionResponse)
def cast_vote(
    goal_id: int,
    body: VoteRequest,
    caller: str = Depends(get_caller),
    manager: LedgerManager = Depends(get_ledger_manager),
) -> ActionResponse:
    manager.execute("vote", caller, goal_id=goal_id, support=body.support)
    return ActionResponse(status="ok", message=f"Vote recorded on goal {goal_id}.")


@router.post("/goals/{goal_id}/votes/resolve", response_model=VoteOutcomeResponse)
def resolve_vote(
    goal_id: int,
    caller: str = Depends(get_caller),
    manager: LedgerManager = Depends(get_ledger_manager),
) -> VoteOutcomeResponse:
    outcome = manager.execute("resolve_vote", caller, goal_id=goal_id)
    goal = manager.read(lambda ledger: ledger.get_goal(goal_id))
    return VoteOutcomeResponse(goal_id=goal_id, outcome=outcome, status=goal.status.name)
