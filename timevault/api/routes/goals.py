"""Goal creation, proof submission, withdrawal and goal reads."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from timevault.api.dependencies import get_caller, get_ledger_manager
from timevault.api.ledger_manager import LedgerManager
from timevault.api.schemas import (
    ActionResponse,
    CreateGoalRequest,
    GoalCreatedResponse,
    GoalSchema,
    ProofRequest,
    StreakSchema,
    WithdrawResponse,
)

router = APIRouter()


@router.post("/goals", response_model=GoalCreatedResponse, status_code=201)
def create_goal(
    body: CreateGoalRequest,
    caller: str = Depends(get_caller),
    manager: LedgerManager = Depends(get_ledger_manager),
) -> GoalCreatedResponse:
    goal_id = manager.execute(
        "create_goal", caller,
        deadline=body.deadline, category=body.category,
        description=body.description, stake=body.stake,
    )
    return GoalCreatedResponse(goal_id=goal_id)


@router.get("/goals/{goal_id}", response_model=GoalSchema)
def get_goal(goal_id: int, manager: LedgerManager = Depends(get_ledger_manager)) -> GoalSchema:
    goal = manager.read(lambda ledger: ledger.get_goal(goal_id))
    return GoalSchema.from_goal(goal)


@router.post("/goals/{goal_id}/proof", response_model=ActionResponse)
def submit_proof(
    goal_id: int,
    body: ProofRequest,
    caller: str = Depends(get_caller),
    manager: LedgerManager = Depends(get_ledger_manager),
) -> ActionResponse:
    manager.execute("submit_proof", caller, goal_id=goal_id, proof_reference=body.proof_reference)
    return ActionResponse(status="ok", message=f"Proof recorded for goal {goal_id}.")


@router.post("/goals/{goal_id}/withdraw", response_model=WithdrawResponse)
def withdraw_stake(
    goal_id: int,
    caller: str = Depends(get_caller),
    manager: LedgerManager = Depends(get_ledger_manager),
) -> WithdrawResponse:
    amount = manager.execute("withdraw_stake", caller, goal_id=goal_id)
    return WithdrawResponse(goal_id=goal_id, amount=amount)


@router.get("/users/{owner}/goals", response_model=list[int])
def get_user_goals(owner: str, manager: LedgerManager = Depends(get_ledger_manager)) -> list[int]:
    return manager.read(lambda ledger: ledger.get_user_goals(owner))


@router.get("/users/{owner}/streak", response_model=StreakSchema)
def get_user_streak(owner: str, manager: LedgerManager = Depends(get_ledger_manager)) -> StreakSchema:
    streak = manager.read(lambda ledger: ledger.get_streak(owner))
    return StreakSchema.from_streak(owner, streak)
