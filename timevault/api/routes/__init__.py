"""Versioned API route modules."""

from fastapi import APIRouter

from timevault.api.routes.accounts import router as accounts_router
from timevault.api.routes.admin import router as admin_router
from timevault.api.routes.badges import router as badges_router
from timevault.api.routes.goals import router as goals_router
from timevault.api.routes.oracle import router as oracle_router
from timevault.api.routes.state import router as state_router
from timevault.api.routes.votes import router as votes_router

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(goals_router, tags=["Goals"])
api_router.include_router(oracle_router, tags=["Oracle"])
api_router.include_router(votes_router, tags=["Votes"])
api_router.include_router(badges_router, tags=["Badges"])
api_router.include_router(admin_router, tags=["Admin"])
api_router.include_router(accounts_router, tags=["Accounts"])
api_router.include_router(state_router, tags=["State"])

__all__ = ["api_router"]
