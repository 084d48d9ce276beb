"""FastAPI application factory with lifespan management."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from timevault.api.dependencies import set_ledger_manager
from timevault.api.ledger_manager import LedgerManager
from timevault.api.routes import api_router
from timevault.config import LedgerConfig
from timevault.core.errors import (
    AuthorizationError,
    GoalNotFoundError,
    LedgerError,
    LedgerValidationError,
    StateError,
    TransferError,
)
from timevault.utils.logging import setup_logging

logger = logging.getLogger(__name__)

# Most specific first
_ERROR_STATUS: tuple[tuple[type[LedgerError], int], ...] = (
    (GoalNotFoundError, 404),
    (AuthorizationError, 403),
    (StateError, 409),
    (LedgerValidationError, 422),
    (TransferError, 402),
)


def _status_for(exc: LedgerError) -> int:
    for exc_type, code in _ERROR_STATUS:
        if isinstance(exc, exc_type):
            return code
    return 400


def create_app(config: LedgerConfig | None = None, manager: LedgerManager | None = None) -> FastAPI:
    """Build and return the fully-configured FastAPI application."""
    if config is None:
        config = manager.config if manager is not None else LedgerConfig()

    _config = config

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        setup_logging(_config.log_level)
        active = manager or LedgerManager(_config)
        set_ledger_manager(active)
        logger.info("API server started — ledger %s accepting calls.", _config.ledger_address)
        yield
        if active.recorder is not None:
            active.recorder.flush(active.fingerprint())
        logger.info("API server shutting down.")

    app = FastAPI(
        title="TimeVault Goal Ledger",
        description=(
            "Goal staking ledger — stake value against a goal, submit proof, "
            "and let an oracle score, a community vote, or a binary verdict resolve it.\n\n"
            "Every write takes the caller identity from the `X-Caller` header.\n\n"
            "## API Groups\n\n"
            "- **Goals** — create goals, submit proof, withdraw stakes, goal and streak reads\n"
            "- **Oracle** — score and binary verdict submission\n"
            "- **Votes** — community vote on mid-range scores\n"
            "- **Badges** — soulbound achievement badges\n"
            "- **Admin** — administrator-only configuration\n"
            "- **Accounts** — native balances and the development faucet\n"
            "- **State** — event feed, accounting totals, configuration\n"
        ),
        version="0.1.0",
        lifespan=lifespan,
    )

    @app.exception_handler(LedgerError)
    async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
        return JSONResponse(
            status_code=_status_for(exc),
            content={"detail": str(exc), "error": type(exc).__name__},
        )

    # CORS: allow any origin in dev
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router)
    return app
