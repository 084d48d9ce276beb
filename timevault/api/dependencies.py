"""FastAPI dependency injection — provides the LedgerManager singleton and caller identity."""

from __future__ import annotations

from fastapi import Header, HTTPException, status

from timevault.api.ledger_manager import LedgerManager

_ledger_manager: LedgerManager | None = None


def set_ledger_manager(manager: LedgerManager) -> None:
    global _ledger_manager
    _ledger_manager = manager


def get_ledger_manager() -> LedgerManager:
    if _ledger_manager is None:
        raise RuntimeError("LedgerManager not initialized — server not started correctly.")
    return _ledger_manager


def get_caller(x_caller: str | None = Header(None, alias="X-Caller")) -> str:
    """The transaction sender, taken from the ``X-Caller`` header."""
    if not x_caller or not x_caller.strip():
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="X-Caller header required")
    return x_caller.strip()
