"""Reentrancy guard for entry points that make external calls."""

from __future__ import annotations

import functools
from typing import Any, Callable, TypeVar

from timevault.core.errors import ReentrancyError

F = TypeVar("F", bound=Callable[..., Any])


def nonreentrant(method: F) -> F:
    """Reject re-entry into any guarded method of the same instance.

    The flag is shared by every guarded method on the object, so a
    recipient hook triggered by ``withdraw_stake`` cannot call
    ``resolve_vote`` either.
    """

    @functools.wraps(method)
    def wrapper(self, *args: Any, **kwargs: Any) -> Any:
        if self._entered:
            raise ReentrancyError(f"Re-entrant call to {method.__name__}")
        self._entered = True
        try:
            return method(self, *args, **kwargs)
        finally:
            self._entered = False

    return wrapper  # type: ignore[return-value]
