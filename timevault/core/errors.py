"""Error taxonomy for ledger entry points.

Authorization, state and validation errors reject the whole call before
any mutation. Transfer errors abort user-initiated withdrawals; inside
resolution side effects they are caught and logged instead.
"""

from __future__ import annotations


class LedgerError(Exception):
    """Base class for every error raised by a ledger entry point."""


class AuthorizationError(LedgerError):
    """Caller is not the owner, oracle, administrator or badge holder."""


class SoulboundError(AuthorizationError):
    """Badges cannot move between holders."""


class StateError(LedgerError):
    """The target record is not in a state that accepts the call."""


class GoalNotFoundError(StateError):
    def __init__(self, goal_id: int) -> None:
        super().__init__(f"Goal {goal_id} does not exist")
        self.goal_id = goal_id


class ReentrancyError(StateError):
    """A guarded entry point was invoked while another one is in progress."""


class LedgerValidationError(LedgerError):
    """An argument failed bounds or format validation."""


class TransferError(LedgerError):
    """A value transfer could not be completed."""


class InsufficientFundsError(TransferError):
    def __init__(self, account: str, needed: int, available: int) -> None:
        super().__init__(f"{account} holds {available}, needs {needed}")
        self.account = account
        self.needed = needed
        self.available = available
