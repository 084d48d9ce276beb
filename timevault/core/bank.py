"""Native value accounts shared by every party on the simulated chain.

Plain accounts just hold a balance. An account may register a receive
hook, which makes it behave like a contract recipient: the hook runs
synchronously inside every transfer to that account and can reject the
payment by raising, or call back into other components (re-entry).
"""

from __future__ import annotations

import logging
from typing import Callable

from timevault.core.errors import InsufficientFundsError, LedgerValidationError, TransferError

logger = logging.getLogger(__name__)

ReceiveHook = Callable[[str, int], None]


class Bank:
    """Balance book with atomic, hook-aware transfers."""

    __slots__ = ("_balances", "_hooks", "_total_supply")

    def __init__(self) -> None:
        self._balances: dict[str, int] = {}
        self._hooks: dict[str, ReceiveHook] = {}
        self._total_supply: int = 0

    @property
    def total_supply(self) -> int:
        return self._total_supply

    def balance_of(self, account: str) -> int:
        return self._balances.get(account, 0)

    def fund(self, account: str, amount: int) -> None:
        """Create *amount* of new value in *account* (faucet / genesis)."""
        if amount <= 0:
            raise LedgerValidationError("Funding amount must be positive")
        self._balances[account] = self.balance_of(account) + amount
        self._total_supply += amount

    def set_receive_hook(self, account: str, hook: ReceiveHook | None) -> None:
        if hook is None:
            self._hooks.pop(account, None)
        else:
            self._hooks[account] = hook

    def transfer(self, sender: str, recipient: str, amount: int) -> None:
        """Move *amount* from *sender* to *recipient*, running the recipient hook.

        If the hook raises, the movement is rolled back and TransferError
        is raised with the hook's exception chained.
        """
        if amount < 0:
            raise LedgerValidationError("Transfer amount must be non-negative")
        available = self.balance_of(sender)
        if available < amount:
            raise InsufficientFundsError(sender, amount, available)

        self._balances[sender] = available - amount
        self._balances[recipient] = self.balance_of(recipient) + amount

        hook = self._hooks.get(recipient)
        if hook is None:
            return
        try:
            hook(sender, amount)
        except Exception as exc:
            self._balances[recipient] -= amount
            self._balances[sender] += amount
            logger.debug("Transfer %s -> %s of %d rejected: %s", sender, recipient, amount, exc)
            raise TransferError(f"Recipient {recipient} rejected transfer of {amount}") from exc
