# spinbot/services/errors.py
"""
Typed failures raised by the rewards core.

Callers branch on the class: denials (tickets, cooldown, flags, balance) are
expected user-facing outcomes; PersistenceFailure is a retryable server error.
"""
from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from spinbot.services.tickets import Entitlement


class SpinError(RuntimeError):
    """Base class for failures the command layer maps to replies."""

    retryable: bool = False


class InsufficientTickets(SpinError):
    def __init__(self, account_id: str, entitlement: "Entitlement") -> None:
        super().__init__(f"No tickets remaining for {account_id}")
        self.account_id = account_id
        self.entitlement = entitlement


class BonusOnCooldown(SpinError):
    def __init__(self, account_id: str, remaining_ms: int, next_bonus_at: datetime) -> None:
        super().__init__(f"Bonus on cooldown for {account_id} ({remaining_ms} ms left)")
        self.account_id = account_id
        self.remaining_ms = remaining_ms
        self.next_bonus_at = next_bonus_at


class InsufficientBalance(SpinError):
    def __init__(self, account_id: str, balance: int, amount: int) -> None:
        super().__init__(f"Balance {balance} is less than {amount} for {account_id}")
        self.account_id = account_id
        self.balance = balance
        self.amount = amount


class AccountFlagged(SpinError):
    def __init__(self, account_id: str) -> None:
        super().__init__(f"Account {account_id} is flagged")
        self.account_id = account_id


class PersistenceFailure(SpinError):
    """Settle (or another atomic commit) failed; nothing was applied."""

    retryable = True


class InvalidPrizeTable(ValueError):
    """Fatal at startup: the process must not serve spins with this table."""


class InvalidAccountId(ValueError):
    pass


class WagerSourceError(RuntimeError):
    pass


class AccountAlreadyLinked(ValueError):
    def __init__(self, account_id: str) -> None:
        super().__init__(f"Account {account_id} is already linked to another Telegram user")
        self.account_id = account_id


__all__ = [
    "SpinError",
    "InsufficientTickets",
    "BonusOnCooldown",
    "InsufficientBalance",
    "AccountFlagged",
    "PersistenceFailure",
    "InvalidPrizeTable",
    "InvalidAccountId",
    "WagerSourceError",
    "AccountAlreadyLinked",
]
