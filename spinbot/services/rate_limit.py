# spinbot/services/rate_limit.py
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable

log = logging.getLogger(__name__)

HOUR_SECONDS = 3600


@dataclass(slots=True)
class _Window:
    count: int
    reset_at: float


class FixedWindowLimiter:
    """
    In-process counter per key: at most `limit` hits per `window_seconds`.
    The window starts at a key's first hit. Keys are case-insensitive.
    """

    def __init__(
        self,
        limit: int,
        *,
        window_seconds: float = HOUR_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if limit <= 0:
            raise ValueError(f"limit must be positive, got {limit}")
        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: dict[str, _Window] = {}

    def hit(self, key: str) -> bool:
        """Count one attempt; True when the key is already at its limit."""
        key = key.lower()
        now = self._clock()
        w = self._windows.get(key)
        if w is None or now > w.reset_at:
            self._windows[key] = _Window(count=1, reset_at=now + self.window_seconds)
            return False
        if w.count >= self.limit:
            return True
        w.count += 1
        return False

    def retry_after(self, key: str) -> float:
        """Seconds until `key` may hit again; 0 when it is under its limit."""
        w = self._windows.get(key.lower())
        if w is None or w.count < self.limit:
            return 0.0
        return max(0.0, w.reset_at - self._clock())

    def prune(self) -> int:
        now = self._clock()
        stale = [k for k, w in self._windows.items() if now > w.reset_at]
        for k in stale:
            del self._windows[k]
        return len(stale)

    def __len__(self) -> int:
        return len(self._windows)


class SpinRateLimiter:
    """
    Throttles /spin per Telegram client and per linked account.
    The client window is checked first; a throttled client does not use up
    the account's budget.
    """

    def __init__(
        self,
        *,
        per_account: int = 50,
        per_client: int = 30,
        window_seconds: float = HOUR_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.accounts = FixedWindowLimiter(per_account, window_seconds=window_seconds, clock=clock)
        self.clients = FixedWindowLimiter(per_client, window_seconds=window_seconds, clock=clock)

    def hit(self, account_id: str, client_ref: str | int | None = None) -> bool:
        if client_ref is not None and self.clients.hit(str(client_ref)):
            log.info("Spin throttled for client of %s", account_id)
            return True
        if self.accounts.hit(account_id):
            log.info("Spin throttled for account %s", account_id)
            return True
        return False

    def retry_after(self, account_id: str, client_ref: str | int | None = None) -> float:
        waits = [self.accounts.retry_after(account_id)]
        if client_ref is not None:
            waits.append(self.clients.retry_after(str(client_ref)))
        return max(waits)

    def prune(self) -> int:
        return self.accounts.prune() + self.clients.prune()
