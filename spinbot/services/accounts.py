# spinbot/services/accounts.py
from __future__ import annotations

import asyncio
import hashlib
import re
import weakref
from contextlib import asynccontextmanager
from typing import AsyncIterator

from spinbot.services.errors import InvalidAccountId

ACCOUNT_ID_RE = re.compile(r"^[A-Za-z0-9_]{2,32}$")


def validate_account_id(raw: str | None) -> str:
    """External platform username: 2-32 chars of letters, digits, underscore. Case is kept."""
    value = (raw or "").strip()
    if not ACCOUNT_ID_RE.fullmatch(value):
        raise InvalidAccountId(
            "Account name must be 2-32 characters: letters, numbers and underscores only"
        )
    return value


def hash_client_ref(ref: str | int | None, salt: str) -> str | None:
    if ref is None or ref == "":
        return None
    return hashlib.sha256(f"{salt}{ref}".encode("utf-8")).hexdigest()


class AccountLocks:
    """
    One asyncio.Lock per account id. Different accounts never contend.
    Locks nobody holds or waits on are dropped automatically.
    """

    def __init__(self) -> None:
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    def get(self, account_id: str) -> asyncio.Lock:
        lock = self._locks.get(account_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[account_id] = lock
        return lock

    @asynccontextmanager
    async def hold(self, account_id: str) -> AsyncIterator[None]:
        lock = self.get(account_id)
        async with lock:
            yield
