# spinbot/utils/middleware.py
from __future__ import annotations

from typing import Any, Awaitable, Callable, Dict

from aiogram import BaseMiddleware
from aiogram.types import TelegramObject

from spinbot.database.repo.users import upsert_user_from_event
from spinbot.database.session import Database


class DbSessionMiddleware(BaseMiddleware):
    """
    Creates a DB session per update and injects it into handler data as `session`.

    Also upserts the current Telegram user (if present) and injects it as `db_user`.
    The upsert is committed before the handler runs; the handler's own writes are
    committed on success and rolled back on error.

    Spin and bonus draws do not go through this session: the ledger opens its own
    transaction so its commit point is independent of the handler's. This session
    must not hold a write lock while the handler calls into the ledger.
    """

    def __init__(self, db: Database) -> None:
        self.db = db

    async def __call__(
        self,
        handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: Dict[str, Any],
    ) -> Any:
        async with self.db.SessionLocal() as session:
            data["session"] = session

            db_user = await upsert_user_from_event(session, event)
            if db_user is not None:
                data["db_user"] = db_user
            await session.commit()

            try:
                result = await handler(event, data)
                await session.commit()
                return result
            except Exception:
                await session.rollback()
                raise
