# spinbot/database/repo/users.py
from __future__ import annotations

from typing import Optional

from aiogram.types import TelegramObject
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from spinbot.database.models.user import User
from spinbot.services.accounts import validate_account_id
from spinbot.services.errors import AccountAlreadyLinked
from spinbot.utils.dates import utc_now_naive


def _extract_from_user(event: TelegramObject):
    """
    Best-effort extract aiogram `from_user` from different update types.
    Works for Message, CallbackQuery, InlineQuery, etc.
    """
    u = getattr(event, "from_user", None)
    if u:
        return u

    msg = getattr(event, "message", None)
    if msg and getattr(msg, "from_user", None):
        return msg.from_user

    cb = getattr(event, "callback_query", None)
    if cb and getattr(cb, "from_user", None):
        return cb.from_user

    return None


async def upsert_user_from_event(session: AsyncSession, event: TelegramObject) -> Optional[User]:
    tg = _extract_from_user(event)
    if tg is None:
        return None
    return await upsert_user(
        session,
        telegram_id=tg.id,
        username=tg.username,
        first_name=tg.first_name,
        last_name=tg.last_name,
    )


async def upsert_user(
    session: AsyncSession,
    *,
    telegram_id: int,
    username: str | None = None,
    first_name: str | None = None,
    last_name: str | None = None,
) -> User:
    user = await session.scalar(select(User).where(User.telegram_id == telegram_id))

    if user is None:
        user = User(
            telegram_id=telegram_id,
            username=username,
            first_name=first_name,
            last_name=last_name,
        )
        session.add(user)
        await session.flush()  # ensures `user.id` exists before handlers use it
        return user

    # keep profile fresh
    user.username = username
    user.first_name = first_name
    user.last_name = last_name
    return user


async def get_user_by_account(session: AsyncSession, account_id: str) -> Optional[User]:
    return await session.scalar(select(User).where(User.account_id == account_id))


async def link_account(session: AsyncSession, user: User, raw_account_id: str) -> User:
    """
    Bind the Telegram user to an external wagering account.

    Relinking to a different account is allowed; claiming an account that another
    Telegram user already holds raises AccountAlreadyLinked.
    """
    account_id = validate_account_id(raw_account_id)

    owner = await get_user_by_account(session, account_id)
    if owner is not None and owner.id != user.id:
        raise AccountAlreadyLinked(account_id)

    if user.account_id != account_id:
        user.account_id = account_id
        user.linked_at = utc_now_naive()
        await session.flush()
    return user
