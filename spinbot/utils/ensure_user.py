# spinbot/utils/ensure_user.py
from __future__ import annotations

from aiogram.types import Message
from sqlalchemy.ext.asyncio import AsyncSession

from spinbot.database.models.user import User
from spinbot.database.repo.users import upsert_user_from_event
from spinbot.utils.reply import reply_safe


async def ensure_user(session: AsyncSession, message: Message) -> User:
    row = await upsert_user_from_event(session, message)
    if row is None:
        raise RuntimeError("Unable to ensure user: message has no from_user")
    return row


async def linked_account_or_reply(session: AsyncSession, message: Message) -> str | None:
    """Account id of the sender, or None after telling them to /link first."""
    user = await ensure_user(session, message)
    if not user.account_id:
        await reply_safe(
            message,
            "🔗 Link your account first:\n<code>/link your_username</code>",
        )
        return None
    return user.account_id
