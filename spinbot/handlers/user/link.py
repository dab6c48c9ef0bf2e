# spinbot/handlers/user/link.py
from __future__ import annotations

import logging

from aiogram import Router
from aiogram.filters import Command, CommandObject
from aiogram.types import Message
from sqlalchemy.ext.asyncio import AsyncSession

from spinbot.database.repo.users import link_account
from spinbot.keyboards.main import BTN_LINK
from spinbot.services.errors import AccountAlreadyLinked, InvalidAccountId
from spinbot.utils.ensure_user import ensure_user
from spinbot.utils.reply import reply_safe

log = logging.getLogger(__name__)
router = Router()

USAGE = "Usage: <code>/link your_username</code>\n(2-32 letters, numbers or underscores)"


@router.message(lambda m: (m.text or "").strip() == BTN_LINK)
async def link_button(message: Message) -> None:
    await reply_safe(message, "🔗 " + USAGE)


@router.message(Command("link"))
async def link_cmd(message: Message, command: CommandObject, session: AsyncSession) -> None:
    user = await ensure_user(session, message)

    raw = (command.args or "").strip()
    if not raw:
        await reply_safe(message, USAGE)
        return

    try:
        user = await link_account(session, user, raw)
    except InvalidAccountId as e:
        await reply_safe(message, f"❌ {e}")
        return
    except AccountAlreadyLinked:
        await reply_safe(message, "❌ That account is already linked to someone else.")
        return

    log.info("Telegram user %s linked to account %s", user.telegram_id, user.account_id)
    await reply_safe(
        message,
        f"✅ Linked to <code>{user.account_id}</code>.\nUse /tickets to see your spins.",
    )
