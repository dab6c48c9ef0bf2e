# spinbot/handlers/user/whoami.py
from __future__ import annotations

from aiogram import Router
from aiogram.filters import Command
from aiogram.types import Message
from sqlalchemy.ext.asyncio import AsyncSession

from spinbot.config.settings import Settings
from spinbot.services.auth import AuthService
from spinbot.utils.ensure_user import ensure_user
from spinbot.utils.reply import reply_safe

router = Router()


@router.message(Command("whoami"))
async def whoami(message: Message, session: AsyncSession, settings: Settings) -> None:
    u = await ensure_user(session, message)
    authz = await AuthService(settings).resolve(session, u)

    username = f"@{u.username}" if u.username else "(none)"
    account = f"<code>{u.account_id}</code>" if u.account_id else "(not linked)"

    text = (
        "👤 <b>Your identity</b>\n"
        f"• Telegram ID: <code>{u.telegram_id}</code>\n"
        f"• Username: {username}\n"
        f"• Account: {account}\n"
        f"• Role: {authz.role}\n"
    )
    await reply_safe(message, text)
