from __future__ import annotations

from aiogram import Router
from aiogram.filters import CommandStart
from aiogram.types import Message
from sqlalchemy.ext.asyncio import AsyncSession

from spinbot.config.settings import Settings
from spinbot.utils.ensure_user import ensure_user
from spinbot.utils.reply import reply_safe

router = Router()


@router.message(CommandStart())
async def start_cmd(message: Message, session: AsyncSession, settings: Settings) -> None:
    me = await ensure_user(session, message)

    lines = [f"🎰 <b>Welcome to {settings.site_name}!</b>", ""]
    lines.append(
        f"Every {settings.ticket_unit:,} wagered earns you one spin ticket, "
        "plus a free bonus spin every day."
    )
    if me.account_id:
        lines.append(f"\nLinked account: <code>{me.account_id}</code>")
    else:
        lines.append("\nLink your account to start:\n<code>/link your_username</code>")
    if settings.is_demo:
        lines.append("\n<i>Demo mode: wager data is sample data.</i>")

    await reply_safe(message, "\n".join(lines))
