# spinbot/handlers/admin/panel.py
from __future__ import annotations

from aiogram import F, Router
from aiogram.filters import Command
from aiogram.types import Message
from sqlalchemy.ext.asyncio import AsyncSession

from spinbot.config.settings import Settings
from spinbot.keyboards.admin import BTN_BACK, admin_panel_kb
from spinbot.services.auth import AuthService
from spinbot.utils.reply import reply_safe

router = Router()


async def require_admin_or_reply(message: Message, settings: Settings, session: AsyncSession) -> bool:
    tg = message.from_user
    if not tg:
        await message.answer("⛔ You are not allowed to use admin commands.")
        return False

    authz = await AuthService(settings).resolve_by_telegram(session, tg.id)
    if not authz.is_admin:
        await message.answer("⛔ You are not allowed to use admin commands.")
        return False
    return True


@router.message(Command("admin"))
async def admin_panel(message: Message, settings: Settings, session: AsyncSession) -> None:
    if not await require_admin_or_reply(message, settings, session):
        return
    await message.answer(
        "🛠 <b>Admin panel</b>\n\n"
        "<code>/flag &lt;acct&gt; blacklist|dispute|clear [notes]</code>\n"
        "<code>/debit &lt;acct&gt; &lt;amount&gt; [note]</code>\n"
        "<code>/spinlog [n]</code> or <code>/spinlog &lt;acct&gt; [n]</code>\n"
        "<code>/reconcile &lt;acct&gt;</code>\n"
        "<code>/wagers</code> (cache status), <code>/wagers refresh</code>",
        reply_markup=admin_panel_kb(),
    )


@router.message(F.text == BTN_BACK)
async def back_to_menu(message: Message) -> None:
    await reply_safe(message, "Back to the main menu 👇")
