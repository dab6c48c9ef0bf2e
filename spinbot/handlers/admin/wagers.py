# spinbot/handlers/admin/wagers.py
from __future__ import annotations

from aiogram import F, Router
from aiogram.filters import Command, CommandObject
from aiogram.types import Message
from sqlalchemy.ext.asyncio import AsyncSession

from spinbot.config.settings import Settings
from spinbot.handlers.admin.panel import require_admin_or_reply
from spinbot.keyboards.admin import BTN_WAGERS
from spinbot.services.errors import WagerSourceError
from spinbot.services.wager import CachedWagerProvider

router = Router()


def _status_text(wagers: CachedWagerProvider, settings: Settings) -> str:
    st = wagers.cache_status()
    fetched = f"{st.last_fetch_at:%Y-%m-%d %H:%M:%S} UTC" if st.last_fetch_at else "never"
    return (
        "📈 <b>Wager data</b>\n"
        f"• Source: {'demo data' if settings.is_demo else settings.wager_source}\n"
        f"• Loaded: {'yes' if st.loaded else 'no'} ({st.row_count} accounts)\n"
        f"• Last fetch: {fetched}\n"
        f"• Age: {int(st.age_seconds)}s / TTL {st.ttl_seconds}s"
        + (" (expired)" if st.is_expired else "")
    )


@router.message(Command("wagers"))
async def wagers_cmd(
    message: Message,
    command: CommandObject,
    settings: Settings,
    session: AsyncSession,
    wagers: CachedWagerProvider,
) -> None:
    if not await require_admin_or_reply(message, settings, session):
        return

    if (command.args or "").strip().lower() == "refresh":
        try:
            n = await wagers.refresh()
        except WagerSourceError as e:
            await message.answer(f"❌ Refresh failed: {e}")
            return
        await message.answer(f"✅ Reloaded {n} accounts.")

    await message.answer(_status_text(wagers, settings))


@router.message(F.text == BTN_WAGERS)
async def wagers_button(
    message: Message, settings: Settings, session: AsyncSession, wagers: CachedWagerProvider
) -> None:
    if not await require_admin_or_reply(message, settings, session):
        return
    await message.answer(_status_text(wagers, settings))
