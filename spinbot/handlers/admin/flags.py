# spinbot/handlers/admin/flags.py
from __future__ import annotations

import logging

from aiogram import Router
from aiogram.filters import Command, CommandObject
from aiogram.types import Message
from sqlalchemy.ext.asyncio import AsyncSession

from spinbot.config.settings import Settings
from spinbot.database.models import User
from spinbot.database.repo.audit_repo import log_admin_action
from spinbot.handlers.admin.panel import require_admin_or_reply
from spinbot.services.accounts import validate_account_id
from spinbot.services.errors import InvalidAccountId
from spinbot.services.flags import FlagService

log = logging.getLogger(__name__)
router = Router()

USAGE = "Usage: <code>/flag &lt;acct&gt; blacklist|dispute|clear [notes]</code>"

# mode -> (blacklisted, disputed)
_MODES: dict[str, tuple[bool | None, bool | None]] = {
    "blacklist": (True, None),
    "dispute": (None, True),
    "clear": (False, False),
}


@router.message(Command("flag"))
async def flag_cmd(
    message: Message,
    command: CommandObject,
    settings: Settings,
    session: AsyncSession,
    db_user: User | None = None,
) -> None:
    if not await require_admin_or_reply(message, settings, session):
        return

    parts = (command.args or "").split(maxsplit=2)
    if len(parts) < 2 or parts[1].lower() not in _MODES:
        await message.answer(USAGE)
        return

    try:
        account_id = validate_account_id(parts[0])
    except InvalidAccountId as e:
        await message.answer(f"❌ {e}")
        return

    mode = parts[1].lower()
    notes = parts[2] if len(parts) > 2 else None
    blacklisted, disputed = _MODES[mode]

    flag = await FlagService.set_flag(
        session, account_id, blacklisted=blacklisted, disputed=disputed, notes=notes
    )
    await log_admin_action(
        session,
        actor_user_id=db_user.id if db_user else None,
        action=f"flag_{mode}",
        target_account_id=account_id,
        payload={"notes": notes},
    )
    log.info("Account %s flag set to %s by %s", account_id, mode, message.from_user.id)

    await message.answer(
        f"🚩 <b>{account_id}</b>\n"
        f"• Blacklisted: {'yes' if flag.is_blacklisted else 'no'}\n"
        f"• Disputed: {'yes' if flag.is_disputed else 'no'}"
        + (f"\n• Notes: {flag.notes}" if flag.notes else "")
    )
