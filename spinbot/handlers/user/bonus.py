# spinbot/handlers/user/bonus.py
from __future__ import annotations

from aiogram import Router
from aiogram.filters import Command
from aiogram.types import Message
from sqlalchemy.ext.asyncio import AsyncSession

from spinbot.config.settings import Settings
from spinbot.database.models import DenialAction
from spinbot.database.repo.audit_repo import log_denial
from spinbot.handlers.user.spin import FLAGGED_TEXT, RETRY_TEXT, format_spin_result
from spinbot.keyboards.main import BTN_BONUS
from spinbot.services.accounts import hash_client_ref
from spinbot.services.bonus import BonusGate
from spinbot.services.errors import AccountFlagged, BonusOnCooldown, PersistenceFailure, WagerSourceError
from spinbot.services.wager import CachedWagerProvider
from spinbot.utils.dates import format_remaining
from spinbot.utils.ensure_user import linked_account_or_reply
from spinbot.utils.reply import reply_safe

router = Router()


@router.message(Command("bonus"))
@router.message(lambda m: (m.text or "").strip() == BTN_BONUS)
async def bonus_check_cmd(message: Message, session: AsyncSession, bonus_gate: BonusGate) -> None:
    account_id = await linked_account_or_reply(session, message)
    if account_id is None:
        return

    status = await bonus_gate.bonus_check(account_id)
    if status.available:
        await reply_safe(message, "🎁 Your daily bonus spin is ready!\nUse /bonusspin to claim it.")
        return

    await reply_safe(
        message,
        f"⏳ Next bonus spin in <b>{format_remaining(status.remaining_ms)}</b>\n"
        f"(at {status.next_bonus_at:%Y-%m-%d %H:%M} UTC)",
    )


@router.message(Command("bonusspin"))
async def bonus_spin_cmd(
    message: Message,
    session: AsyncSession,
    settings: Settings,
    bonus_gate: BonusGate,
    wagers: CachedWagerProvider,
) -> None:
    account_id = await linked_account_or_reply(session, message)
    if account_id is None:
        return

    # wager data only annotates the log row here; a bonus never depends on it
    try:
        snapshot = await wagers.get_snapshot(account_id)
    except WagerSourceError:
        snapshot = None

    client_ref = message.from_user.id if message.from_user else None
    client_hash = hash_client_ref(client_ref, settings.client_hash_salt)
    try:
        res = await bonus_gate.bonus_spin(account_id, snapshot=snapshot, client_ref=client_ref)
    except BonusOnCooldown as e:
        await log_denial(
            session, account_id=account_id, action=DenialAction.BONUS_DENIED, client_ip_hash=client_hash
        )
        await reply_safe(message, f"⏳ Bonus already claimed. Next one in <b>{format_remaining(e.remaining_ms)}</b>.")
        return
    except AccountFlagged:
        await log_denial(
            session, account_id=account_id, action=DenialAction.FLAGGED_DENIED, client_ip_hash=client_hash
        )
        await reply_safe(message, FLAGGED_TEXT)
        return
    except PersistenceFailure:
        await reply_safe(message, RETRY_TEXT)
        return

    await reply_safe(message, "🎁 <b>Bonus spin</b>\n" + format_spin_result(res))
