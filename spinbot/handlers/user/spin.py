# spinbot/handlers/user/spin.py
from __future__ import annotations

from aiogram import Router
from aiogram.filters import Command
from aiogram.types import Message
from sqlalchemy.ext.asyncio import AsyncSession

from spinbot.config.settings import Settings
from spinbot.database.models import DenialAction
from spinbot.database.repo.audit_repo import log_denial
from spinbot.keyboards.main import BTN_SPIN
from spinbot.services.accounts import hash_client_ref
from spinbot.services.errors import AccountFlagged, InsufficientTickets, PersistenceFailure
from spinbot.services.ledger import SpinLedger, SpinResult
from spinbot.services.rate_limit import SpinRateLimiter
from spinbot.services.wager import CachedWagerProvider
from spinbot.utils.dates import format_remaining
from spinbot.utils.ensure_user import linked_account_or_reply
from spinbot.utils.reply import reply_safe
from spinbot.utils.snapshot import UNAVAILABLE, snapshot_or_reply

router = Router()

RETRY_TEXT = "⚠️ Something went wrong saving your spin. Nothing was used, please try again."
FLAGGED_TEXT = "⛔ This account is under review. Contact support."


def format_spin_result(res: SpinResult) -> str:
    if res.is_win:
        head = f"🎉 <b>You won {res.prize_label}!</b>"
    else:
        head = "😕 No win this time."
    lines = [head, f"👛 Wallet: {res.wallet_balance_after:,}"]
    if not res.is_bonus:
        lines.append(f"🎟 Tickets left: {res.tickets_remaining_after}")
    return "\n".join(lines)


@router.message(Command("spin"))
@router.message(lambda m: (m.text or "").strip() == BTN_SPIN)
async def spin_cmd(
    message: Message,
    session: AsyncSession,
    settings: Settings,
    ledger: SpinLedger,
    wagers: CachedWagerProvider,
    spin_limiter: SpinRateLimiter,
) -> None:
    account_id = await linked_account_or_reply(session, message)
    if account_id is None:
        return

    client_ref = message.from_user.id if message.from_user else None
    if spin_limiter.hit(account_id, client_ref):
        await log_denial(
            session,
            account_id=account_id,
            action=DenialAction.RATE_LIMITED,
            client_ip_hash=hash_client_ref(client_ref, settings.client_hash_salt),
        )
        wait_ms = int(spin_limiter.retry_after(account_id, client_ref) * 1000)
        await reply_safe(message, f"🐢 Too many spins. Try again in <b>{format_remaining(wait_ms)}</b>.")
        return

    snapshot = await snapshot_or_reply(wagers, account_id, message)
    if snapshot is UNAVAILABLE:
        return

    try:
        res = await ledger.spin(account_id, snapshot, client_ref=client_ref)
    except InsufficientTickets as e:
        await log_denial(
            session,
            account_id=account_id,
            action=DenialAction.SPIN_DENIED,
            client_ip_hash=hash_client_ref(client_ref, settings.client_hash_salt),
        )
        ent = e.entitlement
        await reply_safe(
            message,
            "🎟 No tickets left.\n"
            f"Used {ent.tickets_used} of {ent.tickets_total}. "
            f"Wager {settings.ticket_unit:,} more for another spin.",
        )
        return
    except AccountFlagged:
        await log_denial(
            session,
            account_id=account_id,
            action=DenialAction.FLAGGED_DENIED,
            client_ip_hash=hash_client_ref(client_ref, settings.client_hash_salt),
        )
        await reply_safe(message, FLAGGED_TEXT)
        return
    except PersistenceFailure:
        await reply_safe(message, RETRY_TEXT)
        return

    await reply_safe(message, format_spin_result(res))
