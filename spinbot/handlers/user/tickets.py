# spinbot/handlers/user/tickets.py
from __future__ import annotations

from aiogram import Router
from aiogram.filters import Command
from aiogram.types import Message
from sqlalchemy.ext.asyncio import AsyncSession

from spinbot.config.settings import Settings
from spinbot.keyboards.main import BTN_TICKETS
from spinbot.services.ledger import SpinLedger
from spinbot.services.wager import CachedWagerProvider
from spinbot.utils.ensure_user import linked_account_or_reply
from spinbot.utils.reply import reply_safe
from spinbot.utils.snapshot import UNAVAILABLE, snapshot_or_reply

router = Router()


@router.message(Command("tickets"))
@router.message(lambda m: (m.text or "").strip() == BTN_TICKETS)
async def tickets_cmd(
    message: Message,
    session: AsyncSession,
    settings: Settings,
    ledger: SpinLedger,
    wagers: CachedWagerProvider,
) -> None:
    account_id = await linked_account_or_reply(session, message)
    if account_id is None:
        return

    snapshot = await snapshot_or_reply(wagers, account_id, message)
    if snapshot is UNAVAILABLE:
        return

    res = await ledger.lookup(account_id, snapshot)

    text = (
        f"🎟 <b>Tickets for {res.account_id}</b>\n"
        f"• Wagered: {res.wagered_amount:,}\n"
        f"• Earned: {res.tickets_total} (1 per {settings.ticket_unit:,})\n"
        f"• Used: {res.tickets_used}\n"
        f"• Remaining: <b>{res.tickets_remaining}</b>\n"
        f"• Wallet: {res.wallet_balance:,}"
    )
    if snapshot is None:
        text += "\n\n<i>No wager data found for this account yet.</i>"
    await reply_safe(message, text)
