# spinbot/handlers/user/wallet.py
from __future__ import annotations

from aiogram import Router
from aiogram.filters import Command
from aiogram.types import Message
from sqlalchemy.ext.asyncio import AsyncSession

from spinbot.database.models import WalletTxKind
from spinbot.keyboards.main import BTN_WALLET
from spinbot.services.wallet import WalletService
from spinbot.utils.ensure_user import linked_account_or_reply
from spinbot.utils.reply import reply_safe

router = Router()

_KIND_LABELS = {
    WalletTxKind.SPIN_WIN: "spin win",
    WalletTxKind.BONUS_WIN: "bonus win",
    WalletTxKind.DEBIT: "payout",
}


@router.message(Command("wallet"))
@router.message(lambda m: (m.text or "").strip() == BTN_WALLET)
async def wallet_cmd(message: Message, session: AsyncSession) -> None:
    account_id = await linked_account_or_reply(session, message)
    if account_id is None:
        return

    balance = await WalletService.balance(session, account_id)
    history = await WalletService.history(session, account_id, limit=5)

    lines = [f"👛 <b>Wallet</b>: {balance:,}"]
    if history:
        lines.append("")
        lines.append("Recent:")
        for tx in history:
            sign = "+" if tx.amount > 0 else ""
            lines.append(
                f"• {tx.created_at:%m-%d %H:%M} {sign}{tx.amount:,} ({_KIND_LABELS.get(tx.kind, tx.kind)})"
            )
    await reply_safe(message, "\n".join(lines))
