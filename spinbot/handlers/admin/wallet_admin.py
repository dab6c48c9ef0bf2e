# spinbot/handlers/admin/wallet_admin.py
from __future__ import annotations

from aiogram import Router
from aiogram.filters import Command, CommandObject
from aiogram.types import Message
from sqlalchemy.ext.asyncio import AsyncSession

from spinbot.config.settings import Settings
from spinbot.database.models import User
from spinbot.database.repo.audit_repo import log_admin_action
from spinbot.database.session import Database
from spinbot.handlers.admin.panel import require_admin_or_reply
from spinbot.services.accounts import validate_account_id
from spinbot.services.errors import InsufficientBalance, InvalidAccountId, PersistenceFailure
from spinbot.services.wallet import debit_account

router = Router()

USAGE = "Usage: <code>/debit &lt;acct&gt; &lt;amount&gt; [note]</code>"


@router.message(Command("debit"))
async def debit_cmd(
    message: Message,
    command: CommandObject,
    settings: Settings,
    session: AsyncSession,
    db: Database,
    db_user: User | None = None,
) -> None:
    """Record an approved payout against a wallet."""
    if not await require_admin_or_reply(message, settings, session):
        return

    parts = (command.args or "").split(maxsplit=2)
    if len(parts) < 2:
        await message.answer(USAGE)
        return

    try:
        account_id = validate_account_id(parts[0])
        amount = int(parts[1])
    except (InvalidAccountId, ValueError):
        await message.answer(USAGE)
        return
    if amount <= 0:
        await message.answer("❌ Amount must be positive.")
        return

    note = parts[2] if len(parts) > 2 else None

    try:
        balance = await debit_account(db, account_id, amount, ref=note)
    except InsufficientBalance as e:
        await message.answer(f"❌ {account_id} has {e.balance:,}, cannot debit {amount:,}.")
        return
    except PersistenceFailure:
        await message.answer("⚠️ Debit failed, nothing was changed. Try again.")
        return

    await log_admin_action(
        session,
        actor_user_id=db_user.id if db_user else None,
        action="wallet_debit",
        target_account_id=account_id,
        payload={"amount": amount, "note": note, "balance_after": balance},
    )
    await message.answer(f"✅ Debited {amount:,} from <b>{account_id}</b>. New balance: {balance:,}")
