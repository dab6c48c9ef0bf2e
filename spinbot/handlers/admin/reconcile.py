# spinbot/handlers/admin/reconcile.py
from __future__ import annotations

from aiogram import Router
from aiogram.filters import Command, CommandObject
from aiogram.types import Message
from sqlalchemy.ext.asyncio import AsyncSession

from spinbot.config.settings import Settings
from spinbot.database.models import User
from spinbot.database.repo.audit_repo import log_admin_action
from spinbot.handlers.admin.panel import require_admin_or_reply
from spinbot.services.errors import InvalidAccountId, PersistenceFailure
from spinbot.services.ledger import SpinLedger

router = Router()


@router.message(Command("reconcile"))
async def reconcile_cmd(
    message: Message,
    command: CommandObject,
    settings: Settings,
    session: AsyncSession,
    ledger: SpinLedger,
    db_user: User | None = None,
) -> None:
    if not await require_admin_or_reply(message, settings, session):
        return

    try:
        used = await ledger.reconcile_tickets_used((command.args or "").strip())
    except InvalidAccountId:
        await message.answer("Usage: <code>/reconcile &lt;acct&gt;</code>")
        return
    except PersistenceFailure:
        await message.answer("⚠️ Reconcile failed. Try again.")
        return

    account_id = (command.args or "").strip()
    await log_admin_action(
        session,
        actor_user_id=db_user.id if db_user else None,
        action="tickets_reconcile",
        target_account_id=account_id,
        payload={"tickets_used": used},
    )
    await message.answer(f"🔁 <b>{account_id}</b>: tickets used = {used}")
