# spinbot/handlers/admin/spinlog.py
from __future__ import annotations

from aiogram import F, Router
from aiogram.filters import Command, CommandObject
from aiogram.types import Message
from sqlalchemy.ext.asyncio import AsyncSession

from spinbot.config.settings import Settings
from spinbot.handlers.admin.panel import require_admin_or_reply
from spinbot.keyboards.admin import BTN_SPIN_LOG
from spinbot.services.accounts import validate_account_id
from spinbot.services.errors import InvalidAccountId
from spinbot.services.ledger import SpinLedger

router = Router()

DEFAULT_LIMIT = 15
MAX_LIMIT = 50


def _parse_args(raw: str | None) -> tuple[str | None, int]:
    """[acct] [n] in either order; unknown tokens are ignored."""
    account_id: str | None = None
    limit = DEFAULT_LIMIT
    for token in (raw or "").split():
        if token.isdigit():
            limit = max(1, min(MAX_LIMIT, int(token)))
            continue
        try:
            account_id = validate_account_id(token)
        except InvalidAccountId:
            continue
    return account_id, limit


async def _render(message: Message, ledger: SpinLedger, account_id: str | None, limit: int) -> None:
    stats = await ledger.log_stats()
    rows = await ledger.recent_logs(limit, account_id=account_id)

    lines = [
        "📜 <b>Spin log</b>",
        f"Total: {stats.total_spins} • Wins: {stats.total_wins} • "
        f"Bonus: {stats.bonus_spins} • Paid: {stats.total_paid:,}",
        "",
    ]
    if not rows:
        lines.append("No spins yet.")
    for r in rows:
        kind = "B" if r.is_bonus else "T"
        lines.append(
            f"{r.created_at:%m-%d %H:%M} [{kind}] {r.account_id} "
            f"{r.result.value} {r.prize_label} ({r.tickets_used_after}/{r.tickets_total_at_spin})"
        )
    await message.answer("\n".join(lines))


@router.message(Command("spinlog"))
async def spinlog_cmd(
    message: Message,
    command: CommandObject,
    settings: Settings,
    session: AsyncSession,
    ledger: SpinLedger,
) -> None:
    if not await require_admin_or_reply(message, settings, session):
        return
    account_id, limit = _parse_args(command.args)
    await _render(message, ledger, account_id, limit)


@router.message(F.text == BTN_SPIN_LOG)
async def spinlog_button(
    message: Message, settings: Settings, session: AsyncSession, ledger: SpinLedger
) -> None:
    if not await require_admin_or_reply(message, settings, session):
        return
    await _render(message, ledger, None, DEFAULT_LIMIT)
