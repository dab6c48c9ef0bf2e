from __future__ import annotations

import json
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from spinbot.database.models import AdminActionLog, DenialAction, DenialLog


async def log_admin_action(
    session: AsyncSession,
    *,
    actor_user_id: int | None,
    action: str,
    target_account_id: str | None = None,
    payload: dict[str, Any] | None = None,
) -> AdminActionLog:
    row = AdminActionLog(
        actor_user_id=actor_user_id,
        action=action,
        target_account_id=target_account_id,
        payload_json=json.dumps(payload, default=str)[:2000] if payload else None,
    )
    session.add(row)
    await session.flush()
    return row


async def log_denial(
    session: AsyncSession,
    *,
    account_id: str | None,
    action: DenialAction,
    client_ip_hash: str | None = None,
) -> None:
    session.add(DenialLog(account_id=account_id, action=action, client_ip_hash=client_ip_hash))
    await session.flush()


async def count_denials(session: AsyncSession, account_id: str, action: DenialAction | None = None) -> int:
    q = select(func.count(DenialLog.id)).where(DenialLog.account_id == account_id)
    if action is not None:
        q = q.where(DenialLog.action == action)
    return int(await session.scalar(q) or 0)
