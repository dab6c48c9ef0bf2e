# spinbot/services/flags.py
from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from spinbot.database.models import AccountFlag


class FlagService:
    @staticmethod
    async def get(session: AsyncSession, account_id: str) -> AccountFlag | None:
        return await session.scalar(select(AccountFlag).where(AccountFlag.account_id == account_id))

    @staticmethod
    async def is_flagged(session: AsyncSession, account_id: str) -> bool:
        res = await session.execute(
            select(AccountFlag.is_blacklisted, AccountFlag.is_disputed).where(
                AccountFlag.account_id == account_id
            )
        )
        row = res.first()
        return bool(row and (row[0] or row[1]))

    @staticmethod
    async def set_flag(
        session: AsyncSession,
        account_id: str,
        *,
        blacklisted: bool | None = None,
        disputed: bool | None = None,
        notes: str | None = None,
    ) -> AccountFlag:
        """Update only the fields given; creates the row on first use."""
        flag = await FlagService.get(session, account_id)
        if flag is None:
            flag = AccountFlag(account_id=account_id, is_blacklisted=False, is_disputed=False)
            session.add(flag)

        if blacklisted is not None:
            flag.is_blacklisted = blacklisted
        if disputed is not None:
            flag.is_disputed = disputed
        if notes is not None:
            flag.notes = notes[:500]

        await session.flush()
        return flag
