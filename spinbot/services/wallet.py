# spinbot/services/wallet.py
from __future__ import annotations

import logging

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from spinbot.database.models import Wallet, WalletTransaction, WalletTxKind
from spinbot.database.session import Database
from spinbot.database.tx import transactional
from spinbot.database.upsert import insert_ignore
from spinbot.services.errors import InsufficientBalance, PersistenceFailure
from spinbot.utils.dates import utc_now_naive

log = logging.getLogger(__name__)


async def _ensure_wallet(session: AsyncSession, account_id: str) -> None:
    await insert_ignore(session, Wallet, {"account_id": account_id, "balance": 0}, ["account_id"])


class WalletService:
    """
    Credit/debit primitives. Both run inside the caller's transaction and write a
    WalletTransaction row alongside the balance change. Balance never goes negative.
    """

    @staticmethod
    async def balance(session: AsyncSession, account_id: str) -> int:
        v = await session.scalar(select(Wallet.balance).where(Wallet.account_id == account_id))
        return int(v or 0)

    @staticmethod
    async def credit(
        session: AsyncSession,
        *,
        account_id: str,
        amount: int,
        kind: WalletTxKind = WalletTxKind.SPIN_WIN,
        ref: str | None = None,
    ) -> int:
        amount = int(amount)
        if amount <= 0:
            raise ValueError(f"credit amount must be positive, got {amount}")

        async with transactional(session):
            await _ensure_wallet(session, account_id)
            await session.execute(
                update(Wallet)
                .where(Wallet.account_id == account_id)
                .values(balance=Wallet.balance + amount, updated_at=utc_now_naive())
                .execution_options(synchronize_session=False)
            )
            new_balance = await WalletService.balance(session, account_id)
            session.add(
                WalletTransaction(
                    account_id=account_id,
                    kind=kind,
                    amount=amount,
                    balance_after=new_balance,
                    ref=ref,
                )
            )
            await session.flush()

        return new_balance

    @staticmethod
    async def debit(
        session: AsyncSession,
        *,
        account_id: str,
        amount: int,
        ref: str | None = None,
    ) -> int:
        """
        Only for the withdrawal side (approved payouts). Never called by the spin ledger.
        Raises InsufficientBalance and leaves the balance untouched if amount > balance.
        """
        amount = int(amount)
        if amount <= 0:
            raise ValueError(f"debit amount must be positive, got {amount}")

        async with transactional(session):
            res = await session.execute(
                update(Wallet)
                .where(Wallet.account_id == account_id, Wallet.balance >= amount)
                .values(balance=Wallet.balance - amount, updated_at=utc_now_naive())
                .execution_options(synchronize_session=False)
            )
            if res.rowcount != 1:
                current = await WalletService.balance(session, account_id)
                raise InsufficientBalance(account_id, current, amount)

            new_balance = await WalletService.balance(session, account_id)
            session.add(
                WalletTransaction(
                    account_id=account_id,
                    kind=WalletTxKind.DEBIT,
                    amount=-amount,
                    balance_after=new_balance,
                    ref=ref,
                )
            )
            await session.flush()

        return new_balance

    @staticmethod
    async def history(session: AsyncSession, account_id: str, limit: int = 10) -> list[WalletTransaction]:
        res = await session.execute(
            select(WalletTransaction)
            .where(WalletTransaction.account_id == account_id)
            .order_by(WalletTransaction.id.desc())
            .limit(limit)
        )
        return list(res.scalars().all())


async def credit_account(
    db: Database,
    account_id: str,
    amount: int,
    *,
    kind: WalletTxKind = WalletTxKind.SPIN_WIN,
    ref: str | None = None,
) -> int:
    """Standalone credit in its own transaction."""
    try:
        async with db.session() as session:
            return await WalletService.credit(
                session, account_id=account_id, amount=amount, kind=kind, ref=ref
            )
    except SQLAlchemyError as e:
        log.exception("Wallet credit failed for %s", account_id)
        raise PersistenceFailure(f"Wallet credit failed for {account_id}") from e


async def debit_account(db: Database, account_id: str, amount: int, *, ref: str | None = None) -> int:
    """Standalone debit in its own transaction (withdrawal collaborator entry point)."""
    try:
        async with db.session() as session:
            return await WalletService.debit(session, account_id=account_id, amount=amount, ref=ref)
    except SQLAlchemyError as e:
        log.exception("Wallet debit failed for %s", account_id)
        raise PersistenceFailure(f"Wallet debit failed for {account_id}") from e
