"""
Tests for wallet credit / debit.
"""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from spinbot.database.models import WalletTxKind
from spinbot.services.errors import InsufficientBalance
from spinbot.services.wallet import WalletService, credit_account, debit_account


class TestWallet:
    @pytest.mark.asyncio
    async def test_missing_wallet_has_zero_balance(self, session: AsyncSession):
        assert await WalletService.balance(session, "walt") == 0

    @pytest.mark.asyncio
    async def test_credit_then_debit(self, db, session: AsyncSession):
        assert await credit_account(db, "xena", 5, ref="spin-1") == 5
        assert await credit_account(db, "xena", 2, kind=WalletTxKind.BONUS_WIN) == 7
        assert await debit_account(db, "xena", 7, ref="payout") == 0

        history = await WalletService.history(session, "xena")
        assert [(t.kind, t.amount, t.balance_after) for t in history] == [
            (WalletTxKind.DEBIT, -7, 0),
            (WalletTxKind.BONUS_WIN, 2, 7),
            (WalletTxKind.SPIN_WIN, 5, 5),
        ]

    @pytest.mark.asyncio
    async def test_overdraw_is_refused(self, db, session: AsyncSession):
        await credit_account(db, "yuri", 5)

        with pytest.raises(InsufficientBalance) as exc:
            await debit_account(db, "yuri", 6)
        assert exc.value.balance == 5
        assert exc.value.amount == 6

        assert await WalletService.balance(session, "yuri") == 5
        assert len(await WalletService.history(session, "yuri")) == 1

    @pytest.mark.asyncio
    async def test_debit_without_wallet(self, db):
        with pytest.raises(InsufficientBalance) as exc:
            await debit_account(db, "zed", 1)
        assert exc.value.balance == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", [0, -5])
    async def test_non_positive_amounts_rejected(self, db, amount):
        with pytest.raises(ValueError):
            await credit_account(db, "amy", amount)
        with pytest.raises(ValueError):
            await debit_account(db, "amy", amount)

