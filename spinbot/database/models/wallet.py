# spinbot/database/models/wallet.py
from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Enum, Index, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from spinbot.database.base import Base


class WalletTxKind(str, enum.Enum):
    SPIN_WIN = "spin_win"
    BONUS_WIN = "bonus_win"
    DEBIT = "debit"


class Wallet(Base):
    __tablename__ = "wallets"
    __table_args__ = (
        CheckConstraint("balance >= 0", name="balance_non_negative"),
    )

    account_id: Mapped[str] = mapped_column(String(32), primary_key=True)
    balance: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False),
        server_default=func.now(),
        onupdate=func.now(),
    )


class WalletTransaction(Base):
    """
    Immutable ledger of wallet mutations, written in the same transaction as the balance change.
    """
    __tablename__ = "wallet_transactions"
    __table_args__ = (
        Index("ix_wallet_transactions_account_time", "account_id", "created_at"),
        CheckConstraint("amount != 0", name="amount_nonzero"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    account_id: Mapped[str] = mapped_column(String(32), index=True)

    kind: Mapped[WalletTxKind] = mapped_column(Enum(WalletTxKind, native_enum=False), index=True)
    amount: Mapped[int] = mapped_column(Integer)  # positive credit, negative debit
    balance_after: Mapped[int] = mapped_column(Integer)

    # spin request id for wins, free-text note for debits
    ref: Mapped[str | None] = mapped_column(String(255), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), server_default=func.now())
