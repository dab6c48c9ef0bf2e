# spinbot/database/models/spin.py
from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Enum, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from spinbot.database.base import Base


class SpinOutcome(str, enum.Enum):
    WIN = "WIN"
    LOSE = "LOSE"


class SpinLog(Base):
    """
    Append-only audit trail of every settled draw (ticket spins and bonus spins).
    Rows are never updated. Denied attempts are not written here.
    """
    __tablename__ = "spin_logs"
    __table_args__ = (
        Index("ix_spin_logs_account_bonus", "account_id", "is_bonus"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), index=True)

    account_id: Mapped[str] = mapped_column(String(32), index=True)

    wagered_amount_at_spin: Mapped[int] = mapped_column(Integer, default=0)
    tickets_total_at_spin: Mapped[int] = mapped_column(Integer, default=0)
    tickets_used_before: Mapped[int] = mapped_column(Integer, default=0)
    tickets_used_after: Mapped[int] = mapped_column(Integer, default=0)

    result: Mapped[SpinOutcome] = mapped_column(Enum(SpinOutcome, native_enum=False), index=True)
    prize_label: Mapped[str] = mapped_column(String(64))
    prize_value: Mapped[int] = mapped_column(Integer, default=0)  # currency units

    is_bonus: Mapped[bool] = mapped_column(Boolean, default=False)
    table_name: Mapped[str] = mapped_column(String(32))

    request_id: Mapped[str] = mapped_column(String(36), unique=True)
    client_ip_hash: Mapped[str | None] = mapped_column(String(64), nullable=True)
