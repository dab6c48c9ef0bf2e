# spinbot/database/models/ticket.py
from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from spinbot.database.base import Base


class TicketCounter(Base):
    """
    Tickets consumed per external account.
    Monotonic: only ever incremented by the spin ledger (or raised by reconcile).
    Reconstructable from spin_logs as max(tickets_used_after) over non-bonus rows.
    """
    __tablename__ = "ticket_counters"
    __table_args__ = (
        CheckConstraint("tickets_used >= 0", name="tickets_used_non_negative"),
    )

    account_id: Mapped[str] = mapped_column(String(32), primary_key=True)
    tickets_used: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False),
        server_default=func.now(),
        onupdate=func.now(),
    )
