# spinbot/database/models/logs.py
from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import DateTime, Enum, ForeignKey, Index, String, func
from sqlalchemy.orm import Mapped, mapped_column

from spinbot.database.base import Base


class AdminActionLog(Base):
    """
    Log all admin actions (flags, debits, reconciles) for audit.
    Payload is JSON string (serialized dict in services).
    """
    __tablename__ = "admin_action_logs"
    __table_args__ = (
        Index("ix_admin_action_logs_actor_time", "actor_user_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    actor_user_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )

    action: Mapped[str] = mapped_column(String(64), index=True)  # e.g. "flag_set", "wallet_debit"
    target_account_id: Mapped[str | None] = mapped_column(String(32), nullable=True, index=True)

    payload_json: Mapped[str | None] = mapped_column(String(2000), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), server_default=func.now())


class DenialAction(str, enum.Enum):
    SPIN_DENIED = "spin_denied"
    BONUS_DENIED = "bonus_denied"
    FLAGGED_DENIED = "flagged_denied"
    RATE_LIMITED = "rate_limited"


class DenialLog(Base):
    """
    Denied or throttled spin / bonus attempts, recorded by the command layer for abuse monitoring.
    Kept apart from spin_logs, which only holds settled draws.
    """
    __tablename__ = "denial_logs"
    __table_args__ = (
        Index("ix_denial_logs_account_time", "account_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    account_id: Mapped[str | None] = mapped_column(String(32), nullable=True)
    action: Mapped[DenialAction] = mapped_column(Enum(DenialAction, native_enum=False), index=True)
    client_ip_hash: Mapped[str | None] = mapped_column(String(64), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), server_default=func.now())
