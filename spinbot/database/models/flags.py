# spinbot/database/models/flags.py
from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column

from spinbot.database.base import Base


class AccountFlag(Base):
    """
    Admin-maintained status per external account.
    Blacklisted or disputed accounts cannot spin or claim bonus draws.
    """
    __tablename__ = "account_flags"

    account_id: Mapped[str] = mapped_column(String(32), primary_key=True)
    is_blacklisted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_disputed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    notes: Mapped[str | None] = mapped_column(String(500), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False),
        server_default=func.now(),
        onupdate=func.now(),
    )

    @property
    def is_flagged(self) -> bool:
        return bool(self.is_blacklisted or self.is_disputed)
