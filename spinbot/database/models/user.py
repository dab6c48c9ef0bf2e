# spinbot/database/models/user.py
from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import BigInteger, DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from spinbot.database.base import Base

if TYPE_CHECKING:
    from spinbot.database.models.admin import Admin


class User(Base):
    """
    Telegram identity. `account_id` is the linked external wagering username
    (case-sensitive) and is what every ledger table is keyed by.
    """
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    telegram_id: Mapped[int] = mapped_column(BigInteger, unique=True, index=True)

    account_id: Mapped[str | None] = mapped_column(String(32), unique=True, nullable=True, index=True)
    linked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)

    username: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    first_name: Mapped[str | None] = mapped_column(String(128), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(128), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False),
        server_default=func.now(),
        onupdate=func.now(),
    )

    admin: Mapped["Admin | None"] = relationship(back_populates="user", uselist=False)
