# spinbot/database/models/bonus.py
from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from spinbot.database.base import Base


class BonusState(Base):
    __tablename__ = "bonus_states"

    account_id: Mapped[str] = mapped_column(String(32), primary_key=True)
    last_bonus_spin_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)
