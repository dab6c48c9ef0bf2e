# spinbot/services/auth.py
from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from spinbot.config import Settings
from spinbot.database.models import Admin, User


@dataclass(frozen=True, slots=True)
class AuthResult:
    is_root: bool
    is_admin: bool
    role: str  # "root" | "admin" | "user"


class AuthService:
    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    async def resolve(self, session: AsyncSession, user: User) -> AuthResult:
        # Root admins come from env, always takes precedence.
        if user.telegram_id in self.settings.root_admin_ids:
            return AuthResult(is_root=True, is_admin=True, role="root")

        admin = await session.scalar(select(Admin).where(Admin.user_id == user.id))
        if admin is None:
            return AuthResult(is_root=False, is_admin=False, role="user")

        return AuthResult(is_root=False, is_admin=True, role=admin.role.value)

    async def resolve_by_telegram(self, session: AsyncSession, telegram_id: int) -> AuthResult:
        if telegram_id in self.settings.root_admin_ids:
            return AuthResult(is_root=True, is_admin=True, role="root")

        user = await session.scalar(select(User).where(User.telegram_id == telegram_id))
        if user is None:
            return AuthResult(is_root=False, is_admin=False, role="user")
        return await self.resolve(session, user)
