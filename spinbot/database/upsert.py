# spinbot/database/upsert.py
from __future__ import annotations

from typing import Any, Sequence

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession


async def insert_ignore(
    session: AsyncSession,
    model: Any,
    values: dict[str, Any],
    index_elements: Sequence[str],
) -> None:
    """
    INSERT ... ON CONFLICT DO NOTHING for SQLite / PostgreSQL.
    Used to create per-account rows lazily without racing concurrent creators.
    """
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        stmt = pg_insert(model).values(**values)
    else:
        stmt = sqlite_insert(model).values(**values)
    await session.execute(stmt.on_conflict_do_nothing(index_elements=list(index_elements)))
