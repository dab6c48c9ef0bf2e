from __future__ import annotations

from datetime import datetime
from typing import Iterable

import pytest
import pytest_asyncio

from spinbot.database import Database
from spinbot.services.prize_table import PrizeTables, load_prize_tables
from spinbot.services.wager import WagerSnapshot


class SequenceRng:
    """Deterministic rng: yields the given values in order, repeating the last one."""

    def __init__(self, values: Iterable[float]) -> None:
        self.values = list(values)
        self.calls = 0

    def __call__(self) -> float:
        v = self.values[min(self.calls, len(self.values) - 1)]
        self.calls += 1
        return v


# primary defaults: Lose up to 0.99, "$5" above
LOSE_R = 0.5
WIN_R = 0.995


def snapshot(account_id: str, wagered: int) -> WagerSnapshot:
    return WagerSnapshot(account_id=account_id, wagered_amount=wagered, observed_at=datetime(2024, 1, 1))


@pytest_asyncio.fixture()
async def db(tmp_path):
    """File-backed SQLite so separate sessions see each other's commits."""
    database = Database(f"sqlite+aiosqlite:///{tmp_path / 'spinbot-test.db'}")
    await database.init_models()
    yield database
    await database.close()


@pytest_asyncio.fixture()
async def session(db: Database):
    async with db.session() as sess:
        yield sess


@pytest.fixture()
def tables() -> PrizeTables:
    return load_prize_tables()
