"""
Tests for the per-update session middleware.
"""

import pytest
from sqlalchemy import select

from spinbot.database.models import User
from spinbot.database.repo.users import link_account
from spinbot.services.ledger import SpinLedger
from spinbot.utils.middleware import DbSessionMiddleware

from tests.conftest import LOSE_R, SequenceRng, snapshot


def make_event(mocker, telegram_id: int):
    event = mocker.MagicMock()
    event.from_user.id = telegram_id
    event.from_user.username = f"user{telegram_id}"
    event.from_user.first_name = "Test"
    event.from_user.last_name = None
    return event


async def _user(db, telegram_id: int):
    async with db.session() as s:
        return await s.scalar(select(User).where(User.telegram_id == telegram_id))


class TestDbSessionMiddleware:
    @pytest.mark.asyncio
    async def test_new_user_does_not_block_ledger_writes(self, db, tables, mocker):
        ledger = SpinLedger(db, tables, ticket_unit=1000, rng=SequenceRng([LOSE_R]))
        middleware = DbSessionMiddleware(db)
        seen = {}

        async def handler(event, data):
            seen["db_user"] = data["db_user"]
            return await ledger.spin("paul", snapshot("paul", 1000))

        res = await middleware(handler, make_event(mocker, 777), {})

        assert res.tickets_used_after == 1
        assert seen["db_user"].telegram_id == 777
        assert (await _user(db, 777)) is not None

    @pytest.mark.asyncio
    async def test_handler_writes_commit_on_success(self, db, mocker):
        middleware = DbSessionMiddleware(db)

        async def handler(event, data):
            await link_account(data["session"], data["db_user"], "rita")

        await middleware(handler, make_event(mocker, 778), {})

        assert (await _user(db, 778)).account_id == "rita"

    @pytest.mark.asyncio
    async def test_handler_error_rolls_back_its_writes_but_keeps_user(self, db, mocker):
        middleware = DbSessionMiddleware(db)

        async def handler(event, data):
            await link_account(data["session"], data["db_user"], "sara")
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            await middleware(handler, make_event(mocker, 779), {})

        user = await _user(db, 779)
        assert user is not None
        assert user.account_id is None
