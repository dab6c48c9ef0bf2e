"""
Tests for account ids, linking and per-account locks.
"""

import asyncio

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from spinbot.database.models import DenialAction
from spinbot.database.repo.audit_repo import count_denials, log_admin_action, log_denial
from spinbot.database.repo.users import get_user_by_account, link_account, upsert_user
from spinbot.services.accounts import AccountLocks, hash_client_ref, validate_account_id
from spinbot.services.errors import AccountAlreadyLinked, InvalidAccountId


class TestValidateAccountId:
    @pytest.mark.parametrize("raw", ["ab", "Ergys_99", "  luke  ", "x" * 32])
    def test_valid(self, raw):
        assert validate_account_id(raw) == raw.strip()

    @pytest.mark.parametrize("raw", ["", None, "a", "x" * 33, "bad name", "semi;colon", "émile"])
    def test_invalid(self, raw):
        with pytest.raises(InvalidAccountId):
            validate_account_id(raw)


def test_client_ref_hash():
    assert hash_client_ref(None, "s") is None
    assert hash_client_ref("", "s") is None
    h = hash_client_ref(12345, "s")
    assert len(h) == 64
    assert h == hash_client_ref("12345", "s")
    assert h != hash_client_ref(12345, "other")


class TestAccountLocks:
    @pytest.mark.asyncio
    async def test_same_account_is_serialized(self):
        locks = AccountLocks()
        order: list[str] = []

        async def worker(tag: str) -> None:
            async with locks.hold("ann"):
                order.append(f"{tag}-in")
                await asyncio.sleep(0.01)
                order.append(f"{tag}-out")

        await asyncio.gather(worker("a"), worker("b"))
        assert order == ["a-in", "a-out", "b-in", "b-out"]

    @pytest.mark.asyncio
    async def test_different_accounts_do_not_contend(self):
        locks = AccountLocks()
        async with locks.hold("ann"):
            assert not locks.get("bob").locked()


class TestLinkAccount:
    @pytest.mark.asyncio
    async def test_link_and_relink(self, session: AsyncSession):
        user = await upsert_user(session, telegram_id=1, username="one")
        await link_account(session, user, " ann ")
        assert user.account_id == "ann"
        assert user.linked_at is not None

        await link_account(session, user, "ann2")
        assert user.account_id == "ann2"
        assert await get_user_by_account(session, "ann") is None

    @pytest.mark.asyncio
    async def test_account_taken_by_someone_else(self, session: AsyncSession):
        first = await upsert_user(session, telegram_id=1)
        second = await upsert_user(session, telegram_id=2)
        await link_account(session, first, "ann")

        with pytest.raises(AccountAlreadyLinked):
            await link_account(session, second, "ann")
        assert second.account_id is None

    @pytest.mark.asyncio
    async def test_invalid_id_is_rejected(self, session: AsyncSession):
        user = await upsert_user(session, telegram_id=1)
        with pytest.raises(InvalidAccountId):
            await link_account(session, user, "no spaces")

    @pytest.mark.asyncio
    async def test_upsert_refreshes_profile(self, session: AsyncSession):
        first = await upsert_user(session, telegram_id=7, username="old")
        again = await upsert_user(session, telegram_id=7, username="new")
        assert again.id == first.id
        assert again.username == "new"


class TestAuditRepo:
    @pytest.mark.asyncio
    async def test_denials_are_counted(self, session: AsyncSession):
        await log_denial(session, account_id="ann", action=DenialAction.SPIN_DENIED)
        await log_denial(session, account_id="ann", action=DenialAction.BONUS_DENIED)
        await log_denial(session, account_id="bob", action=DenialAction.SPIN_DENIED)

        assert await count_denials(session, "ann") == 2
        assert await count_denials(session, "ann", DenialAction.SPIN_DENIED) == 1

    @pytest.mark.asyncio
    async def test_admin_action_payload_is_json(self, session: AsyncSession):
        user = await upsert_user(session, telegram_id=99)
        row = await log_admin_action(
            session, actor_user_id=user.id, action="flag_blacklist", target_account_id="ann", payload={"notes": "x"}
        )
        assert row.payload_json == '{"notes": "x"}'
