"""
Tests for the daily bonus gate.
"""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import func, select

from spinbot.database.models import (
    BonusState,
    SpinLog,
    SpinOutcome,
    TicketCounter,
    WalletTransaction,
    WalletTxKind,
)
from spinbot.services.bonus import BonusGate, check_bonus_eligible
from spinbot.services.errors import AccountFlagged, BonusOnCooldown, PersistenceFailure
from spinbot.services.flags import FlagService
from spinbot.services.ledger import SpinLedger
from spinbot.utils.dates import utc_now_naive

from tests.conftest import LOSE_R, SequenceRng, snapshot

NOW = datetime(2024, 6, 1, 12, 0, 0)


def make_gate(db, tables, rng_values=(LOSE_R,)) -> BonusGate:
    return BonusGate(db, tables, rng=SequenceRng(rng_values))


class TestCheckBonusEligible:
    def test_never_claimed(self):
        status = check_bonus_eligible(None, NOW)
        assert status.available is True
        assert status.remaining_ms == 0
        assert status.next_bonus_at is None

    def test_claimed_ten_hours_ago(self):
        status = check_bonus_eligible(NOW - timedelta(hours=10), NOW)
        assert status.available is False
        assert status.remaining_ms == 50_400_000
        assert status.next_bonus_at == NOW + timedelta(hours=14)

    def test_exactly_at_cooldown_end(self):
        assert check_bonus_eligible(NOW - timedelta(hours=24), NOW).available is True

    def test_one_ms_short(self):
        status = check_bonus_eligible(NOW - timedelta(hours=24) + timedelta(milliseconds=1), NOW)
        assert status.available is False
        assert status.remaining_ms == 1

    def test_aware_now_is_normalized(self):
        aware = NOW.replace(tzinfo=timezone.utc)
        status = check_bonus_eligible(NOW - timedelta(hours=23), aware)
        assert status.remaining_ms == 3_600_000

    def test_custom_cooldown(self):
        status = check_bonus_eligible(NOW - timedelta(hours=1), NOW, cooldown=timedelta(hours=2))
        assert status.remaining_ms == 3_600_000


class TestBonusSpin:
    @pytest.mark.asyncio
    async def test_one_bonus_per_window(self, db, tables):
        gate = make_gate(db, tables)

        res = await gate.bonus_spin("pat", NOW)
        assert res.is_bonus is True

        with pytest.raises(BonusOnCooldown) as exc:
            await gate.bonus_spin("pat", NOW + timedelta(hours=1))
        assert exc.value.remaining_ms == 23 * 3_600_000
        assert exc.value.next_bonus_at == NOW + timedelta(hours=24)

        async with db.session() as s:
            stamped = await s.scalar(select(BonusState.last_bonus_spin_at).where(BonusState.account_id == "pat"))
        assert stamped == NOW

        again = await gate.bonus_spin("pat", NOW + timedelta(hours=24))
        assert again.is_bonus is True

    @pytest.mark.asyncio
    async def test_bonus_check_reads_state(self, db, tables):
        gate = make_gate(db, tables)
        assert (await gate.bonus_check("quinn", NOW)).available is True

        await gate.bonus_spin("quinn", NOW)
        status = await gate.bonus_check("quinn", NOW + timedelta(hours=10))
        assert status.available is False
        assert status.remaining_ms == 50_400_000

    @pytest.mark.asyncio
    async def test_concurrent_claims_grant_one(self, db, tables):
        gate = make_gate(db, tables)
        results = await asyncio.gather(*(gate.bonus_spin("rae", NOW) for _ in range(4)), return_exceptions=True)

        assert sum(1 for r in results if not isinstance(r, Exception)) == 1
        assert sum(1 for r in results if isinstance(r, BonusOnCooldown)) == 3

    @pytest.mark.asyncio
    async def test_win_credits_wallet_as_bonus(self, db, tables):
        # bonus defaults: Lose to 0.97, "$1" to 0.995, "$2" above
        gate = make_gate(db, tables, [0.999])
        res = await gate.bonus_spin("sam", NOW)

        assert res.prize_label == "$2"
        assert res.wallet_balance_after == 2
        async with db.session() as s:
            kinds = (await s.execute(select(WalletTransaction.kind))).scalars().all()
        assert kinds == [WalletTxKind.BONUS_WIN]

    @pytest.mark.asyncio
    async def test_bonus_never_touches_tickets(self, db, tables):
        gate = make_gate(db, tables)
        snap = snapshot("tom", 3000)
        res = await gate.bonus_spin("tom", NOW, snapshot=snap)

        assert res.tickets_total == 3
        assert res.tickets_remaining_after == 3
        async with db.session() as s:
            assert await s.scalar(select(func.count()).select_from(TicketCounter)) == 0
            row = await s.scalar(select(SpinLog).where(SpinLog.account_id == "tom"))
        assert row.is_bonus is True
        assert row.table_name == "bonus"
        assert row.tickets_used_before == row.tickets_used_after == 0

        ledger = SpinLedger(db, tables, ticket_unit=1000)
        assert (await ledger.lookup("tom", snap)).tickets_remaining == 3

    @pytest.mark.asyncio
    async def test_ticket_spins_do_not_block_bonus(self, db, tables):
        ledger = SpinLedger(db, tables, ticket_unit=1000, rng=SequenceRng([LOSE_R]))
        snap = snapshot("uma", 1000)
        await ledger.spin("uma", snap)

        gate = make_gate(db, tables)
        res = await gate.bonus_spin("uma", NOW, snapshot=snap)
        assert res.tickets_used_after == 1

    @pytest.mark.asyncio
    async def test_flagged_account_cannot_claim(self, db, tables):
        async with db.session() as s:
            await FlagService.set_flag(s, "vic", disputed=True)
            await s.commit()

        gate = make_gate(db, tables)
        with pytest.raises(AccountFlagged):
            await gate.bonus_spin("vic", NOW)
        # denial did not start the cooldown
        assert (await gate.bonus_check("vic", NOW)).available is True

    @pytest.mark.asyncio
    async def test_snapshot_for_other_account_is_rejected(self, db, tables):
        gate = make_gate(db, tables)
        with pytest.raises(ValueError):
            await gate.bonus_spin("wes", NOW, snapshot=snapshot("xena", 5000))
        assert (await gate.bonus_check("wes", NOW)).available is True


class TestBonusAtomicity:
    @pytest.mark.asyncio
    async def test_failed_settle_leaves_cooldown_unstarted(self, db, tables):
        # a log row already holding the request id makes the append fail after stamp and credit
        async with db.session() as s:
            s.add(
                SpinLog(
                    created_at=utc_now_naive(),
                    account_id="other",
                    result=SpinOutcome.LOSE,
                    prize_label="Lose",
                    prize_value=0,
                    is_bonus=True,
                    table_name="bonus",
                    request_id="dup",
                )
            )
            await s.commit()

        gate = BonusGate(db, tables, rng=SequenceRng([0.999]), request_id_factory=lambda: "dup")

        with pytest.raises(PersistenceFailure) as exc:
            await gate.bonus_spin("yara", NOW)
        assert exc.value.retryable is True

        assert (await gate.bonus_check("yara", NOW)).available is True
        async with db.session() as s:
            stamped = await s.scalar(
                select(BonusState.last_bonus_spin_at).where(BonusState.account_id == "yara")
            )
            tx_count = await s.scalar(select(func.count()).select_from(WalletTransaction))
            log_count = await s.scalar(select(func.count()).select_from(SpinLog))
        assert stamped is None
        assert tx_count == 0
        assert log_count == 1

        ledger = SpinLedger(db, tables, ticket_unit=1000)
        assert (await ledger.lookup("yara", None)).wallet_balance == 0

    @pytest.mark.asyncio
    async def test_other_accounts_do_not_wait_on_a_held_lock(self, db, tables):
        gate = make_gate(db, tables)
        async with gate.locks.hold("zed"):
            res = await asyncio.wait_for(gate.bonus_spin("zoe", NOW), timeout=5)
        assert res.is_bonus is True
