# spinbot/services/bonus.py
from __future__ import annotations

import logging
import math
import random
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable

from sqlalchemy import or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from spinbot.database.models import BonusState, SpinLog, SpinOutcome, WalletTxKind
from spinbot.database.session import Database
from spinbot.database.upsert import insert_ignore
from spinbot.services.accounts import AccountLocks, hash_client_ref, validate_account_id
from spinbot.services.errors import AccountFlagged, BonusOnCooldown, PersistenceFailure
from spinbot.services.flags import FlagService
from spinbot.services.ledger import SpinResult, read_tickets_used, snapshot_wagered
from spinbot.services.prize_table import PrizeTables
from spinbot.services.selector import Rng, select_prize
from spinbot.services.tickets import compute_entitlement
from spinbot.services.wager import WagerSnapshot
from spinbot.services.wallet import WalletService
from spinbot.utils.dates import to_naive_utc, utc_now_naive

log = logging.getLogger(__name__)

DEFAULT_COOLDOWN = timedelta(hours=24)

_system_random = random.SystemRandom()


@dataclass(frozen=True, slots=True)
class BonusStatus:
    available: bool
    remaining_ms: int
    next_bonus_at: datetime | None  # None when available now


def check_bonus_eligible(
    last_bonus_spin_at: datetime | None,
    now: datetime,
    cooldown: timedelta = DEFAULT_COOLDOWN,
) -> BonusStatus:
    """Pure: is a bonus draw allowed at `now`, and if not, how long until it is."""
    if last_bonus_spin_at is None:
        return BonusStatus(available=True, remaining_ms=0, next_bonus_at=None)

    now = to_naive_utc(now)
    next_at = to_naive_utc(last_bonus_spin_at) + cooldown
    if now >= next_at:
        return BonusStatus(available=True, remaining_ms=0, next_bonus_at=None)

    remaining_ms = math.ceil((next_at - now) / timedelta(milliseconds=1))
    return BonusStatus(available=False, remaining_ms=remaining_ms, next_bonus_at=next_at)


async def _read_last_bonus(session: AsyncSession, account_id: str) -> datetime | None:
    return await session.scalar(
        select(BonusState.last_bonus_spin_at).where(BonusState.account_id == account_id)
    )


class BonusGate:
    """
    Daily bonus draws: one per account per rolling cooldown window.

    Fully separate from ticket spins: it never reads or writes the ticket counter
    for entitlement, and its log rows carry is_bonus=True. The cooldown check and the
    stamp of last_bonus_spin_at happen in one transaction under the account's lock,
    and the stamp is a conditional UPDATE so two processes cannot both pass.
    """

    def __init__(
        self,
        db: Database,
        tables: PrizeTables,
        *,
        cooldown: timedelta = DEFAULT_COOLDOWN,
        ticket_unit: int = 1000,
        rng: Rng = _system_random.random,
        locks: AccountLocks | None = None,
        client_hash_salt: str = "spinbot",
        request_id_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
    ) -> None:
        self.db = db
        self.tables = tables
        self.cooldown = cooldown
        self.ticket_unit = ticket_unit
        self.rng = rng
        self.locks = locks or AccountLocks()
        self.client_hash_salt = client_hash_salt
        self.request_id_factory = request_id_factory

    async def bonus_check(self, account_id: str, now: datetime | None = None) -> BonusStatus:
        account_id = validate_account_id(account_id)
        now = to_naive_utc(now) if now else utc_now_naive()
        async with self.db.session() as session:
            last = await _read_last_bonus(session, account_id)
        return check_bonus_eligible(last, now, self.cooldown)

    async def bonus_spin(
        self,
        account_id: str,
        now: datetime | None = None,
        *,
        snapshot: WagerSnapshot | None = None,
        client_ref: str | int | None = None,
    ) -> SpinResult:
        """
        Draw from the bonus table if the cooldown has elapsed.

        Raises BonusOnCooldown / AccountFlagged (nothing written) or
        PersistenceFailure (nothing written, safe to retry).
        """
        account_id = validate_account_id(account_id)
        wagered = snapshot_wagered(account_id, snapshot)
        now = to_naive_utc(now) if now else utc_now_naive()
        request_id = self.request_id_factory()
        client_hash = hash_client_ref(client_ref, self.client_hash_salt)
        table = self.tables.bonus

        async with self.locks.hold(account_id):
            try:
                async with self.db.session() as session:
                    async with session.begin():
                        if await FlagService.is_flagged(session, account_id):
                            raise AccountFlagged(account_id)

                        last = await _read_last_bonus(session, account_id)
                        status = check_bonus_eligible(last, now, self.cooldown)
                        if not status.available:
                            raise BonusOnCooldown(account_id, status.remaining_ms, status.next_bonus_at)

                        await self._stamp(session, account_id, now)

                        prize = select_prize(table, self.rng)
                        if prize.is_win:
                            balance = await WalletService.credit(
                                session,
                                account_id=account_id,
                                amount=prize.value,
                                kind=WalletTxKind.BONUS_WIN,
                                ref=request_id,
                            )
                        else:
                            balance = await WalletService.balance(session, account_id)

                        # ticket columns record the untouched counter for context only
                        used = await read_tickets_used(session, account_id)
                        ent = compute_entitlement(wagered, used, self.ticket_unit)

                        session.add(
                            SpinLog(
                                created_at=now,
                                account_id=account_id,
                                wagered_amount_at_spin=wagered,
                                tickets_total_at_spin=ent.tickets_total,
                                tickets_used_before=used,
                                tickets_used_after=used,
                                result=SpinOutcome.WIN if prize.is_win else SpinOutcome.LOSE,
                                prize_label=prize.label,
                                prize_value=prize.value,
                                is_bonus=True,
                                table_name=table.name,
                                request_id=request_id,
                                client_ip_hash=client_hash,
                            )
                        )
                        await session.flush()
            except BonusOnCooldown:
                log.debug("Bonus denied for %s: cooldown", account_id)
                raise
            except AccountFlagged:
                log.info("Bonus denied for flagged account %s", account_id)
                raise
            except SQLAlchemyError as e:
                log.exception("Bonus settle failed for %s (request %s)", account_id, request_id)
                raise PersistenceFailure(f"Bonus spin could not be recorded for {account_id}") from e

        log.info(
            "Bonus settled: account=%s result=%s prize=%s request=%s",
            account_id,
            "WIN" if prize.is_win else "LOSE",
            prize.label,
            request_id,
        )

        return SpinResult(
            result=SpinOutcome.WIN if prize.is_win else SpinOutcome.LOSE,
            prize_label=prize.label,
            prize_value=prize.value,
            tickets_total=ent.tickets_total,
            tickets_used_after=used,
            tickets_remaining_after=ent.tickets_remaining,
            wallet_balance_after=balance,
            is_bonus=True,
            request_id=request_id,
        )

    async def _stamp(self, session: AsyncSession, account_id: str, now: datetime) -> None:
        await insert_ignore(
            session,
            BonusState,
            {"account_id": account_id, "last_bonus_spin_at": None},
            ["account_id"],
        )
        res = await session.execute(
            update(BonusState)
            .where(
                BonusState.account_id == account_id,
                or_(
                    BonusState.last_bonus_spin_at.is_(None),
                    BonusState.last_bonus_spin_at <= now - self.cooldown,
                ),
            )
            .values(last_bonus_spin_at=now)
            .execution_options(synchronize_session=False)
        )
        if res.rowcount != 1:
            # another process claimed this window first
            last = await _read_last_bonus(session, account_id)
            status = check_bonus_eligible(last, now, self.cooldown)
            raise BonusOnCooldown(
                account_id,
                max(status.remaining_ms, 1),
                status.next_bonus_at or now + self.cooldown,
            )
