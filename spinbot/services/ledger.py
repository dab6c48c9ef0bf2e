# spinbot/services/ledger.py
from __future__ import annotations

import logging
import random
import uuid
from dataclasses import dataclass
from typing import Callable

from sqlalchemy import case, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from spinbot.database.models import SpinLog, SpinOutcome, TicketCounter, WalletTxKind
from spinbot.database.session import Database
from spinbot.database.upsert import insert_ignore
from spinbot.services.accounts import AccountLocks, hash_client_ref, validate_account_id
from spinbot.services.errors import AccountFlagged, InsufficientTickets, PersistenceFailure
from spinbot.services.flags import FlagService
from spinbot.services.prize_table import PrizeOption, PrizeTables
from spinbot.services.selector import Rng, select_prize
from spinbot.services.tickets import Entitlement, compute_entitlement
from spinbot.services.wager import WagerSnapshot
from spinbot.services.wallet import WalletService
from spinbot.utils.dates import utc_now_naive

log = logging.getLogger(__name__)

_system_random = random.SystemRandom()


@dataclass(frozen=True, slots=True)
class SpinResult:
    result: SpinOutcome
    prize_label: str
    prize_value: int
    tickets_total: int
    tickets_used_after: int
    tickets_remaining_after: int
    wallet_balance_after: int
    is_bonus: bool
    request_id: str

    @property
    def is_win(self) -> bool:
        return self.result == SpinOutcome.WIN


@dataclass(frozen=True, slots=True)
class LookupResult:
    account_id: str
    wagered_amount: int
    tickets_total: int
    tickets_used: int
    tickets_remaining: int
    wallet_balance: int


@dataclass(frozen=True, slots=True)
class LogStats:
    total_spins: int
    total_wins: int
    bonus_spins: int
    total_paid: int


async def read_tickets_used(session: AsyncSession, account_id: str) -> int:
    v = await session.scalar(
        select(TicketCounter.tickets_used).where(TicketCounter.account_id == account_id)
    )
    return int(v or 0)


def snapshot_wagered(account_id: str, snapshot: WagerSnapshot | None) -> int:
    if snapshot is None:
        return 0
    if snapshot.account_id != account_id:
        raise ValueError(f"Wager snapshot for {snapshot.account_id!r} passed for {account_id!r}")
    return max(0, int(snapshot.wagered_amount))


class SpinLedger:
    """
    Ticket spins: Authorize -> Draw -> Settle.

    Authorize and Settle run in one database transaction while holding the
    account's lock, so a ticket is checked and consumed atomically. The ticket
    increment is also a conditional UPDATE (used < total), which keeps separate
    processes from overdrawing. Commit is the only point where anything lands:
    ticket increment, wallet credit and log row are applied together or not at all.
    """

    def __init__(
        self,
        db: Database,
        tables: PrizeTables,
        *,
        ticket_unit: int,
        rng: Rng = _system_random.random,
        locks: AccountLocks | None = None,
        client_hash_salt: str = "spinbot",
        request_id_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
    ) -> None:
        if ticket_unit <= 0:
            raise ValueError(f"ticket_unit must be positive, got {ticket_unit}")
        self.db = db
        self.tables = tables
        self.ticket_unit = ticket_unit
        self.rng = rng
        self.locks = locks or AccountLocks()
        self.client_hash_salt = client_hash_salt
        self.request_id_factory = request_id_factory

    # -------------------------------------------------
    # Reads
    # -------------------------------------------------

    async def lookup(self, account_id: str, snapshot: WagerSnapshot | None) -> LookupResult:
        account_id = validate_account_id(account_id)
        wagered = snapshot_wagered(account_id, snapshot)

        async with self.db.session() as session:
            used = await read_tickets_used(session, account_id)
            balance = await WalletService.balance(session, account_id)

        ent = compute_entitlement(wagered, used, self.ticket_unit)
        return LookupResult(
            account_id=account_id,
            wagered_amount=wagered,
            tickets_total=ent.tickets_total,
            tickets_used=ent.tickets_used,
            tickets_remaining=ent.tickets_remaining,
            wallet_balance=balance,
        )

    async def recent_logs(self, limit: int = 20, account_id: str | None = None) -> list[SpinLog]:
        q = select(SpinLog).order_by(SpinLog.id.desc()).limit(limit)
        if account_id is not None:
            q = q.where(SpinLog.account_id == account_id)
        async with self.db.session() as session:
            res = await session.execute(q)
            return list(res.scalars().all())

    async def log_stats(self) -> LogStats:
        async with self.db.session() as session:
            res = await session.execute(
                select(
                    func.count(SpinLog.id),
                    func.sum(case((SpinLog.result == SpinOutcome.WIN, 1), else_=0)),
                    func.sum(case((SpinLog.is_bonus.is_(True), 1), else_=0)),
                    func.coalesce(func.sum(SpinLog.prize_value), 0),
                )
            )
            total, wins, bonus, paid = res.one()
        return LogStats(
            total_spins=int(total or 0),
            total_wins=int(wins or 0),
            bonus_spins=int(bonus or 0),
            total_paid=int(paid or 0),
        )

    # -------------------------------------------------
    # Spin
    # -------------------------------------------------

    async def spin(
        self,
        account_id: str,
        snapshot: WagerSnapshot | None,
        *,
        client_ref: str | int | None = None,
    ) -> SpinResult:
        """
        Consume one ticket and draw from the primary table.

        Raises AccountFlagged or InsufficientTickets (nothing written),
        or PersistenceFailure (nothing written, safe to retry).
        """
        account_id = validate_account_id(account_id)
        wagered = snapshot_wagered(account_id, snapshot)
        request_id = self.request_id_factory()
        client_hash = hash_client_ref(client_ref, self.client_hash_salt)

        async with self.locks.hold(account_id):
            try:
                async with self.db.session() as session:
                    async with session.begin():
                        # 1) Authorize
                        if await FlagService.is_flagged(session, account_id):
                            raise AccountFlagged(account_id)

                        used_before = await read_tickets_used(session, account_id)
                        ent = compute_entitlement(wagered, used_before, self.ticket_unit)
                        if ent.tickets_remaining < 1:
                            raise InsufficientTickets(account_id, ent)

                        # 2) Draw
                        prize = select_prize(self.tables.primary, self.rng)

                        # 3) Settle
                        used_after = await self._consume_ticket(session, account_id, ent)
                        balance = await self._credit_if_win(session, account_id, prize, request_id)

                        session.add(
                            SpinLog(
                                created_at=utc_now_naive(),
                                account_id=account_id,
                                wagered_amount_at_spin=wagered,
                                tickets_total_at_spin=ent.tickets_total,
                                tickets_used_before=used_after - 1,
                                tickets_used_after=used_after,
                                result=SpinOutcome.WIN if prize.is_win else SpinOutcome.LOSE,
                                prize_label=prize.label,
                                prize_value=prize.value,
                                is_bonus=False,
                                table_name=self.tables.primary.name,
                                request_id=request_id,
                                client_ip_hash=client_hash,
                            )
                        )
                        await session.flush()
            except InsufficientTickets:
                log.debug("Spin denied for %s: no tickets", account_id)
                raise
            except AccountFlagged:
                log.info("Spin denied for flagged account %s", account_id)
                raise
            except SQLAlchemyError as e:
                log.exception("Spin settle failed for %s (request %s)", account_id, request_id)
                raise PersistenceFailure(f"Spin could not be recorded for {account_id}") from e

        log.info(
            "Spin settled: account=%s result=%s prize=%s tickets=%d/%d request=%s",
            account_id,
            "WIN" if prize.is_win else "LOSE",
            prize.label,
            used_after,
            ent.tickets_total,
            request_id,
        )

        return SpinResult(
            result=SpinOutcome.WIN if prize.is_win else SpinOutcome.LOSE,
            prize_label=prize.label,
            prize_value=prize.value,
            tickets_total=ent.tickets_total,
            tickets_used_after=used_after,
            tickets_remaining_after=max(0, ent.tickets_total - used_after),
            wallet_balance_after=balance,
            is_bonus=False,
            request_id=request_id,
        )

    async def _consume_ticket(self, session: AsyncSession, account_id: str, ent: Entitlement) -> int:
        await insert_ignore(
            session,
            TicketCounter,
            {"account_id": account_id, "tickets_used": 0},
            ["account_id"],
        )
        res = await session.execute(
            update(TicketCounter)
            .where(
                TicketCounter.account_id == account_id,
                TicketCounter.tickets_used == ent.tickets_used,
                TicketCounter.tickets_used < ent.tickets_total,
            )
            .values(tickets_used=TicketCounter.tickets_used + 1, updated_at=utc_now_naive())
            .execution_options(synchronize_session=False)
        )
        if res.rowcount != 1:
            # another writer took the last ticket between our read and this update
            used_now = await read_tickets_used(session, account_id)
            raise InsufficientTickets(
                account_id,
                Entitlement(
                    tickets_total=ent.tickets_total,
                    tickets_used=used_now,
                    tickets_remaining=max(0, ent.tickets_total - used_now),
                ),
            )
        return await read_tickets_used(session, account_id)

    async def _credit_if_win(
        self, session: AsyncSession, account_id: str, prize: PrizeOption, request_id: str
    ) -> int:
        if not prize.is_win:
            return await WalletService.balance(session, account_id)
        return await WalletService.credit(
            session,
            account_id=account_id,
            amount=prize.value,
            kind=WalletTxKind.SPIN_WIN,
            ref=request_id,
        )

    # -------------------------------------------------
    # Reconciliation
    # -------------------------------------------------

    async def reconcile_tickets_used(self, account_id: str) -> int:
        """
        Raise the cached counter to max(tickets_used_after) over the account's ticket
        spins if it lags the log. Never lowers it. Returns the resulting counter.
        """
        account_id = validate_account_id(account_id)
        async with self.locks.hold(account_id):
            try:
                async with self.db.session() as session:
                    async with session.begin():
                        from_log = await session.scalar(
                            select(func.max(SpinLog.tickets_used_after)).where(
                                SpinLog.account_id == account_id,
                                SpinLog.is_bonus.is_(False),
                            )
                        )
                        from_log = int(from_log or 0)
                        await insert_ignore(
                            session,
                            TicketCounter,
                            {"account_id": account_id, "tickets_used": 0},
                            ["account_id"],
                        )
                        res = await session.execute(
                            update(TicketCounter)
                            .where(
                                TicketCounter.account_id == account_id,
                                TicketCounter.tickets_used < from_log,
                            )
                            .values(tickets_used=from_log, updated_at=utc_now_naive())
                            .execution_options(synchronize_session=False)
                        )
                        if res.rowcount:
                            log.warning(
                                "Ticket counter for %s lagged the spin log; raised to %d",
                                account_id,
                                from_log,
                            )
                        return await read_tickets_used(session, account_id)
            except SQLAlchemyError as e:
                log.exception("Reconcile failed for %s", account_id)
                raise PersistenceFailure(f"Reconcile failed for {account_id}") from e
