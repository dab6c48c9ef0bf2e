# spinbot/services/wager.py
from __future__ import annotations

import asyncio
import csv
import io
import logging
import math
import time
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, Mapping, Protocol

import aiohttp

from spinbot.services.errors import WagerSourceError
from spinbot.utils.dates import utc_now_naive

log = logging.getLogger(__name__)

HEADER_SCAN_ROWS = 5
ACCOUNT_COLUMN = "user_name"
# first column with a non-empty cell wins, per row
AMOUNT_COLUMNS = ("wagered_monthly", "wagered_weekly", "wagered_overall")

# Seed data served when no WAGER_SOURCE is configured.
DEMO_WAGERS: dict[str, int] = {
    "ergys": 1_000_000,
    "demo": 5_000,
    "luke": 20_000,
}


@dataclass(frozen=True, slots=True)
class WagerSnapshot:
    account_id: str
    wagered_amount: int
    observed_at: datetime


class WagerProvider(Protocol):
    async def get_snapshot(self, account_id: str) -> WagerSnapshot | None: ...


class WagerSource(Protocol):
    async def load(self) -> dict[str, int]: ...


def _parse_amount(raw: str | None) -> float:
    if not raw:
        return 0.0
    cleaned = str(raw).replace("$", "").replace(",", "").strip()
    try:
        v = float(cleaned)
    except ValueError:
        return 0.0
    if math.isnan(v) or math.isinf(v):
        return 0.0
    return max(0.0, v)


def parse_wager_csv(text: str) -> dict[str, int]:
    """
    Parse an affiliate wager export.

    - header row is the first of the top 5 rows holding a User_Name column
    - amount per row: Wagered_Monthly, else Wagered_Weekly, else Wagered_Overall
    - "$" and "," are stripped; junk parses as 0; negatives clamp to 0
    - duplicate accounts are summed; totals floor to whole currency units
    """
    rows = list(csv.reader(io.StringIO(text)))
    if not rows:
        return {}

    header_idx = -1
    headers: list[str] = []
    for i, row in enumerate(rows[:HEADER_SCAN_ROWS]):
        normalized = [str(h or "").strip().lower() for h in row]
        if ACCOUNT_COLUMN in normalized:
            header_idx = i
            headers = normalized
            break

    if header_idx < 0:
        log.error("Wager export has no User_Name column in its first %d rows", HEADER_SCAN_ROWS)
        return {}

    account_col = headers.index(ACCOUNT_COLUMN)
    amount_cols = [headers.index(c) for c in AMOUNT_COLUMNS if c in headers]

    totals: dict[str, float] = {}
    for raw_row in rows[header_idx + 1:]:
        # exports drop trailing empty cells
        row = list(raw_row) + [""] * max(0, len(headers) - len(raw_row))
        account_id = row[account_col].strip()
        if not account_id:
            continue

        amount = 0.0
        for col in amount_cols:
            if row[col].strip():
                amount = _parse_amount(row[col])
                break

        totals[account_id] = totals.get(account_id, 0.0) + amount

    return {k: int(math.floor(v)) for k, v in totals.items()}


class StaticWagerSource:
    def __init__(self, rows: Mapping[str, int]) -> None:
        self._rows = {k: max(0, int(v)) for k, v in rows.items()}

    def set(self, account_id: str, wagered_amount: int) -> None:
        self._rows[account_id] = max(0, int(wagered_amount))

    async def load(self) -> dict[str, int]:
        return dict(self._rows)


class CsvWagerSource:
    """CSV export read from a local path or fetched over http(s)."""

    def __init__(self, location: str, *, timeout_seconds: float = 15.0) -> None:
        self.location = location
        self.timeout_seconds = timeout_seconds

    @property
    def is_remote(self) -> bool:
        return self.location.lower().startswith(("http://", "https://"))

    async def _fetch(self) -> str:
        timeout = aiohttp.ClientTimeout(total=self.timeout_seconds)
        async with aiohttp.ClientSession(timeout=timeout) as http:
            async with http.get(self.location) as resp:
                resp.raise_for_status()
                return await resp.text()

    async def load(self) -> dict[str, int]:
        try:
            if self.is_remote:
                text = await self._fetch()
            else:
                text = await asyncio.to_thread(Path(self.location).read_text, encoding="utf-8")
        except (OSError, aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise WagerSourceError(f"Failed to read wager export {self.location}: {e}") from e
        return parse_wager_csv(text)


@dataclass(frozen=True, slots=True)
class CacheStatus:
    loaded: bool
    row_count: int
    last_fetch_at: datetime | None
    ttl_seconds: int
    age_seconds: float
    is_expired: bool


class CachedWagerProvider:
    """
    Serves snapshots from an in-memory copy of a WagerSource.

    The copy is replaced by refresh() (scheduler job) or lazily on the first read
    after ttl_seconds. A failed refresh raises WagerSourceError and keeps the old copy.
    """

    def __init__(
        self,
        source: WagerSource,
        *,
        ttl_seconds: int = 60,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.source = source
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._rows: dict[str, int] | None = None
        self._loaded_at: float | None = None
        self._observed_at: datetime | None = None
        self._lock = asyncio.Lock()

    def _expired(self) -> bool:
        if self._loaded_at is None:
            return True
        return (self._clock() - self._loaded_at) > self.ttl_seconds

    async def refresh(self, *, only_if_expired: bool = False) -> int:
        async with self._lock:
            # a concurrent reader may have reloaded while we waited
            if only_if_expired and not self._expired():
                return len(self._rows or {})
            rows = await self.source.load()
            self._rows = rows
            self._loaded_at = self._clock()
            self._observed_at = utc_now_naive()
        log.info("Loaded %d accounts from wager source", len(rows))
        return len(rows)

    async def get_snapshot(self, account_id: str) -> WagerSnapshot | None:
        if self._expired():
            try:
                await self.refresh(only_if_expired=True)
            except WagerSourceError:
                if self._rows is None:
                    raise
                log.warning("Wager refresh failed; serving stale data", exc_info=True)

        rows = self._rows or {}
        if account_id not in rows:
            return None
        return WagerSnapshot(
            account_id=account_id,
            wagered_amount=rows[account_id],
            observed_at=self._observed_at or utc_now_naive(),
        )

    def cache_status(self) -> CacheStatus:
        age = (self._clock() - self._loaded_at) if self._loaded_at is not None else 0.0
        return CacheStatus(
            loaded=self._rows is not None,
            row_count=len(self._rows or {}),
            last_fetch_at=self._observed_at,
            ttl_seconds=self.ttl_seconds,
            age_seconds=age,
            is_expired=self._expired(),
        )


def build_wager_provider(wager_source: str | None, ttl_seconds: int) -> CachedWagerProvider:
    if wager_source:
        source: WagerSource = CsvWagerSource(wager_source)
    else:
        log.warning("WAGER_SOURCE not set; serving demo wager data")
        source = StaticWagerSource(DEMO_WAGERS)
    return CachedWagerProvider(source, ttl_seconds=ttl_seconds)
