# spinbot/scheduler/jobs.py
from __future__ import annotations

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from spinbot.config.settings import Settings
from spinbot.services.errors import WagerSourceError
from spinbot.services.rate_limit import HOUR_SECONDS, SpinRateLimiter
from spinbot.services.wager import CachedWagerProvider

log = logging.getLogger(__name__)


async def refresh_wagers(wagers: CachedWagerProvider) -> None:
    """Reload the wager cache; on failure the previous copy keeps serving."""
    try:
        await wagers.refresh()
    except WagerSourceError:
        log.warning("Scheduled wager refresh failed; keeping cached data", exc_info=True)


async def prune_rate_limits(spin_limiter: SpinRateLimiter) -> None:
    dropped = spin_limiter.prune()
    if dropped:
        log.debug("Dropped %d expired throttle windows", dropped)


def build_scheduler(
    wagers: CachedWagerProvider,
    settings: Settings,
    spin_limiter: SpinRateLimiter | None = None,
) -> AsyncIOScheduler:
    """
    Creates and returns an AsyncIOScheduler with our jobs registered.
    """
    scheduler = AsyncIOScheduler(timezone="UTC")

    scheduler.add_job(
        refresh_wagers,
        trigger=IntervalTrigger(seconds=settings.wager_cache_ttl_seconds, timezone="UTC"),
        kwargs={"wagers": wagers},
        id="refresh_wagers",
        replace_existing=True,
        coalesce=True,
        max_instances=1,
        misfire_grace_time=30,
    )

    if spin_limiter is not None:
        scheduler.add_job(
            prune_rate_limits,
            trigger=IntervalTrigger(seconds=HOUR_SECONDS, timezone="UTC"),
            kwargs={"spin_limiter": spin_limiter},
            id="prune_rate_limits",
            replace_existing=True,
            coalesce=True,
            max_instances=1,
        )

    return scheduler
