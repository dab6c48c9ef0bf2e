# spinbot/scheduler/__init__.py
from __future__ import annotations

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from spinbot.config.settings import Settings
from spinbot.scheduler.jobs import build_scheduler
from spinbot.services.rate_limit import SpinRateLimiter
from spinbot.services.wager import CachedWagerProvider


def setup_scheduler(
    wagers: CachedWagerProvider,
    settings: Settings,
    spin_limiter: SpinRateLimiter | None = None,
) -> AsyncIOScheduler:
    scheduler = build_scheduler(wagers=wagers, settings=settings, spin_limiter=spin_limiter)
    scheduler.start()
    return scheduler
