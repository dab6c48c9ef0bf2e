# spinbot/main.py
import asyncio
import logging
from datetime import timedelta

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode

from spinbot.config import Settings
from spinbot.database import Database
from spinbot.handlers.router import router as handlers_router
from spinbot.scheduler import setup_scheduler
from spinbot.services.accounts import AccountLocks
from spinbot.services.bonus import BonusGate
from spinbot.services.errors import WagerSourceError
from spinbot.services.ledger import SpinLedger
from spinbot.services.prize_table import load_prize_tables
from spinbot.services.rate_limit import SpinRateLimiter
from spinbot.services.wager import build_wager_provider
from spinbot.utils.middleware import DbSessionMiddleware


def setup_logging(is_dev: bool) -> None:
    """
    Clean production logging:
    - app logs: INFO (or DEBUG in dev)
    - SQLAlchemy logs: WARNING+ (no query/pool spam)
    """
    app_level = logging.DEBUG if is_dev else logging.INFO

    logging.basicConfig(
        level=app_level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )

    for name in (
        "sqlalchemy",
        "sqlalchemy.engine",
        "sqlalchemy.pool",
        "sqlalchemy.orm",
        "aiosqlite",
        "asyncpg",
        "apscheduler",
    ):
        logging.getLogger(name).setLevel(logging.WARNING)


async def main() -> None:
    settings = Settings.load()
    setup_logging(settings.is_dev)
    log = logging.getLogger("spinbot")

    # InvalidPrizeTable propagates: never serve spins from a bad table
    tables = load_prize_tables(settings.prize_tables_path)

    db = Database(settings.database_url)
    await db.init_models()
    log.info("DB initialized")

    wagers = build_wager_provider(settings.wager_source, settings.wager_cache_ttl_seconds)
    try:
        await wagers.refresh()
    except WagerSourceError:
        log.warning("Initial wager load failed; will retry on schedule", exc_info=True)

    ledger = SpinLedger(
        db,
        tables,
        ticket_unit=settings.ticket_unit,
        locks=AccountLocks(),
        client_hash_salt=settings.client_hash_salt,
    )
    bonus_gate = BonusGate(
        db,
        tables,
        cooldown=timedelta(hours=settings.bonus_cooldown_hours),
        ticket_unit=settings.ticket_unit,
        locks=AccountLocks(),
        client_hash_salt=settings.client_hash_salt,
    )

    spin_limiter = SpinRateLimiter(
        per_account=settings.spin_limit_per_account,
        per_client=settings.spin_limit_per_client,
    )

    bot = Bot(
        token=settings.bot_token,
        default=DefaultBotProperties(parse_mode=ParseMode.HTML),
    )

    dp = Dispatcher()

    # Inject workflow data
    dp.workflow_data["settings"] = settings
    dp.workflow_data["db"] = db
    dp.workflow_data["ledger"] = ledger
    dp.workflow_data["bonus_gate"] = bonus_gate
    dp.workflow_data["wagers"] = wagers
    dp.workflow_data["spin_limiter"] = spin_limiter

    # DB session per update
    dp.update.middleware(DbSessionMiddleware(db))

    dp.include_router(handlers_router)

    scheduler = setup_scheduler(wagers=wagers, settings=settings, spin_limiter=spin_limiter)
    log.info("Scheduler started")

    try:
        await dp.start_polling(bot)
    except (asyncio.CancelledError, KeyboardInterrupt):
        pass
    except Exception:
        log.exception("Bot crashed")
        raise
    finally:
        try:
            scheduler.shutdown(wait=False)
        except Exception:
            log.exception("Failed to shutdown scheduler")

        try:
            await db.close()
        except Exception:
            log.exception("Failed to close DB")

        try:
            await bot.session.close()
        except Exception:
            log.exception("Failed to close bot session")


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
