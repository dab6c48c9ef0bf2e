# spinbot/utils/snapshot.py
from __future__ import annotations

import logging

from aiogram.types import Message

from spinbot.services.errors import WagerSourceError
from spinbot.services.wager import CachedWagerProvider, WagerSnapshot
from spinbot.utils.reply import reply_safe

log = logging.getLogger(__name__)

# returned after the user was already told wager data is down
UNAVAILABLE = object()


async def snapshot_or_reply(wagers: CachedWagerProvider, account_id: str, message: Message):
    """
    Wager snapshot for the account, None for an account missing from the export
    (zero tickets), or UNAVAILABLE when no wager data has ever loaded.
    """
    try:
        snapshot: WagerSnapshot | None = await wagers.get_snapshot(account_id)
    except WagerSourceError:
        log.warning("No wager data available for %s", account_id)
        await reply_safe(message, "⚠️ Wager data is unavailable right now. Try again in a minute.")
        return UNAVAILABLE
    return snapshot
