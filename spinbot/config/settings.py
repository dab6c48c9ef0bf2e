# spinbot/config/settings.py
from __future__ import annotations

import os
import re
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv


def _require(env: Mapping[str, str], key: str) -> str:
    v = env.get(key)
    if v is None or not v.strip():
        raise RuntimeError(f"Missing required environment variable: {key}")
    return v.strip()


def _to_int(value: str, key_name: str) -> int:
    try:
        return int(value)
    except ValueError as e:
        raise RuntimeError(f"Invalid integer for {key_name}: {value!r}") from e


def _to_float(value: str, key_name: str) -> float:
    try:
        return float(value)
    except ValueError as e:
        raise RuntimeError(f"Invalid number for {key_name}: {value!r}") from e


def _optional(env: Mapping[str, str], key: str) -> Optional[str]:
    v = (env.get(key) or "").strip()
    return v or None


def _parse_int_list(raw: str | None, key_name: str) -> list[int]:
    """
    Parses comma/space/newline separated ints.
    Accepts:
      "951258732"
      "951258732,123"
      "951258732 123"
      "[951258732, 123]"  (brackets ignored)
    """
    if not raw:
        return []

    cleaned = raw.strip().strip("[](){}").strip()
    if not cleaned:
        return []

    parts = [p for p in re.split(r"[,\s]+", cleaned) if p]

    out: list[int] = []
    for p in parts:
        p2 = p.strip().strip("'\"")
        if not p2:
            continue
        out.append(_to_int(p2, key_name))
    return out


@dataclass(frozen=True, slots=True)
class Settings:
    # --- required ---
    bot_token: str

    # --- storage ---
    database_url: str = "sqlite+aiosqlite:///./spinbot.db"

    # --- security / admin ---
    root_admin_ids: tuple[int, ...] = ()
    client_hash_salt: str = "spinbot"

    # --- rewards ---
    ticket_unit: int = 1000  # currency units per ticket
    bonus_cooldown_hours: float = 24.0
    prize_tables_path: Optional[str] = None

    # --- wager data ---
    wager_source: Optional[str] = None  # CSV path or URL; None => demo data
    wager_cache_ttl_seconds: int = 60

    # --- throttling (spins per hour) ---
    spin_limit_per_account: int = 50
    spin_limit_per_client: int = 30

    # --- presentation ---
    site_name: str = "Spin Rewards"

    # --- environment ---
    environment: str = "production"  # production | development

    @property
    def is_dev(self) -> bool:
        return self.environment.lower() in {"dev", "development", "local"}

    @property
    def is_demo(self) -> bool:
        return self.wager_source is None

    @classmethod
    def load(cls, env: Mapping[str, str] | None = None) -> "Settings":
        """
        Loads from process env (and .env if present).
        Fails fast for required fields and invalid numbers.
        """
        if env is None:
            load_dotenv()
            env = os.environ

        bot_token = _require(env, "BOT_TOKEN")

        database_url = (env.get("DATABASE_URL") or "sqlite+aiosqlite:///./spinbot.db").strip()

        root_admin_ids = tuple(_parse_int_list(env.get("ROOT_ADMIN_IDS"), "ROOT_ADMIN_IDS"))

        ticket_unit = _to_int((env.get("TICKET_UNIT") or "1000").strip(), "TICKET_UNIT")
        if ticket_unit <= 0:
            raise RuntimeError(f"TICKET_UNIT must be positive, got {ticket_unit}")

        bonus_cooldown_hours = _to_float(
            (env.get("BONUS_COOLDOWN_HOURS") or "24").strip(), "BONUS_COOLDOWN_HOURS"
        )
        if bonus_cooldown_hours <= 0:
            raise RuntimeError(f"BONUS_COOLDOWN_HOURS must be positive, got {bonus_cooldown_hours}")

        ttl = _to_int((env.get("WAGER_CACHE_TTL_SECONDS") or "60").strip(), "WAGER_CACHE_TTL_SECONDS")
        if ttl <= 0:
            raise RuntimeError(f"WAGER_CACHE_TTL_SECONDS must be positive, got {ttl}")

        spin_limit_per_account = _to_int(
            (env.get("SPIN_LIMIT_PER_ACCOUNT") or "50").strip(), "SPIN_LIMIT_PER_ACCOUNT"
        )
        spin_limit_per_client = _to_int(
            (env.get("SPIN_LIMIT_PER_CLIENT") or "30").strip(), "SPIN_LIMIT_PER_CLIENT"
        )
        if spin_limit_per_account <= 0 or spin_limit_per_client <= 0:
            raise RuntimeError("SPIN_LIMIT_PER_ACCOUNT and SPIN_LIMIT_PER_CLIENT must be positive")

        environment = (env.get("ENVIRONMENT") or "production").strip() or "production"

        return cls(
            bot_token=bot_token,
            database_url=database_url,
            root_admin_ids=root_admin_ids,
            client_hash_salt=_optional(env, "CLIENT_HASH_SALT") or "spinbot",
            ticket_unit=ticket_unit,
            bonus_cooldown_hours=bonus_cooldown_hours,
            prize_tables_path=_optional(env, "PRIZE_TABLES_PATH"),
            wager_source=_optional(env, "WAGER_SOURCE"),
            wager_cache_ttl_seconds=ttl,
            spin_limit_per_account=spin_limit_per_account,
            spin_limit_per_client=spin_limit_per_client,
            site_name=_optional(env, "SITE_NAME") or "Spin Rewards",
            environment=environment,
        )
