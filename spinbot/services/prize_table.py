# spinbot/services/prize_table.py
from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Mapping, Sequence

from spinbot.services.errors import InvalidPrizeTable

log = logging.getLogger(__name__)

# Probabilities are fractions; 1e-3 == 0.1 percentage points.
PROBABILITY_TOLERANCE = 1e-3


@dataclass(frozen=True, slots=True)
class PrizeOption:
    label: str
    value: int  # currency units, 0 => losing outcome
    probability: float

    @property
    def is_win(self) -> bool:
        return self.value > 0


@dataclass(frozen=True, slots=True)
class PrizeTable:
    name: str
    options: tuple[PrizeOption, ...]

    def __iter__(self):
        return iter(self.options)

    def __len__(self) -> int:
        return len(self.options)

    @property
    def total_probability(self) -> float:
        return math.fsum(o.probability for o in self.options)


@dataclass(frozen=True, slots=True)
class PrizeTables:
    primary: PrizeTable
    bonus: PrizeTable


DEFAULT_PRIMARY = [
    {"label": "Lose", "value": 0, "probability": 0.99},
    {"label": "$5", "value": 5, "probability": 0.01},
]

# Independent of the primary table: smaller values, daily cadence.
DEFAULT_BONUS = [
    {"label": "Lose", "value": 0, "probability": 0.97},
    {"label": "$1", "value": 1, "probability": 0.025},
    {"label": "$2", "value": 2, "probability": 0.005},
]


def validate_table(options: Iterable[PrizeOption]) -> bool:
    """True iff the table is non-empty and its probabilities sum to 1 within tolerance."""
    opts = list(options)
    if not opts:
        return False
    total = math.fsum(o.probability for o in opts)
    return abs(total - 1.0) <= PROBABILITY_TOLERANCE


def _parse_option(table_name: str, idx: int, raw: Any) -> PrizeOption:
    if isinstance(raw, PrizeOption):
        return raw
    if not isinstance(raw, Mapping):
        raise InvalidPrizeTable(f"{table_name}[{idx}]: expected an object, got {type(raw).__name__}")

    label = str(raw.get("label") or "").strip()
    if not label:
        raise InvalidPrizeTable(f"{table_name}[{idx}]: label is required")

    value = raw.get("value", 0)
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise InvalidPrizeTable(f"{table_name}[{idx}] {label!r}: value must be a non-negative integer")

    probability = raw.get("probability")
    if isinstance(probability, bool) or not isinstance(probability, (int, float)):
        raise InvalidPrizeTable(f"{table_name}[{idx}] {label!r}: probability must be a number")
    probability = float(probability)
    if not (0.0 <= probability <= 1.0) or math.isnan(probability):
        raise InvalidPrizeTable(f"{table_name}[{idx}] {label!r}: probability must be within [0, 1]")

    return PrizeOption(label=label, value=value, probability=probability)


def build_table(name: str, raw_options: Sequence[Any]) -> PrizeTable:
    """
    Parse and validate one table. Raises InvalidPrizeTable on any violation:
    - empty table
    - bad option fields
    - no zero-value ("no win") option
    - probabilities not summing to 1
    """
    if not raw_options:
        raise InvalidPrizeTable(f"{name}: table is empty")

    options = tuple(_parse_option(name, i, raw) for i, raw in enumerate(raw_options))

    if not any(o.value == 0 for o in options):
        raise InvalidPrizeTable(f"{name}: at least one option must have value 0")

    table = PrizeTable(name=name, options=options)
    if not validate_table(options):
        raise InvalidPrizeTable(
            f"{name}: probabilities sum to {table.total_probability:.6f}, expected 1.0"
        )
    return table


def load_prize_tables(path: str | Path | None = None) -> PrizeTables:
    """
    Load the primary and bonus tables.

    File format (JSON): {"primary": [{label, value, probability}, ...], "bonus": [...]}
    Either key may be omitted to keep the built-in default for that table.
    """
    raw: Mapping[str, Any] = {}
    if path:
        p = Path(path)
        try:
            raw = json.loads(p.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise InvalidPrizeTable(f"Cannot read prize tables from {p}: {e}") from e
        if not isinstance(raw, Mapping):
            raise InvalidPrizeTable(f"{p}: top-level JSON must be an object")

    tables = PrizeTables(
        primary=build_table("primary", raw.get("primary") or DEFAULT_PRIMARY),
        bonus=build_table("bonus", raw.get("bonus") or DEFAULT_BONUS),
    )

    for t in (tables.primary, tables.bonus):
        log.info(
            "Prize table %s loaded: %d options, win chance %.4f",
            t.name,
            len(t),
            math.fsum(o.probability for o in t.options if o.is_win),
        )
    return tables
