"""
Tests for prize table validation and loading.
"""

import json

import pytest

from spinbot.services.errors import InvalidPrizeTable
from spinbot.services.prize_table import (
    DEFAULT_BONUS,
    DEFAULT_PRIMARY,
    PrizeOption,
    build_table,
    load_prize_tables,
    validate_table,
)


class TestValidateTable:
    def test_defaults_are_valid(self):
        assert validate_table(build_table("primary", DEFAULT_PRIMARY))
        assert validate_table(build_table("bonus", DEFAULT_BONUS))

    def test_empty_table_is_invalid(self):
        assert validate_table([]) is False

    def test_sum_within_tolerance(self):
        opts = [PrizeOption("Lose", 0, 0.9895), PrizeOption("$5", 5, 0.01)]
        assert validate_table(opts) is True

    def test_sum_outside_tolerance(self):
        opts = [PrizeOption("Lose", 0, 0.9), PrizeOption("$5", 5, 0.05)]
        assert validate_table(opts) is False


class TestBuildTable:
    def test_rejects_empty(self):
        with pytest.raises(InvalidPrizeTable):
            build_table("primary", [])

    def test_rejects_bad_sum(self):
        with pytest.raises(InvalidPrizeTable, match="sum to 0.600000"):
            build_table(
                "primary",
                [{"label": "Lose", "value": 0, "probability": 0.5}, {"label": "$5", "value": 5, "probability": 0.1}],
            )

    def test_requires_a_losing_option(self):
        with pytest.raises(InvalidPrizeTable, match="value 0"):
            build_table("primary", [{"label": "$5", "value": 5, "probability": 1.0}])

    @pytest.mark.parametrize(
        "option",
        [
            {"label": "", "value": 0, "probability": 1.0},
            {"label": "Lose", "value": -1, "probability": 1.0},
            {"label": "Lose", "value": True, "probability": 1.0},
            {"label": "Lose", "value": 0, "probability": 1.5},
            {"label": "Lose", "value": 0, "probability": "1"},
            "Lose",
        ],
    )
    def test_rejects_bad_options(self, option):
        with pytest.raises(InvalidPrizeTable):
            build_table("primary", [option])

    def test_keeps_declared_order(self):
        table = build_table("primary", DEFAULT_PRIMARY)
        assert [o.label for o in table] == ["Lose", "$5"]
        assert table.options[1].is_win
        assert not table.options[0].is_win
        assert table.total_probability == pytest.approx(1.0)


class TestLoadPrizeTables:
    def test_defaults_when_no_path(self):
        tables = load_prize_tables()
        assert tables.primary.name == "primary"
        assert tables.bonus.name == "bonus"
        assert len(tables.bonus) == 3

    def test_file_overrides_one_table(self, tmp_path):
        path = tmp_path / "tables.json"
        path.write_text(
            json.dumps(
                {
                    "primary": [
                        {"label": "Lose", "value": 0, "probability": 0.8},
                        {"label": "$10", "value": 10, "probability": 0.2},
                    ]
                }
            ),
            encoding="utf-8",
        )
        tables = load_prize_tables(path)
        assert [o.value for o in tables.primary] == [0, 10]
        # bonus keeps its default
        assert [o.label for o in tables.bonus] == ["Lose", "$1", "$2"]

    def test_invalid_file_is_fatal(self, tmp_path):
        path = tmp_path / "tables.json"
        path.write_text(json.dumps({"bonus": [{"label": "Lose", "value": 0, "probability": 0.5}]}), encoding="utf-8")
        with pytest.raises(InvalidPrizeTable):
            load_prize_tables(path)

    def test_missing_file_is_fatal(self, tmp_path):
        with pytest.raises(InvalidPrizeTable):
            load_prize_tables(tmp_path / "nope.json")

    def test_non_object_json_is_fatal(self, tmp_path):
        path = tmp_path / "tables.json"
        path.write_text("[]", encoding="utf-8")
        with pytest.raises(InvalidPrizeTable):
            load_prize_tables(path)
