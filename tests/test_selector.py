"""
Tests for prize selection.
"""

import pytest

from spinbot.services.prize_table import PrizeOption, PrizeTable, build_table, DEFAULT_PRIMARY
from spinbot.services.selector import select_prize


def _fixed(r: float):
    return lambda: r


class TestSelectPrize:
    def test_low_draw_loses(self):
        table = build_table("primary", DEFAULT_PRIMARY)
        assert select_prize(table, _fixed(0.005)).label == "Lose"

    def test_high_draw_wins(self):
        table = build_table("primary", DEFAULT_PRIMARY)
        assert select_prize(table, _fixed(0.995)).label == "$5"

    def test_running_total_boundary_is_inclusive(self):
        table = PrizeTable("t", (PrizeOption("Lose", 0, 0.5), PrizeOption("$1", 1, 0.5)))
        assert select_prize(table, _fixed(0.5)).label == "Lose"

    def test_zero_probability_option_is_never_drawn(self):
        table = PrizeTable(
            "t",
            (PrizeOption("Jackpot", 100, 0.0), PrizeOption("Lose", 0, 0.9), PrizeOption("$1", 1, 0.1)),
        )
        assert select_prize(table, _fixed(0.0)).label == "Lose"

    def test_float_shortfall_falls_back_to_last_option(self):
        # sums to 0.9995: valid within tolerance, but r can land past the final total
        table = PrizeTable("t", (PrizeOption("Lose", 0, 0.9895), PrizeOption("$5", 5, 0.01)))
        assert select_prize(table, _fixed(0.9999)).label == "$5"

    def test_float_shortfall_skips_trailing_zero_weight_option(self):
        table = PrizeTable(
            "t",
            (
                PrizeOption("Lose", 0, 0.9895),
                PrizeOption("$5", 5, 0.01),
                PrizeOption("Jackpot", 1000, 0.0),
            ),
        )
        got = select_prize(table, _fixed(0.9999))
        assert got.label == "$5"
        assert got.probability > 0

    def test_all_zero_weights_raise(self):
        table = PrizeTable("t", (PrizeOption("Lose", 0, 0.0), PrizeOption("$1", 1, 0.0)))
        with pytest.raises(ValueError):
            select_prize(table, _fixed(0.5))

    def test_empty_table_raises(self):
        with pytest.raises(ValueError):
            select_prize(PrizeTable("t", ()), _fixed(0.1))

    @pytest.mark.parametrize("r", [-0.1, 1.0, 2.0])
    def test_rng_out_of_range_raises(self, r):
        table = build_table("primary", DEFAULT_PRIMARY)
        with pytest.raises(ValueError):
            select_prize(table, _fixed(r))

    def test_frequencies_follow_probabilities(self):
        table = build_table("primary", DEFAULT_PRIMARY)
        n = 10_000
        wins = sum(select_prize(table, _fixed(i / n)).is_win for i in range(n))
        assert abs(wins - 100) <= 1
