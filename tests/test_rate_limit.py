"""
Tests for spin throttling.
"""

import pytest

from spinbot.services.rate_limit import FixedWindowLimiter, SpinRateLimiter


class FakeClock:
    def __init__(self) -> None:
        self.t = 0.0

    def __call__(self) -> float:
        return self.t


class TestFixedWindowLimiter:
    def test_allows_up_to_limit_then_blocks(self):
        limiter = FixedWindowLimiter(3, clock=FakeClock())
        assert [limiter.hit("ann") for _ in range(5)] == [False, False, False, True, True]

    def test_window_resets_after_expiry(self):
        clock = FakeClock()
        limiter = FixedWindowLimiter(1, window_seconds=60, clock=clock)
        assert limiter.hit("ann") is False
        assert limiter.hit("ann") is True
        assert limiter.retry_after("ann") == 60

        clock.t = 61
        assert limiter.retry_after("ann") == 0
        assert limiter.hit("ann") is False

    def test_keys_are_case_insensitive(self):
        limiter = FixedWindowLimiter(1, clock=FakeClock())
        limiter.hit("Ann")
        assert limiter.hit("ann") is True

    def test_retry_after_is_zero_under_limit(self):
        limiter = FixedWindowLimiter(2, clock=FakeClock())
        limiter.hit("ann")
        assert limiter.retry_after("ann") == 0
        assert limiter.retry_after("bob") == 0

    def test_prune_drops_only_expired(self):
        clock = FakeClock()
        limiter = FixedWindowLimiter(1, window_seconds=10, clock=clock)
        limiter.hit("old")
        clock.t = 5
        limiter.hit("new")
        clock.t = 11

        assert limiter.prune() == 1
        assert len(limiter) == 1

    def test_limit_must_be_positive(self):
        with pytest.raises(ValueError):
            FixedWindowLimiter(0)


class TestSpinRateLimiter:
    def test_account_cap_applies_across_clients(self):
        limiter = SpinRateLimiter(per_account=2, per_client=10, clock=FakeClock())
        assert limiter.hit("ann", 1) is False
        assert limiter.hit("ann", 2) is False
        assert limiter.hit("ann", 3) is True

    def test_client_cap_applies_across_accounts(self):
        limiter = SpinRateLimiter(per_account=10, per_client=2, clock=FakeClock())
        assert limiter.hit("ann", 1) is False
        assert limiter.hit("bob", 1) is False
        assert limiter.hit("cat", 1) is True

    def test_throttled_client_does_not_spend_account_budget(self):
        limiter = SpinRateLimiter(per_account=2, per_client=1, clock=FakeClock())
        limiter.hit("ann", 1)
        assert limiter.hit("ann", 1) is True
        assert limiter.hit("ann", 2) is False

    def test_missing_client_checks_account_only(self):
        limiter = SpinRateLimiter(per_account=1, per_client=1, clock=FakeClock())
        assert limiter.hit("ann") is False
        assert limiter.hit("bob") is False
        assert limiter.hit("ann") is True

    def test_retry_after_reports_blocking_window(self):
        clock = FakeClock()
        limiter = SpinRateLimiter(per_account=1, per_client=5, window_seconds=100, clock=clock)
        limiter.hit("ann", 1)
        clock.t = 40
        limiter.hit("ann", 1)
        assert limiter.retry_after("ann", 1) == 60
