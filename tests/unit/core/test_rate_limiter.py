"""Unit tests for the fixed-window rate limiter."""

import threading

import pytest

from src.core.rate_limit import FixedWindowRateLimiter, RateLimitDecision


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    """Provide a fake clock starting at a fixed instant."""
    return FakeClock()


@pytest.mark.unit
class TestFixedWindowRateLimiter:
    """Test cases for FixedWindowRateLimiter."""

    def test_allows_requests_up_to_limit(self, clock: FakeClock) -> None:
        """Test the first max_requests requests are allowed."""
        limiter = FixedWindowRateLimiter(3, 60, clock=clock)

        decisions = [limiter.hit("10.0.0.1") for _ in range(3)]

        assert all(d.allowed for d in decisions)
        assert [d.remaining for d in decisions] == [2, 1, 0]

    def test_rejects_request_over_limit(self, clock: FakeClock) -> None:
        """Test the request after the quota is rejected."""
        limiter = FixedWindowRateLimiter(3, 60, clock=clock)
        for _ in range(3):
            limiter.hit("10.0.0.1")

        decision = limiter.hit("10.0.0.1")

        assert decision.allowed is False
        assert decision.remaining == 0
        assert decision.limit == 3

    def test_default_quota_rejects_101st_request(self, clock: FakeClock) -> None:
        """Test 100 requests pass and the 101st is rejected within 15 minutes."""
        limiter = FixedWindowRateLimiter(100, 900, clock=clock)

        allowed = [limiter.hit("10.0.0.1").allowed for _ in range(100)]
        clock.advance(899)

        assert all(allowed)
        assert limiter.hit("10.0.0.1").allowed is False

    def test_window_resets_after_expiry(self, clock: FakeClock) -> None:
        """Test a new window opens once the old one has elapsed."""
        limiter = FixedWindowRateLimiter(2, 60, clock=clock)
        limiter.hit("10.0.0.1")
        limiter.hit("10.0.0.1")
        assert limiter.hit("10.0.0.1").allowed is False

        clock.advance(60)
        decision = limiter.hit("10.0.0.1")

        assert decision.allowed is True
        assert decision.remaining == 1

    def test_clients_are_counted_independently(self, clock: FakeClock) -> None:
        """Test one client's usage does not consume another's quota."""
        limiter = FixedWindowRateLimiter(1, 60, clock=clock)
        limiter.hit("10.0.0.1")

        assert limiter.hit("10.0.0.1").allowed is False
        assert limiter.hit("10.0.0.2").allowed is True

    def test_reset_after_reports_time_left(self, clock: FakeClock) -> None:
        """Test the decision reports time until the window closes."""
        limiter = FixedWindowRateLimiter(5, 60, clock=clock)
        limiter.hit("10.0.0.1")
        clock.advance(20.5)

        decision = limiter.hit("10.0.0.1")

        assert decision.reset_after == pytest.approx(39.5)
        assert decision.retry_after_seconds == 40

    def test_reset_single_client(self, clock: FakeClock) -> None:
        """Test reset forgets one client only."""
        limiter = FixedWindowRateLimiter(1, 60, clock=clock)
        limiter.hit("10.0.0.1")
        limiter.hit("10.0.0.2")

        limiter.reset("10.0.0.1")

        assert limiter.hit("10.0.0.1").allowed is True
        assert limiter.hit("10.0.0.2").allowed is False

    def test_reset_all_clients(self, clock: FakeClock) -> None:
        """Test reset without a key clears every counter."""
        limiter = FixedWindowRateLimiter(1, 60, clock=clock)
        limiter.hit("10.0.0.1")
        limiter.hit("10.0.0.2")

        limiter.reset()

        assert limiter.tracked_clients() == 0

    def test_expired_windows_pruned(self, clock: FakeClock) -> None:
        """Test expired windows are dropped during periodic pruning."""
        limiter = FixedWindowRateLimiter(5, 10, clock=clock)
        for i in range(500):
            limiter.hit(f"client-{i}")

        clock.advance(11)
        for _ in range(500):
            limiter.hit("fresh-client")

        assert limiter.tracked_clients() == 1

    @pytest.mark.parametrize(
        ("max_requests", "window_seconds"),
        [(0, 60), (-1, 60), (10, 0), (10, -5)],
    )
    def test_invalid_parameters_rejected(
        self, max_requests: int, window_seconds: int
    ) -> None:
        """Test non-positive quotas and windows are rejected."""
        with pytest.raises(ValueError, match="must be positive"):
            FixedWindowRateLimiter(max_requests, window_seconds)

    def test_concurrent_hits_counted_exactly(self) -> None:
        """Test concurrent hits from one client are never lost."""
        limiter = FixedWindowRateLimiter(1000, 60)
        barrier = threading.Barrier(8)
        allowed: list[bool] = []
        results_lock = threading.Lock()

        def worker() -> None:
            barrier.wait()
            local = [limiter.hit("10.0.0.1").allowed for _ in range(150)]
            with results_lock:
                allowed.extend(local)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert allowed.count(True) == 1000
        assert allowed.count(False) == 200


@pytest.mark.unit
class TestRateLimitDecision:
    """Test cases for RateLimitDecision."""

    def test_retry_after_rounds_up(self) -> None:
        """Test fractional seconds are rounded up."""
        decision = RateLimitDecision(False, 10, 0, 12.1)

        assert decision.retry_after_seconds == 13

    def test_retry_after_is_at_least_one(self) -> None:
        """Test retry_after never reports zero."""
        decision = RateLimitDecision(False, 10, 0, 0.0)

        assert decision.retry_after_seconds == 1
