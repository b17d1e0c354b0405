"""Tests for the in-process RateLimiter."""

import threading

from rate_limit import RateLimiter


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


class TestRateLimiter:
    """Tests for try_consume() and sweep()."""

    def test_quota_per_window(self):
        clock = FakeClock()
        rl = RateLimiter(3, 60, clock=clock)
        assert [rl.try_consume("s1") for _ in range(4)] == [True, True, True, False]

    def test_window_resets(self):
        clock = FakeClock()
        rl = RateLimiter(1, 60, clock=clock)
        assert rl.try_consume("s1") is True
        assert rl.try_consume("s1") is False
        clock.now += 60
        assert rl.try_consume("s1") is True

    def test_keys_are_independent(self):
        rl = RateLimiter(1, 60, clock=FakeClock())
        assert rl.try_consume("a") is True
        assert rl.try_consume("b") is True
        assert rl.try_consume("a") is False

    def test_sweep_drops_expired(self):
        clock = FakeClock()
        rl = RateLimiter(5, 10, clock=clock)
        rl.try_consume("old")
        clock.now += 5
        rl.try_consume("fresh")
        clock.now += 6
        assert rl.sweep() == 1
        assert len(rl) == 1

    def test_bounded_size(self):
        clock = FakeClock()
        rl = RateLimiter(5, 100, max_keys=3, clock=clock)
        for i in range(10):
            clock.now += 1
            assert rl.try_consume(f"k{i}") is True
        assert len(rl) <= 3

    def test_concurrent_consumers_never_exceed_quota(self):
        rl = RateLimiter(50, 3600)
        results = []
        lock = threading.Lock()

        def worker():
            for _ in range(20):
                ok = rl.try_consume("shared")
                with lock:
                    results.append(ok)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert results.count(True) == 50
