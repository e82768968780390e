import threading
import unittest

from rate_limits import RateLimitExceeded, RequestRateLimiter


class FakeClock:
    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.now += seconds


class TestRequestRateLimiter(unittest.TestCase):
    def test_waits_for_oldest_call_to_leave_window(self) -> None:
        clock = FakeClock()
        limiter = RequestRateLimiter(max_per_minute=2, max_per_day=10, clock=clock)

        limiter.acquire(sleep=clock.sleep)
        clock.now += 10
        limiter.acquire(sleep=clock.sleep)
        self.assertEqual(limiter.try_acquire(), 50.0)

        start = clock.now
        limiter.acquire(sleep=clock.sleep)
        self.assertEqual(clock.now - start, 50.0)

    def test_daily_cap_raises(self) -> None:
        clock = FakeClock()
        limiter = RequestRateLimiter(max_per_minute=5, max_per_day=2, clock=clock)

        limiter.acquire(sleep=clock.sleep)
        limiter.acquire(sleep=clock.sleep)

        self.assertEqual(limiter.remaining_daily(), 0)
        with self.assertRaises(RateLimitExceeded):
            limiter.acquire(sleep=clock.sleep)

    def test_daily_count_resets_next_day(self) -> None:
        clock = FakeClock()
        limiter = RequestRateLimiter(max_per_minute=5, max_per_day=1, clock=clock)
        limiter.acquire(sleep=clock.sleep)

        clock.now += 24 * 60 * 60

        self.assertEqual(limiter.remaining_daily(), 1)
        limiter.acquire(sleep=clock.sleep)

    def test_daily_cap_is_off_unless_configured(self) -> None:
        clock = FakeClock()
        limiter = RequestRateLimiter(max_per_minute=None, clock=clock)

        for _ in range(1000):
            limiter.acquire(sleep=clock.sleep)

        self.assertIsNone(limiter.remaining_daily())

    def test_concurrent_callers_never_exceed_daily_cap(self) -> None:
        cap = 2000
        limiter = RequestRateLimiter(max_per_minute=None, max_per_day=cap, clock=FakeClock())
        admitted = []
        start = threading.Barrier(16)

        def worker() -> None:
            count = 0
            start.wait()
            while True:
                try:
                    limiter.try_acquire()
                except RateLimitExceeded:
                    break
                count += 1
            admitted.append(count)

        threads = [threading.Thread(target=worker) for _ in range(16)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(sum(admitted), cap)
        self.assertEqual(limiter.remaining_daily(), 0)

    def test_limits_must_be_positive(self) -> None:
        with self.assertRaises(ValueError):
            RequestRateLimiter(max_per_minute=0)


if __name__ == "__main__":
    unittest.main()
