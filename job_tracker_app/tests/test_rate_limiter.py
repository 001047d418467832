"""
Test the fixed-window attempt counters.
"""
from job_tracker_app.backend.services.rate_limiter import InMemoryRateLimitStore, RateLimitStore


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


class TestInMemoryRateLimitStore:
    """Counting attempts within a window."""

    def test_implements_store_interface(self):
        assert isinstance(InMemoryRateLimitStore(), RateLimitStore)

    def test_counts_attempts_in_window(self):
        store = InMemoryRateLimitStore(timer=FakeClock())

        counts = [store.hit("client:/login", 900).count for _ in range(3)]
        assert counts == [1, 2, 3]

    def test_reports_time_until_reset(self):
        clock = FakeClock()
        store = InMemoryRateLimitStore(timer=clock)

        store.hit("client:/login", 900)
        clock.now += 300
        window = store.hit("client:/login", 900)

        assert window.reset_in == 600

    def test_window_resets_after_expiry(self):
        clock = FakeClock()
        store = InMemoryRateLimitStore(timer=clock)
        for _ in range(5):
            store.hit("client:/login", 900)

        clock.now += 901
        assert store.hit("client:/login", 900).count == 1

    def test_keys_are_independent(self):
        store = InMemoryRateLimitStore(timer=FakeClock())
        store.hit("a:/login", 900)
        store.hit("a:/login", 900)

        assert store.hit("b:/login", 900).count == 1
        assert store.hit("a:/register", 900).count == 1

    def test_reset_forgets_key(self):
        store = InMemoryRateLimitStore(timer=FakeClock())
        store.hit("client:/login", 900)
        store.hit("client:/login", 900)

        store.reset("client:/login")
        assert store.hit("client:/login", 900).count == 1
