from tiretrack.infrastructure.rate_limit.memory_rate_limiter import InMemoryRateLimiter
from tiretrack.infrastructure.rate_limit.redis_rate_limiter import RedisRateLimiter


def test_memory_rate_limiter_allows_then_blocks():
    rl = InMemoryRateLimiter()
    key = "k1"
    assert rl.allow(key, max_requests=2, window_seconds=60) is True
    assert rl.allow(key, max_requests=2, window_seconds=60) is True
    assert rl.allow(key, max_requests=2, window_seconds=60) is False
    assert rl.allow("k2", max_requests=2, window_seconds=60) is True


def test_memory_rate_limiter_window_slides():
    now = [1000.0]
    rl = InMemoryRateLimiter(clock=lambda: now[0])
    assert rl.allow("k", 1, 60) is True
    now[0] += 30
    assert rl.allow("k", 1, 60) is False
    now[0] += 31
    assert rl.allow("k", 1, 60) is True


def test_memory_rate_limiter_forgets_idle_keys():
    now = [1000.0]
    rl = InMemoryRateLimiter(clock=lambda: now[0])
    for i in range(50):
        assert rl.allow(f"10.0.0.{i}", 5, 60) is True
    assert len(rl) == 50

    now[0] += 61
    assert rl.allow("10.0.1.1", 5, 60) is True
    assert len(rl) == 1
    assert "10.0.0.0" not in rl._hits


class FakePipe:
    def __init__(self, client):
        self.client = client
        self.ops = []

    def incr(self, k, n):
        self.ops.append(("incr", k, n))
        return self

    def expire(self, k, s):
        self.ops.append(("expire", k, s))
        return self

    def execute(self):
        key = self.ops[0][1]
        cnt = self.client.store.get(key, 0) + self.ops[0][2]
        self.client.store[key] = cnt
        self.client.expiries[key] = self.ops[1][2]
        return [cnt, True]


class FakeRedis:
    def __init__(self):
        self.store = {}
        self.expiries = {}

    def pipeline(self):
        return FakePipe(self)


def test_redis_rate_limiter_with_fake():
    client = FakeRedis()
    rl = RedisRateLimiter(url="redis://fake", client=client)

    assert rl.allow("k1", 2, 60) is True
    assert rl.allow("k1", 2, 60) is True
    assert rl.allow("k1", 2, 60) is False

    (key,) = client.store.keys()
    assert key.startswith("tiretrack:rl:k1:60:")
    assert client.expiries[key] == 60
