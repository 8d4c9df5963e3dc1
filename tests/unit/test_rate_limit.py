import importlib
from types import SimpleNamespace

import pytest

from classboard.utils.rate_limit import RateLimiter

# classboard.utils re-exports the decorator under the module's name
rate_limit_module = importlib.import_module("classboard.utils.rate_limit")


@pytest.fixture
def limiter():
    return RateLimiter(use_redis=False)


@pytest.fixture
def clock(monkeypatch):
    clock = SimpleNamespace(now=1_000_000.0)
    monkeypatch.setattr(rate_limit_module, "time", SimpleNamespace(time=lambda: clock.now))
    return clock


async def test_allows_up_to_limit_then_blocks(limiter):
    results = [await limiter.is_allowed("rate_limit:test:user:1", limit=3, window=60) for _ in range(4)]

    assert [allowed for allowed, _ in results] == [True, True, True, False]
    assert [info["remaining"] for _, info in results] == [2, 1, 0, 0]


async def test_keys_are_independent(limiter):
    for _ in range(2):
        await limiter.is_allowed("rate_limit:test:user:1", limit=2, window=60)

    allowed, _ = await limiter.is_allowed("rate_limit:test:user:2", limit=2, window=60)
    assert allowed


async def test_window_reset(limiter, clock):
    allowed, info = await limiter.is_allowed("k", limit=1, window=10)
    assert allowed
    assert info["reset"] == 1_000_010
    assert not (await limiter.is_allowed("k", limit=1, window=10))[0]

    clock.now += 11
    assert (await limiter.is_allowed("k", limit=1, window=10))[0]
