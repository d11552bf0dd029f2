"""Unit tests for TokenCache"""

import asyncio
import pytest

from src.adapter.providers import TokenCache


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


class CountingFetcher:
    def __init__(self, ttl=1800):
        self.calls = 0
        self.ttl = ttl

    async def __call__(self):
        self.calls += 1
        await asyncio.sleep(0.01)
        return f"token-{self.calls}", self.ttl


@pytest.mark.asyncio
class TestTokenCache:

    async def test_concurrent_callers_trigger_one_refresh(self):
        """
        Given: no cached token
        When: ten callers ask for a token at once
        Then: the token endpoint is called once and everyone gets the same token
        """
        # Arrange
        fetcher = CountingFetcher()
        cache = TokenCache(fetcher, clock=FakeClock())

        # Act
        tokens = await asyncio.gather(*(cache.ensure_valid() for _ in range(10)))

        # Assert
        assert fetcher.calls == 1
        assert set(tokens) == {"token-1"}

    async def test_token_reused_until_refresh_margin(self):
        # Arrange
        clock = FakeClock()
        fetcher = CountingFetcher(ttl=600)
        cache = TokenCache(fetcher, refresh_margin=60, clock=clock)
        await cache.ensure_valid()

        # Act
        clock.now += 539
        still_cached = await cache.ensure_valid()
        clock.now += 2
        refreshed = await cache.ensure_valid()

        # Assert
        assert still_cached == "token-1"
        assert refreshed == "token-2"

    async def test_forced_refresh_after_rejection_happens_once(self):
        """
        Given: two callers got 401 with the same token
        When: both force a refresh naming the rejected token
        Then: only the first one fetches; the second reuses the new token
        """
        # Arrange
        fetcher = CountingFetcher()
        cache = TokenCache(fetcher, clock=FakeClock())
        rejected = await cache.ensure_valid()

        # Act
        first, second = await asyncio.gather(
            cache.ensure_valid(force=True, rejected=rejected),
            cache.ensure_valid(force=True, rejected=rejected),
        )

        # Assert
        assert fetcher.calls == 2
        assert first == second == "token-2"

    async def test_invalidate(self):
        # Arrange
        fetcher = CountingFetcher()
        cache = TokenCache(fetcher, clock=FakeClock())
        await cache.ensure_valid()

        # Act
        cache.invalidate()
        token = await cache.ensure_valid()

        # Assert
        assert token == "token-2"
