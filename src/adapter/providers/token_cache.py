"""Access token cache shared by all callers of one provider"""

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional, Tuple

logger = logging.getLogger(__name__)

# (access_token, expires_in_seconds)
TokenFetcher = Callable[[], Awaitable[Tuple[str, float]]]


class TokenCache:
    """
    Cached access token with single-flight refresh

    - A token is reused until `refresh_margin` seconds before it expires
    - Concurrent callers that find it stale trigger exactly one refresh
    - force=True refreshes regardless (used after a 401)
    """

    def __init__(self, fetcher: TokenFetcher, refresh_margin: float = 60.0, clock=time.monotonic):
        self._fetcher = fetcher
        self._refresh_margin = refresh_margin
        self._clock = clock
        self._token: Optional[str] = None
        self._expires_at: float = 0.0
        self._lock = asyncio.Lock()

    def _is_fresh(self) -> bool:
        return self._token is not None and self._clock() < self._expires_at - self._refresh_margin

    async def ensure_valid(self, force: bool = False, rejected: Optional[str] = None) -> str:
        """
        Return a usable token

        Args:
            force: Refresh even if the cached token looks fresh
            rejected: Token the server just refused; if the cache already
                      holds a different one, that newer token is returned
        """
        if not force and self._is_fresh():
            return self._token

        async with self._lock:
            # Another caller may have refreshed while we waited for the lock
            if not force and self._is_fresh():
                return self._token
            if force and rejected is not None and self._token not in (None, rejected):
                return self._token

            token, expires_in = await self._fetcher()
            self._token = token
            self._expires_at = self._clock() + expires_in
            logger.info(f"Access token refreshed, valid for {int(expires_in)}s")
            return self._token

    def invalidate(self) -> None:
        self._token = None
        self._expires_at = 0.0
