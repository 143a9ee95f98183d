"""
Discora - HTTP Utilities
========================

Shared HTTP session for all services.
"""

from typing import Optional

import aiohttp

# Timeout for feed and page fetches
FETCH_TIMEOUT = aiohttp.ClientTimeout(total=20, connect=10)

USER_AGENT = "Mozilla/5.0 (compatible; DiscoraBot/1.0)"


class HTTPSessionManager:
    """Lazy-initialized HTTP session manager."""

    def __init__(self, timeout: aiohttp.ClientTimeout = FETCH_TIMEOUT) -> None:
        self._timeout = timeout
        self._session: Optional[aiohttp.ClientSession] = None

    @property
    def session(self) -> aiohttp.ClientSession:
        """Get or create the HTTP session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=self._timeout,
                headers={"User-Agent": USER_AGENT},
            )
        return self._session

    def get(self, url: str, **kwargs):
        """Return a GET request context manager (use with async with)."""
        return self.session.get(url, **kwargs)

    def request(self, method: str, url: str, **kwargs):
        """Return a request context manager (use with async with)."""
        return self.session.request(method, url, **kwargs)

    async def fetch_text(self, url: str) -> str:
        """GET a URL and return its body, raising on non-2xx."""
        async with self.get(url) as response:
            response.raise_for_status()
            return await response.text()

    async def close(self) -> None:
        """Close the session."""
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None


# Global instance
http_session = HTTPSessionManager()
