"""
Async client for the analytics data endpoints.

Requests are parameterized with the query fragments produced by the date
range resolver (?period=<name> or ?from=<ISO>&to=<ISO>). When a view has
comparison switched on, the comparison period is fetched as a second request
running in parallel with the primary one.
"""
from typing import Any, Optional, Tuple
import asyncio
import logging

import aiohttp

from analytics_api.config import settings
from analytics_api.services.date_range_state import DateRangeState

logger = logging.getLogger(__name__)


class AnalyticsFetchError(Exception):
    """Raised when an analytics endpoint answers with an error status."""

    def __init__(self, url: str, status: int, message: str = ""):
        self.url = url
        self.status = status
        super().__init__(f"Analytics request {url} failed with status {status}: {message}")


class AnalyticsClient:
    """Fetches analytics data for a date range selection."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.base_url = (base_url or settings.analytics_api_url).rstrip("/")
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> "AnalyticsClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            timeout = aiohttp.ClientTimeout(total=settings.analytics_request_timeout_seconds)
            self._session = aiohttp.ClientSession(timeout=timeout)
        return self._session

    async def close(self) -> None:
        """Close the HTTP session if this client created it."""
        if self._session is not None and self._owns_session:
            await self._session.close()
            self._session = None

    def build_url(self, path: str, fragment: str) -> str:
        separator = "&" if "?" in path else "?"
        return f"{self.base_url}/{path.lstrip('/')}{separator}{fragment}"

    async def fetch(self, path: str, fragment: str) -> Any:
        """
        GET an analytics endpoint for one date range.

        Args:
            path: Endpoint path, e.g. "/api/projects/1/geography"
            fragment: Query fragment from build_query_fragment()

        Returns:
            Decoded JSON body

        Raises:
            AnalyticsFetchError: On any non-2xx response
        """
        url = self.build_url(path, fragment)
        logger.debug(f"Fetching analytics data from {url}")

        async with self._get_session().get(url) as response:
            if response.status >= 400:
                message = await response.text()
                raise AnalyticsFetchError(url, response.status, message)
            return await response.json()

    async def fetch_with_comparison(self, path: str, state: DateRangeState) -> Tuple[Any, Optional[Any]]:
        """
        Fetch the current period and, if enabled, the comparison period.

        Returns:
            (current, previous) where previous is None without comparison
        """
        comparison_fragment = state.comparison_query_params
        if comparison_fragment is None:
            return await self.fetch(path, state.query_params), None

        tasks = [
            asyncio.ensure_future(self.fetch(path, state.query_params)),
            asyncio.ensure_future(self.fetch(path, comparison_fragment)),
        ]
        try:
            current, previous = await asyncio.gather(*tasks)
        except BaseException:
            # A failed fetch cancels its sibling instead of leaving it running
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
        return current, previous
