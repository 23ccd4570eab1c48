"""
Source client capabilities and the shared aiohttp transport.

Every provider implements one of the ``*Source`` interfaces. Network-backed
sources also extend ``HTTPSourceClient``, which owns (or borrows) an
``aiohttp.ClientSession`` and maps transport failures onto the package's
error taxonomy:

- HTTP 429 / 5xx and connection drops -> ``TransientSourceError`` (retried)
- other non-2xx responses, malformed JSON -> ``SourceUnavailable``
"""

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import aiohttp

from ...errors import SourceUnavailable, TransientSourceError
from ...models import Article, BettingOdds, Game, Team
from ...utils.retry import retry_with_backoff

logger = logging.getLogger(__name__)


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO timestamp (``2024-09-06T00:20Z``) to naive UTC."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


class ScoresSource(ABC):
    """Provider of schedules and final scores."""

    name: str = "scores"

    @abstractmethod
    async def fetch_games(self, team: Team, season: int) -> List[Game]:
        """All games a team plays in a season, completed ones with outcomes."""
        pass

    @abstractmethod
    async def fetch_week(self, week: int, season: int) -> List[Game]:
        """Every game scheduled in a regular-season week."""
        pass

    @abstractmethod
    async def fetch_live_scores(self) -> List[Game]:
        """Games on the provider's current scoreboard."""
        pass

    async def close(self) -> None:
        pass


class NewsSource(ABC):
    """Provider of news articles about teams."""

    name: str = "news"

    @abstractmethod
    async def fetch_articles(
        self, team: Team, before: datetime, lookback_days: int
    ) -> List[Article]:
        """Articles mentioning ``team`` published in the window ending at ``before``."""
        pass

    async def close(self) -> None:
        pass


class OddsSource(ABC):
    """Provider of betting lines."""

    name: str = "odds"

    @abstractmethod
    async def fetch_odds(self) -> Dict[str, BettingOdds]:
        """Current board keyed by matchup (``"AWAY @ HOME"``)."""
        pass

    async def close(self) -> None:
        pass


class HTTPSourceClient:
    """
    Base for sources backed by a JSON-over-HTTP API.

    A session passed in is borrowed and never closed here; otherwise one is
    created lazily and closed by ``close()`` / ``async with``.
    """

    name = "http"
    RETRYABLE_STATUSES = {429, 500, 502, 503, 504}

    def __init__(
        self,
        base_url: str,
        session: Optional[aiohttp.ClientSession] = None,
        timeout_seconds: float = 10.0,
        max_retries: int = 2,
        retry_delay: float = 0.5,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self):
        self._get_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout_seconds),
                headers={"User-Agent": "outcome-predictor/0.1"},
            )
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    def _url(self, path: str) -> str:
        if path.startswith("http://") or path.startswith("https://"):
            return path
        return f"{self.base_url}/{path.lstrip('/')}"

    async def _request_json(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        payload: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Single request attempt; raises on any failure."""
        url = self._url(path)
        session = self._get_session()
        logger.debug(f"{self.name} {method} {url}")

        try:
            async with session.request(
                method, url, params=params, headers=headers, json=payload
            ) as response:
                status = response.status
                if status in self.RETRYABLE_STATUSES:
                    text = await response.text()
                    raise TransientSourceError(
                        self.name, f"HTTP {status}: {text[:200]}", status=status
                    )
                if status >= 400:
                    text = await response.text()
                    raise SourceUnavailable(
                        self.name, f"HTTP {status}: {text[:200]}", status=status
                    )
                try:
                    return await response.json(content_type=None)
                except (aiohttp.ContentTypeError, json.JSONDecodeError, ValueError) as e:
                    raise SourceUnavailable(self.name, f"malformed JSON payload: {e}") from e
        except aiohttp.ClientConnectionError as e:
            raise TransientSourceError(self.name, f"connection error: {e}") from e
        except aiohttp.ClientError as e:
            raise SourceUnavailable(self.name, f"request failed: {e}") from e
        except asyncio.TimeoutError as e:
            raise TransientSourceError(self.name, "request timed out") from e

    async def _get_json(
        self,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        """GET with client-level retries on transient failures."""
        return await self._with_retries(self._request_json)("GET", path, params, headers)

    async def _post_json(
        self,
        path: str,
        payload: Dict[str, Any],
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        return await self._with_retries(self._request_json)("POST", path, None, headers, payload)

    def _with_retries(self, func):
        return retry_with_backoff(
            max_retries=self.max_retries,
            initial_delay=self.retry_delay,
            max_delay=10.0,
            exceptions=(TransientSourceError,),
        )(func)
