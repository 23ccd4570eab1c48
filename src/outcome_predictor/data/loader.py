"""
Data Loader - cache-or-fetch orchestration over the source clients.

This module contains:
- DataLoaderConfig: which sources are wired in (validated at construction)
- DataLoader: cached loading of games, articles and odds, and concurrent
  assembly of a PredictionContext
- DataLoaderBuilder: fluent construction from Settings

Freshness is "present in the cache". There is no time-based expiry here;
callers evict with ``clear_cache``, ``invalidate_games`` or ``DataCache.prune``.
The loader never retries; retries of transient HTTP failures happen inside
the source clients.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Awaitable, Callable, Dict, List, Optional

import aiohttp

from ..config import Settings, get_settings
from ..errors import ConfigurationError, OutcomePredictorError, SourceUnavailable
from ..models import Article, BettingOdds, Game, PredictionContext, Team
from ..utils.clock import utc_now
from ..utils.logging import get_logger
from ..utils.retry import NonRetryableError
from .cache import CacheKey, DataCache
from .collectors import (
    ESPNScoresSource,
    MockNewsSource,
    MockOddsSource,
    MockScoresSource,
    NewsAPISource,
    NewsSource,
    OddsAPISource,
    OddsSource,
    ScoresSource,
)

logger = get_logger(__name__)


def _reraise_base_exceptions(results: List[Any]) -> None:
    # Cancellation and interpreter exits are never absorbed
    for result in results:
        if isinstance(result, BaseException) and not isinstance(result, Exception):
            raise result


@dataclass
class DataLoaderConfig:
    """
    Source wiring for a DataLoader.

    The scores source is required; news sources (zero or more) and the odds
    source are optional.
    """
    scores_source: Optional[ScoresSource] = None
    news_sources: List[NewsSource] = field(default_factory=list)
    odds_source: Optional[OddsSource] = None
    source_timeout_seconds: float = 10.0
    article_lookback_days: int = 7

    def validate(self) -> None:
        if self.scores_source is None:
            raise ConfigurationError("DataLoader requires a scores source")
        if self.source_timeout_seconds <= 0:
            raise ConfigurationError("source_timeout_seconds must be positive")
        if self.article_lookback_days < 1:
            raise ConfigurationError("article_lookback_days must be at least 1")


class DataLoader:
    """Loads games, articles and odds through a shared DataCache."""

    def __init__(self, config: DataLoaderConfig, cache: Optional[DataCache] = None):
        config.validate()
        self._scores = config.scores_source
        self._news = tuple(config.news_sources)
        self._odds = config.odds_source
        self.timeout = config.source_timeout_seconds
        self.article_lookback_days = config.article_lookback_days
        self.cache = cache if cache is not None else DataCache()

    @classmethod
    def builder(cls, settings: Optional[Settings] = None) -> "DataLoaderBuilder":
        return DataLoaderBuilder(settings)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    # ==========================================================================
    # Games
    # ==========================================================================

    async def load_games(
        self, team: Team, season: int, force_refresh: bool = False
    ) -> List[Game]:
        """
        Games for ``team`` in ``season``.

        Served from the cache unless absent or ``force_refresh`` is set.

        Raises:
            SourceUnavailable: The scores source failed and nothing is cached
        """
        key = CacheKey.of("games", team.abbreviation, season=season)
        games = await self._cached_or_fetch(
            key,
            lambda: self._call_source(self._scores.name, self._scores.fetch_games(team, season)),
            force_refresh,
        )
        return list(games)

    async def load_week(
        self, week: int, season: int, force_refresh: bool = False
    ) -> List[Game]:
        """Every game of a regular-season week."""
        key = CacheKey.of("games", "week", week=week, season=season)
        games = await self._cached_or_fetch(
            key,
            lambda: self._call_source(self._scores.name, self._scores.fetch_week(week, season)),
            force_refresh,
        )
        return list(games)

    async def load_live_scores(self) -> List[Game]:
        """Current scoreboard. Never cached."""
        return await self._call_source(self._scores.name, self._scores.fetch_live_scores())

    async def invalidate_games(self, team: Team, season: int) -> bool:
        return await self.cache.invalidate(
            CacheKey.of("games", team.abbreviation, season=season)
        )

    # ==========================================================================
    # Articles
    # ==========================================================================

    async def load_articles(
        self,
        team: Team,
        lookback_days: Optional[int] = None,
        before: Optional[datetime] = None,
        force_refresh: bool = False,
    ) -> List[Article]:
        """
        Articles about ``team`` from every configured news source.

        Sources are queried concurrently and merged (newest first, duplicates
        dropped by id). One source failing is tolerated; the call fails only
        when every source failed. With no news source configured the result
        is empty.

        Args:
            team: Team the articles should mention
            lookback_days: Window length, defaults to the loader's setting
            before: End of the window (exclusive, naive UTC), defaults to now
            force_refresh: Bypass the cache
        """
        if not self._news:
            logger.debug(f"No news sources configured, skipping articles for {team.abbreviation}")
            return []

        lookback = lookback_days if lookback_days is not None else self.article_lookback_days
        before = before or utc_now()
        key = CacheKey.of(
            "articles", team.abbreviation,
            lookback_days=lookback, before=before.date().isoformat(),
        )
        articles = await self._cached_or_fetch(
            key,
            lambda: self._fetch_articles(team, before, lookback),
            force_refresh,
        )
        return list(articles)

    async def _fetch_articles(
        self, team: Team, before: datetime, lookback_days: int
    ) -> List[Article]:
        results = await asyncio.gather(
            *(
                self._call_source(source.name, source.fetch_articles(team, before, lookback_days))
                for source in self._news
            ),
            return_exceptions=True,
        )
        _reraise_base_exceptions(results)

        merged: Dict[str, Article] = {}
        failures = []
        for source, result in zip(self._news, results):
            if isinstance(result, Exception):
                failures.append((source.name, result))
                logger.warning(f"News source {source.name} failed for {team.abbreviation}: {result}")
                continue
            for article in result:
                merged.setdefault(article.id, article)

        if len(failures) == len(self._news):
            raise SourceUnavailable(
                "news", f"all {len(failures)} news sources failed for {team.abbreviation}"
            ) from failures[0][1]

        start = before - timedelta(days=lookback_days)
        return sorted(
            (a for a in merged.values() if start <= a.published_at < before),
            key=lambda a: a.published_at,
            reverse=True,
        )

    # ==========================================================================
    # Odds
    # ==========================================================================

    async def load_odds(self, force_refresh: bool = False) -> Dict[str, BettingOdds]:
        """Current betting board keyed by matchup (``"AWAY @ HOME"``)."""
        if self._odds is None:
            raise SourceUnavailable("odds", "no odds source configured")
        board = await self._cached_or_fetch(
            CacheKey("odds", "board"),
            lambda: self._call_source(self._odds.name, self._odds.fetch_odds()),
            force_refresh,
        )
        return dict(board)

    async def odds_for(self, game: Game, force_refresh: bool = False) -> Optional[BettingOdds]:
        board = await self.load_odds(force_refresh)
        return board.get(game.matchup)

    # ==========================================================================
    # Prediction Context
    # ==========================================================================

    async def load_prediction_context(
        self,
        game: Game,
        lookback_days: Optional[int] = None,
        force_refresh: bool = False,
    ) -> PredictionContext:
        """
        Concurrently load both teams' games and articles for ``game``.

        Latency is the slowest of the four loads, not their sum. Article
        failures contribute empty lists. Losing one team's games is logged
        and tolerated; losing both raises.

        Raises:
            SourceUnavailable: Games could not be loaded for either team
        """
        lookback = lookback_days if lookback_days is not None else self.article_lookback_days
        logger.info(
            f"Loading context for {game.matchup} (season {game.season}, week {game.week})"
        )

        results = await asyncio.gather(
            self.load_games(game.home_team, game.season, force_refresh),
            self.load_games(game.away_team, game.season, force_refresh),
            self.load_articles(game.home_team, lookback, game.scheduled_at, force_refresh),
            self.load_articles(game.away_team, lookback, game.scheduled_at, force_refresh),
            return_exceptions=True,
        )
        _reraise_base_exceptions(results)
        home_games, away_games, home_articles, away_articles = results

        for result in (home_games, away_games):
            if isinstance(result, Exception) and not isinstance(result, OutcomePredictorError):
                raise result

        if isinstance(home_games, Exception) and isinstance(away_games, Exception):
            logger.error(f"Could not load games for either team in {game.matchup}")
            raise SourceUnavailable(
                "games", f"no games available for {game.matchup}: {home_games}"
            ) from home_games

        if isinstance(home_games, Exception):
            logger.warning(f"Games for {game.home_team.abbreviation} unavailable: {home_games}")
            home_games = []
        if isinstance(away_games, Exception):
            logger.warning(f"Games for {game.away_team.abbreviation} unavailable: {away_games}")
            away_games = []

        if isinstance(home_articles, Exception):
            logger.warning(f"Articles for {game.home_team.abbreviation} unavailable: {home_articles}")
            home_articles = []
        if isinstance(away_articles, Exception):
            logger.warning(f"Articles for {game.away_team.abbreviation} unavailable: {away_articles}")
            away_articles = []

        context = PredictionContext(
            game=game,
            home_team_games=home_games,
            away_team_games=away_games,
            home_team_articles=home_articles,
            away_team_articles=away_articles,
        )
        logger.info(f"Context ready: {context.total_data_points} data points")
        return context

    # ==========================================================================
    # Cache management
    # ==========================================================================

    async def clear_cache(self) -> None:
        await self.cache.clear()

    def cache_stats(self) -> Dict[str, Any]:
        return self.cache.stats()

    async def close(self) -> None:
        """Close every source (HTTP sources release their sessions)."""
        sources = [self._scores, *self._news]
        if self._odds is not None:
            sources.append(self._odds)
        await asyncio.gather(*(source.close() for source in sources))

    # ==========================================================================
    # Internals
    # ==========================================================================

    async def _call_source(self, source_name: str, operation: Awaitable[Any]) -> Any:
        """Await a source call under the provider timeout, normalising errors."""
        try:
            return await asyncio.wait_for(operation, timeout=self.timeout)
        except asyncio.TimeoutError as e:
            raise SourceUnavailable(
                source_name, f"timed out after {self.timeout:.1f}s"
            ) from e
        except (SourceUnavailable, NonRetryableError):
            raise
        except (aiohttp.ClientError, OutcomePredictorError, ValueError, KeyError, TypeError) as e:
            raise SourceUnavailable(source_name, str(e) or type(e).__name__) from e

    async def _cached_or_fetch(
        self,
        key: CacheKey,
        fetch: Callable[[], Awaitable[Any]],
        force_refresh: bool,
    ) -> Any:
        if not force_refresh:
            cached = await self.cache.get(key)
            if cached is not None:
                return cached

        try:
            value = await fetch()
        except SourceUnavailable as e:
            if force_refresh:
                entry = await self.cache.get_entry(key)
                if entry is not None:
                    logger.warning(
                        f"Refresh of {key} failed ({e}); serving entry fetched at "
                        f"{entry.fetched_at:%Y-%m-%d %H:%M:%S}"
                    )
                    return entry.value
            logger.error(f"Failed to load {key}: {e}")
            raise

        # Written only after a successful fetch
        entry = await self.cache.put(key, value)
        return entry.value


class DataLoaderBuilder:
    """
    Fluent assembly of a DataLoader.

    Example:
        loader = (
            DataLoader.builder()
            .with_espn()
            .with_news_api()
            .build()
        )
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self._scores: Optional[ScoresSource] = None
        self._news: List[NewsSource] = []
        self._odds: Optional[OddsSource] = None
        self._cache: Optional[DataCache] = None
        self._session: Optional[aiohttp.ClientSession] = None
        self._timeout = self.settings.source_timeout_seconds
        self._lookback_days = self.settings.article_lookback_days

    def _http_options(self) -> Dict[str, Any]:
        return {
            "session": self._session,
            "timeout_seconds": self._timeout,
            "max_retries": self.settings.http_max_retries,
        }

    def with_session(self, session: aiohttp.ClientSession) -> "DataLoaderBuilder":
        """Share one aiohttp session across HTTP sources added afterwards."""
        self._session = session
        return self

    def with_scores_source(self, source: ScoresSource) -> "DataLoaderBuilder":
        self._scores = source
        return self

    def with_espn(self) -> "DataLoaderBuilder":
        return self.with_scores_source(
            ESPNScoresSource(base_url=self.settings.espn_base_url, **self._http_options())
        )

    def with_mock_scores(self, games: Optional[List[Game]] = None) -> "DataLoaderBuilder":
        return self.with_scores_source(MockScoresSource(games))

    def with_news_source(self, source: NewsSource) -> "DataLoaderBuilder":
        self._news.append(source)
        return self

    def with_news_api(self, api_key: Optional[str] = None) -> "DataLoaderBuilder":
        """Add NewsAPI.org. Raises MissingCredential without a key."""
        return self.with_news_source(
            NewsAPISource(
                api_key or self.settings.news_api_key,
                base_url=self.settings.news_api_base_url,
                **self._http_options(),
            )
        )

    def with_mock_news(self, articles: Optional[List[Article]] = None) -> "DataLoaderBuilder":
        return self.with_news_source(MockNewsSource(articles))

    def with_odds_source(self, source: OddsSource) -> "DataLoaderBuilder":
        self._odds = source
        return self

    def with_odds_api(self, api_key: Optional[str] = None) -> "DataLoaderBuilder":
        """Add The Odds API. Raises MissingCredential without a key."""
        return self.with_odds_source(
            OddsAPISource(
                api_key or self.settings.odds_api_key,
                base_url=self.settings.odds_api_base_url,
                **self._http_options(),
            )
        )

    def with_mock_odds(self, board: Optional[Dict[str, BettingOdds]] = None) -> "DataLoaderBuilder":
        return self.with_odds_source(MockOddsSource(board))

    def with_cache(self, cache: DataCache) -> "DataLoaderBuilder":
        self._cache = cache
        return self

    def with_timeout(self, seconds: float) -> "DataLoaderBuilder":
        self._timeout = seconds
        return self

    def with_lookback_days(self, days: int) -> "DataLoaderBuilder":
        self._lookback_days = days
        return self

    def build(self) -> DataLoader:
        """
        Raises:
            ConfigurationError: No scores source was registered
        """
        config = DataLoaderConfig(
            scores_source=self._scores,
            news_sources=list(self._news),
            odds_source=self._odds,
            source_timeout_seconds=self._timeout,
            article_lookback_days=self._lookback_days,
        )
        return DataLoader(config, cache=self._cache)
