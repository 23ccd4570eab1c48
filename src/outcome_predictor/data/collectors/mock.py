"""
In-memory sources for offline runs and tests.

Each mock serves fixed data, records how often it was called and can be told
to fail (always, or only for particular teams) or to respond slowly.
"""

import asyncio
from collections import Counter
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional

from ...errors import SourceUnavailable
from ...models import Article, BettingOdds, Game, Team
from .base import NewsSource, OddsSource, ScoresSource


class _MockBehaviour:
    """Call counting plus scripted failure and latency."""

    name = "mock"

    def __init__(
        self,
        fail: bool = False,
        failing_teams: Iterable[str] = (),
        error: Optional[Exception] = None,
        delay: float = 0.0,
    ):
        self.fail = fail
        self.failing_teams = set(failing_teams)
        self.error = error
        self.delay = delay
        self.calls: Counter = Counter()

    @property
    def call_count(self) -> int:
        return sum(self.calls.values())

    async def _respond(self, operation: str, team: Optional[Team] = None) -> None:
        self.calls[operation] += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail or (team is not None and team.abbreviation in self.failing_teams):
            raise self.error or SourceUnavailable(self.name, f"{operation} failed")


class MockScoresSource(_MockBehaviour, ScoresSource):
    """Schedules and scores served from a list of Games."""

    name = "mock_scores"

    def __init__(self, games: Optional[List[Game]] = None, **kwargs):
        super().__init__(**kwargs)
        self.games = list(games or [])

    async def fetch_games(self, team: Team, season: int) -> List[Game]:
        await self._respond("fetch_games", team)
        return [g for g in self.games if g.season == season and g.involves(team)]

    async def fetch_week(self, week: int, season: int) -> List[Game]:
        await self._respond("fetch_week")
        return [g for g in self.games if g.season == season and g.week == week]

    async def fetch_live_scores(self) -> List[Game]:
        await self._respond("fetch_live_scores")
        return [g for g in self.games if not g.is_completed]


class MockNewsSource(_MockBehaviour, NewsSource):
    """Articles served from a fixed list, filtered by team and window."""

    name = "mock_news"

    def __init__(self, articles: Optional[List[Article]] = None, **kwargs):
        super().__init__(**kwargs)
        self.articles = list(articles or [])

    async def fetch_articles(
        self, team: Team, before: datetime, lookback_days: int
    ) -> List[Article]:
        await self._respond("fetch_articles", team)
        start = before - timedelta(days=lookback_days)
        return sorted(
            (a for a in self.articles if a.mentions(team) and start <= a.published_at < before),
            key=lambda a: a.published_at,
            reverse=True,
        )


class MockOddsSource(_MockBehaviour, OddsSource):
    """Fixed betting board."""

    name = "mock_odds"

    def __init__(self, board: Optional[Dict[str, BettingOdds]] = None, **kwargs):
        super().__init__(**kwargs)
        self.board = dict(board or {})

    async def fetch_odds(self) -> Dict[str, BettingOdds]:
        await self._respond("fetch_odds")
        return dict(self.board)
