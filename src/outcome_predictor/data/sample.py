"""
Seeded sample data for offline demos and tests.

Scores are drawn around a per-team strength rating so generated records
are lopsided enough for the baseline to find a favourite.
"""

from datetime import datetime, timedelta
from typing import Dict, List, Optional, Sequence

import numpy as np

from ..models import NFL_TEAMS, Article, Game, GameOutcome, Team
from ..utils.clock import utc_now

ARTICLE_TEMPLATES = [
    "breaks out in practice this week",
    "injury report shows positive signs",
    "coach discusses game plan",
    "defense prepares for tough matchup",
    "offense looking sharp ahead of game",
    "key player questionable for Sunday",
    "fans excited about playoff chances",
    "analysts predict strong performance",
]

ARTICLE_SOURCES = ["ESPN", "NFL.com", "The Athletic", "Reddit"]


class SampleDataGenerator:
    """Reproducible fake seasons, articles and upcoming games."""

    def __init__(self, seed: int = 42, teams: Optional[Sequence[Team]] = None):
        self.seed = seed
        self.teams = list(teams or NFL_TEAMS)
        self.rng = np.random.default_rng(seed)
        self.strength: Dict[str, float] = {
            team.abbreviation: float(self.rng.normal(0.0, 4.0)) for team in self.teams
        }

    def season_start(self, season: int) -> datetime:
        return datetime(season, 9, 8, 13, 0)

    def generate_season(self, season: int = 2024, weeks: int = 10) -> List[Game]:
        """Completed games: every team plays once per week."""
        games = []
        start = self.season_start(season)

        for week in range(1, weeks + 1):
            order = self.rng.permutation(len(self.teams))
            kickoff = start + timedelta(weeks=week - 1)
            for slot, i in enumerate(range(0, len(order) - 1, 2)):
                home = self.teams[order[i]]
                away = self.teams[order[i + 1]]
                home_mean = 22.0 + self.strength[home.abbreviation] + 1.5
                away_mean = 22.0 + self.strength[away.abbreviation]
                home_score = int(max(0, round(self.rng.normal(home_mean, 7.0))))
                away_score = int(max(0, round(self.rng.normal(away_mean, 7.0))))
                games.append(
                    Game(
                        home_team=home,
                        away_team=away,
                        scheduled_at=kickoff + timedelta(hours=3 * (slot % 4)),
                        week=week,
                        season=season,
                        outcome=GameOutcome(home_score=home_score, away_score=away_score),
                        id=f"sample-{season}-{week:02d}-{slot:02d}",
                    )
                )
        return games

    def generate_articles(
        self,
        teams: Sequence[Team],
        count: int = 5,
        reference: Optional[datetime] = None,
        max_days_back: int = 7,
    ) -> List[Article]:
        """``count`` articles per team published in the days before ``reference``."""
        reference = reference or utc_now()
        articles = []
        for team in teams:
            for n in range(count):
                template = ARTICLE_TEMPLATES[self.rng.integers(len(ARTICLE_TEMPLATES))]
                hours_back = int(self.rng.integers(1, max_days_back * 24))
                articles.append(
                    Article(
                        title=f"{team.name} {template}",
                        content=f"Sample content about the {team.name}.",
                        published_at=reference - timedelta(hours=hours_back),
                        source=ARTICLE_SOURCES[self.rng.integers(len(ARTICLE_SOURCES))],
                        teams=frozenset({team.abbreviation}),
                        id=f"sample-article-{team.abbreviation}-{n}",
                    )
                )
        return articles

    def upcoming_game(
        self,
        home: Team,
        away: Team,
        season: int = 2024,
        week: int = 11,
        scheduled_at: Optional[datetime] = None,
    ) -> Game:
        if scheduled_at is None:
            scheduled_at = self.season_start(season) + timedelta(weeks=week - 1)
        return Game(
            home_team=home,
            away_team=away,
            scheduled_at=scheduled_at,
            week=week,
            season=season,
            id=f"sample-{season}-{week:02d}-{away.abbreviation}-at-{home.abbreviation}",
        )
