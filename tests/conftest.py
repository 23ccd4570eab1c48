"""Pytest fixtures for the outcome predictor test suite."""

from datetime import datetime, timedelta

import pytest

CREDENTIAL_VARS = ("ANTHROPIC_API_KEY", "NEWS_API_KEY", "ODDS_API_KEY")


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch):
    """Run every test without real credentials and with fresh cached settings."""
    from outcome_predictor.config import get_settings

    for var in CREDENTIAL_VARS:
        monkeypatch.delenv(var, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def west_of_utc():
    """Run with a local timezone behind UTC (America/New_York)."""
    import os
    import time

    if not hasattr(time, "tzset"):
        pytest.skip("timezone switching needs time.tzset")
    previous = os.environ.get("TZ")
    os.environ["TZ"] = "America/New_York"
    time.tzset()
    yield
    if previous is None:
        del os.environ["TZ"]
    else:
        os.environ["TZ"] = previous
    time.tzset()


@pytest.fixture
def settings():
    """Settings built from defaults only (no .env file)."""
    from outcome_predictor.config import Settings

    return Settings(_env_file=None)


@pytest.fixture
def kickoff():
    """Kickoff time of the game under test."""
    return datetime(2024, 11, 17, 13, 0)


@pytest.fixture
def make_game(kickoff):
    """Factory for games; pass both scores to make a completed game."""
    from outcome_predictor.models import Game, GameOutcome, team_by_abbreviation

    counter = {"n": 0}

    def _make(
        home="KC",
        away="BUF",
        home_score=None,
        away_score=None,
        scheduled_at=None,
        week=1,
        season=2024,
        game_id=None,
    ):
        counter["n"] += 1
        outcome = None
        if home_score is not None and away_score is not None:
            outcome = GameOutcome(home_score=home_score, away_score=away_score)
        return Game(
            home_team=team_by_abbreviation(home),
            away_team=team_by_abbreviation(away),
            scheduled_at=scheduled_at or kickoff - timedelta(weeks=12 - week),
            week=week,
            season=season,
            outcome=outcome,
            id=game_id or f"test-game-{counter['n']}",
        )

    return _make


@pytest.fixture
def record_games(make_game):
    """
    Factory producing completed home games giving ``team`` a W-L record.

    Opponents are drawn from teams not in ``exclude`` so two teams' histories
    never overlap.
    """
    from outcome_predictor.models import NFL_TEAMS

    def _make(team, wins, losses, exclude=()):
        skip = {team, *exclude}
        opponents = [t.abbreviation for t in NFL_TEAMS if t.abbreviation not in skip]
        games = []
        for i in range(wins + losses):
            won = i < wins
            games.append(
                make_game(
                    home=team,
                    away=opponents[i % len(opponents)],
                    home_score=24 if won else 10,
                    away_score=10 if won else 24,
                    week=i + 1,
                )
            )
        return games

    return _make


@pytest.fixture
def upcoming_game(make_game, kickoff):
    """KC hosting BUF, week 11 of 2024, not yet played."""
    return make_game(home="KC", away="BUF", scheduled_at=kickoff, week=11, game_id="upcoming")


@pytest.fixture
def make_article(kickoff):
    """Factory for articles published shortly before kickoff."""
    from outcome_predictor.models import Article

    counter = {"n": 0}

    def _make(team="KC", hours_before=24, source="ESPN", title=None):
        counter["n"] += 1
        return Article(
            title=title or f"{team} headline {counter['n']}",
            content="Body",
            published_at=kickoff - timedelta(hours=hours_before),
            source=source,
            teams=frozenset({team}),
            id=f"article-{counter['n']}",
        )

    return _make


@pytest.fixture
def sample_espn_schedule():
    """Trimmed ESPN team schedule payload (two completed games, one upcoming)."""
    return {
        "team": {"abbreviation": "KC"},
        "events": [
            {
                "id": "401671789",
                "date": "2024-09-06T00:20Z",
                "week": {"number": 1},
                "season": {"year": 2024},
                "competitions": [{
                    "competitors": [
                        {"homeAway": "home", "team": {"abbreviation": "KC"},
                         "score": {"value": 27.0, "displayValue": "27"}},
                        {"homeAway": "away", "team": {"abbreviation": "BAL"},
                         "score": {"value": 20.0, "displayValue": "20"}},
                    ],
                    "status": {"type": {"completed": True}},
                }],
            },
            {
                "id": "401671805",
                "date": "2024-09-15T17:00Z",
                "week": {"number": 2},
                "season": {"year": 2024},
                "competitions": [{
                    "competitors": [
                        {"homeAway": "home", "team": {"abbreviation": "WSH"},
                         "score": {"value": 17.0, "displayValue": "17"}},
                        {"homeAway": "away", "team": {"abbreviation": "KC"},
                         "score": {"value": 26.0, "displayValue": "26"}},
                    ],
                    "status": {"type": {"completed": True}},
                }],
            },
            {
                "id": "401671900",
                "date": "2024-12-25T18:00Z",
                "week": {"number": 17},
                "season": {"year": 2024},
                "competitions": [{
                    "competitors": [
                        {"homeAway": "home", "team": {"abbreviation": "PIT"}, "score": "0"},
                        {"homeAway": "away", "team": {"abbreviation": "KC"}, "score": "0"},
                    ],
                    "status": {"type": {"completed": False}},
                }],
            },
        ],
    }


@pytest.fixture
def sample_news_response():
    """NewsAPI ``everything`` response."""
    return {
        "status": "ok",
        "totalResults": 3,
        "articles": [
            {
                "source": {"id": "espn", "name": "ESPN"},
                "title": "Kansas City Chiefs prepare for Buffalo Bills",
                "description": "Preview of the matchup.",
                "url": "https://example.com/chiefs-bills",
                "publishedAt": "2024-11-15T12:00:00Z",
            },
            {
                "source": {"id": None, "name": "NFL.com"},
                "title": "Chiefs injury report",
                "description": None,
                "content": "Full injury list.",
                "url": "https://example.com/chiefs-injuries",
                "publishedAt": "2024-11-14T09:30:00Z",
            },
            {
                "source": {"name": "Blog"},
                "title": "Undated rumor",
                "url": "https://example.com/rumor",
                "publishedAt": None,
            },
        ],
    }


@pytest.fixture
def sample_odds_response():
    """The Odds API h2h/spreads/totals response for one game."""
    return [{
        "id": "test123",
        "sport_key": "americanfootball_nfl",
        "commence_time": "2024-11-17T21:25:00Z",
        "home_team": "Kansas City Chiefs",
        "away_team": "Buffalo Bills",
        "bookmakers": [{
            "key": "fanduel",
            "title": "FanDuel",
            "last_update": "2024-11-16T10:00:00Z",
            "markets": [
                {"key": "h2h", "outcomes": [
                    {"name": "Kansas City Chiefs", "price": -150},
                    {"name": "Buffalo Bills", "price": 130},
                ]},
                {"key": "spreads", "outcomes": [
                    {"name": "Kansas City Chiefs", "price": -110, "point": -3.0},
                    {"name": "Buffalo Bills", "price": -110, "point": 3.0},
                ]},
                {"key": "totals", "outcomes": [
                    {"name": "Over", "price": -110, "point": 47.5},
                    {"name": "Under", "price": -110, "point": 47.5},
                ]},
            ],
        }],
    }]
