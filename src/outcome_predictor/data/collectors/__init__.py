"""Source clients: one per external provider, plus in-memory mocks."""

from .base import HTTPSourceClient, NewsSource, OddsSource, ScoresSource
from .espn import ESPNScoresSource
from .news_api import NewsAPISource
from .odds_api import OddsAPISource
from .mock import MockNewsSource, MockOddsSource, MockScoresSource

__all__ = [
    "HTTPSourceClient",
    "ScoresSource",
    "NewsSource",
    "OddsSource",
    "ESPNScoresSource",
    "NewsAPISource",
    "OddsAPISource",
    "MockScoresSource",
    "MockNewsSource",
    "MockOddsSource",
]
