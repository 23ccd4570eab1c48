"""
Game Models - immutable value objects for games, articles and odds.

This module contains:
- Winner: home / away / tie
- GameOutcome: final score of a completed game
- Game: a scheduled or completed matchup
- Article: a news item about one or more teams
- BettingOdds: a bookmaker's line for a matchup

A new fetch produces new objects; nothing here is mutated in place.
"""

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, Optional, Tuple

from ..utils.odds import devig_moneyline, implied_probability
from .teams import Team


def _new_id() -> str:
    return str(uuid.uuid4())


class Winner(Enum):
    """Side that won (or is predicted to win) a game."""
    HOME = "home"
    AWAY = "away"
    TIE = "tie"


@dataclass(frozen=True)
class GameOutcome:
    """Final score of a completed game."""
    home_score: int
    away_score: int

    @property
    def winner(self) -> Winner:
        if self.home_score > self.away_score:
            return Winner.HOME
        if self.away_score > self.home_score:
            return Winner.AWAY
        return Winner.TIE

    @property
    def point_differential(self) -> int:
        """Point differential from the home team's perspective."""
        return self.home_score - self.away_score


@dataclass(frozen=True)
class Game:
    """
    A scheduled or completed NFL game.

    Attributes:
        home_team: Team playing at home
        away_team: Team playing away
        scheduled_at: Kickoff time
        week: Week number in the season
        season: Season year
        outcome: Final score once the game is over
        id: Provider event id when known, otherwise a generated UUID
    """
    home_team: Team
    away_team: Team
    scheduled_at: datetime
    week: int
    season: int
    outcome: Optional[GameOutcome] = None
    id: str = field(default_factory=_new_id)

    @property
    def is_completed(self) -> bool:
        return self.outcome is not None

    def involves(self, team: Team) -> bool:
        return team.abbreviation in (self.home_team.abbreviation, self.away_team.abbreviation)

    def is_home(self, team: Team) -> bool:
        return self.home_team.abbreviation == team.abbreviation

    def opponent_of(self, team: Team) -> Team:
        return self.away_team if self.is_home(team) else self.home_team

    def result_for(self, team: Team) -> Optional[str]:
        """'W', 'L' or 'T' from ``team``'s point of view, None if not played."""
        if self.outcome is None or not self.involves(team):
            return None
        winner = self.outcome.winner
        if winner == Winner.TIE:
            return "T"
        won = (winner == Winner.HOME) == self.is_home(team)
        return "W" if won else "L"

    def with_outcome(self, outcome: GameOutcome) -> "Game":
        """Return a copy of this game carrying ``outcome``."""
        return replace(self, outcome=outcome)

    @property
    def matchup(self) -> str:
        return f"{self.away_team.abbreviation} @ {self.home_team.abbreviation}"


@dataclass(frozen=True)
class Article:
    """News article or social post mentioning one or more teams."""
    title: str
    content: str
    published_at: datetime
    source: str
    teams: FrozenSet[str] = frozenset()
    url: Optional[str] = None
    id: str = field(default_factory=_new_id)

    def mentions(self, team: Team) -> bool:
        return team.abbreviation in self.teams


@dataclass(frozen=True)
class BettingOdds:
    """One bookmaker's line for a matchup (American odds)."""
    home_team: str
    away_team: str
    bookmaker: str
    last_update: datetime
    home_moneyline: Optional[int] = None
    away_moneyline: Optional[int] = None
    spread: Optional[float] = None
    total: Optional[float] = None

    @property
    def implied_home_probability(self) -> Optional[float]:
        """Vig-free home win probability, or None without both moneylines."""
        if self.home_moneyline is None or self.away_moneyline is None:
            return None
        home, _ = devig_moneyline(self.home_moneyline, self.away_moneyline)
        return home

    @property
    def raw_home_probability(self) -> Optional[float]:
        if self.home_moneyline is None:
            return None
        return implied_probability(self.home_moneyline)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "home_team": self.home_team,
            "away_team": self.away_team,
            "bookmaker": self.bookmaker,
            "last_update": self.last_update.isoformat(),
            "home_moneyline": self.home_moneyline,
            "away_moneyline": self.away_moneyline,
            "spread": self.spread,
            "total": self.total,
        }


def team_record(team: Team, games: Iterable[Game]) -> Tuple[int, int, int]:
    """(wins, losses, ties) for ``team`` over the completed games given."""
    wins = losses = ties = 0
    for game in games:
        result = game.result_for(team)
        if result == "W":
            wins += 1
        elif result == "L":
            losses += 1
        elif result == "T":
            ties += 1
    return wins, losses, ties
