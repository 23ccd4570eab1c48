"""
Prediction Models - forecasts and the context they are built from.

PredictionContext is assembled fresh for every request by the DataLoader;
its constituents are cached individually, the context itself never is.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Tuple

from ..errors import InvalidPredictionError
from ..utils.clock import utc_now
from .games import Article, Game, Winner
from .teams import Team


def winner_from_probability(home_win_probability: float, epsilon: float = 0.01) -> Winner:
    """Map a home win probability to a side, calling a dead heat a tie."""
    if home_win_probability > 0.5 + epsilon:
        return Winner.HOME
    if home_win_probability < 0.5 - epsilon:
        return Winner.AWAY
    return Winner.TIE


@dataclass(frozen=True)
class Prediction:
    """
    A single predictor's forecast for one game.

    The away probability is derived, so home + away is always exactly 1.
    Any tie probability is folded into the sides by the predictor.
    """
    game: Game
    home_win_probability: float
    confidence: float
    predicted_winner: Winner
    reasoning: str
    predictor_name: str
    key_factors: Tuple[str, ...] = ()
    created_at: datetime = field(default_factory=utc_now)

    def __post_init__(self):
        if not 0.0 <= self.home_win_probability <= 1.0:
            raise InvalidPredictionError(
                f"home_win_probability must be in [0, 1], got {self.home_win_probability}"
            )
        if not 0.0 <= self.confidence <= 1.0:
            raise InvalidPredictionError(
                f"confidence must be in [0, 1], got {self.confidence}"
            )

    @property
    def away_win_probability(self) -> float:
        return 1.0 - self.home_win_probability

    @property
    def predicted_team(self) -> Team:
        """Team favoured by the forecast (home on a tie call)."""
        if self.predicted_winner == Winner.AWAY:
            return self.game.away_team
        return self.game.home_team

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for display or JSON output."""
        return {
            "game_id": self.game.id,
            "matchup": self.game.matchup,
            "season": self.game.season,
            "week": self.game.week,
            "home_win_probability": round(self.home_win_probability, 4),
            "away_win_probability": round(self.away_win_probability, 4),
            "confidence": round(self.confidence, 4),
            "predicted_winner": self.predicted_winner.value,
            "reasoning": self.reasoning,
            "key_factors": list(self.key_factors),
            "predictor": self.predictor_name,
            "created_at": self.created_at.isoformat(),
        }


@dataclass
class PredictionContext:
    """Everything known about an upcoming game when it is forecast."""
    game: Game
    home_team_games: List[Game] = field(default_factory=list)
    away_team_games: List[Game] = field(default_factory=list)
    home_team_articles: List[Article] = field(default_factory=list)
    away_team_articles: List[Article] = field(default_factory=list)

    @property
    def total_data_points(self) -> int:
        return (
            len(self.home_team_games)
            + len(self.away_team_games)
            + len(self.home_team_articles)
            + len(self.away_team_articles)
        )

    @property
    def all_games(self) -> List[Game]:
        """Both teams' games with shared matchups counted once."""
        seen = set()
        games = []
        for game in self.home_team_games + self.away_team_games:
            if game.id not in seen:
                seen.add(game.id)
                games.append(game)
        return games

    def summary(self) -> Dict[str, int]:
        return {
            "home_games": len(self.home_team_games),
            "away_games": len(self.away_team_games),
            "home_articles": len(self.home_team_articles),
            "away_articles": len(self.away_team_articles),
            "total": self.total_data_points,
        }
