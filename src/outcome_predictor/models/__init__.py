"""Domain models: teams, games, articles, odds and predictions."""

from .teams import (
    Conference,
    Division,
    Team,
    NFL_TEAMS,
    normalize_abbreviation,
    team_by_abbreviation,
    team_by_name,
    teams_in,
)
from .games import Winner, GameOutcome, Game, Article, BettingOdds, team_record
from .prediction import Prediction, PredictionContext, winner_from_probability

__all__ = [
    "Conference",
    "Division",
    "Team",
    "NFL_TEAMS",
    "normalize_abbreviation",
    "team_by_abbreviation",
    "team_by_name",
    "teams_in",
    "Winner",
    "GameOutcome",
    "Game",
    "Article",
    "BettingOdds",
    "team_record",
    "Prediction",
    "PredictionContext",
    "winner_from_probability",
]
