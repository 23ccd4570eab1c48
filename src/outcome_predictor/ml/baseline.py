"""
Baseline predictor using historical win rates.

Home win probability is the home team's win rate normalised against the
away team's:

    p_home = rate_home / (rate_home + rate_away)

A team without completed games gets a neutral 0.5 rate. Ties count as half a
win, matching NFL win percentage. Confidence grows linearly with the number
of games observed and never drops below a floor.
"""

import logging
from typing import Iterable, List, Optional, Tuple

from ..config import Settings, get_settings
from ..data.repository import InMemoryGameRepository
from ..models import Game, Prediction, PredictionContext, Team, Winner, team_record
from .base_predictor import Features, GamePredictor

logger = logging.getLogger(__name__)

NEUTRAL_RATE = 0.5


def win_rate(team: Team, games: Iterable[Game]) -> Tuple[float, int]:
    """Win percentage and number of decided-or-tied games; 0.5 with no games."""
    wins, losses, ties = team_record(team, games)
    played = wins + losses + ties
    if played == 0:
        return NEUTRAL_RATE, 0
    return (wins + 0.5 * ties) / played, played


class BaselinePredictor(GamePredictor):
    """Statistical baseline fed by an in-memory game repository."""

    name = "baseline"

    def __init__(
        self,
        repository: Optional[InMemoryGameRepository] = None,
        confidence_floor: Optional[float] = None,
        full_confidence_games: Optional[int] = None,
        home_field_advantage: Optional[float] = None,
        tie_epsilon: Optional[float] = None,
        same_season_only: bool = True,
        settings: Optional[Settings] = None,
    ):
        settings = settings or get_settings()
        self.repository = repository
        self.confidence_floor = (
            confidence_floor if confidence_floor is not None else settings.baseline_confidence_floor
        )
        self.full_confidence_games = (
            full_confidence_games or settings.baseline_full_confidence_games
        )
        self.home_field_advantage = (
            home_field_advantage if home_field_advantage is not None
            else settings.home_field_advantage
        )
        self.tie_epsilon = tie_epsilon if tie_epsilon is not None else settings.tie_epsilon
        self.same_season_only = same_season_only

    async def predict(self, game: Game, features: Optional[Features] = None) -> Prediction:
        if self.repository is None:
            games: List[Game] = []
            tie_rate = 0.0
        else:
            games = self.repository.games_involving(game.home_team) + \
                self.repository.games_involving(game.away_team)
            tie_rate = self.repository.tie_rate
        return self._predict_from(game, games, tie_rate, features or {})

    async def predict_context(
        self, context: PredictionContext, features: Optional[Features] = None
    ) -> Prediction:
        if self.repository is not None:
            return await self.predict(context.game, features)

        games = context.all_games
        completed = [g for g in games if g.is_completed]
        ties = sum(1 for g in completed if g.outcome.winner == Winner.TIE)
        tie_rate = ties / len(completed) if completed else 0.0
        return self._predict_from(context.game, games, tie_rate, features or {})

    def history(self, team: Team, games: Iterable[Game], target: Game) -> List[Game]:
        """Completed games of ``team`` played before ``target``."""
        seen = set()
        history = []
        for g in games:
            if g.id in seen or g.id == target.id:
                continue
            if not (g.is_completed and g.involves(team)):
                continue
            if g.scheduled_at >= target.scheduled_at:
                continue
            if self.same_season_only and g.season != target.season:
                continue
            seen.add(g.id)
            history.append(g)
        return history

    def confidence_for(self, games_observed: int) -> float:
        scaled = min(1.0, games_observed / self.full_confidence_games)
        return max(self.confidence_floor, scaled)

    def _predict_from(
        self, game: Game, games: List[Game], tie_rate: float, features: Features
    ) -> Prediction:
        home_history = self.history(game.home_team, games, game)
        away_history = self.history(game.away_team, games, game)

        home_rate, home_n = win_rate(game.home_team, home_history)
        away_rate, away_n = win_rate(game.away_team, away_history)

        total = home_rate + away_rate
        probability = home_rate / total if total > 0 else 0.5

        advantage = float(features.get("home_field_advantage", self.home_field_advantage))
        probability = min(1.0, max(0.0, probability + advantage))

        confidence = self.confidence_for(home_n + away_n)

        if abs(probability - 0.5) < self.tie_epsilon and tie_rate > 0:
            winner = Winner.TIE
        elif probability >= 0.5:
            winner = Winner.HOME
        else:
            winner = Winner.AWAY

        home_record = "-".join(str(n) for n in team_record(game.home_team, home_history))
        away_record = "-".join(str(n) for n in team_record(game.away_team, away_history))
        reasoning = (
            f"{game.home_team.abbreviation} {home_record} ({home_rate:.1%}) vs "
            f"{game.away_team.abbreviation} {away_record} ({away_rate:.1%}) "
            f"over {home_n + away_n} completed games"
        )
        if advantage:
            reasoning += f", home field {advantage:+.1%}"

        logger.debug(f"Baseline {game.matchup}: p_home={probability:.3f} conf={confidence:.2f}")

        return Prediction(
            game=game,
            home_win_probability=probability,
            confidence=confidence,
            predicted_winner=winner,
            reasoning=reasoning,
            predictor_name=self.name,
            key_factors=(
                f"{game.home_team.abbreviation} win rate {home_rate:.1%}",
                f"{game.away_team.abbreviation} win rate {away_rate:.1%}",
            ),
        )
