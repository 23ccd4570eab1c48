"""
Ensemble predictor combining several predictors by weighted average.

Members run concurrently. Only members that succeed contribute, with their
weights renormalised; confidence is then reduced in proportion to the share
of members that failed. The ensemble itself fails only when every member did.

ContextAwarePredictor is the routing alternative: instead of blending it
hands each game to exactly one of the baseline or the LLM.
"""

import asyncio
import logging
from typing import List, Optional, Sequence, Tuple

import numpy as np

from ..config import Settings, get_settings
from ..errors import ConfigurationError, EnsembleExhaustedError
from ..models import Game, Prediction, PredictionContext, winner_from_probability
from .base_predictor import Features, GamePredictor

logger = logging.getLogger(__name__)


class EnsemblePredictor(GamePredictor):
    """Weighted combination of (predictor, weight) pairs."""

    name = "ensemble"

    def __init__(
        self,
        members: Sequence[Tuple[GamePredictor, float]],
        failure_penalty: Optional[float] = None,
        tie_epsilon: Optional[float] = None,
        settings: Optional[Settings] = None,
    ):
        if not members:
            raise ConfigurationError("An ensemble needs at least one member")
        for predictor, weight in members:
            if weight <= 0:
                raise ConfigurationError(
                    f"Weight for {predictor.name} must be positive, got {weight}"
                )

        settings = settings or get_settings()
        failure_penalty = (
            failure_penalty if failure_penalty is not None else settings.ensemble_failure_penalty
        )
        if not 0 < failure_penalty <= 1:
            raise ConfigurationError(
                f"failure_penalty must be in (0, 1], got {failure_penalty}"
            )

        self.members: List[Tuple[GamePredictor, float]] = list(members)
        self.failure_penalty = failure_penalty
        self.tie_epsilon = tie_epsilon if tie_epsilon is not None else settings.tie_epsilon

    @classmethod
    def standard(
        cls,
        baseline: GamePredictor,
        llm: GamePredictor,
        settings: Optional[Settings] = None,
    ) -> "EnsemblePredictor":
        """Baseline and LLM with the configured weights (0.3 / 0.7 by default)."""
        settings = settings or get_settings()
        return cls(
            [
                (baseline, settings.ensemble_baseline_weight),
                (llm, settings.ensemble_llm_weight),
            ],
            settings=settings,
        )

    async def predict(self, game: Game, features: Optional[Features] = None) -> Prediction:
        results = await asyncio.gather(
            *(predictor.predict(game, features) for predictor, _ in self.members),
            return_exceptions=True,
        )
        return self._combine(game, results)

    async def predict_context(
        self, context: PredictionContext, features: Optional[Features] = None
    ) -> Prediction:
        results = await asyncio.gather(
            *(predictor.predict_context(context, features) for predictor, _ in self.members),
            return_exceptions=True,
        )
        return self._combine(context.game, results)

    def _combine(self, game: Game, results: list) -> Prediction:
        successes: List[Tuple[Prediction, float]] = []
        failures = []
        for (predictor, weight), result in zip(self.members, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                logger.warning(f"Ensemble member {predictor.name} failed: {result}")
                failures.append((predictor.name, result))
            else:
                successes.append((result, weight))

        if not successes:
            logger.error(f"All {len(failures)} ensemble members failed for {game.matchup}")
            raise EnsembleExhaustedError(failures)

        weights = np.array([w for _, w in successes], dtype=float)
        probability = float(np.average([p.home_win_probability for p, _ in successes], weights=weights))
        confidence = float(np.average([p.confidence for p, _ in successes], weights=weights))

        failed_share = len(failures) / len(self.members)
        confidence *= 1.0 - self.failure_penalty * failed_share

        # Guard against float drift past the unit interval
        probability = min(1.0, max(0.0, probability))
        confidence = min(1.0, max(0.0, confidence))

        return Prediction(
            game=game,
            home_win_probability=probability,
            confidence=confidence,
            predicted_winner=winner_from_probability(probability, self.tie_epsilon),
            reasoning=self._reasoning(successes, failures, weights.sum(), probability),
            predictor_name=self.name,
            key_factors=tuple(f for p, _ in successes for f in p.key_factors),
        )

    def _reasoning(self, successes, failures, total_weight: float, probability: float) -> str:
        lines = [
            f"Ensemble of {len(successes)}/{len(self.members)} models: "
            f"home win probability {probability:.1%}"
        ]
        for prediction, weight in successes:
            lines.append(
                f"[{prediction.predictor_name}] weight {weight / total_weight:.2f}, "
                f"p={prediction.home_win_probability:.1%}, "
                f"confidence {prediction.confidence:.1%}: {prediction.reasoning}"
            )
        for name, error in failures:
            lines.append(f"[{name}] unavailable: {error}")
        return "\n".join(lines)


class ContextAwarePredictor(GamePredictor):
    """
    Route each game to the LLM or the baseline by game characteristics.

    The LLM takes division rivalries, games late in the season and requests
    carrying text-derived features (``news_*`` / ``sentiment_*``); everything
    else goes to the baseline. The chosen predictor's forecast is returned
    unchanged, failures included.
    """

    name = "context_aware"

    TEXT_FEATURE_PREFIXES = ("news_", "sentiment_")

    def __init__(
        self,
        baseline: GamePredictor,
        llm: GamePredictor,
        late_season_week: int = 15,
    ):
        self.baseline = baseline
        self.llm = llm
        self.late_season_week = late_season_week

    def should_use_llm(self, game: Game, features: Optional[Features] = None) -> bool:
        if game.home_team.is_division_rival(game.away_team):
            return True
        if any(key.startswith(self.TEXT_FEATURE_PREFIXES) for key in features or {}):
            return True
        return game.week >= self.late_season_week

    def select(self, game: Game, features: Optional[Features] = None) -> GamePredictor:
        chosen = self.llm if self.should_use_llm(game, features) else self.baseline
        logger.debug(f"Routing {game.matchup} (week {game.week}) to {chosen.name}")
        return chosen

    async def predict(self, game: Game, features: Optional[Features] = None) -> Prediction:
        return await self.select(game, features).predict(game, features)

    async def predict_context(
        self, context: PredictionContext, features: Optional[Features] = None
    ) -> Prediction:
        return await self.select(context.game, features).predict_context(context, features)
