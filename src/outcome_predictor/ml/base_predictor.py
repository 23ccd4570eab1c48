"""
Base predictor class for all game predictors.

Predictors are stateless request/response strategies: every call returns a
new Prediction and nothing is remembered between calls.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from ..models import Game, Prediction, PredictionContext

Features = Dict[str, Any]


class GamePredictor(ABC):
    """Abstract base class for game outcome predictors."""

    name: str = "base"

    @abstractmethod
    async def predict(self, game: Game, features: Optional[Features] = None) -> Prediction:
        """
        Forecast ``game``.

        Args:
            game: Game to forecast
            features: Open key/value map for predictor-specific tuning

        Returns:
            Prediction attributed to this predictor
        """
        pass

    async def predict_context(
        self, context: PredictionContext, features: Optional[Features] = None
    ) -> Prediction:
        """Forecast using a loaded context. Predictors that ignore it fall back to ``predict``."""
        return await self.predict(context.game, features)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"
