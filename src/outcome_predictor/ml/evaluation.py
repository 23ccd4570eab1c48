"""
Prediction evaluation against final scores.

Metrics:
- accuracy: share of games where the predicted winner was right
- Brier score: mean squared error of the home win probability
- log loss: clipped binary cross-entropy

A tied game scores 0.5 for the home side in Brier and log loss.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Tuple

import numpy as np
import pandas as pd

from ..models import GameOutcome, Prediction, Winner

logger = logging.getLogger(__name__)

LOG_LOSS_EPS = 1e-15

_OUTCOME_VALUE = {Winner.HOME: 1.0, Winner.AWAY: 0.0, Winner.TIE: 0.5}


@dataclass
class EvaluationMetrics:
    """Aggregate quality of a batch of predictions."""
    count: int
    accuracy: float
    brier_score: float
    log_loss: float
    mean_confidence: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "count": self.count,
            "accuracy": round(self.accuracy, 4),
            "brier_score": round(self.brier_score, 4),
            "log_loss": round(self.log_loss, 4),
            "mean_confidence": round(self.mean_confidence, 4),
        }


class PredictionEvaluator:
    """Scores (Prediction, GameOutcome) pairs."""

    def to_frame(self, pairs: Iterable[Tuple[Prediction, GameOutcome]]) -> pd.DataFrame:
        rows = []
        for prediction, outcome in pairs:
            rows.append({
                "game_id": prediction.game.id,
                "predictor": prediction.predictor_name,
                "home_win_probability": prediction.home_win_probability,
                "confidence": prediction.confidence,
                "predicted": prediction.predicted_winner.value,
                "actual": outcome.winner.value,
                "y": _OUTCOME_VALUE[outcome.winner],
            })
        return pd.DataFrame(
            rows,
            columns=["game_id", "predictor", "home_win_probability", "confidence",
                     "predicted", "actual", "y"],
        )

    def evaluate(self, pairs: Iterable[Tuple[Prediction, GameOutcome]]) -> EvaluationMetrics:
        """
        Raises:
            ValueError: No pairs were given
        """
        df = self.to_frame(pairs)
        if df.empty:
            raise ValueError("Cannot evaluate an empty set of predictions")
        return self._metrics(df)

    def evaluate_by_predictor(
        self, pairs: Iterable[Tuple[Prediction, GameOutcome]]
    ) -> Dict[str, EvaluationMetrics]:
        """Separate metrics per predictor name (e.g. baseline vs ensemble)."""
        df = self.to_frame(pairs)
        return {name: self._metrics(group) for name, group in df.groupby("predictor")}

    def _metrics(self, df: pd.DataFrame) -> EvaluationMetrics:
        p = df["home_win_probability"].to_numpy(dtype=float)
        y = df["y"].to_numpy(dtype=float)
        clipped = np.clip(p, LOG_LOSS_EPS, 1 - LOG_LOSS_EPS)

        metrics = EvaluationMetrics(
            count=len(df),
            accuracy=float((df["predicted"] == df["actual"]).mean()),
            brier_score=float(np.mean((p - y) ** 2)),
            log_loss=float(-np.mean(y * np.log(clipped) + (1 - y) * np.log(1 - clipped))),
            mean_confidence=float(df["confidence"].mean()),
        )
        logger.debug(f"Evaluated {metrics.count} predictions: {metrics.to_dict()}")
        return metrics
