"""Tests for prediction evaluation metrics."""

import math

import pytest


def _prediction(game, probability, name="test"):
    from outcome_predictor.models import Prediction, winner_from_probability

    return Prediction(
        game=game,
        home_win_probability=probability,
        confidence=0.6,
        predicted_winner=winner_from_probability(probability),
        reasoning="",
        predictor_name=name,
    )


class TestPredictionEvaluator:
    """Test accuracy, Brier score and log loss."""

    def test_metrics(self, upcoming_game):
        """One right and one wrong call at 0.8."""
        from outcome_predictor.ml import PredictionEvaluator
        from outcome_predictor.models import GameOutcome

        pairs = [
            (_prediction(upcoming_game, 0.8), GameOutcome(24, 17)),
            (_prediction(upcoming_game, 0.8), GameOutcome(10, 13)),
        ]

        metrics = PredictionEvaluator().evaluate(pairs)

        assert metrics.count == 2
        assert metrics.accuracy == 0.5
        assert metrics.brier_score == pytest.approx((0.04 + 0.64) / 2)
        assert metrics.log_loss == pytest.approx(-(math.log(0.8) + math.log(0.2)) / 2)
        assert metrics.mean_confidence == pytest.approx(0.6)

    def test_tie_scores_half(self, upcoming_game):
        """A tied game is worth 0.5 to the home side."""
        from outcome_predictor.ml import PredictionEvaluator
        from outcome_predictor.models import GameOutcome

        metrics = PredictionEvaluator().evaluate([(_prediction(upcoming_game, 0.5), GameOutcome(20, 20))])

        assert metrics.accuracy == 1.0
        assert metrics.brier_score == 0.0

    def test_certain_wrong_call_is_finite(self, upcoming_game):
        """Probabilities are clipped before taking logs."""
        from outcome_predictor.ml import PredictionEvaluator
        from outcome_predictor.models import GameOutcome

        metrics = PredictionEvaluator().evaluate([(_prediction(upcoming_game, 1.0), GameOutcome(0, 7))])

        assert math.isfinite(metrics.log_loss)
        assert metrics.brier_score == 1.0

    def test_empty_raises(self):
        """Nothing to evaluate is an error."""
        from outcome_predictor.ml import PredictionEvaluator

        with pytest.raises(ValueError):
            PredictionEvaluator().evaluate([])

    def test_evaluate_by_predictor(self, upcoming_game):
        """Metrics are split per predictor name."""
        from outcome_predictor.ml import PredictionEvaluator
        from outcome_predictor.models import GameOutcome

        win = GameOutcome(24, 17)
        pairs = [
            (_prediction(upcoming_game, 0.7, "baseline"), win),
            (_prediction(upcoming_game, 0.3, "baseline"), win),
            (_prediction(upcoming_game, 0.9, "ensemble"), win),
        ]

        by_predictor = PredictionEvaluator().evaluate_by_predictor(pairs)

        assert set(by_predictor) == {"baseline", "ensemble"}
        assert by_predictor["baseline"].count == 2
        assert by_predictor["baseline"].accuracy == 0.5
        assert by_predictor["ensemble"].accuracy == 1.0
        assert by_predictor["ensemble"].to_dict()["brier_score"] == pytest.approx(0.01)
