"""Predictors: baseline, LLM analyst, ensemble, plus evaluation."""

from .base_predictor import GamePredictor
from .baseline import BaselinePredictor, win_rate
from .llm import (
    ClaudeAPIClient,
    DefaultPromptBuilder,
    LLMClient,
    LLMPredictor,
    LLMResponse,
    MockLLMClient,
    PromptBuilder,
    create_llm_client,
    parse_llm_response,
)
from .ensemble import ContextAwarePredictor, EnsemblePredictor
from .evaluation import EvaluationMetrics, PredictionEvaluator

__all__ = [
    "GamePredictor",
    "BaselinePredictor",
    "win_rate",
    "ClaudeAPIClient",
    "DefaultPromptBuilder",
    "LLMClient",
    "LLMPredictor",
    "LLMResponse",
    "MockLLMClient",
    "PromptBuilder",
    "create_llm_client",
    "parse_llm_response",
    "EnsemblePredictor",
    "ContextAwarePredictor",
    "EvaluationMetrics",
    "PredictionEvaluator",
]
