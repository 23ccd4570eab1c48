"""Configuration module.

Usage:
    from outcome_predictor.config import get_settings

    settings = get_settings()
    print(settings.source_timeout_seconds)
    print(settings.ensemble_llm_weight)
"""

from .settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
