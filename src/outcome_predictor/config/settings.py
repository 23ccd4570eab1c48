"""Centralized configuration using pydantic-settings.

All configuration values are loaded from environment variables with sensible defaults.
Environment variables can be set in .env file or directly in the environment.

Usage:
    from outcome_predictor.config import get_settings
    settings = get_settings()
    print(settings.anthropic_api_key)
"""

from datetime import datetime
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _get_project_root() -> Path:
    """Get the project root directory."""
    return Path(__file__).parent.parent.parent.parent


def _get_current_nfl_season() -> int:
    """Determine the current NFL season based on date.

    NFL season runs September to February, so Jan/Feb belongs to previous year's season.
    """
    now = datetime.now()
    if now.month < 3:  # Jan/Feb = previous year's season
        return now.year - 1
    return now.year


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # Ignore extra env vars
    )

    # ==========================================================================
    # API Keys
    # ==========================================================================
    anthropic_api_key: Optional[str] = Field(
        default=None,
        description="Anthropic API key for the LLM analyst"
    )
    news_api_key: Optional[str] = Field(
        default=None,
        description="NewsAPI.org key for team news"
    )
    odds_api_key: Optional[str] = Field(
        default=None,
        description="The Odds API key for fetching betting lines"
    )

    # ==========================================================================
    # Endpoints
    # ==========================================================================
    espn_base_url: str = Field(
        default="https://site.api.espn.com/apis/site/v2/sports/football/nfl",
        description="ESPN site API base URL (schedules and scores)"
    )
    news_api_base_url: str = Field(
        default="https://newsapi.org/v2",
        description="NewsAPI.org base URL"
    )
    odds_api_base_url: str = Field(
        default="https://api.the-odds-api.com/v4",
        description="The Odds API base URL"
    )
    anthropic_base_url: str = Field(
        default="https://api.anthropic.com/v1/messages",
        description="Anthropic messages endpoint"
    )

    # ==========================================================================
    # LLM
    # ==========================================================================
    llm_model: str = Field(
        default="claude-sonnet-4-5-20250929",
        description="Model used by the LLM analyst"
    )
    llm_max_tokens: int = Field(
        default=2048,
        description="Maximum tokens in the LLM response"
    )

    # ==========================================================================
    # Timeouts & Retries
    # ==========================================================================
    source_timeout_seconds: float = Field(
        default=10.0,
        description="Upper bound on a single source client call"
    )
    llm_timeout_seconds: float = Field(
        default=60.0,
        description="Upper bound on a single LLM inference call"
    )
    http_max_retries: int = Field(
        default=2,
        description="Client-level retries for transient HTTP failures (429/5xx)"
    )

    # ==========================================================================
    # NFL Season / Loading
    # ==========================================================================
    current_season: int = Field(
        default_factory=_get_current_nfl_season,
        description="Current NFL season year"
    )
    article_lookback_days: int = Field(
        default=7,
        description="Days of news to include in a prediction context"
    )

    # ==========================================================================
    # Baseline Predictor
    # ==========================================================================
    baseline_confidence_floor: float = Field(
        default=0.3,
        description="Confidence reported when no historical games exist"
    )
    baseline_full_confidence_games: int = Field(
        default=20,
        description="Number of observed games at which confidence reaches 1.0"
    )
    home_field_advantage: float = Field(
        default=0.0,
        description="Probability added to the home side by the baseline"
    )

    # ==========================================================================
    # Decisions & Ensemble
    # ==========================================================================
    tie_epsilon: float = Field(
        default=0.01,
        description="Distance from 0.5 within which a forecast is a dead heat"
    )
    ensemble_baseline_weight: float = Field(
        default=0.3,
        description="Weight of the baseline predictor in the standard ensemble"
    )
    ensemble_llm_weight: float = Field(
        default=0.7,
        description="Weight of the LLM predictor in the standard ensemble"
    )
    ensemble_failure_penalty: float = Field(
        default=0.5,
        description="Confidence share removed per failed fraction of ensemble members, in (0, 1]"
    )

    # ==========================================================================
    # Logging
    # ==========================================================================
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )
    log_to_file: bool = Field(
        default=False,
        description="Whether to write logs to file"
    )
    logs_dir: Path = Field(
        default_factory=lambda: _get_project_root() / "logs",
        description="Directory for log files"
    )

    # ==========================================================================
    # Validators
    # ==========================================================================
    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return v_upper

    @field_validator(
        "baseline_confidence_floor",
        "ensemble_baseline_weight",
        "ensemble_llm_weight",
    )
    @classmethod
    def validate_unit_interval(cls, v: float) -> float:
        if not 0 <= v <= 1:
            raise ValueError("value must be between 0 and 1")
        return v

    @field_validator("ensemble_failure_penalty")
    @classmethod
    def validate_failure_penalty(cls, v: float) -> float:
        if not 0 < v <= 1:
            raise ValueError("ensemble_failure_penalty must be in (0, 1]")
        return v

    @field_validator("tie_epsilon")
    @classmethod
    def validate_tie_epsilon(cls, v: float) -> float:
        if not 0 <= v < 0.5:
            raise ValueError("tie_epsilon must be in [0, 0.5)")
        return v

    @field_validator("source_timeout_seconds", "llm_timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("timeouts must be positive")
        return v

    @field_validator("baseline_full_confidence_games")
    @classmethod
    def validate_full_confidence_games(cls, v: int) -> int:
        if v < 1:
            raise ValueError("baseline_full_confidence_games must be at least 1")
        return v

    # ==========================================================================
    # Computed Properties
    # ==========================================================================
    @property
    def has_llm_credentials(self) -> bool:
        """Whether a real LLM client can be constructed."""
        return bool(self.anthropic_api_key)

    def ensure_directories(self) -> None:
        """Create the log directory if file logging is enabled."""
        if self.log_to_file:
            self.logs_dir.mkdir(parents=True, exist_ok=True)


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Settings are loaded once and cached for performance.
    Call get_settings.cache_clear() to reload.
    """
    settings = Settings()
    settings.ensure_directories()
    return settings
