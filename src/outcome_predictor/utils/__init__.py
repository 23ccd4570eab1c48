"""Utility modules for the outcome predictor."""

from .clock import utc_now
from .logging import get_logger, setup_logging
from .retry import retry_with_backoff, RetryableError, NonRetryableError
from .odds import american_to_decimal, implied_probability, devig_moneyline

__all__ = [
    "utc_now",
    "get_logger",
    "setup_logging",
    "retry_with_backoff",
    "RetryableError",
    "NonRetryableError",
    "american_to_decimal",
    "implied_probability",
    "devig_moneyline",
]
