"""Error taxonomy shared by the loader, the source clients and the predictors.

Callers decide between retrying, aborting and degrading by error kind:

- ``SourceUnavailable`` is retryable (network failure, bad status, timeout,
  malformed payload). ``TransientSourceError`` narrows it to failures a
  client retries on its own.
- ``MissingCredential`` and ``ConfigurationError`` are not retryable.
- ``PredictionError`` covers predictor-side failures.
"""

from typing import List, Optional, Tuple

from .utils.retry import NonRetryableError, RetryableError


class OutcomePredictorError(Exception):
    """Base class for all errors raised by the package."""


class SourceUnavailable(OutcomePredictorError, RetryableError):
    """A source client or LLM client could not produce data."""

    def __init__(self, source: str, message: str, status: Optional[int] = None):
        self.source = source
        self.message = message
        self.status = status
        super().__init__(f"{source} unavailable: {message}")


class TransientSourceError(SourceUnavailable):
    """Rate limiting, 5xx responses and connection drops."""


class MissingCredential(OutcomePredictorError, NonRetryableError):
    """Required authentication for a client is not configured."""

    def __init__(self, credential: str, client: str):
        self.credential = credential
        self.client = client
        super().__init__(
            f"{client} requires {credential}. Set it in the environment or .env file."
        )


class ConfigurationError(OutcomePredictorError, NonRetryableError):
    """Invalid or incomplete wiring detected at construction time."""


class PredictionError(OutcomePredictorError):
    """A predictor could not produce a forecast."""


class InvalidPredictionError(PredictionError, ValueError):
    """Probability or confidence outside [0, 1]."""


class EnsembleExhaustedError(PredictionError):
    """Every member of an ensemble failed."""

    def __init__(self, failures: List[Tuple[str, BaseException]]):
        self.failures = failures
        detail = "; ".join(f"{name}: {error}" for name, error in failures)
        super().__init__(f"All {len(failures)} ensemble members failed ({detail})")
