"""Tests for the package clock."""

from datetime import datetime, timezone


class TestUtcNow:
    """Test utc_now."""

    def test_naive_utc(self):
        """utc_now is naive and tracks UTC, not the local wall clock."""
        from outcome_predictor.utils import utc_now

        now = utc_now()
        reference = datetime.now(timezone.utc).replace(tzinfo=None)

        assert now.tzinfo is None
        assert abs((reference - now).total_seconds()) < 5

    def test_comparable_with_parsed_timestamps(self):
        """Provider timestamps and utc_now share one timeline."""
        from outcome_predictor.data.collectors.base import parse_timestamp
        from outcome_predictor.utils import utc_now

        parsed = parse_timestamp(f"{utc_now():%Y-%m-%dT%H:%M:%S}Z")

        assert abs((utc_now() - parsed).total_seconds()) < 5
