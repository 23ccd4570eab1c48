"""Odds conversion utilities."""

from typing import Tuple


def american_to_decimal(american_odds: int) -> float:
    """Convert American odds to decimal odds."""
    if american_odds > 0:
        return (american_odds / 100) + 1
    else:
        return (100 / abs(american_odds)) + 1


def implied_probability(american_odds: int) -> float:
    """Calculate implied probability (vig included) from American odds.

    -150 -> 0.6, +200 -> 0.333...
    """
    return 1 / american_to_decimal(american_odds)


def devig_moneyline(home_odds: int, away_odds: int) -> Tuple[float, float]:
    """
    Remove the bookmaker margin from a two-way moneyline.

    Returns:
        Tuple of (home_probability, away_probability) summing to 1.0
    """
    home_raw = implied_probability(home_odds)
    away_raw = implied_probability(away_odds)

    total = home_raw + away_raw
    return home_raw / total, away_raw / total
