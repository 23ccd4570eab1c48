"""Outcome predictor: cached multi-source NFL data loading and ensemble game forecasts."""

__version__ = "0.1.0"
