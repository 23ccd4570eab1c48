"""Command line interface."""

from .predict import main

__all__ = ["main"]
