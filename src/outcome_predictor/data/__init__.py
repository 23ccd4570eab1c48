"""Data layer: cache, source clients, loader and repository."""

from .cache import CacheEntry, CacheKey, DataCache
from .loader import DataLoader, DataLoaderBuilder, DataLoaderConfig
from .repository import InMemoryGameRepository
from .sample import SampleDataGenerator

__all__ = [
    "CacheEntry",
    "CacheKey",
    "DataCache",
    "DataLoader",
    "DataLoaderBuilder",
    "DataLoaderConfig",
    "InMemoryGameRepository",
    "SampleDataGenerator",
]
