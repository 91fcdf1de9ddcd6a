"""Configuration loading and validation."""

from .loader import load_config
from .schema import (
    AuthConfig,
    CollectionsConfig,
    FirestoreConfig,
    LoggingConfig,
    MarketConfig,
    StoreConfig,
)

__all__ = [
    # Loader
    "load_config",
    # Root config
    "MarketConfig",
    # Top-level configs
    "StoreConfig",
    "CollectionsConfig",
    "AuthConfig",
    "LoggingConfig",
    # Provider-specific configs
    "FirestoreConfig",
]
