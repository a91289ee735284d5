"""Configuration module for the game system."""

from .loader import ConfigLoader
from .models import (
    AIConfig,
    GameConfig,
    MatchDefaultsConfig,
    ObservabilityConfig,
    TimingConfig,
    MAX_MOVE_MAX,
    MAX_MOVE_MIN,
    MIN_MOVE,
    POOL_SIZE_MAX,
    POOL_SIZE_MIN,
)

__all__ = [
    "ConfigLoader",
    "AIConfig",
    "GameConfig",
    "MatchDefaultsConfig",
    "ObservabilityConfig",
    "TimingConfig",
    "MAX_MOVE_MAX",
    "MAX_MOVE_MIN",
    "MIN_MOVE",
    "POOL_SIZE_MAX",
    "POOL_SIZE_MIN",
]
