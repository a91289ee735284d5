"""Configuration data models using Pydantic."""

from __future__ import annotations

import os
import re
from typing import Any

from pydantic import BaseModel, Field, field_validator

POOL_SIZE_MIN = 5
POOL_SIZE_MAX = 100
MAX_MOVE_MIN = 2
MAX_MOVE_MAX = 10
MIN_MOVE = 1


def resolve_env_vars(value: str) -> str:
    pattern = r'\$\{(\w+)(?::([^}]*))?\}'

    def replacer(match):
        var_name = match.group(1)
        default_value = match.group(2) or ""
        return os.environ.get(var_name, default_value)

    return re.sub(pattern, replacer, value)


class MatchDefaultsConfig(BaseModel):
    pool_size: int = 30
    max_move: int = 3
    mode: str = "pvai"
    misere: bool = False
    player1_name: str = "PLAYER 1"
    player2_name: str = ""

    @field_validator("player1_name", "player2_name", "mode", mode="before")
    @classmethod
    def resolve_env(cls, v: Any) -> Any:
        if isinstance(v, str):
            return resolve_env_vars(v)
        return v


class TimingConfig(BaseModel):
    ai_think_delay_ms: int = Field(default=500, ge=0)
    ai_strike_delay_ms: int = Field(default=300, ge=0)
    settle_base_ms: int = Field(default=150, ge=0)
    settle_per_item_ms: int = Field(default=30, ge=0)

    def settle_delay(self, count: int) -> float:
        """Seconds a move of ``count`` items takes to settle."""
        return (self.settle_base_ms + self.settle_per_item_ms * count) / 1000.0

    @property
    def ai_think_delay(self) -> float:
        return self.ai_think_delay_ms / 1000.0

    @property
    def ai_strike_delay(self) -> float:
        return self.ai_strike_delay_ms / 1000.0


class AIConfig(BaseModel):
    seed: int | None = None


class ObservabilityConfig(BaseModel):
    log_session_events: bool = True
    log_level: str = "WARNING"


class GameConfig(BaseModel):
    match: MatchDefaultsConfig = Field(default_factory=MatchDefaultsConfig)
    timing: TimingConfig = Field(default_factory=TimingConfig)
    ai: AIConfig = Field(default_factory=AIConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)
