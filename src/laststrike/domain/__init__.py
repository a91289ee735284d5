"""Domain models for the game system."""

from laststrike.domain.entities import (
    GameMode,
    GamePhase,
    MatchConfig,
    PendingMove,
    PlayerTurn,
    PoolState,
    SessionView,
    Snapshot,
)

__all__ = [
    "GameMode",
    "GamePhase",
    "MatchConfig",
    "PendingMove",
    "PlayerTurn",
    "PoolState",
    "SessionView",
    "Snapshot",
]
