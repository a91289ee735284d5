"""The Last Strike: a subtraction game with an optimal automated opponent."""

from laststrike.domain import (
    GameMode,
    GamePhase,
    MatchConfig,
    PendingMove,
    PlayerTurn,
    PoolState,
    SessionView,
    Snapshot,
)
from laststrike.engine import GameEngine
from laststrike.errors import HistoryBoundary, InvalidMoveSize, LastStrikeError
from laststrike.events import ListenerGroup, SessionListener
from laststrike.history import HistoryManager
from laststrike.moves import MoveEngine, resolve_winner
from laststrike.scheduler import AsyncioScheduler, ManualScheduler, Scheduler
from laststrike.session import GameSession, IntentResult, RejectReason
from laststrike.strategy import AIStrategy, RandomSource, compute_move, is_losing_position

__all__ = [
    "GameMode",
    "GamePhase",
    "MatchConfig",
    "PendingMove",
    "PlayerTurn",
    "PoolState",
    "SessionView",
    "Snapshot",
    "GameEngine",
    "HistoryBoundary",
    "InvalidMoveSize",
    "LastStrikeError",
    "ListenerGroup",
    "SessionListener",
    "HistoryManager",
    "MoveEngine",
    "resolve_winner",
    "AsyncioScheduler",
    "ManualScheduler",
    "Scheduler",
    "GameSession",
    "IntentResult",
    "RejectReason",
    "AIStrategy",
    "RandomSource",
    "compute_move",
    "is_losing_position",
]
