"""Domain entities for The Last Strike.

This module defines the value types shared by every part of the game:
- GamePhase / PlayerTurn / GameMode: the session enums
- MatchConfig: validated, frozen match parameters
- PoolState: the row of items, present or struck
- Snapshot: an immutable capture used by the undo/redo history
- PendingMove / SessionView: what collaborators see while a game runs
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, TypeAdapter, ValidationError, model_validator

from config.models import (
    MAX_MOVE_MAX,
    MAX_MOVE_MIN,
    MIN_MOVE,
    POOL_SIZE_MAX,
    POOL_SIZE_MIN,
)

logger = logging.getLogger(__name__)


class GamePhase(str, Enum):
    CONFIG = "config"
    PLAYING = "playing"
    GAME_OVER = "game_over"


class PlayerTurn(str, Enum):
    PLAYER1 = "player1"
    PLAYER2 = "player2"

    @property
    def other(self) -> "PlayerTurn":
        return PlayerTurn.PLAYER2 if self is PlayerTurn.PLAYER1 else PlayerTurn.PLAYER1


class GameMode(str, Enum):
    PVP = "pvp"
    PVAI = "pvai"

    @classmethod
    def parse(cls, value: Any) -> "GameMode":
        if isinstance(value, GameMode):
            return value
        if isinstance(value, str) and value.strip().lower() == "pvp":
            return cls.PVP
        return cls.PVAI


def clamp_int(value: Any, lower: int, upper: int, field: str) -> int:
    """Coerce ``value`` into ``[lower, upper]``.

    Anything that does not parse as an integer falls back to ``lower``.
    """
    try:
        number = int(value)
    except (TypeError, ValueError, OverflowError):
        logger.warning("Invalid %s %r, using %d", field, value, lower)
        return lower

    clamped = max(lower, min(upper, number))
    if clamped != number:
        logger.warning("%s %d out of range [%d, %d], clamped to %d", field, number, lower, upper, clamped)
    return clamped


_FLAG = TypeAdapter(bool)


def parse_flag(value: Any, field: str) -> bool:
    try:
        return _FLAG.validate_python(value)
    except ValidationError:
        logger.warning("Invalid %s %r, using False", field, value)
        return False


def default_player2_name(mode: GameMode) -> str:
    return "AI" if mode == GameMode.PVAI else "PLAYER 2"


class MatchConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    pool_size: int = 30
    max_move: int = 3
    min_move: int = MIN_MOVE
    mode: GameMode = GameMode.PVAI
    misere: bool = False
    player1_name: str = "PLAYER 1"
    player2_name: str = "AI"

    @model_validator(mode="before")
    @classmethod
    def clamp_params(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data

        data = dict(data)
        mode = GameMode.parse(data.get("mode", GameMode.PVAI))
        data["mode"] = mode
        data["pool_size"] = clamp_int(data.get("pool_size", 30), POOL_SIZE_MIN, POOL_SIZE_MAX, "pool_size")
        data["max_move"] = clamp_int(data.get("max_move", 3), MAX_MOVE_MIN, MAX_MOVE_MAX, "max_move")
        data["min_move"] = MIN_MOVE
        data["misere"] = parse_flag(data.get("misere", False), "misere")

        player1 = str(data.get("player1_name") or "").strip().upper()
        player2 = str(data.get("player2_name") or "").strip().upper()
        data["player1_name"] = player1 or "PLAYER 1"
        data["player2_name"] = player2 or default_player2_name(mode)
        return data

    def to_params(self) -> Dict[str, Any]:
        """Field values without the name defaults derived from the mode."""
        params = self.model_dump(exclude={"min_move"})
        if params["player1_name"] == "PLAYER 1":
            del params["player1_name"]
        if params["player2_name"] == default_player2_name(self.mode):
            del params["player2_name"]
        return params

    @property
    def ai_turn(self) -> Optional[PlayerTurn]:
        return PlayerTurn.PLAYER2 if self.mode == GameMode.PVAI else None

    def is_ai(self, turn: PlayerTurn) -> bool:
        return self.ai_turn is not None and turn == self.ai_turn

    def name_for(self, turn: PlayerTurn) -> str:
        return self.player1_name if turn == PlayerTurn.PLAYER1 else self.player2_name


class PoolState(BaseModel):
    model_config = ConfigDict(frozen=True)

    items: Tuple[bool, ...]

    @classmethod
    def full(cls, size: int) -> "PoolState":
        return cls(items=(True,) * size)

    @property
    def size(self) -> int:
        return len(self.items)

    @property
    def remaining_count(self) -> int:
        return sum(1 for present in self.items if present)

    def present_indices(self) -> List[int]:
        return [i for i, present in enumerate(self.items) if present]

    def is_present(self, index: int) -> bool:
        return 0 <= index < len(self.items) and self.items[index]


class Snapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    pool: PoolState
    remaining_count: int
    current_turn: PlayerTurn

    @model_validator(mode="after")
    def check_remaining(self) -> "Snapshot":
        if self.remaining_count != self.pool.remaining_count:
            raise ValueError(
                f"remaining_count {self.remaining_count} does not match pool "
                f"({self.pool.remaining_count} present)"
            )
        return self

    @classmethod
    def capture(cls, pool: PoolState, current_turn: PlayerTurn) -> "Snapshot":
        return cls(pool=pool, remaining_count=pool.remaining_count, current_turn=current_turn)


class PendingMove(BaseModel):
    model_config = ConfigDict(frozen=True)

    mover: PlayerTurn
    count: int
    indices: Tuple[int, ...]
    automated: bool = False


class SessionView(BaseModel):
    model_config = ConfigDict(frozen=True)

    phase: GamePhase
    config: MatchConfig
    current_turn: PlayerTurn = PlayerTurn.PLAYER1
    pool: Optional[PoolState] = None
    locked_for_animation: bool = False
    pending_move: Optional[PendingMove] = None
    winner: Optional[PlayerTurn] = None
    can_undo: bool = False
    can_redo: bool = False
    history_length: int = 0
    history_cursor: int = 0

    @property
    def remaining_count(self) -> int:
        return self.pool.remaining_count if self.pool is not None else 0

    @property
    def current_name(self) -> str:
        return self.config.name_for(self.current_turn)

    @property
    def winner_name(self) -> Optional[str]:
        return self.config.name_for(self.winner) if self.winner is not None else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "phase": self.phase.value,
            "mode": self.config.mode.value,
            "misere": self.config.misere,
            "pool_size": self.config.pool_size,
            "max_move": self.config.max_move,
            "remaining": self.remaining_count,
            "current_turn": self.current_turn.value,
            "current_name": self.current_name,
            "locked": self.locked_for_animation,
            "winner": self.winner.value if self.winner else None,
            "winner_name": self.winner_name,
            "can_undo": self.can_undo,
            "can_redo": self.can_redo,
            "history": {"length": self.history_length, "cursor": self.history_cursor},
        }
