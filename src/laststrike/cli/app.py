"""CLI Application for The Last Strike.

This module provides the CLI application that owns the GameEngine and
builds sessions wired to a terminal listener.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Iterable, Optional

from config import GameConfig, TimingConfig
from laststrike.domain.entities import PendingMove, PlayerTurn, SessionView
from laststrike.engine import GameEngine
from laststrike.events import SessionListener
from laststrike.scheduler import Scheduler
from laststrike.session import GameSession

logger = logging.getLogger(__name__)

NO_DELAYS = TimingConfig(
    ai_think_delay_ms=0,
    ai_strike_delay_ms=0,
    settle_base_ms=0,
    settle_per_item_ms=0,
)


class ConsoleListener(SessionListener):
    """Narrates committed moves and the result to an output handler."""

    def __init__(self, output_handler: Callable[[str], None]):
        self._output = output_handler
        self._view: Optional[SessionView] = None

    @property
    def last_view(self) -> Optional[SessionView]:
        return self._view

    def _name(self, turn: PlayerTurn) -> str:
        if self._view is None:
            return turn.value
        return self._view.config.name_for(turn)

    def on_state_changed(self, view: SessionView) -> None:
        self._view = view

    def on_move_started(self, pending: PendingMove) -> None:
        if pending.automated:
            self._output(f"{self._name(pending.mover)} strikes {pending.count}...")

    def on_move_committed(self, who: PlayerTurn, count: int) -> None:
        noun = "item" if count == 1 else "items"
        self._output(f"{self._name(who)} struck {count} {noun}.")

    def on_game_over(self, winner: PlayerTurn) -> None:
        self._output(f"*** {self._name(winner)} WINS ***")


class GameCLIApp:
    def __init__(self, config_dir: Optional[Path] = None):
        self._engine = GameEngine(config_dir=config_dir)
        self._active_session: Optional[GameSession] = None

    @property
    def engine(self) -> GameEngine:
        return self._engine

    @property
    def game_config(self) -> GameConfig:
        return self._engine.game_config

    @property
    def active_session(self) -> Optional[GameSession]:
        return self._active_session

    def create_session(
        self,
        scheduler: Optional[Scheduler] = None,
        listeners: Iterable[SessionListener] = (),
        seed: Optional[int] = None,
        fast: bool = False,
        **overrides: Any,
    ) -> GameSession:
        session = self._engine.create_session(
            scheduler=scheduler,
            listeners=listeners,
            rng=self._engine.make_rng(seed),
            timing=NO_DELAYS if fast else None,
            **overrides,
        )
        self._active_session = session
        return session

    def close(self) -> None:
        self._active_session = None
        logger.info("GameCLIApp closed")
