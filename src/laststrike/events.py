"""Notifications the session sends to presentation and effect collaborators."""

from __future__ import annotations

import logging
from typing import Iterable, List

from laststrike.domain.entities import PendingMove, PlayerTurn, SessionView

logger = logging.getLogger(__name__)


class SessionListener:
    """Base collaborator. Override only the notifications you need.

    Listeners must not call back into the session while handling a
    notification; such intents are rejected.
    """

    def on_state_changed(self, view: SessionView) -> None:
        pass

    def on_move_started(self, pending: PendingMove) -> None:
        pass

    def on_move_committed(self, who: PlayerTurn, count: int) -> None:
        pass

    def on_game_over(self, winner: PlayerTurn) -> None:
        pass

    def on_history_changed(self, can_undo: bool, can_redo: bool) -> None:
        pass


class ListenerGroup(SessionListener):
    def __init__(self, listeners: Iterable[SessionListener] = ()):
        self._listeners: List[SessionListener] = list(listeners)

    def add(self, listener: SessionListener) -> None:
        self._listeners.append(listener)

    def remove(self, listener: SessionListener) -> None:
        self._listeners.remove(listener)

    def __len__(self) -> int:
        return len(self._listeners)

    def _dispatch(self, method: str, *args) -> None:
        for listener in self._listeners:
            try:
                getattr(listener, method)(*args)
            except Exception:
                logger.exception("Listener %r failed in %s", listener, method)

    def on_state_changed(self, view: SessionView) -> None:
        self._dispatch("on_state_changed", view)

    def on_move_started(self, pending: PendingMove) -> None:
        self._dispatch("on_move_started", pending)

    def on_move_committed(self, who: PlayerTurn, count: int) -> None:
        self._dispatch("on_move_committed", who, count)

    def on_game_over(self, winner: PlayerTurn) -> None:
        self._dispatch("on_game_over", winner)

    def on_history_changed(self, can_undo: bool, can_redo: bool) -> None:
        self._dispatch("on_history_changed", can_undo, can_redo)
