"""Game session state machine.

The session owns phase, turn and pool, and is the only object the
presentation layer talks to. Every intent either mutates state and emits
notifications, or is rejected without touching anything.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from functools import partial
from typing import Any, Callable, Dict, Optional

from config.models import TimingConfig
from laststrike.domain.entities import (
    GamePhase,
    MatchConfig,
    PendingMove,
    PlayerTurn,
    PoolState,
    SessionView,
    Snapshot,
)
from laststrike.errors import InvalidMoveSize
from laststrike.events import SessionListener
from laststrike.history import HistoryManager
from laststrike.moves import MoveEngine
from laststrike.scheduler import ManualScheduler, Scheduler
from laststrike.strategy import AIStrategy, RandomSource

logger = logging.getLogger(__name__)

# Game event logger, separate so it can be silenced on its own
game_logger = logging.getLogger("laststrike.game")


class RejectReason(str, Enum):
    WRONG_PHASE = "wrong_phase"
    LOCKED = "locked"
    NOT_YOUR_TURN = "not_your_turn"
    INVALID_MOVE_SIZE = "invalid_move_size"
    HISTORY_BOUNDARY = "history_boundary"
    NO_PENDING_MOVE = "no_pending_move"
    REENTRANT = "reentrant"


@dataclass
class IntentResult:
    accepted: bool
    reason: Optional[RejectReason] = None
    message: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, message: str = "", **metadata: Any) -> "IntentResult":
        return cls(accepted=True, message=message, metadata=metadata)

    @classmethod
    def rejected(cls, reason: RejectReason, message: str = "") -> "IntentResult":
        return cls(accepted=False, reason=reason, message=message)

    def __bool__(self) -> bool:
        return self.accepted


class GameSession:
    def __init__(
        self,
        config: Optional[MatchConfig] = None,
        timing: Optional[TimingConfig] = None,
        scheduler: Optional[Scheduler] = None,
        listener: Optional[SessionListener] = None,
        rng: Optional[RandomSource] = None,
        log_events: bool = True,
    ):
        self._params: Dict[str, Any] = config.to_params() if config is not None else {}
        self._config = MatchConfig(**self._params)
        self._timing = timing or TimingConfig()
        self._scheduler: Scheduler = scheduler if scheduler is not None else ManualScheduler()
        self._listener = listener or SessionListener()
        self._rng = rng
        self._log_events = log_events

        self._move_engine = MoveEngine(self._config)
        self._strategy = AIStrategy(self._config, rng)
        self._history = HistoryManager()

        self._phase = GamePhase.CONFIG
        self._current_turn = PlayerTurn.PLAYER1
        self._pool: Optional[PoolState] = None
        self._locked = False
        self._pending: Optional[PendingMove] = None
        self._winner: Optional[PlayerTurn] = None
        self._epoch = 0
        self._move_seq = 0
        self._dispatching = False

    # -- read-only state ------------------------------------------------

    @property
    def config(self) -> MatchConfig:
        return self._config

    @property
    def timing(self) -> TimingConfig:
        return self._timing

    @property
    def scheduler(self) -> Scheduler:
        return self._scheduler

    @property
    def phase(self) -> GamePhase:
        return self._phase

    @property
    def current_turn(self) -> PlayerTurn:
        return self._current_turn

    @property
    def pool(self) -> Optional[PoolState]:
        return self._pool

    @property
    def remaining_count(self) -> int:
        return self._pool.remaining_count if self._pool is not None else 0

    @property
    def locked_for_animation(self) -> bool:
        return self._locked

    @property
    def pending_move(self) -> Optional[PendingMove]:
        return self._pending

    @property
    def winner(self) -> Optional[PlayerTurn]:
        return self._winner

    @property
    def history(self) -> HistoryManager:
        return self._history

    @property
    def is_ai_turn(self) -> bool:
        return self._config.is_ai(self._current_turn)

    @property
    def can_undo(self) -> bool:
        return self._history_guard_open() and self._history.can_undo(self._config.mode)

    @property
    def can_redo(self) -> bool:
        return self._history_guard_open() and self._history.can_redo(self._config.mode)

    def view(self) -> SessionView:
        return SessionView(
            phase=self._phase,
            config=self._config,
            current_turn=self._current_turn,
            pool=self._pool,
            locked_for_animation=self._locked,
            pending_move=self._pending,
            winner=self._winner,
            can_undo=self.can_undo,
            can_redo=self.can_redo,
            history_length=len(self._history),
            history_cursor=self._history.cursor,
        )

    # -- lifecycle ------------------------------------------------------

    def configure(self, **params: Any) -> IntentResult:
        if self._dispatching:
            return self._reject_reentrant("configure")
        if self._phase != GamePhase.CONFIG:
            return IntentResult.rejected(RejectReason.WRONG_PHASE, "Configuration is frozen while a game exists")

        unknown = set(params) - set(MatchConfig.model_fields)
        if unknown:
            logger.warning("Ignoring unknown configuration keys: %s", ", ".join(sorted(unknown)))
        for key in unknown:
            params.pop(key)

        self._params.update(params)
        self._set_config(MatchConfig(**self._params))
        logger.info(
            "Configured pool=%d max_move=%d mode=%s misere=%s",
            self._config.pool_size,
            self._config.max_move,
            self._config.mode.value,
            self._config.misere,
        )
        self._notify_state()
        return IntentResult.ok("Configured", config=self._config.model_dump(mode="json"))

    def start(self) -> IntentResult:
        if self._dispatching:
            return self._reject_reentrant("start")
        if self._phase != GamePhase.CONFIG:
            return IntentResult.rejected(RejectReason.WRONG_PHASE, f"Cannot start from phase {self._phase.value}")

        self._set_config(MatchConfig(**self._params))
        self._new_game()
        self._event(
            "Game started: %d items, take 1-%d, %s%s",
            self._config.pool_size,
            self._config.max_move,
            self._config.mode.value.upper(),
            ", misere" if self._config.misere else "",
        )
        self._notify_history()
        self._notify_state()
        return IntentResult.ok("Game started")

    def reset(self) -> IntentResult:
        if self._dispatching:
            return self._reject_reentrant("reset")
        if self._phase != GamePhase.PLAYING:
            return IntentResult.rejected(RejectReason.WRONG_PHASE, f"Cannot reset from phase {self._phase.value}")

        self._new_game()
        self._event("Game reset")
        self._notify_history()
        self._notify_state()
        return IntentResult.ok("Game reset")

    def go_home(self) -> IntentResult:
        if self._dispatching:
            return self._reject_reentrant("go_home")
        if self._phase == GamePhase.CONFIG:
            return IntentResult.rejected(RejectReason.WRONG_PHASE, "Already in configuration")

        abandoned = self._phase == GamePhase.PLAYING
        self._epoch += 1
        self._phase = GamePhase.CONFIG
        self._current_turn = PlayerTurn.PLAYER1
        self._pool = None
        self._locked = False
        self._pending = None
        self._winner = None
        self._history.clear()
        self._event("Returned to configuration%s", " (game abandoned)" if abandoned else "")
        self._notify_history()
        self._notify_state()
        return IntentResult.ok("Back to configuration")

    # -- moves ----------------------------------------------------------

    def preview_move(self, index: int) -> Optional[int]:
        if self._human_guard() is not None:
            return None
        assert self._pool is not None
        return self._move_engine.preview(self._pool, index)

    def select_item(self, index: int) -> IntentResult:
        rejection = self._human_guard()
        if rejection is not None:
            return rejection
        count = self.preview_move(index)
        if count is None:
            return IntentResult.rejected(
                RejectReason.INVALID_MOVE_SIZE,
                f"Item {index} is beyond the reach of one move",
            )
        return self.request_move(count)

    def request_move(self, count: int) -> IntentResult:
        result = self.begin_move(count)
        if result.accepted:
            self._schedule(self._timing.settle_delay(count), partial(self._complete_scheduled, self._move_seq))
        return result

    def begin_move(self, count: int) -> IntentResult:
        rejection = self._human_guard()
        if rejection is not None:
            return rejection
        return self._begin(count, automated=False)

    def complete_move(self) -> IntentResult:
        if self._dispatching:
            return self._reject_reentrant("complete_move")
        if self._pending is None or self._pool is None:
            return IntentResult.rejected(RejectReason.NO_PENDING_MOVE, "No move is waiting to settle")
        return self._commit()

    # -- history --------------------------------------------------------

    def undo(self) -> IntentResult:
        rejection = self._human_guard()
        if rejection is not None:
            return rejection

        snapshot = self._history.undo(self._config.mode)
        if snapshot is None:
            return IntentResult.rejected(RejectReason.HISTORY_BOUNDARY, "Nothing to undo")

        self._restore(snapshot)
        self._event("Undo to step %d (%d remaining)", self._history.cursor, snapshot.remaining_count)
        self._notify_history()
        self._notify_state()
        return IntentResult.ok("Undone", cursor=self._history.cursor)

    def redo(self) -> IntentResult:
        rejection = self._human_guard()
        if rejection is not None:
            return rejection

        snapshot = self._history.redo(self._config.mode)
        if snapshot is None:
            return IntentResult.rejected(RejectReason.HISTORY_BOUNDARY, "Nothing to redo")

        self._restore(snapshot)
        self._event("Redo to step %d (%d remaining)", self._history.cursor, snapshot.remaining_count)
        self._notify_history()
        self._notify_state()
        return IntentResult.ok("Redone", cursor=self._history.cursor)

    # -- internals ------------------------------------------------------

    def _set_config(self, config: MatchConfig) -> None:
        self._config = config
        self._move_engine = MoveEngine(config)
        self._strategy = AIStrategy(config, self._rng if self._rng is not None else self._strategy.rng)

    def _new_game(self) -> None:
        self._epoch += 1
        self._phase = GamePhase.PLAYING
        self._current_turn = PlayerTurn.PLAYER1
        self._pool = PoolState.full(self._config.pool_size)
        self._locked = False
        self._pending = None
        self._winner = None
        self._history.reset(Snapshot.capture(self._pool, self._current_turn))

    def _history_guard_open(self) -> bool:
        return (
            self._phase == GamePhase.PLAYING
            and not self._locked
            and not self.is_ai_turn
        )

    def _human_guard(self) -> Optional[IntentResult]:
        if self._dispatching:
            return self._reject_reentrant("intent")
        if self._phase != GamePhase.PLAYING:
            return IntentResult.rejected(RejectReason.WRONG_PHASE, "No game in progress")
        if self._locked:
            return IntentResult.rejected(RejectReason.LOCKED, "Previous move is still settling")
        if self.is_ai_turn:
            return IntentResult.rejected(RejectReason.NOT_YOUR_TURN, "Waiting for the AI")
        return None

    def _reject_reentrant(self, intent: str) -> IntentResult:
        logger.warning("Rejected %s issued from inside a notification", intent)
        return IntentResult.rejected(RejectReason.REENTRANT, "Listeners must not call back into the session")

    def _begin(self, count: int, automated: bool) -> IntentResult:
        assert self._pool is not None
        mover = self._current_turn
        try:
            self._move_engine.validate(self._pool, count, mover)
        except InvalidMoveSize as e:
            return IntentResult.rejected(RejectReason.INVALID_MOVE_SIZE, str(e))

        indices = self._move_engine.select_indices(self._pool, count)
        self._move_seq += 1
        self._pending = PendingMove(
            mover=mover,
            count=count,
            indices=tuple(indices),
            automated=automated,
        )
        self._locked = True
        logger.debug("Move started: %s takes %d", mover.value, count)
        self._notify(lambda listener: listener.on_move_started(self._pending))
        self._notify_history()
        self._notify_state()
        return IntentResult.ok(f"{self._config.name_for(mover)} takes {count}", pending=self._pending)

    def _commit(self) -> IntentResult:
        assert self._pending is not None and self._pool is not None
        pending = self._pending
        mover = pending.mover

        pool = self._move_engine.apply(self._pool, pending.indices)
        self._pool = pool
        self._locked = False
        self._pending = None

        if self._move_engine.is_terminal(pool):
            self._winner = self._move_engine.resolve_winner(mover)
            self._phase = GamePhase.GAME_OVER
            self._history.commit(Snapshot.capture(pool, mover))
        else:
            self._current_turn = mover.other
            self._history.commit(Snapshot.capture(pool, self._current_turn))

        self._event(
            "%s took %d, %d remaining",
            self._config.name_for(mover),
            pending.count,
            pool.remaining_count,
        )
        self._notify(lambda listener: listener.on_move_committed(mover, pending.count))

        if self._winner is not None:
            winner = self._winner
            self._event(
                "Game over: %s wins (%s)",
                self._config.name_for(winner),
                "last strike loses" if self._config.misere else "last strike wins",
            )
            self._notify(lambda listener: listener.on_game_over(winner))

        self._notify_history()
        self._notify_state()
        self._maybe_schedule_ai()
        return IntentResult.ok(
            f"{self._config.name_for(mover)} took {pending.count}",
            remaining=pool.remaining_count,
            winner=self._winner,
        )

    def _restore(self, snapshot: Snapshot) -> None:
        self._pool = snapshot.pool
        self._current_turn = snapshot.current_turn
        self._maybe_schedule_ai()

    def _maybe_schedule_ai(self) -> None:
        if self._phase == GamePhase.PLAYING and self.is_ai_turn:
            self._schedule(self._timing.ai_think_delay, self._run_ai_turn)

    def _run_ai_turn(self) -> None:
        if self._phase != GamePhase.PLAYING or self._locked or not self.is_ai_turn:
            logger.debug("Skipping AI turn (phase=%s, locked=%s)", self._phase.value, self._locked)
            return
        assert self._pool is not None

        count = self._strategy.compute_move(self._pool.remaining_count)
        result = self._begin(count, automated=True)
        if result.accepted:
            delay = self._timing.ai_strike_delay + self._timing.settle_delay(count)
            self._schedule(delay, partial(self._complete_scheduled, self._move_seq))
        else:
            logger.error("AI produced an invalid move: %s", result.message)

    def _complete_scheduled(self, move_seq: int) -> None:
        if self._pending is not None and move_seq == self._move_seq:
            self.complete_move()

    def _schedule(self, delay: float, action: Callable[[], None]) -> None:
        epoch = self._epoch

        def fire() -> None:
            if epoch != self._epoch:
                logger.debug("Dropping timer from an earlier game")
                return
            action()

        self._scheduler.call_later(delay, fire)

    def _event(self, message: str, *args: Any) -> None:
        if self._log_events:
            game_logger.info(message, *args)

    def _notify(self, send: Callable[[SessionListener], None]) -> None:
        self._dispatching = True
        try:
            send(self._listener)
        except Exception:
            logger.exception("Session listener failed")
        finally:
            self._dispatching = False

    def _notify_state(self) -> None:
        view = self.view()
        self._notify(lambda listener: listener.on_state_changed(view))

    def _notify_history(self) -> None:
        can_undo, can_redo = self.can_undo, self.can_redo
        self._notify(lambda listener: listener.on_history_changed(can_undo, can_redo))
