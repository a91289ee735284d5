"""Tests for the GameSession state machine."""

from unittest.mock import MagicMock

import pytest

from laststrike.domain.entities import GameMode, GamePhase, MatchConfig, PlayerTurn
from laststrike.events import ListenerGroup, SessionListener
from laststrike.scheduler import ManualScheduler
from laststrike.session import GameSession, IntentResult, RejectReason


class LowRandom:
    def __init__(self):
        self.calls = []

    def randint(self, a, b):
        self.calls.append((a, b))
        return a


class RecordingListener(SessionListener):
    def __init__(self):
        self.events = []
        self.views = []

    def on_state_changed(self, view):
        self.views.append(view)
        self.events.append(("state", view.phase))

    def on_move_started(self, pending):
        self.events.append(("started", pending.mover, pending.count))

    def on_move_committed(self, who, count):
        self.events.append(("committed", who, count))

    def on_game_over(self, winner):
        self.events.append(("game_over", winner))

    def on_history_changed(self, can_undo, can_redo):
        self.events.append(("history", can_undo, can_redo))


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def listener():
    return RecordingListener()


@pytest.fixture
def rng():
    return LowRandom()


@pytest.fixture
def make_session(scheduler, listener, rng):
    def _make(start: bool = True, **params) -> GameSession:
        session = GameSession(scheduler=scheduler, listener=listener, rng=rng)
        session.configure(**params)
        if start:
            session.start()
        return session
    return _make


def play(session: GameSession, scheduler: ManualScheduler, count: int) -> IntentResult:
    result = session.request_move(count)
    scheduler.run_all()
    return result


def state_of(session: GameSession):
    return (
        session.phase,
        session.current_turn,
        session.pool,
        session.history.snapshots,
        session.history.cursor,
    )


class TestLifecycle:
    def test_initial_phase_is_config(self, make_session):
        session = make_session(start=False)
        assert session.phase == GamePhase.CONFIG
        assert session.pool is None
        assert len(session.history) == 0

    def test_configure_clamps(self, make_session):
        session = make_session(start=False, pool_size=500, max_move=1)
        assert session.config.pool_size == 100
        assert session.config.max_move == 2

    def test_configure_ignores_unknown_keys(self, make_session):
        session = make_session(start=False, pool_size=21, colour="red")
        assert session.config.pool_size == 21

    def test_initial_config_name_defaults_follow_mode(self, scheduler):
        session = GameSession(config=MatchConfig(pool_size=21), scheduler=scheduler)
        assert session.config.player2_name == "AI"
        session.configure(mode="pvp")
        assert session.config.player2_name == "PLAYER 2"
        assert session.config.pool_size == 21

    def test_initial_config_keeps_chosen_names(self, scheduler):
        config = MatchConfig(mode="pvai", player2_name="hal")
        session = GameSession(config=config, scheduler=scheduler)
        session.configure(mode="pvp")
        assert session.config.player2_name == "HAL"

    def test_configure_keeps_earlier_params(self, make_session):
        session = make_session(start=False, pool_size=21)
        session.configure(mode="pvp")
        assert session.config.pool_size == 21
        assert session.config.mode == GameMode.PVP
        assert session.config.player2_name == "PLAYER 2"

    def test_start(self, make_session):
        session = make_session(pool_size=21, max_move=3)
        assert session.phase == GamePhase.PLAYING
        assert session.current_turn == PlayerTurn.PLAYER1
        assert session.remaining_count == 21
        assert len(session.history) == 1
        assert session.history.cursor == 0
        assert not session.locked_for_animation

    def test_start_twice_rejected(self, make_session):
        session = make_session()
        result = session.start()
        assert not result.accepted
        assert result.reason == RejectReason.WRONG_PHASE

    def test_configure_frozen_during_play(self, make_session):
        session = make_session(pool_size=21)
        result = session.configure(pool_size=40)
        assert result.reason == RejectReason.WRONG_PHASE
        assert session.config.pool_size == 21

    def test_reset(self, make_session, scheduler):
        session = make_session(mode="pvp")
        play(session, scheduler, 2)
        result = session.reset()
        assert result.accepted
        assert session.phase == GamePhase.PLAYING
        assert session.remaining_count == 30
        assert session.current_turn == PlayerTurn.PLAYER1
        assert len(session.history) == 1

    def test_reset_outside_play_rejected(self, make_session):
        session = make_session(start=False)
        assert session.reset().reason == RejectReason.WRONG_PHASE

    def test_go_home_from_playing(self, make_session):
        session = make_session()
        assert session.go_home().accepted
        assert session.phase == GamePhase.CONFIG
        assert session.pool is None
        assert len(session.history) == 0

    def test_go_home_from_config_rejected(self, make_session):
        session = make_session(start=False)
        assert session.go_home().reason == RejectReason.WRONG_PHASE

    def test_reconfigure_after_go_home(self, make_session):
        session = make_session(pool_size=21)
        session.go_home()
        assert session.configure(pool_size=40).accepted
        session.start()
        assert session.remaining_count == 40


class TestMoves:
    def test_request_move_locks_until_settled(self, make_session, scheduler):
        session = make_session(mode="pvp")
        result = session.request_move(2)
        assert result.accepted
        assert session.locked_for_animation
        assert session.pending_move.count == 2
        assert session.pending_move.indices == (0, 1)
        assert session.remaining_count == 30

        scheduler.run_all()
        assert not session.locked_for_animation
        assert session.pending_move is None
        assert session.remaining_count == 28
        assert session.current_turn == PlayerTurn.PLAYER2
        assert len(session.history) == 2

    def test_intents_rejected_while_locked(self, make_session):
        session = make_session(mode="pvp")
        session.request_move(1)
        assert session.request_move(1).reason == RejectReason.LOCKED
        assert session.undo().reason == RejectReason.LOCKED
        assert session.redo().reason == RejectReason.LOCKED
        assert session.preview_move(0) is None
        assert session.select_item(0).reason == RejectReason.LOCKED
        assert not session.can_undo

    def test_move_too_large_is_noop(self, make_session, listener):
        session = make_session(mode="pvp", max_move=3)
        before = len(listener.events)
        result = session.request_move(4)
        assert result.reason == RejectReason.INVALID_MOVE_SIZE
        assert len(listener.events) == before
        assert len(session.history) == 1
        assert not session.locked_for_animation

    def test_move_of_zero_is_noop(self, make_session):
        session = make_session(mode="pvp")
        assert session.request_move(0).reason == RejectReason.INVALID_MOVE_SIZE

    def test_move_capped_by_remaining(self, make_session, scheduler):
        session = make_session(mode="pvp", pool_size=5, max_move=3)
        play(session, scheduler, 3)
        assert session.request_move(3).reason == RejectReason.INVALID_MOVE_SIZE
        assert session.request_move(2).accepted

    def test_move_outside_play_rejected(self, make_session):
        session = make_session(start=False)
        assert session.request_move(1).reason == RejectReason.WRONG_PHASE

    def test_two_phase_protocol(self, make_session, scheduler):
        session = make_session(mode="pvp")
        begun = session.begin_move(3)
        assert begun.accepted
        assert begun.metadata["pending"].count == 3
        assert scheduler.pending == 0
        assert session.locked_for_animation

        completed = session.complete_move()
        assert completed.accepted
        assert completed.metadata["remaining"] == 27
        assert not session.locked_for_animation

    def test_complete_without_pending(self, make_session):
        session = make_session(mode="pvp")
        assert session.complete_move().reason == RejectReason.NO_PENDING_MOVE

    def test_stale_settle_timer_does_not_complete_next_move(self, make_session, scheduler):
        session = make_session(mode="pvp")
        session.request_move(1)
        session.complete_move()
        session.request_move(2)
        assert scheduler.pending == 2

        scheduler.run_next()
        assert session.locked_for_animation
        assert session.remaining_count == 29

        scheduler.run_next()
        assert not session.locked_for_animation
        assert session.remaining_count == 27


class TestGameOver:
    def test_normal_play_last_mover_wins(self, make_session, scheduler, listener):
        session = make_session(mode="pvp", pool_size=5, max_move=3)
        play(session, scheduler, 3)
        play(session, scheduler, 2)
        assert session.phase == GamePhase.GAME_OVER
        assert session.winner == PlayerTurn.PLAYER2
        assert ("game_over", PlayerTurn.PLAYER2) in listener.events

    def test_misere_last_mover_loses(self, make_session, scheduler):
        session = make_session(mode="pvp", pool_size=5, max_move=3, misere=True)
        play(session, scheduler, 3)
        play(session, scheduler, 2)
        assert session.winner == PlayerTurn.PLAYER1

    def test_terminal_snapshot_keeps_last_mover(self, make_session, scheduler):
        session = make_session(mode="pvp", pool_size=5, max_move=3)
        play(session, scheduler, 3)
        play(session, scheduler, 2)
        final = session.history.current
        assert final.remaining_count == 0
        assert final.current_turn == PlayerTurn.PLAYER2
        assert session.current_turn == PlayerTurn.PLAYER2

    def test_no_moves_or_history_after_game_over(self, make_session, scheduler):
        session = make_session(mode="pvp", pool_size=5, max_move=3)
        play(session, scheduler, 3)
        play(session, scheduler, 2)
        assert session.request_move(1).reason == RejectReason.WRONG_PHASE
        assert session.undo().reason == RejectReason.WRONG_PHASE
        assert session.reset().reason == RejectReason.WRONG_PHASE
        assert session.go_home().accepted

    def test_ai_forced_to_take_last_item_in_misere(self, make_session, scheduler):
        session = make_session(mode="pvai", pool_size=5, max_move=4, misere=True)
        play(session, scheduler, 4)
        assert session.phase == GamePhase.GAME_OVER
        assert session.remaining_count == 0
        assert session.winner == PlayerTurn.PLAYER1


class TestAITurns:
    def test_ai_replies_after_human_move(self, make_session, scheduler):
        session = make_session(mode="pvai", pool_size=21, max_move=3)
        session.request_move(2)
        scheduler.run_next()
        assert session.current_turn == PlayerTurn.PLAYER2
        assert session.is_ai_turn
        assert scheduler.pending == 1

        scheduler.run_all()
        assert session.current_turn == PlayerTurn.PLAYER1
        assert session.remaining_count == 16

    def test_ai_takes_forcing_move(self, make_session, scheduler):
        # 21 - 2 = 19 leaves 19 % 4 == 3 for the AI
        session = make_session(mode="pvai", pool_size=21, max_move=3)
        play(session, scheduler, 2)
        assert session.remaining_count == 16
        assert session.remaining_count % 4 == 0

    def test_ai_stalls_in_losing_position(self, make_session, scheduler, rng):
        session = make_session(mode="pvai", pool_size=21, max_move=3)
        play(session, scheduler, 1)
        assert rng.calls == [(1, 3)]
        assert session.remaining_count == 19

    def test_human_intents_rejected_on_ai_turn(self, make_session, scheduler):
        session = make_session(mode="pvai")
        session.request_move(1)
        scheduler.run_next()
        assert session.request_move(1).reason == RejectReason.NOT_YOUR_TURN
        assert session.undo().reason == RejectReason.NOT_YOUR_TURN
        assert session.redo().reason == RejectReason.NOT_YOUR_TURN
        assert session.preview_move(0) is None
        assert not session.can_undo

    def test_ai_pending_move_is_automated(self, make_session, scheduler, listener):
        session = make_session(mode="pvai", pool_size=21, max_move=3)
        session.request_move(2)
        scheduler.run_next()
        scheduler.run_next()
        assert session.pending_move.automated
        assert session.pending_move.mover == PlayerTurn.PLAYER2
        assert ("started", PlayerTurn.PLAYER2, 3) in listener.events

    def test_reset_discards_scheduled_ai_turn(self, make_session, scheduler):
        session = make_session(mode="pvai")
        session.request_move(2)
        scheduler.run_next()
        session.reset()
        scheduler.run_all()
        assert session.remaining_count == 30
        assert session.current_turn == PlayerTurn.PLAYER1
        assert len(session.history) == 1

    def test_go_home_discards_pending_settle(self, make_session, scheduler):
        session = make_session(mode="pvai")
        session.request_move(2)
        session.go_home()
        scheduler.run_all()
        assert session.phase == GamePhase.CONFIG
        assert session.pool is None

    def test_ai_game_runs_to_completion(self, make_session, scheduler):
        session = make_session(mode="pvai", pool_size=30, max_move=3)
        while session.phase == GamePhase.PLAYING:
            play(session, scheduler, 1)
        assert session.winner == PlayerTurn.PLAYER2


class TestUndoRedo:
    def test_undo_at_first_snapshot_is_noop(self, make_session, listener):
        session = make_session(mode="pvp")
        before = list(listener.events)
        result = session.undo()
        assert result.reason == RejectReason.HISTORY_BOUNDARY
        assert listener.events == before

    def test_redo_at_end_is_noop(self, make_session, scheduler):
        session = make_session(mode="pvp")
        play(session, scheduler, 1)
        assert session.redo().reason == RejectReason.HISTORY_BOUNDARY

    def test_pvp_undo_one_step(self, make_session, scheduler):
        session = make_session(mode="pvp")
        play(session, scheduler, 2)
        play(session, scheduler, 3)
        assert session.undo().accepted
        assert session.remaining_count == 28
        assert session.current_turn == PlayerTurn.PLAYER2

    def test_scenario_undo_skips_ai_reply(self, make_session, scheduler):
        session = make_session(mode="pvai", pool_size=30, max_move=3)
        play(session, scheduler, 2)
        assert session.current_turn == PlayerTurn.PLAYER1
        assert session.remaining_count < 28
        assert len(session.history) == 3

        assert session.undo().accepted
        assert session.remaining_count == 30
        assert session.current_turn == PlayerTurn.PLAYER1
        assert session.history.cursor == 0

    def test_pvai_redo_restores_pair(self, make_session, scheduler):
        session = make_session(mode="pvai", pool_size=30, max_move=3)
        play(session, scheduler, 2)
        after_pair = state_of(session)
        session.undo()
        assert session.redo().accepted
        assert state_of(session) == after_pair

    def test_move_after_undo_prunes_redo(self, make_session, scheduler):
        session = make_session(mode="pvp")
        play(session, scheduler, 1)
        play(session, scheduler, 1)
        session.undo()
        play(session, scheduler, 3)
        assert len(session.history) == 3
        assert session.remaining_count == 26
        assert not session.can_redo
        assert session.redo().reason == RejectReason.HISTORY_BOUNDARY

    @pytest.mark.parametrize("mode", ["pvp", "pvai"])
    def test_undo_then_redo_round_trip(self, make_session, scheduler, mode):
        session = make_session(mode=mode, pool_size=40, max_move=3)
        for count in (1, 2, 3, 1, 2):
            play(session, scheduler, count)
        assert session.phase == GamePhase.PLAYING

        step = 2 if mode == "pvai" else 1
        total_steps = session.history.cursor // step
        expected = state_of(session)
        for k in range(1, total_steps + 1):
            for _ in range(k):
                assert session.undo().accepted
            for _ in range(k):
                assert session.redo().accepted
            assert state_of(session) == expected

    def test_history_notifications(self, make_session, scheduler, listener):
        session = make_session(mode="pvp")
        play(session, scheduler, 1)
        assert ("history", True, False) in listener.events
        session.undo()
        assert listener.events[-2] == ("history", False, True)


class TestPreviewAndSelect:
    def test_preview(self, make_session):
        session = make_session(mode="pvp", max_move=3)
        assert session.preview_move(0) == 1
        assert session.preview_move(2) == 3
        assert session.preview_move(3) is None

    def test_preview_does_not_mutate(self, make_session, listener):
        session = make_session(mode="pvp")
        before = (state_of(session), len(listener.events))
        session.preview_move(1)
        assert (state_of(session), len(listener.events)) == before

    def test_preview_after_strike(self, make_session, scheduler):
        session = make_session(mode="pvp", max_move=3)
        play(session, scheduler, 2)
        assert session.preview_move(0) is None
        assert session.preview_move(2) == 1
        assert session.preview_move(4) == 3
        assert session.preview_move(5) is None

    def test_select_item(self, make_session, scheduler):
        session = make_session(mode="pvp", max_move=3)
        assert session.select_item(2).accepted
        scheduler.run_all()
        assert session.remaining_count == 27

    def test_select_item_out_of_reach(self, make_session):
        session = make_session(mode="pvp", max_move=3)
        assert session.select_item(10).reason == RejectReason.INVALID_MOVE_SIZE

    def test_non_integer_index(self, make_session, listener):
        session = make_session(mode="pvp", max_move=3)
        before = (state_of(session), len(listener.events))
        assert session.preview_move(2.5) is None
        assert session.select_item(2.5).reason == RejectReason.INVALID_MOVE_SIZE
        assert (state_of(session), len(listener.events)) == before


class TestNotifications:
    def test_start_notifies(self, make_session, listener):
        make_session(mode="pvp")
        assert ("history", False, False) in listener.events
        assert listener.views[-1].phase == GamePhase.PLAYING
        assert listener.views[-1].remaining_count == 30

    def test_commit_order(self, make_session, scheduler, listener):
        session = make_session(mode="pvp")
        listener.events.clear()
        play(session, scheduler, 2)
        kinds = [event[0] for event in listener.events]
        assert kinds == ["started", "history", "state", "committed", "history", "state"]
        assert ("committed", PlayerTurn.PLAYER1, 2) in listener.events

    def test_reentrant_intent_rejected(self, scheduler):
        results = []

        class Meddler(SessionListener):
            def __init__(self):
                self.session = None

            def on_state_changed(self, view):
                if self.session is not None:
                    results.append(self.session.reset())

        meddler = Meddler()
        session = GameSession(config=MatchConfig(mode="pvp"), scheduler=scheduler, listener=meddler)
        meddler.session = session
        session.start()
        assert results
        assert all(r.reason == RejectReason.REENTRANT for r in results)
        assert session.phase == GamePhase.PLAYING

    def test_listener_failure_does_not_break_session(self, scheduler):
        broken = MagicMock(spec=SessionListener)
        broken.on_state_changed.side_effect = RuntimeError("renderer crashed")
        healthy = RecordingListener()
        session = GameSession(
            config=MatchConfig(mode="pvp"),
            scheduler=scheduler,
            listener=ListenerGroup([broken, healthy]),
        )
        assert session.start().accepted
        assert healthy.views[-1].phase == GamePhase.PLAYING

    def test_bare_listener_failure_is_contained(self, scheduler):
        broken = MagicMock(spec=SessionListener)
        broken.on_state_changed.side_effect = RuntimeError("boom")
        session = GameSession(config=MatchConfig(mode="pvp"), scheduler=scheduler, listener=broken)
        assert session.start().accepted
        assert session.phase == GamePhase.PLAYING

    def test_view_reflects_session(self, make_session, scheduler):
        session = make_session(mode="pvp")
        play(session, scheduler, 1)
        view = session.view()
        assert view.remaining_count == 29
        assert view.current_turn == PlayerTurn.PLAYER2
        assert view.can_undo
        assert view.history_length == 2
        assert view.history_cursor == 1
