"""CLI command handlers for The Last Strike.

This module provides individual command implementations that can be used
by the CLI entry point or tested independently.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from config.models import MAX_MOVE_MAX, MAX_MOVE_MIN
from laststrike.cli.app import ConsoleListener, GameCLIApp
from laststrike.cli.formatters import OutputFormatter, TextFormatter
from laststrike.domain.entities import GamePhase, clamp_int
from laststrike.scheduler import AsyncioScheduler
from laststrike.session import GameSession, IntentResult
from laststrike.strategy import compute_move, is_losing_position

HELP_TEXT = """Commands:
  <n>          strike n items from the front of the row
  /pick <i>    strike up to item i (1-based position in the row)
  /undo        take back your last turn
  /redo        replay a turn you took back
  /reset       start over with the same settings
  /status      show the session status
  /quit        leave the game"""


@dataclass
class CommandResult:
    success: bool
    message: str
    data: Optional[Dict[str, Any]] = None
    error: Optional[str] = None


def show_config(app: GameCLIApp) -> CommandResult:
    try:
        config = app.game_config
        return CommandResult(
            success=True,
            message="Effective configuration.",
            data=config.model_dump(mode="json"),
        )
    except Exception as e:
        return CommandResult(
            success=False,
            message="Failed to load configuration.",
            error=str(e),
        )


def analyze_position(remaining: int, max_move: int, misere: bool = False) -> CommandResult:
    if remaining < 1:
        return CommandResult(
            success=False,
            message=f"Invalid position: {remaining}",
            error="At least one item must remain.",
        )

    max_move = clamp_int(max_move, MAX_MOVE_MIN, MAX_MOVE_MAX, "max_move")
    losing = is_losing_position(remaining, max_move, misere)
    data: Dict[str, Any] = {
        "remaining": remaining,
        "max_move": max_move,
        "misere": misere,
        "losing_for_mover": losing,
        "winning_move": None,
    }

    if losing:
        message = f"{remaining} is a losing position: every move loses against perfect play."
    else:
        move = compute_move(remaining, max_move, misere, random.Random())
        data["winning_move"] = move
        message = f"Take {move}, leaving {remaining - move}."

    return CommandResult(success=True, message=message, data=data)


def handle_game_input(session: GameSession, user_input: str) -> Optional[IntentResult]:
    """Translate one line of input into a session intent.

    Returns None for lines that are not intents (help, status, unknown).
    """
    text = user_input.strip()
    if text.isdigit():
        return session.request_move(int(text))

    parts = text.lstrip("/!").lower().split()
    if not parts:
        return None

    cmd = parts[0]
    if cmd in ("undo", "u"):
        return session.undo()
    elif cmd in ("redo", "r"):
        return session.redo()
    elif cmd == "reset":
        return session.reset()
    elif cmd in ("pick", "p") and len(parts) > 1 and parts[1].isdigit():
        return session.select_item(int(parts[1]) - 1)
    elif cmd in ("quit", "exit", "q", "home"):
        return session.go_home()
    return None


async def play_game(
    app: GameCLIApp,
    input_handler: Callable[[], str],
    output_handler: Callable[[str], None],
    formatter: Optional[OutputFormatter] = None,
    seed: Optional[int] = None,
    fast: bool = False,
    **options: Any,
) -> CommandResult:
    formatter = formatter or TextFormatter()
    scheduler = AsyncioScheduler()
    listener = ConsoleListener(output_handler)

    try:
        session = app.create_session(
            scheduler=scheduler,
            listeners=[listener],
            seed=seed,
            fast=fast,
            **options,
        )
        session.start()
        output_handler(formatter.format_rules(session.view()))

        while session.phase == GamePhase.PLAYING:
            await scheduler.drain()
            if session.phase != GamePhase.PLAYING:
                break

            output_handler(formatter.format_board(session.view()))
            try:
                user_input = input_handler()
            except (EOFError, KeyboardInterrupt):
                session.go_home()
                return CommandResult(
                    success=True,
                    message="Game interrupted by user.",
                    data={"interrupted": True},
                )

            if not user_input.strip():
                continue

            command = user_input.strip().lstrip("/!").lower()
            if command in ("help", "?", "h"):
                output_handler(HELP_TEXT)
                continue
            if command in ("status", "s"):
                output_handler(formatter.format_status(session.view()))
                continue

            result = handle_game_input(session, user_input)
            if result is None:
                output_handler(f"Unknown command: {user_input.strip()}. Type /help for commands.")
            elif not result.accepted:
                output_handler(formatter.format_rejection(result))
            elif session.phase == GamePhase.CONFIG:
                return CommandResult(
                    success=True,
                    message="Game abandoned.",
                    data={"abandoned": True},
                )

        await scheduler.drain()
        view = session.view()
        output_handler(formatter.format_board(view))

        return CommandResult(
            success=True,
            message="Game completed.",
            data={
                "winner": view.winner.value if view.winner else None,
                "winner_name": view.winner_name,
                "moves": len(session.history) - 1,
            },
        )

    except Exception as e:
        return CommandResult(
            success=False,
            message="Error during gameplay.",
            error=str(e),
        )
