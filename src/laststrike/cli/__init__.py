"""Terminal interface package for The Last Strike."""

from laststrike.cli.app import ConsoleListener, GameCLIApp
from laststrike.cli.commands import (
    CommandResult,
    analyze_position,
    handle_game_input,
    play_game,
    show_config,
)

__all__ = [
    "ConsoleListener",
    "GameCLIApp",
    "CommandResult",
    "analyze_position",
    "handle_game_input",
    "play_game",
    "show_config",
]
