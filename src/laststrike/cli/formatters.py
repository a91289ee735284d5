"""CLI output formatters for The Last Strike.

This module provides consistent formatting for CLI output,
supporting both plain text and JSON output modes.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any, Dict, Optional, Protocol

from laststrike.domain.entities import SessionView
from laststrike.session import IntentResult

if TYPE_CHECKING:
    from laststrike.cli.commands import CommandResult

ITEMS_PER_GROUP = 5
PRESENT_MARK = "|"
STRUCK_MARK = "x"


class OutputFormatter(Protocol):
    def format_result(self, result: "CommandResult") -> str:
        ...

    def format_rules(self, view: SessionView) -> str:
        ...

    def format_board(self, view: SessionView) -> str:
        ...

    def format_status(self, view: SessionView) -> str:
        ...

    def format_rejection(self, result: IntentResult) -> str:
        ...

    def format_analysis(self, data: Dict[str, Any]) -> str:
        ...

    def format_config(self, data: Dict[str, Any]) -> str:
        ...

    def format_error(self, message: str, error: Optional[str] = None) -> str:
        ...


def render_row(view: SessionView) -> str:
    if view.pool is None:
        return ""
    pending = set(view.pending_move.indices) if view.pending_move else set()
    marks = []
    for i, present in enumerate(view.pool.items):
        if i in pending:
            marks.append("/")
        else:
            marks.append(PRESENT_MARK if present else STRUCK_MARK)

    groups = [
        "".join(marks[i:i + ITEMS_PER_GROUP])
        for i in range(0, len(marks), ITEMS_PER_GROUP)
    ]
    return " ".join(groups)


class TextFormatter:
    def format_result(self, result: "CommandResult") -> str:
        if not result.success:
            return self.format_error(result.message, result.error)
        return result.message

    def format_rules(self, view: SessionView) -> str:
        config = view.config
        outcome = "LOSES" if config.misere else "WINS"
        lines = [
            f"\n{'='*50}",
            "THE LAST STRIKE",
            f"{'='*50}\n",
            f"{config.player1_name} vs {config.player2_name}",
            f"{config.pool_size} items. Strike 1 to {config.max_move} per turn, from the front.",
            f"Whoever strikes the last item {outcome}.",
            "Type /help for commands.",
        ]
        return "\n".join(lines)

    def format_board(self, view: SessionView) -> str:
        lines = ["", render_row(view)]
        if view.winner is not None:
            lines.append(f"Game over. Winner: {view.winner_name}")
        else:
            limit = min(view.config.max_move, view.remaining_count)
            lines.append(
                f"Remaining: {view.remaining_count} | {view.current_name} to strike (1-{limit})"
            )
        return "\n".join(lines)

    def format_status(self, view: SessionView) -> str:
        config = view.config
        lines = [
            f"\n{'='*50}",
            "Session Status",
            f"{'='*50}\n",
            f"Phase: {view.phase.value}",
            f"Mode: {config.mode.value.upper()}{' (misere)' if config.misere else ''}",
            f"Remaining: {view.remaining_count}/{config.pool_size}",
            f"Turn: {view.current_name}",
            f"History: step {view.history_cursor} of {max(view.history_length - 1, 0)}",
            f"Undo available: {'yes' if view.can_undo else 'no'}",
            f"Redo available: {'yes' if view.can_redo else 'no'}",
        ]
        if view.winner is not None:
            lines.append(f"Winner: {view.winner_name}")
        return "\n".join(lines)

    def format_rejection(self, result: IntentResult) -> str:
        return f"Not allowed: {result.message}"

    def format_analysis(self, data: Dict[str, Any]) -> str:
        mode = "misere" if data["misere"] else "normal"
        lines = [
            f"Position: {data['remaining']} remaining, take 1-{data['max_move']}, {mode} play",
        ]
        if data["losing_for_mover"]:
            lines.append("Losing for the player to move. Any move stalls.")
        else:
            lines.append(f"Winning move: take {data['winning_move']}")
        return "\n".join(lines)

    def format_config(self, data: Dict[str, Any]) -> str:
        lines = [f"\n{'='*50}", "Configuration", f"{'='*50}"]
        for section, values in data.items():
            lines.append(f"\n[{section}]")
            for key, value in values.items():
                lines.append(f"  {key}: {value}")
        return "\n".join(lines)

    def format_error(self, message: str, error: Optional[str] = None) -> str:
        lines = [f"\nError: {message}"]
        if error:
            lines.append(f"Details: {error}")
        return "\n".join(lines)


class JsonFormatter:
    def format_result(self, result: "CommandResult") -> str:
        return json.dumps({
            "success": result.success,
            "message": result.message,
            "data": result.data,
            "error": result.error,
        }, indent=2, default=str)

    def format_rules(self, view: SessionView) -> str:
        return json.dumps({"rules": view.config.model_dump(mode="json")}, indent=2)

    def format_board(self, view: SessionView) -> str:
        board = view.to_dict()
        board["row"] = render_row(view)
        return json.dumps({"board": board}, indent=2, default=str)

    def format_status(self, view: SessionView) -> str:
        return json.dumps({"status": view.to_dict()}, indent=2, default=str)

    def format_rejection(self, result: IntentResult) -> str:
        return json.dumps({
            "accepted": False,
            "reason": result.reason.value if result.reason else None,
            "message": result.message,
        }, indent=2)

    def format_analysis(self, data: Dict[str, Any]) -> str:
        return json.dumps({"analysis": data}, indent=2)

    def format_config(self, data: Dict[str, Any]) -> str:
        return json.dumps({"config": data}, indent=2, default=str)

    def format_error(self, message: str, error: Optional[str] = None) -> str:
        return json.dumps({
            "success": False,
            "message": message,
            "error": error,
        }, indent=2)


def get_formatter(json_mode: bool = False) -> OutputFormatter:
    return JsonFormatter() if json_mode else TextFormatter()
