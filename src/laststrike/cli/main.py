"""Main entry point for The Last Strike CLI.

Usage:
    last-strike play [--pool 21] [--max-move 3] [--mode pvp|pvai] [--misere]
    last-strike analyze --remaining 21 --max-move 3 [--misere]
    last-strike config
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from laststrike.cli.app import GameCLIApp
from laststrike.cli.commands import analyze_position, play_game, show_config
from laststrike.cli.formatters import JsonFormatter, TextFormatter, get_formatter


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="last-strike",
        description="The Last Strike - take turns striking items; mind the last one",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output results in JSON format",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging",
    )
    parser.add_argument(
        "--config-dir",
        type=Path,
        help="Directory containing game.yaml",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    play_parser = subparsers.add_parser(
        "play",
        help="Play an interactive game",
    )
    play_parser.add_argument(
        "--pool", "-n",
        type=int,
        help="Number of items in the row (5-100)",
    )
    play_parser.add_argument(
        "--max-move", "-m",
        type=int,
        help="Most items one turn may strike (2-10)",
    )
    play_parser.add_argument(
        "--mode",
        choices=["pvp", "pvai"],
        help="Play against another person or the AI",
    )
    play_parser.add_argument(
        "--misere",
        action="store_true",
        default=None,
        help="Whoever strikes the last item loses",
    )
    play_parser.add_argument(
        "--player1",
        help="Name of player 1",
    )
    play_parser.add_argument(
        "--player2",
        help="Name of player 2",
    )
    play_parser.add_argument(
        "--seed",
        type=int,
        help="Seed for the AI's stalling moves",
    )
    play_parser.add_argument(
        "--fast",
        action="store_true",
        help="Skip the AI thinking and settle delays",
    )

    analyze_parser = subparsers.add_parser(
        "analyze",
        help="Show the optimal move for a position",
    )
    analyze_parser.add_argument(
        "--remaining", "-r",
        type=int,
        required=True,
        help="Items left in the row",
    )
    analyze_parser.add_argument(
        "--max-move", "-m",
        type=int,
        default=3,
        help="Most items one turn may strike (default: 3)",
    )
    analyze_parser.add_argument(
        "--misere",
        action="store_true",
        help="Analyze under misere rules",
    )

    subparsers.add_parser(
        "config",
        help="Show the effective configuration",
    )

    return parser


class InteractiveCLI:
    def __init__(self, app: GameCLIApp, formatter: TextFormatter | JsonFormatter):
        self._app = app
        self._formatter = formatter

    def get_input(self) -> str:
        return input("\nStrike: ").strip()

    def show_output(self, message: str) -> None:
        print(message)

    async def run_play(self, args: argparse.Namespace) -> int:
        result = await play_game(
            self._app,
            self.get_input,
            self.show_output,
            formatter=self._formatter,
            seed=args.seed,
            fast=args.fast,
            pool_size=args.pool,
            max_move=args.max_move,
            mode=args.mode,
            misere=args.misere,
            player1_name=args.player1,
            player2_name=args.player2,
        )
        print(self._formatter.format_result(result))
        return 0 if result.success else 1

    def run_analyze(self, remaining: int, max_move: int, misere: bool) -> int:
        result = analyze_position(remaining, max_move, misere)
        if result.success and result.data:
            print(self._formatter.format_analysis(result.data))
        else:
            print(self._formatter.format_error(result.message, result.error))
        return 0 if result.success else 1

    def run_config(self) -> int:
        result = show_config(self._app)
        if result.success and result.data:
            print(self._formatter.format_config(result.data))
        else:
            print(self._formatter.format_error(result.message, result.error))
        return 0 if result.success else 1


async def async_main(args: argparse.Namespace) -> int:
    formatter = get_formatter(args.json)
    app = GameCLIApp(config_dir=args.config_dir)
    if not args.verbose:
        logging.getLogger("laststrike").setLevel(app.game_config.observability.log_level.upper())
    cli = InteractiveCLI(app, formatter)

    try:
        if args.command == "play":
            return await cli.run_play(args)

        elif args.command == "analyze":
            return cli.run_analyze(args.remaining, args.max_move, args.misere)

        elif args.command == "config":
            return cli.run_config()

        else:
            return 1

    except KeyboardInterrupt:
        print("\nInterrupted.")
        return 130
    finally:
        app.close()


def main() -> int:
    parser = create_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return 0

    setup_logging(args.verbose)
    return asyncio.run(async_main(args))


if __name__ == "__main__":
    sys.exit(main())
