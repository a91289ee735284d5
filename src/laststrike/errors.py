"""Exception types raised inside the game core."""

from __future__ import annotations


class LastStrikeError(Exception):
    pass


class InvalidMoveSize(LastStrikeError, ValueError):
    def __init__(self, requested: int, allowed: int, message: str = ""):
        self.requested = requested
        self.allowed = allowed
        super().__init__(message or f"Cannot take {requested} item(s); allowed range is 1..{allowed}")


class HistoryBoundary(LastStrikeError):
    pass
