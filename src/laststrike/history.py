"""Linear undo/redo history of pool snapshots."""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from laststrike.domain.entities import GameMode, Snapshot
from laststrike.errors import HistoryBoundary

logger = logging.getLogger(__name__)


class HistoryManager:
    """Ordered snapshots with a cursor at the live state.

    In PVAI mode one visible turn is a human move plus the automatic reply,
    so undo and redo move the cursor two entries at a time. A step that does
    not fit inside the log is a no-op.
    """

    def __init__(self) -> None:
        self._snapshots: List[Snapshot] = []
        self._cursor = 0

    @staticmethod
    def step_for(mode: GameMode) -> int:
        return 2 if mode == GameMode.PVAI else 1

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def snapshots(self) -> Tuple[Snapshot, ...]:
        return tuple(self._snapshots)

    @property
    def current(self) -> Snapshot:
        if not self._snapshots:
            raise HistoryBoundary("History is empty")
        return self._snapshots[self._cursor]

    def __len__(self) -> int:
        return len(self._snapshots)

    def reset(self, initial: Snapshot) -> None:
        self._snapshots = [initial]
        self._cursor = 0

    def clear(self) -> None:
        self._snapshots = []
        self._cursor = 0

    def commit(self, snapshot: Snapshot) -> None:
        dropped = len(self._snapshots) - (self._cursor + 1)
        if dropped > 0:
            logger.debug("Discarding %d redo snapshot(s)", dropped)
        del self._snapshots[self._cursor + 1:]
        self._snapshots.append(snapshot)
        self._cursor = len(self._snapshots) - 1

    def can_undo(self, mode: GameMode) -> bool:
        return bool(self._snapshots) and self._cursor - self.step_for(mode) >= 0

    def can_redo(self, mode: GameMode) -> bool:
        return bool(self._snapshots) and self._cursor + self.step_for(mode) <= len(self._snapshots) - 1

    def undo(self, mode: GameMode) -> Optional[Snapshot]:
        if not self.can_undo(mode):
            return None
        self._cursor -= self.step_for(mode)
        return self._snapshots[self._cursor]

    def redo(self, mode: GameMode) -> Optional[Snapshot]:
        if not self.can_redo(mode):
            return None
        self._cursor += self.step_for(mode)
        return self._snapshots[self._cursor]
