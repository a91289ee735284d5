"""Move validation and application against a pool snapshot."""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from laststrike.domain.entities import MatchConfig, PlayerTurn, PoolState
from laststrike.errors import InvalidMoveSize

logger = logging.getLogger(__name__)


def resolve_winner(last_mover: PlayerTurn, misere: bool) -> PlayerTurn:
    """In misère play the party that took the last item loses."""
    return last_mover.other if misere else last_mover


class MoveEngine:
    def __init__(self, config: MatchConfig):
        self._config = config

    @property
    def config(self) -> MatchConfig:
        return self._config

    def max_allowed(self, pool: PoolState) -> int:
        return min(self._config.max_move, pool.remaining_count)

    def validate(self, pool: PoolState, requested_count: int, turn_owner: PlayerTurn) -> None:
        allowed = self.max_allowed(pool)
        if not isinstance(requested_count, int) or isinstance(requested_count, bool):
            raise InvalidMoveSize(requested_count, allowed, f"Move size must be an integer, got {requested_count!r}")
        if requested_count < self._config.min_move or requested_count > allowed:
            logger.debug(
                "Rejected move of %d for %s (allowed 1..%d)",
                requested_count,
                turn_owner.value,
                allowed,
            )
            raise InvalidMoveSize(requested_count, allowed)

    def select_indices(self, pool: PoolState, count: int) -> List[int]:
        return pool.present_indices()[:count]

    def apply(self, pool: PoolState, indices_to_remove: Iterable[int]) -> PoolState:
        indices = list(indices_to_remove)
        if len(set(indices)) != len(indices):
            raise InvalidMoveSize(len(indices), self.max_allowed(pool), f"Duplicate indices in {indices}")

        for index in indices:
            if not pool.is_present(index):
                raise InvalidMoveSize(
                    len(indices),
                    self.max_allowed(pool),
                    f"Item {index} is not present in the pool",
                )

        removed = set(indices)
        items = tuple(present and i not in removed for i, present in enumerate(pool.items))
        return PoolState(items=items)

    def is_terminal(self, pool: PoolState) -> bool:
        return pool.remaining_count == 0

    def resolve_winner(self, last_mover: PlayerTurn) -> PlayerTurn:
        return resolve_winner(last_mover, self._config.misere)

    def preview(self, pool: PoolState, index: int) -> Optional[int]:
        if not isinstance(index, int) or isinstance(index, bool):
            return None
        if not 0 <= index < pool.size:
            return None

        position = sum(1 for present in pool.items[: index + 1] if present)
        if position == 0 or position > self._config.max_move:
            return None
        return position
