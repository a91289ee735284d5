"""Optimal play for the automated opponent.

The subtraction game with moves ``1..M`` has a closed form. With
``mod = M + 1`` the positions that lose for the player to move are

- normal play: ``N % mod == 0``
- misère play: ``N % mod == 1``

The strategy moves to one of those positions whenever it can. When the
mover is already in one, every move loses against perfect play, so it
picks a legal move at random through an injected random source.
"""

from __future__ import annotations

import logging
import random
from typing import Optional, Protocol

from laststrike.domain.entities import MatchConfig

logger = logging.getLogger(__name__)


class RandomSource(Protocol):
    def randint(self, a: int, b: int) -> int:
        ...


def is_losing_position(remaining: int, max_move: int, misere: bool) -> bool:
    mod = max_move + 1
    if misere:
        return remaining % mod == 1
    return remaining % mod == 0


def stalling_move(remaining: int, max_move: int, rng: RandomSource) -> int:
    return rng.randint(1, min(remaining, max_move))


def compute_move(remaining: int, max_move: int, misere: bool, rng: RandomSource) -> int:
    if remaining < 1:
        raise ValueError(f"No move exists with {remaining} item(s) remaining")
    if max_move < 1:
        raise ValueError(f"max_move must be positive, got {max_move}")

    mod = max_move + 1

    if misere:
        if remaining == 1:
            return 1
        remainder = (remaining - 1) % mod
    else:
        remainder = remaining % mod

    if remainder == 0:
        return stalling_move(remaining, max_move, rng)
    return remainder


class AIStrategy:
    def __init__(self, config: MatchConfig, rng: Optional[RandomSource] = None):
        self._config = config
        self._rng: RandomSource = rng if rng is not None else random.Random()

    @property
    def rng(self) -> RandomSource:
        return self._rng

    def compute_move(self, remaining: int) -> int:
        move = compute_move(remaining, self._config.max_move, self._config.misere, self._rng)
        logger.debug(
            "AI move for remaining=%d (max=%d, misere=%s): %d%s",
            remaining,
            self._config.max_move,
            self._config.misere,
            move,
            " (stalling)" if self.is_losing(remaining) else "",
        )
        return move

    def is_losing(self, remaining: int) -> bool:
        return is_losing_position(remaining, self._config.max_move, self._config.misere)
