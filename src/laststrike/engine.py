"""Game Engine for loading configuration and wiring sessions."""

from __future__ import annotations

import logging
import random
from pathlib import Path
from typing import Any, Iterable, Optional

from config import ConfigLoader, GameConfig, TimingConfig
from laststrike.events import ListenerGroup, SessionListener
from laststrike.scheduler import Scheduler
from laststrike.session import GameSession
from laststrike.strategy import RandomSource

logger = logging.getLogger(__name__)


class GameEngine:
    def __init__(self, config_dir: Optional[Path] = None):
        self._config_loader = ConfigLoader(config_dir)
        self._game_config: GameConfig = self._config_loader.load_game_config()
        logger.info("GameEngine initialized with config_dir=%s", self._config_loader.config_dir)

    @property
    def game_config(self) -> GameConfig:
        return self._game_config

    @property
    def config_loader(self) -> ConfigLoader:
        return self._config_loader

    def make_rng(self, seed: Optional[int] = None) -> RandomSource:
        if seed is None:
            seed = self._game_config.ai.seed
        return random.Random(seed)

    def create_session(
        self,
        scheduler: Optional[Scheduler] = None,
        listeners: Iterable[SessionListener] = (),
        rng: Optional[RandomSource] = None,
        timing: Optional[TimingConfig] = None,
        **overrides: Any,
    ) -> GameSession:
        session = GameSession(
            timing=timing or self._game_config.timing,
            scheduler=scheduler,
            listener=ListenerGroup(listeners),
            rng=rng if rng is not None else self.make_rng(),
            log_events=self._game_config.observability.log_session_events,
        )

        params = self._game_config.match.model_dump()
        params.update({k: v for k, v in overrides.items() if v is not None})
        session.configure(**params)

        logger.debug("Created session with %s", session.config)
        return session
