"""Loads game.yaml into a GameConfig.

The directory is taken from the ``config_dir`` argument, then from the
``LAST_STRIKE_CONFIG_DIR`` environment variable, then from the ``config``
directory shipped at the repository root.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .models import GameConfig

logger = logging.getLogger(__name__)

CONFIG_DIR_ENV = "LAST_STRIKE_CONFIG_DIR"
GAME_CONFIG_FILE = "game.yaml"
SHIPPED_CONFIG_DIR = Path(__file__).resolve().parent.parent.parent / "config"


def resolve_config_dir(config_dir: Optional[str | Path] = None) -> Path:
    if config_dir is not None:
        return Path(config_dir)
    from_env = os.environ.get(CONFIG_DIR_ENV)
    if from_env:
        return Path(from_env)
    return SHIPPED_CONFIG_DIR


class ConfigLoader:
    def __init__(self, config_dir: Optional[str | Path] = None):
        self._config_dir = resolve_config_dir(config_dir)
        self._game_config: Optional[GameConfig] = None

    @property
    def config_dir(self) -> Path:
        return self._config_dir

    @property
    def game_config_path(self) -> Path:
        return self._config_dir / GAME_CONFIG_FILE

    def _read_sections(self, path: Path) -> Dict[str, Any]:
        if not path.exists():
            logger.warning("No %s in %s, playing with built-in defaults", path.name, path.parent)
            return {}

        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ValueError(f"{path} must hold a mapping of sections, got {type(data).__name__}")
        return data

    def load_game_config(self, force_reload: bool = False) -> GameConfig:
        if self._game_config is not None and not force_reload:
            return self._game_config

        path = self.game_config_path
        self._game_config = GameConfig(**self._read_sections(path))
        match = self._game_config.match
        logger.info(
            "Loaded %s: pool=%s max_move=%s mode=%s",
            path,
            match.pool_size,
            match.max_move,
            match.mode,
        )
        return self._game_config

    @property
    def game(self) -> GameConfig:
        return self.load_game_config()
