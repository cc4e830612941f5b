# src/blockfall/core/config/io.py
from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping

from omegaconf import OmegaConf

from blockfall.core.game.config import GameConfig


def load_yaml(path: Path) -> dict[str, Any]:
    cfg_path = Path(path)
    cfg = OmegaConf.load(cfg_path)
    data = OmegaConf.to_container(cfg, resolve=True)
    if not isinstance(data, dict):
        raise TypeError(f"config({path}) must be a mapping")
    return data


def game_config_from_mapping(data: Mapping[str, Any]) -> GameConfig:
    """
    Accepts either the game section itself or a document with a top-level 'game:' key.
    """
    node = data.get("game", data) if isinstance(data, Mapping) else data
    if node is None:
        node = {}
    if not isinstance(node, Mapping):
        raise TypeError(f"game config must be a mapping, got {type(node)!r}")
    return GameConfig.model_validate(dict(node))


def load_game_config(path: Path) -> GameConfig:
    return game_config_from_mapping(load_yaml(path))


__all__ = ["load_yaml", "game_config_from_mapping", "load_game_config"]
