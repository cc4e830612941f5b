# src/blockfall/game/factory.py
from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping

from blockfall.core.config.io import game_config_from_mapping
from blockfall.core.game.config import GameConfig
from blockfall.game.core.constants import CELLS_PER_PIECE
from blockfall.game.core.game import GameContext, TetrisGame
from blockfall.game.core.piece_rules import make_piece_rule
from blockfall.game.core.pieceset import PieceSet, classic7
from blockfall.game.core.rules import GravityConfig, ScoreConfig
from blockfall.utils.paths import resolve_repo_path


def _load_pieces(raw: str | None) -> PieceSet:
    if raw is None:
        return classic7()
    path: Path = resolve_repo_path(raw)
    if not path.is_file():
        raise FileNotFoundError(f"piece set not found: {path}")
    return PieceSet.from_yaml(path, expected_cells=CELLS_PER_PIECE)


def make_context(cfg: GameConfig) -> GameContext:
    """
    Translate the validated config into engine-side rule objects.
    """
    timing = cfg.timing
    scoring = cfg.scoring
    return GameContext(
        pieces=_load_pieces(cfg.piece_set),
        piece_rule=make_piece_rule(cfg.piece_rule),
        score_cfg=ScoreConfig(
            single=int(scoring.single),
            double=int(scoring.double),
            triple=int(scoring.triple),
            tetris=int(scoring.tetris),
        ),
        gravity=GravityConfig(
            period=float(timing.gravity_period),
            decay=float(timing.gravity_decay),
            min_period=float(timing.min_gravity_period),
        ),
        control_period=float(timing.control_period),
        width=int(cfg.width),
        height=int(cfg.height),
        cell_size=int(cfg.cell_size),
    )


def make_game(cfg: GameConfig | Mapping[str, Any] | None = None) -> TetrisGame:
    """
    Build a TetrisGame from a GameConfig, a plain mapping (optionally under 'game:'), or defaults.

    The config seed seeds the game's RNG; TetrisGame.reset(seed=...) can override it later.
    """
    if cfg is None:
        game_cfg = GameConfig()
    elif isinstance(cfg, GameConfig):
        game_cfg = cfg
    elif isinstance(cfg, Mapping):
        game_cfg = game_config_from_mapping(cfg)
    else:
        raise TypeError(f"cfg must be GameConfig|mapping|None, got {type(cfg)!r}")

    return TetrisGame(make_context(game_cfg), seed=int(game_cfg.seed))


__all__ = ["make_context", "make_game"]
