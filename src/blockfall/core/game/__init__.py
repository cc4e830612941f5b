# src/blockfall/core/game/__init__.py
from __future__ import annotations

from blockfall.core.game.config import GameConfig, PieceRule, ScoringConfig, TimingConfig

__all__ = [
    "GameConfig",
    "PieceRule",
    "ScoringConfig",
    "TimingConfig",
]
