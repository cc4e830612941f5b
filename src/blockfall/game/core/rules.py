# src/blockfall/game/core/rules.py
from __future__ import annotations

from dataclasses import dataclass

from blockfall.game.core.constants import (
    GRAVITY_DECAY,
    GRAVITY_PERIOD_S,
    LINES_PER_LEVEL,
    MIN_GRAVITY_PERIOD_S,
)


@dataclass(frozen=True)
class ScoreConfig:
    single: int = 100
    double: int = 250
    triple: int = 500
    tetris: int = 1000


def score_for_clears(cleared: int, cfg: ScoreConfig) -> int:
    """Base points for one lock; anything outside 1..4 scores nothing."""
    if cleared == 1:
        return cfg.single
    if cleared == 2:
        return cfg.double
    if cleared == 3:
        return cfg.triple
    if cleared == 4:
        return cfg.tetris
    return 0


def level_for_lines(lines: int, *, current: int = 1) -> int:
    """Level never decreases: max(current, 1 + lines // LINES_PER_LEVEL)."""
    return max(int(current), 1 + int(lines) // LINES_PER_LEVEL)


@dataclass(frozen=True)
class ScoreState:
    score: int = 0
    level: int = 1
    lines: int = 0

    def after_clear(self, cleared: int, cfg: ScoreConfig) -> "ScoreState":
        """
        One scoring pass. Points use the level in effect BEFORE the clear.
        """
        c = int(cleared)
        if c < 0:
            raise ValueError(f"cleared must be >= 0, got {c}")
        lines = self.lines + c
        return ScoreState(
            score=self.score + self.level * score_for_clears(c, cfg),
            level=level_for_lines(lines, current=self.level),
            lines=lines,
        )


@dataclass(frozen=True)
class GravityConfig:
    period: float = GRAVITY_PERIOD_S
    decay: float = GRAVITY_DECAY
    min_period: float = MIN_GRAVITY_PERIOD_S


def gravity_period_for_level(level: int, cfg: GravityConfig) -> float:
    lvl = max(1, int(level))
    return float(max(cfg.min_period, cfg.period * (cfg.decay ** (lvl - 1))))


__all__ = [
    "ScoreConfig",
    "score_for_clears",
    "level_for_lines",
    "ScoreState",
    "GravityConfig",
    "gravity_period_for_level",
]
