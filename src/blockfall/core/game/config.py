# src/blockfall/core/game/config.py
from __future__ import annotations

from typing import Literal, Optional

from pydantic import Field, ValidationInfo, field_validator, model_validator

from blockfall.core.config.base import ConfigBase
from blockfall.game.core.constants import (
    CONTROL_PERIOD_S,
    DEFAULT_HEIGHT,
    DEFAULT_WIDTH,
    GRAVITY_DECAY,
    GRAVITY_PERIOD_S,
    MIN_GRAVITY_PERIOD_S,
)

PieceRule = Literal["uniform", "bag7"]


def _as_int(value: object, *, where: str) -> int:
    if isinstance(value, bool):
        raise ValueError(f"{where} must be an int, got bool")
    if not isinstance(value, (int, float, str, bytes, bytearray)):
        raise ValueError(f"{where} must be an int-like value, got {type(value)!r}")
    try:
        return int(value)
    except ValueError as e:
        raise ValueError(f"{where} must be an int-like value, got {value!r}") from e


class TimingConfig(ConfigBase):
    """Fixed-period timers, in seconds of elapsed time."""

    control_period: float = Field(default=CONTROL_PERIOD_S, gt=0.0)
    gravity_period: float = Field(default=GRAVITY_PERIOD_S, gt=0.0)
    gravity_decay: float = Field(default=GRAVITY_DECAY, gt=0.0, le=1.0)
    min_gravity_period: float = Field(default=MIN_GRAVITY_PERIOD_S, gt=0.0)

    @model_validator(mode="after")
    def _min_below_base(self) -> "TimingConfig":
        if self.min_gravity_period > self.gravity_period:
            raise ValueError(
                f"timing.min_gravity_period ({self.min_gravity_period}) must be <= "
                f"timing.gravity_period ({self.gravity_period})"
            )
        return self


class ScoringConfig(ConfigBase):
    """Base points per lock by number of cleared rows (multiplied by level)."""

    single: int = Field(default=100, ge=0)
    double: int = Field(default=250, ge=0)
    triple: int = Field(default=500, ge=0)
    tetris: int = Field(default=1000, ge=0)


class GameConfig(ConfigBase):
    """
    Game-level config (engine-facing).

    Single home for things that conceptually belong to the engine:
      - board dimensions (+ cell pixel size handed through to renderers)
      - piece catalog + selection rule
      - timer periods and gravity speed-up
      - score table
    """

    width: int = Field(default=DEFAULT_WIDTH, ge=4)
    height: int = Field(default=DEFAULT_HEIGHT, ge=4)
    cell_size: int = Field(default=25, ge=1)
    seed: int = Field(default=12345, ge=0)
    piece_rule: PieceRule = "uniform"
    piece_set: Optional[str] = None
    timing: TimingConfig = Field(default_factory=TimingConfig)
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)

    @field_validator("width", "height", "cell_size", "seed", mode="before")
    @classmethod
    def _int_fields(cls, v: object, info: ValidationInfo) -> int:
        return _as_int(v, where=f"game.{info.field_name}")

    @field_validator("piece_rule", mode="before")
    @classmethod
    def _piece_rule_lower(cls, v: object) -> str:
        return str(v).strip().lower()


__all__ = ["GameConfig", "TimingConfig", "ScoringConfig", "PieceRule"]
