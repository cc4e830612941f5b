# src/blockfall/game/core/timers.py
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Tuple


@dataclass(frozen=True)
class FixedTimer:
    """
    Repeating fixed-period accumulator driven by elapsed time.

    advance() fires at most once per call, even when dt spans several periods;
    the accumulated time is then kept modulo the period.
    """

    period: float
    elapsed: float = 0.0

    def __post_init__(self) -> None:
        if not float(self.period) > 0.0:
            raise ValueError(f"timer period must be > 0, got {self.period}")

    def advance(self, dt: float) -> Tuple["FixedTimer", bool]:
        d = float(dt)
        if d < 0.0:
            raise ValueError(f"dt must be >= 0, got {d}")
        acc = self.elapsed + d
        if acc < self.period:
            return replace(self, elapsed=acc), False
        return replace(self, elapsed=acc % self.period), True

    def with_period(self, period: float) -> "FixedTimer":
        return FixedTimer(period=float(period), elapsed=self.elapsed % float(period))


__all__ = ["FixedTimer"]
