# src/blockfall/game/core/piece_rules.py
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Sequence

import numpy as np


def draw_uniform(rng: np.random.Generator, kinds: Sequence[str]) -> str:
    """One uniform draw over kinds."""
    if not kinds:
        raise ValueError("cannot draw from empty kinds")
    return str(kinds[int(rng.integers(0, len(kinds)))])


class PieceRule(ABC):
    """
    Piece selection rule interface.

    Lifecycle:
      - reset(rng=..., kinds=...) is called once per game
      - next_piece() is called whenever the engine needs a new preview piece

    Notes:
      - The RNG is owner-injected; rules never create their own RNG streams.
    """

    @abstractmethod
    def reset(self, *, rng: np.random.Generator, kinds: Sequence[str]) -> None:
        raise NotImplementedError

    @abstractmethod
    def next_piece(self) -> str:
        raise NotImplementedError


@dataclass
class UniformPieceRule(PieceRule):
    """
    Uniform selection from the available kinds (the classic random_piece draw).
    """

    _rng: np.random.Generator | None = None
    _kinds: tuple[str, ...] = ()

    def reset(self, *, rng: np.random.Generator, kinds: Sequence[str]) -> None:
        self._rng = rng
        self._kinds = tuple(str(k) for k in kinds)
        if not self._kinds:
            raise ValueError("UniformPieceRule requires non-empty kinds")

    def next_piece(self) -> str:
        if self._rng is None or not self._kinds:
            raise RuntimeError("UniformPieceRule.reset() must be called before next_piece()")
        return draw_uniform(self._rng, self._kinds)


@dataclass
class BagPieceRule(PieceRule):
    """
    K-bag randomizer (generalization of 7-bag).

    bag_copies: how many copies of each kind go into a bag before shuffling
    (1 -> classic 7-bag).
    """

    bag_copies: int = 1

    _rng: np.random.Generator | None = None
    _kinds: tuple[str, ...] = ()
    _bag: list[str] | None = None

    def reset(self, *, rng: np.random.Generator, kinds: Sequence[str]) -> None:
        self._rng = rng
        self._kinds = tuple(str(k) for k in kinds)
        if not self._kinds:
            raise ValueError("BagPieceRule requires non-empty kinds")
        if int(self.bag_copies) <= 0:
            raise ValueError(f"BagPieceRule.bag_copies must be >= 1 (got {self.bag_copies})")
        self._bag = []
        self._refill()

    def _refill(self) -> None:
        if self._rng is None or not self._kinds:
            raise RuntimeError("BagPieceRule.reset() must be called before _refill()")
        self._bag = [k for k in self._kinds for _ in range(int(self.bag_copies))]
        self._rng.shuffle(self._bag)

    def next_piece(self) -> str:
        if self._rng is None or not self._kinds or self._bag is None:
            raise RuntimeError("BagPieceRule.reset() must be called before next_piece()")
        if not self._bag:
            self._refill()
        return self._bag.pop()


def make_piece_rule(name: str) -> PieceRule:
    n = str(name).strip().lower()
    if n == "uniform":
        return UniformPieceRule()
    if n in {"bag7", "bag"}:
        return BagPieceRule()
    raise ValueError(f"unknown piece_rule {name!r} (expected 'uniform' or 'bag7')")


__all__ = ["PieceRule", "draw_uniform", "UniformPieceRule", "BagPieceRule", "make_piece_rule"]
