# src/blockfall/game/core/collision.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Tuple

from blockfall.game.core.board import Board
from blockfall.game.core.types import Cell


@dataclass(frozen=True)
class Blocked:
    """
    Blocking state of a piece against the board walls, floor and settled cells.

    Always recomputed from scratch; never carried across ticks.
    """

    left: bool
    right: bool
    bottom: bool
    drop_depth: int


def blocked_left(board: Board, cells: Iterable[Cell]) -> bool:
    return any(x <= 0 or board.is_occupied((x - 1, y)) for x, y in cells)


def blocked_right(board: Board, cells: Iterable[Cell]) -> bool:
    return any(x >= board.w - 1 or board.is_occupied((x + 1, y)) for x, y in cells)


def _bottom_blocked_at(board: Board, cells: Tuple[Cell, ...], depth: int) -> bool:
    for x, y in cells:
        yy = y + depth
        if yy >= board.h - 1 or board.is_occupied((x, yy + 1)):
            return True
    return False


def blocked_bottom(board: Board, cells: Iterable[Cell]) -> bool:
    return _bottom_blocked_at(board, tuple(cells), 0)


def drop_depth(board: Board, cells: Iterable[Cell]) -> int:
    """
    Smallest d >= 0 such that the cells shifted down by d are bottom-blocked.

    This is the hard-drop distance and the ghost-piece offset.
    """
    cs = tuple(cells)
    if not cs:
        return 0
    d = 0
    # Terminates: once the lowest cell reaches the floor row the test is true.
    while not _bottom_blocked_at(board, cs, d):
        d += 1
    return d


def overlaps(board: Board, cells: Iterable[Cell]) -> bool:
    """True if any cell is outside the board or on a settled cell."""
    return any((not board.in_bounds(c)) or board.is_occupied(c) for c in cells)


def resolve(board: Board, cells: Iterable[Cell]) -> Blocked:
    cs = tuple(cells)
    return Blocked(
        left=blocked_left(board, cs),
        right=blocked_right(board, cs),
        bottom=_bottom_blocked_at(board, cs, 0),
        drop_depth=drop_depth(board, cs),
    )


__all__ = [
    "Blocked",
    "blocked_left",
    "blocked_right",
    "blocked_bottom",
    "drop_depth",
    "overlaps",
    "resolve",
]
