# src/blockfall/game/core/board.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, List, Sequence

import numpy as np

from blockfall.game.core.constants import EMPTY_CELL
from blockfall.game.core.types import Cell


class BoardInvariantError(RuntimeError):
    """Raised when a caller breaks a Board invariant (collision logic defect, never user input)."""


@dataclass
class Board:
    h: int
    w: int
    grid: np.ndarray  # locked blocks only (0=empty, >=1 board ids)

    @classmethod
    def empty(cls, *, h: int, w: int) -> "Board":
        if int(h) <= 0 or int(w) <= 0:
            raise ValueError(f"board dimensions must be positive, got h={h} w={w}")
        return cls(h=int(h), w=int(w), grid=np.zeros((int(h), int(w)), dtype=np.uint8))

    def copy(self) -> "Board":
        return Board(h=self.h, w=self.w, grid=self.grid.copy())

    def in_bounds(self, cell: Cell) -> bool:
        x, y = cell
        return 0 <= x < self.w and 0 <= y < self.h

    def is_occupied(self, cell: Cell) -> bool:
        """True iff the cell is committed. Out-of-bounds cells are never committed."""
        if not self.in_bounds(cell):
            return False
        x, y = cell
        return bool(self.grid[y, x] != EMPTY_CELL)

    def kind_at(self, cell: Cell) -> int:
        x, y = cell
        return int(self.grid[y, x])

    def commit(self, cells: Iterable[Cell], *, board_id: int = 1) -> None:
        """
        Mark cells occupied with board_id.

        All cells are validated before any write, so a failed commit leaves the board untouched.
        """
        if int(board_id) == EMPTY_CELL:
            raise ValueError("board_id must be non-zero (0 is reserved for empty)")

        todo = list(dict.fromkeys((int(x), int(y)) for x, y in cells))
        for cell in todo:
            if not self.in_bounds(cell):
                raise BoardInvariantError(f"commit out of bounds: cell={cell} board={self.w}x{self.h}")
            if self.is_occupied(cell):
                raise BoardInvariantError(f"commit onto occupied cell: cell={cell}")

        for x, y in todo:
            self.grid[y, x] = int(board_id)

    def completed_rows(self) -> List[int]:
        """Row indices (ascending, top to bottom) whose every column is occupied."""
        full = np.all(self.grid != EMPTY_CELL, axis=1)
        return [int(y) for y in np.flatnonzero(full)]

    def clear_and_compact(self, rows: Sequence[int]) -> int:
        """
        Remove the given rows and drop everything above them.

        Each surviving cell moves down by the number of removed rows below it, which is the
        same as removing rows top to bottom and shifting only the rows above each one.
        Returns the number of distinct rows removed.
        """
        drop = sorted({int(r) for r in rows})
        if not drop:
            return 0
        for r in drop:
            if r < 0 or r >= self.h:
                raise BoardInvariantError(f"row index out of range: {r} (height={self.h})")

        keep = np.ones(self.h, dtype=bool)
        keep[drop] = False
        new_rows = np.zeros((len(drop), self.w), dtype=self.grid.dtype)
        self.grid = np.vstack([new_rows, self.grid[keep]])
        return len(drop)

    def cells(self) -> Iterator[Cell]:
        ys, xs = np.nonzero(self.grid != EMPTY_CELL)
        for y, x in zip(ys.tolist(), xs.tolist()):
            yield int(x), int(y)

    def occupied_count(self) -> int:
        return int(np.count_nonzero(self.grid != EMPTY_CELL))


__all__ = ["Board", "BoardInvariantError"]
