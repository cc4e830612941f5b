# src/blockfall/game/core/pieceset.py
from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
import yaml

from blockfall.game.core.constants import CELLS_PER_PIECE, NUM_ROTATIONS
from blockfall.game.core.piece_rules import draw_uniform
from blockfall.game.core.types import Cell
from blockfall.utils.paths import pieces_dir

Offsets = Tuple[Cell, ...]


def _parse_color(v: object) -> Optional[Tuple[int, int, int]]:
    if v is None:
        return None
    if not isinstance(v, (list, tuple)) or len(v) != 3:
        raise ValueError(f"color must be a 3-item list/tuple, got {v!r}")
    r, g, b = v
    for c in (r, g, b):
        if not isinstance(c, int) or not (0 <= c <= 255):
            raise ValueError(f"color components must be ints in [0,255], got {v!r}")
    return int(r), int(g), int(b)


def _parse_rotation(rows: Sequence[str]) -> np.ndarray:
    if not isinstance(rows, (list, tuple)) or len(rows) == 0:
        raise ValueError("rotation must be a non-empty list of strings")

    width = None
    out: List[List[int]] = []
    for r in rows:
        if not isinstance(r, str) or len(r) == 0:
            raise ValueError(f"rotation rows must be non-empty strings, got {r!r}")
        if width is None:
            width = len(r)
        elif len(r) != width:
            raise ValueError(f"rotation rows must have equal width, got widths {width} and {len(r)}")

        out.append([1 if ch == "#" else 0 for ch in r])

    arr = np.asarray(out, dtype=np.uint8)
    if int(arr.sum()) <= 0:
        raise ValueError("rotation must have at least one filled cell ('#')")
    return arr


def mask_offsets(mask: np.ndarray) -> Offsets:
    """Relative (dx, dy) of filled mask cells, row-major (top to bottom, left to right)."""
    ys, xs = np.nonzero(np.asarray(mask) != 0)
    return tuple((int(x), int(y)) for y, x in zip(ys.tolist(), xs.tolist()))


@dataclass(frozen=True)
class PieceDef:
    kind: str
    rotations: Tuple[Offsets, ...]  # NUM_ROTATIONS ordered offset tuples
    color: Optional[Tuple[int, int, int]] = None

    def orientation(self, rot: int) -> Offsets:
        return self.rotations[int(rot) % len(self.rotations)]


@dataclass(frozen=True)
class PieceSet:
    """
    The tetromino catalog: pure geometry + optional colors, loaded from YAML.

    Provides:
      - stable ordering of kinds (YAML order)
      - orientation(kind, rot): the 4 relative offsets of a rotation state (rot taken mod 4)
      - cells(kind, rot, x, y): absolute cells for an anchor position
      - board_id(kind) in 1..K (0 reserved for empty)
      - random_piece(rng): uniform draw over kinds

    Asset contract:
      - every kind lists exactly NUM_ROTATIONS rotations (pieces with fewer distinct
        states, like O, repeat them)
      - every rotation has the same number of filled cells
    """

    pieces: Dict[str, PieceDef]
    kind_order: Tuple[str, ...]

    @staticmethod
    def default_classic7_path() -> Path:
        return pieces_dir() / "classic7.yaml"

    @classmethod
    def from_yaml(cls, path: Path, *, expected_cells: Optional[int] = None) -> "PieceSet":
        p = Path(path)
        data = yaml.safe_load(p.read_text(encoding="utf-8"))

        if not isinstance(data, dict):
            raise ValueError(f"piece YAML must be a mapping at top-level, got {type(data)!r}")

        if expected_cells is None:
            v = data.get("expected_cells", None)
            if isinstance(v, int):
                expected_cells = v
            elif isinstance(v, str):
                expected_cells = int(v)
            elif v is None:
                expected_cells = None
            else:
                raise TypeError(f"expected_cells must be int or str, got {type(v)!r}")

        pieces_node = data.get("pieces")
        if not isinstance(pieces_node, dict) or not pieces_node:
            raise ValueError("piece YAML must contain non-empty mapping 'pieces:'")

        pieces: Dict[str, PieceDef] = {}
        kind_order: List[str] = []

        for kind, node in pieces_node.items():
            if not isinstance(kind, str) or not kind:
                raise ValueError(f"piece key must be a non-empty string, got {kind!r}")
            if not isinstance(node, dict):
                raise ValueError(f"piece entry for {kind!r} must be a mapping, got {type(node)!r}")

            rotations_node = node.get("rotations")
            if not isinstance(rotations_node, list) or not rotations_node:
                raise ValueError(f"{kind!r}: 'rotations' must be a non-empty list")
            if len(rotations_node) != NUM_ROTATIONS:
                raise ValueError(
                    f"{kind!r}: expected exactly {NUM_ROTATIONS} rotations, got {len(rotations_node)}"
                )

            rotations: List[Offsets] = []
            for i, rot_rows in enumerate(rotations_node):
                if not isinstance(rot_rows, (list, tuple)):
                    raise ValueError(
                        f"{kind!r}: rotations[{i}] must be a list of strings, got {type(rot_rows)!r}"
                    )
                rotations.append(mask_offsets(_parse_rotation(rot_rows)))

            cell_counts = [len(r) for r in rotations]
            if len(set(cell_counts)) != 1:
                raise ValueError(f"{kind!r}: rotations must have same filled cell count, got {cell_counts}")

            if expected_cells is not None and cell_counts[0] != int(expected_cells):
                raise ValueError(f"{kind!r}: expected {expected_cells} filled cells, got {cell_counts[0]}")

            color = _parse_color(node.get("color"))

            pieces[kind] = PieceDef(kind=kind, rotations=tuple(rotations), color=color)
            kind_order.append(kind)

        return cls(pieces=pieces, kind_order=tuple(kind_order))

    def kinds(self) -> Tuple[str, ...]:
        return self.kind_order

    def __contains__(self, kind: str) -> bool:
        return kind in self.pieces

    def __len__(self) -> int:
        return len(self.kind_order)

    def get(self, kind: str) -> PieceDef:
        try:
            return self.pieces[kind]
        except KeyError as e:
            raise KeyError(f"unknown piece kind {kind!r}. known kinds={list(self.kind_order)!r}") from e

    def orientation(self, kind: str, rot: int) -> Offsets:
        return self.get(kind).orientation(rot)

    def cells(self, kind: str, rot: int, x: int, y: int) -> Tuple[Cell, ...]:
        return tuple((int(x) + dx, int(y) + dy) for dx, dy in self.orientation(kind, rot))

    def random_piece(self, rng: np.random.Generator) -> str:
        return draw_uniform(rng, self.kind_order)

    def kind_idx(self, kind: str) -> int:
        try:
            idx = self.kind_order.index(kind)
        except ValueError as e:
            raise KeyError(f"unknown piece kind {kind!r}") from e
        return int(idx)

    def board_id(self, kind: str) -> int:
        return int(self.kind_idx(kind) + 1)

    def board_id_to_kind(self, board_id: int) -> str:
        bid = int(board_id)
        if bid <= 0 or bid > len(self.kind_order):
            raise ValueError(f"board_id out of range: {bid} (valid 1..{len(self.kind_order)})")
        return self.kind_order[bid - 1]

    def color_of(self, kind: str) -> Optional[Tuple[int, int, int]]:
        return self.get(kind).color


@lru_cache(maxsize=1)
def classic7() -> PieceSet:
    """The bundled 7-tetromino catalog (loaded once)."""
    return PieceSet.from_yaml(PieceSet.default_classic7_path(), expected_cells=CELLS_PER_PIECE)


__all__ = ["Offsets", "PieceDef", "PieceSet", "classic7", "mask_offsets"]
