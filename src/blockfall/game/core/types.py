# src/blockfall/game/core/types.py
from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum, auto
from typing import TYPE_CHECKING, Iterable, Optional, Tuple

import numpy as np

from blockfall.game.core.constants import NUM_ROTATIONS

if TYPE_CHECKING:
    from blockfall.game.core.pieceset import PieceSet

Cell = Tuple[int, int]


class Intent(Enum):
    LEFT = auto()
    RIGHT = auto()
    ROTATE = auto()
    SOFT_DROP = auto()
    HARD_DROP = auto()


# Application order inside one control tick: lateral moves and rotation first,
# then vertical moves (hard drop supersedes soft drop).
INTENT_ORDER: Tuple[Intent, ...] = (
    Intent.ROTATE,
    Intent.LEFT,
    Intent.RIGHT,
    Intent.SOFT_DROP,
    Intent.HARD_DROP,
)

_INTENT_ALIASES = {
    "left": Intent.LEFT,
    "right": Intent.RIGHT,
    "rotate": Intent.ROTATE,
    "rot": Intent.ROTATE,
    "rot_cw": Intent.ROTATE,
    "up": Intent.ROTATE,
    "down": Intent.SOFT_DROP,
    "soft_drop": Intent.SOFT_DROP,
    "hard_drop": Intent.HARD_DROP,
    "drop": Intent.HARD_DROP,
    "space": Intent.HARD_DROP,
}


def parse_intent(value: object) -> Intent:
    """
    Normalize an input event into an Intent.

    Accepts Intent members and case-insensitive names/aliases ("left", "down", "drop", ...).
    """
    if isinstance(value, Intent):
        return value
    s = str(value).strip().lower()
    try:
        return _INTENT_ALIASES[s]
    except KeyError as e:
        raise ValueError(f"unknown intent {value!r} (known: {sorted(_INTENT_ALIASES)!r})") from e


class PieceStatus(Enum):
    """
    Lifecycle of the active piece.

      WAITING_SPAWN -> FALLING -> LANDED -> LOCKING -> WAITING_SPAWN
      FALLING -> DROPPED -> WAITING_SPAWN     (hard drop, no grace tick)
      any -> GAME_OVER                        (terminal)

    LANDED / LOCKING are the two "just touched bottom" ticks; LOCKING is the grace tick.
    """

    WAITING_SPAWN = auto()
    FALLING = auto()
    LANDED = auto()
    LOCKING = auto()
    DROPPED = auto()
    GAME_OVER = auto()


@dataclass(frozen=True)
class ActivePiece:
    kind: str
    rot: int
    x: int
    y: int

    def moved(self, dx: int = 0, dy: int = 0) -> "ActivePiece":
        return replace(self, x=self.x + int(dx), y=self.y + int(dy))

    def rotated(self, dir: int = 1) -> "ActivePiece":
        # No wall kicks: only the rotation index changes.
        return replace(self, rot=(self.rot + int(dir)) % NUM_ROTATIONS)

    def cells(self, pieces: "PieceSet") -> Tuple[Cell, ...]:
        return pieces.cells(self.kind, self.rot, self.x, self.y)


@dataclass(frozen=True)
class IntentQueue:
    """
    Pending intents between control ticks.

    A set, not a multiset: the same intent pushed on several frames collapses to one.
    """

    pending: frozenset = frozenset()

    def push(self, intents: Iterable[object]) -> "IntentQueue":
        new = frozenset(parse_intent(i) for i in intents)
        if not new or new <= self.pending:
            return self
        return IntentQueue(pending=self.pending | new)

    def drain(self) -> Tuple[frozenset, "IntentQueue"]:
        return self.pending, IntentQueue()

    def __contains__(self, intent: object) -> bool:
        return parse_intent(intent) in self.pending

    def __len__(self) -> int:
        return len(self.pending)


@dataclass(frozen=True)
class FrameInput:
    """One frame of external input: discrete intents + elapsed seconds since last frame."""

    intents: frozenset = frozenset()
    dt: float = 0.0

    @classmethod
    def of(cls, *intents: object, dt: float = 0.0) -> "FrameInput":
        return cls(intents=frozenset(parse_intent(i) for i in intents), dt=float(dt))


@dataclass(frozen=True)
class State:
    """
    Render-facing snapshot.

    Contracts:
      - grid is a COPY of the locked board (no active overlay), 0=empty, 1..K=board id.
      - active_cells / ghost_cells are absolute board cells; empty tuples when no piece is in play.
      - ghost_cells is the active piece shifted down by the hard-drop depth.
      - colors are RGB tuples from the piece set (None if the set has no color for the kind).
    """

    grid: np.ndarray
    score: int
    lines: int
    level: int
    game_over: bool
    status: PieceStatus

    active_kind: Optional[str]
    active_rot: int
    active_cells: Tuple[Cell, ...]
    ghost_cells: Tuple[Cell, ...]
    active_color: Optional[Tuple[int, int, int]]

    next_kind: str
    next_color: Optional[Tuple[int, int, int]]

    cell_size: int


__all__ = [
    "Cell",
    "Intent",
    "INTENT_ORDER",
    "parse_intent",
    "PieceStatus",
    "ActivePiece",
    "IntentQueue",
    "FrameInput",
    "State",
]
