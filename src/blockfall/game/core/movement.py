# src/blockfall/game/core/movement.py
from __future__ import annotations

from dataclasses import dataclass
from typing import AbstractSet

from blockfall.game.core.board import Board
from blockfall.game.core.collision import overlaps, resolve
from blockfall.game.core.pieceset import PieceSet
from blockfall.game.core.types import INTENT_ORDER, ActivePiece, Intent


@dataclass(frozen=True)
class MoveOutcome:
    piece: ActivePiece
    hard_dropped: bool = False
    descended: int = 0


def apply_intents(
        *,
        board: Board,
        pieces: PieceSet,
        piece: ActivePiece,
        intents: AbstractSet[Intent],
        gravity: bool = False,
) -> MoveOutcome:
    """
    Apply one control tick worth of intents to the active piece.

    Rules:
      - intents are a set and are applied in INTENT_ORDER
      - blocking is recomputed after every accepted step (never reused from an earlier step)
      - LEFT/RIGHT shift by one column unless blocked on that side
      - ROTATE advances the rotation index (no wall kicks); a rotation whose cells would leave
        the board or land on settled cells is ignored. This intentionally departs from the
        unconditional catalog rotation (ActivePiece.rotated) so the piece never overlaps the board
      - gravity and SOFT_DROP request the same one-row descent (max, not additive)
      - HARD_DROP moves down by the drop depth and supersedes any pending descent
    """
    p = piece

    def blocked():
        return resolve(board, p.cells(pieces))

    for intent in INTENT_ORDER:
        if intent not in intents:
            continue
        if intent is Intent.ROTATE:
            cand = p.rotated(+1)
            if not overlaps(board, cand.cells(pieces)):
                p = cand
        elif intent is Intent.LEFT:
            if not blocked().left:
                p = p.moved(dx=-1)
        elif intent is Intent.RIGHT:
            if not blocked().right:
                p = p.moved(dx=+1)

    if Intent.HARD_DROP in intents:
        depth = blocked().drop_depth
        return MoveOutcome(piece=p.moved(dy=depth), hard_dropped=True, descended=depth)

    if gravity or Intent.SOFT_DROP in intents:
        if not blocked().bottom:
            return MoveOutcome(piece=p.moved(dy=1), descended=1)

    return MoveOutcome(piece=p)


__all__ = ["MoveOutcome", "apply_intents"]
