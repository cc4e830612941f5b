# src/blockfall/game/core/game.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Iterable, Optional

import numpy as np

from blockfall.game.core.board import Board
from blockfall.game.core.collision import drop_depth, overlaps, resolve
from blockfall.game.core.constants import CONTROL_PERIOD_S, DEFAULT_HEIGHT, DEFAULT_WIDTH, EMPTY_CELL
from blockfall.game.core.movement import apply_intents
from blockfall.game.core.piece_rules import PieceRule, UniformPieceRule
from blockfall.game.core.pieceset import PieceSet, classic7
from blockfall.game.core.rules import GravityConfig, ScoreConfig, ScoreState, gravity_period_for_level
from blockfall.game.core.timers import FixedTimer
from blockfall.game.core.types import ActivePiece, FrameInput, IntentQueue, PieceStatus, State

LOG = logging.getLogger(__name__)


@dataclass
class GameContext:
    """
    Static rules of one game plus the injected piece source.

    Everything here is read-only during tick() except the piece rule's RNG stream.
    """

    pieces: PieceSet = field(default_factory=classic7)
    piece_rule: PieceRule = field(default_factory=UniformPieceRule)
    score_cfg: ScoreConfig = field(default_factory=ScoreConfig)
    gravity: GravityConfig = field(default_factory=GravityConfig)
    control_period: float = CONTROL_PERIOD_S
    width: int = DEFAULT_WIDTH
    height: int = DEFAULT_HEIGHT
    cell_size: int = 25

    def __post_init__(self) -> None:
        w, h = int(self.width), int(self.height)
        if w < 4 or h < 4:
            raise ValueError(f"board must be at least 4x4, got {w}x{h}")
        x0 = self.spawn_x()
        for kind in self.pieces.kinds():
            cells = self.pieces.cells(kind, 0, x0, 0)
            if any(not (0 <= x < w and 0 <= y < h) for x, y in cells):
                raise ValueError(
                    f"piece {kind!r} does not fit at spawn ({x0}, 0) on a {w}x{h} board: cells={cells}"
                )

    def spawn_x(self) -> int:
        # 4 for the classic 10-wide board
        return (int(self.width) - 1) // 2


@dataclass(frozen=True)
class GameState:
    """
    Complete game state between two frames.

    Contracts:
      - piece is None exactly when status is WAITING_SPAWN or GAME_OVER
      - board is only replaced on lock (never mutated while a piece is falling)
      - score counters never decrease
    """

    board: Board
    status: PieceStatus
    next_kind: str
    piece: Optional[ActivePiece] = None
    score: ScoreState = ScoreState()
    intents: IntentQueue = IntentQueue()
    gravity_timer: FixedTimer = FixedTimer(period=GravityConfig().period)
    control_timer: FixedTimer = FixedTimer(period=CONTROL_PERIOD_S)

    @property
    def game_over(self) -> bool:
        return self.status is PieceStatus.GAME_OVER


def new_game(ctx: GameContext, *, rng: np.random.Generator | None = None) -> GameState:
    """
    Fresh state: empty board, no piece (WAITING_SPAWN), preview drawn.

    If rng is given the piece rule is reset with it; otherwise the rule must already be reset.
    """
    if rng is not None:
        ctx.piece_rule.reset(rng=rng, kinds=ctx.pieces.kinds())
    return GameState(
        board=Board.empty(h=ctx.height, w=ctx.width),
        status=PieceStatus.WAITING_SPAWN,
        next_kind=ctx.piece_rule.next_piece(),
        gravity_timer=FixedTimer(period=gravity_period_for_level(1, ctx.gravity)),
        control_timer=FixedTimer(period=ctx.control_period),
    )


def spawn(state: GameState, ctx: GameContext, *, kind: str | None = None) -> GameState:
    """
    Put a new piece in play at (spawn_x, 0), rotation 0.

    Without an explicit kind the preview is promoted and a new preview is drawn.
    A spawn that overlaps settled cells ends the game.
    """
    if state.status is not PieceStatus.WAITING_SPAWN:
        raise RuntimeError(f"spawn requires WAITING_SPAWN, status is {state.status.name}")

    next_kind = state.next_kind
    if kind is None:
        kind = state.next_kind
        next_kind = ctx.piece_rule.next_piece()
    ctx.pieces.get(kind)  # unknown kinds raise KeyError

    piece = ActivePiece(kind=str(kind), rot=0, x=ctx.spawn_x(), y=0)
    if overlaps(state.board, piece.cells(ctx.pieces)):
        LOG.debug("spawn blocked: kind=%s -> game over", kind)
        return replace(state, status=PieceStatus.GAME_OVER, next_kind=next_kind, piece=None)

    LOG.debug("spawn: kind=%s next=%s", kind, next_kind)
    return replace(state, status=PieceStatus.FALLING, next_kind=next_kind, piece=piece)


def _landing_status(status: PieceStatus, bottom_blocked: bool) -> PieceStatus:
    if not bottom_blocked:
        return PieceStatus.FALLING
    if status is PieceStatus.FALLING:
        return PieceStatus.LANDED
    if status is PieceStatus.LANDED:
        return PieceStatus.LOCKING
    # LOCKING: grace tick used up
    return PieceStatus.WAITING_SPAWN


def lock(state: GameState, ctx: GameContext) -> GameState:
    """
    Commit the active piece, clear completed rows, score, and end the piece's lifecycle.

    The intent queue is cleared: intents were issued for the piece that just locked.
    """
    piece = state.piece
    if piece is None:
        raise RuntimeError(f"lock requires an active piece (status={state.status.name})")

    cells = piece.cells(ctx.pieces)
    board = state.board.copy()
    board.commit(cells, board_id=ctx.pieces.board_id(piece.kind))

    rows = board.completed_rows()
    cleared = board.clear_and_compact(rows)
    score = state.score.after_clear(cleared, ctx.score_cfg)

    gravity_timer = state.gravity_timer
    if score.level != state.score.level:
        gravity_timer = gravity_timer.with_period(gravity_period_for_level(score.level, ctx.gravity))
        LOG.debug("level up: %d -> %d (gravity %.3fs)", state.score.level, score.level, gravity_timer.period)

    if cleared:
        LOG.debug("cleared rows=%s score=%d lines=%d", rows, score.score, score.lines)

    # top-out is judged on the compacted board
    topped_out = bool(np.any(board.grid[0] != EMPTY_CELL))
    status = PieceStatus.GAME_OVER if topped_out else PieceStatus.WAITING_SPAWN
    if topped_out:
        LOG.debug("topped out: kind=%s cells=%s score=%d", piece.kind, cells, score.score)

    return replace(
        state,
        board=board,
        status=status,
        piece=None,
        score=score,
        intents=IntentQueue(),
        gravity_timer=gravity_timer,
    )


def tick(state: GameState, frame: FrameInput, ctx: GameContext) -> GameState:
    """
    Advance the game by one frame. Returns a new state; the input state is not modified.

    Order:
      1) queue frame intents
      2) GAME_OVER: nothing else happens
      3) advance gravity + control timers (on every frame before game over)
      4) WAITING_SPAWN: spawn, done
         DROPPED: lock, done
         neither timer fired: done
      5) control tick: drain the queue and apply intents (gravity descent included when due);
         gravity-only tick: descend one row if possible
      6) recompute blocking on the moved piece and advance the landing state machine;
         lock at the end of the grace tick
    """
    queued = state.intents.push(frame.intents)
    s = replace(state, intents=queued)

    if s.status is PieceStatus.GAME_OVER:
        return s

    gravity_timer, gravity_fired = s.gravity_timer.advance(frame.dt)
    control_timer, control_fired = s.control_timer.advance(frame.dt)
    s = replace(s, gravity_timer=gravity_timer, control_timer=control_timer)

    if s.status is PieceStatus.WAITING_SPAWN:
        return spawn(s, ctx)
    if s.status is PieceStatus.DROPPED:
        return lock(s, ctx)
    if not (gravity_fired or control_fired):
        return s

    intents: frozenset = frozenset()
    if control_fired:
        intents, queue = s.intents.drain()
        s = replace(s, intents=queue)

    if s.piece is None:
        raise RuntimeError(f"no active piece in status {s.status.name}")
    outcome = apply_intents(
        board=s.board,
        pieces=ctx.pieces,
        piece=s.piece,
        intents=intents,
        gravity=gravity_fired,
    )
    if outcome.hard_dropped:
        return replace(s, piece=outcome.piece, status=PieceStatus.DROPPED)

    blocked = resolve(s.board, outcome.piece.cells(ctx.pieces))
    status = _landing_status(s.status, blocked.bottom)
    s = replace(s, piece=outcome.piece)
    if status is PieceStatus.WAITING_SPAWN:
        return lock(s, ctx)
    return replace(s, status=status)


def snapshot(state: GameState, ctx: GameContext) -> State:
    """Read-only render snapshot (board copy, active + ghost cells, counters)."""
    piece = state.piece
    active_cells: tuple = ()
    ghost_cells: tuple = ()
    active_color = None
    if piece is not None:
        active_cells = piece.cells(ctx.pieces)
        depth = drop_depth(state.board, active_cells)
        ghost_cells = tuple((x, y + depth) for x, y in active_cells)
        active_color = ctx.pieces.color_of(piece.kind)

    grid = state.board.grid.copy()
    grid.setflags(write=False)

    return State(
        grid=grid,
        score=int(state.score.score),
        lines=int(state.score.lines),
        level=int(state.score.level),
        game_over=bool(state.game_over),
        status=state.status,
        active_kind=None if piece is None else piece.kind,
        active_rot=0 if piece is None else int(piece.rot),
        active_cells=active_cells,
        ghost_cells=ghost_cells,
        active_color=active_color,
        next_kind=str(state.next_kind),
        next_color=ctx.pieces.color_of(state.next_kind),
        cell_size=int(ctx.cell_size),
    )


class TetrisGame:
    """
    Stateful facade over the pure tick() pipeline.

    Contracts:
      - reset()/step() return a State snapshot (board copy, active piece cells separately).
      - step() takes one frame of input: a set of intents (Intent members or names) and dt seconds.
      - GAME_OVER is terminal: step() keeps accepting input but nothing moves until reset().
      - An owner can inject its RNG via set_rng() before reset().
    """

    def __init__(self, ctx: GameContext | None = None, *, seed: int | None = None) -> None:
        self.ctx = ctx or GameContext()
        self._rng: np.random.Generator = np.random.default_rng(seed)
        self._state: GameState = new_game(self.ctx, rng=self._rng)

    def set_rng(self, rng: np.random.Generator) -> None:
        self._rng = rng

    def reset(self, *, seed: int | None = None) -> State:
        if seed is not None:
            self._rng = np.random.default_rng(int(seed))
        self._state = new_game(self.ctx, rng=self._rng)
        return self.state()

    def step(self, intents: Iterable[object] = (), dt: float = 0.0) -> State:
        self._state = tick(self._state, FrameInput.of(*intents, dt=dt), self.ctx)
        return self.state()

    @property
    def game_state(self) -> GameState:
        return self._state

    @property
    def game_over(self) -> bool:
        return self._state.game_over

    def state(self) -> State:
        return snapshot(self._state, self.ctx)


__all__ = [
    "GameContext",
    "GameState",
    "new_game",
    "spawn",
    "lock",
    "tick",
    "snapshot",
    "TetrisGame",
]
