# tests/test_game.py
from __future__ import annotations

from dataclasses import replace

import numpy as np
import pytest

from blockfall.game.core.board import Board
from blockfall.game.core.collision import overlaps
from blockfall.game.core.game import GameContext, GameState, TetrisGame, new_game, snapshot, spawn, tick
from blockfall.game.core.rules import GravityConfig, ScoreState
from blockfall.game.core.types import ActivePiece, FrameInput, Intent, PieceStatus

CONTROL = 0.25


def _ctx(*, gravity_period: float = 1000.0) -> GameContext:
    # Huge gravity period: only the control timer fires unless a test wants gravity.
    return GameContext(
        gravity=GravityConfig(period=gravity_period, decay=1.0, min_period=gravity_period),
        control_period=CONTROL,
    )


def _fresh(ctx: GameContext, *, board: Board | None = None, kind: str = "T") -> GameState:
    s = new_game(ctx, rng=np.random.default_rng(0))
    if board is not None:
        s = replace(s, board=board)
    return spawn(s, ctx, kind=kind)


def _step(s: GameState, ctx: GameContext, *intents: Intent, dt: float = CONTROL) -> GameState:
    return tick(s, FrameInput.of(*intents, dt=dt), ctx)


def test_new_game_waits_for_spawn() -> None:
    ctx = _ctx()
    s = new_game(ctx, rng=np.random.default_rng(0))
    assert s.status is PieceStatus.WAITING_SPAWN
    assert s.piece is None
    assert s.board.occupied_count() == 0
    assert s.next_kind in ctx.pieces
    assert s.score == ScoreState(score=0, level=1, lines=0)


def test_first_tick_spawns_the_preview_piece() -> None:
    ctx = _ctx()
    s = new_game(ctx, rng=np.random.default_rng(0))
    preview = s.next_kind
    s = _step(s, ctx, dt=0.0)
    assert s.status is PieceStatus.FALLING
    assert s.piece == ActivePiece(kind=preview, rot=0, x=4, y=0)


def test_spawned_t_piece_cells() -> None:
    ctx = _ctx()
    s = _fresh(ctx)
    assert s.piece == ActivePiece(kind="T", rot=0, x=4, y=0)
    assert set(s.piece.cells(ctx.pieces)) == {(4, 0), (5, 0), (6, 0), (5, 1)}


def test_nine_lefts_stop_at_the_wall() -> None:
    ctx = _ctx()
    s = _fresh(ctx)
    xs = []
    for _ in range(9):
        s = _step(s, ctx, Intent.LEFT)
        xs.append(s.piece.x)
    assert xs == [3, 2, 1, 0, 0, 0, 0, 0, 0]
    assert s.status is PieceStatus.FALLING
    assert s.board.occupied_count() == 0


def test_intents_between_control_ticks_collapse() -> None:
    ctx = _ctx()
    s = _fresh(ctx)
    for _ in range(3):
        s = _step(s, ctx, Intent.LEFT, dt=0.0625)
    assert s.piece.x == 4
    assert len(s.intents) == 1
    s = _step(s, ctx, dt=0.0625)
    assert s.piece.x == 3
    assert len(s.intents) == 0


def test_gravity_and_soft_drop_in_same_tick_descend_once() -> None:
    ctx = _ctx(gravity_period=CONTROL)
    s = _fresh(ctx)
    s = _step(s, ctx, Intent.SOFT_DROP)
    assert s.piece.y == 1


def test_gravity_alone_descends_without_draining_intents() -> None:
    ctx = _ctx(gravity_period=0.125)
    s = _fresh(ctx)
    s = _step(s, ctx, Intent.LEFT, dt=0.125)
    assert s.piece == ActivePiece(kind="T", rot=0, x=4, y=1)
    assert Intent.LEFT in s.intents


def test_hard_drop_locks_on_next_tick_without_grace() -> None:
    ctx = _ctx()
    s = _fresh(ctx)
    s = _step(s, ctx, Intent.HARD_DROP)
    assert s.status is PieceStatus.DROPPED
    assert s.piece.y == 18
    assert s.board.occupied_count() == 0

    s = _step(s, ctx, dt=0.0)
    assert s.status is PieceStatus.WAITING_SPAWN
    assert s.piece is None
    assert sorted(s.board.cells()) == [(4, 18), (5, 18), (5, 19), (6, 18)]
    assert s.board.kind_at((5, 19)) == ctx.pieces.board_id("T")

    s = _step(s, ctx, dt=0.0)
    assert s.status is PieceStatus.FALLING
    assert s.piece is not None


def test_landing_takes_one_grace_tick_and_allows_a_nudge() -> None:
    ctx = _ctx()
    s = _fresh(ctx)
    s = replace(s, piece=ActivePiece(kind="T", rot=0, x=4, y=18))

    s = _step(s, ctx)
    assert s.status is PieceStatus.LANDED
    s = _step(s, ctx)
    assert s.status is PieceStatus.LOCKING
    assert s.board.occupied_count() == 0

    s = _step(s, ctx, Intent.LEFT)
    assert s.status is PieceStatus.WAITING_SPAWN
    assert sorted(s.board.cells()) == [(3, 18), (4, 18), (4, 19), (5, 18)]


def test_nudging_off_a_ledge_resumes_falling() -> None:
    ctx = _ctx()
    board = Board.empty(h=20, w=10)
    board.commit([(1, 19)])
    s = _fresh(ctx, board=board)
    s = replace(s, piece=ActivePiece(kind="T", rot=0, x=0, y=17))

    s = _step(s, ctx)
    assert s.status is PieceStatus.LANDED
    s = _step(s, ctx, Intent.RIGHT)
    assert s.piece.x == 1
    assert s.status is PieceStatus.FALLING


def test_single_line_clear_scores_and_compacts() -> None:
    ctx = _ctx()
    board = Board.empty(h=20, w=10)
    board.commit([(x, 19) for x in range(10) if x not in (4, 5, 6, 7)])
    board.commit([(0, 18)])
    s = _fresh(ctx, board=board, kind="I")

    s = _step(s, ctx, Intent.HARD_DROP)
    s = _step(s, ctx, dt=0.0)

    assert s.status is PieceStatus.WAITING_SPAWN
    assert s.score == ScoreState(score=100, level=1, lines=1)
    assert list(s.board.cells()) == [(0, 19)]
    assert s.board.completed_rows() == []


def test_tetris_scores_level_times_thousand() -> None:
    ctx = _ctx()
    board = Board.empty(h=20, w=10)
    for y in range(16, 20):
        board.commit([(x, y) for x in range(9)])
    s = _fresh(ctx, board=board, kind="I")
    s = replace(s, piece=ActivePiece(kind="I", rot=1, x=7, y=0), score=ScoreState(score=50, level=2, lines=12))

    s = _step(s, ctx, Intent.HARD_DROP)
    s = _step(s, ctx, dt=0.0)

    assert s.score == ScoreState(score=50 + 2 * 1000, level=2, lines=16)
    assert s.board.occupied_count() == 0


def test_level_up_shortens_gravity_period() -> None:
    ctx = GameContext(gravity=GravityConfig(period=0.8, decay=0.5, min_period=0.05), control_period=CONTROL)
    board = Board.empty(h=20, w=10)
    board.commit([(x, 19) for x in range(10) if x not in (4, 5, 6, 7)])
    s = _fresh(ctx, board=board, kind="I")
    s = replace(s, score=ScoreState(score=0, level=1, lines=9))

    s = _step(s, ctx, Intent.HARD_DROP)
    s = _step(s, ctx, dt=0.0)

    assert s.score.level == 2
    assert s.gravity_timer.period == pytest.approx(0.4)


def test_topping_out_is_terminal() -> None:
    ctx = _ctx()
    board = Board.empty(h=20, w=10)
    board.commit([(5, 2)])
    s = _fresh(ctx, board=board)

    s = _step(s, ctx, Intent.HARD_DROP)
    assert s.piece.y == 0
    s = _step(s, ctx, dt=0.0)
    assert s.status is PieceStatus.GAME_OVER
    assert s.game_over
    assert s.piece is None

    grid = s.board.grid.copy()
    score = s.score
    for intent in (Intent.LEFT, Intent.RIGHT, Intent.ROTATE, Intent.HARD_DROP):
        s = _step(s, ctx, intent)
    assert s.status is PieceStatus.GAME_OVER
    assert s.piece is None
    assert np.array_equal(s.board.grid, grid)
    assert s.score == score
    assert len(s.intents) == 4


def test_clear_that_empties_row_zero_keeps_the_game_going() -> None:
    ctx = _ctx()
    board = Board.empty(h=20, w=10)
    board.commit([(x, 1) for x in range(10) if x != 5])
    s = _fresh(ctx, board=board)

    s = _step(s, ctx, Intent.HARD_DROP)
    assert s.piece.y == 0
    s = _step(s, ctx, dt=0.0)

    assert s.status is PieceStatus.WAITING_SPAWN
    assert s.score == ScoreState(score=100, level=1, lines=1)
    assert sorted(s.board.cells()) == [(4, 1), (5, 1), (6, 1)]


def test_blocked_spawn_ends_the_game() -> None:
    ctx = _ctx()
    board = Board.empty(h=20, w=10)
    board.commit([(5, 1)])
    s = new_game(ctx, rng=np.random.default_rng(0))
    s = replace(s, board=board)
    s = spawn(s, ctx, kind="T")
    assert s.status is PieceStatus.GAME_OVER
    assert s.piece is None


def test_spawn_requires_waiting_status() -> None:
    ctx = _ctx()
    s = _fresh(ctx)
    with pytest.raises(RuntimeError, match="WAITING_SPAWN"):
        spawn(s, ctx, kind="O")


def test_tick_does_not_modify_its_input() -> None:
    ctx = _ctx()
    s0 = _fresh(ctx)
    s0 = replace(s0, piece=ActivePiece(kind="T", rot=0, x=4, y=18), status=PieceStatus.LOCKING)
    grid0 = s0.board.grid.copy()

    s1 = _step(s0, ctx, Intent.LEFT)
    assert s1.status is PieceStatus.WAITING_SPAWN
    assert s0.status is PieceStatus.LOCKING
    assert s0.piece == ActivePiece(kind="T", rot=0, x=4, y=18)
    assert np.array_equal(s0.board.grid, grid0)
    assert s1.board is not s0.board


def test_snapshot_exposes_active_ghost_and_counters() -> None:
    ctx = _ctx()
    s = _fresh(ctx)
    snap = snapshot(s, ctx)
    assert snap.active_kind == "T"
    assert set(snap.active_cells) == {(4, 0), (5, 0), (6, 0), (5, 1)}
    assert set(snap.ghost_cells) == {(4, 18), (5, 18), (6, 18), (5, 19)}
    assert snap.active_color == ctx.pieces.color_of("T")
    assert snap.score == 0 and snap.level == 1 and snap.lines == 0
    assert not snap.game_over
    assert snap.cell_size == ctx.cell_size
    assert not snap.grid.flags.writeable


def test_tetris_game_facade_runs_and_keeps_invariants() -> None:
    game = TetrisGame(_ctx(gravity_period=0.5), seed=7)
    state = game.reset(seed=7)
    assert state.status is PieceStatus.WAITING_SPAWN

    rng = np.random.default_rng(123)
    names = ["left", "right", "rotate", "down", "drop"]
    prev_level = 1
    for _ in range(5000):
        pressed = [n for n in names if rng.random() < 0.08]
        state = game.step(pressed, dt=1.0 / 60.0)

        gs = game.game_state
        assert gs.board.completed_rows() == []
        if gs.status in (PieceStatus.FALLING, PieceStatus.LANDED, PieceStatus.LOCKING):
            assert not overlaps(gs.board, gs.piece.cells(game.ctx.pieces))
        assert state.level == max(1, 1 + state.lines // 10)
        assert state.level >= prev_level
        prev_level = state.level
        if state.game_over:
            break


def test_tetris_game_reset_with_same_seed_replays() -> None:
    game = TetrisGame(_ctx(), seed=1)
    kinds_a = []
    game.reset(seed=99)
    for _ in range(5):
        kinds_a.append(game.step(dt=0.0).active_kind)
        game.step(["drop"], dt=CONTROL)
        game.step(dt=0.0)

    kinds_b = []
    game.reset(seed=99)
    for _ in range(5):
        kinds_b.append(game.step(dt=0.0).active_kind)
        game.step(["drop"], dt=CONTROL)
        game.step(dt=0.0)

    assert kinds_a == kinds_b


def test_unknown_intent_name_is_rejected() -> None:
    game = TetrisGame(_ctx(), seed=0)
    with pytest.raises(ValueError, match="unknown intent"):
        game.step(["jump"], dt=0.0)


def test_spawn_and_drop_frames_still_advance_timers() -> None:
    ctx = _ctx()
    s = new_game(ctx, rng=np.random.default_rng(0))
    s = _step(s, ctx, dt=0.125)
    assert s.status is PieceStatus.FALLING
    assert s.control_timer.elapsed == pytest.approx(0.125)
    assert s.gravity_timer.elapsed == pytest.approx(0.125)

    s = _step(s, ctx, Intent.HARD_DROP, dt=0.125)
    assert s.status is PieceStatus.DROPPED
    assert s.control_timer.elapsed == pytest.approx(0.0)

    s = _step(s, ctx, dt=0.0625)
    assert s.status is PieceStatus.WAITING_SPAWN
    assert s.control_timer.elapsed == pytest.approx(0.0625)


def test_context_rejects_boards_too_narrow_for_spawn() -> None:
    with pytest.raises(ValueError, match="does not fit at spawn"):
        GameContext(width=5)
    with pytest.raises(ValueError, match="at least 4x4"):
        GameContext(width=10, height=3)

    ctx = GameContext(width=6)
    s = spawn(new_game(ctx, rng=np.random.default_rng(0)), ctx, kind="I")
    assert s.status is PieceStatus.FALLING
