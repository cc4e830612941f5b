# src/blockfall/apps/simulate/entrypoint.py
from __future__ import annotations

import argparse
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

import numpy as np

from blockfall.core.config.io import load_game_config
from blockfall.core.game.config import GameConfig
from blockfall.game.core.types import Intent, PieceStatus
from blockfall.game.factory import make_game
from blockfall.utils.logging import setup_logger
from blockfall.utils.seed import seed32_from

_ALL_INTENTS: tuple[Intent, ...] = tuple(Intent)


@dataclass(frozen=True)
class EpisodeResult:
    episode: int
    seed: int
    frames: int
    pieces: int
    score: int
    lines: int
    level: int
    game_over: bool


def random_intents(rng: np.random.Generator, *, prob: float) -> list[Intent]:
    """Each intent independently pressed with probability prob on this frame."""
    if prob <= 0.0:
        return []
    hits = rng.random(len(_ALL_INTENTS)) < float(prob)
    return [i for i, hit in zip(_ALL_INTENTS, hits) if hit]


def run_episode(
        *,
        cfg: GameConfig,
        episode: int,
        max_frames: int,
        fps: float,
        intent_prob: float,
        logger: logging.Logger,
) -> EpisodeResult:
    ep_seed = seed32_from(base_seed=int(cfg.seed), stream_id=int(episode))
    game = make_game(cfg)
    game.reset(seed=ep_seed)
    input_rng = np.random.default_rng(seed32_from(base_seed=ep_seed, stream_id=0x1A7))

    dt = 1.0 / float(fps)
    pieces = 0
    frames = 0
    state = game.state()
    while frames < max_frames and not state.game_over:
        prev = state.status
        state = game.step(random_intents(input_rng, prob=intent_prob), dt)
        frames += 1
        if prev is PieceStatus.WAITING_SPAWN and state.status is PieceStatus.FALLING:
            pieces += 1

    logger.info(
        "episode=%d seed=%d frames=%d pieces=%d score=%d lines=%d level=%d game_over=%s",
        episode,
        ep_seed,
        frames,
        pieces,
        state.score,
        state.lines,
        state.level,
        state.game_over,
    )
    return EpisodeResult(
        episode=int(episode),
        seed=int(ep_seed),
        frames=int(frames),
        pieces=int(pieces),
        score=int(state.score),
        lines=int(state.lines),
        level=int(state.level),
        game_over=bool(state.game_over),
    )


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Headless block-puzzle simulation driven by random input at a fixed frame rate"
    )
    parser.add_argument("--config", type=str, default=None, help="Game config YAML (top-level 'game:' optional).")
    parser.add_argument("--episodes", type=int, default=1)
    parser.add_argument("--frames", type=int, default=20_000, help="Frame cap per episode.")
    parser.add_argument("--fps", type=float, default=60.0, help="Simulated frames per second (dt = 1/fps).")
    parser.add_argument("--seed", type=int, default=None, help="Override config seed.")
    parser.add_argument("--piece-rule", type=str, default=None, choices=["uniform", "bag7"])
    parser.add_argument("--intent-prob", type=float, default=0.05, help="Per-frame probability of each intent.")
    parser.add_argument("--log-level", type=str, default="info")
    parser.add_argument("--no-rich", action="store_true", help="disable Rich logging")
    return parser.parse_args(argv)


def _build_config(args: argparse.Namespace) -> GameConfig:
    cfg = load_game_config(Path(args.config)) if args.config else GameConfig()
    overrides: dict[str, object] = {}
    if args.seed is not None:
        overrides["seed"] = int(args.seed)
    if args.piece_rule is not None:
        overrides["piece_rule"] = str(args.piece_rule)
    if overrides:
        cfg = GameConfig.model_validate({**cfg.model_dump(), **overrides})
    return cfg


def run_simulation(args: argparse.Namespace) -> int:
    logger = setup_logger(name="blockfall.simulate", use_rich=(not bool(args.no_rich)), level=str(args.log_level))

    if int(args.episodes) <= 0:
        raise ValueError(f"--episodes must be >= 1, got {args.episodes}")
    if float(args.fps) <= 0.0:
        raise ValueError(f"--fps must be > 0, got {args.fps}")

    cfg = _build_config(args)
    logger.info(
        "board=%dx%d piece_rule=%s seed=%d episodes=%d frames=%d fps=%.1f",
        cfg.width,
        cfg.height,
        cfg.piece_rule,
        cfg.seed,
        int(args.episodes),
        int(args.frames),
        float(args.fps),
    )

    t0 = time.perf_counter()
    results = [
        run_episode(
            cfg=cfg,
            episode=ep,
            max_frames=int(args.frames),
            fps=float(args.fps),
            intent_prob=float(args.intent_prob),
            logger=logger,
        )
        for ep in range(int(args.episodes))
    ]
    elapsed = time.perf_counter() - t0

    total_frames = sum(r.frames for r in results)
    logger.info(
        "DONE: episodes=%d frames=%d elapsed=%.3fs frames/s=%.1f avg_score=%.1f avg_lines=%.2f max_level=%d",
        len(results),
        total_frames,
        elapsed,
        total_frames / max(elapsed, 1e-12),
        float(np.mean([r.score for r in results])),
        float(np.mean([r.lines for r in results])),
        max(r.level for r in results),
    )
    return 0


__all__ = ["EpisodeResult", "random_intents", "run_episode", "parse_args", "run_simulation"]
