# src/blockfall/utils/paths.py
from __future__ import annotations

from pathlib import Path


def _find_repo_root(start: Path) -> Path | None:
    for p in [start, *start.parents]:
        if (p / "pyproject.toml").is_file():
            return p
    return None


def repo_root() -> Path:
    """
    Return the repository root by searching upwards for pyproject.toml.
    """
    here = Path(__file__).resolve()
    root = _find_repo_root(here.parent)
    if root is None:
        raise FileNotFoundError("Could not locate repo root (pyproject.toml not found).")
    return root


def assets_dir() -> Path:
    """
    Return repo_root/assets (must exist).
    """
    p = repo_root() / "assets"
    if not p.is_dir():
        raise FileNotFoundError(f"Assets directory not found: {p}")
    return p


def pieces_dir() -> Path:
    """
    Return repo_root/assets/pieces (must exist).
    """
    p = assets_dir() / "pieces"
    if not p.is_dir():
        raise FileNotFoundError(f"Pieces directory not found: {p}")
    return p


def configs_dir() -> Path:
    """
    Return repo_root/configs (must exist).
    """
    p = repo_root() / "configs"
    if not p.is_dir():
        raise FileNotFoundError(f"Configs directory not found: {p}")
    return p


def resolve_repo_path(raw: str | Path, *, repo: Path | None = None) -> Path:
    """
    Resolve a path that may be absolute or repo-relative.
    """
    s = str(raw).strip().strip('"').strip("'")
    if not s:
        raise ValueError("empty path")
    p = Path(s)
    if p.is_absolute():
        return p
    return ((repo or repo_root()) / p).resolve()


__all__ = ["repo_root", "assets_dir", "pieces_dir", "configs_dir", "resolve_repo_path"]
