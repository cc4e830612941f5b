# src/blockfall/game/core/constants.py
from __future__ import annotations

# Board / cell encoding
EMPTY_CELL: int = 0

# Classic board dimensions
DEFAULT_WIDTH: int = 10
DEFAULT_HEIGHT: int = 20

# Tetromino geometry: 4 rotation states, 4 cells each
NUM_ROTATIONS: int = 4
CELLS_PER_PIECE: int = 4

# Timer periods (seconds of elapsed time)
CONTROL_PERIOD_S: float = 0.20
GRAVITY_PERIOD_S: float = 0.80
GRAVITY_DECAY: float = 0.85
MIN_GRAVITY_PERIOD_S: float = 0.05

# Lines needed per level step
LINES_PER_LEVEL: int = 10
