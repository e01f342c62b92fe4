"""Shared constants and utility helpers for the snake game."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable, Tuple
import json
import random

DEFAULT_TILE_COUNT = 25
CELL_SIZE = 24
HUD_HEIGHT = 64
FPS = 60

BG_COLOR = (12, 14, 22)
GRID_COLOR = (26, 32, 48)
TEXT_COLOR = (220, 232, 245)
SHADOW_COLOR = (8, 10, 16)
SNAKE_COLOR = (80, 210, 110)
SNAKE_HEAD_COLOR = (140, 245, 160)
YELLOW = (255, 220, 80)
ORANGE = (255, 140, 60)
RED = (255, 82, 82)

Direction = Tuple[int, int]
Position = Tuple[int, int]

UP: Direction = (0, -1)
DOWN: Direction = (0, 1)
LEFT: Direction = (-1, 0)
RIGHT: Direction = (1, 0)
DIRECTIONS: tuple[Direction, ...] = (UP, DOWN, LEFT, RIGHT)

DATA_DIR = Path(".snakegame")
SETTINGS_FILE = DATA_DIR / "settings.json"
SCORES_FILE = DATA_DIR / "scores.json"


def ensure_data_dirs() -> None:
    """Create the data directory for save files."""
    DATA_DIR.mkdir(parents=True, exist_ok=True)


def clamp(value: float, minimum: float, maximum: float) -> float:
    """Clamp a value into a closed interval."""
    return max(minimum, min(maximum, value))


def is_opposite(a: Direction, b: Direction) -> bool:
    """Return whether two directions are opposite vectors."""
    return a[0] == -b[0] and a[1] == -b[1]


def add_direction(position: Position, direction: Direction) -> Position:
    """Move a grid position one cell along direction."""
    return (position[0] + direction[0], position[1] + direction[1])


def in_bounds(position: Position, tile_count: int) -> bool:
    """Check if a cell is inside a square board of tile_count cells per side."""
    x, y = position
    return 0 <= x < tile_count and 0 <= y < tile_count


def wrap_position(position: Position, tile_count: int) -> Position:
    """Fold a position back onto the board across opposite edges."""
    return (position[0] % tile_count, position[1] % tile_count)


def random_cell(tile_count: int, rng: random.Random) -> Position:
    """Return a uniformly random cell on the board."""
    return (rng.randrange(tile_count), rng.randrange(tile_count))


def random_free_cell(
    tile_count: int,
    occupied: Iterable[Position],
    rng: random.Random,
    attempts: int,
) -> Position | None:
    """Sample up to ``attempts`` random cells and return the first free one."""
    occupied_set = set(occupied)
    for _ in range(attempts):
        candidate = random_cell(tile_count, rng)
        if candidate not in occupied_set:
            return candidate
    return None


def load_json(path: Path, default: Any) -> Any:
    """Load JSON data, returning default when missing or malformed."""
    if not path.exists():
        return default
    try:
        with path.open("r", encoding="utf-8") as handle:
            return json.load(handle)
    except (json.JSONDecodeError, OSError):
        return default


def save_json(path: Path, payload: Any) -> None:
    """Save JSON data with deterministic formatting."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as handle:
        json.dump(payload, handle, indent=2, sort_keys=True)
