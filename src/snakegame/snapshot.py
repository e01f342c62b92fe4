"""Read-only board views handed to renderers."""

from __future__ import annotations

from dataclasses import dataclass

from .buffs import BuffKind
from .effects import EffectKind
from .utils import Direction, Position


@dataclass(slots=True, frozen=True)
class FoodView:
    position: Position
    name: str
    points: int
    color: tuple[int, int, int]
    size: float
    pulse: bool
    age_ms: float


@dataclass(slots=True, frozen=True)
class BuffView:
    position: Position
    kind: BuffKind
    color: tuple[int, int, int]
    shape: str
    age_ms: float
    time_left_ms: float
    urgency: float


@dataclass(slots=True, frozen=True)
class GameSnapshot:
    """Small, immutable copy of everything a frame needs to draw."""

    state: str
    tile_count: int
    snake: tuple[Position, ...]
    direction: Direction
    food: tuple[FoodView, ...]
    buffs: tuple[BuffView, ...]
    effects: dict[EffectKind, float]
    score: int
    elapsed_seconds: int
    interval_ms: float
    cause: str | None = None

    @property
    def head(self) -> Position:
        return self.snake[0]

    @property
    def invincible(self) -> bool:
        return EffectKind.INVINCIBLE in self.effects
