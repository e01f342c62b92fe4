"""Food definitions and guaranteed-availability spawning."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable
import logging
import random

from .utils import DEFAULT_TILE_COUNT, Position, random_cell, random_free_cell

logger = logging.getLogger(__name__)

FORCED_PLACEMENT_ATTEMPTS = 100


@dataclass(slots=True, frozen=True)
class FoodType:
    """Static properties of a food tier."""

    name: str
    points: int
    probability: float
    color: tuple[int, int, int]
    size: float = 0.8
    pulse: bool = False


FOOD_TYPES: tuple[FoodType, ...] = (
    FoodType("regular", points=1, probability=0.8, color=(255, 82, 82)),
    FoodType("bonus", points=3, probability=0.15, color=(255, 215, 64), size=0.9, pulse=True),
    FoodType("special", points=5, probability=0.05, color=(64, 196, 255), size=1.0, pulse=True),
)


@dataclass(slots=True)
class FoodItem:
    """Food placed on the board. Food never expires."""

    position: Position
    kind: FoodType
    created_at: float = 0.0

    @property
    def points(self) -> int:
        return self.kind.points


def pick_food_type(rng: random.Random, types: tuple[FoodType, ...] = FOOD_TYPES) -> FoodType:
    """Cumulative-probability draw over the food table."""
    roll = rng.random()
    cumulative = 0.0
    for food_type in types:
        cumulative += food_type.probability
        if roll < cumulative:
            return food_type
    return types[0]


@dataclass(slots=True)
class FoodSpawner:
    """Keeps at least one food item on the board."""

    tile_count: int = DEFAULT_TILE_COUNT
    weighted_tiers: bool = False
    max_attempts: int = 100
    rng: random.Random = field(default_factory=random.Random)
    items: list[FoodItem] = field(default_factory=list, init=False)
    eaten: int = field(default=0, init=False)

    def __post_init__(self) -> None:
        if self.tile_count < 1:
            raise ValueError(f"tile_count must be positive, got {self.tile_count}")

    def reset(self) -> None:
        """Clear food and statistics."""
        self.items.clear()
        self.eaten = 0

    @property
    def cells(self) -> set[Position]:
        return {item.position for item in self.items}

    def food_at(self, position: Position) -> FoodItem | None:
        for item in self.items:
            if item.position == position:
                return item
        return None

    def _next_type(self) -> FoodType:
        if self.weighted_tiers:
            return pick_food_type(self.rng)
        return FOOD_TYPES[0]

    def ensure_available(self, occupied: Iterable[Position], now: float = 0.0) -> FoodItem | None:
        """Spawn one food item if the board has none.

        Returns the new item, or None when food already existed.
        """
        if self.items:
            return None

        blocked = set(occupied) | self.cells
        position = random_free_cell(self.tile_count, blocked, self.rng, self.max_attempts)
        if position is None:
            logger.warning("No free cell for food after %d attempts, forcing placement", self.max_attempts)
            position = self._forced_position()

        item = FoodItem(position=position, kind=self._next_type(), created_at=now)
        self.items.append(item)
        logger.debug("Spawned %s food at %s", item.kind.name, position)
        return item

    def _forced_position(self) -> Position:
        # Overlap with the snake or buffs is tolerated here, stacking food is not.
        position = random_cell(self.tile_count, self.rng)
        for _ in range(FORCED_PLACEMENT_ATTEMPTS):
            if self.food_at(position) is None:
                break
            position = random_cell(self.tile_count, self.rng)
        return position

    def check_collision(self, head: Position) -> FoodItem | None:
        """Remove and return the food item under the head, if any."""
        item = self.food_at(head)
        if item is None:
            return None
        self.items.remove(item)
        self.eaten += 1
        return item
