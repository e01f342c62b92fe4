"""Buff definitions and spawning logic."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable
import logging
import random

from .utils import DEFAULT_TILE_COUNT, Position, random_free_cell

logger = logging.getLogger(__name__)

# Board lifetime for buffs whose effect has no duration of its own.
DEFAULT_BUFF_LIFETIME_MS = 8000


class BuffKind(str, Enum):
    """Supported buff variants."""

    SPEED_BOOST = "speed_boost"
    DOUBLE_POINTS = "double_points"
    MEGA_GROWTH = "mega_growth"
    INVINCIBLE = "invincible"
    TIME_FREEZE = "time_freeze"


@dataclass(slots=True, frozen=True)
class BuffType:
    """Static properties of a buff variant."""

    kind: BuffKind
    points: int
    probability: float
    duration_ms: int | None
    color: tuple[int, int, int]
    shape: str

    @property
    def lifetime_ms(self) -> int:
        """How long an uncollected buff stays on the board."""
        return self.duration_ms if self.duration_ms is not None else DEFAULT_BUFF_LIFETIME_MS


BUFF_TYPES: tuple[BuffType, ...] = (
    BuffType(BuffKind.SPEED_BOOST, points=15, probability=0.30, duration_ms=5000, color=(255, 107, 53), shape="diamond"),
    BuffType(BuffKind.DOUBLE_POINTS, points=20, probability=0.25, duration_ms=8000, color=(255, 210, 63), shape="star"),
    BuffType(BuffKind.MEGA_GROWTH, points=50, probability=0.20, duration_ms=None, color=(6, 255, 165), shape="hexagon"),
    BuffType(BuffKind.INVINCIBLE, points=30, probability=0.15, duration_ms=3000, color=(177, 156, 217), shape="shield"),
    BuffType(BuffKind.TIME_FREEZE, points=25, probability=0.10, duration_ms=4000, color=(0, 212, 255), shape="crystal"),
)

BUFF_TYPES_BY_KIND = {buff_type.kind: buff_type for buff_type in BUFF_TYPES}


@dataclass(slots=True)
class Buff:
    """Collectible buff entity with a fixed time on the board."""

    id: str
    position: Position
    buff_type: BuffType
    created_at: float
    expires_at: float

    @property
    def kind(self) -> BuffKind:
        return self.buff_type.kind

    @property
    def points(self) -> int:
        return self.buff_type.points

    def expired(self, now: float) -> bool:
        return now > self.expires_at

    def urgency(self, now: float) -> float:
        """Fraction of the board lifetime already used, from 0.0 to 1.0."""
        total = self.expires_at - self.created_at
        if total <= 0:
            return 1.0
        return max(0.0, min(1.0, (now - self.created_at) / total))


def pick_buff_type(rng: random.Random, types: tuple[BuffType, ...] = BUFF_TYPES) -> BuffType:
    """Cumulative-probability draw over the buff table."""
    roll = rng.random()
    cumulative = 0.0
    for buff_type in types:
        cumulative += buff_type.probability
        if roll < cumulative:
            return buff_type
    return types[0]


@dataclass(slots=True)
class BuffSpawner:
    """Spawner and bookkeeping for time-limited buffs.

    All timestamps are in milliseconds of the caller's clock. The auto-spawn
    timer is a deadline that :meth:`try_auto_spawn` checks, so spawns only ever
    happen on the caller's tick.
    """

    tile_count: int = DEFAULT_TILE_COUNT
    max_buffs: int = 2
    food_spawn_chance: float = 0.15
    auto_spawn_chance: float = 0.8
    min_spawn_delay_ms: float = 3000
    max_spawn_delay_ms: float = 8000
    max_attempts: int = 50
    rng: random.Random = field(default_factory=random.Random)

    buffs: list[Buff] = field(default_factory=list, init=False)
    collected: int = field(default=0, init=False)
    spawned: int = field(default=0, init=False)
    last_spawn_time: float | None = field(default=None, init=False)
    next_auto_spawn_at: float | None = field(default=None, init=False)

    def __post_init__(self) -> None:
        if self.tile_count < 1:
            raise ValueError(f"tile_count must be positive, got {self.tile_count}")
        if self.max_buffs < 0:
            raise ValueError(f"max_buffs must not be negative, got {self.max_buffs}")
        if self.min_spawn_delay_ms < 0 or self.min_spawn_delay_ms > self.max_spawn_delay_ms:
            raise ValueError(
                f"invalid spawn delay range {self.min_spawn_delay_ms}..{self.max_spawn_delay_ms}"
            )

    def reset(self) -> None:
        """Clear buffs, statistics, and the auto-spawn timer."""
        self.buffs.clear()
        self.collected = 0
        self.spawned = 0
        self.last_spawn_time = None
        self.cancel()

    @property
    def cells(self) -> set[Position]:
        return {buff.position for buff in self.buffs}

    @property
    def armed(self) -> bool:
        return self.next_auto_spawn_at is not None

    def schedule_auto_spawn(self, now: float) -> float:
        """Arm the auto-spawn timer with a randomized delay."""
        delay = self.rng.uniform(self.min_spawn_delay_ms, self.max_spawn_delay_ms)
        self.next_auto_spawn_at = now + delay
        return self.next_auto_spawn_at

    def cancel(self) -> None:
        """Disarm the auto-spawn timer."""
        self.next_auto_spawn_at = None

    def try_auto_spawn(self, now: float, occupied: Iterable[Position]) -> Buff | None:
        """Fire the auto-spawn timer when due and re-arm it."""
        if self.next_auto_spawn_at is None or now < self.next_auto_spawn_at:
            return None
        buff = self.try_spawn(now, occupied, self.auto_spawn_chance)
        self.schedule_auto_spawn(now)
        return buff

    def try_spawn_on_food_eaten(self, now: float, occupied: Iterable[Position]) -> Buff | None:
        """Offer a low-probability spawn after food has been eaten."""
        return self.try_spawn(now, occupied, self.food_spawn_chance)

    def try_spawn(self, now: float, occupied: Iterable[Position], chance: float) -> Buff | None:
        """Spawn a buff with the given probability when capacity and cooldown allow."""
        if len(self.buffs) >= self.max_buffs:
            return None
        if self.last_spawn_time is not None and now - self.last_spawn_time < self.min_spawn_delay_ms:
            return None
        if self.rng.random() > chance:
            return None
        return self.spawn(now, occupied)

    def spawn(self, now: float, occupied: Iterable[Position]) -> Buff | None:
        """Place a randomly drawn buff on a free cell, or skip when none is found."""
        buff_type = pick_buff_type(self.rng)
        blocked = set(occupied) | self.cells
        position = random_free_cell(self.tile_count, blocked, self.rng, self.max_attempts)
        if position is None:
            logger.debug("No free cell for %s buff, skipping spawn", buff_type.kind.value)
            return None

        buff = Buff(
            id=f"{self.rng.getrandbits(40):010x}",
            position=position,
            buff_type=buff_type,
            created_at=now,
            expires_at=now + buff_type.lifetime_ms,
        )
        self.buffs.append(buff)
        self.spawned += 1
        self.last_spawn_time = now
        logger.debug("Spawned %s buff at %s", buff_type.kind.value, position)
        return buff

    def purge_expired(self, now: float) -> list[Buff]:
        """Remove buffs whose lifetime has passed and return them."""
        expired = [buff for buff in self.buffs if buff.expired(now)]
        if expired:
            self.buffs = [buff for buff in self.buffs if not buff.expired(now)]
        return expired

    def tick(self, now: float) -> list[Buff]:
        return self.purge_expired(now)

    def check_collision(self, head: Position, now: float) -> Buff | None:
        """Purge expired buffs, then remove and return the buff under the head."""
        self.purge_expired(now)
        for buff in self.buffs:
            if buff.position == head:
                self.buffs.remove(buff)
                self.collected += 1
                return buff
        return None
