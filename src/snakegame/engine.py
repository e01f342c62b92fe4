"""Tick orchestration: lifecycle, collisions, scoring, buffs, and speed."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Callable
import logging
import random
import time

from .buffs import Buff, BuffKind, BuffSpawner
from .effects import EFFECT_FOR_BUFF, ActiveEffects, EffectKind
from .events import EventBus, GameEvent
from .food import FoodItem, FoodSpawner
from .settings import BoundaryMode, Difficulty, base_interval_ms
from .snake import MoveResult, Snake
from .snapshot import BuffView, FoodView, GameSnapshot
from .utils import DEFAULT_TILE_COUNT, RIGHT, Direction, Position

logger = logging.getLogger(__name__)

MEGA_GROWTH_SEGMENTS = 3
# Frames that fall further behind than this drop the backlog instead of replaying it.
MAX_CATCH_UP_TICKS = 5


class EngineState(Enum):
    """Lifecycle of a single game."""

    NOT_STARTED = auto()
    RUNNING = auto()
    PAUSED = auto()
    GAME_OVER = auto()


@dataclass(slots=True, frozen=True)
class GameRecord:
    """Final result handed to score keepers when a game ends."""

    score: int
    elapsed_seconds: int
    snake_length: int
    cause: str | None


def monotonic_ms() -> float:
    return time.monotonic() * 1000


class GameEngine:
    """Single-snake game simulation driven by host timestamps.

    Every public method that depends on time takes ``now`` in host
    milliseconds and falls back to ``clock()`` when it is omitted. Internally
    the engine runs on *active time*: milliseconds since ``start`` with paused
    spans removed, so buffs and effects do not run out while paused.
    """

    def __init__(
        self,
        tile_count: int = DEFAULT_TILE_COUNT,
        boundary_mode: BoundaryMode = BoundaryMode.BOUNDED,
        difficulty: Difficulty = Difficulty.MEDIUM,
        weighted_food_tiers: bool = False,
        rng: random.Random | None = None,
        clock: Callable[[], float] = monotonic_ms,
        events: EventBus | None = None,
    ) -> None:
        if tile_count < 1:
            raise ValueError(f"tile_count must be positive, got {tile_count}")
        self.tile_count = tile_count
        self.boundary_mode = boundary_mode
        self.difficulty = difficulty
        self.rng = rng or random.Random()
        self.clock = clock
        self.events = events or EventBus()

        self.snake = Snake(start_pos=self.start_position, start_dir=RIGHT)
        self.food = FoodSpawner(tile_count=tile_count, weighted_tiers=weighted_food_tiers, rng=self.rng)
        self.buffs = BuffSpawner(tile_count=tile_count, rng=self.rng)
        self.effects = ActiveEffects()

        self.base_interval_ms: float = base_interval_ms(difficulty)
        self.current_interval_ms: float = self.base_interval_ms
        self.state = EngineState.NOT_STARTED
        self.last_record: GameRecord | None = None
        self._reset_session()

    @property
    def start_position(self) -> Position:
        return (self.tile_count // 2, self.tile_count // 2)

    @property
    def running(self) -> bool:
        return self.state == EngineState.RUNNING

    @property
    def paused(self) -> bool:
        return self.state == EngineState.PAUSED

    @property
    def over(self) -> bool:
        return self.state == EngineState.GAME_OVER

    def _now(self, now: float | None) -> float:
        return self.clock() if now is None else now

    def _reset_session(self) -> None:
        self.snake.reset(self.start_position, RIGHT)
        self.food.reset()
        self.buffs.reset()
        self.effects.clear()
        self.score = 0
        self.ticks = 0
        self.cause: str | None = None
        self.start_time = 0.0
        self.ended_at: float | None = None
        self.paused_total = 0.0
        self.pause_started: float | None = None
        self.last_update: float | None = None
        self.accumulator_ms = 0.0
        self.current_interval_ms = self.effects.interval_for(self.base_interval_ms)
        self.food.ensure_available(self.occupied_cells(), 0.0)

    def active_time(self, now: float | None = None) -> float:
        """Milliseconds of unpaused play since start."""
        if self.state == EngineState.NOT_STARTED:
            return 0.0
        if self.ended_at is not None:
            reference = self.ended_at
        elif self.pause_started is not None:
            reference = self.pause_started
        else:
            reference = self._now(now)
        return max(0.0, reference - self.start_time - self.paused_total)

    def elapsed_seconds(self, now: float | None = None) -> int:
        return int(self.active_time(now) // 1000)

    def occupied_cells(self) -> set[Position]:
        """Return all cells taken by the snake, food, and buffs."""
        return self.snake.cells | self.food.cells | self.buffs.cells

    # ----- Lifecycle -----
    def start(self, now: float | None = None) -> bool:
        """Begin a fresh game from the not-started or game-over state."""
        if self.state not in (EngineState.NOT_STARTED, EngineState.GAME_OVER):
            logger.debug("Ignoring start while %s", self.state.name)
            return False
        now = self._now(now)
        self._reset_session()
        self.start_time = now
        self.last_update = now
        self.state = EngineState.RUNNING
        self.buffs.schedule_auto_spawn(0.0)
        logger.info("Game started on %dx%d board (%s)", self.tile_count, self.tile_count, self.boundary_mode.value)
        self.events.emit(GameEvent.STARTED, None)
        self.events.emit(GameEvent.SCORE_CHANGED, self.score)
        return True

    def pause(self, now: float | None = None) -> bool:
        if self.state != EngineState.RUNNING:
            logger.debug("Ignoring pause while %s", self.state.name)
            return False
        self.pause_started = self._now(now)
        self.state = EngineState.PAUSED
        self.events.emit(GameEvent.PAUSED, None)
        return True

    def resume(self, now: float | None = None) -> bool:
        if self.state != EngineState.PAUSED or self.pause_started is None:
            logger.debug("Ignoring resume while %s", self.state.name)
            return False
        now = self._now(now)
        self.paused_total += now - self.pause_started
        self.pause_started = None
        self.last_update = now
        self.state = EngineState.RUNNING
        self.events.emit(GameEvent.RESUMED, None)
        return True

    def toggle_pause(self, now: float | None = None) -> bool:
        if self.state == EngineState.RUNNING:
            return self.pause(now)
        return self.resume(now)

    def reset(self) -> None:
        """Return to the not-started state with a fresh board."""
        self.state = EngineState.NOT_STARTED
        self._reset_session()
        self.events.emit(GameEvent.SCORE_CHANGED, self.score)

    def game_over(self, cause: str | None = None, now: float | None = None) -> GameRecord | None:
        """Freeze the game and publish its final record. Safe to call repeatedly."""
        if self.state == EngineState.GAME_OVER:
            return self.last_record
        if self.state == EngineState.NOT_STARTED:
            return None
        now = self._now(now)
        if self.pause_started is not None:
            self.paused_total += now - self.pause_started
            self.pause_started = None
        self.ended_at = now
        self.state = EngineState.GAME_OVER
        self.cause = cause
        self.buffs.cancel()
        self.last_record = GameRecord(
            score=self.score,
            elapsed_seconds=self.elapsed_seconds(),
            snake_length=self.snake.length,
            cause=cause,
        )
        logger.info("Game over (%s): score=%d length=%d", cause, self.score, self.snake.length)
        self.events.emit(GameEvent.GAME_OVER, self.last_record)
        return self.last_record

    def destroy(self) -> None:
        """Stop timers and drop every listener."""
        self.buffs.reset()
        self.events.clear()
        self.state = EngineState.NOT_STARTED

    # ----- Configuration -----
    def set_difficulty(self, difficulty: Difficulty) -> None:
        """Swap the base interval while keeping active speed effects applied."""
        self.difficulty = difficulty
        self.base_interval_ms = base_interval_ms(difficulty)
        self._recompute_interval()

    def set_boundary_mode(self, boundary_mode: BoundaryMode) -> bool:
        if self.state in (EngineState.RUNNING, EngineState.PAUSED):
            return False
        self.boundary_mode = boundary_mode
        return True

    # ----- Input -----
    def steer(self, direction: Direction) -> bool:
        """Queue a heading change. Reversals are dropped silently."""
        if self.state != EngineState.RUNNING:
            return False
        changed = self.snake.set_next_direction(direction)
        if changed:
            self.events.emit(GameEvent.DIRECTION_CHANGED, self.snake.pending_direction)
        return changed

    # ----- Simulation -----
    def update(self, now: float | None = None) -> int:
        """Feed host frame time and run every tick that is due."""
        now = self._now(now)
        if self.state != EngineState.RUNNING:
            self.last_update = now
            return 0
        if self.last_update is None:
            self.last_update = now
        self.accumulator_ms += now - self.last_update
        self.last_update = now

        fired = 0
        while self.state == EngineState.RUNNING and self.accumulator_ms >= self.current_interval_ms:
            if fired == MAX_CATCH_UP_TICKS:
                logger.debug("Dropping %.0f ms of tick backlog", self.accumulator_ms)
                self.accumulator_ms = 0.0
                break
            self.accumulator_ms -= self.current_interval_ms
            self.tick(now)
            fired += 1
        return fired

    def tick(self, now: float | None = None) -> MoveResult | None:
        """Advance the simulation by exactly one step."""
        if self.state != EngineState.RUNNING:
            return None
        t = self.active_time(now)
        self._expire_effects(t)

        spawned = self.buffs.try_auto_spawn(t, self.occupied_cells())
        if spawned is not None:
            self.events.emit(GameEvent.BUFF_SPAWNED, spawned)

        result = self.snake.advance(self.boundary_mode, self.tile_count)
        if result.collided:
            if not self.effects.is_active(EffectKind.INVINCIBLE):
                self.game_over(result.cause, now)
                return result
            logger.debug("Invincibility absorbed %s collision", result.cause)

        head = self.snake.head
        food = self.food.check_collision(head)
        if food is not None:
            self._eat_food(food, t)

        buff = self.buffs.check_collision(head, t)
        if buff is not None:
            self._apply_buff(buff, t)
            self.events.emit(GameEvent.BUFF_COLLECTED, buff)

        self.buffs.purge_expired(t)
        self._recompute_interval()

        self.food.ensure_available(self.occupied_cells(), t)
        self.ticks += 1
        return result

    def _expire_effects(self, t: float) -> None:
        for effect in self.effects.expire(t):
            self.events.emit(GameEvent.EFFECT_EXPIRED, effect)

    def _eat_food(self, food: FoodItem, t: float) -> None:
        self.snake.grow(1)
        self._add_score(food.points)
        self.events.emit(GameEvent.FOOD_EATEN, food)
        self.food.ensure_available(self.occupied_cells(), t)
        spawned = self.buffs.try_spawn_on_food_eaten(t, self.occupied_cells())
        if spawned is not None:
            self.events.emit(GameEvent.BUFF_SPAWNED, spawned)

    def _apply_buff(self, buff: Buff, t: float) -> None:
        points = buff.points
        # Only a double-points effect that was already running counts here.
        if self.effects.is_active(EffectKind.DOUBLE_POINTS):
            points *= 2
        self._add_score(points)

        if buff.kind == BuffKind.MEGA_GROWTH:
            self.snake.grow(MEGA_GROWTH_SEGMENTS)
        else:
            self.effects.activate(EFFECT_FOR_BUFF[buff.kind], t, buff.buff_type.lifetime_ms)
        self._recompute_interval()

    def _add_score(self, points: int) -> None:
        self.score += points
        self.events.emit(GameEvent.SCORE_CHANGED, self.score)

    def _recompute_interval(self) -> None:
        self.current_interval_ms = self.effects.interval_for(self.base_interval_ms)

    # ----- Rendering boundary -----
    def snapshot(self, now: float | None = None) -> GameSnapshot:
        """Return an immutable view of the board for drawing."""
        t = self.active_time(now)
        food = tuple(
            FoodView(
                position=item.position,
                name=item.kind.name,
                points=item.points,
                color=item.kind.color,
                size=item.kind.size,
                pulse=item.kind.pulse,
                age_ms=max(0.0, t - item.created_at),
            )
            for item in self.food.items
        )
        buffs = tuple(
            BuffView(
                position=buff.position,
                kind=buff.kind,
                color=buff.buff_type.color,
                shape=buff.buff_type.shape,
                age_ms=max(0.0, t - buff.created_at),
                time_left_ms=max(0.0, buff.expires_at - t),
                urgency=buff.urgency(t),
            )
            for buff in self.buffs.buffs
        )
        effects = {kind: self.effects.remaining(kind, t) for kind in self.effects.active_kinds()}
        return GameSnapshot(
            state=self.state.name,
            tile_count=self.tile_count,
            snake=tuple(self.snake.body),
            direction=self.snake.direction,
            food=food,
            buffs=buffs,
            effects=effects,
            score=self.score,
            elapsed_seconds=self.elapsed_seconds(now),
            interval_ms=self.current_interval_ms,
            cause=self.cause,
        )
