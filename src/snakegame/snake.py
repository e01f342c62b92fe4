"""Snake body, heading, and movement rules."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto

from .settings import BoundaryMode
from .utils import DIRECTIONS, RIGHT, Direction, Position, add_direction, in_bounds, is_opposite, wrap_position


class SnakeState(Enum):
    """Movement state of the snake."""

    IDLE = auto()
    MOVING = auto()


@dataclass(slots=True, frozen=True)
class MoveResult:
    """Outcome of a single advance."""

    collided: bool = False
    cause: str | None = None


NO_COLLISION = MoveResult()
WALL_COLLISION = MoveResult(collided=True, cause="wall")
SELF_COLLISION = MoveResult(collided=True, cause="self")


@dataclass(slots=True, eq=False)
class Snake:
    """State and behavior for the player's snake.

    The head is ``body[0]``. Growth is applied lazily: every credit keeps the
    tail in place for one successful advance instead of duplicating it.
    """

    start_pos: Position = (12, 12)
    start_dir: Direction = RIGHT

    body: list[Position] = field(default_factory=list, init=False)
    direction: Direction = field(init=False)
    pending_direction: Direction = field(init=False)
    pending_growth: int = field(default=0, init=False)
    state: SnakeState = field(default=SnakeState.IDLE, init=False)

    def __post_init__(self) -> None:
        self.reset(self.start_pos, self.start_dir)

    def reset(self, initial_position: Position | None = None, initial_direction: Direction | None = None) -> None:
        """Restore a single-segment snake with no pending turn or growth."""
        if initial_position is not None:
            self.start_pos = initial_position
        if initial_direction is not None:
            self.start_dir = initial_direction
        self.body = [self.start_pos]
        self.direction = self.start_dir
        self.pending_direction = self.start_dir
        self.pending_growth = 0
        self.state = SnakeState.IDLE

    @property
    def head(self) -> Position:
        return self.body[0]

    @property
    def length(self) -> int:
        return len(self.body)

    @property
    def cells(self) -> set[Position]:
        """Return every cell covered by the body."""
        return set(self.body)

    def set_next_direction(self, direction: Direction) -> bool:
        """Queue the heading for the next tick.

        Reversals of the committed heading and non-unit vectors are dropped.
        Returns True only when the queued heading actually changed.
        """
        direction = (direction[0], direction[1])
        if direction not in DIRECTIONS or is_opposite(direction, self.direction):
            return False
        if direction == self.pending_direction:
            return False
        self.pending_direction = direction
        return True

    def grow(self, amount: int = 1) -> None:
        """Add growth credits, each one retains the tail for one advance."""
        if amount > 0:
            self.pending_growth += amount

    def next_position(self, boundary_mode: BoundaryMode, tile_count: int) -> Position | None:
        """Compute the next head cell, or None when it leaves a walled board."""
        candidate = add_direction(self.head, self.pending_direction)
        if boundary_mode == BoundaryMode.WRAPPING:
            return wrap_position(candidate, tile_count)
        if not in_bounds(candidate, tile_count):
            return None
        return candidate

    def advance(self, boundary_mode: BoundaryMode, tile_count: int) -> MoveResult:
        """Commit the queued heading and move one cell.

        On collision the body is left untouched.
        """
        self.direction = self.pending_direction
        new_head = self.next_position(boundary_mode, tile_count)
        if new_head is None:
            return WALL_COLLISION

        # The tail vacates this tick unless a growth credit keeps it.
        blocking = self.body if self.pending_growth > 0 else self.body[:-1]
        if new_head in blocking:
            return SELF_COLLISION

        self.body.insert(0, new_head)
        if self.pending_growth > 0:
            self.pending_growth -= 1
        else:
            self.body.pop()
        self.state = SnakeState.MOVING
        return NO_COLLISION
