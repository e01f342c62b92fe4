"""Local high-score table fed by finished games."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable
import logging
import time

from . import utils
from .engine import GameRecord
from .events import EventBus, GameEvent
from .utils import load_json, save_json

logger = logging.getLogger(__name__)

MAX_ENTRIES = 20
MIN_QUALIFYING_SCORE = 1


def _is_score(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _number(value: Any) -> float:
    return value if isinstance(value, (int, float)) and not isinstance(value, bool) else 0


class HighScoreTable:
    """Keeps the best finished games in a JSON file."""

    def __init__(self, path: Path | None = None, player_name: str = "Player") -> None:
        self.path = path or utils.SCORES_FILE
        self.player_name = player_name

    def entries(self) -> list[dict[str, Any]]:
        rows = load_json(self.path, [])
        if not isinstance(rows, list):
            logger.warning("Ignoring malformed score file %s", self.path)
            return []
        valid = [row for row in rows if isinstance(row, dict) and _is_score(row.get("score"))]
        if len(valid) != len(rows):
            logger.warning("Skipping %d malformed score rows in %s", len(rows) - len(valid), self.path)
        return valid

    def best(self) -> int:
        rows = self.entries()
        return max((row["score"] for row in rows), default=0)

    def qualifies(self, record: GameRecord) -> bool:
        if record.score < MIN_QUALIFYING_SCORE:
            return False
        rows = self.entries()
        if len(rows) < MAX_ENTRIES:
            return True
        return record.score > min(row["score"] for row in rows)

    def record(self, record: GameRecord) -> bool:
        """Store a finished game if it makes the table."""
        if not self.qualifies(record):
            return False
        rows = self.entries()
        rows.append(
            {
                "name": self.player_name,
                "score": record.score,
                "length": record.snake_length,
                "duration_seconds": record.elapsed_seconds,
                "cause": record.cause,
                "timestamp": int(time.time()),
            }
        )
        rows.sort(
            key=lambda row: (row["score"], _number(row.get("length")), -_number(row.get("duration_seconds"))),
            reverse=True,
        )
        save_json(self.path, rows[:MAX_ENTRIES])
        logger.info("Recorded score %d for %s", record.score, self.player_name)
        return True

    def attach(self, events: EventBus) -> Callable[[], None]:
        """Record every game that ends on this bus."""
        return events.subscribe(GameEvent.GAME_OVER, lambda _event, record: self.record(record))
