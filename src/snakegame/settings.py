"""Settings persistence, difficulty presets, and board configuration."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
import logging

from . import utils
from .utils import DEFAULT_TILE_COUNT, clamp, load_json, save_json

logger = logging.getLogger(__name__)


class BoundaryMode(str, Enum):
    """How the board edges behave."""

    BOUNDED = "bounded"
    WRAPPING = "wrapping"


class Difficulty(str, Enum):
    """Difficulty presets, each with a target ticks-per-second rate."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"

    @property
    def ticks_per_second(self) -> int:
        return DIFFICULTY_TICK_RATES[self]


DIFFICULTY_TICK_RATES = {
    Difficulty.EASY: 10,
    Difficulty.MEDIUM: 15,
    Difficulty.HARD: 20,
}


def base_interval_ms(difficulty: Difficulty) -> int:
    """Map a difficulty to the base tick interval in milliseconds.

    Easy runs at 150ms, medium at 100ms and hard at 75ms per tick.
    """
    return round(1000 / difficulty.ticks_per_second * 1.5)


@dataclass(slots=True)
class GameSettings:
    """Persistent settings for the game."""

    tile_count: int = DEFAULT_TILE_COUNT
    boundary_mode: BoundaryMode = BoundaryMode.BOUNDED
    difficulty: Difficulty = Difficulty.MEDIUM
    sound_enabled: bool = True
    master_volume: float = 1.0
    sfx_volume: float = 0.8
    music_volume: float = 0.3
    weighted_food_tiers: bool = False

    @property
    def base_interval_ms(self) -> int:
        """Return the tick interval implied by the chosen difficulty."""
        return base_interval_ms(self.difficulty)


class SettingsManager:
    """Load, save, and mutate game settings."""

    def __init__(self) -> None:
        utils.ensure_data_dirs()
        self.settings = self.load()

    def load(self) -> GameSettings:
        """Load game settings from disk with safe defaults."""
        raw = load_json(utils.SETTINGS_FILE, {})
        settings = GameSettings()
        if not isinstance(raw, dict):
            logger.warning("Ignoring malformed settings file %s", utils.SETTINGS_FILE)
            return settings

        try:
            settings.tile_count = max(5, int(raw.get("tile_count", settings.tile_count)))
            settings.master_volume = float(raw.get("master_volume", settings.master_volume))
            settings.sfx_volume = float(raw.get("sfx_volume", settings.sfx_volume))
            settings.music_volume = float(raw.get("music_volume", settings.music_volume))
        except (TypeError, ValueError):
            logger.warning("Invalid numeric value in %s, using defaults", utils.SETTINGS_FILE)
            return GameSettings()

        settings.sound_enabled = bool(raw.get("sound_enabled", settings.sound_enabled))
        settings.weighted_food_tiers = bool(raw.get("weighted_food_tiers", settings.weighted_food_tiers))

        if raw.get("difficulty") in {e.value for e in Difficulty}:
            settings.difficulty = Difficulty(raw["difficulty"])
        if raw.get("boundary_mode") in {e.value for e in BoundaryMode}:
            settings.boundary_mode = BoundaryMode(raw["boundary_mode"])
        return settings

    def save(self) -> None:
        """Persist settings to disk."""
        payload = asdict(self.settings)
        payload["difficulty"] = self.settings.difficulty.value
        payload["boundary_mode"] = self.settings.boundary_mode.value
        save_json(utils.SETTINGS_FILE, payload)

    def cycle_difficulty(self) -> Difficulty:
        """Cycle difficulty and persist settings."""
        order = [Difficulty.EASY, Difficulty.MEDIUM, Difficulty.HARD]
        idx = order.index(self.settings.difficulty)
        self.settings.difficulty = order[(idx + 1) % len(order)]
        self.save()
        return self.settings.difficulty

    def toggle_boundary_mode(self) -> BoundaryMode:
        """Switch between walled and wrap-around boards and persist settings."""
        if self.settings.boundary_mode == BoundaryMode.BOUNDED:
            self.settings.boundary_mode = BoundaryMode.WRAPPING
        else:
            self.settings.boundary_mode = BoundaryMode.BOUNDED
        self.save()
        return self.settings.boundary_mode

    def toggle_sound(self) -> bool:
        self.settings.sound_enabled = not self.settings.sound_enabled
        self.save()
        return self.settings.sound_enabled

    def adjust_volume(self, field_name: str, delta: float) -> None:
        """Adjust a volume setting and save."""
        value = float(getattr(self.settings, field_name))
        setattr(self.settings, field_name, clamp(value + delta, 0.0, 1.0))
        self.save()
