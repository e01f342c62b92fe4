"""Audio loading and playback driven by game events."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable
import logging
import pygame

from .buffs import Buff, BuffKind
from .events import EventBus, GameEvent

logger = logging.getLogger(__name__)

SOUND_FILES = {
    "eat": "eat.wav",
    "game_over": "death.wav",
    "move": "move.wav",
    "power_up": "buff_pickup.wav",
    "time_freeze": "buff_time_freeze.wav",
}


class AudioManager:
    """Loads and plays music/sfx with graceful fallback when assets are absent.

    Nothing happens until :meth:`init`; :meth:`destroy` unsubscribes from the
    event bus and shuts the mixer down again.
    """

    def __init__(self, root: Path, enabled: bool = True) -> None:
        self.root = root
        self.enabled = enabled
        self.sound_enabled = False
        self.sounds: dict[str, pygame.mixer.Sound] = {}
        self.volumes: tuple[float, float, float] = (1.0, 1.0, 1.0)
        self.music_wanted = False
        self._unsubscribers: list[Callable[[], None]] = []

    @property
    def sound_dir(self) -> Path:
        return self.root / "assets" / "sounds"

    def init(self) -> None:
        """Open the mixer and load whatever sound files exist."""
        if not self.enabled or self.sound_enabled:
            return
        try:
            pygame.mixer.init()
            self.sound_enabled = True
        except pygame.error as exc:
            logger.warning("Audio unavailable: %s", exc)
            self.sound_enabled = False
            return
        self.load_assets()
        self.set_volumes(*self.volumes)
        if self.music_wanted:
            self.play_music()

    def load_assets(self) -> None:
        """Load available audio files from the assets folder."""
        if not self.sound_enabled:
            return
        for key, name in SOUND_FILES.items():
            path = self.sound_dir / name
            if not path.exists():
                continue
            try:
                self.sounds[key] = pygame.mixer.Sound(str(path))
            except pygame.error as exc:
                logger.warning("Could not load %s: %s", path, exc)

    def set_volumes(self, master: float, music: float, sfx: float) -> None:
        """Apply current volume settings, remembered for the next init."""
        self.volumes = (master, music, sfx)
        if not self.sound_enabled:
            return
        pygame.mixer.music.set_volume(master * music)
        for sound in self.sounds.values():
            sound.set_volume(master * sfx)

    def play_music(self) -> None:
        """Play looping background music if file exists."""
        self.music_wanted = True
        if not self.sound_enabled:
            return
        music_path = self.root / "assets" / "music" / "bgm.ogg"
        if not music_path.exists():
            return
        try:
            pygame.mixer.music.load(str(music_path))
            pygame.mixer.music.play(-1)
        except pygame.error as exc:
            logger.warning("Could not play music: %s", exc)

    def play(self, key: str) -> None:
        """Play a named sound effect."""
        if not self.sound_enabled:
            return
        sound = self.sounds.get(key)
        if sound:
            sound.play()

    def sound_for(self, event: GameEvent, payload: Any) -> str | None:
        """Pick the sound effect for an engine event."""
        if event == GameEvent.FOOD_EATEN:
            return "eat"
        if event == GameEvent.GAME_OVER:
            return "game_over"
        if event == GameEvent.DIRECTION_CHANGED:
            return "move"
        if event == GameEvent.BUFF_COLLECTED:
            if isinstance(payload, Buff) and payload.kind == BuffKind.TIME_FREEZE:
                return "time_freeze"
            return "power_up"
        return None

    def on_event(self, event: GameEvent, payload: Any) -> None:
        key = self.sound_for(event, payload)
        if key:
            self.play(key)

    def attach(self, events: EventBus) -> None:
        """Subscribe to the engine events that have a sound."""
        for event in (
            GameEvent.FOOD_EATEN,
            GameEvent.BUFF_COLLECTED,
            GameEvent.GAME_OVER,
            GameEvent.DIRECTION_CHANGED,
        ):
            self._unsubscribers.append(events.subscribe(event, self.on_event))

    def set_enabled(self, enabled: bool) -> None:
        """Turn sound on or off without touching event subscriptions."""
        self.enabled = enabled
        if enabled:
            self.init()
        else:
            self._shutdown_mixer()

    def _shutdown_mixer(self) -> None:
        self.sounds.clear()
        if self.sound_enabled:
            pygame.mixer.quit()
            self.sound_enabled = False

    def destroy(self) -> None:
        """Detach from events and release the mixer."""
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()
        self._shutdown_mixer()
