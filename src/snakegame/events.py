"""Synchronous event notifications for audio, HUD, and persistence listeners."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Callable
import logging

logger = logging.getLogger(__name__)


class GameEvent(Enum):
    """Notifications emitted by the engine after a state change."""

    STARTED = auto()
    PAUSED = auto()
    RESUMED = auto()
    DIRECTION_CHANGED = auto()
    FOOD_EATEN = auto()
    BUFF_SPAWNED = auto()
    BUFF_COLLECTED = auto()
    EFFECT_EXPIRED = auto()
    SCORE_CHANGED = auto()
    GAME_OVER = auto()


Listener = Callable[[GameEvent, Any], None]


@dataclass(slots=True)
class EventBus:
    """Observer list keyed by event kind.

    Listeners are called in subscription order, inside the call that caused
    the event. A listener subscribed with ``event=None`` receives everything.
    """

    listeners: dict[GameEvent | None, list[Listener]] = field(default_factory=lambda: defaultdict(list))

    def subscribe(self, event: GameEvent | None, listener: Listener) -> Callable[[], None]:
        """Register a listener and return a callable that removes it."""
        self.listeners[event].append(listener)

        def unsubscribe() -> None:
            if listener in self.listeners[event]:
                self.listeners[event].remove(listener)

        return unsubscribe

    def emit(self, event: GameEvent, payload: Any = None) -> None:
        for listener in [*self.listeners[event], *self.listeners[None]]:
            listener(event, payload)

    def clear(self) -> None:
        self.listeners.clear()


@dataclass(slots=True)
class EventRecorder:
    """Listener that keeps every event it receives, handy for HUDs and tests."""

    events: list[tuple[GameEvent, Any]] = field(default_factory=list)

    def __call__(self, event: GameEvent, payload: Any) -> None:
        self.events.append((event, payload))

    def kinds(self) -> list[GameEvent]:
        return [event for event, _ in self.events]

    def payloads(self, event: GameEvent) -> list[Any]:
        return [payload for kind, payload in self.events if kind == event]
