"""Timed effects granted by collected buffs."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
import math

from .buffs import BuffKind


class EffectKind(str, Enum):
    """Effects that stay active for a limited time."""

    SPEED_BOOST = "speed_boost"
    DOUBLE_POINTS = "double_points"
    INVINCIBLE = "invincible"
    TIME_FREEZE = "time_freeze"


# Multipliers on the tick interval: below 1.0 is faster, above is slower.
SPEED_MODIFIERS = {
    EffectKind.SPEED_BOOST: 0.7,
    EffectKind.TIME_FREEZE: 2.0,
}

EFFECT_FOR_BUFF = {
    BuffKind.SPEED_BOOST: EffectKind.SPEED_BOOST,
    BuffKind.DOUBLE_POINTS: EffectKind.DOUBLE_POINTS,
    BuffKind.INVINCIBLE: EffectKind.INVINCIBLE,
    BuffKind.TIME_FREEZE: EffectKind.TIME_FREEZE,
}


@dataclass(slots=True)
class EffectTimer:
    active: bool = False
    end_time: float = 0.0


@dataclass(slots=True)
class ActiveEffects:
    """Independent on/off timers for every timed effect."""

    timers: dict[EffectKind, EffectTimer] = field(
        default_factory=lambda: {kind: EffectTimer() for kind in EffectKind}
    )

    def activate(self, kind: EffectKind, now: float, duration_ms: float) -> None:
        """Start an effect, or restart its countdown when already running."""
        timer = self.timers[kind]
        timer.active = True
        timer.end_time = now + duration_ms

    def is_active(self, kind: EffectKind) -> bool:
        return self.timers[kind].active

    def remaining(self, kind: EffectKind, now: float) -> float:
        """Milliseconds left on an effect, 0 when inactive."""
        timer = self.timers[kind]
        if not timer.active:
            return 0.0
        return max(0.0, timer.end_time - now)

    def expire(self, now: float) -> list[EffectKind]:
        """Switch off every effect whose end time has passed."""
        ended: list[EffectKind] = []
        for kind, timer in self.timers.items():
            if timer.active and now > timer.end_time:
                timer.active = False
                timer.end_time = 0.0
                ended.append(kind)
        return ended

    def active_kinds(self) -> list[EffectKind]:
        return [kind for kind, timer in self.timers.items() if timer.active]

    def speed_multiplier(self) -> float:
        """Product of the interval modifiers of all active speed effects."""
        return math.prod(
            modifier for kind, modifier in SPEED_MODIFIERS.items() if self.timers[kind].active
        )

    def interval_for(self, base_interval_ms: float) -> float:
        """Tick interval derived from the base interval, never incrementally."""
        return base_interval_ms * self.speed_multiplier()

    def clear(self) -> None:
        for timer in self.timers.values():
            timer.active = False
            timer.end_time = 0.0
