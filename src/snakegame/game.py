"""pygame host: window, input mapping, frame loop, and rendering."""

from __future__ import annotations

from pathlib import Path
import math
import pygame

from .audio import AudioManager
from .buffs import BuffKind
from .effects import EffectKind
from .engine import EngineState, GameEngine, GameRecord
from .events import GameEvent
from .scores import HighScoreTable
from .settings import GameSettings, SettingsManager
from .snapshot import BuffView, FoodView, GameSnapshot
from .utils import (
    BG_COLOR,
    CELL_SIZE,
    DOWN,
    FPS,
    GRID_COLOR,
    HUD_HEIGHT,
    LEFT,
    ORANGE,
    RED,
    RIGHT,
    SHADOW_COLOR,
    SNAKE_COLOR,
    SNAKE_HEAD_COLOR,
    TEXT_COLOR,
    UP,
    YELLOW,
)

STEER_KEYS = {
    pygame.K_UP: UP,
    pygame.K_w: UP,
    pygame.K_DOWN: DOWN,
    pygame.K_s: DOWN,
    pygame.K_LEFT: LEFT,
    pygame.K_a: LEFT,
    pygame.K_RIGHT: RIGHT,
    pygame.K_d: RIGHT,
}

EFFECT_LABELS = {
    EffectKind.SPEED_BOOST: "Speed",
    EffectKind.DOUBLE_POINTS: "x2",
    EffectKind.INVINCIBLE: "Shield",
    EffectKind.TIME_FREEZE: "Freeze",
}


class SnakeGame:
    """Window and event loop around a :class:`GameEngine`."""

    def __init__(self, root: Path) -> None:
        pygame.init()
        pygame.font.init()

        self.root = root
        self.settings_manager = SettingsManager()
        self.settings: GameSettings = self.settings_manager.settings

        board = self.settings.tile_count * CELL_SIZE
        self.screen = pygame.display.set_mode((board, board + HUD_HEIGHT))
        pygame.display.set_caption("Snake")
        self.clock = pygame.time.Clock()

        self.title_font = pygame.font.SysFont("consolas", 40, bold=True)
        self.body_font = pygame.font.SysFont("consolas", 22, bold=True)
        self.small_font = pygame.font.SysFont("consolas", 16)

        self.engine = GameEngine(
            tile_count=self.settings.tile_count,
            boundary_mode=self.settings.boundary_mode,
            difficulty=self.settings.difficulty,
            weighted_food_tiers=self.settings.weighted_food_tiers,
            clock=pygame.time.get_ticks,
        )
        self.scores = HighScoreTable()
        self.scores.attach(self.engine.events)
        self.best_score = self.scores.best()
        self.engine.events.subscribe(GameEvent.GAME_OVER, self._on_game_over)

        self.audio = AudioManager(self.root, enabled=self.settings.sound_enabled)
        self.audio.init()
        self.audio.attach(self.engine.events)
        self.audio.set_volumes(
            self.settings.master_volume,
            self.settings.music_volume,
            self.settings.sfx_volume,
        )
        self.audio.play_music()

    def run(self) -> None:
        """Main event/update/render loop."""
        running = True
        while running:
            self.clock.tick(FPS)
            running = self._handle_events()
            if not running:
                break
            self.engine.update(pygame.time.get_ticks())
            self._render()

        self.close()

    def close(self) -> None:
        self.engine.destroy()
        self.audio.destroy()
        pygame.quit()

    def _on_game_over(self, _event: GameEvent, record: GameRecord) -> None:
        self.best_score = max(self.best_score, record.score)

    def _handle_events(self) -> bool:
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                return False
            if event.type == pygame.KEYDOWN and not self.handle_key(event.key):
                return False
        return True

    def handle_key(self, key: int) -> bool:
        """Apply one key press. Returns False when the player quits."""
        now = pygame.time.get_ticks()
        state = self.engine.state
        if key == pygame.K_q:
            return False
        if key in STEER_KEYS:
            self.engine.steer(STEER_KEYS[key])
        elif key in (pygame.K_SPACE, pygame.K_RETURN):
            if state in (EngineState.NOT_STARTED, EngineState.GAME_OVER):
                self.engine.start(now)
            elif state == EngineState.PAUSED:
                self.engine.resume(now)
        elif key in (pygame.K_p, pygame.K_ESCAPE):
            self.engine.toggle_pause(now)
        elif state in (EngineState.NOT_STARTED, EngineState.GAME_OVER):
            self._handle_settings_key(key)
        return True

    def _handle_settings_key(self, key: int) -> None:
        if key == pygame.K_b:
            self.engine.set_boundary_mode(self.settings_manager.toggle_boundary_mode())
        elif key == pygame.K_TAB:
            self.engine.set_difficulty(self.settings_manager.cycle_difficulty())
        elif key == pygame.K_m:
            self.audio.set_enabled(self.settings_manager.toggle_sound())

    def _render(self) -> None:
        snapshot = self.engine.snapshot(pygame.time.get_ticks())
        self.screen.fill(BG_COLOR)
        self._draw_grid(snapshot)
        for food in snapshot.food:
            self._draw_food(food)
        for buff in snapshot.buffs:
            self._draw_buff(buff)
        self._draw_snake(snapshot)
        self._draw_hud(snapshot)
        if snapshot.state != EngineState.RUNNING.name:
            self._draw_overlay(snapshot)
        pygame.display.flip()

    def _cell_rect(self, cell: tuple[int, int], scale: float = 1.0) -> pygame.Rect:
        size = max(2, int(CELL_SIZE * scale))
        rect = pygame.Rect(0, 0, size, size)
        rect.center = (cell[0] * CELL_SIZE + CELL_SIZE // 2, HUD_HEIGHT + cell[1] * CELL_SIZE + CELL_SIZE // 2)
        return rect

    def _draw_grid(self, snapshot: GameSnapshot) -> None:
        board = snapshot.tile_count * CELL_SIZE
        for i in range(snapshot.tile_count + 1):
            offset = i * CELL_SIZE
            pygame.draw.line(self.screen, GRID_COLOR, (offset, HUD_HEIGHT), (offset, HUD_HEIGHT + board))
            pygame.draw.line(self.screen, GRID_COLOR, (0, HUD_HEIGHT + offset), (board, HUD_HEIGHT + offset))

    def _draw_food(self, food: FoodView) -> None:
        scale = food.size
        if food.pulse:
            scale *= 1 + 0.2 * math.sin(food.age_ms / 200)
        rect = self._cell_rect(food.position, scale)
        pygame.draw.ellipse(self.screen, food.color, rect)

    def _draw_buff(self, buff: BuffView) -> None:
        scale = 0.9 + 0.15 * math.sin(buff.age_ms / 150)
        if buff.urgency > 0.7:
            blink_speed = max(50.0, 200 * (1 - buff.urgency))
            blink = 0.3 + 0.7 * abs(math.sin(buff.age_ms / blink_speed))
            scale *= 0.8 + 0.2 * blink
            if blink < 0.5:
                return
        rect = self._cell_rect(buff.position, scale)
        if buff.kind == BuffKind.SPEED_BOOST:
            points = [rect.midtop, rect.midright, rect.midbottom, rect.midleft]
            pygame.draw.polygon(self.screen, buff.color, points)
        else:
            pygame.draw.rect(self.screen, buff.color, rect, border_radius=CELL_SIZE // 3)

    def _draw_snake(self, snapshot: GameSnapshot) -> None:
        if snapshot.invincible and (pygame.time.get_ticks() // 200) % 2:
            return
        for idx, cell in reversed(list(enumerate(snapshot.snake))):
            color = SNAKE_HEAD_COLOR if idx == 0 else SNAKE_COLOR
            pygame.draw.rect(self.screen, color, self._cell_rect(cell, 0.92), border_radius=4)

    def _draw_hud(self, snapshot: GameSnapshot) -> None:
        score = self.body_font.render(f"Score {snapshot.score}", True, YELLOW)
        best = self.small_font.render(f"Best {max(self.best_score, snapshot.score)}", True, TEXT_COLOR)
        clock = self.small_font.render(f"Time {snapshot.elapsed_seconds}s", True, TEXT_COLOR)
        self.screen.blit(score, (12, 8))
        self.screen.blit(best, (12, 38))
        self.screen.blit(clock, (120, 38))

        labels = [
            f"{EFFECT_LABELS[kind]} {remaining / 1000:.1f}s" for kind, remaining in snapshot.effects.items()
        ]
        if labels:
            text = self.small_font.render("  ".join(labels), True, ORANGE)
            self.screen.blit(text, (self.screen.get_width() - text.get_width() - 12, 12))

        mode = self.small_font.render(
            f"{self.settings.difficulty.value.title()} | {self.settings.boundary_mode.value.title()}",
            True,
            TEXT_COLOR,
        )
        self.screen.blit(mode, (self.screen.get_width() - mode.get_width() - 12, 38))

    def _draw_overlay(self, snapshot: GameSnapshot) -> None:
        overlay = pygame.Surface(self.screen.get_size(), pygame.SRCALPHA)
        overlay.fill((0, 0, 0, 150))
        self.screen.blit(overlay, (0, 0))

        if snapshot.state == EngineState.GAME_OVER.name:
            headline, color = "GAME OVER", RED
            lines = [f"Final score: {snapshot.score}", f"Hit the {snapshot.cause or 'unknown'}", "Space to play again"]
        elif snapshot.state == EngineState.PAUSED.name:
            headline, color = "PAUSED", YELLOW
            lines = ["P or Space to resume"]
        else:
            headline, color = "SNAKE", YELLOW
            lines = ["Space to start", "Tab difficulty | B walls/wrap | M sound"]

        cx = self.screen.get_width() // 2
        cy = self.screen.get_height() // 2
        shadow = self.title_font.render(headline, True, SHADOW_COLOR)
        title = self.title_font.render(headline, True, color)
        self.screen.blit(shadow, (cx - title.get_width() // 2 + 3, cy - 77))
        self.screen.blit(title, (cx - title.get_width() // 2, cy - 80))
        for idx, line in enumerate(lines):
            text = self.body_font.render(line, True, TEXT_COLOR)
            self.screen.blit(text, (cx - text.get_width() // 2, cy - 10 + idx * 32))
