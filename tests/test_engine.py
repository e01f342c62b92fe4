from __future__ import annotations

import random

import pytest

from snakegame.buffs import BUFF_TYPES_BY_KIND, Buff, BuffKind
from snakegame.effects import EffectKind
from snakegame.engine import MAX_CATCH_UP_TICKS, EngineState, GameEngine, GameRecord
from snakegame.events import EventRecorder, GameEvent
from snakegame.food import FOOD_TYPES, FoodItem
from snakegame.settings import BoundaryMode, Difficulty
from snakegame.utils import DIRECTIONS, DOWN, LEFT, RIGHT, UP


def _engine(**kwargs) -> GameEngine:
    engine = GameEngine(rng=random.Random(42), clock=lambda: 0.0, **kwargs)
    engine.start(now=0)
    engine.food.items = [FoodItem(position=(0, 0), kind=FOOD_TYPES[0])]
    return engine


def _place_buff(engine: GameEngine, kind: BuffKind, position, created_at: float = 0.0) -> Buff:
    buff_type = BUFF_TYPES_BY_KIND[kind]
    buff = Buff(
        id=kind.value,
        position=position,
        buff_type=buff_type,
        created_at=created_at,
        expires_at=created_at + buff_type.lifetime_ms,
    )
    engine.buffs.buffs.append(buff)
    return buff


def test_start_places_snake_and_food() -> None:
    engine = GameEngine(rng=random.Random(1), clock=lambda: 0.0)
    assert engine.state == EngineState.NOT_STARTED
    assert engine.start(now=0)
    assert engine.state == EngineState.RUNNING
    assert engine.snake.body == [(12, 12)]
    assert engine.snake.direction == RIGHT
    assert len(engine.food.items) == 1
    assert engine.buffs.armed


def test_five_ticks_without_input_move_head_five_cells() -> None:
    engine = _engine()
    for step in range(1, 6):
        engine.tick(now=step * 100)
    assert engine.snake.head == (17, 12)
    assert engine.snake.length == 1
    assert engine.score == 0


def test_wall_collision_ends_game_once() -> None:
    engine = _engine()
    recorder = EventRecorder()
    engine.events.subscribe(GameEvent.GAME_OVER, recorder)
    engine.snake.body = [(24, 12)]

    result = engine.tick(now=2500)
    assert result.collided and result.cause == "wall"
    assert engine.state == EngineState.GAME_OVER
    assert not engine.buffs.armed
    assert recorder.payloads(GameEvent.GAME_OVER) == [
        GameRecord(score=0, elapsed_seconds=2, snake_length=1, cause="wall")
    ]

    assert engine.tick(now=2600) is None
    assert engine.game_over("wall", now=2700) == engine.last_record
    assert len(recorder.events) == 1
    assert engine.snake.body == [(24, 12)]


def test_wrapping_board_has_no_walls() -> None:
    engine = _engine(boundary_mode=BoundaryMode.WRAPPING)
    engine.snake.reset((0, 5), LEFT)
    result = engine.tick(now=100)
    assert not result.collided
    assert engine.snake.head == (24, 5)
    assert engine.running


def test_reversal_request_is_ignored() -> None:
    engine = _engine()
    recorder = EventRecorder()
    engine.events.subscribe(GameEvent.DIRECTION_CHANGED, recorder)
    assert engine.steer(LEFT) is False
    assert engine.steer(UP) is True
    engine.tick(now=100)
    assert engine.snake.head == (12, 11)
    assert recorder.payloads(GameEvent.DIRECTION_CHANGED) == [UP]


def test_eating_food_scores_and_grows_next_tick() -> None:
    engine = _engine()
    engine.buffs.food_spawn_chance = 0.0
    engine.food.items = [FoodItem(position=(13, 12), kind=FOOD_TYPES[0])]
    recorder = EventRecorder()
    engine.events.subscribe(None, recorder)

    engine.tick(now=100)
    assert engine.score == 1
    assert engine.snake.pending_growth == 1
    assert engine.snake.length == 1
    assert len(engine.food.items) == 1
    assert engine.food.items[0].position != (13, 12)
    assert GameEvent.FOOD_EATEN in recorder.kinds()
    assert recorder.payloads(GameEvent.SCORE_CHANGED) == [1]

    engine.food.items = [FoodItem(position=(0, 0), kind=FOOD_TYPES[0])]
    engine.tick(now=200)
    assert engine.snake.length == 2
    assert engine.snake.body == [(14, 12), (13, 12)]


def test_combined_speed_effects_multiply_base_interval() -> None:
    engine = _engine(difficulty=Difficulty.EASY)
    assert engine.current_interval_ms == 150
    _place_buff(engine, BuffKind.SPEED_BOOST, (13, 12))
    _place_buff(engine, BuffKind.TIME_FREEZE, (14, 12))

    engine.tick(now=100)
    assert engine.current_interval_ms == pytest.approx(105)
    engine.tick(now=200)
    assert engine.current_interval_ms == pytest.approx(210)
    assert engine.effects.is_active(EffectKind.SPEED_BOOST)
    assert engine.effects.is_active(EffectKind.TIME_FREEZE)


def test_speed_effect_expiry_recomputes_from_base() -> None:
    engine = _engine(difficulty=Difficulty.EASY)
    engine.buffs.cancel()
    recorder = EventRecorder()
    engine.events.subscribe(GameEvent.EFFECT_EXPIRED, recorder)
    engine.effects.activate(EffectKind.SPEED_BOOST, 0, 5000)
    engine.effects.activate(EffectKind.TIME_FREEZE, 0, 8000)
    engine.snake.reset((2, 0), DOWN)

    engine.tick(now=5100)
    assert recorder.payloads(GameEvent.EFFECT_EXPIRED) == [EffectKind.SPEED_BOOST]
    assert engine.current_interval_ms == pytest.approx(300)

    engine.tick(now=8100)
    assert engine.current_interval_ms == pytest.approx(150)


def test_double_points_applies_only_to_later_buffs() -> None:
    engine = _engine()
    _place_buff(engine, BuffKind.DOUBLE_POINTS, (13, 12))
    _place_buff(engine, BuffKind.SPEED_BOOST, (14, 12))

    engine.tick(now=100)
    assert engine.score == 20
    engine.tick(now=200)
    assert engine.score == 20 + 30
    assert engine.buffs.collected == 2


def test_mega_growth_adds_three_credits() -> None:
    engine = _engine()
    _place_buff(engine, BuffKind.MEGA_GROWTH, (13, 12))
    engine.tick(now=100)
    assert engine.score == 50
    assert engine.snake.pending_growth == 3
    for step in range(2, 6):
        engine.tick(now=step * 100)
    assert engine.snake.length == 4


def test_invincibility_absorbs_collision_until_it_expires() -> None:
    engine = _engine()
    engine.buffs.cancel()
    engine.snake.body = [(24, 12)]
    engine.effects.activate(EffectKind.INVINCIBLE, 0, 3000)

    engine.tick(now=100)
    assert engine.running
    assert engine.snake.body == [(24, 12)]

    engine.tick(now=2900)
    assert engine.running

    recorder = EventRecorder()
    engine.events.subscribe(GameEvent.EFFECT_EXPIRED, recorder)
    engine.tick(now=3100)
    assert recorder.payloads(GameEvent.EFFECT_EXPIRED) == [EffectKind.INVINCIBLE]
    assert engine.over
    assert engine.last_record.cause == "wall"


def test_double_points_does_not_apply_after_it_ends() -> None:
    engine = _engine()
    engine.buffs.cancel()
    engine.effects.activate(EffectKind.DOUBLE_POINTS, 0, 8000)
    _place_buff(engine, BuffKind.SPEED_BOOST, (13, 12), created_at=8000)

    engine.tick(now=8500)
    assert engine.score == 15
    assert not engine.effects.is_active(EffectKind.DOUBLE_POINTS)


def test_buff_timers_freeze_while_paused() -> None:
    engine = _engine()
    engine.buffs.cancel()
    _place_buff(engine, BuffKind.INVINCIBLE, (5, 5))
    engine.tick(now=500)
    assert engine.pause(now=1000)
    assert engine.tick(now=5000) is None
    assert engine.resume(now=10000)

    engine.tick(now=10500)
    assert [buff.position for buff in engine.buffs.buffs] == [(5, 5)]
    assert engine.elapsed_seconds(now=10500) == 1

    engine.tick(now=12100)
    assert engine.buffs.buffs == []
    assert engine.elapsed_seconds(now=12100) == 3


def test_lifecycle_calls_from_wrong_state_are_noops() -> None:
    engine = GameEngine(rng=random.Random(3), clock=lambda: 0.0)
    assert engine.pause(now=0) is False
    assert engine.resume(now=0) is False
    assert engine.tick(now=0) is None
    assert engine.game_over("wall", now=0) is None
    assert engine.start(now=0)
    assert engine.start(now=10) is False
    assert engine.resume(now=10) is False
    assert engine.pause(now=20)
    assert engine.pause(now=30) is False
    assert engine.steer(UP) is False


def test_restart_after_game_over_resets_session() -> None:
    engine = _engine()
    engine.score = 40
    engine.snake.body = [(24, 12)]
    engine.tick(now=100)
    assert engine.over

    assert engine.start(now=1000)
    assert engine.score == 0
    assert engine.snake.body == [(12, 12)]
    assert engine.elapsed_seconds(now=1000) == 0
    assert engine.last_record.score == 40


def test_update_fires_ticks_only_when_interval_elapsed() -> None:
    engine = _engine()
    assert engine.current_interval_ms == 100
    assert engine.update(now=50) == 0
    assert engine.snake.head == (12, 12)
    assert engine.update(now=100) == 1
    assert engine.snake.head == (13, 12)
    assert engine.update(now=116) == 0
    assert engine.update(now=330) == 2
    assert engine.snake.head == (15, 12)


def test_update_drops_backlog_after_a_long_stall() -> None:
    engine = _engine()
    engine.buffs.cancel()
    assert engine.update(now=100) == 1
    assert engine.update(now=5000) == MAX_CATCH_UP_TICKS
    assert engine.snake.head == (13 + MAX_CATCH_UP_TICKS, 12)
    assert engine.accumulator_ms == 0
    assert engine.update(now=5050) == 0
    assert engine.update(now=5100) == 1


def test_update_skips_paused_time() -> None:
    engine = _engine()
    engine.pause(now=10)
    assert engine.update(now=5000) == 0
    engine.resume(now=5000)
    assert engine.update(now=5050) == 0
    assert engine.update(now=5100) == 1


def test_food_always_present_while_running() -> None:
    engine = GameEngine(tile_count=8, boundary_mode=BoundaryMode.WRAPPING, rng=random.Random(11), clock=lambda: 0.0)
    engine.start(now=0)
    steering = random.Random(99)
    previous_length = engine.snake.length
    for step in range(1, 400):
        if step % 3 == 0:
            engine.steer(steering.choice(DIRECTIONS))
        engine.tick(now=step * 100)
        if not engine.running:
            break
        assert engine.food.items
        assert engine.snake.length >= previous_length
        previous_length = engine.snake.length


def test_snapshot_exposes_read_only_view() -> None:
    engine = _engine()
    _place_buff(engine, BuffKind.SPEED_BOOST, (3, 3))
    engine.effects.activate(EffectKind.DOUBLE_POINTS, 0, 8000)
    snapshot = engine.snapshot(now=4000)

    assert snapshot.state == "RUNNING"
    assert snapshot.snake == ((12, 12),)
    assert snapshot.food[0].position == (0, 0)
    assert snapshot.buffs[0].urgency == pytest.approx(0.8)
    assert snapshot.effects[EffectKind.DOUBLE_POINTS] == pytest.approx(4000)
    assert not snapshot.invincible


def test_set_difficulty_keeps_active_speed_effects() -> None:
    engine = _engine(difficulty=Difficulty.EASY)
    engine.effects.activate(EffectKind.TIME_FREEZE, 0, 4000)
    engine.set_difficulty(Difficulty.HARD)
    assert engine.base_interval_ms == 75
    assert engine.current_interval_ms == pytest.approx(150)


def test_boundary_mode_locked_while_playing() -> None:
    engine = _engine()
    assert engine.set_boundary_mode(BoundaryMode.WRAPPING) is False
    engine.reset()
    assert engine.state == EngineState.NOT_STARTED
    assert engine.set_boundary_mode(BoundaryMode.WRAPPING)
