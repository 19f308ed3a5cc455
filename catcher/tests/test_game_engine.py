"""
Game Engine Tests
=================

Tests de la máquina de estados Fruit Catcher.

Invariantes testeadas:
1. start() resetea score/level/items y emite GameStarted + ScoreChanged(0, 1)
2. Un item es atrapable entre la catch line y el borde del campo
3. Bomba atrapada → GameEnded exactamente una vez (hazard_policy='end_session')
4. Políticas de miss: free / end_session / penalize
5. Score y level monótonos con las políticas por defecto
6. Reloj inyectado, deltas negativos clampeados
7. Listeners reciben los mismos eventos que retorna cada operación

Geometría de los tests: field_height=100, catch_line=80, speed=10 →
el item cruza la catch line en el tick 8 (y=80) y sale en el tick 11 (y=110).
"""
import random

import pytest

from catcher.game import (
    CatcherMoved,
    GameEnded,
    GameEngine,
    GameRules,
    GameStarted,
    HazardCaught,
    ItemCaught,
    ItemCategory,
    ItemMissed,
    ItemSpawned,
    LevelUp,
    ScoreChanged,
)

TICKS_TO_CATCH_LINE = 8
TICKS_TO_EXIT = 11


def make_rules(**overrides) -> GameRules:
    params = dict(
        field_height=100.0,
        catch_line=80.0,
        base_speed=10.0,
        speed_per_level=0.0,
        spawn_interval=1000.0,  # sin spawns automáticos
        seed=1,
    )
    params.update(overrides)
    return GameRules(**params)


def make_engine(**overrides) -> GameEngine:
    engine = GameEngine(make_rules(**overrides), clock=lambda: 0.0)
    engine.start(now=0.0)
    return engine


def run_ticks(engine: GameEngine, count: int, start: float = 0.0, dt: float = 0.01):
    """Ejecuta count ticks y retorna todos los eventos"""
    events = []
    for i in range(1, count + 1):
        events.extend(engine.tick(now=start + i * dt))
    return events


def of_type(events, event_type):
    return [e for e in events if isinstance(e, event_type)]


@pytest.mark.unit
@pytest.mark.game
class TestLifecycle:

    def test_initial_state_is_idle(self):
        engine = GameEngine(make_rules())

        assert not engine.is_running
        assert engine.score == 0
        assert engine.level == 1
        assert engine.items == []

    def test_start_emits_started_and_initial_score(self):
        engine = GameEngine(make_rules())

        events = engine.start(now=0.0)

        assert [type(e) for e in events] == [GameStarted, ScoreChanged]
        assert events[1].score == 0
        assert events[1].level == 1
        assert engine.is_running
        assert engine.catcher_lane == "Center"
        assert engine.last_spawn_time == 0.0

    def test_tick_while_idle_is_noop(self):
        engine = GameEngine(make_rules())

        assert engine.tick(now=5.0) == []
        assert engine.items == []

    def test_pose_while_idle_is_ignored(self):
        engine = GameEngine(make_rules())

        assert engine.on_pose_detected("Left", now=0.0) == []
        assert engine.catcher_lane == "Center"

    def test_spawn_while_idle_is_ignored(self):
        engine = GameEngine(make_rules())

        assert engine.spawn_item(lane="Left", now=0.0) == []

    def test_stop_emits_game_ended_once(self):
        engine = make_engine()

        first = engine.stop(now=1.0)
        second = engine.stop(now=2.0)

        assert len(first) == 1
        assert isinstance(first[0], GameEnded)
        assert first[0].reason == 'stopped'
        assert second == [], "Doble stop es no-op"
        assert not engine.is_running

    def test_stop_clears_items(self):
        engine = make_engine()
        engine.spawn_item(lane="Left", category=ItemCategory.BENIGN, now=0.0)

        engine.stop(now=1.0)

        assert engine.items == []

    def test_restart_ends_previous_session(self):
        """
        Invariante: start() con sesión corriendo emite GameEnded(reason='restart')
        antes del nuevo GameStarted, y resetea el estado.
        """
        engine = make_engine()
        engine.spawn_item(lane="Center", category=ItemCategory.BENIGN, now=0.0)
        run_ticks(engine, TICKS_TO_CATCH_LINE)
        assert engine.score == 10

        events = engine.start(now=1.0)

        assert [type(e) for e in events] == [GameEnded, GameStarted, ScoreChanged]
        assert events[0].reason == 'restart'
        assert events[0].final_score == 10
        assert engine.score == 0
        assert engine.level == 1
        assert engine.items == []

    def test_invalid_rules_raise(self):
        with pytest.raises(ValueError):
            GameEngine(GameRules(default_lane="Up"))


@pytest.mark.unit
@pytest.mark.game
class TestCatcherMovement:

    def test_move_to_lane_emits_event(self):
        engine = make_engine()

        events = engine.on_pose_detected("Left", now=0.5)

        assert events == [CatcherMoved(0.5, lane="Left", previous_lane="Center")]
        assert engine.catcher_lane == "Left"

    def test_same_lane_emits_nothing(self):
        engine = make_engine()

        assert engine.on_pose_detected("Center", now=0.5) == []

    @pytest.mark.parametrize("label", ["Jump", "", None, "left"])
    def test_unknown_label_is_ignored(self, label):
        engine = make_engine()

        assert engine.on_pose_detected(label, now=0.5) == []
        assert engine.catcher_lane == "Center"


@pytest.mark.unit
@pytest.mark.game
class TestCollisions:

    def test_benign_catch_scores_exactly_once(self):
        """
        start(), fruta en Center, basket en Center antes de la catch line
        → score sube points_per_catch exactamente una vez, item removido.
        """
        engine = make_engine()
        engine.on_pose_detected("Left", now=0.0)
        engine.spawn_item(lane="Center", category=ItemCategory.BENIGN, now=0.0)
        engine.on_pose_detected("Center", now=0.01)

        events = run_ticks(engine, TICKS_TO_EXIT + 5)

        caught = of_type(events, ItemCaught)
        assert len(caught) == 1
        assert caught[0].points == 10
        assert engine.score == 10
        assert engine.catches == 1
        assert of_type(events, ScoreChanged) == [ScoreChanged(caught[0].timestamp, score=10, level=1)]
        assert engine.items == []
        assert of_type(events, ItemMissed) == []

    def test_catch_happens_on_crossing_tick(self):
        engine = make_engine()
        engine.spawn_item(lane="Center", category=ItemCategory.BENIGN, now=0.0)

        before = run_ticks(engine, TICKS_TO_CATCH_LINE - 1)
        crossing = engine.tick(now=1.0)

        assert of_type(before, ItemCaught) == []
        assert len(of_type(crossing, ItemCaught)) == 1

    def test_item_catchable_after_crossing_catch_line(self):
        """
        Invariante: un item que cruzó la catch line en otro lane sigue
        atrapable mientras no salga del campo.
        """
        engine = make_engine()
        engine.on_pose_detected("Left", now=0.0)
        engine.spawn_item(lane="Center", category=ItemCategory.BENIGN, now=0.0)
        crossing = run_ticks(engine, TICKS_TO_CATCH_LINE)
        assert of_type(crossing, ItemCaught) == []

        engine.on_pose_detected("Center", now=0.5)
        events = engine.tick(now=0.6)

        assert len(of_type(events, ItemCaught)) == 1
        assert engine.score == 10
        assert engine.items == []

    def test_item_catchable_at_field_edge(self):
        engine = make_engine()
        engine.on_pose_detected("Left", now=0.0)
        engine.spawn_item(lane="Center", category=ItemCategory.BENIGN, now=0.0)
        run_ticks(engine, TICKS_TO_EXIT - 2)  # y=90

        engine.on_pose_detected("Center", now=0.5)
        events = engine.tick(now=0.6)  # y=100 == field_height

        assert len(of_type(events, ItemCaught)) == 1

    def test_item_outside_field_is_not_caught(self):
        engine = make_engine()
        engine.on_pose_detected("Left", now=0.0)
        engine.spawn_item(lane="Center", category=ItemCategory.BENIGN, now=0.0)
        run_ticks(engine, TICKS_TO_EXIT - 1)  # y=100

        engine.on_pose_detected("Center", now=0.5)
        events = engine.tick(now=0.6)  # y=110 > field_height

        assert of_type(events, ItemCaught) == []
        assert len(of_type(events, ItemMissed)) == 1
        assert engine.score == 0

    def test_late_hazard_in_basket_lane_is_caught(self):
        engine = make_engine()
        engine.on_pose_detected("Left", now=0.0)
        engine.spawn_item(lane="Center", category=ItemCategory.HAZARDOUS, now=0.0)
        run_ticks(engine, TICKS_TO_CATCH_LINE)

        engine.on_pose_detected("Center", now=0.5)
        events = engine.tick(now=0.6)

        assert len(of_type(events, HazardCaught)) == 1
        assert of_type(events, GameEnded)[0].reason == 'hazard'

    @pytest.mark.parametrize("category", [ItemCategory.BENIGN, ItemCategory.HAZARDOUS])
    def test_crossing_and_exit_in_same_tick_is_resolved(self, category):
        """
        Invariante: un item que cruza la catch line y sale del campo en el
        mismo tick se juzga antes de removerlo.
        """
        engine = make_engine(catch_line=95.0, base_speed=200.0)
        engine.spawn_item(lane="Center", category=category, now=0.0)

        events = engine.tick(now=0.01)

        assert engine.items == []
        if category is ItemCategory.BENIGN:
            assert len(of_type(events, ItemCaught)) == 1
            assert of_type(events, ItemMissed) == []
            assert engine.score == 10
        else:
            assert len(of_type(events, HazardCaught)) == 1
            ended = of_type(events, GameEnded)
            assert len(ended) == 1
            assert ended[0].reason == 'hazard'

    def test_crossing_and_exit_in_other_lane_is_missed(self):
        engine = make_engine(catch_line=95.0, base_speed=200.0)
        engine.spawn_item(lane="Left", category=ItemCategory.BENIGN, now=0.0)

        events = engine.tick(now=0.01)

        assert of_type(events, ItemCaught) == []
        assert len(of_type(events, ItemMissed)) == 1

    def test_hazard_catch_ends_session_once(self):
        engine = make_engine()
        engine.spawn_item(lane="Center", category=ItemCategory.HAZARDOUS, now=0.0)
        engine.spawn_item(lane="Center", category=ItemCategory.BENIGN, now=0.0)

        events = run_ticks(engine, TICKS_TO_EXIT + 5)

        assert len(of_type(events, HazardCaught)) == 1
        ended = of_type(events, GameEnded)
        assert len(ended) == 1
        assert ended[0].reason == 'hazard'
        assert ended[0].final_score == 0
        assert not engine.is_running
        assert engine.items == []
        # La fruta del mismo tick no se procesa: la sesión ya terminó
        assert of_type(events, ItemCaught) == []
        assert engine.stop(now=2.0) == []

    def test_hazard_in_other_lane_is_harmless(self):
        engine = make_engine()
        engine.spawn_item(lane="Left", category=ItemCategory.HAZARDOUS, now=0.0)

        events = run_ticks(engine, TICKS_TO_EXIT + 1)

        assert of_type(events, HazardCaught) == []
        assert of_type(events, ItemMissed) == [], "Bombas que salen del campo no son miss"
        assert engine.is_running
        assert engine.items == []

    def test_hazard_penalize_policy(self):
        engine = make_engine(hazard_policy='penalize', hazard_penalty=4)
        engine.spawn_item(lane="Center", category=ItemCategory.BENIGN, now=0.0)
        engine.spawn_item(lane="Center", category=ItemCategory.HAZARDOUS, now=0.0)

        events = run_ticks(engine, TICKS_TO_EXIT + 1)

        assert len(of_type(events, HazardCaught)) == 1
        assert of_type(events, GameEnded) == []
        assert engine.is_running
        assert engine.score == 6
        assert [e.score for e in of_type(events, ScoreChanged)] == [10, 6]

    def test_missed_fruit_is_free_by_default(self):
        engine = make_engine()
        engine.spawn_item(lane="Left", category=ItemCategory.BENIGN, now=0.0)

        events = run_ticks(engine, TICKS_TO_EXIT)

        missed = of_type(events, ItemMissed)
        assert len(missed) == 1
        assert missed[0].item.lane == "Left"
        assert of_type(events, ScoreChanged) == []
        assert engine.is_running
        assert engine.items == []

    def test_miss_end_session_policy(self):
        engine = make_engine(miss_policy='end_session')
        engine.spawn_item(lane="Left", category=ItemCategory.BENIGN, now=0.0)

        events = run_ticks(engine, TICKS_TO_EXIT + 3)

        ended = of_type(events, GameEnded)
        assert len(ended) == 1
        assert ended[0].reason == 'missed'
        assert not engine.is_running

    def test_miss_penalize_policy(self):
        engine = make_engine(miss_policy='penalize', miss_penalty=5)
        engine.spawn_item(lane="Center", category=ItemCategory.BENIGN, now=0.0)
        engine.spawn_item(lane="Left", category=ItemCategory.BENIGN, now=0.0)

        run_ticks(engine, TICKS_TO_EXIT)

        assert engine.score == 5

    def test_penalty_never_goes_below_zero(self):
        engine = make_engine(miss_policy='penalize', miss_penalty=5)
        engine.spawn_item(lane="Left", category=ItemCategory.BENIGN, now=0.0)

        events = run_ticks(engine, TICKS_TO_EXIT)

        assert engine.score == 0
        assert of_type(events, ScoreChanged) == [], "Sin cambio de score no hay ScoreChanged"

    def test_spawn_unknown_lane_raises(self):
        engine = make_engine()

        with pytest.raises(ValueError, match="Unknown lane"):
            engine.spawn_item(lane="Up", now=0.0)


@pytest.mark.unit
@pytest.mark.game
class TestProgression:

    def test_level_up_every_n_catches(self):
        engine = make_engine(catches_per_level=2)
        engine.spawn_item(lane="Center", category=ItemCategory.BENIGN, now=0.0)
        engine.spawn_item(lane="Center", category=ItemCategory.BENIGN, now=0.0)

        events = run_ticks(engine, TICKS_TO_CATCH_LINE)

        assert [type(e) for e in events] == [ItemCaught, ScoreChanged, ItemCaught, LevelUp, ScoreChanged]
        assert of_type(events, LevelUp)[0].level == 2
        assert events[-1] == ScoreChanged(events[-1].timestamp, score=20, level=2)

    def test_spawn_speed_follows_level(self):
        engine = make_engine(base_speed=2.0, speed_per_level=0.5)

        events = engine.spawn_item(lane="Left", now=0.0)

        assert events[0].item.speed == pytest.approx(2.5)
        assert engine.rules.speed_for_level(3) == pytest.approx(3.5)

    def test_automatic_spawn_interval(self):
        """
        Propiedad: spawn cuando (t - last_spawn) > spawn_interval, estrictamente.
        """
        engine = make_engine(spawn_interval=1.0)

        assert of_type(engine.tick(now=1.0), ItemSpawned) == []
        spawned = of_type(engine.tick(now=1.01), ItemSpawned)

        assert len(spawned) == 1
        assert engine.last_spawn_time == 1.01
        assert of_type(engine.tick(now=1.5), ItemSpawned) == []

    def test_hazard_probability_extremes(self):
        all_bombs = make_engine(hazard_probability=1.0)
        no_bombs = make_engine(hazard_probability=0.0)

        for i in range(10):
            all_bombs.spawn_item(now=0.0)
            no_bombs.spawn_item(now=0.0)

        assert all(item.is_hazard for item in all_bombs.items)
        assert not any(item.is_hazard for item in no_bombs.items)

    def test_score_and_level_monotonic_with_default_policies(self):
        """
        Invariante: con miss_policy='free' el score y el level nunca bajan.
        """
        engine = GameEngine(
            make_rules(spawn_interval=0.05, hazard_probability=0.0, catches_per_level=3, seed=3)
        )
        engine.start(now=0.0)
        poses = random.Random(11)

        events = []
        t = 0.0
        for _ in range(2000):
            t += 0.02
            events.extend(engine.on_pose_detected(poses.choice(["Left", "Center", "Right"]), now=t))
            events.extend(engine.tick(now=t))
            if not engine.is_running:
                break

        changes = of_type(events, ScoreChanged)
        assert changes, "La corrida debe atrapar al menos una fruta"
        scores = [e.score for e in changes]
        levels = [e.level for e in changes]
        assert scores == sorted(scores)
        assert levels == sorted(levels)
        assert len(of_type(events, GameEnded)) <= 1


@pytest.mark.unit
@pytest.mark.game
class TestDeterminism:

    def _run(self, seed: int):
        engine = GameEngine(make_rules(spawn_interval=0.1, hazard_probability=0.3, seed=seed))
        engine.start(now=0.0)
        events = []
        for i in range(1, 200):
            events.extend(engine.tick(now=i * 0.05))
        return events, engine.snapshot()

    def test_same_seed_same_run(self):
        assert self._run(seed=42) == self._run(seed=42)

    def test_injected_rng(self):
        rng = random.Random(5)
        engine = GameEngine(make_rules(seed=None), rng=rng)
        engine.start(now=0.0)
        engine.spawn_item(now=0.0)

        expected = random.Random(5).choice(engine.rules.lanes)
        assert engine.items[0].lane == expected

    def test_clock_never_goes_backwards(self):
        engine = GameEngine(make_rules(spawn_interval=1.0))
        engine.start(now=10.0)

        assert engine.tick(now=5.0) == [], "Delta negativo se clampea: no hay spawn"
        events = engine.spawn_item(lane="Left", now=3.0)

        assert events[0].timestamp == 10.0
        assert engine.last_spawn_time == 10.0

    def test_uses_injected_clock_when_now_omitted(self):
        times = iter([1.0, 2.0, 3.5])
        engine = GameEngine(make_rules(spawn_interval=1.0), clock=lambda: next(times))

        engine.start()
        engine.tick()
        spawned = of_type(engine.tick(), ItemSpawned)

        assert len(spawned) == 1
        assert spawned[0].timestamp == 3.5


@pytest.mark.unit
@pytest.mark.game
class TestListeners:

    def test_listener_receives_returned_events(self):
        received = []
        engine = GameEngine(make_rules())
        engine.add_listener(received.append)

        returned = engine.start(now=0.0)
        returned += engine.spawn_item(lane="Center", category=ItemCategory.BENIGN, now=0.0)
        returned += run_ticks(engine, TICKS_TO_CATCH_LINE)
        returned += engine.stop(now=1.0)

        assert received == returned

    def test_failing_listener_does_not_break_engine(self):
        received = []

        def broken(event):
            raise RuntimeError("boom")

        engine = GameEngine(make_rules())
        engine.add_listener(broken)
        engine.add_listener(received.append)

        events = engine.start(now=0.0)

        assert engine.is_running
        assert received == events

    def test_remove_listener(self):
        received = []
        engine = GameEngine(make_rules())
        engine.add_listener(received.append)
        engine.remove_listener(received.append)

        engine.start(now=0.0)

        assert received == []


@pytest.mark.unit
@pytest.mark.game
class TestSnapshots:

    def test_snapshot_is_a_copy(self):
        engine = make_engine()
        engine.spawn_item(lane="Right", category=ItemCategory.HAZARDOUS, now=0.0)

        snapshot = engine.snapshot()
        engine.tick(now=0.1)

        assert snapshot.items[0].y == 0.0
        assert engine.items[0].y == 10.0

    def test_snapshot_to_dict(self):
        engine = make_engine()
        engine.spawn_item(lane="Right", category=ItemCategory.HAZARDOUS, now=0.0)

        data = engine.snapshot().to_dict()

        assert data["phase"] == "running"
        assert data["score"] == 0
        assert data["catcher_lane"] == "Center"
        assert data["items"] == [
            {"item_id": 1, "lane": "Right", "category": "hazardous", "y": 0.0, "speed": 10.0}
        ]

    def test_event_to_dict(self):
        engine = make_engine()
        engine.spawn_item(lane="Center", category=ItemCategory.BENIGN, now=0.0)
        caught = of_type(run_ticks(engine, TICKS_TO_CATCH_LINE), ItemCaught)[0]

        data = caught.to_dict()

        assert data["event_type"] == "item_caught"
        assert data["points"] == 10
        assert data["item"]["lane"] == "Center"
        assert data["item"]["category"] == "benign"
