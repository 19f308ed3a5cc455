"""
Game Engine
===========

Simulación Fruit Catcher: máquina de estados frame-driven.

Estados:
    IDLE ──start()──▶ RUNNING ──stop() / bomba atrapada──▶ IDLE

Por tick (solo en RUNNING):
1. Spawn: si pasó spawn_interval desde el último spawn, crea un item en un
   lane aleatorio (bomba con P=hazard_probability)
2. Advance: cada item avanza su speed
3. Resolución: items entre la catch line y el borde del campo se comparan
   contra el lane del basket en cada tick. Un item que cruza la catch line y
   el borde en el mismo tick se juzga una vez antes de removerlo
4. Salida: items con y > field_height se descartan (missed)

Diseño:
- Reloj monotónico y RNG inyectados (determinista bajo test)
- Eventos tipados retornados por cada operación + listeners registrados
- Single-threaded: el driver no debe llamar stop() concurrente con tick()
"""
import logging
import random
import time
from typing import Callable, List, Optional

from .entities import GamePhase, GameSnapshot, Item, ItemCategory, ItemView
from .events import (
    CatcherMoved,
    GameEnded,
    GameEvent,
    GameStarted,
    HazardCaught,
    ItemCaught,
    ItemMissed,
    ItemSpawned,
    LevelUp,
    ScoreChanged,
)
from .rules import GameRules
from ..logging import log_error_with_context

logger = logging.getLogger(__name__)

GameListener = Callable[[GameEvent], None]


class GameEngine:
    """
    Lógica del juego Fruit Catcher.

    Usage:
        engine = GameEngine(GameRules(seed=42))
        engine.add_listener(on_event)

        engine.start()
        # por frame:
        engine.on_pose_detected(prediction.label)
        events = engine.tick()
        render(engine.snapshot())
    """

    def __init__(
        self,
        rules: Optional[GameRules] = None,
        clock: Callable[[], float] = time.monotonic,
        rng: Optional[random.Random] = None,
    ):
        """
        Args:
            rules: Reglas del juego (default GameRules())
            clock: Reloj monotónico en segundos
            rng: Fuente de aleatoriedad (default random.Random(rules.seed))

        Raises:
            ValueError: Si las reglas son inválidas
        """
        self.rules = rules if rules is not None else GameRules()
        self.rules.validate()

        self._clock = clock
        self._rng = rng if rng is not None else random.Random(self.rules.seed)
        self._listeners: List[GameListener] = []

        self.phase = GamePhase.IDLE
        self.score = 0
        self.level = 1
        self.catches = 0
        self.catcher_lane = self.rules.default_lane
        self.last_spawn_time: Optional[float] = None

        self._items: List[Item] = []
        self._next_item_id = 1
        self._last_now: Optional[float] = None

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------

    def add_listener(self, listener: GameListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: GameListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _emit(self, events: List[GameEvent]) -> List[GameEvent]:
        for event in events:
            for listener in list(self._listeners):
                try:
                    listener(event)
                except Exception as e:
                    log_error_with_context(
                        logger,
                        message="Error en listener de eventos del juego",
                        exception=e,
                        component="game_engine",
                        event="listener_error",
                        game_event=event.event_type,
                    )
        return events

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def is_running(self) -> bool:
        return self.phase is GamePhase.RUNNING

    @property
    def items(self) -> List[ItemView]:
        return [item.view() for item in self._items]

    def snapshot(self) -> GameSnapshot:
        return GameSnapshot(
            phase=self.phase,
            score=self.score,
            level=self.level,
            catches=self.catches,
            catcher_lane=self.catcher_lane,
            items=tuple(item.view() for item in self._items),
            last_spawn_time=self.last_spawn_time,
        )

    def _read_clock(self, now: Optional[float] = None) -> float:
        """Lee el reloj sin retroceder nunca (deltas negativos → 0)"""
        value = self._clock() if now is None else now
        if self._last_now is not None and value < self._last_now:
            logger.debug(
                f"⏪ Clock went backwards ({value:.3f} < {self._last_now:.3f}), clamping",
                extra={"component": "game_engine", "event": "clock_clamped"}
            )
            value = self._last_now
        self._last_now = value
        return value

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self, now: Optional[float] = None) -> List[GameEvent]:
        """
        Inicia una sesión nueva.

        Si ya hay una sesión corriendo, se termina primero (reason='restart')
        para que GameEnded se emita exactamente una vez por sesión.
        """
        t = self._read_clock(now)
        events: List[GameEvent] = []

        if self.is_running:
            events.extend(self._end_session(t, reason='restart'))

        self.score = 0
        self.level = 1
        self.catches = 0
        self._items = []
        self.catcher_lane = self.rules.default_lane
        self.phase = GamePhase.RUNNING
        self.last_spawn_time = t

        logger.info(
            "🍎 Fruit Catcher game started",
            extra={
                "component": "game_engine",
                "event": "game_started",
                "lanes": list(self.rules.lanes),
                "spawn_interval": self.rules.spawn_interval,
            }
        )

        events.append(GameStarted(t))
        events.append(ScoreChanged(t, score=self.score, level=self.level))
        return self._emit(events)

    def stop(self, now: Optional[float] = None, reason: str = 'stopped') -> List[GameEvent]:
        """Termina la sesión (idempotente si ya está IDLE)"""
        if not self.is_running:
            return []
        t = self._read_clock(now)
        return self._emit(self._end_session(t, reason=reason))

    def _end_session(self, t: float, reason: str) -> List[GameEvent]:
        self.phase = GamePhase.IDLE
        self._items = []

        logger.info(
            f"🏁 Game over ({reason}): score={self.score}, level={self.level}",
            extra={
                "component": "game_engine",
                "event": "game_ended",
                "reason": reason,
                "final_score": self.score,
                "final_level": self.level,
            }
        )
        return [GameEnded(t, final_score=self.score, final_level=self.level, reason=reason)]

    # ------------------------------------------------------------------
    # Input
    # ------------------------------------------------------------------

    def on_pose_detected(self, label: Optional[str], now: Optional[float] = None) -> List[GameEvent]:
        """
        Mueve el basket al lane indicado por la pose.

        Labels que no son lanes (o llamadas en IDLE) se ignoran.
        """
        if not self.is_running or label not in self.rules.lanes:
            return []
        if label == self.catcher_lane:
            return []

        t = self._read_clock(now)
        previous = self.catcher_lane
        self.catcher_lane = label
        return self._emit([CatcherMoved(t, lane=label, previous_lane=previous)])

    # ------------------------------------------------------------------
    # Simulation
    # ------------------------------------------------------------------

    def spawn_item(
        self,
        lane: Optional[str] = None,
        category: Optional[ItemCategory] = None,
        now: Optional[float] = None,
    ) -> List[GameEvent]:
        """
        Crea un item arriba del campo.

        Sin argumentos: lane uniforme y categoría por sorteo ponderado.
        No modifica last_spawn_time (eso es responsabilidad de tick()).
        """
        if not self.is_running:
            return []
        t = self._read_clock(now)
        return self._emit([self._spawn(t, lane, category)])

    def _spawn(
        self,
        t: float,
        lane: Optional[str] = None,
        category: Optional[ItemCategory] = None,
    ) -> ItemSpawned:
        if lane is None:
            lane = self._rng.choice(self.rules.lanes)
        elif lane not in self.rules.lanes:
            raise ValueError(f"Unknown lane '{lane}', expected one of {list(self.rules.lanes)}")

        if category is None:
            if self._rng.random() < self.rules.hazard_probability:
                category = ItemCategory.HAZARDOUS
            else:
                category = ItemCategory.BENIGN

        item = Item(
            item_id=self._next_item_id,
            lane=lane,
            category=category,
            speed=self.rules.speed_for_level(self.level),
        )
        self._next_item_id += 1
        self._items.append(item)

        logger.debug(
            f"🆕 Spawned {category.value} item #{item.item_id} in lane {lane}",
            extra={
                "component": "game_engine",
                "event": "item_spawned",
                "item_id": item.item_id,
                "lane": lane,
                "category": category.value,
                "speed": item.speed,
            }
        )
        return ItemSpawned(t, item=item.view())

    def tick(self, now: Optional[float] = None) -> List[GameEvent]:
        """
        Avanza la simulación un frame.

        Returns:
            Eventos emitidos en este tick ([] si IDLE)
        """
        if not self.is_running:
            return []

        t = self._read_clock(now)
        events: List[GameEvent] = []
        rules = self.rules

        # 1. Spawn
        if t - self.last_spawn_time > rules.spawn_interval:
            events.append(self._spawn(t))
            self.last_spawn_time = t

        # 2. Advance
        for item in self._items:
            item.advance()

        # 3. Resolución (catch line) + 4. salida del campo
        survivors: List[Item] = []
        for item in self._items:
            if item.y >= rules.catch_line and (item.y <= rules.field_height or not item.resolved):
                item.resolved = True

                if item.lane == self.catcher_lane:
                    if not item.is_hazard:
                        events.extend(self._catch(t, item))
                        continue

                    events.append(HazardCaught(t, item=item.view()))
                    if rules.hazard_policy == 'end_session':
                        events.extend(self._end_session(t, reason='hazard'))
                        return self._emit(events)

                    events.extend(self._penalize(t, rules.hazard_penalty))
                    continue

            if item.y > rules.field_height:
                if not item.is_hazard:
                    events.append(ItemMissed(t, item=item.view()))
                    if rules.miss_policy == 'end_session':
                        events.extend(self._end_session(t, reason='missed'))
                        return self._emit(events)
                    if rules.miss_policy == 'penalize':
                        events.extend(self._penalize(t, rules.miss_penalty))
                continue

            survivors.append(item)

        self._items = survivors
        return self._emit(events)

    def _catch(self, t: float, item: Item) -> List[GameEvent]:
        rules = self.rules
        self.score += rules.points_per_catch
        self.catches += 1

        events: List[GameEvent] = [ItemCaught(t, item=item.view(), points=rules.points_per_catch)]

        if self.catches % rules.catches_per_level == 0:
            self.level += 1
            events.append(LevelUp(t, level=self.level))
            logger.info(
                f"⬆️ Level up: {self.level}",
                extra={"component": "game_engine", "event": "level_up", "level": self.level}
            )

        events.append(ScoreChanged(t, score=self.score, level=self.level))
        return events

    def _penalize(self, t: float, penalty: int) -> List[GameEvent]:
        new_score = max(0, self.score - penalty)
        if new_score == self.score:
            return []
        self.score = new_score
        return [ScoreChanged(t, score=self.score, level=self.level)]
