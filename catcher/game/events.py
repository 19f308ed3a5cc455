"""
Game Events
===========

Eventos tipados emitidos por el GameEngine.

Cada operación del engine (start/tick/on_pose_detected/stop) retorna la lista
de eventos emitidos y además los entrega a los listeners registrados.
El driver loop decide qué hacer con ellos (log, MQTT, reset del stabilizer).

GameEnded se emite exactamente una vez por sesión.
"""
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .entities import ItemView


def _snake_case(name: str) -> str:
    return re.sub(r'(?<!^)(?=[A-Z])', '_', name).lower()


@dataclass(frozen=True)
class GameEvent:
    """Base de todos los eventos del juego"""
    timestamp: float

    @property
    def event_type(self) -> str:
        return _snake_case(type(self).__name__)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"event_type": self.event_type}
        for name, value in self.__dict__.items():
            if isinstance(value, ItemView):
                value = {
                    "item_id": value.item_id,
                    "lane": value.lane,
                    "category": value.category.value,
                    "y": round(value.y, 2),
                    "speed": value.speed,
                }
            payload[name] = value
        return payload


@dataclass(frozen=True)
class GameStarted(GameEvent):
    pass


@dataclass(frozen=True)
class ScoreChanged(GameEvent):
    score: int
    level: int


@dataclass(frozen=True)
class LevelUp(GameEvent):
    level: int


@dataclass(frozen=True)
class ItemSpawned(GameEvent):
    item: ItemView


@dataclass(frozen=True)
class ItemCaught(GameEvent):
    item: ItemView
    points: int


@dataclass(frozen=True)
class HazardCaught(GameEvent):
    item: ItemView


@dataclass(frozen=True)
class ItemMissed(GameEvent):
    item: ItemView


@dataclass(frozen=True)
class CatcherMoved(GameEvent):
    lane: str
    previous_lane: Optional[str]


@dataclass(frozen=True)
class GameEnded(GameEvent):
    final_score: int
    final_level: int
    reason: str  # 'stopped', 'hazard', 'missed', 'restart'


__all__ = [
    'GameEvent',
    'GameStarted',
    'ScoreChanged',
    'LevelUp',
    'ItemSpawned',
    'ItemCaught',
    'HazardCaught',
    'ItemMissed',
    'CatcherMoved',
    'GameEnded',
]
