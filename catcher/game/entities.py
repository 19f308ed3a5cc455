"""
Game Entities
=============

Entidades de la simulación Fruit Catcher.

- Item: entidad que cae (fruta = benign, bomba = hazardous)
- ItemView / GameSnapshot: vistas inmutables para render sinks y data plane

Items son propiedad exclusiva del GameEngine. Los sinks reciben snapshots
(copias), nunca referencias al estado vivo.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


class ItemCategory(str, Enum):
    """Categoría de un item que cae"""
    BENIGN = "benign"        # fruta: suma puntos al atraparla
    HAZARDOUS = "hazardous"  # bomba: atraparla termina la sesión


class GamePhase(str, Enum):
    """Estados de la máquina de estados del juego"""
    IDLE = "idle"
    RUNNING = "running"


@dataclass(frozen=True)
class ItemView:
    """Vista inmutable de un Item (para render/publicación)"""
    item_id: int
    lane: str
    category: ItemCategory
    y: float
    speed: float

    @property
    def is_hazard(self) -> bool:
        return self.category is ItemCategory.HAZARDOUS


@dataclass
class Item:
    """
    Item que cae por un lane.

    Lifecycle:
    1. Spawn arriba del campo (y=0)
    2. Avanza speed unidades por tick (y monótonamente creciente)
    3. Desde la catch line hasta el borde se compara con el basket en cada
       tick (resolved=True tras el primer juicio)
    4. Se destruye al ser atrapado o al salir del campo
    """
    item_id: int
    lane: str
    category: ItemCategory
    speed: float
    y: float = 0.0
    resolved: bool = False

    def advance(self) -> None:
        self.y += self.speed

    @property
    def is_hazard(self) -> bool:
        return self.category is ItemCategory.HAZARDOUS

    def view(self) -> ItemView:
        return ItemView(
            item_id=self.item_id,
            lane=self.lane,
            category=self.category,
            y=self.y,
            speed=self.speed,
        )


@dataclass(frozen=True)
class GameSnapshot:
    """
    Estado agregado del juego en un frame (read-only).

    Es lo único que ve el render sink.
    """
    phase: GamePhase
    score: int
    level: int
    catches: int
    catcher_lane: str
    items: Tuple[ItemView, ...] = ()
    last_spawn_time: Optional[float] = None

    @property
    def is_running(self) -> bool:
        return self.phase is GamePhase.RUNNING

    def to_dict(self) -> dict:
        return {
            "phase": self.phase.value,
            "score": self.score,
            "level": self.level,
            "catches": self.catches,
            "catcher_lane": self.catcher_lane,
            "items": [
                {
                    "item_id": item.item_id,
                    "lane": item.lane,
                    "category": item.category.value,
                    "y": round(item.y, 2),
                    "speed": item.speed,
                }
                for item in self.items
            ],
        }
