"""
Game Rules
==========

Parámetros de la simulación (dataclass plano, sin dependencias de config).

La config Pydantic (config/schemas.py → GameSettings) se convierte a GameRules
en el builder. Los tests construyen GameRules directamente.

Políticas de colisión (configurables):
- hazard_policy='end_session': atrapar una bomba termina la sesión (default)
- hazard_policy='penalize': atrapar una bomba resta hazard_penalty
- miss_policy='free': dejar caer una fruta no tiene costo (default)
- miss_policy='end_session': dejar caer una fruta termina la sesión
- miss_policy='penalize': dejar caer una fruta resta miss_penalty
"""
from dataclasses import dataclass
from typing import Optional, Tuple


HAZARD_POLICIES = ('end_session', 'penalize')
MISS_POLICIES = ('free', 'end_session', 'penalize')


@dataclass
class GameRules:
    """Reglas de la simulación Fruit Catcher"""
    lanes: Tuple[str, ...] = ("Left", "Center", "Right")
    default_lane: str = "Center"

    # Campo de juego (unidades = pixels del canvas 400x400)
    field_height: float = 400.0
    catch_line: float = 350.0

    # Spawn
    spawn_interval: float = 2.0       # segundos entre spawns
    hazard_probability: float = 0.2   # P(bomba) en cada spawn

    # Velocidad (unidades por tick) = base_speed + level * speed_per_level
    base_speed: float = 2.0
    speed_per_level: float = 0.5

    # Scoring / progresión
    points_per_catch: int = 10
    catches_per_level: int = 5

    # Políticas de colisión
    hazard_policy: str = 'end_session'
    hazard_penalty: int = 10
    miss_policy: str = 'free'
    miss_penalty: int = 5

    seed: Optional[int] = None

    def validate(self) -> None:
        """
        Raises:
            ValueError: Si alguna regla es inconsistente
        """
        if not self.lanes:
            raise ValueError("lanes must not be empty")
        if len(set(self.lanes)) != len(self.lanes):
            raise ValueError(f"lanes must be unique, got {list(self.lanes)}")
        if self.default_lane not in self.lanes:
            raise ValueError(
                f"default_lane '{self.default_lane}' must be one of {list(self.lanes)}"
            )
        if self.field_height <= 0:
            raise ValueError(f"field_height must be > 0, got {self.field_height}")
        if not (0 <= self.catch_line <= self.field_height):
            raise ValueError(
                f"catch_line ({self.catch_line}) must be in [0, field_height={self.field_height}]"
            )
        if self.spawn_interval < 0:
            raise ValueError(f"spawn_interval must be >= 0, got {self.spawn_interval}")
        if not (0.0 <= self.hazard_probability <= 1.0):
            raise ValueError(
                f"hazard_probability must be in [0.0, 1.0], got {self.hazard_probability}"
            )
        if self.base_speed <= 0:
            raise ValueError(f"base_speed must be > 0, got {self.base_speed}")
        if self.speed_per_level < 0:
            raise ValueError(f"speed_per_level must be >= 0, got {self.speed_per_level}")
        if self.points_per_catch < 0:
            raise ValueError(f"points_per_catch must be >= 0, got {self.points_per_catch}")
        if self.catches_per_level < 1:
            raise ValueError(f"catches_per_level must be >= 1, got {self.catches_per_level}")
        if self.hazard_policy not in HAZARD_POLICIES:
            raise ValueError(
                f"hazard_policy must be one of {HAZARD_POLICIES}, got '{self.hazard_policy}'"
            )
        if self.miss_policy not in MISS_POLICIES:
            raise ValueError(
                f"miss_policy must be one of {MISS_POLICIES}, got '{self.miss_policy}'"
            )

    def speed_for_level(self, level: int) -> float:
        return self.base_speed + level * self.speed_per_level
