"""
Catcher - Pose-controlled Fruit Catcher with MQTT Control
=========================================================

Juego Fruit Catcher controlado por poses: un clasificador de imágenes lee la
webcam, un stabilizer por mayoría filtra el jitter y el label resultante mueve
el basket entre lanes.

Public API:
- CatcherConfig: Configuración validada (Pydantic)
- GameEngine / GameRules: Simulación del juego
- PredictionStabilizer: Majority vote sobre los últimos N frames
- GameController: Controlador principal (frame loop)
- MQTTControlPlane: Control plane (QoS 1)
- MQTTDataPlane: Data plane (QoS 0)

Usage:
    # Run game
    python -m catcher --config config/catcher/config.yaml

    # Or programmatically
    from catcher import CatcherConfig, GameController

    controller = GameController(CatcherConfig())
    controller.run()
"""

__version__ = "1.0.0"

from .config import CatcherConfig
from .game import GameEngine, GameRules
from .inference.stabilization import PredictionStabilizer
from .app import GameController, main
from .control import MQTTControlPlane
from .data import MQTTDataPlane, create_mqtt_listener

__all__ = [
    # Config
    "CatcherConfig",
    # Core
    "GameEngine",
    "GameRules",
    "PredictionStabilizer",
    # App
    "GameController",
    "main",
    # Control Plane
    "MQTTControlPlane",
    # Data Plane
    "MQTTDataPlane",
    "create_mqtt_listener",
]
