"""
MQTT Listener Factory
=====================

Conecta el Data Plane al GameEngine como listener de eventos.
"""
from typing import Callable

from ..game.events import GameEvent
from .plane import MQTTDataPlane


def create_mqtt_listener(data_plane: MQTTDataPlane) -> Callable[[GameEvent], None]:
    """
    Crea un listener para GameEngine.add_listener() que publica vía MQTT.

    Note:
        __name__ = 'mqtt_listener' para identificarlo en logs del builder.
    """
    def mqtt_listener(event: GameEvent) -> None:
        data_plane.publish_event(event)

    mqtt_listener.__name__ = 'mqtt_listener'

    return mqtt_listener
