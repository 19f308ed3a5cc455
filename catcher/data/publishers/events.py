"""
Game Event Publisher
====================

Publisher especializado en formatear eventos del juego.

Responsabilidad:
- Conoce estructura de GameEvent (score, level, game over, ...)
- Decide qué eventos salen por MQTT (los ruidosos quedan afuera)
- NO conoce MQTT (eso es del DataPlane)
"""
from datetime import datetime
from typing import Any, Dict, FrozenSet, Optional

from ...game.events import GameEvent

# Eventos de lifecycle / score (spawns y movimientos del basket son ruido a 30 FPS)
DEFAULT_PUBLISHED_EVENTS: FrozenSet[str] = frozenset({
    "game_started",
    "score_changed",
    "level_up",
    "item_caught",
    "item_missed",
    "hazard_caught",
    "game_ended",
})


class GameEventPublisher:
    """
    Publisher de eventos del juego.

    Formatea GameEvents en mensajes MQTT.
    """

    def __init__(self, published_events: Optional[FrozenSet[str]] = None):
        self.published_events = (
            DEFAULT_PUBLISHED_EVENTS if published_events is None else frozenset(published_events)
        )
        self._message_count = 0

    def should_publish(self, event: GameEvent) -> bool:
        return event.event_type in self.published_events

    def format_message(
        self,
        event: GameEvent,
        session_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Formatea un evento en mensaje MQTT.

        Args:
            event: Evento emitido por el GameEngine
            session_id: ID de la sesión (trace de la partida)

        Returns:
            {"timestamp", "message_id", "session_id", "event_type", "data"}
        """
        data = event.to_dict()
        event_type = data.pop("event_type")
        data.pop("timestamp", None)

        self._message_count += 1
        return {
            "timestamp": datetime.now().isoformat(),
            "message_id": self._message_count,
            "session_id": session_id,
            "event_type": event_type,
            "game_clock": event.timestamp,
            "data": data,
        }

    @property
    def message_count(self) -> int:
        return self._message_count
