"""
MQTT Data Plane
===============

Data Plane para publicar eventos y estado del juego vía MQTT (QoS 0).
Fire-and-forget: un renderer remoto o un scoreboard se suscriben a estos topics.

Diseño:
- MQTTDataPlane = infraestructura MQTT (canal)
- Publishers = formateo de mensajes (GameEventPublisher, StatePublisher)
- SRP: Plane solo publica, Publishers formatean
"""
import json
import logging
from threading import Event, Lock
from typing import Any, Dict, Optional

import paho.mqtt.client as mqtt

from .publishers import GameEventPublisher, StatePublisher
from ..game.entities import GameSnapshot
from ..game.events import GameEvent
from ..inference.stabilization import StabilizedPrediction
from ..logging import get_trace_id, log_mqtt_publish, log_error_with_context

logger = logging.getLogger(__name__)


class MQTTDataPlane:
    """
    Data Plane del juego.

    Responsabilidad: Infraestructura MQTT
    - Conecta/desconecta del broker
    - Publica GameEvents (events_topic) y GameSnapshots (state_topic)
    - NO conoce estructura de mensajes (delega a publishers)
    """

    def __init__(
        self,
        broker_host: str,
        broker_port: int = 1883,
        events_topic: str = "catcher/data/events",
        state_topic: str = "catcher/data/state",
        client_id: str = "catcher_data",
        username: Optional[str] = None,
        password: Optional[str] = None,
        qos: int = 0,
    ):
        self.broker_host = broker_host
        self.broker_port = broker_port
        self.events_topic = events_topic
        self.state_topic = state_topic
        self.client_id = client_id
        self.qos = qos

        self.event_publisher = GameEventPublisher()
        self.state_publisher = StatePublisher()

        self.client = mqtt.Client(
            mqtt.CallbackAPIVersion.VERSION2,
            client_id=client_id,
            protocol=mqtt.MQTTv5,
        )
        if username and password:
            self.client.username_pw_set(username, password)

        self.client.on_connect = self._on_connect
        self.client.on_disconnect = self._on_disconnect

        self._connected = Event()
        self._lock = Lock()
        self._dropped = 0
        self._failed = 0

    @property
    def is_connected(self) -> bool:
        return self._connected.is_set()

    def _on_connect(self, client, userdata, flags, reason_code, properties=None):
        if reason_code.is_failure:
            log_error_with_context(
                logger,
                message=f"❌ Error conectando Data Plane al broker MQTT: {reason_code}",
                component="data_plane",
                event="connection_failed",
                broker_host=self.broker_host,
                broker_port=self.broker_port,
            )
            return

        logger.info(
            "✅ Data Plane conectado",
            extra={
                "component": "data_plane",
                "event": "connected",
                "broker_host": self.broker_host,
                "broker_port": self.broker_port,
            }
        )
        self._connected.set()

    def _on_disconnect(self, client, userdata, disconnect_flags, reason_code, properties=None):
        logger.warning(
            "⚠️ Data Plane desconectado",
            extra={
                "component": "data_plane",
                "event": "disconnected",
                "return_code": str(reason_code),
            }
        )
        self._connected.clear()

    def connect(self, timeout: float = 5.0) -> bool:
        """Conecta al broker MQTT (True si conectó dentro del timeout)"""
        try:
            logger.info(
                "🔌 Conectando Data Plane",
                extra={
                    "component": "data_plane",
                    "event": "connecting",
                    "broker_host": self.broker_host,
                    "broker_port": self.broker_port,
                    "timeout": timeout,
                }
            )
            self.client.connect(self.broker_host, self.broker_port, keepalive=60)
            self.client.loop_start()
            return self._connected.wait(timeout=timeout)
        except Exception as e:
            log_error_with_context(
                logger,
                message="❌ Error conectando Data Plane",
                exception=e,
                component="data_plane",
                event="connection_error",
                broker_host=self.broker_host,
                broker_port=self.broker_port,
            )
            return False

    def disconnect(self) -> None:
        logger.info(
            "🔌 Desconectando Data Plane",
            extra={"component": "data_plane", "event": "disconnecting"}
        )
        self.client.loop_stop()
        self.client.disconnect()

    def _publish(self, topic: str, message: Dict[str, Any], event_type: str) -> bool:
        payload = json.dumps(message, default=str)
        result = self.client.publish(topic, payload, qos=self.qos)
        success = result.rc == mqtt.MQTT_ERR_SUCCESS
        if not success:
            with self._lock:
                self._failed += 1

        log_mqtt_publish(
            logger,
            topic=topic,
            qos=self.qos,
            payload_size=len(payload),
            success=success,
            error_code=None if success else result.rc,
            event_type=event_type,
        )
        return success

    def publish_event(self, event: GameEvent) -> bool:
        """
        Publica un GameEvent en events_topic.

        Eventos fuera de GameEventPublisher.published_events se ignoran
        (spawns y movimientos del basket). Nunca lanza: un broker caído no
        debe cortar el frame loop.

        Returns:
            True si el mensaje salió al broker
        """
        if not self.event_publisher.should_publish(event):
            return False

        if not self._connected.is_set():
            with self._lock:
                self._dropped += 1
            logger.debug(
                "⚠️ Data Plane no conectado, evento descartado",
                extra={
                    "component": "data_plane",
                    "event": "publish_skipped",
                    "reason": "not_connected",
                    "game_event": event.event_type,
                }
            )
            return False

        try:
            message = self.event_publisher.format_message(event, session_id=get_trace_id())
            return self._publish(self.events_topic, message, event.event_type)
        except Exception as e:
            log_error_with_context(
                logger,
                message="❌ Error en publish_event",
                exception=e,
                component="data_plane",
                event="publish_exception",
                topic=self.events_topic,
            )
            return False

    def publish_snapshot(
        self,
        snapshot: GameSnapshot,
        prediction: Optional[StabilizedPrediction] = None,
        frame_id: Optional[int] = None,
    ) -> bool:
        """Publica el GameSnapshot del frame en state_topic"""
        if not self._connected.is_set():
            with self._lock:
                self._dropped += 1
            return False

        try:
            message = self.state_publisher.format_message(snapshot, prediction, frame_id)
            return self._publish(self.state_topic, message, "snapshot")
        except Exception as e:
            log_error_with_context(
                logger,
                message="❌ Error en publish_snapshot",
                exception=e,
                component="data_plane",
                event="publish_exception",
                topic=self.state_topic,
            )
            return False

    def get_stats(self) -> Dict[str, Any]:
        """Retorna estadísticas del data plane"""
        with self._lock:
            return {
                "events_published": self.event_publisher.message_count,
                "snapshots_published": self.state_publisher.message_count,
                "messages_dropped": self._dropped,
                "publish_failures": self._failed,
                "connected": self._connected.is_set(),
                "events_topic": self.events_topic,
                "state_topic": self.state_topic,
            }
