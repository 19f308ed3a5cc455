"""
MQTT Control Plane
==================

Control Plane del juego vía MQTT (QoS 1).
Reemplaza los botones Start/Stop de la UI: recibe comandos y publica estado.

Diseño:
- Usa CommandRegistry para comandos explícitos
- Los handlers registrados NO tocan el GameEngine directamente: encolan el
  comando y el frame loop lo drena entre ticks (paho corre en otro thread)
- Structured logging con trace correlation
"""
import json
import logging
from datetime import datetime
from threading import Event
from typing import Any, Dict, Optional

import paho.mqtt.client as mqtt

from .registry import CommandRegistry, CommandNotAvailableError
from ..logging import (
    trace_context,
    generate_trace_id,
    log_mqtt_command,
    log_error_with_context
)

logger = logging.getLogger(__name__)


class MQTTControlPlane:
    """
    Control Plane vía MQTT.

    Comandos típicos:
    - start: Inicia una partida
    - stop: Termina la partida actual (reporta score final)
    - status: Publica estado actual
    - stabilization_stats: Estadísticas del stabilizer (solo si habilitado)
    - quit: Cierra la aplicación

    Usage:
        control_plane = MQTTControlPlane(broker_host="localhost")
        control_plane.command_registry.register('start', controller.request_start, "Inicia")
        control_plane.connect()

    Mensaje esperado en command_topic: {"command": "start"}
    """

    def __init__(
        self,
        broker_host: str,
        broker_port: int = 1883,
        command_topic: str = "catcher/control/commands",
        status_topic: str = "catcher/control/status",
        client_id: str = "catcher_control",
        username: Optional[str] = None,
        password: Optional[str] = None,
        qos: int = 1,
    ):
        self.broker_host = broker_host
        self.broker_port = broker_port
        self.command_topic = command_topic
        self.status_topic = status_topic
        self.client_id = client_id
        self.qos = qos

        self.command_registry = CommandRegistry()

        self.client = mqtt.Client(
            mqtt.CallbackAPIVersion.VERSION2,
            client_id=client_id,
            protocol=mqtt.MQTTv5,
        )
        if username and password:
            self.client.username_pw_set(username, password)

        self.client.on_connect = self._on_connect
        self.client.on_message = self._on_message
        self.client.on_disconnect = self._on_disconnect

        self._connected = Event()

    @property
    def is_connected(self) -> bool:
        return self._connected.is_set()

    def _on_connect(self, client, userdata, flags, reason_code, properties=None):
        if reason_code.is_failure:
            logger.error(
                "Failed to connect to MQTT broker",
                extra={
                    "component": "control_plane",
                    "event": "connection_error",
                    "broker_host": self.broker_host,
                    "broker_port": self.broker_port,
                    "return_code": str(reason_code)
                }
            )
            return

        logger.info(
            "Control Plane connected to broker",
            extra={
                "component": "control_plane",
                "event": "broker_connected",
                "broker_host": self.broker_host,
                "broker_port": self.broker_port
            }
        )
        self.client.subscribe(self.command_topic, qos=self.qos)
        self._connected.set()
        self.publish_status("connected")

    def _on_disconnect(self, client, userdata, disconnect_flags, reason_code, properties=None):
        logger.warning(
            "Control Plane disconnected from broker",
            extra={
                "component": "control_plane",
                "event": "broker_disconnected",
                "return_code": str(reason_code)
            }
        )
        self._connected.clear()

    def _on_message(self, client, userdata, msg):
        """Decodifica {"command": ...} y lo ejecuta vía registry"""
        try:
            command_data = json.loads(msg.payload.decode('utf-8'))
        except (UnicodeDecodeError, json.JSONDecodeError):
            logger.error(
                f"❌ Error decodificando comando: {msg.payload!r}",
                extra={
                    "component": "control_plane",
                    "mqtt_topic": msg.topic,
                    "raw_payload": str(msg.payload)
                }
            )
            return

        if not isinstance(command_data, dict):
            logger.warning(
                "⚠️ Comando ignorado: payload no es un objeto JSON",
                extra={"component": "control_plane", "mqtt_topic": msg.topic}
            )
            return

        self.handle_command(command_data, topic=msg.topic)

    def handle_command(self, command_data: Dict[str, Any], topic: Optional[str] = None) -> None:
        """Ejecuta un comando ya decodificado con su propio trace_id"""
        command = str(command_data.get('command', '')).lower()
        trace_id = generate_trace_id(prefix=f"cmd-{command or 'empty'}")

        with trace_context(trace_id):
            log_mqtt_command(
                logger,
                command=command,
                topic=topic or self.command_topic,
                payload=command_data,
                trace_id=trace_id
            )

            try:
                self.command_registry.execute(command)
            except CommandNotAvailableError as e:
                logger.warning(
                    f"⚠️ {e}",
                    extra={
                        "command": command,
                        "trace_id": trace_id,
                        "available_commands": sorted(self.command_registry.available_commands)
                    }
                )
            except Exception as e:
                log_error_with_context(
                    logger,
                    message="Error ejecutando comando",
                    exception=e,
                    component="control_plane",
                    event="command_error",
                    command=command,
                )

    def publish_status(self, status: str, details: Optional[Dict[str, Any]] = None) -> None:
        """
        Publica el estado actual (retained).

        Args:
            status: Estado ("idle", "running", "stopped", ...)
            details: Campos extra (score, level, ...)
        """
        message: Dict[str, Any] = {
            "status": status,
            "timestamp": datetime.now().isoformat(),
            "client_id": self.client_id
        }
        if details:
            message.update(details)

        self.client.publish(
            self.status_topic,
            json.dumps(message, default=str),
            qos=self.qos,
            retain=True
        )
        logger.info(
            "Status published",
            extra={
                "component": "control_plane",
                "event": "status_published",
                "status": status,
                "topic": self.status_topic
            }
        )

    def connect(self, timeout: float = 5.0) -> bool:
        """Conecta al broker MQTT (True si conectó dentro del timeout)"""
        try:
            logger.info(
                "Connecting to MQTT broker",
                extra={
                    "component": "control_plane",
                    "event": "connection_attempt",
                    "broker_host": self.broker_host,
                    "broker_port": self.broker_port
                }
            )
            self.client.connect(self.broker_host, self.broker_port, keepalive=60)
            self.client.loop_start()
            return self._connected.wait(timeout=timeout)
        except Exception as e:
            log_error_with_context(
                logger,
                message="Failed to connect to MQTT",
                exception=e,
                component="control_plane",
                event="connection_exception",
                broker_host=self.broker_host,
                broker_port=self.broker_port,
            )
            return False

    def disconnect(self) -> None:
        logger.info("🔌 Desconectando Control Plane...")
        if self.is_connected:
            self.publish_status("disconnected")
        self.client.loop_stop()
        self.client.disconnect()
