#!/usr/bin/env python3
"""
Monitor para el Data Plane MQTT
================================

Scoreboard de consola: escucha los eventos publicados por el juego
(score, level, game over) y muestra un resumen por partida.

Uso:
    python -m catcher.data.monitors
    python -m catcher.data.monitors --broker 192.168.1.100
    python -m catcher.data.monitors --topic catcher/data/events --verbose
"""
import json
import argparse
import signal
from collections import defaultdict
from datetime import datetime
from threading import Event, Lock
from typing import Any, Dict, List

import paho.mqtt.client as mqtt


class EventsMonitor:
    """Monitor de eventos del juego (Data Plane)"""

    def __init__(self, broker: str, port: int, topic: str, verbose: bool = False):
        self.broker = broker
        self.port = port
        self.topic = topic
        self.verbose = verbose

        self.message_count = 0
        self.event_counts: Dict[str, int] = defaultdict(int)
        self.finished_games: List[Dict[str, Any]] = []
        self.lock = Lock()
        self._stop = Event()

        self.client = mqtt.Client(
            mqtt.CallbackAPIVersion.VERSION2,
            client_id="catcher_events_monitor",
            protocol=mqtt.MQTTv5,
        )
        self.client.on_connect = self._on_connect
        self.client.on_message = self._on_message
        self.client.on_disconnect = self._on_disconnect

    def _on_connect(self, client, userdata, flags, reason_code, properties=None):
        if reason_code.is_failure:
            print(f"❌ Error conectando: {reason_code}")
            return

        print(f"✅ Conectado a {self.broker}:{self.port}")
        self.client.subscribe(self.topic, qos=0)
        print(f"📡 Escuchando: {self.topic}")
        print("\n" + "=" * 70)
        print("🎧 Monitor activo - Presiona Ctrl+C para salir")
        print("=" * 70 + "\n")

    def _on_disconnect(self, client, userdata, disconnect_flags, reason_code, properties=None):
        print(f"\n⚠️ Desconectado ({reason_code})")

    def _on_message(self, client, userdata, msg):
        try:
            message = json.loads(msg.payload.decode('utf-8'))
        except (UnicodeDecodeError, json.JSONDecodeError):
            print("❌ Error decodificando JSON")
            return

        if not isinstance(message, dict):
            return
        self.handle_message(message)

    def handle_message(self, message: Dict[str, Any]) -> None:
        """Acumula estadísticas y muestra los eventos relevantes"""
        event_type = message.get('event_type', 'unknown')
        data = message.get('data') or {}

        with self.lock:
            self.message_count += 1
            self.event_counts[event_type] += 1
            if event_type == 'game_ended':
                self.finished_games.append({
                    "session_id": message.get('session_id'),
                    "final_score": data.get('final_score', 0),
                    "final_level": data.get('final_level', 1),
                    "reason": data.get('reason', 'unknown'),
                })

        now = datetime.now().strftime("%H:%M:%S")
        if event_type == 'game_started':
            print(f"[{now}] ▶️  Partida iniciada ({message.get('session_id')})")
        elif event_type == 'score_changed':
            print(f"[{now}] 🍎 Score: {data.get('score')} | Level: {data.get('level')}")
        elif event_type == 'level_up':
            print(f"[{now}] ⬆️  Level {data.get('level')}")
        elif event_type == 'hazard_caught':
            print(f"[{now}] 💣 Bomba atrapada!")
        elif event_type == 'game_ended':
            print(
                f"[{now}] 🏁 Game over ({data.get('reason')}): "
                f"score={data.get('final_score')}, level={data.get('final_level')}\n"
            )
        elif self.verbose:
            print(f"[{now}] {event_type}: {data}")

    @property
    def best_score(self) -> int:
        with self.lock:
            return max((game["final_score"] for game in self.finished_games), default=0)

    def run(self):
        """Inicia el monitor (bloquea hasta Ctrl+C)"""
        signal.signal(signal.SIGINT, self._signal_handler)
        signal.signal(signal.SIGTERM, self._signal_handler)

        print(f"🔌 Conectando a {self.broker}:{self.port}...")
        try:
            self.client.connect(self.broker, self.port, keepalive=60)
            self.client.loop_start()
        except (OSError, ValueError) as e:
            print(f"❌ Error conectando: {e}")
            return

        try:
            while not self._stop.wait(timeout=1.0):
                pass
        except KeyboardInterrupt:
            pass

        self.stop()

    def _signal_handler(self, signum, frame):
        print("\n\n⚠️ Deteniendo monitor...")
        self._stop.set()

    def stop(self):
        """Detiene el monitor y muestra estadísticas"""
        self.client.loop_stop()
        self.client.disconnect()

        print("\n" + "=" * 70)
        print("📊 ESTADÍSTICAS")
        print("=" * 70)
        print(f"Mensajes recibidos: {self.message_count}")
        print(f"Partidas terminadas: {len(self.finished_games)}")
        print(f"Mejor score: {self.best_score}")

        if self.event_counts:
            print("\nEventos por tipo:")
            for event_type, count in sorted(
                self.event_counts.items(),
                key=lambda x: x[1],
                reverse=True
            ):
                print(f"  {event_type}: {count}")

        print("=" * 70)
        print("👋 Monitor detenido")


def main():
    parser = argparse.ArgumentParser(
        description="Scoreboard de eventos del juego (Data Plane MQTT)"
    )
    parser.add_argument(
        "--broker",
        default="localhost",
        help="MQTT broker host (default: localhost)"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=1883,
        help="MQTT broker port (default: 1883)"
    )
    parser.add_argument(
        "--topic",
        default="catcher/data/events",
        help="MQTT topic (default: catcher/data/events)"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Mostrar también eventos sin formato dedicado"
    )

    args = parser.parse_args()

    monitor = EventsMonitor(
        broker=args.broker,
        port=args.port,
        topic=args.topic,
        verbose=args.verbose
    )
    monitor.run()


if __name__ == "__main__":
    main()
