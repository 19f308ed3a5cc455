#!/usr/bin/env python3
"""
CLI para enviar comandos MQTT al juego
======================================

Uso:
    python -m catcher.control.cli start
    python -m catcher.control.cli stop
    python -m catcher.control.cli status
    python -m catcher.control.cli stabilization_stats
    python -m catcher.control.cli quit --broker 192.168.1.100
"""
import sys
import json
import argparse
import paho.mqtt.client as mqtt

COMMANDS = ["start", "stop", "status", "stabilization_stats", "quit"]


def send_command(broker: str, port: int, topic: str, command: str) -> bool:
    """Envía un comando MQTT al juego"""
    client = mqtt.Client(
        mqtt.CallbackAPIVersion.VERSION2,
        client_id="catcher_control_cli",
        protocol=mqtt.MQTTv5,
    )

    print(f"🔌 Conectando a {broker}:{port}...")
    try:
        client.connect(broker, port, keepalive=60)
    except (OSError, ValueError) as e:
        print(f"❌ Error conectando: {e}")
        return False

    client.loop_start()
    payload = json.dumps({"command": command})

    print(f"📤 Enviando comando: {command}")
    result = client.publish(topic, payload, qos=1)
    result.wait_for_publish(timeout=5)

    client.loop_stop()
    client.disconnect()

    if result.rc != mqtt.MQTT_ERR_SUCCESS:
        print(f"❌ Error enviando comando: {result.rc}")
        return False

    print("✅ Comando enviado exitosamente")
    return True


def main():
    parser = argparse.ArgumentParser(
        description="CLI para controlar Fruit Catcher vía MQTT"
    )
    parser.add_argument(
        "command",
        choices=COMMANDS,
        help="Comando a enviar"
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
        default="catcher/control/commands",
        help="MQTT topic (default: catcher/control/commands)"
    )

    args = parser.parse_args()

    success = send_command(args.broker, args.port, args.topic, args.command)
    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
