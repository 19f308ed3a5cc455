"""
Data Plane - MQTT game events / state publishing (QoS 0)
"""
from .plane import MQTTDataPlane
from .sinks import create_mqtt_listener

__all__ = ["MQTTDataPlane", "create_mqtt_listener"]
