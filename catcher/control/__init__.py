"""
Control Plane - MQTT commands (QoS 1)
"""
from .plane import MQTTControlPlane
from .registry import CommandNotAvailableError, CommandRegistry

__all__ = ["MQTTControlPlane", "CommandRegistry", "CommandNotAvailableError"]
