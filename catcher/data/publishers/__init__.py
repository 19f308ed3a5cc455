"""
Publishers
==========

Publishers especializados para formatear mensajes MQTT.

Responsabilidad:
- Conocen estructura de mensajes (lógica de negocio)
- NO conocen detalles de MQTT (eso es del DataPlane)
"""
from .events import DEFAULT_PUBLISHED_EVENTS, GameEventPublisher
from .state import StatePublisher

__all__ = ['GameEventPublisher', 'StatePublisher', 'DEFAULT_PUBLISHED_EVENTS']
