"""
Monitors - consola para inspeccionar el Data Plane
"""
from .events_monitor import EventsMonitor

__all__ = ["EventsMonitor"]
