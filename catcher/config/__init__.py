"""
Configuration Module
====================

Provides configuration loading with Pydantic validation.

Usage:
    from catcher.config import CatcherConfig
    config = CatcherConfig.from_yaml("config/catcher/config.yaml")
"""
from .schemas import (
    CatcherConfig,
    CameraSettings,
    ModelSettings,
    StabilizationSettings,
    GameSettings,
    MQTTSettings,
    DisplaySettings,
    LoggingSettings,
    apply_env_overrides,
)

__all__ = [
    'CatcherConfig',
    'CameraSettings',
    'ModelSettings',
    'StabilizationSettings',
    'GameSettings',
    'MQTTSettings',
    'DisplaySettings',
    'LoggingSettings',
    'apply_env_overrides',
]
