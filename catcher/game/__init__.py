"""
Game Simulation - Fruit Catcher state machine
"""
from .engine import GameEngine
from .entities import GamePhase, GameSnapshot, Item, ItemCategory, ItemView
from .events import (
    CatcherMoved,
    GameEnded,
    GameEvent,
    GameStarted,
    HazardCaught,
    ItemCaught,
    ItemMissed,
    ItemSpawned,
    LevelUp,
    ScoreChanged,
)
from .rules import GameRules

__all__ = [
    "GameEngine",
    "GameRules",
    "GamePhase",
    "GameSnapshot",
    "Item",
    "ItemCategory",
    "ItemView",
    "GameEvent",
    "GameStarted",
    "ScoreChanged",
    "LevelUp",
    "ItemSpawned",
    "ItemCaught",
    "HazardCaught",
    "ItemMissed",
    "CatcherMoved",
    "GameEnded",
]
