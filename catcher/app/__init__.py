"""
App - Frame loop controller and builder
"""
from .builder import GameBuilder
from .controller import GameController, main

__all__ = ["GameBuilder", "GameController", "main"]
