"""
Entry point for monitors
Usage:
    python -m catcher.data.monitors          # Scoreboard de eventos del juego
"""
from .events_monitor import main

if __name__ == "__main__":
    main()
