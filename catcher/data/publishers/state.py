"""
Game State Publisher
====================

Formatea GameSnapshot + decisión del stabilizer para renderers remotos.
NO conoce MQTT (eso es del DataPlane).
"""
from datetime import datetime
from typing import Any, Dict, Optional

from ...game.entities import GameSnapshot
from ...inference.stabilization import StabilizedPrediction


class StatePublisher:
    """Publisher de snapshots del juego (uno por frame)"""

    def __init__(self):
        self._message_count = 0

    def format_message(
        self,
        snapshot: GameSnapshot,
        prediction: Optional[StabilizedPrediction] = None,
        frame_id: Optional[int] = None,
    ) -> Dict[str, Any]:
        message = {
            "timestamp": datetime.now().isoformat(),
            "frame_id": frame_id,
            "state": snapshot.to_dict(),
        }
        if prediction is not None:
            message["pose"] = {
                "label": prediction.label,
                "probability": round(prediction.probability, 4),
            }

        self._message_count += 1
        message["message_id"] = self._message_count
        return message

    @property
    def message_count(self) -> int:
        return self._message_count
