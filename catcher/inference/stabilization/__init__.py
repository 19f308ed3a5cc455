"""
Prediction Stabilization - Temporal filtering to debounce pose labels

- core.py: Ring window, majority-vote stabilizer, no-op baseline, factory

Public API:
- Strategies: PredictionStabilizer, NoOpStabilizer
- Factory: create_stabilizer
"""

from .core import (
    BasePredictionStabilizer,
    LabelWindow,
    NoOpStabilizer,
    PredictionStabilizer,
    StabilizationConfig,
    StabilizedPrediction,
    create_stabilizer,
)

__all__ = [
    # Core classes
    "BasePredictionStabilizer",
    "PredictionStabilizer",
    "NoOpStabilizer",
    "StabilizationConfig",
    "StabilizedPrediction",
    "LabelWindow",

    # Factory
    "create_stabilizer",
]
