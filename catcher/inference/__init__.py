"""
Inference - Pose classifiers, frame sources, stabilization

Los adaptadores pesados (models.LocalClassificationModel con Ultralytics,
camera.CameraSource con OpenCV) se importan explícitamente desde su módulo.
"""
from .base import BaseClassifier
from .predictions import ClassPrediction, ClassificationSample, normalize_sample, top_prediction
from .scripted import ScriptedClassifier

__all__ = [
    "BaseClassifier",
    "ClassPrediction",
    "ClassificationSample",
    "ScriptedClassifier",
    "normalize_sample",
    "top_prediction",
]
