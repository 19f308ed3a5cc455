"""
Local Model Adapter - Pose Classification with Ultralytics
===========================================================

Adaptador para modelos de clasificación de imagen locales (ONNX o .pt)
entrenados con las poses del juego (Left / Center / Right / ...).

Features:
- Carga modelos locales con Ultralytics (task='classify')
- Conversión de resultados usando supervision (sv.Classifications)
- Salida: ClassificationSample ordenado por class_id

Usage:
    model = LocalClassificationModel("models/pose-cls-224.onnx", imgsz=224)
    sample = model.classify(frame)
    # [ClassPrediction('Center', 0.91), ClassPrediction('Left', 0.05), ...]
"""

from typing import List, Optional
from pathlib import Path
import logging

import numpy as np
import supervision as sv
from ultralytics import YOLO

from .base import BaseClassifier
from .predictions import ClassPrediction, ClassificationSample

logger = logging.getLogger(__name__)

SUPPORTED_SUFFIXES = (".onnx", ".pt")


class LocalClassificationModel(BaseClassifier):
    """
    Wrapper para modelos de clasificación locales usando Ultralytics.

    Attributes:
        model: Instancia de YOLO de Ultralytics
        model_path: Path al archivo del modelo
        imgsz: Tamaño de imagen para inferencia
    """

    def __init__(
        self,
        model_path: str,
        imgsz: int = 224,
        labels: Optional[List[str]] = None,
    ):
        """
        Args:
            model_path: Path al archivo .onnx o .pt
            imgsz: Tamaño de imagen (debe coincidir con el exportado)
            labels: Override de nombres de clase (por class_id)

        Raises:
            FileNotFoundError: Si el modelo no existe
            ValueError: Si el modelo no es válido
        """
        self.model_path = Path(model_path)

        if not self.model_path.exists():
            raise FileNotFoundError(f"Modelo no encontrado: {model_path}")

        if self.model_path.suffix not in SUPPORTED_SUFFIXES:
            raise ValueError(
                f"Solo se soportan modelos {SUPPORTED_SUFFIXES}, recibido: {self.model_path.suffix}"
            )

        logger.info(f"🔧 Cargando modelo de poses: {self.model_path.name}")

        try:
            self.model = YOLO(str(self.model_path), task='classify')
            self.imgsz = imgsz
        except Exception as e:
            logger.error(f"❌ Error cargando modelo: {e}")
            raise ValueError(f"Error cargando modelo de clasificación: {e}") from e

        model_names = getattr(self.model, 'names', None) or {}
        if labels is not None:
            self._labels = list(labels)
            if model_names and len(model_names) != len(self._labels):
                logger.warning(
                    f"⚠️ MISMATCH: modelo tiene {len(model_names)} clases, "
                    f"config define {len(self._labels)} labels"
                )
        else:
            self._labels = [model_names[i] for i in sorted(model_names)]

        logger.info(
            f"✅ Modelo cargado: {self.model_path.name} (imgsz={imgsz}, labels={self._labels})"
        )

    @property
    def labels(self) -> List[str]:
        return list(self._labels)

    @property
    def model_id(self) -> str:
        return self.model_path.stem

    def _label_for(self, class_id: int) -> str:
        if 0 <= class_id < len(self._labels):
            return self._labels[class_id]
        return f"class_{class_id}"

    def classify(self, frame: Optional[np.ndarray]) -> ClassificationSample:
        """
        Ejecuta inferencia sobre un frame BGR.

        Returns:
            Sample ordenado por class_id ([] si no hay frame o resultados)
        """
        if frame is None:
            return []

        results = self.model.predict(
            frame,
            imgsz=self.imgsz,
            verbose=False,  # Silenciar logs de Ultralytics
        )
        if len(results) == 0:
            return []

        classifications = sv.Classifications.from_ultralytics(results[0])
        order = np.argsort(classifications.class_id)

        return [
            ClassPrediction(
                self._label_for(int(classifications.class_id[i])),
                float(classifications.confidence[i]),
            )
            for i in order
        ]
