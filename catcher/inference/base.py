"""
Classifier Interface
====================

Contrato mínimo que el driver loop consume de un clasificador de poses:
un frame entra, un ClassificationSample sale.

Implementaciones:
- LocalClassificationModel (models.py): modelo Ultralytics de clasificación
- ScriptedClassifier (scripted.py): replay de samples (headless / tests)
"""
from abc import ABC, abstractmethod
from typing import List, Optional

import numpy as np

from .predictions import ClassificationSample


class BaseClassifier(ABC):
    """
    Clasificador de poses por frame.

    Los labels deben ser estables (mismo string frame a frame). Labels que no
    son lanes del juego se ignoran aguas abajo.
    """

    @abstractmethod
    def classify(self, frame: Optional[np.ndarray]) -> ClassificationSample:
        """
        Clasifica un frame.

        Returns:
            Secuencia ordenada de ClassPrediction (una por clase)
        """
        pass

    @property
    @abstractmethod
    def labels(self) -> List[str]:
        """Clases que puede emitir el clasificador"""
        pass

    @property
    def model_id(self) -> str:
        """ID para logging/monitoring"""
        return self.__class__.__name__

    def close(self) -> None:
        """Libera recursos (no-op por defecto)"""
        pass
