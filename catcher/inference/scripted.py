"""
Scripted Classifier
===================

Replay de samples pregrabados, sin cámara ni modelo.

Útil para:
- Correr el juego headless (demo, CI)
- Tests del driver loop deterministas

Formato YAML:
    loop: true
    frames:
      - {Left: 0.9, Center: 0.05, Right: 0.05}
      - sample: {Center: 0.85}
        repeat: 30
      - {}            # frame sin detección
"""
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import numpy as np
import yaml

from .base import BaseClassifier
from .predictions import ClassPrediction, ClassificationSample, normalize_sample


def _parse_frame(entry: Any) -> List[List[ClassPrediction]]:
    """Un entry del YAML → uno o más samples"""
    if entry is None:
        return [[]]

    if isinstance(entry, dict) and 'sample' in entry:
        repeat = int(entry.get('repeat', 1))
        sample = _parse_frame(entry['sample'])[0]
        return [list(sample) for _ in range(max(repeat, 0))]

    if isinstance(entry, dict):
        return [normalize_sample(entry.items())]

    return [normalize_sample(entry)]


class ScriptedClassifier(BaseClassifier):
    """
    Clasificador que reproduce una secuencia fija de samples.

    Agotada la secuencia, retorna samples vacíos (no-detection) salvo loop=True.
    """

    def __init__(self, samples: Sequence[ClassificationSample], loop: bool = False):
        self._samples: List[List[ClassPrediction]] = [normalize_sample(s) for s in samples]
        self.loop = loop
        self._cursor = 0

        labels: List[str] = []
        for sample in self._samples:
            for prediction in sample:
                if prediction.label not in labels:
                    labels.append(prediction.label)
        self._labels = labels

    @classmethod
    def from_yaml(cls, script_path: str) -> 'ScriptedClassifier':
        """
        Raises:
            FileNotFoundError: Si el script no existe
            ValueError: Si el YAML no tiene 'frames'
        """
        path = Path(script_path)
        if not path.exists():
            raise FileNotFoundError(f"Script de poses no encontrado: {script_path}")

        with open(path, 'r') as f:
            data: Optional[Dict[str, Any]] = yaml.safe_load(f)

        if not isinstance(data, dict) or not isinstance(data.get('frames'), list):
            raise ValueError(f"Script inválido (falta lista 'frames'): {script_path}")

        samples: List[List[ClassPrediction]] = []
        for entry in data['frames']:
            samples.extend(_parse_frame(entry))

        return cls(samples, loop=bool(data.get('loop', False)))

    @property
    def labels(self) -> List[str]:
        return list(self._labels)

    @property
    def exhausted(self) -> bool:
        return not self.loop and self._cursor >= len(self._samples)

    def __len__(self) -> int:
        return len(self._samples)

    def classify(self, frame: Optional[np.ndarray]) -> ClassificationSample:
        if not self._samples:
            return []

        if self._cursor >= len(self._samples):
            if not self.loop:
                return []
            self._cursor = 0

        sample = self._samples[self._cursor]
        self._cursor += 1
        return list(sample)

    def rewind(self) -> None:
        self._cursor = 0
