"""
Prediction Stabilization Strategies
===================================

Convierte la salida ruidosa del clasificador de poses (un sample por frame)
en una señal de control discreta y estable.

Problema resuelto:
- Cerca de la frontera de decisión el clasificador oscila entre clases
- Sin filtrado temporal el basket salta entre lanes en cada frame

Solución (majority-of-last-N):
1. Umbral de probabilidad: el top-1 del frame solo es candidato si
   probability >= threshold, si no el frame aporta "no-detection" (None)
2. Ventana circular de capacidad fija con los últimos N candidatos
3. Label comprometido = candidato más frecuente de la ventana
   (empates: gana el visto más recientemente, evita oscilación)

Memoria O(N) fija, decisión O(N) por frame, latencia acotada a N frames.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Tuple
import logging

from ..predictions import ClassificationSample, top_prediction

logger = logging.getLogger(__name__)


# ============================================================================
# Configuration
# ============================================================================

@dataclass
class StabilizationConfig:
    """Configuración unificada para estrategias de estabilización"""
    mode: str = 'majority'  # 'none', 'majority'

    threshold: float = 0.7       # Probabilidad mínima para ser candidato
    smoothing_frames: int = 3    # Tamaño de la ventana de votación


@dataclass(frozen=True)
class StabilizedPrediction:
    """
    Decisión estabilizada para un frame.

    label es None cuando no hay label comprometido (no-detection).
    probability es la del frame más reciente que produjo el label (0.0 si None).
    """
    label: Optional[str]
    probability: float = 0.0

    @property
    def detected(self) -> bool:
        return self.label is not None


# ============================================================================
# Label Window (ring buffer)
# ============================================================================

class LabelWindow:
    """
    Ventana circular de capacidad fija con los últimos candidatos.

    Slots pre-alocados: push() sobrescribe el más viejo cuando está llena.
    """

    def __init__(self, capacity: int):
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")

        self.capacity = capacity
        self._labels: List[Optional[str]] = [None] * capacity
        self._probabilities: List[float] = [0.0] * capacity
        self._head = 0  # próximo slot a escribir
        self._size = 0

    def push(self, label: Optional[str], probability: float) -> None:
        self._labels[self._head] = label
        self._probabilities[self._head] = probability
        self._head = (self._head + 1) % self.capacity
        self._size = min(self._size + 1, self.capacity)

    def clear(self) -> None:
        for i in range(self.capacity):
            self._labels[i] = None
            self._probabilities[i] = 0.0
        self._head = 0
        self._size = 0

    def __len__(self) -> int:
        return self._size

    def __iter__(self) -> Iterator[Tuple[Optional[str], float]]:
        """Itera del más viejo al más reciente"""
        start = (self._head - self._size) % self.capacity
        for offset in range(self._size):
            idx = (start + offset) % self.capacity
            yield self._labels[idx], self._probabilities[idx]

    def labels(self) -> List[Optional[str]]:
        return [label for label, _ in self]

    def majority(self) -> Tuple[Optional[str], float]:
        """
        Candidato más frecuente de la ventana.

        Empates: gana el candidato cuya última aparición es más reciente.

        Returns:
            (label, probability del frame más reciente con ese label).
            (None, 0.0) si la ventana está vacía.
        """
        counts: Dict[Optional[str], int] = {}
        last_seen: Dict[Optional[str], int] = {}
        last_probability: Dict[Optional[str], float] = {}

        for position, (label, probability) in enumerate(self):
            counts[label] = counts.get(label, 0) + 1
            last_seen[label] = position
            last_probability[label] = probability

        if not counts:
            return None, 0.0

        winner = max(counts, key=lambda label: (counts[label], last_seen[label]))
        return winner, last_probability[winner]


# ============================================================================
# Base Stabilizer (Abstract)
# ============================================================================

class BasePredictionStabilizer(ABC):
    """
    Clase base abstracta para estrategias de estabilización.

    Interface contract:
    - stabilize(): Recibe un sample, retorna la decisión estabilizada
    - reset(): Limpia estado interno (al terminar cada sesión)
    - get_stats(): Métricas para logging / comando stabilization_stats
    """

    @abstractmethod
    def stabilize(self, sample: Optional[ClassificationSample]) -> StabilizedPrediction:
        pass

    @abstractmethod
    def reset(self) -> None:
        pass

    @abstractmethod
    def get_stats(self) -> Dict[str, Any]:
        pass


# ============================================================================
# Majority Vote Stabilizer
# ============================================================================

class PredictionStabilizer(BasePredictionStabilizer):
    """
    Debounce por votación de mayoría sobre los últimos N frames.

    Ejemplo (threshold=0.7, smoothing_frames=3):

    Frame 1: Left 0.9    → window [Left]             → Left
    Frame 2: Left 0.8    → window [Left, Left]       → Left
    Frame 3: Center 0.6  → window [Left, Left, None] → Left  (< threshold)
    Frame 4: Left 0.75   → window [Left, None, Left] → Left

    Propiedades:
    - Determinista: función pura de la secuencia de samples desde reset()
    - smoothing_frames=1 degenera en pass-through con umbral
    - Un spike de un frame no cambia el label (smoothing_frames >= 3)
    """

    def __init__(self, threshold: float = 0.7, smoothing_frames: int = 3):
        """
        Args:
            threshold: Probabilidad mínima [0.0, 1.0] para ser candidato
            smoothing_frames: Tamaño de la ventana (>= 1)

        Raises:
            ValueError: Si los parámetros están fuera de rango
        """
        if not (0.0 <= threshold <= 1.0):
            raise ValueError(f"threshold must be in [0.0, 1.0], got {threshold}")
        if smoothing_frames < 1:
            raise ValueError(f"smoothing_frames must be >= 1, got {smoothing_frames}")

        self.threshold = threshold
        self.smoothing_frames = smoothing_frames

        self._window = LabelWindow(smoothing_frames)
        self._committed: Optional[str] = None
        self._stats = self._empty_stats()

        logger.info(
            f"PredictionStabilizer initialized: "
            f"threshold={threshold:.2f}, smoothing_frames={smoothing_frames}"
        )

    @staticmethod
    def _empty_stats() -> Dict[str, int]:
        return {
            'total_frames': 0,
            'no_detection_frames': 0,
            'label_changes': 0,
        }

    @property
    def committed_label(self) -> Optional[str]:
        return self._committed

    def stabilize(self, sample: Optional[ClassificationSample]) -> StabilizedPrediction:
        """
        Procesa un frame y retorna el label comprometido.

        Algoritmo:
        1. Top-1 del sample; si probability < threshold → no-detection
        2. Push del candidato en la ventana (descarta el más viejo si llena)
        3. Candidato más frecuente (empates → el más reciente)
        4. Si difiere del label comprometido, se compromete el nuevo
        """
        self._stats['total_frames'] += 1

        top = top_prediction(sample)
        if top is None or top.probability < self.threshold:
            candidate, probability = None, 0.0
            self._stats['no_detection_frames'] += 1
        else:
            candidate, probability = top.label, top.probability

        self._window.push(candidate, probability)
        winner, winner_probability = self._window.majority()

        if winner != self._committed:
            logger.debug(
                f"🔀 Committed label changed: {self._committed} → {winner}",
                extra={
                    "component": "stabilization",
                    "event": "label_changed",
                    "previous_label": self._committed,
                    "label": winner,
                    "window": self._window.labels(),
                }
            )
            self._committed = winner
            self._stats['label_changes'] += 1

        if self._committed is None:
            return StabilizedPrediction(None, 0.0)
        return StabilizedPrediction(self._committed, winner_probability)

    def reset(self) -> None:
        """Vacía la ventana y el label comprometido (fin de sesión)"""
        self._window.clear()
        self._committed = None
        self._stats = self._empty_stats()
        logger.info("🔄 Prediction stabilizer reset")

    def get_stats(self) -> Dict[str, Any]:
        stats: Dict[str, Any] = dict(self._stats)
        stats['mode'] = 'majority'
        stats['committed_label'] = self._committed
        stats['window_size'] = self.smoothing_frames
        stats['window_fill'] = len(self._window)
        if stats['total_frames'] > 0:
            stats['no_detection_ratio'] = stats['no_detection_frames'] / stats['total_frames']
        else:
            stats['no_detection_ratio'] = 0.0
        return stats


# ============================================================================
# No-op Stabilizer (Baseline)
# ============================================================================

class NoOpStabilizer(BasePredictionStabilizer):
    """
    Pass-through del top-1 sin umbral ni ventana (baseline para comparación).
    """

    def stabilize(self, sample: Optional[ClassificationSample]) -> StabilizedPrediction:
        top = top_prediction(sample)
        if top is None:
            return StabilizedPrediction(None, 0.0)
        return StabilizedPrediction(top.label, top.probability)

    def reset(self) -> None:
        pass

    def get_stats(self) -> Dict[str, Any]:
        return {'mode': 'none'}


# ============================================================================
# Factory
# ============================================================================

def create_stabilizer(config: StabilizationConfig) -> BasePredictionStabilizer:
    """
    Factory: valida configuración y crea estrategia de estabilización.

    Raises:
        ValueError: Si configuración inválida
    """
    mode = config.mode.lower()

    if mode not in ['none', 'majority']:
        raise ValueError(
            f"Invalid stabilization mode: '{mode}'. "
            f"Currently supported: 'none', 'majority'"
        )

    if mode == 'none':
        logger.info("🔲 Stabilization: NONE (top-1 pass-through)")
        return NoOpStabilizer()

    logger.info(
        f"⏱️ Stabilization: MAJORITY "
        f"(threshold={config.threshold:.2f}, smoothing_frames={config.smoothing_frames})"
    )
    return PredictionStabilizer(
        threshold=config.threshold,
        smoothing_frames=config.smoothing_frames,
    )
