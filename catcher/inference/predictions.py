"""
Classification Samples
======================

Formato de salida de un clasificador de poses por frame.

Un ClassificationSample es una secuencia ordenada de pares (label, probability).
Las probabilidades son scores independientes por clase en [0, 1] (no
necesariamente suman 1). Es efímero: se produce una vez por frame, lo consume
el stabilizer y se descarta.

Entradas malformadas (label vacío, probabilidad no numérica o NaN) se ignoran
silenciosamente: un sample sin entradas válidas equivale a "no-detection".
"""
import math
from typing import Any, Iterable, List, NamedTuple, Optional, Sequence


class ClassPrediction(NamedTuple):
    """Score de una clase en un frame"""
    label: str
    probability: float


ClassificationSample = Sequence[ClassPrediction]


def _coerce(entry: Any) -> Optional[ClassPrediction]:
    """
    Normaliza una entrada del clasificador.

    Acepta ClassPrediction, tuplas (label, probability) o dicts con
    'label'/'class'/'className' y 'probability'/'confidence'.

    Returns:
        ClassPrediction o None si la entrada es inválida
    """
    if isinstance(entry, dict):
        label = entry.get('label', entry.get('class', entry.get('className')))
        probability = entry.get('probability', entry.get('confidence'))
    else:
        try:
            label, probability = entry
        except (TypeError, ValueError):
            return None

    if not isinstance(label, str) or not label:
        return None

    try:
        probability = float(probability)
    except (TypeError, ValueError):
        return None

    if math.isnan(probability):
        return None

    return ClassPrediction(label, probability)


def normalize_sample(entries: Optional[Iterable[Any]]) -> List[ClassPrediction]:
    """
    Convierte la salida cruda del clasificador en un sample limpio.

    Preserva el orden original y descarta entradas malformadas.
    """
    if entries is None:
        return []

    try:
        iterator = iter(entries)
    except TypeError:
        return []

    sample = []
    for entry in iterator:
        prediction = _coerce(entry)
        if prediction is not None:
            sample.append(prediction)
    return sample


def top_prediction(entries: Optional[Iterable[Any]]) -> Optional[ClassPrediction]:
    """
    Retorna la clase con mayor probabilidad del sample.

    Empates: gana la primera en orden (el sample es una secuencia ordenada).

    Returns:
        ClassPrediction ganadora, o None si el sample está vacío/malformado
    """
    best: Optional[ClassPrediction] = None
    for prediction in normalize_sample(entries):
        if best is None or prediction.probability > best.probability:
            best = prediction
    return best


__all__ = [
    'ClassPrediction',
    'ClassificationSample',
    'normalize_sample',
    'top_prediction',
]
