"""
Game Visualization
==================

Render simple del juego con OpenCV:
- Webcam (con label estabilizado y probabilidades por clase)
- Campo de juego: basket, frutas (rojo) y bombas (negro)
- HUD con score / level / estado

Philosophy: KISS
- Una ventana única: cámara | campo de juego
- El sink solo lee GameSnapshot (nunca toca el engine)
- Funciones auxiliares pequeñas y enfocadas
"""

from typing import Optional, Sequence, Tuple
import logging

import cv2
import numpy as np

from ..game.entities import GameSnapshot, ItemView
from ..game.rules import GameRules
from ..inference.predictions import ClassificationSample
from ..inference.stabilization import StabilizedPrediction

logger = logging.getLogger(__name__)


# ============================================================================
# Color Palette (BGR format for OpenCV)
# ============================================================================
COLORS = {
    'background': (240, 240, 240),  # Gris claro del campo
    'basket': (255, 0, 0),          # Azul
    'fruit': (0, 0, 255),           # Rojo
    'bomb': (0, 0, 0),              # Negro
    'catch_line': (200, 200, 200),  # Gris de la catch line
    'text_bg': (0, 0, 0),           # Negro para fondo de texto
    'text_fg': (255, 255, 255),     # Blanco para texto
    'label': (0, 255, 0),           # Verde para label estabilizado
}

BASKET_WIDTH = 60
BASKET_HEIGHT = 20
ITEM_RADIUS = 15


# ============================================================================
# Geometry
# ============================================================================

def lane_x(lane: str, lanes: Sequence[str], width: int) -> int:
    """
    Posición horizontal (px) del centro de un lane.

    Lanes repartidos entre 20% y 80% del ancho (Left=80, Center=200,
    Right=320 en un canvas de 400).
    """
    if lane not in lanes:
        return width // 2
    count = len(lanes)
    if count == 1:
        return width // 2
    index = list(lanes).index(lane)
    return int(width * (0.2 + 0.6 * index / (count - 1)))


def field_to_canvas_y(y: float, field_height: float, canvas_height: int) -> int:
    return int(y * canvas_height / field_height)


# ============================================================================
# Drawing Utilities
# ============================================================================

def draw_basket(image: np.ndarray, snapshot: GameSnapshot, rules: GameRules) -> None:
    """Dibuja el basket en su lane, sobre la catch line"""
    height, width = image.shape[:2]
    x = lane_x(snapshot.catcher_lane, rules.lanes, width)
    y = field_to_canvas_y(rules.catch_line, rules.field_height, height)

    cv2.line(image, (0, y), (width, y), COLORS['catch_line'], 1)
    cv2.rectangle(
        image,
        (x - BASKET_WIDTH // 2, y),
        (x + BASKET_WIDTH // 2, y + BASKET_HEIGHT),
        COLORS['basket'],
        -1
    )


def draw_item(image: np.ndarray, item: ItemView, rules: GameRules) -> None:
    """Dibuja una fruta (círculo rojo) o bomba (círculo negro)"""
    height, width = image.shape[:2]
    x = lane_x(item.lane, rules.lanes, width)
    y = field_to_canvas_y(item.y, rules.field_height, height)
    color = COLORS['bomb'] if item.is_hazard else COLORS['fruit']
    cv2.circle(image, (x, y), ITEM_RADIUS, color, -1)


def draw_text_block(
    image: np.ndarray,
    lines: Sequence[Tuple[str, Tuple[int, int, int]]],
    origin: Tuple[int, int] = (0, 0),
) -> None:
    """Bloque de texto con fondo semi-transparente"""
    if not lines:
        return

    font = cv2.FONT_HERSHEY_SIMPLEX
    font_scale = 0.5
    thickness = 1
    line_height = 20
    padding = 5

    max_width = max(cv2.getTextSize(text, font, font_scale, thickness)[0][0] for text, _ in lines)
    x0, y0 = origin

    overlay = image.copy()
    cv2.rectangle(
        overlay,
        (x0, y0),
        (x0 + max_width + padding * 2, y0 + len(lines) * line_height + padding * 2),
        COLORS['text_bg'],
        -1
    )
    cv2.addWeighted(overlay, 0.7, image, 0.3, 0, image)

    y = y0 + padding + 15
    for text, color in lines:
        cv2.putText(image, text, (x0 + padding, y), font, font_scale, color, thickness)
        y += line_height


def draw_hud(image: np.ndarray, snapshot: GameSnapshot) -> None:
    """Score / level / estado en la esquina superior del campo"""
    state = "RUNNING" if snapshot.is_running else "IDLE - press 's' to start"
    draw_text_block(
        image,
        [
            (f"Score: {snapshot.score} | Level: {snapshot.level}", COLORS['text_fg']),
            (state, COLORS['text_fg']),
        ],
    )


def draw_predictions(
    image: np.ndarray,
    sample: Optional[ClassificationSample],
    prediction: Optional[StabilizedPrediction],
    show_probabilities: bool = True,
) -> None:
    """Label estabilizado + probabilidad por clase sobre la webcam"""
    label = prediction.label if prediction is not None and prediction.label else "..."
    lines = [(f"Pose: {label}", COLORS['label'])]

    if show_probabilities and sample:
        for class_prediction in sample:
            lines.append(
                (f"{class_prediction.label}: {class_prediction.probability:.2f}", COLORS['text_fg'])
            )

    draw_text_block(image, lines)


def render_game(snapshot: GameSnapshot, rules: GameRules, size: int = 400) -> np.ndarray:
    """Canvas size×size con el estado del juego"""
    canvas = np.full((size, size, 3), COLORS['background'], dtype=np.uint8)

    if snapshot.is_running:
        draw_basket(canvas, snapshot, rules)
        for item in snapshot.items:
            draw_item(canvas, item, rules)

    draw_hud(canvas, snapshot)
    return canvas


def compose_frame(camera_frame: Optional[np.ndarray], game_canvas: np.ndarray) -> np.ndarray:
    """Cámara | campo de juego, lado a lado"""
    height = game_canvas.shape[0]
    if camera_frame is None:
        camera_frame = np.zeros_like(game_canvas)
    elif camera_frame.shape[0] != height:
        scale = height / camera_frame.shape[0]
        camera_frame = cv2.resize(camera_frame, (int(camera_frame.shape[1] * scale), height))
    return np.hstack([camera_frame, game_canvas])


# ============================================================================
# Render Sinks
# ============================================================================

class OpenCVRenderSink:
    """
    Render sink con ventana OpenCV.

    __call__ dibuja el frame y retorna la tecla presionada (o None), así el
    controller maneja los atajos ('s' start, 'x' stop, 'q' quit).
    """

    def __init__(
        self,
        rules: GameRules,
        size: int = 400,
        window_name: str = "Fruit Catcher",
        show_probabilities: bool = True,
    ):
        self.rules = rules
        self.size = size
        self.window_name = window_name
        self.show_probabilities = show_probabilities

    def __call__(
        self,
        frame: Optional[np.ndarray],
        snapshot: GameSnapshot,
        sample: Optional[ClassificationSample] = None,
        prediction: Optional[StabilizedPrediction] = None,
    ) -> Optional[int]:
        camera_view = frame.copy() if frame is not None else None
        if camera_view is not None:
            draw_predictions(camera_view, sample, prediction, self.show_probabilities)

        canvas = render_game(snapshot, self.rules, self.size)
        cv2.imshow(self.window_name, compose_frame(camera_view, canvas))

        key = cv2.waitKey(1)
        if key < 0:
            return None
        return key & 0xFF

    def close(self) -> None:
        cv2.destroyWindow(self.window_name)


class NullRenderSink:
    """Sink headless: no dibuja nada"""

    def __call__(self, frame, snapshot, sample=None, prediction=None) -> Optional[int]:
        return None

    def close(self) -> None:
        pass
