"""
Frame Sources
=============

Adquisición de frames para el driver loop.

- CameraSource: webcam vía OpenCV (espejada y recortada a cuadrado)
- BlankFrameSource: frames negros (modo headless con ScriptedClassifier)
"""
import logging
from typing import Optional

import cv2
import numpy as np

logger = logging.getLogger(__name__)


def square_crop(image: np.ndarray, size: int) -> np.ndarray:
    """Recorte central cuadrado + resize a size×size"""
    height, width = image.shape[:2]
    side = min(height, width)
    y0 = (height - side) // 2
    x0 = (width - side) // 2
    cropped = image[y0:y0 + side, x0:x0 + side]
    if side == size:
        return cropped
    return cv2.resize(cropped, (size, size), interpolation=cv2.INTER_AREA)


class CameraSource:
    """
    Webcam vía cv2.VideoCapture.

    Usage:
        camera = CameraSource(device=0, size=400, flip=True)
        camera.open()
        frame = camera.read()   # np.ndarray BGR (size, size, 3) o None
        camera.release()
    """

    def __init__(self, device: int = 0, size: int = 400, flip: bool = True):
        self.device = device
        self.size = size
        self.flip = flip
        self._capture: Optional[cv2.VideoCapture] = None
        self.frames_read = 0
        self.frames_dropped = 0

    def open(self) -> None:
        """
        Raises:
            RuntimeError: Si la cámara no se puede abrir
        """
        logger.info(f"📷 Abriendo cámara {self.device}...")
        capture = cv2.VideoCapture(self.device)
        if not capture.isOpened():
            capture.release()
            raise RuntimeError(f"No se pudo abrir la cámara {self.device}")
        self._capture = capture
        logger.info(
            "✅ Cámara abierta",
            extra={
                "component": "camera",
                "event": "camera_opened",
                "device": self.device,
                "size": self.size,
                "flip": self.flip,
            }
        )

    @property
    def is_open(self) -> bool:
        return self._capture is not None and self._capture.isOpened()

    def read(self) -> Optional[np.ndarray]:
        """Frame actual, o None si la lectura falla"""
        if self._capture is None:
            return None

        ok, image = self._capture.read()
        if not ok or image is None:
            self.frames_dropped += 1
            return None

        self.frames_read += 1
        if self.flip:
            image = cv2.flip(image, 1)
        return square_crop(image, self.size)

    def release(self) -> None:
        if self._capture is not None:
            self._capture.release()
            self._capture = None
            logger.info(
                f"📷 Cámara liberada ({self.frames_read} frames, {self.frames_dropped} dropped)"
            )


class BlankFrameSource:
    """Fuente de frames negros para modo headless"""

    def __init__(self, size: int = 400):
        self.size = size
        self._frame = np.zeros((size, size, 3), dtype=np.uint8)

    def open(self) -> None:
        pass

    @property
    def is_open(self) -> bool:
        return True

    def read(self) -> Optional[np.ndarray]:
        return self._frame.copy()

    def release(self) -> None:
        pass
