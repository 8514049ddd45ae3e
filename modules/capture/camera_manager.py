"""
Camera capture for the gesture-update loop.

Reads synchronously on the gesture thread: the landmark provider sets the
tick rate, so there is no point buffering frames ahead of it.
"""

import logging
import cv2
import numpy as np

logger = logging.getLogger(__name__)


class CameraManager:
    """OpenCV VideoCapture with warmup and optional mirroring."""

    def __init__(self, config: dict):
        self._device_id = config.get("device_id", 0)
        self._width = config.get("width", 640)
        self._height = config.get("height", 480)
        self._fps = config.get("fps", 30)
        # Landmarks must stay in raw image space; the cursor mapping mirrors
        self._flip_h = config.get("flip_horizontal", False)
        self._warmup_frames = config.get("warmup_frames", 5)

        self._cap = None
        self._frame_id = 0
        self._last_frame = None

    def open(self) -> bool:
        """Open the device and discard warmup frames."""
        self._cap = cv2.VideoCapture(self._device_id)
        if not self._cap.isOpened():
            logger.error("Failed to open camera %d", self._device_id)
            self._cap = None
            return False

        self._cap.set(cv2.CAP_PROP_FRAME_WIDTH, self._width)
        self._cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self._height)
        self._cap.set(cv2.CAP_PROP_FPS, self._fps)

        actual_w = int(self._cap.get(cv2.CAP_PROP_FRAME_WIDTH))
        actual_h = int(self._cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
        logger.info("Camera %d opened: %dx%d (requested %dx%d @ %d)",
                    self._device_id, actual_w, actual_h,
                    self._width, self._height, self._fps)

        for _ in range(self._warmup_frames):
            self._cap.read()
        return True

    def read(self):
        """Blocking read of the next frame.

        Returns:
            tuple: (frame_id, BGR numpy array) or (None, None)
        """
        if self._cap is None:
            return None, None
        ret, frame = self._cap.read()
        if not ret or frame is None:
            return None, None
        if self._flip_h:
            frame = cv2.flip(frame, 1)
        self._frame_id += 1
        self._last_frame = frame
        return self._frame_id, frame

    @property
    def last_frame(self) -> np.ndarray:
        return self._last_frame

    @property
    def resolution(self) -> tuple:
        return (self._width, self._height)

    @property
    def is_open(self) -> bool:
        return self._cap is not None and self._cap.isOpened()

    def stop(self):
        if self._cap:
            self._cap.release()
            self._cap = None
            logger.info("Camera stopped")

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, *args):
        self.stop()
