"""Face landmark capability.

The pipeline only needs "given an RGB image, return zero or one set of
normalized (x, y) landmarks". ``MediaPipeLandmarker`` provides that with the
MediaPipe Tasks FaceLandmarker (478 points including the refined iris).
Face detection/presence confidences are set very low on purpose: only
landmark presence matters downstream.
"""

from __future__ import annotations

import logging
import os
import threading
from typing import List, Optional, Protocol, Tuple

import mediapipe as mp
import numpy as np
from mediapipe.tasks import python as mp_python
from mediapipe.tasks.python import vision

logger = logging.getLogger(__name__)

NormalizedPoint = Tuple[float, float]


class LandmarkerUnavailable(RuntimeError):
    """The landmark model could not be loaded."""


class LandmarkProvider(Protocol):
    def detect(self, image_rgb: np.ndarray) -> Optional[List[NormalizedPoint]]:
        """Return normalized landmarks of the first face, or None if nothing was found."""
        ...

    def close(self) -> None:
        ...


class MediaPipeLandmarker:
    """Lazily created FaceLandmarker shared by every analysis in the process.

    Creation and ``detect`` are serialized by one lock; the Tasks landmarker
    makes no thread-safety promise.
    """

    def __init__(self, model_path: str, min_confidence: float = 0.1):
        self.model_path = model_path
        self.min_confidence = min_confidence
        self._landmarker = None
        self._init_error: Optional[LandmarkerUnavailable] = None
        self._lock = threading.Lock()

    def _create(self):
        if not os.path.exists(self.model_path):
            raise LandmarkerUnavailable(f"FaceLandmarker model not found: {self.model_path}")
        try:
            options = vision.FaceLandmarkerOptions(
                base_options=mp_python.BaseOptions(model_asset_path=self.model_path),
                running_mode=vision.RunningMode.IMAGE,
                num_faces=1,
                min_face_detection_confidence=self.min_confidence,
                min_face_presence_confidence=self.min_confidence,
                min_tracking_confidence=self.min_confidence,
                output_face_blendshapes=False,
                output_facial_transformation_matrixes=False,
            )
            landmarker = vision.FaceLandmarker.create_from_options(options)
        except Exception as e:
            raise LandmarkerUnavailable(f"Could not initialize FaceLandmarker: {e}") from e
        logger.info("FaceLandmarker initialized from %s", self.model_path)
        return landmarker

    def detect(self, image_rgb: np.ndarray) -> Optional[List[NormalizedPoint]]:
        with self._lock:
            if self._init_error is not None:
                raise LandmarkerUnavailable(str(self._init_error))
            if self._landmarker is None:
                try:
                    self._landmarker = self._create()
                except LandmarkerUnavailable as e:
                    # remembered until close(); creation is attempted once
                    self._init_error = e
                    raise
            mp_image = mp.Image(image_format=mp.ImageFormat.SRGB,
                                data=np.ascontiguousarray(image_rgb, dtype=np.uint8))
            result = self._landmarker.detect(mp_image)

        if not result.face_landmarks:
            return None
        return [(lm.x, lm.y) for lm in result.face_landmarks[0]]

    def close(self) -> None:
        with self._lock:
            self._init_error = None
            if self._landmarker is not None:
                self._landmarker.close()
                self._landmarker = None
                logger.info("FaceLandmarker closed")

    def __enter__(self) -> "MediaPipeLandmarker":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
