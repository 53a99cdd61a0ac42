import logging
from typing import List, Optional, Sequence

import numpy as np

from .landmarks import LandmarkerUnavailable, LandmarkProvider, NormalizedPoint
from .metrics import bounding_box, iris_center_radius
from .schemas import (
    DetectionMethod,
    EyeCandidate,
    EyeDetectionResult,
    EyeSide,
    FailureStage,
    IrisData,
    Point,
)

logger = logging.getLogger(__name__)

# FaceLandmarker refined iris: center first, then 4 cardinal points
LEFT_IRIS_IDX = [468, 469, 470, 471, 472]
RIGHT_IRIS_IDX = [473, 474, 475, 476, 477]

# 16-point eyelid contours
LEFT_EYE_CONTOUR_IDX = [33, 7, 163, 144, 145, 153, 154, 155, 133, 173, 157, 158, 159, 160, 161, 246]
RIGHT_EYE_CONTOUR_IDX = [362, 382, 381, 380, 374, 373, 390, 249, 263, 466, 388, 387, 386, 385, 384, 398]

_SIDES = (
    (EyeSide.LEFT, LEFT_IRIS_IDX, LEFT_EYE_CONTOUR_IDX),
    (EyeSide.RIGHT, RIGHT_IRIS_IDX, RIGHT_EYE_CONTOUR_IDX),
)


def _poly_from_idxs(lm: Sequence[NormalizedPoint], idxs: Sequence[int], w: int, h: int) -> List[Point]:
    if not idxs or max(idxs) >= len(lm):
        return []
    return [(float(lm[i][0]) * w, float(lm[i][1]) * h) for i in idxs]


def _iris_from_idxs(lm: Sequence[NormalizedPoint], idxs: Sequence[int], w: int, h: int) -> Optional[IrisData]:
    pts = _poly_from_idxs(lm, idxs, w, h)
    if len(pts) < 5:
        return None
    center, r = iris_center_radius(pts)
    return IrisData(center=center, radius=r, landmarks=pts)


class EyeRegionDetector:
    """Eye candidates from face landmarks, gated on iris presence only.

    Overall face confidence is ignored: a close-up single eye with no
    recognizable face still succeeds when an iris subset is returned.
    """

    def __init__(self, provider: Optional[LandmarkProvider]):
        self.provider = provider

    def detect(self, image_rgb: np.ndarray) -> EyeDetectionResult:
        if self.provider is None:
            return EyeDetectionResult(success=False, error_stage=FailureStage.MODEL_INIT,
                                      error_reason="Landmark detector not initialized")
        try:
            lm = self.provider.detect(image_rgb)
        except LandmarkerUnavailable as e:
            logger.warning("Landmark model unavailable: %s", e)
            return EyeDetectionResult(success=False, error_stage=FailureStage.MODEL_INIT,
                                      error_reason=str(e))
        except Exception as e:
            logger.exception("Landmark detection failed")
            return EyeDetectionResult(success=False, error_stage=FailureStage.LANDMARK_EXTRACTION,
                                      error_reason=f"Landmark detection failed: {e}")

        h, w = image_rgb.shape[:2]
        return self._extract(lm, w, h)

    def _extract(self, lm: Optional[Sequence[NormalizedPoint]], w: int, h: int) -> EyeDetectionResult:
        if not lm:
            return EyeDetectionResult(
                success=False, error_stage=FailureStage.LANDMARK_EXTRACTION,
                error_reason="No landmarks detected - image may not contain recognizable eye features")

        candidates: List[EyeCandidate] = []
        for side, iris_idx, contour_idx in _SIDES:
            iris = _iris_from_idxs(lm, iris_idx, w, h)
            if iris is None:
                continue
            contour = _poly_from_idxs(lm, contour_idx, w, h)
            candidates.append(EyeCandidate(
                side=side,
                iris=iris,
                contour=contour,
                bounding_box=bounding_box(contour, iris),
                detection_method=DetectionMethod.LANDMARK,
            ))

        if not candidates:
            return EyeDetectionResult(
                success=False, error_stage=FailureStage.IRIS_EXTRACTION,
                error_reason="Iris landmarks not detected - ensure eye is visible and in focus")

        logger.info("Landmarks found %d eye candidate(s): %s",
                    len(candidates), ", ".join(c.side.value for c in candidates))
        return EyeDetectionResult(success=True, candidates=candidates,
                                  detection_method=DetectionMethod.LANDMARK)

    def close(self) -> None:
        if self.provider is not None:
            self.provider.close()
