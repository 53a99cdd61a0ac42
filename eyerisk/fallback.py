"""Deterministic eye detection without any learned model.

Lab/HSV colour analysis, sclera and iris classification and geometric
validation, fused with the same weights as the main confidence scorer. The
engine never raises: any internal error yields a zero-confidence
"not an eye" verdict with an ``error`` diagnostic.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import numpy as np

from .classifier import detect_iris, detect_sclera
from .colorspace import analyze_color_spaces
from .confidence import fuse
from .config import AnalysisSettings
from .geometry import validate_geometry
from .schemas import (
    BoundingBox,
    EyeConfidence,
    FallbackResult,
    GeometryResult,
    IrisDetectionResult,
    ScleraResult,
)

logger = logging.getLogger(__name__)

ANALYSIS_METHOD = "LAB+HSV color space with geometric validation"


def fallback_confidence(sclera: ScleraResult, iris: IrisDetectionResult,
                        geometry: GeometryResult) -> EyeConfidence:
    color = float(np.clip(sclera.coverage * 2, 0.0, 1.0)) if sclera.detected else 0.2
    landmark_proxy = float(np.clip(iris.circularity, 0.0, 1.0)) if iris.detected else 0.0
    if geometry.valid and geometry.horizontal_symmetry:
        geom = 1.0
    elif geometry.valid:
        geom = 0.6
    else:
        geom = 0.2
    return fuse(landmark_proxy, color, geom)


class DeterministicFallback:
    def __init__(self, settings: Optional[AnalysisSettings] = None):
        self.settings = settings or AnalysisSettings()

    def analyze_region(self, image_rgb: np.ndarray, region: Optional[BoundingBox] = None) -> FallbackResult:
        try:
            analysis = analyze_color_spaces(image_rgb, region)
            sclera = detect_sclera(analysis, self.settings)
            iris = detect_iris(analysis, self.settings)
            geometry = validate_geometry(sclera, iris, analysis.width, analysis.height, self.settings)
            confidence = fallback_confidence(sclera, iris, geometry)

            is_eye = (confidence.overall >= self.settings.fallback_eye_threshold
                      and (sclera.detected or iris.detected))
            logger.info("Fallback verdict is_eye=%s overall=%.3f sclera=%s iris=%s",
                        is_eye, confidence.overall, sclera.detected, iris.detected)

            center = None
            if iris.center is not None:
                # report in image coordinates
                center = (iris.center[0] + analysis.origin[0], iris.center[1] + analysis.origin[1])

            return FallbackResult(
                is_eye=is_eye,
                confidence=confidence,
                sclera_detected=sclera.detected,
                iris_detected=iris.detected,
                geometry_valid=geometry.valid,
                estimated_iris_center=center,
                diagnostics=self._diagnostics(sclera, iris, geometry),
            )
        except Exception as e:
            logger.exception("Fallback analysis failed")
            return FallbackResult(
                is_eye=False,
                confidence=fuse(0.0, 0.0, 0.0),
                diagnostics={"error": str(e) or type(e).__name__},
            )

    def _diagnostics(self, sclera: ScleraResult, iris: IrisDetectionResult,
                     geometry: GeometryResult) -> Dict[str, Any]:
        s = self.settings
        return {
            "sclera_detected": sclera.detected,
            "sclera_coverage": f"{sclera.coverage * 100:.1f}%",
            "iris_detected": iris.detected,
            "iris_circularity": f"{iris.circularity:.2f}",
            "aspect_ratio": f"{geometry.aspect_ratio:.2f}",
            "expected_aspect_range": f"{s.aspect_ratio_min}-{s.aspect_ratio_max}",
            "horizontal_symmetry": geometry.horizontal_symmetry,
            "analysis_method": ANALYSIS_METHOD,
        }
