"""Multi-signal confidence fusion.

    overall = landmark * 0.40 + color * 0.35 + geometry * 0.25

Each sub-score is in [0, 1]. The same weighting is used by the deterministic
fallback with proxy sub-scores, so both confidences are directly comparable.
"""

from __future__ import annotations

import logging
from typing import List, Optional

import numpy as np

from .config import AnalysisSettings
from .geometry import aspect_ratio, aspect_valid
from .metrics import cardinal_consistency, contour_smoothness
from .schemas import (
    COLOR_WEIGHT,
    GEOMETRY_WEIGHT,
    LANDMARK_WEIGHT,
    EyeCandidate,
    EyeConfidence,
    FallbackResult,
)

logger = logging.getLogger(__name__)


def _unit(value: float) -> float:
    return float(np.clip(value, 0.0, 1.0))


def confidence_level(overall: float) -> str:
    if overall >= 0.8:
        return "High confidence"
    if overall >= 0.5:
        return "Moderate confidence"
    if overall >= 0.3:
        return "Low confidence"
    return "Very low confidence"


def explain(landmark: float, color: float, geometry: float, overall: float) -> str:
    factors: List[str] = []

    if landmark >= 0.7:
        factors.append("clear iris landmarks")
    elif landmark >= 0.4:
        factors.append("partial iris detection")
    elif landmark > 0:
        factors.append("weak landmark signal")

    if color >= 0.7:
        factors.append("typical eye coloration")
    elif color >= 0.4:
        factors.append("plausible sclera/iris colors")

    if geometry >= 0.7:
        factors.append("anatomically correct shape")
    elif geometry >= 0.4:
        factors.append("acceptable geometry")

    factor_text = ", ".join(factors) if factors else "insufficient visual evidence"
    return f"{confidence_level(overall)} eye detection based on: {factor_text}."


def fuse(landmark: float, color: float, geometry: float) -> EyeConfidence:
    """Build an EyeConfidence from three sub-scores with the fixed weights."""
    landmark, color, geometry = _unit(landmark), _unit(color), _unit(geometry)
    overall = landmark * LANDMARK_WEIGHT + color * COLOR_WEIGHT + geometry * GEOMETRY_WEIGHT
    return EyeConfidence(
        overall=overall,
        landmark=landmark,
        color=color,
        geometry=geometry,
        explanation=explain(landmark, color, geometry, overall),
        breakdown={"landmark": landmark, "color": color, "geometry": geometry},
    )


class ConfidenceScorer:
    def __init__(self, settings: Optional[AnalysisSettings] = None):
        self.settings = settings or AnalysisSettings()

    def calculate(self, candidate: Optional[EyeCandidate], fallback: Optional[FallbackResult],
                  redness: float) -> EyeConfidence:
        score = fuse(
            self.landmark_score(candidate),
            self.color_score(fallback, redness),
            self.geometry_score(candidate, fallback),
        )
        logger.debug("Confidence %.3f (%s)", score.overall, score.breakdown)
        return score

    def landmark_score(self, candidate: Optional[EyeCandidate]) -> float:
        if candidate is None:
            return 0.0
        s = self.settings
        iris = candidate.iris
        score = 0.0
        if s.iris_radius_min <= iris.radius <= s.iris_radius_max:
            score += 0.4
        if len(iris.landmarks) >= 5:
            score += 0.3 * cardinal_consistency(iris)
        score += 0.3 * min(1.0, len(candidate.contour) / float(s.contour_points_expected))
        return _unit(score)

    def color_score(self, fallback: Optional[FallbackResult], redness: float) -> float:
        if fallback is None:
            # Measurable but not extreme redness suggests real sclera
            s = self.settings
            return 0.5 if s.redness_plausible_min <= redness <= s.redness_plausible_max else 0.2
        score = 0.0
        if fallback.sclera_detected:
            score += 0.4
        if fallback.iris_detected:
            score += 0.3
        score += 0.3 * fallback.confidence.color
        return _unit(score)

    def geometry_score(self, candidate: Optional[EyeCandidate], fallback: Optional[FallbackResult]) -> float:
        score = 0.0
        if candidate is not None and len(candidate.contour) >= self.settings.contour_points_min:
            box = candidate.bounding_box
            if aspect_valid(aspect_ratio(box.width, box.height), self.settings):
                score += 0.5
            score += 0.5 * contour_smoothness(candidate.contour)
        if fallback is not None and fallback.geometry_valid:
            score = min(score + 0.5, 1.0)
        return _unit(score)
