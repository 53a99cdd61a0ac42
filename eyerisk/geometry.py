from __future__ import annotations

from typing import Optional

from .config import AnalysisSettings
from .schemas import GeometryResult, IrisDetectionResult, Point, ScleraResult

_DEFAULTS = AnalysisSettings()


def aspect_ratio(width: float, height: float) -> float:
    return width / max(height, 1.0)


def aspect_valid(ratio: float, settings: AnalysisSettings = _DEFAULTS) -> bool:
    # Wide band: face crops and close-up single-eye crops both pass
    return settings.aspect_ratio_min <= ratio <= settings.aspect_ratio_max


def horizontal_symmetry(center: Optional[Point], width: float,
                        settings: AnalysisSettings = _DEFAULTS) -> bool:
    """Sclera should be visible on both sides of the iris."""
    if center is None:
        return False
    left_gap = center[0]
    right_gap = width - center[0]
    ratio = min(left_gap, right_gap) / max(left_gap, right_gap, 1.0)
    return ratio > settings.symmetry_min


def validate_geometry(sclera: ScleraResult, iris: IrisDetectionResult, width: float, height: float,
                      settings: AnalysisSettings = _DEFAULTS) -> GeometryResult:
    ratio = aspect_ratio(width, height)
    symmetric = iris.detected and horizontal_symmetry(iris.center, width, settings)
    return GeometryResult(
        # strong color evidence rescues an unusual crop shape
        valid=aspect_valid(ratio, settings) or (sclera.detected and iris.detected),
        aspect_ratio=ratio,
        horizontal_symmetry=symmetric,
    )
