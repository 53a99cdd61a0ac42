"""Threshold classifiers for sclera-like and iris-like pixel clusters."""

from __future__ import annotations

from typing import Optional

import numpy as np

from .colorspace import ColorSpaceAnalysis, analyze_color_spaces
from .config import AnalysisSettings
from .schemas import BoundingBox, IrisDetectionResult, ScleraResult

_DEFAULTS = AnalysisSettings()


def detect_sclera(analysis: ColorSpaceAnalysis, settings: AnalysisSettings = _DEFAULTS) -> ScleraResult:
    # Wide thresholds: dim light and a reddened sclera must still count
    L = analysis.lab[..., 0]
    a = analysis.lab[..., 1]
    mask = (L > settings.sclera_l_min) & (np.abs(a) < settings.sclera_a_max)

    count = int(mask.sum())
    coverage = count / max(len(analysis), 1)
    avg_l = float(L[mask].mean()) if count else 0.0
    return ScleraResult(
        detected=coverage >= settings.sclera_min_coverage,
        coverage=coverage,
        avg_luminance=avg_l,
    )


def detect_iris(analysis: ColorSpaceAnalysis, settings: AnalysisSettings = _DEFAULTS) -> IrisDetectionResult:
    total = len(analysis)
    if total == 0:
        return IrisDetectionResult(detected=False)

    dark = analysis.lab[..., 0] < settings.iris_l_max
    fraction = float(dark.sum()) / total
    if fraction < settings.iris_min_fraction or fraction > settings.iris_max_fraction:
        return IrisDetectionResult(detected=False)

    xs, ys = analysis.coordinates()
    px = xs[dark].astype(np.float64)
    py = ys[dark].astype(np.float64)
    cx, cy = float(px.mean()), float(py.mean())

    distances = np.hypot(px - cx, py - cy)
    radius = float(distances.mean())
    spread = float(distances.std())
    circularity = 1.0 - float(np.clip(spread / max(radius, 1.0), 0.0, 1.0))

    return IrisDetectionResult(
        detected=circularity > settings.iris_circularity_min,
        center=(cx, cy),
        radius=radius,
        circularity=circularity,
    )


def measure_redness(image_rgb: np.ndarray, region: Optional[BoundingBox] = None,
                    settings: AnalysisSettings = _DEFAULTS) -> float:
    """Mean positive a* over sclera-bright pixels, scaled to 0-100.

    Healthy sclera sits around a* 2-8, inflamed around 15-30. Returns
    ``settings.redness_default`` when the region has no qualifying pixel, so
    an ambiguous crop does not read as zero risk.
    """
    analysis = analyze_color_spaces(image_rgb, region)
    L = analysis.lab[..., 0]
    a = analysis.lab[..., 1]
    mask = (L > settings.sclera_l_min) & (a > 0)
    if not mask.any():
        return float(settings.redness_default)
    return float(np.clip(a[mask].mean() * settings.redness_gain, 0.0, 100.0))
