import pytest

import eyerisk.fallback as fallback_module
from eyerisk.fallback import DeterministicFallback, fallback_confidence
from eyerisk.schemas import BoundingBox, GeometryResult, IrisDetectionResult, ScleraResult


def test_high_confidence_from_strong_evidence():
    confidence = fallback_confidence(
        ScleraResult(detected=True, coverage=0.6, avg_luminance=85),
        IrisDetectionResult(detected=True, center=(50, 25), radius=10, circularity=0.9),
        GeometryResult(valid=True, aspect_ratio=2.0, horizontal_symmetry=True),
    )
    assert confidence.color == pytest.approx(1.0)
    assert confidence.landmark == pytest.approx(0.9)
    assert confidence.geometry == pytest.approx(1.0)
    assert confidence.overall >= 0.8
    assert "High confidence" in confidence.explanation


def test_proxy_scores_without_detections():
    confidence = fallback_confidence(
        ScleraResult(detected=False, coverage=0.05),
        IrisDetectionResult(detected=False),
        GeometryResult(valid=False, aspect_ratio=9.0),
    )
    assert (confidence.landmark, confidence.color, confidence.geometry) == (0.0, 0.2, 0.2)


def test_geometry_valid_without_symmetry_scores_0_6():
    confidence = fallback_confidence(
        ScleraResult(detected=True, coverage=0.3),
        IrisDetectionResult(detected=False),
        GeometryResult(valid=True, aspect_ratio=1.0),
    )
    assert confidence.geometry == 0.6
    assert confidence.color == pytest.approx(0.6)


def test_synthetic_eye_is_an_eye(eye_image):
    result = DeterministicFallback().analyze_region(eye_image)
    assert result.is_eye
    assert result.sclera_detected and result.iris_detected and result.geometry_valid
    assert result.estimated_iris_center == pytest.approx((100.0, 50.0), abs=0.5)
    assert result.confidence.overall >= 0.8
    assert result.diagnostics["horizontal_symmetry"] is True
    assert result.diagnostics["expected_aspect_range"] == "0.5-4.0"


def test_black_image_is_not_an_eye(black_image):
    result = DeterministicFallback().analyze_region(black_image)
    assert not result.is_eye
    assert not result.sclera_detected
    assert not result.iris_detected
    assert result.diagnostics["sclera_coverage"] == "0.0%"
    assert result.confidence.overall < 0.3


def test_region_center_reported_in_image_coordinates(eye_image):
    region = BoundingBox(left=50, top=0, right=150, bottom=100)
    result = DeterministicFallback().analyze_region(eye_image, region)
    assert result.iris_detected
    assert result.estimated_iris_center == pytest.approx((100.0, 50.0), abs=0.5)


def test_internal_error_becomes_zero_confidence(eye_image, monkeypatch):
    def boom(*args, **kwargs):
        raise RuntimeError("sensor glitch")

    monkeypatch.setattr(fallback_module, "analyze_color_spaces", boom)
    result = DeterministicFallback().analyze_region(eye_image)

    assert not result.is_eye
    assert result.confidence.overall == 0.0
    assert result.diagnostics == {"error": "sensor glitch"}
