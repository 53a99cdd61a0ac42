"""Eye-first analysis pipeline.

Works on full faces, single-eye crops and macro close-ups:

1. landmark Region Detector (iris landmarks, face validity ignored)
2. deterministic fallback (Lab/HSV colour + geometry), always run
3. multi-signal confidence scoring
4. health indicator scoring

States: init -> decoded -> detected -> scored -> done | failed. Every exit
is an ``AnalysisOutput``; no exception leaves ``analyze*``.
"""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import Optional, Union

import numpy as np

from .classifier import measure_redness
from .confidence import ConfidenceScorer
from .config import AnalysisSettings
from .fallback import DeterministicFallback
from .inference import EyeRegionDetector
from .landmarks import LandmarkProvider, MediaPipeLandmarker
from .preprocess import ImageDecodeError, decode_image, load_image
from .schemas import (
    AnalysisMetrics,
    AnalysisOutput,
    DetectionMethod,
    EyeDetectionResult,
    FailureStage,
    FallbackResult,
)
from .scoring import build_results, health_scores

logger = logging.getLogger(__name__)


class PipelineState(str, Enum):
    INIT = "init"
    DECODED = "decoded"
    DETECTED = "detected"
    SCORED = "scored"
    DONE = "done"
    FAILED = "failed"


def detection_method(detection: EyeDetectionResult, fallback: FallbackResult) -> DetectionMethod:
    if detection.success and fallback.is_eye:
        return DetectionMethod.HYBRID
    if detection.success:
        return DetectionMethod.LANDMARK
    return DetectionMethod.FALLBACK


class EyeAnalysisPipeline:
    def __init__(self, settings: Optional[AnalysisSettings] = None,
                 provider: Optional[LandmarkProvider] = None):
        self.settings = settings or AnalysisSettings()
        self.detector = EyeRegionDetector(provider)
        self.fallback = DeterministicFallback(self.settings)
        self.scorer = ConfidenceScorer(self.settings)

    @classmethod
    def from_settings(cls, settings: AnalysisSettings) -> "EyeAnalysisPipeline":
        provider = MediaPipeLandmarker(settings.landmarker_model, settings.landmarker_min_confidence)
        return cls(settings, provider)

    # --- entry points ---------------------------------------------------

    def analyze(self, image_path: Union[str, Path]) -> AnalysisOutput:
        logger.info("Starting eye-first analysis: %s", image_path)
        try:
            image = load_image(image_path)
        except Exception as e:
            return self._decode_failed(e, {"path": str(image_path)})
        return self.analyze_image(image)

    def analyze_bytes(self, data: bytes) -> AnalysisOutput:
        try:
            image = decode_image(data)
        except Exception as e:
            return self._decode_failed(e)
        return self.analyze_image(image)

    def analyze_image(self, image_rgb: np.ndarray) -> AnalysisOutput:
        state = PipelineState.DECODED
        try:
            detection = self.detector.detect(image_rgb)
            fallback = self.fallback.analyze_region(image_rgb)
            state = PipelineState.DETECTED

            if not (detection.success or fallback.is_eye):
                return self._fail(
                    detection.error_stage or FailureStage.GEOMETRY_VALIDATION,
                    detection.error_reason or "Eye detection inconclusive",
                    fallback.diagnostics,
                )

            candidate = detection.primary
            region = candidate.bounding_box if candidate is not None else None
            try:
                redness = measure_redness(image_rgb, region, self.settings)
            except Exception:
                logger.exception("Colour analysis failed")
                return self._fail(FailureStage.COLOR_ANALYSIS, "Colour analysis failed",
                                  {"state": state.value})
            confidence = self.scorer.calculate(candidate, fallback, redness)
            scores = health_scores(candidate, redness, self.settings)
            state = PipelineState.SCORED

            method = detection_method(detection, fallback)
            output = AnalysisOutput(
                success=True,
                eye_detected=True,
                results=build_results(scores, confidence),
                detection_method=method,
                confidence=confidence,
                metrics=AnalysisMetrics(
                    redness_raw=redness,
                    fatigue_score=scores.fatigue,
                    dry_eye_score=scores.dry_eye,
                    inflammation_score=scores.inflammation,
                ),
            )
            logger.info("Analysis complete: state=%s method=%s confidence=%.3f",
                        PipelineState.DONE.value, method.value, confidence.overall)
            return output
        except Exception:
            logger.exception("Analysis failed in state %s", state.value)
            return self._fail(FailureStage.INTERNAL, "Analysis failed due to an internal error",
                              {"state": state.value})

    def _decode_failed(self, error: Exception, diagnostics=None) -> AnalysisOutput:
        diagnostics = dict(diagnostics or {})
        diagnostics["state"] = PipelineState.INIT.value
        if isinstance(error, ImageDecodeError):
            diagnostics["error"] = str(error)
        else:
            logger.exception("Unexpected error while decoding input")
            diagnostics["error"] = type(error).__name__
        return self._fail(FailureStage.DECODE, "Could not decode image", diagnostics)

    def _fail(self, stage: FailureStage, message: str, diagnostics=None) -> AnalysisOutput:
        logger.warning("Detection failed at %s: %s (state=%s)", stage.value, message,
                       PipelineState.FAILED.value)
        return AnalysisOutput.failure(stage, message, diagnostics)

    # --- lifecycle ------------------------------------------------------

    def close(self) -> None:
        self.detector.close()

    def __enter__(self) -> "EyeAnalysisPipeline":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
