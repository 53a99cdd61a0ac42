from __future__ import annotations

import math
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

Point = Tuple[float, float]

LANDMARK_WEIGHT = 0.40
COLOR_WEIGHT = 0.35
GEOMETRY_WEIGHT = 0.25


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class _Payload(BaseModel):
    # camelCase on the wire, snake_case in Python
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class EyeSide(str, Enum):
    LEFT = "left"
    RIGHT = "right"


class DetectionMethod(str, Enum):
    LANDMARK = "landmark"
    FALLBACK = "fallback"
    HYBRID = "hybrid"


class FailureStage(str, Enum):
    DECODE = "decode"
    MODEL_INIT = "model_init"
    LANDMARK_EXTRACTION = "landmark_extraction"
    IRIS_EXTRACTION = "iris_extraction"
    COLOR_ANALYSIS = "color_analysis"
    GEOMETRY_VALIDATION = "geometry_validation"
    INTERNAL = "internal"


class BoundingBox(_Frozen):
    left: float
    top: float
    right: float
    bottom: float

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.bottom - self.top

    @property
    def center_x(self) -> float:
        return (self.left + self.right) / 2.0

    @property
    def center_y(self) -> float:
        return (self.top + self.bottom) / 2.0


# --- deterministic analysis -------------------------------------------------

class ScleraResult(_Frozen):
    detected: bool
    coverage: float = 0.0
    avg_luminance: float = 0.0


class IrisDetectionResult(_Frozen):
    detected: bool
    center: Optional[Point] = None
    radius: float = 0.0
    circularity: float = 0.0


class GeometryResult(_Frozen):
    valid: bool
    aspect_ratio: float = 0.0
    horizontal_symmetry: bool = False


class EyeConfidence(_Payload):
    """Weighted trust score: overall = 0.40 landmark + 0.35 color + 0.25 geometry."""

    overall: float
    landmark: float
    color: float
    geometry: float
    explanation: str = ""
    breakdown: Dict[str, float] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _check_weighted_sum(self) -> "EyeConfidence":
        expected = (self.landmark * LANDMARK_WEIGHT
                    + self.color * COLOR_WEIGHT
                    + self.geometry * GEOMETRY_WEIGHT)
        if not math.isclose(self.overall, expected, rel_tol=0.0, abs_tol=1e-6):
            raise ValueError(f"overall={self.overall} does not match weighted sum {expected}")
        return self


class FallbackResult(_Frozen):
    is_eye: bool
    confidence: EyeConfidence
    sclera_detected: bool = False
    iris_detected: bool = False
    geometry_valid: bool = False
    estimated_iris_center: Optional[Point] = None
    diagnostics: Dict[str, Any] = Field(default_factory=dict)


# --- landmark detection ------------------------------------------------------

class IrisData(_Frozen):
    center: Point
    radius: float  # pixels
    landmarks: List[Point]  # center first, then 4 cardinal points


class EyeCandidate(_Frozen):
    side: EyeSide
    iris: IrisData
    contour: List[Point]
    bounding_box: BoundingBox
    detection_method: DetectionMethod = DetectionMethod.LANDMARK


class EyeDetectionResult(_Frozen):
    success: bool
    candidates: List[EyeCandidate] = Field(default_factory=list)
    detection_method: Optional[DetectionMethod] = None
    error_stage: Optional[FailureStage] = None
    error_reason: Optional[str] = None

    @property
    def primary(self) -> Optional[EyeCandidate]:
        return self.candidates[0] if self.candidates else None


# --- output contract ---------------------------------------------------------

class HealthScores(_Frozen):
    fatigue: int = Field(ge=0, le=100)
    dry_eye: int = Field(ge=0, le=100)
    inflammation: int = Field(ge=0, le=100)


class RiskResult(_Payload):
    condition: str
    risk_percentage: int = Field(ge=0, le=100)
    label: str
    color_code: str
    confidence_score: float
    prevalence: str
    common_symptoms: List[str]
    insights: str


class AnalysisMetrics(_Payload):
    redness_raw: float
    fatigue_score: int
    dry_eye_score: int
    inflammation_score: int


class AnalysisOutput(_Payload):
    success: bool
    eye_detected: bool = False
    results: Optional[List[RiskResult]] = None
    detection_method: Optional[DetectionMethod] = None
    confidence: Optional[EyeConfidence] = None
    metrics: Optional[AnalysisMetrics] = None
    error_message: Optional[str] = None
    failed_stage: Optional[FailureStage] = None
    diagnostics: Optional[Dict[str, Any]] = None

    @classmethod
    def failure(cls, stage: FailureStage, message: str,
                diagnostics: Optional[Dict[str, Any]] = None) -> "AnalysisOutput":
        return cls(success=False, eye_detected=False, error_message=message,
                   failed_stage=stage, diagnostics=dict(diagnostics or {}))

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
