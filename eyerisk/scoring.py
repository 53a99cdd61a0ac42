from typing import Dict, List, Optional

import numpy as np

from .config import AnalysisSettings
from .metrics import aperture_ratio, iris_centration
from .schemas import EyeCandidate, EyeConfidence, HealthScores, RiskResult

CONDITION_FATIGUE = "Eye Fatigue"
CONDITION_DRY_EYE = "Dry Eye Indicators"
CONDITION_INFLAMMATION = "Inflammation Indicators"

LABEL_HIGH = "High Indicator"
LABEL_MODERATE = "Moderate Indicator"
LABEL_LOW = "Low Risk"

LABEL_COLORS = {
    LABEL_HIGH: "#F44336",
    LABEL_MODERATE: "#FFC107",
    LABEL_LOW: "#4CAF50",
}

CONDITION_INFO: Dict[str, Dict] = {
    CONDITION_FATIGUE: {
        "prevalence": "Affects approximately 50-90% of computer users.",
        "symptoms": ["Sore, tired eyes", "Blurry vision", "Watery or dry eyes"],
        "insights": "Prolonged screen time can lead to digital eye strain. "
                    "The 20-20-20 rule is often recommended.",
    },
    CONDITION_DRY_EYE: {
        "prevalence": "Affects between 5% and 50% of people globally.",
        "symptoms": ["Stinging or burning", "Scratchy sensation", "Light sensitivity"],
        "insights": "Can be caused by environmental factors or aging. "
                    "Staying hydrated and frequent blinking may help.",
    },
    CONDITION_INFLAMMATION: {
        "prevalence": "Commonly occurs due to allergies or environmental irritants.",
        "symptoms": ["Redness", "Swelling", "Itching or discomfort"],
        "insights": "Usually a temporary response to irritants. "
                    "Avoid rubbing your eyes if inflammation occurs.",
    },
}


def map_to_user_band(raw: float) -> int:
    """Raw 0 (good) .. 100 (bad) onto the three user tiers.

    0-40 -> 0-75 (Natural), 40-70 -> 76-85 (Moderate), 70-100 -> 86-100 (Risk).
    """
    raw = float(np.clip(raw, 0.0, 100.0))
    if raw < 40:
        return int(raw * 1.875)
    if raw < 70:
        return 76 + int((raw - 40) * 0.3)
    return min(100, 86 + int((raw - 70) * 0.46))


def risk_label(score: int) -> str:
    if score > 85:
        return LABEL_HIGH
    if score > 75:
        return LABEL_MODERATE
    return LABEL_LOW


def fatigue_raw(candidate: Optional[EyeCandidate], settings: AnalysisSettings) -> Optional[float]:
    # normal aperture ~0.3-0.5, fatigued < 0.25
    if candidate is None or len(candidate.contour) < settings.contour_points_min:
        return None
    ratio = aperture_ratio(candidate)
    return float(np.clip((settings.fatigue_open_ratio - ratio) * settings.fatigue_gain, 0, 100))


def dry_eye_raw(candidate: Optional[EyeCandidate], settings: AnalysisSettings) -> Optional[float]:
    # off-center gaze within the opening read as strain
    if candidate is None:
        return None
    return float(np.clip(iris_centration(candidate) * settings.dry_eye_gain, 0, 100))


def health_scores(candidate: Optional[EyeCandidate], redness: float,
                  settings: Optional[AnalysisSettings] = None) -> HealthScores:
    settings = settings or AnalysisSettings()
    fatigue = fatigue_raw(candidate, settings)
    dry_eye = dry_eye_raw(candidate, settings)
    return HealthScores(
        fatigue=settings.fatigue_default if fatigue is None else map_to_user_band(fatigue),
        dry_eye=settings.dry_eye_default if dry_eye is None else map_to_user_band(dry_eye),
        inflammation=map_to_user_band(redness),
    )


def _summary(score: int, confidence: float) -> str:
    if score < 50:
        status = "Low indicators detected. Your eyes appear healthy based on visible signals."
    elif score < 80:
        status = "Moderate indicators detected. Possible signs of strain or minor irritation observed."
    else:
        status = ("High indicators detected. Significant visible signs of stress, "
                  "redness, or fatigue were identified.")
    return f"{status} Analysis confidence: {confidence * 100:.0f}%"


def risk_result(condition: str, score: int, confidence: EyeConfidence) -> RiskResult:
    info = CONDITION_INFO[condition]
    label = risk_label(score)
    return RiskResult(
        condition=condition,
        risk_percentage=score,
        label=label,
        color_code=LABEL_COLORS[label],
        confidence_score=confidence.overall,
        prevalence=info["prevalence"],
        common_symptoms=list(info["symptoms"]),
        insights=f"{_summary(score, confidence.overall)}\n\n{info['insights']}",
    )


def build_results(scores: HealthScores, confidence: EyeConfidence) -> List[RiskResult]:
    return [
        risk_result(CONDITION_FATIGUE, scores.fatigue, confidence),
        risk_result(CONDITION_DRY_EYE, scores.dry_eye, confidence),
        risk_result(CONDITION_INFLAMMATION, scores.inflammation, confidence),
    ]
