"""Tunable thresholds for the eye analysis pipeline.

Every field can be overridden from the environment as ``EYERISK_<FIELD>``
(upper case), e.g. ``EYERISK_SCLERA_L_MIN=45``. The fatigue and dry-eye
constants are empirical and should be recalibrated against labelled images.
"""

from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_PREFIX = "EYERISK_"


class AnalysisSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        extra="ignore",
        frozen=True,
    )

    # Sclera (Lab)
    sclera_l_min: float = 40.0
    sclera_a_max: float = 30.0
    sclera_min_coverage: float = 0.10

    # Iris (Lab lightness cluster)
    iris_l_max: float = 75.0
    iris_min_fraction: float = 0.03
    iris_max_fraction: float = 0.95
    iris_circularity_min: float = 0.4

    # Region geometry
    aspect_ratio_min: float = 0.5
    aspect_ratio_max: float = 4.0
    symmetry_min: float = 0.3

    # Fallback decision
    fallback_eye_threshold: float = 0.3

    # Landmark quality
    iris_radius_min: float = 5.0
    iris_radius_max: float = 100.0
    contour_points_min: int = 10
    contour_points_expected: int = 16

    # Redness / inflammation
    redness_gain: float = 3.5
    redness_default: float = 15.0
    redness_plausible_min: float = 5.0
    redness_plausible_max: float = 60.0

    # Fatigue / dry eye (calibration candidates)
    fatigue_open_ratio: float = 0.5
    fatigue_gain: float = 200.0
    fatigue_default: int = 50
    dry_eye_gain: float = 150.0
    dry_eye_default: int = 45

    # FaceLandmarker
    landmarker_model: str = "models/face_landmarker.task"
    landmarker_min_confidence: float = 0.1
