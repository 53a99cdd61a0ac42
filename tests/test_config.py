import pytest
from pydantic import ValidationError

from eyerisk.config import AnalysisSettings


def test_defaults():
    s = AnalysisSettings()
    assert (s.sclera_l_min, s.sclera_a_max, s.iris_l_max) == (40.0, 30.0, 75.0)
    assert (s.aspect_ratio_min, s.aspect_ratio_max) == (0.5, 4.0)
    assert s.landmarker_model == "models/face_landmarker.task"


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("EYERISK_SCLERA_L_MIN", "45")
    monkeypatch.setenv("EYERISK_CONTOUR_POINTS_MIN", "12")
    monkeypatch.setenv("EYERISK_LANDMARKER_MODEL", "/opt/models/face.task")
    s = AnalysisSettings()
    assert s.sclera_l_min == 45.0
    assert s.contour_points_min == 12
    assert s.landmarker_model == "/opt/models/face.task"


def test_unrelated_env_is_ignored(monkeypatch):
    monkeypatch.setenv("EYERISK_LOG_LEVEL", "DEBUG")
    assert AnalysisSettings().fatigue_gain == 200.0


def test_malformed_env_fails_validation(monkeypatch):
    monkeypatch.setenv("EYERISK_FATIGUE_GAIN", "lots")
    with pytest.raises(ValidationError):
        AnalysisSettings()


def test_explicit_values_win_over_env(monkeypatch):
    monkeypatch.setenv("EYERISK_IRIS_MAX_FRACTION", "0.5")
    assert AnalysisSettings(iris_max_fraction=0.9).iris_max_fraction == 0.9


def test_settings_are_frozen():
    with pytest.raises(ValidationError):
        AnalysisSettings().sclera_l_min = 10
