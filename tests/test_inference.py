import pytest

from eyerisk.inference import EyeRegionDetector
from eyerisk.landmarks import LandmarkerUnavailable, MediaPipeLandmarker
from eyerisk.schemas import DetectionMethod, EyeSide, FailureStage

from conftest import StubLandmarks, face_landmarks


def test_two_eyes_from_full_landmark_set(face_image):
    points = face_landmarks(400, 300, left=(120.0, 150.0), right=(280.0, 150.0))
    result = EyeRegionDetector(StubLandmarks(points)).detect(face_image)

    assert result.success
    assert result.detection_method is DetectionMethod.LANDMARK
    assert [c.side for c in result.candidates] == [EyeSide.LEFT, EyeSide.RIGHT]
    left = result.primary
    assert left.iris.center == pytest.approx((120.0, 150.0))
    assert left.iris.radius == pytest.approx(20.0)
    assert len(left.iris.landmarks) == 5
    assert len(left.contour) == 16
    box = left.bounding_box
    assert (box.left, box.top, box.right, box.bottom) == pytest.approx((70.0, 125.0, 170.0, 175.0))


def test_single_iris_is_enough(face_image, one_eye_landmarks):
    result = EyeRegionDetector(StubLandmarks(one_eye_landmarks)).detect(face_image)
    assert result.success
    assert len(result.candidates) == 1
    assert result.primary.side is EyeSide.LEFT


def test_no_provider_is_model_init_failure(face_image):
    result = EyeRegionDetector(None).detect(face_image)
    assert not result.success
    assert result.error_stage is FailureStage.MODEL_INIT


@pytest.mark.parametrize("points", [None, []])
def test_no_landmarks(face_image, points):
    result = EyeRegionDetector(StubLandmarks(points)).detect(face_image)
    assert not result.success
    assert result.error_stage is FailureStage.LANDMARK_EXTRACTION
    assert result.candidates == []


def test_landmarks_without_iris(face_image):
    # 468-point mesh: no refined iris points
    result = EyeRegionDetector(StubLandmarks([(0.5, 0.5)] * 468)).detect(face_image)
    assert not result.success
    assert result.error_stage is FailureStage.IRIS_EXTRACTION


def test_provider_error_is_extraction_failure(face_image):
    result = EyeRegionDetector(StubLandmarks(exc=RuntimeError("graph crashed"))).detect(face_image)
    assert result.error_stage is FailureStage.LANDMARK_EXTRACTION
    assert "graph crashed" in result.error_reason


def test_unavailable_model_is_init_failure(face_image):
    result = EyeRegionDetector(StubLandmarks(exc=LandmarkerUnavailable("no model"))).detect(face_image)
    assert result.error_stage is FailureStage.MODEL_INIT


def test_missing_model_file(face_image, tmp_path):
    landmarker = MediaPipeLandmarker(str(tmp_path / "missing.task"))
    with pytest.raises(LandmarkerUnavailable):
        landmarker.detect(face_image)

    result = EyeRegionDetector(landmarker).detect(face_image)
    assert result.error_stage is FailureStage.MODEL_INIT
    landmarker.close()


def test_close_releases_provider(one_eye_landmarks):
    provider = StubLandmarks(one_eye_landmarks)
    EyeRegionDetector(provider).close()
    assert provider.closed


def test_failed_model_creation_is_not_retried(face_image, tmp_path, monkeypatch):
    landmarker = MediaPipeLandmarker(str(tmp_path / "missing.task"))
    create = landmarker._create
    calls = []

    def counting_create():
        calls.append(1)
        return create()

    monkeypatch.setattr(landmarker, "_create", counting_create)
    for _ in range(3):
        with pytest.raises(LandmarkerUnavailable, match="not found"):
            landmarker.detect(face_image)
    assert len(calls) == 1

    # close() forgets the failure so a later call tries again
    landmarker.close()
    with pytest.raises(LandmarkerUnavailable):
        landmarker.detect(face_image)
    assert len(calls) == 2
