import math

import cv2
import numpy as np
import pytest

from eyerisk.config import AnalysisSettings
from eyerisk.inference import (
    LEFT_EYE_CONTOUR_IDX,
    LEFT_IRIS_IDX,
    RIGHT_EYE_CONTOUR_IDX,
    RIGHT_IRIS_IDX,
)

SCLERA_RGB = (235, 235, 230)
IRIS_RGB = (40, 30, 20)


class StubLandmarks:
    """Deterministic stand-in for the FaceLandmarker."""

    def __init__(self, points=None, exc=None):
        self.points = points
        self.exc = exc
        self.calls = 0
        self.closed = False

    def detect(self, image_rgb):
        self.calls += 1
        if self.exc is not None:
            raise self.exc
        return self.points

    def close(self):
        self.closed = True


def ellipse_points(cx, cy, half_w, half_h, n=16):
    return [(cx + half_w * math.cos(2 * math.pi * k / n), cy + half_h * math.sin(2 * math.pi * k / n))
            for k in range(n)]


def iris_points(cx, cy, r):
    return [(cx, cy), (cx + r, cy), (cx, cy - r), (cx - r, cy), (cx, cy + r)]


def face_landmarks(width, height, left=(200.0, 150.0), right=None, iris_radius=20.0,
                   eye_size=(100.0, 50.0), count=478):
    """Normalized landmark list with one or two synthetic eyes.

    With the default ``count=478`` and ``right=None`` the right iris slots are
    left out by truncating to 473 points, so only the left iris is present.
    """
    if right is None:
        count = min(count, RIGHT_IRIS_IDX[0])
    pts = [(0.5, 0.5)] * count

    def place(idxs, pixels):
        for i, (x, y) in zip(idxs, pixels):
            if i < count:
                pts[i] = (x / width, y / height)

    half_w, half_h = eye_size[0] / 2, eye_size[1] / 2
    place(LEFT_IRIS_IDX, iris_points(left[0], left[1], iris_radius))
    place(LEFT_EYE_CONTOUR_IDX, ellipse_points(left[0], left[1], half_w, half_h))
    if right is not None:
        place(RIGHT_IRIS_IDX, iris_points(right[0], right[1], iris_radius))
        place(RIGHT_EYE_CONTOUR_IDX, ellipse_points(right[0], right[1], half_w, half_h))
    return pts


def draw_eye(width=200, height=100, center=None, radius=25):
    img = np.full((height, width, 3), SCLERA_RGB, dtype=np.uint8)
    if center is None:
        center = (width // 2, height // 2)
    cv2.circle(img, center, radius, IRIS_RGB, -1)
    return img


@pytest.fixture
def settings():
    return AnalysisSettings()


@pytest.fixture
def eye_image():
    return draw_eye()


@pytest.fixture
def black_image():
    return np.zeros((100, 100, 3), dtype=np.uint8)


@pytest.fixture
def face_image():
    """400x300 bright image with a 20px iris at (200, 150)."""
    return draw_eye(width=400, height=300, center=(200, 150), radius=20)


@pytest.fixture
def one_eye_landmarks():
    return face_landmarks(400, 300)
