"""Per-pixel Lab and HSV representations of an image region.

Lab follows the sRGB/D65 definition: inverse sRGB gamma, linear RGB -> XYZ,
then XYZ -> CIE L*a*b* against the D65 reference white. HSV uses OpenCV's
float conversion (H in degrees, S and V in [0, 1]).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, NamedTuple, Optional, Tuple

import cv2
import numpy as np

from .schemas import BoundingBox

_SRGB_TO_XYZ = np.array([
    [0.4124564, 0.3575761, 0.1804375],
    [0.2126729, 0.7151522, 0.0721750],
    [0.0193339, 0.1191920, 0.9503041],
])
_D65_WHITE = np.array([0.95047, 1.00000, 1.08883])

_GAMMA_THRESHOLD = 0.04045
_LAB_EPSILON = 0.008856


class Lab(NamedTuple):
    l: float
    a: float
    b: float


class Hsv(NamedTuple):
    h: float
    s: float
    v: float


class PixelSample(NamedTuple):
    x: int
    y: int
    lab: Lab
    hsv: Hsv


def srgb_to_lab(rgb: np.ndarray) -> np.ndarray:
    """Convert an (..., 3) array of 0-255 sRGB values to L*a*b*."""
    c = np.asarray(rgb, dtype=np.float64) / 255.0
    linear = np.where(c > _GAMMA_THRESHOLD, ((c + 0.055) / 1.055) ** 2.4, c / 12.92)
    xyz = linear @ _SRGB_TO_XYZ.T / _D65_WHITE
    f = np.where(xyz > _LAB_EPSILON, np.cbrt(xyz), 7.787 * xyz + 16.0 / 116.0)
    lab = np.empty_like(f)
    lab[..., 0] = 116.0 * f[..., 1] - 16.0
    lab[..., 1] = 500.0 * (f[..., 0] - f[..., 1])
    lab[..., 2] = 200.0 * (f[..., 1] - f[..., 2])
    return lab


def srgb_to_hsv(rgb: np.ndarray) -> np.ndarray:
    """Convert an (h, w, 3) array of 0-255 sRGB values to HSV."""
    scaled = np.asarray(rgb, dtype=np.float32) / 255.0
    if scaled.size == 0:
        return np.zeros(scaled.shape, dtype=np.float32)
    return cv2.cvtColor(scaled, cv2.COLOR_RGB2HSV)


@dataclass(frozen=True)
class ColorSpaceAnalysis:
    lab: np.ndarray  # (height, width, 3)
    hsv: np.ndarray  # (height, width, 3)
    width: int
    height: int
    origin: Tuple[int, int] = (0, 0)

    def __len__(self) -> int:
        return self.width * self.height

    @property
    def is_empty(self) -> bool:
        return len(self) == 0

    def coordinates(self) -> Tuple[np.ndarray, np.ndarray]:
        """Region-local (xs, ys) grids aligned with ``lab``/``hsv``."""
        ys, xs = np.indices((self.height, self.width))
        return xs, ys

    def samples(self) -> Iterator[PixelSample]:
        for y in range(self.height):
            for x in range(self.width):
                yield PixelSample(x, y, Lab(*map(float, self.lab[y, x])), Hsv(*map(float, self.hsv[y, x])))


def clip_region(shape: Tuple[int, ...], region: Optional[BoundingBox]) -> Tuple[int, int, int, int]:
    """Integer (x0, y0, x1, y1) of ``region`` clipped to an image of ``shape``."""
    h, w = shape[:2]
    if region is None:
        return 0, 0, w, h
    x0 = min(max(int(region.left), 0), w)
    x1 = min(max(int(region.right), 0), w)
    y0 = min(max(int(region.top), 0), h)
    y1 = min(max(int(region.bottom), 0), h)
    return x0, y0, max(x0, x1), max(y0, y1)


def analyze_color_spaces(image_rgb: np.ndarray, region: Optional[BoundingBox] = None) -> ColorSpaceAnalysis:
    x0, y0, x1, y1 = clip_region(image_rgb.shape, region)
    width, height = x1 - x0, y1 - y0
    if width <= 0 or height <= 0:
        empty = np.zeros((0, 0, 3), dtype=np.float64)
        return ColorSpaceAnalysis(lab=empty, hsv=empty.astype(np.float32), width=0, height=0, origin=(x0, y0))

    patch = image_rgb[y0:y1, x0:x1, :3]
    return ColorSpaceAnalysis(
        lab=srgb_to_lab(patch),
        hsv=srgb_to_hsv(patch),
        width=width,
        height=height,
        origin=(x0, y0),
    )
