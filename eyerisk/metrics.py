import numpy as np
from typing import List, Sequence, Tuple

from .schemas import BoundingBox, EyeCandidate, IrisData, Point


def _distance(p1: Point, p2: Point) -> float:
    return float(np.hypot(p1[0] - p2[0], p1[1] - p2[1]))


def bounding_box(contour: Sequence[Point], iris: IrisData) -> BoundingBox:
    if not contour:
        # No eyelid contour: square box of two radii around the iris
        pad = iris.radius * 2
        cx, cy = iris.center
        return BoundingBox(left=cx - pad, top=cy - pad, right=cx + pad, bottom=cy + pad)
    pts = np.asarray(contour, dtype=np.float64)
    return BoundingBox(left=float(pts[:, 0].min()), top=float(pts[:, 1].min()),
                       right=float(pts[:, 0].max()), bottom=float(pts[:, 1].max()))


def iris_center_radius(points: Sequence[Point]) -> Tuple[Point, float]:
    """First point is the iris center; radius is the mean distance to the cardinal points."""
    center = (float(points[0][0]), float(points[0][1]))
    r = float(np.mean([_distance(center, p) for p in points[1:5]]))
    return center, r


def cardinal_consistency(iris: IrisData) -> float:
    """1.0 when the four cardinal points are equidistant from the center."""
    distances: List[float] = [_distance(iris.center, p) for p in iris.landmarks[1:]]
    if not distances:
        return 0.0
    avg = float(np.mean(distances))
    max_dev = max(abs(d - avg) for d in distances)
    return 1.0 - float(np.clip(max_dev / max(avg, 1.0), 0.0, 1.0))


def contour_smoothness(points: Sequence[Point]) -> float:
    """1 - mean (1 - cos) turning angle between consecutive contour edges."""
    if len(points) < 3:
        return 0.0
    pts = np.asarray(points, dtype=np.float64)
    v1 = pts[1:-1] - pts[:-2]
    v2 = pts[2:] - pts[1:-1]
    mag = np.linalg.norm(v1, axis=1) * np.linalg.norm(v2, axis=1)
    ok = mag > 0
    cos = np.clip(np.sum(v1[ok] * v2[ok], axis=1) / mag[ok], -1.0, 1.0)
    avg_change = float(np.sum(1.0 - cos)) / (len(points) - 2)
    return 1.0 - float(np.clip(avg_change, 0.0, 1.0))


def aperture_ratio(candidate: EyeCandidate) -> float:
    """Eye opening: bounding-box height over width."""
    box = candidate.bounding_box
    return box.height / max(box.width, 1.0)


def iris_centration(candidate: EyeCandidate) -> float:
    """Horizontal offset of the iris from the box center, in box widths."""
    box = candidate.bounding_box
    return abs(box.center_x - candidate.iris.center[0]) / max(box.width, 1.0)
