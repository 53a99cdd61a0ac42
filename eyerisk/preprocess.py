import logging
from pathlib import Path
from typing import Union

import cv2
import numpy as np

logger = logging.getLogger(__name__)


class ImageDecodeError(ValueError):
    """Raised when an input cannot be turned into a pixel buffer."""


def _to_bgr(img_bytes: bytes) -> np.ndarray:
    if not img_bytes:
        raise ImageDecodeError("Empty image data")
    arr = np.frombuffer(img_bytes, np.uint8)
    im = cv2.imdecode(arr, cv2.IMREAD_COLOR)
    if im is None:
        raise ImageDecodeError("Invalid image data")
    return im


def decode_image(img_bytes: bytes) -> np.ndarray:
    """Decode encoded image bytes (PNG, JPEG, ...) to a contiguous RGB uint8 array."""
    bgr = _to_bgr(img_bytes)
    return np.ascontiguousarray(cv2.cvtColor(bgr, cv2.COLOR_BGR2RGB))


def load_image(path: Union[str, Path]) -> np.ndarray:
    try:
        data = Path(path).read_bytes()
    except OSError as e:
        raise ImageDecodeError(f"Could not read image: {e}") from e
    rgb = decode_image(data)
    logger.debug("Decoded %s (%dx%d)", path, rgb.shape[1], rgb.shape[0])
    return rgb
