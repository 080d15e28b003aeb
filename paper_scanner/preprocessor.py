"""
Image decoding and detection preprocessing
"""

from pathlib import Path
from typing import Optional, Union

import cv2
import numpy as np

from .config import PipelineConfig
from .errors import DecodeError
from .models import WorkingImage


def decode_image(data: bytes) -> np.ndarray:
    """
    Decode an encoded image (JPEG, PNG, ...) into a BGR array.

    Raises:
        DecodeError: When the bytes are empty or not a supported image
    """
    if not data:
        raise DecodeError("Empty image buffer")

    buffer = np.frombuffer(data, dtype=np.uint8)
    image = cv2.imdecode(buffer, cv2.IMREAD_COLOR)
    if image is None or image.size == 0:
        raise DecodeError("Failed to decode image buffer")

    return image


def load_image(path: Union[str, Path]) -> np.ndarray:
    """
    Read an image file into a BGR array.

    Raises:
        DecodeError: When the file is missing or cannot be decoded
    """
    path = Path(path)
    if not path.exists():
        raise DecodeError(f"Image not found: {path}")

    # imdecode instead of imread so non-ASCII paths work too
    try:
        return decode_image(path.read_bytes())
    except DecodeError:
        raise DecodeError(f"Failed to load image: {path}") from None


def to_grayscale(image: np.ndarray) -> np.ndarray:
    """Grayscale copy of a BGR, BGRA or already gray image."""
    if image.ndim == 2:
        return image.copy()
    if image.shape[2] == 4:
        return cv2.cvtColor(image, cv2.COLOR_BGRA2GRAY)
    return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)


class Preprocessor:
    """
    Builds the small, denoised grayscale image detection runs on and the
    binary boundary map derived from it.
    """

    def __init__(self, config: Optional[PipelineConfig] = None):
        self.config = config or PipelineConfig()

    def prepare(self, image: np.ndarray) -> WorkingImage:
        """
        Downscale (if needed), convert to grayscale and denoise.

        Args:
            image: Original image (BGR or grayscale)

        Returns:
            WorkingImage with scale factors back to `image`
        """
        if image is None or image.size == 0:
            raise DecodeError("Empty image")

        original_h, original_w = image.shape[:2]
        limit = self.config.max_working_dimension

        if max(original_w, original_h) > limit:
            scale = limit / float(max(original_w, original_h))
            working_w = max(1, int(round(original_w * scale)))
            working_h = max(1, int(round(original_h * scale)))
            resized = cv2.resize(image, (working_w, working_h), interpolation=cv2.INTER_AREA)
        else:
            working_w, working_h = original_w, original_h
            resized = image

        gray = to_grayscale(resized)

        # Bilateral filter smooths texture but keeps the page edge sharp
        denoised = cv2.bilateralFilter(gray, 9, 75, 75)

        return WorkingImage(
            image=denoised,
            scale_x=original_w / float(working_w),
            scale_y=original_h / float(working_h),
            original_width=original_w,
            original_height=original_h,
        )

    def boundary_map(self, working: WorkingImage, method: Optional[str] = None) -> np.ndarray:
        """
        Binary map of likely page-edge pixels.

        Args:
            working: Output of prepare()
            method: "edges" or "threshold", defaults to the configured one

        Returns:
            uint8 image with values 0 / 255
        """
        method = method or self.config.boundary_method

        if method == "edges":
            return self._edge_map(working.image)
        if method == "threshold":
            return self._threshold_map(working.image)

        raise ValueError(f"Unknown boundary method: {method}")

    def _edge_map(self, gray: np.ndarray) -> np.ndarray:
        edges = cv2.Canny(gray, 30, 100)

        # Dilate to close gaps in edges
        kernel = cv2.getStructuringElement(cv2.MORPH_RECT, (5, 5))
        return cv2.dilate(edges, kernel)

    def _threshold_map(self, gray: np.ndarray) -> np.ndarray:
        _, binary = cv2.threshold(gray, 0, 255, cv2.THRESH_BINARY + cv2.THRESH_OTSU)

        # Open removes speckle, close fills small holes in the page
        kernel = np.ones((5, 5), np.uint8)
        binary = cv2.morphologyEx(binary, cv2.MORPH_OPEN, kernel, iterations=2)
        binary = cv2.morphologyEx(binary, cv2.MORPH_CLOSE, kernel, iterations=3)
        return binary
