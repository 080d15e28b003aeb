"""
Debug drawing of scan decisions
"""

from typing import List, Optional, Tuple

import cv2
import numpy as np

from .fallback import FallbackCropper
from .models import ScanResult


class ScanVisualizer:
    """
    Draws the detected page quad, the method used and the fallback crop
    region on a copy of the input image.
    """

    def __init__(
        self,
        border_color: Tuple[int, int, int] = (255, 100, 0),  # Blue in BGR
        border_thickness: int = 3,
        overlay_color: Tuple[int, int, int] = (255, 200, 100),  # Light blue in BGR
        overlay_alpha: float = 0.3,
        fallback_color: Tuple[int, int, int] = (0, 0, 255)  # Red in BGR
    ):
        """
        Initialize the visualizer.

        Args:
            border_color: Frame color of a detected page in BGR format
            border_thickness: Frame thickness in pixels
            overlay_color: Transparent overlay color in BGR format
            overlay_alpha: Overlay transparency (0.0 = transparent, 1.0 = opaque)
            fallback_color: Frame color of the fallback crop region
        """
        self.border_color = border_color
        self.border_thickness = border_thickness
        self.overlay_color = overlay_color
        self.overlay_alpha = overlay_alpha
        self.fallback_color = fallback_color

    def visualize(self, image: np.ndarray, corners: Optional[np.ndarray], draw_overlay: bool = True) -> np.ndarray:
        """
        Draw a quad on a copy of the image.

        Args:
            image: Input image (BGR or grayscale)
            corners: 4 corners [[x1,y1], ...] or None

        Returns:
            BGR image with visualization
        """
        result = self._to_bgr(image)
        if corners is None:
            return result

        corners_int = np.round(np.asarray(corners, dtype=np.float32)).astype(np.int32)

        if draw_overlay:
            overlay = result.copy()
            cv2.fillPoly(overlay, [corners_int], self.overlay_color)
            result = cv2.addWeighted(overlay, self.overlay_alpha, result, 1 - self.overlay_alpha, 0)

        cv2.polylines(result, [corners_int], True, self.border_color, self.border_thickness, cv2.LINE_AA)
        for point in corners_int:
            cv2.circle(result, tuple(int(v) for v in point), self.border_thickness * 3, self.border_color, -1)

        return result

    def visualize_result(self, image: np.ndarray, result: ScanResult, crop_fraction: float = 0.05) -> np.ndarray:
        """
        Visualize what the pipeline did with `image`.

        Detected quads are drawn in blue, the fallback crop region in red.
        """
        if result.detection.found:
            drawn = self.visualize(image, result.detection.quad.as_array())
            lines = [f"Method: {result.method}"]
            if result.detection.confidence is not None:
                lines.append(f"Conf: {result.detection.confidence:.2f}")
        else:
            drawn = self._to_bgr(image)
            h, w = drawn.shape[:2]
            region = FallbackCropper(crop_fraction).crop_region(w, h)
            cv2.rectangle(drawn, (region.left, region.top), (region.right() - 1, region.bottom() - 1), self.fallback_color, self.border_thickness)
            lines = ["Method: fallback crop"]

        self._draw_text(drawn, lines)
        return drawn

    def _draw_text(self, image: np.ndarray, info_text: List[str]) -> None:
        y_offset = 30
        for i, text in enumerate(info_text):
            # White outline
            cv2.putText(image, text, (10, y_offset + i * 30), cv2.FONT_HERSHEY_SIMPLEX, 0.7, (255, 255, 255), 2, cv2.LINE_AA)
            # Black text
            cv2.putText(image, text, (10, y_offset + i * 30), cv2.FONT_HERSHEY_SIMPLEX, 0.7, (0, 0, 0), 1, cv2.LINE_AA)

    def _to_bgr(self, image: np.ndarray) -> np.ndarray:
        if image.ndim == 2:
            return cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
        return image.copy()
