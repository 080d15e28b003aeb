"""
Perspective rectification of the detected page
"""

from typing import Tuple

import cv2
import numpy as np

from common.geometry import collinearity_ratio

from .errors import SingularTransformError
from .models import OrderedQuad


# Three corners closer than this (relative to their span) to one line make
# the homography numerically meaningless
MIN_COLLINEARITY_RATIO = 0.02


class Rectifier:
    """
    Maps the ordered page quad onto a fixed-size upright page.

    top-left -> (0, 0), top-right -> (W-1, 0),
    bottom-right -> (W-1, H-1), bottom-left -> (0, H-1)
    """

    def __init__(self, destination_size: Tuple[int, int] = (2480, 3508)):
        self.width, self.height = destination_size

    def destination_points(self) -> np.ndarray:
        return np.array([
            [0, 0],
            [self.width - 1, 0],
            [self.width - 1, self.height - 1],
            [0, self.height - 1]
        ], dtype=np.float32)

    def homography(self, quad: OrderedQuad) -> np.ndarray:
        """
        3x3 perspective transform from the source quad to the page.

        Raises:
            SingularTransformError: For collinear or coincident source points
        """
        src = quad.as_array()

        if not np.all(np.isfinite(src)):
            raise SingularTransformError("Source points are not finite")

        ratio = collinearity_ratio(src)
        if ratio < MIN_COLLINEARITY_RATIO:
            raise SingularTransformError(f"Source points are nearly collinear (ratio {ratio:.4f})")

        try:
            matrix = cv2.getPerspectiveTransform(src, self.destination_points())
        except cv2.error as e:
            raise SingularTransformError(f"Perspective transform failed: {e}") from e

        if not np.all(np.isfinite(matrix)) or abs(np.linalg.det(matrix)) < 1e-12:
            raise SingularTransformError("Perspective transform is singular")

        return matrix

    def rectify(self, image: np.ndarray, quad: OrderedQuad) -> np.ndarray:
        """
        Warp the original-resolution image so the quad fills the page.

        Returns:
            New image of exactly destination_size
        """
        matrix = self.homography(quad)
        return cv2.warpPerspective(
            image,
            matrix,
            (self.width, self.height),
            flags=cv2.INTER_LINEAR,
            borderMode=cv2.BORDER_REPLICATE
        )
