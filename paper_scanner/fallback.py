"""
Border crop used when no page quad can be used
"""

import numpy as np

from common.bounds import Bounds


class FallbackCropper:
    """
    Removes `fraction` of the width / height from every edge of the image.

    Used as the unconditional safety net: it never fails for an image with
    a positive area. Sides longer than 2 px always lose at least 1 px per
    edge (see Bounds.shrink).
    """

    def __init__(self, fraction: float = 0.05):
        if not 0 <= fraction < 0.5:
            raise ValueError(f"Crop fraction must be in [0, 0.5), got {fraction}")
        self.fraction = fraction

    def crop_region(self, width: int, height: int) -> Bounds:
        """Region of a width x height image that is kept."""
        return Bounds(0, 0, width, height).shrink(self.fraction)

    def crop(self, image: np.ndarray) -> np.ndarray:
        """
        Returns:
            Copy of the central part of the image
        """
        h, w = image.shape[:2]
        region = self.crop_region(w, h)
        return image[region.top:region.bottom(), region.left:region.right()].copy()
