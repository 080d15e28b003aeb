"""
Closed boundary extraction from a binary boundary map
"""

from typing import List

import cv2
import numpy as np

from .models import BoundaryCandidate


class BoundaryExtractor:
    """
    Finds closed boundary curves in a binary map.

    By default only outer boundaries are returned, so printed content inside
    the page can never be mistaken for the page edge.
    """

    def __init__(self, external_only: bool = True):
        self.external_only = external_only

    def extract(self, boundary_map: np.ndarray) -> List[BoundaryCandidate]:
        if boundary_map is None or boundary_map.size == 0:
            return []

        mode = cv2.RETR_EXTERNAL if self.external_only else cv2.RETR_LIST
        contours, _ = cv2.findContours(boundary_map, mode, cv2.CHAIN_APPROX_SIMPLE)

        return [BoundaryCandidate(points=c.reshape(-1, 2)) for c in contours if len(c) >= 3]
