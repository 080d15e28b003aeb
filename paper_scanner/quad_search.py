"""
Search for the page quadrilateral among boundary candidates
"""

from typing import List, Optional, Sequence

import cv2
import numpy as np

from common.geometry import is_degenerate_quad

from .config import PipelineConfig
from .models import BoundaryCandidate, DetectionResult, Found, NotFound, OrderedQuad, WorkingImage
from .trace import TraceLog


class QuadrilateralSearch:
    """
    Picks the first large boundary that simplifies to exactly four corners.

    Candidates are visited largest first. Each one must cover an area inside
    the configured band (limits inclusive), then polygon simplification is
    tried with growing tolerance until it yields four vertices. The first
    candidate that does wins; there is no scoring between valid quads.
    """

    def __init__(self, config: Optional[PipelineConfig] = None, method: str = "contour"):
        self.config = config or PipelineConfig()
        self.method = method

    def area_percent(self, candidate: BoundaryCandidate, working: WorkingImage) -> float:
        return candidate.area * 100.0 / working.area

    def in_band(self, area_percent: float) -> bool:
        low, high = self.config.area_percent_band
        return low <= area_percent <= high

    def simplify_to_quad(self, candidate: BoundaryCandidate, trace: Optional[TraceLog] = None, label: str = "") -> Optional[np.ndarray]:
        """
        Sweep the tolerance range and return the first 4-vertex simplification.

        Returns:
            (4, 2) float32 array in working coordinates or None
        """
        peri = candidate.perimeter
        if peri <= 0:
            return None

        for epsilon in self.config.tolerances():
            approx = cv2.approxPolyDP(candidate.contour, epsilon * peri, True)
            if trace is not None:
                trace.add(f"{label}epsilon {epsilon:.2f}: {len(approx)} points")
            if len(approx) == 4:
                return approx.reshape(4, 2).astype(np.float32)

        return None

    def search(self, candidates: Sequence[BoundaryCandidate], working: WorkingImage, trace: Optional[TraceLog] = None) -> DetectionResult:
        """
        Args:
            candidates: Boundaries found in the working image
            working: Working image the candidates come from
            trace: Optional trace for the decisions

        Returns:
            Found with the quad in original-image coordinates, or NotFound
        """
        if trace is None:
            trace = TraceLog()

        ranked: List[BoundaryCandidate] = sorted(candidates, key=lambda c: c.area, reverse=True)
        top = ranked[:self.config.top_k_candidates]
        trace.add(f"Found {len(ranked)} contours, checking top {len(top)}")

        for i, candidate in enumerate(top):
            percent = self.area_percent(candidate, working)
            label = f"Contour {i}, "

            if not self.in_band(percent):
                trace.add(f"{label}{percent:.1f}% of image, outside accepted band")
                continue

            quad = self.simplify_to_quad(candidate, trace, label)
            if quad is None:
                trace.add(f"{label}{percent:.1f}% of image, no 4-point approximation")
                continue

            if is_degenerate_quad(quad):
                trace.add(f"{label}{percent:.1f}% of image, degenerate quadrilateral rejected")
                continue

            ordered = OrderedQuad.from_points(working.to_original(quad))
            trace.add(f"{label}{percent:.1f}% of image, using this contour {ordered}")
            return Found(quad=ordered, method=self.method)

        return NotFound(method=self.method, reason="no quadrilateral candidate")
