"""
Page corner detection strategies
"""

import os
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence, Tuple

import cv2
import numpy as np

from common.geometry import hough_line_intersection, is_degenerate_quad, polygon_area

from .boundaries import BoundaryExtractor
from .config import PipelineConfig
from .models import DetectionResult, Found, NotFound, OrderedQuad
from .preprocessor import Preprocessor
from .quad_search import QuadrilateralSearch
from .trace import TraceLog


class Detector(ABC):
    """Common contract of all strategies: image in, DetectionResult out."""

    method = ""

    @abstractmethod
    def detect(self, image: np.ndarray, trace: Optional[TraceLog] = None) -> DetectionResult:
        """
        Args:
            image: Original image (BGR or grayscale)
            trace: Optional trace for the decisions

        Returns:
            Found with corners in original-image coordinates, or NotFound
        """


class NullDetector(Detector):
    """Stands in for a strategy that is not configured; never finds anything."""

    def __init__(self, method: str = "model", reason: str = "no model loaded"):
        self.method = method
        self.reason = reason

    def detect(self, image: np.ndarray, trace: Optional[TraceLog] = None) -> DetectionResult:
        if trace is not None:
            trace.add(f"{self.method} detector skipped: {self.reason}")
        return NotFound(method=self.method, reason=self.reason)

    def close(self) -> None:
        pass


class ContourDetector(Detector):
    """
    Boundary based detection: preprocess, extract outer boundaries and
    search them for a page quadrilateral.
    """

    method = "contour"

    def __init__(self, config: Optional[PipelineConfig] = None):
        self.config = config or PipelineConfig()
        self.preprocessor = Preprocessor(self.config)
        self.extractor = BoundaryExtractor(external_only=True)
        self.search = QuadrilateralSearch(self.config, method=self.method)

    def detect(self, image: np.ndarray, trace: Optional[TraceLog] = None) -> DetectionResult:
        if trace is None:
            trace = TraceLog()

        working = self.preprocessor.prepare(image)
        if working.downscaled:
            trace.add(f"Working image {working.width}x{working.height} (scale {working.scale_x:.3f}, {working.scale_y:.3f})")

        boundary_map = self.preprocessor.boundary_map(working)
        candidates = self.extractor.extract(boundary_map)
        return self.search.search(candidates, working, trace)


class LineDetector(Detector):
    """
    Line based detection for pages whose outline is broken (e.g. a corner
    covered by a hand).

    Straight lines are found with the Hough transform and split into a
    horizontal and a vertical group by angle. The outermost line of each
    side is intersected with the outermost lines of the other group.
    """

    method = "lines"

    # Fractions of the shorter working side used as Hough vote thresholds
    HOUGH_THRESHOLDS = (0.35, 0.25, 0.15)

    def __init__(self, config: Optional[PipelineConfig] = None, min_separation: float = 0.1):
        """
        Args:
            config: Pipeline configuration (working size, area band)
            min_separation: Minimum distance between opposite lines as a
                fraction of the image side they span
        """
        self.config = config or PipelineConfig()
        self.preprocessor = Preprocessor(self.config)
        self.min_separation = min_separation

    def detect(self, image: np.ndarray, trace: Optional[TraceLog] = None) -> DetectionResult:
        if trace is None:
            trace = TraceLog()

        working = self.preprocessor.prepare(image)
        gray = working.image

        # Canny thresholds based on the median, as lighting varies a lot
        median_val = float(np.median(gray))
        low = max(20, int(median_val * 0.66))
        high = min(255, max(low + 40, int(median_val * 1.33)))
        edges = cv2.Canny(gray, low, high)

        if not np.any(edges):
            trace.add("Line detection: no edges")
            return NotFound(method=self.method, reason="no edges")

        min_dim = min(working.width, working.height)
        for fraction in self.HOUGH_THRESHOLDS:
            threshold = max(10, int(min_dim * fraction))
            lines = cv2.HoughLines(edges, 1, np.pi / 180, threshold)
            count = 0 if lines is None else len(lines)
            trace.add(f"Line detection: {count} lines at threshold {threshold}")

            corners = self._corners_from_lines(lines, working.width, working.height)
            if corners is None:
                continue

            percent = polygon_area(corners) * 100.0 / working.area
            low_band, high_band = self.config.area_percent_band
            if not low_band <= percent <= high_band:
                trace.add(f"Line quad covers {percent:.1f}% of image, outside accepted band")
                continue

            ordered = OrderedQuad.from_points(working.to_original(corners))
            trace.add(f"Line quad covers {percent:.1f}% of image, using it {ordered}")
            return Found(quad=ordered, method=self.method)

        return NotFound(method=self.method, reason="no line quadrilateral")

    def split_lines(self, lines: Optional[np.ndarray]) -> Tuple[List[Tuple[float, float]], List[Tuple[float, float]]]:
        """
        Split Hough lines into (horizontal, vertical) groups.

        Vertical lines are normalised to theta in (-pi/4, pi/4] so that their
        rho is the signed x offset; horizontal lines keep theta around pi/2
        and rho is the y offset.
        """
        horizontal = []
        vertical = []
        if lines is None:
            return horizontal, vertical

        for rho, theta in lines.reshape(-1, 2):
            rho, theta = float(rho), float(theta)
            if np.pi / 4 < theta <= 3 * np.pi / 4:
                horizontal.append((rho, theta))
            else:
                if theta > 3 * np.pi / 4:
                    rho, theta = -rho, theta - np.pi
                vertical.append((rho, theta))

        return horizontal, vertical

    def _corners_from_lines(self, lines: Optional[np.ndarray], width: int, height: int) -> Optional[np.ndarray]:
        horizontal, vertical = self.split_lines(lines)

        # Need two lines per group to form opposite edges
        if len(horizontal) < 2 or len(vertical) < 2:
            return None

        horizontal.sort(key=lambda x: x[0])
        vertical.sort(key=lambda x: x[0])
        top, bottom = horizontal[0], horizontal[-1]
        left, right = vertical[0], vertical[-1]

        if bottom[0] - top[0] < height * self.min_separation:
            return None
        if right[0] - left[0] < width * self.min_separation:
            return None

        corners = []
        for line_a, line_b in ((top, left), (top, right), (bottom, right), (bottom, left)):
            pt = hough_line_intersection(line_a, line_b)
            if pt is None:
                return None
            corners.append(pt)

        corners = np.array(corners, dtype=np.float32)

        # Discard wildly out-of-bounds results
        max_dim = max(width, height)
        max_offset_x = max(-corners[:, 0].min(), corners[:, 0].max() - width, 0)
        max_offset_y = max(-corners[:, 1].min(), corners[:, 1].max() - height, 0)
        if max(max_offset_x, max_offset_y) > max_dim * 0.1:
            return None

        if is_degenerate_quad(corners):
            return None

        return corners


class DetectorChain(Detector):
    """
    Tries strategies in order and returns the first Found.

    NotFound from every strategy is passed on; the pipeline then falls back
    to cropping.
    """

    method = "chain"

    def __init__(self, strategies: Sequence[Detector]):
        self.strategies = list(strategies)

    def detect(self, image: np.ndarray, trace: Optional[TraceLog] = None) -> DetectionResult:
        if trace is None:
            trace = TraceLog()

        for strategy in self.strategies:
            result = strategy.detect(image, trace)
            if result.found:
                return result
            trace.add(f"{strategy.method} detector: not found ({result.reason})")

        return NotFound(method=self.method, reason="all strategies failed")


def load_model_detector(model_path: Optional[str], config: Optional[PipelineConfig] = None) -> Detector:
    """
    Load the optional model based detector.

    Returns:
        ModelDetector when the weights exist, otherwise a NullDetector
    """
    if not model_path:
        return NullDetector(reason="no model configured")

    if not os.path.exists(model_path):
        print(f"Model not found: {model_path}. Model based detection is disabled.")
        return NullDetector(reason=f"model not found: {model_path}")

    from .model_detector import ModelDetector

    return ModelDetector.from_path(model_path, config)
