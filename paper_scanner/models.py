"""
Data carried between the pipeline stages
"""

from dataclasses import dataclass, field
from functools import cached_property
from typing import Optional, Union

import cv2
import numpy as np

from common.geometry import order_points, scale_points


@dataclass(frozen=True)
class WorkingImage:
    """
    Downscaled grayscale copy of the input used only for detection.

    scale_x / scale_y map working coordinates back to the original image.
    """
    image: np.ndarray
    scale_x: float
    scale_y: float
    original_width: int
    original_height: int

    @property
    def width(self) -> int:
        return int(self.image.shape[1])

    @property
    def height(self) -> int:
        return int(self.image.shape[0])

    @property
    def area(self) -> int:
        return self.width * self.height

    @property
    def downscaled(self) -> bool:
        return self.scale_x != 1.0 or self.scale_y != 1.0

    def to_original(self, pts: np.ndarray) -> np.ndarray:
        """Map points from working coordinates to original-image coordinates."""
        return scale_points(pts, self.scale_x, self.scale_y)


@dataclass
class BoundaryCandidate:
    """Closed polyline found in a boundary map."""
    points: np.ndarray

    @cached_property
    def contour(self) -> np.ndarray:
        """Points in the (N, 1, 2) int32 layout OpenCV contour functions expect."""
        return np.asarray(self.points).reshape(-1, 1, 2).astype(np.int32)

    @cached_property
    def area(self) -> float:
        return float(cv2.contourArea(self.contour))

    @cached_property
    def perimeter(self) -> float:
        return float(cv2.arcLength(self.contour, True))

    def __len__(self) -> int:
        return len(self.points)


@dataclass(frozen=True)
class OrderedQuad:
    """Four page corners with their roles assigned."""
    top_left: tuple
    top_right: tuple
    bottom_right: tuple
    bottom_left: tuple

    @classmethod
    def from_points(cls, pts: np.ndarray) -> "OrderedQuad":
        """Order 4 unordered points (see common.geometry.order_points)."""
        rect = order_points(pts)
        return cls(*(tuple(float(v) for v in p) for p in rect))

    def as_array(self) -> np.ndarray:
        """Corners as float32 array in TL, TR, BR, BL order."""
        return np.array(
            [self.top_left, self.top_right, self.bottom_right, self.bottom_left],
            dtype=np.float32
        )

    def __str__(self) -> str:
        corners = ", ".join(f"({x:.0f},{y:.0f})" for x, y in self.as_array())
        return f"[{corners}]"


@dataclass(frozen=True)
class Found:
    """A page quad was detected."""
    quad: OrderedQuad
    method: str
    confidence: Optional[float] = None

    found = True


@dataclass(frozen=True)
class NotFound:
    """No page quad; the caller falls back."""
    method: str = ""
    reason: str = ""

    found = False


DetectionResult = Union[Found, NotFound]


@dataclass
class ScanResult:
    """Output of the pipeline for one image."""
    image: np.ndarray
    trace: list = field(default_factory=list)
    detection: DetectionResult = field(default_factory=NotFound)
    method: str = "fallback"

    @property
    def rectified(self) -> bool:
        return self.method != "fallback"
