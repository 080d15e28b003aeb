"""
Plane geometry helpers shared by the detectors and the rectifier.

All functions take plain numpy arrays of shape (N, 2) holding (x, y)
coordinates and never modify their input.
"""

import itertools
from typing import Optional, Tuple

import numpy as np


def order_points(pts: np.ndarray) -> np.ndarray:
    """
    Order 4 quadrilateral points as top-left, top-right, bottom-right, bottom-left.

    Top-left has the smallest x+y, bottom-right the largest. Of the two
    remaining points the one with the larger y-x is bottom-left.
    Ties are broken on the coordinates themselves, so the result does not
    depend on the order in which the points were given.

    Args:
        pts: Array of 4 points, shape (4, 2)

    Returns:
        Ordered points as float32 array of shape (4, 2)
    """
    pts = np.asarray(pts, dtype=np.float64).reshape(4, 2)

    # Lexicographic pre-sort makes argmin/argmax ties deterministic
    pts = pts[np.lexsort((pts[:, 1], pts[:, 0]))]

    s = pts.sum(axis=1)
    tl_idx = int(np.argmin(s))
    # Last maximum, so tl and br differ even when all sums are equal
    br_idx = 3 - int(np.argmax(s[::-1]))

    rest = [i for i in range(4) if i not in (tl_idx, br_idx)]
    diff = pts[rest, 1] - pts[rest, 0]
    if diff[0] >= diff[1]:
        bl_idx, tr_idx = rest[0], rest[1]
    else:
        bl_idx, tr_idx = rest[1], rest[0]

    rect = pts[[tl_idx, tr_idx, br_idx, bl_idx]]
    return rect.astype(np.float32)


def polygon_area(pts: np.ndarray) -> float:
    """Unsigned shoelace area of a closed polygon."""
    pts = np.asarray(pts, dtype=np.float64).reshape(-1, 2)
    if len(pts) < 3:
        return 0.0
    x = pts[:, 0]
    y = pts[:, 1]
    return float(abs(np.dot(x, np.roll(y, -1)) - np.dot(y, np.roll(x, -1))) / 2.0)


def polygon_perimeter(pts: np.ndarray, closed: bool = True) -> float:
    """Sum of edge lengths; the closing edge is included when `closed`."""
    pts = np.asarray(pts, dtype=np.float64).reshape(-1, 2)
    if len(pts) < 2:
        return 0.0
    segments = np.diff(pts, axis=0)
    length = float(np.linalg.norm(segments, axis=1).sum())
    if closed:
        length += float(np.linalg.norm(pts[0] - pts[-1]))
    return length


def line_intersection(p1, p2, p3, p4) -> Optional[np.ndarray]:
    """
    Intersection of the infinite line through p1, p2 with the one through p3, p4.

    Returns:
        Point as float32 array [x, y] or None for parallel lines
    """
    x1, y1 = float(p1[0]), float(p1[1])
    x2, y2 = float(p2[0]), float(p2[1])
    x3, y3 = float(p3[0]), float(p3[1])
    x4, y4 = float(p4[0]), float(p4[1])

    det = (x1 - x2) * (y3 - y4) - (y1 - y2) * (x3 - x4)
    if abs(det) < 1e-8:
        return None

    a = x1 * y2 - y1 * x2
    b = x3 * y4 - y3 * x4
    x = (a * (x3 - x4) - (x1 - x2) * b) / det
    y = (a * (y3 - y4) - (y1 - y2) * b) / det
    return np.array([x, y], dtype=np.float32)


def hough_line_intersection(line1: Tuple[float, float], line2: Tuple[float, float]) -> Optional[np.ndarray]:
    """Intersection of two lines in Hough normal form (rho, theta)."""
    rho1, theta1 = line1
    rho2, theta2 = line2

    a1, b1 = np.cos(theta1), np.sin(theta1)
    a2, b2 = np.cos(theta2), np.sin(theta2)

    det = a1 * b2 - a2 * b1
    if abs(det) < 1e-8:
        return None

    x = (b2 * rho1 - b1 * rho2) / det
    y = (a1 * rho2 - a2 * rho1) / det

    return np.array([x, y], dtype=np.float32)


def collinearity_ratio(pts: np.ndarray) -> float:
    """
    Smallest "flatness" over all triples of the given points.

    For each triple, the height of the triangle over its longest side is
    divided by that side. 0 means three points are collinear (or coincide),
    ~0.87 is an equilateral triangle.
    """
    pts = np.asarray(pts, dtype=np.float64).reshape(-1, 2)
    worst = float('inf')
    for a, b, c in itertools.combinations(pts, 3):
        longest = max(np.linalg.norm(a - b), np.linalg.norm(b - c), np.linalg.norm(c - a))
        if longest < 1e-9:
            return 0.0
        doubled_area = abs((b[0] - a[0]) * (c[1] - a[1]) - (b[1] - a[1]) * (c[0] - a[0]))
        height = doubled_area / longest
        worst = min(worst, height / longest)
    return worst if worst != float('inf') else 0.0


def is_degenerate_quad(pts: np.ndarray, min_ratio: float = 0.02) -> bool:
    """True when any three corners of the quad lie (almost) on one line."""
    pts = np.asarray(pts, dtype=np.float64)
    if pts.size != 8 or not np.all(np.isfinite(pts)):
        return True
    return collinearity_ratio(pts) < min_ratio


def scale_points(pts: np.ndarray, scale_x: float, scale_y: float) -> np.ndarray:
    """Multiply x by scale_x and y by scale_y."""
    pts = np.asarray(pts, dtype=np.float32).reshape(-1, 2)
    return pts * np.array([scale_x, scale_y], dtype=np.float32)
