"""
Synthetic test images for the scanner tests
"""

import cv2
import numpy as np
import pytest

from paper_scanner.detectors import Detector


def draw_page(size, corners, background=255, page=128, border=0, border_thickness=8):
    """
    Image of `size` (width, height) with a filled polygon page and a dark outline.
    """
    width, height = size
    image = np.full((height, width, 3), background, dtype=np.uint8)
    pts = np.array(corners, dtype=np.int32).reshape(-1, 1, 2)
    cv2.fillPoly(image, [pts], (page, page, page))
    if border_thickness > 0:
        cv2.polylines(image, [pts], True, (border, border, border), border_thickness)
    return image


@pytest.fixture
def page_image_factory():
    """Factory for synthetic page photos"""
    return draw_page


@pytest.fixture
def bordered_page_image():
    """1000x1000 white image with a black-bordered gray square covering ~60% of the frame"""
    corners = [(113, 113), (887, 113), (887, 887), (113, 887)]
    return draw_page((1000, 1000), corners), corners


@pytest.fixture
def perspective_page_image():
    """Light page seen at an angle on a dark desk"""
    corners = [(180, 120), (820, 170), (900, 1050), (90, 980)]
    image = draw_page((1000, 1200), corners, background=40, page=235, border_thickness=0)
    return image, corners


@pytest.fixture
def uniform_image():
    """Solid color image without any edge"""
    return np.full((600, 800, 3), 180, dtype=np.uint8)


@pytest.fixture
def broken_frame_image():
    """
    Four separate straight lines around a page: no closed outline, but
    clear straight edges.
    """
    image = np.full((800, 800, 3), 255, dtype=np.uint8)
    color = (0, 0, 0)
    cv2.line(image, (180, 150), (620, 150), color, 3)
    cv2.line(image, (180, 650), (620, 650), color, 3)
    cv2.line(image, (150, 180), (150, 620), color, 3)
    cv2.line(image, (650, 180), (650, 620), color, 3)
    return image


def assert_corners_close(actual, expected, tolerance):
    """Compare ordered corners (TL, TR, BR, BL) point by point."""
    actual = np.asarray(actual, dtype=np.float32)
    expected = np.asarray(expected, dtype=np.float32)
    distances = np.linalg.norm(actual - expected, axis=1)
    assert np.all(distances <= tolerance), f"Corners {actual.tolist()} differ from {expected.tolist()}"


@pytest.fixture
def corners_close():
    return assert_corners_close


class StubDetector(Detector):
    """Detector returning a fixed result and counting its calls"""

    def __init__(self, method, result):
        self.method = method
        self.result = result
        self.calls = 0

    def detect(self, image, trace=None):
        self.calls += 1
        return self.result


@pytest.fixture
def stub_detector():
    """Factory: stub_detector(method, result)"""
    return StubDetector
