"""
Model based page detection with an Ultralytics YOLO model
"""

import threading
from typing import Optional

import cv2
import numpy as np

from common.geometry import is_degenerate_quad

from .config import PipelineConfig
from .detectors import Detector
from .models import BoundaryCandidate, DetectionResult, Found, NotFound, OrderedQuad
from .quad_search import QuadrilateralSearch
from .trace import TraceLog


class ModelDetector(Detector):
    """
    Wraps a loaded YOLO model trained to find document pages.

    Segmentation models give a page outline which is simplified to four
    corners; plain detection models give an axis aligned box. The most
    confident detection is used.

    The model is created once by the caller and passed in, so one loaded
    model can serve every image of the process. Call close() to release it.
    """

    method = "model"

    def __init__(self, model, config: Optional[PipelineConfig] = None):
        """
        Args:
            model: Object with a YOLO-compatible predict() method
            config: Pipeline configuration (confidence, tolerance sweep)
        """
        self.model = model
        self.config = config or PipelineConfig()
        # YOLO predictors keep per-call state
        self._lock = threading.Lock()
        self.search = QuadrilateralSearch(self.config, method=self.method)

    @classmethod
    def from_path(cls, model_path: str, config: Optional[PipelineConfig] = None) -> "ModelDetector":
        from ultralytics import YOLO

        return cls(YOLO(model_path), config)

    def close(self) -> None:
        self.model = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def detect(self, image: np.ndarray, trace: Optional[TraceLog] = None) -> DetectionResult:
        if trace is None:
            trace = TraceLog()

        if self.model is None:
            return NotFound(method=self.method, reason="model closed")

        with self._lock:
            results = self.model.predict(image, conf=self.config.model_confidence, verbose=False)
        if len(results) == 0 or results[0].boxes is None or len(results[0].boxes) == 0:
            trace.add("Model found no page")
            return NotFound(method=self.method, reason="no detections")

        result = results[0]
        confidences = np.asarray(result.boxes.conf.cpu().numpy(), dtype=np.float32).reshape(-1)
        best = int(np.argmax(confidences))
        confidence = float(confidences[best])

        quad = None
        if result.masks is not None and len(result.masks.xy) > best:
            quad = self._quad_from_outline(np.asarray(result.masks.xy[best], dtype=np.float32))

        if quad is None:
            x1, y1, x2, y2 = result.boxes.xyxy[best].cpu().numpy()
            quad = np.array([[x1, y1], [x2, y1], [x2, y2], [x1, y2]], dtype=np.float32)

        if is_degenerate_quad(quad):
            trace.add(f"Model detection (conf {confidence:.2f}) is degenerate")
            return NotFound(method=self.method, reason="degenerate detection")

        ordered = OrderedQuad.from_points(quad)
        trace.add(f"Model detection (conf {confidence:.2f}) {ordered}")
        return Found(quad=ordered, method=self.method, confidence=confidence)

    def _quad_from_outline(self, outline: np.ndarray) -> Optional[np.ndarray]:
        if len(outline) < 4:
            return None

        candidate = BoundaryCandidate(points=outline)
        quad = self.search.simplify_to_quad(candidate)
        if quad is not None:
            return quad

        # Outline never simplified to 4 points: use its minimum area rectangle
        rect = cv2.minAreaRect(outline.reshape(-1, 1, 2))
        return cv2.boxPoints(rect).astype(np.float32)
