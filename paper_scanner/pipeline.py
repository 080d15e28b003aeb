"""
Scanner pipeline: detection, rectification and fallback for each image
"""

import os
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .config import PipelineConfig
from .detectors import ContourDetector, Detector, DetectorChain, LineDetector, NullDetector, load_model_detector
from .errors import DecodeError, SingularTransformError
from .fallback import FallbackCropper
from .models import NotFound, ScanResult
from .preprocessor import decode_image
from .rectifier import Rectifier
from .trace import TraceLog


class ScanPipeline:
    """
    Turns photos of document pages into flat, fixed-size page images.

    For each image:
    1. Boundary (contour) detection on a downscaled working copy
    2. If nothing is found, the model detector (when loaded), then line detection
    3. Perspective warp of the original image onto the destination page
    4. If no quad was found or the warp is singular, a fixed border crop

    Images are independent; a pipeline instance can be shared between threads.
    """

    def __init__(
        self,
        config: Optional[PipelineConfig] = None,
        model_detector: Optional[Detector] = None,
        detectors: Optional[Sequence[Detector]] = None
    ):
        """
        Initialize the pipeline.

        Args:
            config: Pipeline configuration (defaults are used if omitted)
            model_detector: Loaded model based detector; NullDetector if omitted
            detectors: Replace the whole strategy chain (mainly for tests)
        """
        self.config = config or PipelineConfig()
        self.model_detector = model_detector or NullDetector()

        if detectors is None:
            detectors = [
                ContourDetector(self.config),
                self.model_detector,
                LineDetector(self.config),
            ]

        self.chain = DetectorChain(detectors)
        self.rectifier = Rectifier(self.config.destination_size)
        self.cropper = FallbackCropper(self.config.fallback_crop_fraction)

        # One worker pool for every batch, so concurrent callers share the bound
        self._executor: Optional[ThreadPoolExecutor] = None
        self._executor_lock = threading.Lock()

    @classmethod
    def from_config(cls, config: Optional[PipelineConfig] = None) -> "ScanPipeline":
        """Pipeline with the model detector loaded from config.model_path (if any)."""
        config = config or PipelineConfig()
        return cls(config, model_detector=load_model_detector(config.model_path, config))

    def close(self) -> None:
        """Shut down the worker pool and release the model detector."""
        with self._executor_lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=True)

        close = getattr(self.model_detector, "close", None)
        if close is not None:
            close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def rectify(self, image: np.ndarray, label: str = "") -> ScanResult:
        """
        Process one decoded image.

        Args:
            image: BGR or grayscale image
            label: Name used to prefix debug output

        Returns:
            ScanResult with the page image and the decision trace

        Raises:
            DecodeError: If the image is empty
        """
        if image is None or image.size == 0 or min(image.shape[:2]) == 0:
            raise DecodeError("Empty image")

        trace = TraceLog(self.config.max_trace_events, self.config.debug, label)
        h, w = image.shape[:2]
        trace.add(f"Input {w}x{h}")

        detection = self.chain.detect(image, trace)

        if detection.found:
            try:
                page = self.rectifier.rectify(image, detection.quad)
                trace.add(f"Transform successful ({detection.method})")
                trace.add("Final result: Transformed = true")
                return ScanResult(image=page, trace=trace.events(), detection=detection, method=detection.method)
            except SingularTransformError as e:
                trace.add(f"Transform failed: {e}")
                detection = NotFound(method=detection.method, reason=str(e))

        trace.add("Final result: Transformed = false")
        trace.add(f"No valid quadrilateral found - applying {self.config.fallback_crop_fraction:.0%} border crop")
        page = self.cropper.crop(image)
        return ScanResult(image=page, trace=trace.events(), detection=detection, method="fallback")

    def rectify_bytes(self, data: bytes, label: str = "") -> ScanResult:
        """Decode and process one encoded image. Raises DecodeError."""
        return self.rectify(decode_image(data), label)

    def rectify_many(self, images: Sequence[np.ndarray]) -> List[ScanResult]:
        """
        Process several images on the pipeline's bounded thread pool.

        The pool is created on first use and shared by all concurrent calls,
        so the number of worker threads never exceeds `worker_count`.
        Results are in the same order as `images`.
        """
        if len(images) == 0:
            return []

        labels = [f"image {i + 1}" for i in range(len(images))]
        if len(images) == 1 or self.worker_count == 1:
            return [self.rectify(image, label) for image, label in zip(images, labels)]

        return list(self._get_executor().map(self.rectify, images, labels))

    @property
    def worker_count(self) -> int:
        """Size of the worker pool: config.workers, else the CPU count."""
        return max(1, self.config.workers or os.cpu_count() or 1)

    def _get_executor(self) -> ThreadPoolExecutor:
        with self._executor_lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(max_workers=self.worker_count, thread_name_prefix="scan")
            return self._executor


def rectify(image: np.ndarray, config: Optional[PipelineConfig] = None) -> Tuple[np.ndarray, List[str]]:
    """
    Single image entry point.

    Returns:
        (page image, trace lines)
    """
    result = ScanPipeline(config).rectify(image)
    return result.image, result.trace
