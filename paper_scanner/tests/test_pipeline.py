"""
End-to-end tests for the scanner pipeline
"""

import threading
import time
from concurrent.futures import ThreadPoolExecutor

import cv2
import numpy as np
import pytest

from paper_scanner import DecodeError, OrderedQuad, PipelineConfig, ScanPipeline, rectify
from paper_scanner.detectors import Detector
from paper_scanner.models import Found, NotFound


class RecordingDetector(Detector):
    """Never finds a page; records which threads called it and the peak parallelism"""

    method = "recording"

    def __init__(self):
        self.lock = threading.Lock()
        self.threads = set()
        self.active = 0
        self.max_active = 0

    def detect(self, image, trace=None):
        with self.lock:
            self.threads.add(threading.current_thread().name)
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        time.sleep(0.02)
        with self.lock:
            self.active -= 1
        return NotFound(method=self.method, reason="recording")


class TestScanPipeline:
    """Tests for ScanPipeline"""

    @pytest.fixture
    def pipeline(self):
        return ScanPipeline()

    @pytest.fixture
    def small_pipeline(self):
        """Pipeline with a small destination page to keep the tests fast"""
        return ScanPipeline(PipelineConfig(destination_size=(248, 351)))

    def test_bordered_page_rectified(self, pipeline, bordered_page_image, corners_close):
        """A page with a clear outline is warped onto the full A4 page"""
        image, corners = bordered_page_image
        result = pipeline.rectify(image)

        assert result.rectified
        assert result.method == "contour"
        assert result.image.shape == (3508, 2480, 3)
        corners_close(result.detection.quad.as_array(), corners, 12)

        # The middle of the page is the gray page content
        assert abs(int(result.image[1754, 1240, 0]) - 128) <= 2
        assert "Final result: Transformed = true" in result.trace

    def test_perspective_page(self, small_pipeline, perspective_page_image):
        image, _ = perspective_page_image
        result = small_pipeline.rectify(image)

        assert result.method == "contour"
        assert result.image.shape == (351, 248, 3)
        # The warped page is light almost everywhere
        assert np.median(result.image) > 200

    def test_uniform_image_falls_back(self, pipeline, uniform_image):
        """No outline at all: 5% is cropped from every edge"""
        result = pipeline.rectify(uniform_image)

        assert not result.rectified
        assert result.method == "fallback"
        assert result.image.shape == (540, 720, 3)
        assert "Final result: Transformed = false" in result.trace
        assert "No valid quadrilateral found - applying 5% border crop" in result.trace

    def test_small_uniform_image_still_cropped(self, pipeline):
        result = pipeline.rectify(np.full((15, 15, 3), 180, dtype=np.uint8))
        assert result.method == "fallback"
        assert result.image.shape == (13, 13, 3)

    def test_broken_frame_uses_lines(self, small_pipeline, broken_frame_image):
        result = small_pipeline.rectify(broken_frame_image)
        assert result.method == "lines"
        assert result.image.shape == (351, 248, 3)

    def test_singular_quad_falls_back(self, uniform_image, stub_detector):
        """A detected but nearly collinear quad is not warped"""
        quad = OrderedQuad.from_points(np.array([[0, 0], [50, 1], [100, 0], [50, 100]]))
        detector = stub_detector("stub", Found(quad=quad, method="stub"))
        pipeline = ScanPipeline(detectors=[detector])

        result = pipeline.rectify(uniform_image)

        assert result.method == "fallback"
        assert result.image.shape == (540, 720, 3)
        assert not result.detection.found
        assert any(e.startswith("Transform failed") for e in result.trace)

    def test_chain_order(self, bordered_page_image, stub_detector):
        """The model detector is only asked when contour detection fails"""
        image, _ = bordered_page_image
        model = stub_detector("model", NotFound(method="model", reason="stub"))
        pipeline = ScanPipeline(PipelineConfig(destination_size=(100, 141)), model_detector=model)

        assert pipeline.rectify(image).method == "contour"
        assert model.calls == 0

        pipeline.rectify(np.full((300, 400, 3), 90, dtype=np.uint8))
        assert model.calls == 1

    def test_model_result_used(self, uniform_image, stub_detector):
        quad = OrderedQuad.from_points(np.array([[100, 100], [700, 100], [700, 500], [100, 500]]))
        model = stub_detector("model", Found(quad=quad, method="model", confidence=0.8))
        pipeline = ScanPipeline(PipelineConfig(destination_size=(100, 141)), model_detector=model)

        result = pipeline.rectify(uniform_image)

        assert result.method == "model"
        assert result.detection.confidence == 0.8

    def test_grayscale_input(self, small_pipeline, bordered_page_image):
        image, _ = bordered_page_image
        gray = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
        result = small_pipeline.rectify(gray)
        assert result.rectified
        assert result.image.shape == (351, 248)

    def test_empty_image(self, pipeline):
        with pytest.raises(DecodeError):
            pipeline.rectify(np.zeros((0, 0, 3), dtype=np.uint8))

    def test_rectify_bytes(self, small_pipeline, bordered_page_image):
        image, _ = bordered_page_image
        ok, encoded = cv2.imencode(".jpg", image)
        assert ok

        result = small_pipeline.rectify_bytes(encoded.tobytes())
        assert result.rectified

    def test_rectify_bytes_invalid(self, small_pipeline):
        with pytest.raises(DecodeError):
            small_pipeline.rectify_bytes(b"not an image")

    def test_trace_starts_with_input_size(self, small_pipeline, uniform_image):
        result = small_pipeline.rectify(uniform_image)
        assert result.trace[0] == "Input 800x600"

    def test_debug_prints_trace(self, uniform_image, capsys):
        pipeline = ScanPipeline(PipelineConfig(debug=True))
        pipeline.rectify(uniform_image, "page.jpg")
        assert "[page.jpg] Final result: Transformed = false" in capsys.readouterr().out

    def test_trace_is_bounded(self, uniform_image):
        pipeline = ScanPipeline(PipelineConfig(max_trace_events=3))
        result = pipeline.rectify(uniform_image)
        assert len(result.trace) == 3
        assert result.trace[-1] == "... trace truncated"


class TestBatch:
    """Tests for rectify_many"""

    def test_order_preserved(self, bordered_page_image):
        image, _ = bordered_page_image
        images = [
            np.full((200, 300, 3), 100, dtype=np.uint8),
            image,
            np.full((400, 100, 3), 100, dtype=np.uint8),
            np.full((100, 500, 3), 100, dtype=np.uint8),
        ]
        pipeline = ScanPipeline(PipelineConfig(destination_size=(248, 351), workers=2))

        results = pipeline.rectify_many(images)

        assert [r.method for r in results] == ["fallback", "contour", "fallback", "fallback"]
        assert [r.image.shape for r in results] == [(180, 270, 3), (351, 248, 3), (360, 90, 3), (90, 450, 3)]

    def test_same_result_as_sequential(self, bordered_page_image, perspective_page_image):
        images = [bordered_page_image[0], perspective_page_image[0]]
        config = PipelineConfig(destination_size=(124, 175))

        parallel = ScanPipeline(config.with_overrides(workers=2)).rectify_many(images)
        sequential = ScanPipeline(config.with_overrides(workers=1)).rectify_many(images)

        for a, b in zip(parallel, sequential):
            assert np.array_equal(a.image, b.image)
            assert a.trace == b.trace

    def test_empty_batch(self):
        assert ScanPipeline().rectify_many([]) == []

    def test_concurrent_batches_share_workers(self):
        """Two batches at once never run more than `workers` detections in parallel"""
        detector = RecordingDetector()
        pipeline = ScanPipeline(PipelineConfig(workers=2), detectors=[detector])
        images = [np.full((40, 40, 3), 100, dtype=np.uint8) for _ in range(6)]

        with ThreadPoolExecutor(max_workers=2) as callers:
            batches = list(callers.map(pipeline.rectify_many, [images, images]))

        assert [len(b) for b in batches] == [6, 6]
        assert detector.max_active <= 2
        assert len(detector.threads) <= 2
        pipeline.close()

    def test_executor_reused_and_closed(self):
        pipeline = ScanPipeline(PipelineConfig(workers=2))
        images = [np.full((40, 40, 3), 100, dtype=np.uint8)] * 3

        pipeline.rectify_many(images)
        executor = pipeline._executor
        pipeline.rectify_many(images)
        assert pipeline._executor is executor

        pipeline.close()
        assert pipeline._executor is None

        # A closed pipeline starts a new pool when used again
        assert len(pipeline.rectify_many(images)) == 3
        pipeline.close()

    def test_single_worker_runs_inline(self):
        with ScanPipeline(PipelineConfig(workers=1)) as pipeline:
            pipeline.rectify_many([np.full((40, 40, 3), 100, dtype=np.uint8)] * 2)
            assert pipeline._executor is None

    def test_labels_in_debug_output(self, uniform_image, capsys):
        pipeline = ScanPipeline(PipelineConfig(debug=True, workers=1))
        pipeline.rectify_many([uniform_image, uniform_image])
        out = capsys.readouterr().out
        assert "[image 1]" in out
        assert "[image 2]" in out


class TestRectifyFunction:
    """Tests for the module level rectify()"""

    def test_returns_image_and_trace(self, uniform_image):
        image, trace = rectify(uniform_image)
        assert image.shape == (540, 720, 3)
        assert trace[-1] == "No valid quadrilateral found - applying 5% border crop"

    def test_custom_config(self, bordered_page_image):
        image, _ = bordered_page_image
        page, trace = rectify(image, PipelineConfig(destination_size=(200, 300)))
        assert page.shape == (300, 200, 3)
        assert "Final result: Transformed = true" in trace
