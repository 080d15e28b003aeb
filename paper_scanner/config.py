"""
Pipeline configuration
"""

import os
from dataclasses import dataclass, replace
from typing import Optional, Tuple

from dotenv import load_dotenv

from .errors import ConfigError


BOUNDARY_METHODS = ("edges", "threshold")

# A4 at 300 DPI
A4_300_DPI = (2480, 3508)


@dataclass(frozen=True)
class PipelineConfig:
    """
    Tunable parameters of the scanner pipeline.

    Attributes:
        max_working_dimension: Detection runs on a copy whose larger side is at most this
        area_percent_band: Accepted (min, max) area of a candidate in percent of the
            working frame, both limits inclusive
        tolerance_range: (start, end, step) of the polygon simplification tolerance as a
            fraction of the candidate perimeter, end inclusive
        top_k_candidates: Number of largest boundaries considered
        fallback_crop_fraction: Fraction cut from every edge when no page is found
        destination_size: (width, height) of the rectified page
        boundary_method: "edges" (Canny + dilate) or "threshold" (Otsu + open/close)
        workers: Size of the worker pool for batches (None = CPU count)
        debug: Print every trace event as it happens
        max_trace_events: Upper bound of trace lines kept per image
        model_path: Optional YOLO weights for the model based detector
        model_confidence: Minimum confidence of a model detection
    """
    max_working_dimension: int = 1500
    area_percent_band: Tuple[float, float] = (20.0, 98.0)
    tolerance_range: Tuple[float, float, float] = (0.01, 0.08, 0.01)
    top_k_candidates: int = 10
    fallback_crop_fraction: float = 0.05
    destination_size: Tuple[int, int] = A4_300_DPI
    boundary_method: str = "edges"
    workers: Optional[int] = None
    debug: bool = False
    max_trace_events: int = 200
    model_path: Optional[str] = None
    model_confidence: float = 0.25

    def __post_init__(self):
        if self.max_working_dimension <= 0:
            raise ConfigError(f"max_working_dimension must be positive, got {self.max_working_dimension}")

        low, high = self.area_percent_band
        if not 0 <= low <= high <= 100:
            raise ConfigError(f"area_percent_band must satisfy 0 <= min <= max <= 100, got {self.area_percent_band}")

        start, end, step = self.tolerance_range
        if step <= 0 or start <= 0 or end < start:
            raise ConfigError(f"tolerance_range must be (start, end, step) with 0 < start <= end and step > 0, got {self.tolerance_range}")

        if self.top_k_candidates <= 0:
            raise ConfigError(f"top_k_candidates must be positive, got {self.top_k_candidates}")

        if not 0 <= self.fallback_crop_fraction < 0.5:
            raise ConfigError(f"fallback_crop_fraction must be in [0, 0.5), got {self.fallback_crop_fraction}")

        width, height = self.destination_size
        if width < 2 or height < 2:
            raise ConfigError(f"destination_size must be at least 2x2, got {self.destination_size}")

        if self.boundary_method not in BOUNDARY_METHODS:
            raise ConfigError(f"boundary_method must be one of {BOUNDARY_METHODS}, got {self.boundary_method!r}")

        if self.workers is not None and self.workers <= 0:
            raise ConfigError(f"workers must be positive, got {self.workers}")

        if self.max_trace_events <= 0:
            raise ConfigError(f"max_trace_events must be positive, got {self.max_trace_events}")

    def tolerances(self) -> list:
        """Tolerance steps of the simplification sweep, `end` included."""
        start, end, step = self.tolerance_range
        count = int(round((end - start) / step)) + 1
        values = [round(start + i * step, 6) for i in range(count)]
        return [v for v in values if v <= end + 1e-9]

    def with_overrides(self, **changes) -> "PipelineConfig":
        """Copy of this config with some fields replaced (validated again)."""
        return replace(self, **changes)

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "PipelineConfig":
        """
        Build a config from SCANNER_* environment variables.

        A .env file is loaded first (python-dotenv); variables already set in
        the process environment win.
        """
        load_dotenv(env_file)

        values = {}

        if os.getenv("SCANNER_MAX_WORKING_DIMENSION"):
            values['max_working_dimension'] = _parse_int("SCANNER_MAX_WORKING_DIMENSION")
        if os.getenv("SCANNER_AREA_BAND"):
            values['area_percent_band'] = _parse_floats("SCANNER_AREA_BAND", 2)
        if os.getenv("SCANNER_TOLERANCE_RANGE"):
            values['tolerance_range'] = _parse_floats("SCANNER_TOLERANCE_RANGE", 3)
        if os.getenv("SCANNER_TOP_K"):
            values['top_k_candidates'] = _parse_int("SCANNER_TOP_K")
        if os.getenv("SCANNER_CROP_FRACTION"):
            values['fallback_crop_fraction'] = _parse_floats("SCANNER_CROP_FRACTION", 1)[0]
        if os.getenv("SCANNER_DESTINATION_SIZE"):
            values['destination_size'] = _parse_size("SCANNER_DESTINATION_SIZE")
        if os.getenv("SCANNER_BOUNDARY_METHOD"):
            values['boundary_method'] = os.getenv("SCANNER_BOUNDARY_METHOD").strip().lower()
        if os.getenv("SCANNER_WORKERS"):
            values['workers'] = _parse_int("SCANNER_WORKERS")
        if os.getenv("SCANNER_DEBUG"):
            values['debug'] = os.getenv("SCANNER_DEBUG").strip().lower() in ("1", "true", "yes", "on")
        if os.getenv("SCANNER_MODEL_PATH"):
            values['model_path'] = os.getenv("SCANNER_MODEL_PATH")

        return cls(**values)


def _parse_int(name: str) -> int:
    raw = os.getenv(name, "")
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from None


def _parse_floats(name: str, count: int) -> tuple:
    raw = os.getenv(name, "")
    parts = [p.strip() for p in raw.split(",") if p.strip()]
    if len(parts) != count:
        raise ConfigError(f"{name} must hold {count} comma separated numbers, got {raw!r}")
    try:
        return tuple(float(p) for p in parts)
    except ValueError:
        raise ConfigError(f"{name} must hold numbers, got {raw!r}") from None


def _parse_size(name: str) -> Tuple[int, int]:
    raw = os.getenv(name, "")
    parts = raw.lower().replace(",", "x").split("x")
    if len(parts) != 2:
        raise ConfigError(f"{name} must look like 2480x3508, got {raw!r}")
    try:
        return int(parts[0]), int(parts[1])
    except ValueError:
        raise ConfigError(f"{name} must look like 2480x3508, got {raw!r}") from None
