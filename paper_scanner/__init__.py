"""
Paper Scanner

Finds the page in a photo of a document and flattens it onto a
fixed-size upright page. Falls back to a border crop when no page
outline can be found.
"""

from .config import PipelineConfig
from .detectors import ContourDetector, DetectorChain, LineDetector, NullDetector, load_model_detector
from .errors import ConfigError, DecodeError, ScannerError, SingularTransformError
from .fallback import FallbackCropper
from .models import Found, NotFound, OrderedQuad, ScanResult, WorkingImage
from .pipeline import ScanPipeline, rectify
from .preprocessor import Preprocessor, decode_image, load_image
from .rectifier import Rectifier
from .visualizer import ScanVisualizer

__all__ = [
    'PipelineConfig',
    'ScanPipeline',
    'rectify',
    'ContourDetector',
    'LineDetector',
    'NullDetector',
    'DetectorChain',
    'load_model_detector',
    'Preprocessor',
    'decode_image',
    'load_image',
    'Rectifier',
    'FallbackCropper',
    'ScanVisualizer',
    'Found',
    'NotFound',
    'OrderedQuad',
    'ScanResult',
    'WorkingImage',
    'ScannerError',
    'DecodeError',
    'SingularTransformError',
    'ConfigError',
]
