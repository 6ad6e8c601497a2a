"""Capture data models and image helpers.

Debug rendering lives in ``visual_locator.vision.debug`` and needs OpenCV.
"""

from .image_utils import decode_base64_image, get_png_dimensions
from .models import (
    AnnotatedCapture,
    CalibrationSample,
    Coordinate,
    Dimensions,
    LocateContext,
    LocateResult,
    LocatorStep,
    ParsedLocatorResponse,
    Region,
    ZoomDirective,
)

__all__ = [
    "AnnotatedCapture",
    "CalibrationSample",
    "Coordinate",
    "Dimensions",
    "LocateContext",
    "LocateResult",
    "LocatorStep",
    "ParsedLocatorResponse",
    "Region",
    "ZoomDirective",
    "decode_base64_image",
    "get_png_dimensions",
]
