"""Data models shared by the parser, calibrator and refiner."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass(slots=True, frozen=True)
class Coordinate:
    """Integer pixel position in global (unscaled, full-screen) space."""

    x: int
    y: int

    @classmethod
    def of(cls, x: float, y: float) -> Coordinate:
        """Build a coordinate, rounding both axes to the nearest integer."""
        return cls(round_px(x), round_px(y))

    def __add__(self, other: Coordinate) -> Coordinate:
        return Coordinate(self.x + other.x, self.y + other.y)

    def __sub__(self, other: Coordinate) -> Coordinate:
        return Coordinate(self.x - other.x, self.y - other.y)

    def as_tuple(self) -> tuple[int, int]:
        """Return coordinate as ``(x, y)`` tuple."""
        return self.x, self.y


@dataclass(slots=True, frozen=True)
class Region:
    """Axis-aligned rectangle (x, y, width, height) in global pixels."""

    x: int
    y: int
    width: int
    height: int

    @classmethod
    def of(cls, x: float, y: float, width: float, height: float) -> Region:
        return cls(round_px(x), round_px(y), round_px(width), round_px(height))

    @property
    def origin(self) -> Coordinate:
        return Coordinate(self.x, self.y)

    @property
    def center(self) -> Coordinate:
        return Coordinate.of(self.x + self.width / 2, self.y + self.height / 2)

    def as_tuple(self) -> tuple[int, int, int, int]:
        """Return region as ``(x, y, width, height)`` tuple."""
        return self.x, self.y, self.width, self.height


@dataclass(slots=True, frozen=True)
class Dimensions:
    """Pixel size of a captured image."""

    width: int
    height: int


@dataclass(slots=True)
class AnnotatedCapture:
    """Screenshot with a grid overlay, plus where it sits in global space.

    ``offset`` and ``region`` describe what was actually captured and take
    precedence over whatever was requested, since capture clamps to the
    screen bounds.
    """

    image: str  # base64 PNG
    offset: Optional[Coordinate] = None
    region: Optional[Region] = None
    zoom_level: Optional[float] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AnnotatedCapture:
        """Build a capture from a transport payload (camelCase or snake_case)."""
        offset = data.get("offset")
        region = data.get("region")
        zoom_level = data.get("zoomLevel", data.get("zoom_level"))
        return cls(
            image=data.get("image", ""),
            offset=Coordinate.of(offset["x"], offset["y"]) if offset else None,
            region=Region.of(region["x"], region["y"], region["width"], region["height"]) if region else None,
            zoom_level=float(zoom_level) if zoom_level is not None else None,
        )


@dataclass(slots=True)
class ZoomDirective:
    """The Oracle's own suggestion for where to zoom next."""

    center: Optional[Coordinate] = None
    radius: Optional[int] = None
    region: Optional[Region] = None


@dataclass(slots=True)
class ParsedLocatorResponse:
    """Normalised Oracle reply. Every field except ``raw`` may be absent."""

    raw: str
    global_: Optional[Coordinate] = None
    local: Optional[Coordinate] = None
    confidence: Optional[float] = None
    needs_zoom: Optional[bool] = None
    zoom: Optional[ZoomDirective] = None
    reasoning: Optional[str] = None


@dataclass(slots=True, frozen=True)
class CalibrationSample:
    """One observed pointer offset."""

    offset: Coordinate
    timestamp: float
    source: str
    success: bool = False
    predicted: Optional[Coordinate] = None
    actual: Optional[Coordinate] = None
    target_description: Optional[str] = None
    error: Optional[float] = None


@dataclass(slots=True)
class LocatorStep:
    """A single capture → prompt → Oracle → parse round-trip."""

    id: str
    label: str
    prompt: str
    response: ParsedLocatorResponse
    raw: str
    screenshot: AnnotatedCapture


@dataclass(slots=True)
class LocateContext:
    region: Optional[Region] = None
    zoom_level: Optional[float] = None


@dataclass(slots=True)
class LocateResult:
    """Outcome of ``UniversalCoordinateRefiner.locate``."""

    coordinates: Coordinate
    base_coordinates: Coordinate
    context: LocateContext
    steps: list[LocatorStep] = field(default_factory=list)
    applied_offset: Optional[Coordinate] = None
    calibration_history: list[CalibrationSample] = field(default_factory=list)
    confidence: Optional[float] = None
    reasoning: Optional[str] = None


def round_px(value: float) -> int:
    """Round a pixel value to the nearest integer."""
    # Halves round up (860.5 -> 861, -0.5 -> 0).
    return math.floor(float(value) + 0.5)
