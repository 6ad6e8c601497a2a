"""Parse free-form Oracle replies into coordinate estimates."""

from __future__ import annotations

import json
import math
import re
from dataclasses import dataclass, field
from typing import Any, Optional

from loguru import logger

from ..vision.models import (
    Coordinate,
    Dimensions,
    ParsedLocatorResponse,
    Region,
    ZoomDirective,
    round_px,
)

__all__ = [
    "CoordinateParser",
    "SuspicionReport",
    "evaluate_coordinate_suspicion",
    "parse_boolean",
]

GRID_INTERVAL = 100
ROUND_INTERVAL = 25

_X_KEYS = ("x", "X", "globalX", "global_x")
_Y_KEYS = ("y", "Y", "globalY", "global_y")
_CONFIDENCE_KEYS = ("confidence", "confidence_score", "confidenceScore", "score")
_NEEDS_ZOOM_KEYS = ("needsZoom", "needs_zoom", "zoomNeeded", "requiresZoom", "zoom")
_ZOOM_KEYS = ("zoom", "zoomDirective", "zoomRecommendation")
_REASONING_KEYS = ("reasoning", "reason", "notes", "explanation")

_TRUE_WORDS = {"true", "yes", "y", "zoom", "refine"}
_FALSE_WORDS = {"false", "no", "n"}

_NUMBER = r"-?\d+(?:\.\d+)?"
_LEADING_NUMBER = re.compile(rf"^\s*({_NUMBER})")
_PAIR = re.compile(rf"({_NUMBER})[^\d-]+({_NUMBER})")
_GLOBAL_PAIR = re.compile(rf"global[^\d-]*({_NUMBER})[^\d-]+({_NUMBER})", re.IGNORECASE)
_ZOOM_WORDS = re.compile(r"zoom|refine|closer", re.IGNORECASE)
_FENCE_OPEN = re.compile(r"^```(?:json)?", re.IGNORECASE)
_FENCE_CLOSE = re.compile(r"```$")
_JSON_REGEX = re.compile(r"\{[\s\S]+\}")


# ---------------------------------------------------------------------------
# Coercion helpers
# ---------------------------------------------------------------------------

def _to_number(value: Any) -> Optional[float]:
    """Return *value* as a finite float, accepting strings like ``"860.2px"``.

    Values that do not fit a float (huge integers, long digit runs) count as
    absent.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        match = _LEADING_NUMBER.match(value)
        if not match:
            return None
        value = match.group(1)
    elif not isinstance(value, (int, float)):
        return None
    try:
        number = float(value)
    except (OverflowError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _pair_to_coords(match: re.Match[str]) -> Optional[Coordinate]:
    x, y = _to_number(match.group(1)), _to_number(match.group(2))
    if x is None or y is None:
        return None
    return Coordinate.of(x, y)


def _first(data: dict[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        value = data.get(key)
        if value is not None:
            return value
    return None


def _first_number(data: dict[str, Any], keys: tuple[str, ...]) -> Optional[float]:
    for key in keys:
        number = _to_number(data.get(key))
        if number is not None:
            return number
    return None


def parse_boolean(value: Any) -> Optional[bool]:
    """Coerce booleans, non-zero numbers and yes/no style strings."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in _TRUE_WORDS:
            return True
        if normalized in _FALSE_WORDS:
            return False
    return None


def _normalize_coords(value: Any) -> Optional[Coordinate]:
    if isinstance(value, str):
        match = _PAIR.search(value)
        return _pair_to_coords(match) if match else None

    if isinstance(value, (list, tuple)):
        if len(value) < 2:
            return None
        x, y = _to_number(value[0]), _to_number(value[1])
    elif isinstance(value, dict):
        x = _first_number(value, _X_KEYS + ("0",))
        y = _first_number(value, _Y_KEYS + ("1",))
    else:
        return None

    if x is None or y is None:
        return None
    return Coordinate.of(x, y)


def _normalize_region(value: Any) -> Optional[Region]:
    if not isinstance(value, dict):
        return None

    x = _first_number(value, ("x", "left"))
    y = _first_number(value, ("y", "top"))
    width = _first_number(value, ("width", "w"))
    height = _first_number(value, ("height", "h"))

    if x is None or y is None or width is None or height is None:
        return None
    return Region.of(x, y, width, height)


def _extract_confidence(data: dict[str, Any]) -> Optional[float]:
    number = _first_number(data, _CONFIDENCE_KEYS)
    if number is None:
        return None
    return round(max(0.0, min(1.0, number)), 3)


def _normalize_zoom(payload: dict[str, Any]) -> ZoomDirective:
    radius = _first_number(payload, ("radius", "size"))
    return ZoomDirective(
        center=_normalize_coords(_first(payload, ("center", "origin", "point"))),
        radius=max(0, round_px(radius)) if radius is not None else None,
        region=_normalize_region(_first(payload, ("region", "bounds", "box"))),
    )


def _sanitize(raw: str) -> str:
    trimmed = raw.strip()
    if not trimmed:
        return trimmed
    trimmed = _FENCE_OPEN.sub("", trimmed, count=1)
    trimmed = _FENCE_CLOSE.sub("", trimmed, count=1)
    return trimmed.strip()


def _load_json(text: str) -> Any:
    """Decode *text* as JSON, falling back to its first ``{...}`` blob."""
    try:
        return json.loads(text)
    except (ValueError, RecursionError):
        pass
    match = _JSON_REGEX.search(text)
    if not match:
        return None
    try:
        return json.loads(match.group(0))
    except (ValueError, RecursionError):
        return None


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------

class CoordinateParser:
    """Normalise an Oracle reply into a :class:`ParsedLocatorResponse`.

    ``parse`` never raises: a reply it cannot make sense of comes back with
    every optional field unset and ``raw`` preserved for the audit trail.
    """

    def parse(self, raw: str) -> ParsedLocatorResponse:
        raw = raw if isinstance(raw, str) else ("" if raw is None else str(raw))
        result = ParsedLocatorResponse(raw=raw)

        sanitized = _sanitize(raw)
        if not sanitized:
            return result

        data = _load_json(sanitized)
        if isinstance(data, dict):
            self._populate_from_json(result, data)
            return result
        if isinstance(data, list):
            result.global_ = _normalize_coords(data)
            return result

        logger.debug("Oracle reply is not JSON, falling back to pattern matching")
        self._populate_from_text(result, sanitized)
        return result

    @staticmethod
    def _populate_from_json(result: ParsedLocatorResponse, data: dict[str, Any]) -> None:
        global_src = _first(data, ("global", "globalCoordinates", "global_coordinates"))
        result.global_ = _normalize_coords(global_src if global_src is not None else data)
        result.local = _normalize_coords(_first(data, ("local", "localCoordinates", "local_coordinates")))
        result.confidence = _extract_confidence(data)
        result.needs_zoom = parse_boolean(_first(data, _NEEDS_ZOOM_KEYS))

        zoom_payload = _first(data, _ZOOM_KEYS)
        if isinstance(zoom_payload, dict):
            result.zoom = _normalize_zoom(zoom_payload)

        reasoning = _first(data, _REASONING_KEYS)
        if isinstance(reasoning, str):
            result.reasoning = reasoning.strip()

    @staticmethod
    def _populate_from_text(result: ParsedLocatorResponse, text: str) -> None:
        match = _GLOBAL_PAIR.search(text) or _PAIR.search(text)
        if match:
            result.global_ = _pair_to_coords(match)
        if _ZOOM_WORDS.search(text):
            result.needs_zoom = True


# ---------------------------------------------------------------------------
# Suspicion heuristic
# ---------------------------------------------------------------------------

@dataclass
class SuspicionReport:
    """Why a global guess should not be trusted without a zoom pass."""

    suspicious: bool = False
    reasons: list[str] = field(default_factory=list)


def evaluate_coordinate_suspicion(
    parsed: ParsedLocatorResponse,
    dimensions: Optional[Dimensions] = None,
    *,
    grid_interval: int = GRID_INTERVAL,
    round_interval: int = ROUND_INTERVAL,
) -> SuspicionReport:
    """Flag guesses that are out of bounds or sit on suspiciously round values.

    Vision models asked "where is X" tend to answer with the nearest labelled
    gridline when they are unsure, so a pair of exact grid multiples is treated
    as a likely echo of a ruler label rather than a real localisation.
    """
    report = SuspicionReport()
    point = parsed.global_
    if point is None:
        return report

    if dimensions is not None and not (
        0 <= point.x <= dimensions.width and 0 <= point.y <= dimensions.height
    ):
        report.reasons.append(
            f"Coordinates ({point.x}, {point.y}) fall outside the known bounds "
            f"{dimensions.width}x{dimensions.height}."
        )

    if grid_interval > 0 and point.x % grid_interval == 0 and point.y % grid_interval == 0:
        report.reasons.append(
            f"Coordinates ({point.x}, {point.y}) land exactly on {grid_interval} px grid "
            "intersections and may echo a ruler label."
        )
    elif round_interval > 0 and point.x % round_interval == 0 and point.y % round_interval == 0:
        report.reasons.append(
            f"Coordinates ({point.x}, {point.y}) are overly round {round_interval} px multiples."
        )

    report.suspicious = bool(report.reasons)
    return report
