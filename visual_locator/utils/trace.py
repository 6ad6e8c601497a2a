"""Export ``locate()`` traces and replay them offline.

A trace keeps every step's prompt, raw Oracle reply and capture verbatim, so
``ReplayOracle`` and ``ReplayCapture`` can feed a saved run back through a
fresh ``UniversalCoordinateRefiner``.
"""

from __future__ import annotations

import os
from typing import Any, Dict, List, Optional

from ..core.config import config
from ..core.logger import log
from ..vision.models import (
    AnnotatedCapture,
    CalibrationSample,
    Coordinate,
    LocateResult,
    LocatorStep,
    ParsedLocatorResponse,
    Region,
)
from .file_utils import get_timestamp, load_json, save_json

__all__ = ["ReplayCapture", "ReplayOracle", "load_trace", "result_to_dict", "save_trace"]

TRACE_VERSION = 1


def _coord(value: Optional[Coordinate]) -> Optional[Dict[str, int]]:
    return {"x": value.x, "y": value.y} if value is not None else None


def _region(value: Optional[Region]) -> Optional[Dict[str, int]]:
    if value is None:
        return None
    return {"x": value.x, "y": value.y, "width": value.width, "height": value.height}


def _capture(capture: AnnotatedCapture) -> Dict[str, Any]:
    return {
        "image": capture.image,
        "offset": _coord(capture.offset),
        "region": _region(capture.region),
        "zoomLevel": capture.zoom_level,
    }


def _response(parsed: ParsedLocatorResponse) -> Dict[str, Any]:
    zoom = None
    if parsed.zoom is not None:
        zoom = {
            "center": _coord(parsed.zoom.center),
            "radius": parsed.zoom.radius,
            "region": _region(parsed.zoom.region),
        }
    return {
        "global": _coord(parsed.global_),
        "local": _coord(parsed.local),
        "confidence": parsed.confidence,
        "needsZoom": parsed.needs_zoom,
        "zoom": zoom,
        "reasoning": parsed.reasoning,
    }


def _step(step: LocatorStep) -> Dict[str, Any]:
    return {
        "id": step.id,
        "label": step.label,
        "prompt": step.prompt,
        "raw": step.raw,
        "response": _response(step.response),
        "screenshot": _capture(step.screenshot),
    }


def _sample(sample: CalibrationSample) -> Dict[str, Any]:
    return {
        "offset": _coord(sample.offset),
        "timestamp": sample.timestamp,
        "source": sample.source,
        "success": sample.success,
        "predicted": _coord(sample.predicted),
        "actual": _coord(sample.actual),
        "targetDescription": sample.target_description,
        "error": sample.error,
    }


def result_to_dict(result: LocateResult, target_description: Optional[str] = None) -> Dict[str, Any]:
    """Serialise a ``LocateResult`` into plain JSON-compatible data."""
    return {
        "version": TRACE_VERSION,
        "targetDescription": target_description,
        "coordinates": _coord(result.coordinates),
        "baseCoordinates": _coord(result.base_coordinates),
        "context": {
            "region": _region(result.context.region),
            "zoomLevel": result.context.zoom_level,
        },
        "appliedOffset": _coord(result.applied_offset),
        "confidence": result.confidence,
        "reasoning": result.reasoning,
        "steps": [_step(step) for step in result.steps],
        "calibrationHistory": [_sample(sample) for sample in result.calibration_history],
    }


def save_trace(
    result: LocateResult,
    path: Optional[str] = None,
    target_description: Optional[str] = None,
) -> Optional[str]:
    """Write *result* as JSON; returns the path, or ``None`` on failure."""
    if path is None:
        path = os.path.join(config.trace_dir, f"locate_{get_timestamp()}.json")
    if save_json(result_to_dict(result, target_description), path):
        return path
    return None


def load_trace(path: str) -> Dict[str, Any]:
    """Load a trace written by :func:`save_trace`.

    Raises:
        ValueError: the file is missing or is not a locator trace.
    """
    data = load_json(path)
    if not isinstance(data, dict) or "steps" not in data:
        raise ValueError(f"Not a locator trace: {path}")
    return data


class ReplayOracle:
    """Return the recorded raw replies in order."""

    def __init__(self, trace: Dict[str, Any]) -> None:
        self._replies: List[str] = [step.get("raw", "") for step in trace.get("steps", [])]
        self.prompts: List[str] = []

    def ask_about_screenshot(self, image: str, prompt: str) -> str:
        self.prompts.append(prompt)
        if not self._replies:
            raise LookupError("Replay trace has no more Oracle replies")
        return self._replies.pop(0)


class ReplayCapture:
    """Return the recorded full-frame and zoom captures."""

    def __init__(self, trace: Dict[str, Any]) -> None:
        self._captures: Dict[str, AnnotatedCapture] = {
            step["id"]: AnnotatedCapture.from_dict(step["screenshot"]) for step in trace.get("steps", [])
        }
        self.zoom_requests: List[Region] = []

    def _get(self, step_id: str) -> AnnotatedCapture:
        capture = self._captures.get(step_id)
        if capture is None:
            raise LookupError(f"Replay trace has no {step_id} capture")
        return capture

    def full(self, **_options: Any) -> AnnotatedCapture:
        return self._get("full-frame")

    def zoom(self, region: Region, **_options: Any) -> AnnotatedCapture:
        self.zoom_requests.append(region)
        log.debug(f"Replaying zoom capture for requested region {region.as_tuple()}")
        return self._get("zoom-refine")
