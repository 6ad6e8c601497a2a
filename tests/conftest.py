"""Shared fixtures: PNG builders and scripted Oracle / ScreenCapture fakes."""

from __future__ import annotations

import base64
import io
import json
from typing import Any, Optional

import pytest
from PIL import Image

from visual_locator.core.calibrator import Calibrator
from visual_locator.vision.models import AnnotatedCapture, Coordinate, Region


def make_png(width: int, height: int) -> str:
    """Return a blank base64 PNG of the given size."""
    buf = io.BytesIO()
    Image.new("RGB", (width, height), "white").save(buf, format="PNG")
    return base64.b64encode(buf.getvalue()).decode("ascii")


def reply(**payload: Any) -> str:
    return json.dumps(payload)


class ScriptedOracle:
    """Async Oracle returning canned replies in order."""

    def __init__(self, *replies: str) -> None:
        self.replies = list(replies)
        self.calls: list[tuple[str, str]] = []

    async def ask_about_screenshot(self, image: str, prompt: str) -> str:
        self.calls.append((image, prompt))
        return self.replies.pop(0)


class ScriptedCapture:
    """Async capture returning a fixed full frame and an optional zoom capture.

    Without an explicit zoom capture, the zoom call echoes the requested
    region back with no offset.
    """

    def __init__(
        self,
        full: AnnotatedCapture,
        zoom: Optional[AnnotatedCapture] = None,
    ) -> None:
        self._full = full
        self._zoom = zoom
        self.full_calls: list[dict[str, Any]] = []
        self.zoom_calls: list[tuple[Region, dict[str, Any]]] = []

    async def full(self, **options: Any) -> AnnotatedCapture:
        self.full_calls.append(options)
        return self._full

    async def zoom(self, region: Region, **options: Any) -> AnnotatedCapture:
        self.zoom_calls.append((region, options))
        if self._zoom is not None:
            return self._zoom
        return AnnotatedCapture(
            image=self._full.image,
            region=region,
            zoom_level=options.get("zoom_level"),
        )


@pytest.fixture
def calibrator() -> Calibrator:
    return Calibrator(max_history=50, min_samples=5, success_weight=1.5, weighting="recency")


@pytest.fixture(scope="session")
def png_1000x800() -> str:
    return make_png(1000, 800)


@pytest.fixture(scope="session")
def png_800x600() -> str:
    return make_png(800, 600)


@pytest.fixture(scope="session")
def png_1920x1080() -> str:
    return make_png(1920, 1080)


@pytest.fixture
def seeded_calibrator(calibrator: Calibrator) -> Calibrator:
    """Calibrator holding five identical successful corrections of (+4, -3)."""
    for _ in range(5):
        calibrator.record_correction(Coordinate(104, 97), Coordinate(100, 100), "test")
    return calibrator
