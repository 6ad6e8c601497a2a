"""Two-step visual coordinate resolution with drift correction.

``UniversalCoordinateRefiner.locate`` runs a full-frame query against the
Oracle, optionally follows it with exactly one zoomed query, reconciles the
two estimates and applies the calibrator's current drift correction::

    full-frame ──(confident, plausible)──────────────> resolved
        │
        └─(no estimate / needsZoom / suspicious)─> zoom-refine ─> resolved | failed
"""

from __future__ import annotations

import inspect
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Dict, Optional, Protocol, TypeVar, Union

from ..ai.prompt import CoordinateTeacher
from ..ai.response_parser import CoordinateParser, evaluate_coordinate_suspicion
from ..vision.image_utils import get_png_dimensions
from ..vision.models import (
    AnnotatedCapture,
    Coordinate,
    Dimensions,
    LocateContext,
    LocateResult,
    LocatorStep,
    ParsedLocatorResponse,
    Region,
    round_px,
)
from .calibrator import Calibrator
from .config import config
from .errors import LocateFailed
from .logger import log
from .telemetry import NullTelemetry

T = TypeVar("T")
MaybeAwaitable = Union[T, Awaitable[T]]

FULL_FRAME_STEP = "full-frame"
ZOOM_STEP = "zoom-refine"


# ---------------------------------------------------------------------------
# Collaborators
# ---------------------------------------------------------------------------

class Oracle(Protocol):
    """Vision model answering free-form questions about an image."""

    def ask_about_screenshot(self, image: str, prompt: str) -> MaybeAwaitable[str]: ...


class ScreenCapture(Protocol):
    """Source of annotated screenshots.

    Returned captures must report what was actually captured (after clamping),
    not what was requested.
    """

    def full(
        self,
        *,
        grid_overlay: bool,
        grid_size: int,
        highlight_regions: bool,
        progress_step: Optional[int] = None,
        progress_message: Optional[str] = None,
        progress_task_id: Optional[str] = None,
    ) -> MaybeAwaitable[AnnotatedCapture]: ...

    def zoom(
        self,
        region: Region,
        *,
        grid_size: int,
        zoom_level: float,
        progress_step: Optional[int] = None,
        progress_message: Optional[str] = None,
        progress_task_id: Optional[str] = None,
    ) -> MaybeAwaitable[AnnotatedCapture]: ...


@dataclass
class ProgressStep:
    step: int
    message: str


@dataclass
class LocateProgress:
    """Progress annotations forwarded to the capture collaborator."""

    task_id: Optional[str] = None
    full_step: Optional[ProgressStep] = None
    zoom_step: Optional[ProgressStep] = None


async def _resolve(value: MaybeAwaitable[T]) -> T:
    if inspect.isawaitable(value):
        return await value
    return value


def _as_capture(value: Any) -> AnnotatedCapture:
    if isinstance(value, AnnotatedCapture):
        return value
    if isinstance(value, dict):
        return AnnotatedCapture.from_dict(value)
    raise TypeError(f"Screen capture returned unsupported type {type(value).__name__}")


# ---------------------------------------------------------------------------
# Refiner
# ---------------------------------------------------------------------------

class UniversalCoordinateRefiner:
    """Resolve a target description into a calibrated global coordinate."""

    def __init__(
        self,
        oracle: Oracle,
        capture: ScreenCapture,
        calibrator: Calibrator,
        teacher: Optional[CoordinateTeacher] = None,
        parser: Optional[CoordinateParser] = None,
        telemetry: Any = None,
    ) -> None:
        self.oracle = oracle
        self.capture = capture
        self.calibrator = calibrator
        self.teacher = teacher or CoordinateTeacher()
        self.parser = parser or CoordinateParser()
        self.telemetry = telemetry or NullTelemetry()

    async def locate(
        self,
        target_description: str,
        grid_size_hint: Optional[int] = None,
        progress: Optional[LocateProgress] = None,
    ) -> LocateResult:
        """Resolve *target_description* to a pixel coordinate.

        Raises:
            LocateFailed: neither step yielded a global or local estimate.
        """
        started = time.perf_counter()
        progress = progress or LocateProgress()
        grid_size = grid_size_hint or config.locator_grid_size
        steps: list[LocatorStep] = []

        # -- full-frame ------------------------------------------------------
        full_step, dimensions = await self._full_frame_step(target_description, grid_size, progress)
        steps.append(full_step)
        full_parsed = full_step.response

        best = full_parsed.global_
        needs_zoom = full_parsed.needs_zoom if full_parsed.needs_zoom is not None else best is None

        # -- zoom-refine -----------------------------------------------------
        zoom_step: Optional[LocatorStep] = None
        if needs_zoom or best is None:
            requested = self.resolve_zoom_region(full_parsed, dimensions)
            zoom_step = await self._zoom_step(
                target_description, requested, grid_size, best, progress
            )
            steps.append(zoom_step)

            zoom_parsed = zoom_step.response
            if zoom_parsed.global_ is not None:
                best = zoom_parsed.global_
            elif zoom_parsed.local is not None:
                anchor = self.resolve_zoom_anchor(zoom_step.screenshot, requested)
                best = anchor + zoom_parsed.local

        if best is None:
            log.error(f"Could not resolve coordinates for {target_description!r}")
            await self._emit("locator_complete", {"targetDescription": target_description, "success": False})
            raise LocateFailed(target_description, steps)

        # -- calibrate -------------------------------------------------------
        applied_offset = self.calibrator.get_current_offset()
        coordinates = best + applied_offset if applied_offset is not None else best
        history = self.calibrator.get_history()
        log.log_calibration(applied_offset.as_tuple() if applied_offset else None, len(history))

        context = LocateContext(
            region=zoom_step.screenshot.region if zoom_step else None,
            zoom_level=(zoom_step.screenshot.zoom_level or config.locator_zoom_level) if zoom_step else 1,
        )
        confidence = _first_present(zoom_step, full_step, "confidence")
        reasoning = _first_present(zoom_step, full_step, "reasoning")

        result = LocateResult(
            coordinates=coordinates,
            base_coordinates=best,
            context=context,
            steps=steps,
            applied_offset=applied_offset,
            calibration_history=history,
            confidence=confidence,
            reasoning=reasoning,
        )

        duration_ms = (time.perf_counter() - started) * 1000
        log.log_performance(f"locate({target_description!r})", duration_ms)
        log.log_ai_decision(
            f"{target_description!r} -> {coordinates.as_tuple()}",
            confidence,
            {"steps": len(steps), "base": best.as_tuple()},
        )
        await self._emit(
            "locator_complete",
            {
                "targetDescription": target_description,
                "success": True,
                "coordinates": {"x": coordinates.x, "y": coordinates.y},
                "steps": len(steps),
                "durationMs": round(duration_ms, 1),
            },
        )

        if config.save_locator_debug:
            from ..vision.debug import save_locator_debug

            save_locator_debug(result)

        return result

    # ---------------------------------------------------------------------
    # Steps
    # ---------------------------------------------------------------------

    async def _full_frame_step(
        self,
        target_description: str,
        grid_size: int,
        progress: LocateProgress,
    ) -> tuple[LocatorStep, Optional[Dimensions]]:
        screenshot = _as_capture(
            await _resolve(
                self.capture.full(
                    grid_overlay=True,
                    grid_size=grid_size,
                    highlight_regions=True,
                    progress_step=progress.full_step.step if progress.full_step else None,
                    progress_message=progress.full_step.message if progress.full_step else None,
                    progress_task_id=progress.task_id,
                )
            )
        )
        self.calibrator.capture_offset(screenshot.offset, "screenshot")
        dimensions = get_png_dimensions(screenshot.image)

        prompt = self.teacher.build_full_frame_prompt(
            target_description,
            offset_hint=self.calibrator.get_current_offset(),
            grid_size=grid_size,
        )
        raw = await _resolve(self.oracle.ask_about_screenshot(screenshot.image, prompt))
        parsed = self.parser.parse(raw)

        suspicion = evaluate_coordinate_suspicion(
            parsed,
            dimensions,
            grid_interval=config.suspicion_grid_interval,
            round_interval=config.suspicion_round_interval,
        )
        if suspicion.suspicious:
            parsed.needs_zoom = True
            note = f"Zoom recommended: {' '.join(suspicion.reasons)}"
            parsed.reasoning = f"{parsed.reasoning} {note}" if parsed.reasoning else note
            log.warning(f"Suspicious full-frame estimate for {target_description!r}: {suspicion.reasons}")

        log.log_locator_step(
            FULL_FRAME_STEP,
            {
                "global": parsed.global_.as_tuple() if parsed.global_ else None,
                "confidence": parsed.confidence,
                "needsZoom": parsed.needs_zoom,
                "dimensions": (dimensions.width, dimensions.height) if dimensions else None,
            },
        )
        await self._emit("locator_step", {"phase": FULL_FRAME_STEP, "gridSize": grid_size, "zoomLevel": 1})

        step = LocatorStep(
            id=FULL_FRAME_STEP,
            label="Full frame analysis",
            prompt=prompt,
            response=parsed,
            raw=raw,
            screenshot=screenshot,
        )
        return step, dimensions

    async def _zoom_step(
        self,
        target_description: str,
        requested: Region,
        grid_size: int,
        fallback_global: Optional[Coordinate],
        progress: LocateProgress,
    ) -> LocatorStep:
        zoom_level = config.locator_zoom_level
        zoom_grid = max(config.locator_min_zoom_grid, round_px(grid_size / 2))
        screenshot = _as_capture(
            await _resolve(
                self.capture.zoom(
                    requested,
                    grid_size=zoom_grid,
                    zoom_level=zoom_level,
                    progress_step=progress.zoom_step.step if progress.zoom_step else None,
                    progress_message=progress.zoom_step.message if progress.zoom_step else None,
                    progress_task_id=progress.task_id,
                )
            )
        )
        self.calibrator.capture_offset(screenshot.offset, "zoom-screenshot")

        prompt = self.teacher.build_zoom_prompt(
            target_description,
            region=screenshot.region or requested,
            zoom_level=screenshot.zoom_level or zoom_level,
            offset_hint=self.calibrator.get_current_offset(),
            fallback_global=fallback_global,
            grid_size=zoom_grid,
        )
        raw = await _resolve(self.oracle.ask_about_screenshot(screenshot.image, prompt))
        parsed = self.parser.parse(raw)

        region = screenshot.region or requested
        log.log_locator_step(
            ZOOM_STEP,
            {
                "region": region.as_tuple(),
                "global": parsed.global_.as_tuple() if parsed.global_ else None,
                "local": parsed.local.as_tuple() if parsed.local else None,
                "confidence": parsed.confidence,
            },
        )
        await self._emit(
            "locator_step",
            {
                "phase": ZOOM_STEP,
                "region": {"x": region.x, "y": region.y, "width": region.width, "height": region.height},
                "zoomLevel": screenshot.zoom_level or zoom_level,
                "gridSize": zoom_grid,
            },
        )

        return LocatorStep(
            id=ZOOM_STEP,
            label="Zoom refinement",
            prompt=prompt,
            response=parsed,
            raw=raw,
            screenshot=screenshot,
        )

    # ---------------------------------------------------------------------
    # Geometry
    # ---------------------------------------------------------------------

    @staticmethod
    def resolve_zoom_region(
        parsed: ParsedLocatorResponse,
        dimensions: Optional[Dimensions],
    ) -> Region:
        """Pick the rectangle to zoom into, clamped to the image bounds."""
        if dimensions is not None:
            fallback_width = max(config.locator_zoom_min_width, round_px(dimensions.width / 3))
            fallback_height = max(config.locator_zoom_min_height, round_px(dimensions.height / 3))
        else:
            fallback_width = config.locator_default_zoom_width
            fallback_height = config.locator_default_zoom_height

        directive = parsed.zoom
        suggested = directive.region if directive else None

        if directive and directive.center is not None:
            center = directive.center
        elif parsed.global_ is not None:
            center = parsed.global_
        elif suggested is not None:
            center = suggested.center
        elif dimensions is not None:
            center = Coordinate.of(dimensions.width / 2, dimensions.height / 2)
        else:
            center = Coordinate(960, 540)

        width = suggested.width if suggested and suggested.width > 0 else fallback_width
        height = suggested.height if suggested and suggested.height > 0 else fallback_height
        if dimensions is not None:
            width = min(width, dimensions.width)
            height = min(height, dimensions.height)

        x = max(0, round_px(center.x - width / 2))
        y = max(0, round_px(center.y - height / 2))
        if dimensions is not None:
            x = min(x, max(0, dimensions.width - width))
            y = min(y, max(0, dimensions.height - height))

        return Region.of(x, y, width, height)

    @staticmethod
    def resolve_zoom_anchor(screenshot: AnnotatedCapture, requested: Region) -> Coordinate:
        """Global origin of a zoom capture: reported offset, then region, then request."""
        if screenshot.offset is not None:
            return screenshot.offset
        if screenshot.region is not None:
            return screenshot.region.origin
        return requested.origin

    async def _emit(self, event_type: str, data: Dict[str, Any]) -> None:
        try:
            await _resolve(self.telemetry.emit(event_type, data))
        except Exception as exc:  # noqa: BLE001
            log.debug(f"Telemetry sink failed for {event_type}: {exc}")


def _first_present(zoom_step: Optional[LocatorStep], full_step: LocatorStep, attr: str) -> Any:
    if zoom_step is not None:
        value = getattr(zoom_step.response, attr)
        if value is not None:
            return value
    return getattr(full_step.response, attr)
