"""Prompt construction for coordinate queries against a vision Oracle.

Two prompt variants exist: a full-frame prompt for the first look at the whole
screen, and a zoom prompt for the refinement pass over a cropped region. Both
describe the grid overlay so the model reads positions off the same global
frame the engine uses, and both demand a fixed minified JSON reply.
"""

from __future__ import annotations

from typing import Optional

from loguru import logger

from ..core.config import config
from ..vision.models import Coordinate, Region

FULL_FRAME_SCHEMA = (
    '{"global":{"x":number,"y":number},"confidence":0-1,"needsZoom":boolean,'
    '"zoom":{"center":{"x":number,"y":number},"radius":number},"reasoning":"short"}'
)
ZOOM_SCHEMA = (
    '{"global":{"x":number,"y":number},"local":{"x":number,"y":number},'
    '"confidence":0-1,"reasoning":"short"}'
)


class CoordinateTeacher:
    """Build the full-frame and zoom prompts sent to the Oracle."""

    def __init__(
        self,
        grid_size: Optional[int] = None,
        confidence_threshold: Optional[float] = None,
    ) -> None:
        self.grid_size = grid_size or config.locator_grid_size
        self.confidence_threshold = (
            confidence_threshold
            if confidence_threshold is not None
            else config.locator_confidence_threshold
        )

    def get_overlay_legend(self, grid_size: Optional[int] = None) -> str:
        """Describe the annotations rendered onto every capture."""
        interval = grid_size or self.grid_size
        return "\n".join(
            [
                "Overlay legend:",
                "  - Corner callouts show (0,0), (width,0), (0,height), (width,height) at the four extremes.",
                f"  - Rulers mark every {interval}px along the top edge (left to right) and the left edge (top to bottom).",
                f"  - Grid lines span the frame every {interval}px to form a square lattice.",
                "  - X grows to the right, Y grows downward. Labels are GLOBAL screen coordinates.",
            ]
        )

    @staticmethod
    def _offset_hint_line(offset_hint: Optional[Coordinate]) -> Optional[str]:
        if offset_hint is None:
            return None
        return (
            f"Calibration hint: recent pointer drift observed ({offset_hint.x}, {offset_hint.y}). "
            "The system compensates for it; treat it as a hint only and report "
            "coordinates exactly as read from the overlay labels."
        )

    def build_full_frame_prompt(
        self,
        target_description: str,
        offset_hint: Optional[Coordinate] = None,
        grid_size: Optional[int] = None,
    ) -> str:
        """Return the prompt for the first, whole-screen query."""
        parts = [
            "You are locating a UI element on an annotated screenshot. Study the overlay before answering.",
            self.get_overlay_legend(grid_size),
            "Task: locate the target element precisely using the global grid annotations.",
            f'Target description: "{target_description}".',
        ]
        hint = self._offset_hint_line(offset_hint)
        if hint:
            parts.append(hint)
        parts.append("Respond ONLY with minified JSON matching this schema:")
        parts.append(FULL_FRAME_SCHEMA)
        parts.append(
            f"If your confidence is >= {self.confidence_threshold:.2f} set needsZoom=false. "
            "Otherwise set needsZoom=true and suggest a zoom center (global) and radius in pixels."
        )

        prompt = "\n".join(parts)
        logger.debug("Full-frame prompt generated, {0} characters", len(prompt))
        return prompt

    def build_zoom_prompt(
        self,
        target_description: str,
        region: Region,
        zoom_level: float,
        offset_hint: Optional[Coordinate] = None,
        fallback_global: Optional[Coordinate] = None,
        grid_size: Optional[int] = None,
    ) -> str:
        """Return the prompt for the refinement query over a zoomed region."""
        parts = [
            "Precision refinement step.",
            self.get_overlay_legend(grid_size),
            (
                f"Zoom metadata: region (x={region.x}, y={region.y}, width={region.width}, "
                f"height={region.height}), zoomLevel={zoom_level:g}. Grid labels remain GLOBAL coordinates."
            ),
        ]
        if fallback_global is not None:
            parts.append(
                f"Previous estimate: ({fallback_global.x}, {fallback_global.y}). "
                "Use it as a hint but refine using the zoomed overlay."
            )
        hint = self._offset_hint_line(offset_hint)
        if hint:
            parts.append(hint)
        parts.append(f'Target description: "{target_description}".')
        parts.append("Reply ONLY with minified JSON:")
        parts.append(ZOOM_SCHEMA)
        parts.append(
            'The "local" value is the offset from the region\'s top-left corner, in unzoomed pixels. '
            "The global pair must match the overlay labels. Confidence must be between 0 and 1."
        )

        prompt = "\n".join(parts)
        logger.debug("Zoom prompt generated, {0} characters", len(prompt))
        return prompt
