"""Vision debugging helpers: draw locator estimates onto the full-frame capture."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import cv2  # type: ignore
import numpy as np

from ..core.config import config
from ..core.logger import log
from ..utils.file_utils import ensure_directory, get_timestamp_ms
from .image_utils import decode_base64_image
from .models import Coordinate, LocateResult

# BGR
_STEP_COLORS = {
    "full-frame": (0, 165, 255),  # orange
    "zoom-refine": (255, 255, 0),  # cyan
}
_FINAL_COLOR = (0, 0, 255)  # red


def _draw_marker(img: np.ndarray, point: Coordinate, color: tuple[int, int, int], label: str) -> None:
    x, y = point.as_tuple()
    cv2.drawMarker(img, (x, y), color, markerType=cv2.MARKER_CROSS, markerSize=24, thickness=2)
    cv2.circle(img, (x, y), 10, color, thickness=2)

    font = cv2.FONT_HERSHEY_SIMPLEX
    font_scale = 0.5
    (text_w, text_h), _ = cv2.getTextSize(label, font, font_scale, 1)

    # Background rectangle (white) behind text for legibility
    text_tl = (x + 12, max(0, y - text_h - 14))
    text_br = (x + 16 + text_w, max(0, y - 10))
    cv2.rectangle(img, text_tl, text_br, (255, 255, 255), thickness=cv2.FILLED)
    cv2.putText(
        img,
        label,
        (x + 14, max(10, y - 12)),
        font,
        font_scale,
        color,
        thickness=1,
        lineType=cv2.LINE_AA,
    )


def save_locator_debug(result: LocateResult, path: Optional[str] = None) -> Optional[str]:
    """Render step estimates and the calibrated point, then save a PNG.

    Returns:
        The written path, or ``None`` when nothing could be rendered.
    """
    if not result.steps:
        return None

    data = decode_base64_image(result.steps[0].screenshot.image)
    if data is None:
        return None
    img = cv2.imdecode(np.frombuffer(data, dtype=np.uint8), cv2.IMREAD_COLOR)
    if img is None:
        log.debug("Locator debug overlay skipped: capture is not a decodable image")
        return None

    for step in result.steps:
        estimate = step.response.global_
        if estimate is not None:
            _draw_marker(img, estimate, _STEP_COLORS.get(step.id, (0, 255, 0)), step.id)

    final_label = f"final {result.coordinates.as_tuple()}"
    if result.applied_offset is not None:
        final_label += f" drift {result.applied_offset.as_tuple()}"
    _draw_marker(img, result.coordinates, _FINAL_COLOR, final_label)

    if path is None:
        debug_dir = Path(ensure_directory(config.locator_debug_dir))
        path = str(debug_dir / f"locate_{get_timestamp_ms()}.png")
    cv2.imwrite(path, img)
    log.debug(f"Locator debug overlay saved to {path}")
    return path
