import asyncio

import pytest
from conftest import ScriptedCapture, ScriptedOracle, reply

cv2 = pytest.importorskip("cv2")

from visual_locator.core.refiner import UniversalCoordinateRefiner  # noqa: E402
from visual_locator.vision.debug import save_locator_debug  # noqa: E402
from visual_locator.vision.models import AnnotatedCapture  # noqa: E402


def _locate(image, calibrator):
    oracle = ScriptedOracle(
        reply(**{"global": {"x": 200, "y": 300}}),
        reply(**{"global": {"x": 210, "y": 305}, "confidence": 0.9}),
    )
    capture = ScriptedCapture(AnnotatedCapture(image=image))
    return asyncio.run(UniversalCoordinateRefiner(oracle, capture, calibrator).locate("Save"))


def test_overlay_is_written(tmp_path, png_1000x800, calibrator):
    result = _locate(png_1000x800, calibrator)

    path = save_locator_debug(result, str(tmp_path / "overlay.png"))

    assert path == str(tmp_path / "overlay.png")
    img = cv2.imread(path)
    assert img.shape[:2] == (800, 1000)
    # The final marker is drawn in red over a white capture.
    assert tuple(img[305, 210 + 10]) != (255, 255, 255)


def test_undecodable_capture_is_skipped(tmp_path, calibrator):
    result = _locate("placeholder", calibrator)

    assert save_locator_debug(result, str(tmp_path / "overlay.png")) is None
