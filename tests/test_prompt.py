import json

from visual_locator.ai.prompt import FULL_FRAME_SCHEMA, ZOOM_SCHEMA, CoordinateTeacher
from visual_locator.vision.models import Coordinate, Region

teacher = CoordinateTeacher(grid_size=100, confidence_threshold=0.85)


def _schema_keys(schema: str) -> set[str]:
    # Replace the placeholder types so the schema line parses as JSON.
    sample = (
        schema.replace("number", "0")
        .replace("0-1", "0.5")
        .replace("boolean", "false")
    )
    return set(json.loads(sample))


def test_full_frame_prompt_contract():
    prompt = teacher.build_full_frame_prompt("the Submit button")

    assert '"the Submit button"' in prompt
    assert "Corner callouts" in prompt
    assert "every 100px" in prompt
    assert FULL_FRAME_SCHEMA in prompt
    assert ">= 0.85 set needsZoom=false" in prompt
    assert "Calibration hint" not in prompt


def test_full_frame_schema_shape():
    assert _schema_keys(FULL_FRAME_SCHEMA) == {"global", "confidence", "needsZoom", "zoom", "reasoning"}
    assert _schema_keys(ZOOM_SCHEMA) == {"global", "local", "confidence", "reasoning"}


def test_offset_hint_is_described_as_a_hint():
    prompt = teacher.build_full_frame_prompt("Save", offset_hint=Coordinate(4, -3))

    assert "(4, -3)" in prompt
    assert "hint" in prompt


def test_grid_size_override_changes_legend():
    prompt = teacher.build_full_frame_prompt("Save", grid_size=50)

    assert "every 50px" in prompt
    assert "every 100px" not in prompt


def test_zoom_prompt_contract():
    prompt = teacher.build_zoom_prompt(
        "Save button",
        region=Region(120, 240, 320, 180),
        zoom_level=2.0,
        offset_hint=Coordinate(1, 2),
        fallback_global=Coordinate(200, 300),
        grid_size=50,
    )

    assert "x=120, y=240, width=320, height=180" in prompt
    assert "zoomLevel=2" in prompt
    assert "Previous estimate: (200, 300)" in prompt
    assert "(1, 2)" in prompt
    assert '"Save button"' in prompt
    assert ZOOM_SCHEMA in prompt
    assert "every 50px" in prompt


def test_zoom_prompt_without_hints():
    prompt = teacher.build_zoom_prompt("Save", region=Region(0, 0, 10, 10), zoom_level=2)

    assert "Previous estimate" not in prompt
    assert "Calibration hint" not in prompt
