import asyncio
import json

import pytest
from conftest import ScriptedCapture, ScriptedOracle, reply

from visual_locator.core.refiner import UniversalCoordinateRefiner
from visual_locator.utils.trace import ReplayCapture, ReplayOracle, load_trace, result_to_dict, save_trace
from visual_locator.vision.models import AnnotatedCapture, Coordinate, Region


@pytest.fixture
def zoomed_result(png_1000x800, calibrator):
    oracle = ScriptedOracle(
        reply(**{"global": {"x": 200, "y": 300}, "confidence": 0.5}),
        reply(**{"global": {"x": 210, "y": 305}, "confidence": 0.9, "reasoning": "label under icon"}),
    )
    capture = ScriptedCapture(AnnotatedCapture(image=png_1000x800))
    refiner = UniversalCoordinateRefiner(oracle, capture, calibrator)
    return asyncio.run(refiner.locate("Save button"))


def test_result_to_dict_is_json_ready(zoomed_result):
    data = result_to_dict(zoomed_result, "Save button")

    assert data["targetDescription"] == "Save button"
    assert data["coordinates"] == {"x": 210, "y": 305}
    assert data["appliedOffset"] is None
    assert [step["id"] for step in data["steps"]] == ["full-frame", "zoom-refine"]
    assert data["steps"][0]["response"]["global"] == {"x": 200, "y": 300}
    assert data["steps"][0]["response"]["needsZoom"] is True
    assert data["context"]["zoomLevel"] == 2.0
    json.dumps(data)


def test_save_and_load_trace(tmp_path, zoomed_result):
    path = save_trace(zoomed_result, str(tmp_path / "traces" / "run.json"), "Save button")

    assert path is not None
    trace = load_trace(path)
    assert trace["baseCoordinates"] == {"x": 210, "y": 305}
    assert trace["reasoning"] == "label under icon"


def test_load_trace_rejects_other_json(tmp_path):
    path = tmp_path / "other.json"
    path.write_text(json.dumps({"hello": "world"}), encoding="utf-8")

    with pytest.raises(ValueError):
        load_trace(str(path))
    with pytest.raises(ValueError):
        load_trace(str(tmp_path / "missing.json"))


def test_replay_reproduces_the_recorded_run(tmp_path, zoomed_result, calibrator):
    trace = load_trace(save_trace(zoomed_result, str(tmp_path / "run.json")))
    oracle = ReplayOracle(trace)
    capture = ReplayCapture(trace)

    replayed = asyncio.run(UniversalCoordinateRefiner(oracle, capture, calibrator).locate("Save button"))

    assert replayed.coordinates == Coordinate(210, 305)
    assert len(oracle.prompts) == 2
    assert len(capture.zoom_requests) == 1


def test_replay_oracle_runs_out_of_replies():
    oracle = ReplayOracle({"steps": [{"raw": "{}"}]})

    assert oracle.ask_about_screenshot("img", "prompt") == "{}"
    with pytest.raises(LookupError):
        oracle.ask_about_screenshot("img", "prompt")


def test_replay_capture_without_zoom_step():
    capture = ReplayCapture({"steps": [{"id": "full-frame", "screenshot": {"image": "abc"}}]})

    assert capture.full().image == "abc"
    with pytest.raises(LookupError):
        capture.zoom(Region(0, 0, 10, 10))
