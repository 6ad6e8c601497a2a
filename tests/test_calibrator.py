import math
import threading

import pytest

from visual_locator.core.calibrator import Calibrator
from visual_locator.vision.models import Coordinate


def test_no_offset_with_fewer_than_five_samples(calibrator):
    for _ in range(4):
        calibrator.capture_offset(Coordinate(10, -5), "test", success=True)

    assert calibrator.get_current_offset() is None


def test_apply_is_identity_without_offset(calibrator):
    point = Coordinate(321, 123)

    assert calibrator.apply(point) == point


def test_recent_successes_outweigh_older_failures(calibrator):
    samples = [
        (Coordinate(60, 0), False),
        (Coordinate(60, 0), False),
        (Coordinate(60, 0), False),
        (Coordinate(60, 0), False),
        (Coordinate(0, 0), True),
        (Coordinate(0, 0), True),
    ]
    for offset, success in samples:
        calibrator.capture_offset(offset, "test", success=success)

    weighted = total = 0.0
    for index, (offset, success) in enumerate(samples):
        age = len(samples) - index
        weight = 1 / math.sqrt(age) * (1.5 if success else 1.0)
        weighted += offset.x * weight
        total += weight

    offset = calibrator.get_current_offset()

    assert offset is not None
    assert offset.x < 40
    assert offset == Coordinate(math.floor(weighted / total + 0.5), 0)


def test_apply_adds_current_offset(seeded_calibrator):
    offset = seeded_calibrator.get_current_offset()

    assert offset == Coordinate(4, -3)
    assert seeded_calibrator.apply(Coordinate(100, 100)) == Coordinate(104, 97)


def test_record_correction_returns_delta_and_marks_success(calibrator):
    delta = calibrator.record_correction(Coordinate(510, 290), Coordinate(500, 300), "post-click")

    assert delta == Coordinate(10, -10)
    [sample] = calibrator.get_history()
    assert sample.success is True
    assert sample.source == "post-click"
    assert sample.predicted == Coordinate(500, 300)
    assert sample.actual == Coordinate(510, 290)
    assert sample.error == pytest.approx(math.hypot(10, -10))


def test_offsets_are_integer_normalised(calibrator):
    calibrator.capture_offset(Coordinate(10.6, -4.4), "test")

    [sample] = calibrator.get_history()
    assert sample.offset == Coordinate(11, -4)


def test_none_offset_is_ignored(calibrator):
    calibrator.capture_offset(None, "screenshot")

    assert calibrator.get_history() == []


def test_history_is_capped_dropping_oldest_first(calibrator):
    for i in range(60):
        calibrator.capture_offset(Coordinate(i, 0), "test")

    history = calibrator.get_history()
    assert len(history) == 50
    assert history[0].offset.x == 10
    assert history[-1].offset.x == 59


def test_history_is_a_snapshot(calibrator):
    calibrator.capture_offset(Coordinate(1, 1), "test")

    snapshot = calibrator.get_history()
    snapshot.clear()

    assert len(calibrator.get_history()) == 1


def test_reset_clears_history(seeded_calibrator):
    seeded_calibrator.reset()

    assert seeded_calibrator.get_history() == []
    assert seeded_calibrator.get_current_offset() is None


def test_uniform_weighting_is_plain_mean():
    calibrator = Calibrator(min_samples=10, weighting="uniform")
    for i in range(10):
        calibrator.capture_offset(Coordinate(10 if i % 2 else 0, 4), "test", success=bool(i % 2))

    assert calibrator.get_current_offset() == Coordinate(5, 4)


def test_uniform_weighting_respects_its_own_minimum():
    calibrator = Calibrator(min_samples=10, weighting="uniform")
    for _ in range(9):
        calibrator.capture_offset(Coordinate(3, 3), "test")

    assert calibrator.get_current_offset() is None


def test_unknown_weighting_is_rejected():
    with pytest.raises(ValueError):
        Calibrator(weighting="median")


def test_concurrent_appends_are_not_lost():
    calibrator = Calibrator(max_history=1000)

    def worker() -> None:
        for _ in range(50):
            calibrator.capture_offset(Coordinate(1, 1), "thread")

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(calibrator.get_history()) == 400


def test_stats(seeded_calibrator):
    seeded_calibrator.capture_offset(Coordinate(0, 0), "screenshot")

    stats = seeded_calibrator.get_stats()

    assert stats["samples"] == 6
    assert stats["successful"] == 5
    assert stats["mean_error"] == pytest.approx(5 * 5.0 / 6)
    assert stats["weighting"] == "recency"
