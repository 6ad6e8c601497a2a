from loguru import logger

from visual_locator.core.logger import log


def _capture():
    messages = []
    handler_id = logger.add(messages.append, format="{function}|{level}|{message}", level="DEBUG")
    return messages, handler_id


def test_messages_are_tagged_and_report_the_caller():
    messages, handler_id = _capture()
    try:
        log.warning("drift looks large")
    finally:
        logger.remove(handler_id)

    assert messages == ["test_messages_are_tagged_and_report_the_caller|WARNING|[VisualLocator] drift looks large\n"]


def test_calibration_helper_formats_offset():
    messages, handler_id = _capture()
    try:
        log.log_calibration(None, 3)
        log.log_calibration((4, -3), 5)
    finally:
        logger.remove(handler_id)

    assert "no correction yet (3 samples)" in messages[0]
    assert "offset (4, -3) from 5 samples" in messages[1]
