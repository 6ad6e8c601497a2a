"""Utility functions: JSON files and locate() trace export/replay."""

from .file_utils import ensure_directory, get_timestamp, load_json, save_json
from .trace import ReplayCapture, ReplayOracle, load_trace, result_to_dict, save_trace

__all__ = [
    "ReplayCapture",
    "ReplayOracle",
    "ensure_directory",
    "get_timestamp",
    "load_json",
    "load_trace",
    "result_to_dict",
    "save_json",
    "save_trace",
]
