"""Visual coordinate resolution and drift calibration for screen agents."""

from .core import (
    Calibrator,
    LocateFailed,
    LocateProgress,
    LocatorError,
    OracleError,
    ProgressStep,
    UniversalCoordinateRefiner,
    config,
)
from .ai import CoordinateParser, CoordinateTeacher, evaluate_coordinate_suspicion
from .vision import AnnotatedCapture, Coordinate, LocateResult, Region

__all__ = [
    "AnnotatedCapture",
    "Calibrator",
    "Coordinate",
    "CoordinateParser",
    "CoordinateTeacher",
    "LocateFailed",
    "LocateProgress",
    "LocateResult",
    "LocatorError",
    "OracleError",
    "ProgressStep",
    "Region",
    "UniversalCoordinateRefiner",
    "config",
    "evaluate_coordinate_suspicion",
]
