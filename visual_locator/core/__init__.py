"""Core components: configuration, logging, calibration and the refiner."""

from .config import Config, config
from .logger import Logger, log
from .errors import LocateFailed, LocatorError, OracleError
from .calibrator import Calibrator
from .telemetry import NullTelemetry, TelemetrySink, get_telemetry
from .refiner import LocateProgress, ProgressStep, UniversalCoordinateRefiner

__all__ = [
    "Calibrator",
    "Config",
    "LocateFailed",
    "LocateProgress",
    "LocatorError",
    "Logger",
    "NullTelemetry",
    "OracleError",
    "ProgressStep",
    "TelemetrySink",
    "UniversalCoordinateRefiner",
    "config",
    "get_telemetry",
    "log",
]
