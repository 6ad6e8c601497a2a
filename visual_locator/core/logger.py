"""Structured logging for the visual locator."""

from __future__ import annotations

import os
import sys
from typing import Any

from loguru import logger

from .config import config

_CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level:<8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)
_FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level:<8} | {name}:{function}:{line} | {message}"

# (file name pattern, minimum level, retention)
_FILE_SINKS = (
    ("locator_{time:YYYY-MM-DD}.log", "DEBUG", "30 days"),
    ("locator_errors_{time:YYYY-MM-DD}.log", "ERROR", "90 days"),
)


class Logger:
    """Thin *Loguru* wrapper that tags messages and adds locator helpers."""

    def __init__(self, name: str = "VisualLocator") -> None:
        self.name = name
        self._configure_sinks()

    @staticmethod
    def _configure_sinks() -> None:
        logger.remove()
        logger.add(sys.stdout, format=_CONSOLE_FORMAT, level=config.log_level, colorize=True)

        os.makedirs(config.log_dir, exist_ok=True)
        for pattern, level, retention in _FILE_SINKS:
            logger.add(
                os.path.join(config.log_dir, pattern),
                format=_FILE_FORMAT,
                level=level,
                rotation="1 day",
                retention=retention,
                compression="zip",
            )

    def _log(self, level: str, message: str) -> None:
        # depth=2 reports the caller of info()/debug()/... rather than this module.
        logger.opt(depth=2).log(level, f"[{self.name}] {message}")

    def info(self, message: str) -> None:
        self._log("INFO", message)

    def debug(self, message: str) -> None:
        self._log("DEBUG", message)

    def warning(self, message: str) -> None:
        self._log("WARNING", message)

    def error(self, message: str) -> None:
        self._log("ERROR", message)

    # ------------------------------------------------------------------
    # Locator helpers
    # ------------------------------------------------------------------

    def log_locator_step(self, step: str, details: dict[str, Any] | None = None) -> None:
        """Log one capture, prompt and parse round-trip."""
        message = f"LOCATOR STEP: {step}"
        if details:
            message += f" | {details}"
        self.info(message)

    def log_ai_decision(
        self,
        decision: str,
        confidence: float | None,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Log a resolved answer with its confidence."""
        conf = "n/a" if confidence is None else f"{confidence:.2f}"
        message = f"AI DECISION: {decision} (confidence: {conf})"
        if context:
            message += f" | {context}"
        self.info(message)

    def log_calibration(self, offset: tuple[int, int] | None, samples: int) -> None:
        """Log the drift correction currently in effect."""
        if offset is None:
            self.debug(f"CALIBRATION: no correction yet ({samples} samples)")
        else:
            self.debug(f"CALIBRATION: offset {offset} from {samples} samples")

    def log_performance(self, operation: str, duration_ms: float) -> None:
        self.debug(f"PERFORMANCE: {operation} took {duration_ms:.2f}ms")


# Global logger instance
log = Logger()
