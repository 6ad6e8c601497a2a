"""Drift calibration: learn a pointer-correction vector from click outcomes."""

from __future__ import annotations

import math
import threading
import time
from typing import Any, Dict, List, Optional

from ..vision.models import CalibrationSample, Coordinate
from .config import config
from .logger import log

WEIGHTINGS = ("recency", "uniform")


class Calibrator:
    """Bounded history of observed offsets and the smoothed correction they imply.

    Each agent/session owns its own instance. Instances may be shared by
    concurrent ``locate()`` calls: appends are serialised by a lock, and a
    reader may simply miss a sample that is still in flight.

    Two averaging policies are supported:

    * ``"recency"`` (default): weighted mean of the last ``max_history``
      samples, ``weight = 1/sqrt(age)`` with ``age`` 1 for the newest sample,
      multiplied by ``success_weight`` for successful outcomes. Needs at least
      ``min_samples`` samples.
    * ``"uniform"``: plain mean over the same window.
    """

    def __init__(
        self,
        max_history: Optional[int] = None,
        min_samples: Optional[int] = None,
        success_weight: Optional[float] = None,
        weighting: Optional[str] = None,
    ) -> None:
        self.max_history = max_history if max_history is not None else config.calibration_window
        self.min_samples = min_samples if min_samples is not None else config.calibration_min_samples
        self.success_weight = (
            success_weight if success_weight is not None else config.calibration_success_weight
        )
        self.weighting = weighting or config.calibration_weighting
        if self.max_history <= 0:
            raise ValueError("max_history must be positive")
        if self.weighting not in WEIGHTINGS:
            raise ValueError(f"Unknown weighting {self.weighting!r}; expected one of {WEIGHTINGS}")

        self._samples: List[CalibrationSample] = []
        self._lock = threading.Lock()

    # ---------------------------------------------------------------------
    # Recording
    # ---------------------------------------------------------------------

    def capture_offset(
        self,
        offset: Optional[Coordinate],
        source: str = "screenshot",
        success: bool = False,
        *,
        predicted: Optional[Coordinate] = None,
        actual: Optional[Coordinate] = None,
        target_description: Optional[str] = None,
        error: Optional[float] = None,
    ) -> None:
        """Append an observed offset. ``None`` offsets are ignored."""
        if offset is None:
            return

        normalized = Coordinate.of(offset.x, offset.y)
        sample = CalibrationSample(
            offset=normalized,
            timestamp=time.time(),
            source=source,
            success=bool(success),
            predicted=predicted,
            actual=actual,
            target_description=target_description,
            error=error if error is not None else math.hypot(normalized.x, normalized.y),
        )

        with self._lock:
            self._samples.append(sample)
            if len(self._samples) > self.max_history:
                del self._samples[: len(self._samples) - self.max_history]

    def record_correction(
        self,
        actual: Coordinate,
        predicted: Coordinate,
        source: str = "correction",
        *,
        target_description: Optional[str] = None,
    ) -> Coordinate:
        """Record where a click really landed versus where it was aimed.

        Returns:
            The ``actual - predicted`` delta that was stored.
        """
        delta = actual - predicted
        self.capture_offset(
            delta,
            source,
            success=True,
            predicted=predicted,
            actual=actual,
            target_description=target_description,
        )
        log.debug(f"Recorded correction {delta.as_tuple()} from {source}")
        return delta

    # ---------------------------------------------------------------------
    # Querying
    # ---------------------------------------------------------------------

    def get_current_offset(self) -> Optional[Coordinate]:
        """Return the smoothed drift, or ``None`` while data is insufficient."""
        recent = self.get_history()[-self.max_history:]
        if len(recent) < self.min_samples:
            return None

        if self.weighting == "uniform":
            count = len(recent)
            return Coordinate.of(
                sum(s.offset.x for s in recent) / count,
                sum(s.offset.y for s in recent) / count,
            )

        weighted_x = weighted_y = total_weight = 0.0
        for index, sample in enumerate(recent):
            age = len(recent) - index
            weight = 1 / math.sqrt(age)
            if sample.success:
                weight *= self.success_weight
            weighted_x += sample.offset.x * weight
            weighted_y += sample.offset.y * weight
            total_weight += weight

        return Coordinate.of(weighted_x / total_weight, weighted_y / total_weight)

    def apply(self, coordinates: Coordinate) -> Coordinate:
        """Shift *coordinates* by the current offset, if one is available."""
        offset = self.get_current_offset()
        if offset is None:
            return coordinates
        return coordinates + offset

    def get_history(self) -> List[CalibrationSample]:
        """Return a snapshot of the recorded samples, oldest first."""
        with self._lock:
            return list(self._samples)

    def get_stats(self) -> Dict[str, Any]:
        """Summarise the sample history."""
        history = self.get_history()
        errors = [s.error for s in history if s.error is not None]
        offset = self.get_current_offset()
        return {
            "samples": len(history),
            "successful": sum(1 for s in history if s.success),
            "mean_error": sum(errors) / len(errors) if errors else 0.0,
            "current_offset": offset.as_tuple() if offset else None,
            "weighting": self.weighting,
        }

    def reset(self) -> None:
        """Forget every recorded sample."""
        with self._lock:
            self._samples.clear()
