"""Optional, fire-and-forget telemetry for locator steps."""

from __future__ import annotations

import asyncio
from typing import Any, Dict, Optional

import requests

from .config import config
from .logger import log


class NullTelemetry:
    """Telemetry sink that drops every event."""

    async def emit(self, event_type: str, data: Optional[Dict[str, Any]] = None) -> None:
        return None


class TelemetrySink:
    """POST ``{"type": ..., **data}`` events to ``{base_url}/telemetry/event``.

    Delivery problems are logged at debug level and never raised.
    """

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None) -> None:
        self.base_url = (base_url or config.telemetry_base_url or "").rstrip("/")
        self.timeout = timeout if timeout is not None else config.telemetry_timeout

    @property
    def enabled(self) -> bool:
        return bool(self.base_url)

    def _post(self, payload: Dict[str, Any]) -> None:
        response = requests.post(
            f"{self.base_url}/telemetry/event",
            json=payload,
            timeout=self.timeout,
        )
        response.raise_for_status()

    async def emit(self, event_type: str, data: Optional[Dict[str, Any]] = None) -> None:
        if not self.enabled:
            return
        payload = {"type": event_type, **(data or {})}
        try:
            await asyncio.to_thread(self._post, payload)
        except Exception as exc:  # noqa: BLE001
            log.debug(f"Telemetry event {event_type} not delivered: {exc}")


def get_telemetry() -> TelemetrySink | NullTelemetry:
    """Return a live sink when a base URL is configured, else a no-op."""
    sink = TelemetrySink()
    return sink if sink.enabled else NullTelemetry()
