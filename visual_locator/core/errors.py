"""Exceptions raised by the visual locator."""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from ..vision.models import LocatorStep


class LocatorError(Exception):
    """Base class for locator errors."""


class LocateFailed(LocatorError):
    """Neither the full-frame nor the zoom step produced a usable coordinate.

    Callers should fall back to another resolution strategy or ask a human;
    retrying the same ``locate()`` call in place is not expected to help.
    """

    def __init__(self, target_description: str, steps: Sequence["LocatorStep"] = ()) -> None:
        self.target_description = target_description
        self.steps = list(steps)
        super().__init__(
            f"Could not resolve global coordinates for {target_description!r} "
            f"after {len(self.steps)} step(s)"
        )


class OracleError(LocatorError):
    """The vision Oracle did not return any content."""
