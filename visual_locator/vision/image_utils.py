"""Helpers for base64-encoded capture images."""

from __future__ import annotations

import base64
import binascii
import struct
from typing import Optional

from .models import Dimensions

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


def decode_base64_image(image: str) -> Optional[bytes]:
    """Decode a base64 image, tolerating a ``data:...;base64,`` prefix."""
    if not image:
        return None
    if image.startswith("data:") and "," in image:
        image = image.split(",", 1)[1]
    try:
        return base64.b64decode(image, validate=False)
    except (binascii.Error, ValueError):
        return None


def get_png_dimensions(image: str) -> Optional[Dimensions]:
    """Read width/height straight from the PNG IHDR chunk.

    Returns:
        ``Dimensions`` or ``None`` when *image* is not a decodable PNG.
    """
    data = decode_base64_image(image)
    if data is None or len(data) < 24 or not data.startswith(PNG_SIGNATURE):
        return None
    if data[12:16] != b"IHDR":
        return None
    width, height = struct.unpack(">II", data[16:24])
    if width <= 0 or height <= 0:
        return None
    return Dimensions(width=width, height=height)
