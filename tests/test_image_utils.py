import base64

from conftest import make_png

from visual_locator.vision.image_utils import decode_base64_image, get_png_dimensions
from visual_locator.vision.models import Dimensions


def test_reads_png_dimensions():
    assert get_png_dimensions(make_png(1000, 800)) == Dimensions(1000, 800)


def test_accepts_data_url_prefix():
    image = "data:image/png;base64," + make_png(32, 16)

    assert get_png_dimensions(image) == Dimensions(32, 16)


def test_non_png_payload_has_no_dimensions():
    jpeg_like = base64.b64encode(b"\xff\xd8\xff\xe0" + b"\x00" * 40).decode("ascii")

    assert get_png_dimensions(jpeg_like) is None


def test_truncated_or_invalid_payloads():
    assert get_png_dimensions("") is None
    assert get_png_dimensions("placeholder") is None
    assert get_png_dimensions(base64.b64encode(b"\x89PNG\r\n\x1a\n").decode("ascii")) is None


def test_decode_returns_raw_bytes():
    encoded = base64.b64encode(b"hello").decode("ascii")

    assert decode_base64_image(encoded) == b"hello"
    assert decode_base64_image("data:text/plain;base64," + encoded) == b"hello"
