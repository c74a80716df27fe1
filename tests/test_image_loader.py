"""Tests for image decoding."""

import io

import numpy as np
import pytest
from PIL import Image

from domain.errors import DecodeError
from infrastructure.image_loader import ImageLoader


def test_decodes_png_to_bgr(noise_pixels: np.ndarray, noise_png: bytes) -> None:
    buffer = ImageLoader().load_from_bytes(noise_png)

    assert (buffer.width, buffer.height, buffer.channels) == (100, 100, 3)
    assert np.array_equal(buffer.pixels, noise_pixels)


def test_converts_grayscale_to_three_channels() -> None:
    data = io.BytesIO()
    Image.new("L", (8, 6)).save(data, format="PNG")

    buffer = ImageLoader().load_from_bytes(data.getvalue())

    assert buffer.pixels.shape == (6, 8, 3)
    assert not buffer.has_alpha


def test_keeps_alpha_channel_as_bgra() -> None:
    data = io.BytesIO()
    Image.new("RGBA", (8, 6), (255, 0, 0, 64)).save(data, format="PNG")

    buffer = ImageLoader().load_from_bytes(data.getvalue())

    assert buffer.pixels.shape == (6, 8, 4)
    assert buffer.has_alpha
    assert tuple(buffer.pixels[0, 0]) == (0, 0, 255, 64)


def test_empty_buffer_is_rejected() -> None:
    with pytest.raises(DecodeError):
        ImageLoader().load_from_bytes(b"")


def test_garbage_bytes_are_rejected() -> None:
    with pytest.raises(DecodeError):
        ImageLoader().load_from_bytes(b"definitely not an image")


def test_oversized_upload_is_rejected(noise_png: bytes) -> None:
    with pytest.raises(DecodeError, match="too large"):
        ImageLoader(max_image_size=16).load_from_bytes(noise_png)


def test_decode_error_maps_to_bad_request() -> None:
    assert DecodeError.status_code == 400
