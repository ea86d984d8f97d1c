"""Tests for overlay loading and PNG encoding."""
import io

import cv2
import numpy as np
import pytest
from PIL import Image

from photobooth.entities import CompositeResult
from photobooth.exceptions import DegenerateFrame, EmptyOverlay
from photobooth.imaging import decode_data_url, encode_png, load_frame, load_overlay, to_data_url

from .conftest import noise_frame

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


def png_bytes(image):
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


def test_load_overlay_from_bytes_converts_to_rgba():
    data = png_bytes(Image.new("RGB", (30, 20), (10, 20, 30)))

    overlay = load_overlay(data)

    assert overlay.shape == (20, 30, 4)
    assert overlay[0, 0].tolist() == [10, 20, 30, 255]


def test_load_overlay_from_path(tmp_path):
    path = tmp_path / "overlay.png"
    Image.new("RGBA", (8, 6), (1, 2, 3, 4)).save(path)

    overlay = load_overlay(path)

    assert overlay[5, 7].tolist() == [1, 2, 3, 4]


def test_load_overlay_rejects_garbage():
    with pytest.raises(EmptyOverlay):
        load_overlay(b"not an image")


def test_load_frame_converts_bgr(tmp_path):
    bgr = np.zeros((12, 16, 3), dtype=np.uint8)
    bgr[:] = (255, 0, 0)  # blue in OpenCV order
    path = tmp_path / "frame.png"
    cv2.imwrite(str(path), bgr)

    frame = load_frame(path)

    assert (frame.width, frame.height) == (16, 12)
    assert frame.pixels[0, 0].tolist() == [0, 0, 255, 255]


def test_load_frame_missing_file(tmp_path):
    with pytest.raises(DegenerateFrame):
        load_frame(tmp_path / "missing.png")


def test_png_and_data_url_encoding():
    frame = noise_frame(20, 10)

    data = encode_png(frame.pixels)
    url = to_data_url(frame.pixels)

    assert data.startswith(PNG_SIGNATURE)
    assert url.startswith("data:image/png;base64,")
    np.testing.assert_array_equal(decode_data_url(url).pixels, frame.pixels)


def test_decode_data_url_rejects_garbage():
    with pytest.raises(DegenerateFrame):
        decode_data_url("data:image/png;base64,bm90IGFuIGltYWdl")


def test_composite_result_encoders():
    result = CompositeResult(pixels=noise_frame(4, 4).pixels)
    assert result.to_png().startswith(PNG_SIGNATURE)
    assert result.to_data_url().startswith("data:image/png;base64,")
