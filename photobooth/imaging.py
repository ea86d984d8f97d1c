"""
Image loading and encoding helpers for the Face Photobooth
"""
import base64
import io
import logging
import os
import re

import cv2
import numpy as np
from PIL import Image, UnidentifiedImageError

from .entities import Frame
from .exceptions import DegenerateFrame, EmptyOverlay

logger = logging.getLogger(__name__)

DATA_URL_PATTERN = re.compile(r"^data:image/[\w.+-]+;base64,")


def load_overlay(source):
    """
    Decode an overlay asset into an RGBA array

    Parameters:
    - source: File path, raw encoded bytes, or a PIL image

    Returns:
    - np.array HxWx4 uint8 (RGBA)
    """
    try:
        if isinstance(source, Image.Image):
            image = source
        elif isinstance(source, (bytes, bytearray)):
            image = Image.open(io.BytesIO(source))
        else:
            image = Image.open(os.fspath(source))
        overlay = np.array(image.convert("RGBA"), dtype=np.uint8)
    except (OSError, UnidentifiedImageError) as e:
        raise EmptyOverlay(f"Could not decode overlay: {e}") from e

    if overlay.size == 0:
        raise EmptyOverlay("Overlay image has no pixels")

    logger.debug("Loaded overlay %dx%d", overlay.shape[1], overlay.shape[0])
    return overlay


def load_frame(path):
    """Read an image file with OpenCV and wrap it as a Frame."""
    image = cv2.imread(os.fspath(path), cv2.IMREAD_UNCHANGED)
    if image is None:
        raise DegenerateFrame(f"Could not read image: {path}")
    if image.ndim == 2:
        image = cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
    return Frame.from_bgr(image)


def encode_png(pixels):
    """Encode an RGBA array as PNG bytes."""
    buffer = io.BytesIO()
    Image.fromarray(np.ascontiguousarray(pixels, dtype=np.uint8)).save(buffer, format="PNG")
    return buffer.getvalue()


def to_data_url(pixels):
    """Encode an RGBA array as a ``data:image/png;base64`` URL."""
    return "data:image/png;base64," + base64.b64encode(encode_png(pixels)).decode("ascii")


def decode_data_url(data_url):
    """Decode a base64 image data URL (any format Pillow reads) into a Frame."""
    payload = DATA_URL_PATTERN.sub("", data_url, count=1)
    try:
        image = Image.open(io.BytesIO(base64.b64decode(payload)))
        pixels = np.array(image.convert("RGBA"), dtype=np.uint8)
    except (OSError, UnidentifiedImageError, ValueError) as e:
        raise DegenerateFrame(f"Could not decode image data: {e}") from e
    return Frame(pixels)
