"""
Face mask rasterization for the Face Photobooth
"""
import logging

import cv2
import numpy as np

from .geometry import bounding_box

logger = logging.getLogger(__name__)


def build_mask(polygon, width, height, feather_radius=0):
    """
    Rasterize a face contour into a single-channel mask

    Parameters:
    - polygon: (N, 2) pixel-space contour, filled in the order given
    - width, height: Size of the mask (same as the source frame)
    - feather_radius: Blur radius for soft edges (0 for a hard edge)

    Returns:
    - np.array (height, width) uint8: 255 inside the contour, 0 outside
    """
    mask = np.zeros((height, width), dtype=np.uint8)

    polygon = np.asarray(polygon, dtype=np.float64)
    if polygon.size == 0 or bounding_box(polygon, width, height).area == 0:
        logger.debug("Degenerate contour, returning an empty mask")
        return mask

    # Vertices keep their contour order; no hull, no re-sorting
    points = np.rint(polygon).astype(np.int32).reshape(-1, 1, 2)
    cv2.fillPoly(mask, [points], 255)

    if feather_radius > 0:
        # Soft edge first, then stamp the sharp fill back over it so the
        # interior stays fully opaque
        feathered = cv2.GaussianBlur(mask, (0, 0), sigmaX=feather_radius, sigmaY=feather_radius)
        mask = np.maximum(feathered, mask)

    return mask
