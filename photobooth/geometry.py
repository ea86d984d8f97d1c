"""
Geometry helpers for the capture pipeline: cover fitting, zoom resolution,
contour selection and polygon bounds. Pure math, no pixel access.
"""
import numpy as np

from .entities import BoundingBox, ZoomRange, ZoomState
from .exceptions import DegenerateFrame, InvalidZoomRange, MissingLandmarks


def fit_cover(source_w, source_h, target_w, target_h):
    """
    Scale a source rectangle so it covers the target ("object-cover")

    Parameters:
    - source_w, source_h: Native size of the source (e.g. the video frame)
    - target_w, target_h: Size of the viewport to cover

    Returns:
    - (draw_w, draw_h, dx, dy): Draw size and offset; overflow is centered
    """
    if source_w <= 0 or source_h <= 0 or target_w <= 0 or target_h <= 0:
        raise DegenerateFrame(
            f"cannot fit {source_w}x{source_h} into {target_w}x{target_h}"
        )

    source_ratio = source_w / source_h
    target_ratio = target_w / target_h

    if source_ratio > target_ratio:
        # Source is wider than the target: match height, overflow sideways
        draw_h = float(target_h)
        draw_w = target_h * source_ratio
        dx = (target_w - draw_w) / 2.0
        dy = 0.0
    else:
        # Source is taller: match width, overflow vertically
        draw_w = float(target_w)
        draw_h = target_w / source_ratio
        dx = 0.0
        dy = (target_h - draw_h) / 2.0

    return draw_w, draw_h, dx, dy


def resolve_zoom(raw_value, hardware_supported, mirrored=False, zoom_range=None):
    """
    Turn a raw zoom control value into a positive magnification

    Without hardware zoom the control runs over values whose magnitude is
    at least 1, and the magnification is |1 / value| (zoom-out only). With
    hardware zoom the value is the magnification itself.

    Parameters:
    - raw_value: Value reported by the zoom control
    - hardware_supported: Whether the capture device zooms by itself
    - mirrored: Whether the capture is mirrored (front camera)
    - zoom_range: Optional (min, max[, step]) tuple or ZoomRange of the control

    Returns:
    - ZoomState
    """
    if zoom_range is not None:
        if isinstance(zoom_range, ZoomRange):
            zoom_min, zoom_max = zoom_range.min, zoom_range.max
        else:
            zoom_min, zoom_max = zoom_range[0], zoom_range[1]
        if zoom_min >= zoom_max:
            raise InvalidZoomRange(f"zoom range min ({zoom_min}) must be below max ({zoom_max})")

    if hardware_supported:
        factor = float(raw_value)
        if factor <= 0:
            raise InvalidZoomRange(f"hardware zoom must be positive, got {raw_value}")
    else:
        if raw_value == 0:
            raise InvalidZoomRange("software zoom control value cannot be zero")
        factor = abs(1.0 / raw_value)

    return ZoomState(factor=factor, hardware_supported=hardware_supported, mirrored=mirrored)


def zoom_control_value(factor, hardware_supported):
    """Map a magnification back to the value the zoom control shows."""
    if factor <= 0:
        raise InvalidZoomRange(f"zoom factor must be positive, got {factor}")
    if hardware_supported:
        return float(factor)
    return -1.0 / factor


def apply_zoom_to_draw_rect(draw_w, draw_h, dx, dy, factor):
    """Scale the covered rectangle by ``factor`` about its own center."""
    zoomed_w = draw_w * factor
    zoomed_h = draw_h * factor
    zoom_dx = dx - (zoomed_w - draw_w) / 2.0
    zoom_dy = dy - (zoomed_h - draw_h) / 2.0
    return zoomed_w, zoomed_h, zoom_dx, zoom_dy


def contour_polygon(landmarks, indices, width, height):
    """
    Pixel-space polygon traced by the landmarks at ``indices``

    Parameters:
    - landmarks: LandmarkSet with normalized points
    - indices: Ordered landmark indices (see constants.FACE_CONTOUR)
    - width, height: Frame size used to scale the normalized points

    Returns:
    - np.array of shape (N, 2), float, in the order of ``indices``
    """
    indices = np.asarray(indices, dtype=np.int64)
    if indices.size == 0:
        raise MissingLandmarks("contour needs at least one landmark index")

    count = len(landmarks)
    out_of_range = indices[(indices < 0) | (indices >= count)]
    if out_of_range.size:
        raise MissingLandmarks(
            f"landmark set has {count} points, contour needs index {int(out_of_range[0])}"
        )

    points = landmarks.points[indices]
    return points * np.array([width, height], dtype=np.float64)


def bounding_box(polygon, width, height):
    """Axis-aligned bounds of ``polygon`` clamped to the frame."""
    polygon = np.asarray(polygon, dtype=np.float64)
    min_x = float(np.clip(polygon[:, 0].min(), 0, width))
    max_x = float(np.clip(polygon[:, 0].max(), 0, width))
    min_y = float(np.clip(polygon[:, 1].min(), 0, height))
    max_y = float(np.clip(polygon[:, 1].max(), 0, height))
    return BoundingBox(min_x, min_y, max_x, max_y)


def polygon_centroid(polygon):
    polygon = np.asarray(polygon, dtype=np.float64)
    cx, cy = polygon.mean(axis=0)
    return float(cx), float(cy)
