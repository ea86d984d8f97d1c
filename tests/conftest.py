"""Pytest configuration and shared fixtures for the photobooth tests."""
import logging
import sys
from pathlib import Path

import numpy as np
import pytest

# Add the project root to Python path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from photobooth.constants import FACE_CONTOUR
from photobooth.entities import Frame, LandmarkSet

logging.getLogger('PIL').setLevel(logging.WARNING)

# Face Mesh with refined landmarks reports 478 points
LANDMARK_COUNT = 478


def solid_frame(width, height, color=(40, 80, 120, 255)):
    pixels = np.empty((height, width, 4), dtype=np.uint8)
    pixels[:] = color
    return Frame(pixels)


def noise_frame(width, height, seed=0):
    rng = np.random.default_rng(seed)
    pixels = rng.integers(0, 256, size=(height, width, 4), dtype=np.uint8)
    pixels[..., 3] = 255
    return Frame(pixels)


def square_contour(x0, y0, x1, y1, count=len(FACE_CONTOUR)):
    """Pixel points walking a rectangle clockwise from (x0, y0)."""
    per_side = count // 4
    corners = [(x0, y0), (x1, y0), (x1, y1), (x0, y1)]
    points = []
    for (ax, ay), (bx, by) in zip(corners, corners[1:] + corners[:1]):
        for k in range(per_side):
            t = k / per_side
            points.append((ax + (bx - ax) * t, ay + (by - ay) * t))
    return np.array(points, dtype=np.float64)


def landmarks_with_contour(contour_points, width, height, indices=FACE_CONTOUR, frame_id=None):
    """LandmarkSet whose ``indices`` trace ``contour_points`` (pixels)."""
    points = np.full((LANDMARK_COUNT, 2), 0.5, dtype=np.float64)
    normalized = np.asarray(contour_points, dtype=np.float64) / np.array([width, height])
    points[list(indices)] = normalized
    return LandmarkSet(points, frame_id=frame_id)


@pytest.fixture
def frame_800x600():
    return noise_frame(800, 600)


@pytest.fixture
def square_landmarks():
    """200x200 face square centered in an 800x600 frame."""
    return landmarks_with_contour(square_contour(300, 200, 500, 400), 800, 600)


@pytest.fixture
def transparent_overlay():
    return np.zeros((600, 800, 4), dtype=np.uint8)


@pytest.fixture
def window_overlay():
    """Opaque red overlay with a transparent window over the face square."""
    overlay = np.zeros((600, 800, 4), dtype=np.uint8)
    overlay[:] = (220, 20, 60, 255)
    overlay[200:400, 300:500] = 0
    return overlay
