"""Data structures shared by the capture pipeline."""
from __future__ import annotations

import itertools
import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional, Sequence, Tuple

import cv2
import numpy as np

from .constants import FACE_CONTOUR, FACE_SLOTS
from .exceptions import InvalidZoomRange

if TYPE_CHECKING:
    from .tone import ToneTransform

_frame_ids = itertools.count(1)


def next_frame_id() -> int:
    return next(_frame_ids)


@dataclass(frozen=True, eq=False)
class Frame:
    """RGBA pixel buffer of one captured frame.

    ``native_width``/``native_height`` are the dimensions of the capture the
    pixels were sourced from; they default to the buffer size.
    """
    pixels: np.ndarray
    native_width: Optional[int] = None
    native_height: Optional[int] = None
    frame_id: int = field(default_factory=next_frame_id)

    def __post_init__(self):
        if self.pixels.ndim != 3 or self.pixels.shape[2] != 4:
            raise ValueError(f"Frame expects an HxWx4 RGBA buffer, got shape {self.pixels.shape}")
        if self.native_width is None:
            object.__setattr__(self, "native_width", self.width)
        if self.native_height is None:
            object.__setattr__(self, "native_height", self.height)

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def is_degenerate(self) -> bool:
        return self.width == 0 or self.height == 0

    @classmethod
    def from_bgr(cls, image, **kwargs) -> "Frame":
        """Build a frame from an OpenCV BGR (or BGRA) image."""
        if image.ndim == 3 and image.shape[2] == 4:
            rgba = cv2.cvtColor(image, cv2.COLOR_BGRA2RGBA)
        else:
            rgba = cv2.cvtColor(image, cv2.COLOR_BGR2RGBA)
        return cls(rgba, **kwargs)

    @classmethod
    def from_rgb(cls, image, **kwargs) -> "Frame":
        """Build a frame from an RGB (or already RGBA) array."""
        if image.ndim == 3 and image.shape[2] == 4:
            return cls(np.ascontiguousarray(image, dtype=np.uint8), **kwargs)
        return cls(cv2.cvtColor(image, cv2.COLOR_RGB2RGBA), **kwargs)

    def to_rgb(self) -> np.ndarray:
        return cv2.cvtColor(self.pixels, cv2.COLOR_RGBA2RGB)


@dataclass(frozen=True, eq=False)
class LandmarkSet:
    """Normalized (x, y) landmark points detected on one frame."""
    points: np.ndarray
    frame_id: Optional[int] = None

    def __post_init__(self):
        points = np.asarray(self.points, dtype=np.float64).reshape(-1, 2)
        object.__setattr__(self, "points", points)

    def __len__(self):
        return len(self.points)

    @classmethod
    def from_mediapipe(cls, face_landmarks, frame_id=None) -> "LandmarkSet":
        """Convert a MediaPipe ``NormalizedLandmarkList`` (or a plain list of
        landmarks with ``x``/``y`` attributes)."""
        landmarks = getattr(face_landmarks, "landmark", face_landmarks)
        points = [(pt.x, pt.y) for pt in landmarks]
        return cls(np.array(points, dtype=np.float64).reshape(-1, 2), frame_id=frame_id)


@dataclass(frozen=True)
class BoundingBox:
    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y

    @property
    def area(self) -> float:
        return self.width * self.height

    @property
    def center(self) -> Tuple[float, float]:
        return ((self.min_x + self.max_x) / 2.0, (self.min_y + self.max_y) / 2.0)

    def pixel_rect(self, frame_width: int, frame_height: int) -> Tuple[int, int, int, int]:
        """Integer crop rectangle (x, y, w, h) covering the box.

        Always at least 1x1 and always inside the frame, so a degenerate box
        still yields a (transparent) single-pixel crop.
        """
        x0 = min(max(int(math.floor(self.min_x)), 0), frame_width - 1)
        y0 = min(max(int(math.floor(self.min_y)), 0), frame_height - 1)
        x1 = min(int(math.ceil(self.max_x)), frame_width)
        y1 = min(int(math.ceil(self.max_y)), frame_height)
        return x0, y0, max(1, x1 - x0), max(1, y1 - y0)


@dataclass(frozen=True)
class ZoomRange:
    """Range of the raw zoom control."""
    min: float
    max: float
    step: float = 0.1

    def __post_init__(self):
        if self.min >= self.max:
            raise InvalidZoomRange(f"zoom range min ({self.min}) must be below max ({self.max})")

    def default_value(self, scale: float) -> float:
        """Raw control value for a software magnification of ``scale``, kept in range."""
        if not scale > 0:
            raise InvalidZoomRange(f"zoom scale must be positive, got {scale}")
        return min(max(-1.0 / scale, self.min), self.max)


@dataclass(frozen=True)
class ZoomState:
    factor: float = 1.0
    hardware_supported: bool = False
    mirrored: bool = False

    def __post_init__(self):
        if not self.factor > 0:
            raise InvalidZoomRange(f"zoom factor must be positive, got {self.factor}")

    @property
    def draw_factor(self) -> float:
        # Hardware zoom already magnified the captured pixels
        return 1.0 if self.hardware_supported else self.factor


@dataclass(frozen=True)
class FaceSlot:
    """Viewport region for the face crop, as fractions of the viewport."""
    left: float
    top: float
    width: float

    @classmethod
    def named(cls, name: str) -> "FaceSlot":
        return cls(*FACE_SLOTS[name])

    def placement(self, viewport, crop_w, crop_h):
        """Return (x, y, w, h) in viewport pixels, keeping the crop's aspect."""
        vw, vh = viewport
        w = max(1, int(round(vw * self.width)))
        h = max(1, int(round(w * crop_h / crop_w)))
        return int(round(vw * self.left)), int(round(vh * self.top)), w, h


@dataclass(frozen=True)
class PipelineStages:
    """Optional stages a capture call site enables."""
    masking: bool = True
    toning: bool = True
    background: Optional[Tuple[int, int, int, int]] = None


@dataclass(eq=False)
class CompositeRequest:
    frame: Frame
    overlay: Optional[np.ndarray]
    viewport: Tuple[int, int]
    landmarks: Optional[LandmarkSet] = None
    zoom: Optional[ZoomState] = None
    tone: Optional["ToneTransform"] = None
    stages: PipelineStages = field(default_factory=PipelineStages)
    face_slot: Optional[FaceSlot] = None
    feather_radius: float = 0.0
    contour: Sequence[int] = FACE_CONTOUR


@dataclass(eq=False)
class CompositeResult:
    pixels: np.ndarray
    face_box: Optional[BoundingBox] = None
    face_detected: bool = False
    trace: Tuple[str, ...] = ()

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    def to_png(self) -> bytes:
        from .imaging import encode_png
        return encode_png(self.pixels)

    def to_data_url(self) -> str:
        from .imaging import to_data_url
        return to_data_url(self.pixels)
