"""Photobooth configuration with environment variable overrides.

Every field has a default; ``PhotoboothConfig.from_env()`` reads
``PHOTOBOOTH_*`` variables on top of those defaults and validates them.
"""
import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional, Tuple

from .constants import (
    CONTOURS,
    DEFAULT_VIEWPORT,
    FACE_SLOTS,
    SOFTWARE_DEFAULT_SCALE,
    SOFTWARE_ZOOM_MAX,
    SOFTWARE_ZOOM_MIN,
    SOFTWARE_ZOOM_STEP,
    TONE_PRESETS,
)
from .entities import FaceSlot, PipelineStages, ZoomRange
from .exceptions import ConfigError, InvalidZoomRange
from .tone import ToneTransform

logger = logging.getLogger(__name__)

ENV_PREFIX = "PHOTOBOOTH_"
TRUE_VALUES = {"1", "true", "yes", "on"}
FALSE_VALUES = {"0", "false", "no", "off"}
LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


@dataclass(frozen=True)
class PhotoboothConfig:
    """Immutable photobooth configuration."""

    viewport_width: int = DEFAULT_VIEWPORT[0]
    viewport_height: int = DEFAULT_VIEWPORT[1]
    feather_radius: float = 0.0
    contour: str = "face"

    # Zoom control
    zoom_min: float = SOFTWARE_ZOOM_MIN
    zoom_max: float = SOFTWARE_ZOOM_MAX
    zoom_step: float = SOFTWARE_ZOOM_STEP
    software_scale: float = SOFTWARE_DEFAULT_SCALE
    hardware_zoom: bool = False
    mirror_front_camera: bool = True

    # Composition
    masking: bool = True
    face_slot: Optional[Tuple[float, float, float]] = None
    tone: Optional[str] = None
    background: Optional[Tuple[int, int, int, int]] = None
    overlay_path: Optional[str] = None

    log_level: str = "INFO"

    def __post_init__(self):
        if self.viewport_width <= 0 or self.viewport_height <= 0:
            raise ConfigError(
                f"Viewport must be positive, got {self.viewport_width}x{self.viewport_height}"
            )
        if self.feather_radius < 0:
            raise ConfigError(f"Feather radius cannot be negative: {self.feather_radius}")
        if self.contour not in CONTOURS:
            raise ConfigError(f"Unknown contour '{self.contour}', expected one of {sorted(CONTOURS)}")
        if self.zoom_min >= self.zoom_max:
            raise ConfigError(f"Zoom min ({self.zoom_min}) must be below zoom max ({self.zoom_max})")
        if self.software_scale <= 0:
            raise ConfigError(f"Software scale must be positive: {self.software_scale}")
        if self.tone is not None and self.tone not in TONE_PRESETS:
            raise ConfigError(f"Unknown tone '{self.tone}', expected one of {sorted(TONE_PRESETS)}")
        if self.log_level.upper() not in LOG_LEVELS:
            raise ConfigError(f"Unknown log level '{self.log_level}'")

    @property
    def viewport(self):
        return self.viewport_width, self.viewport_height

    @property
    def contour_indices(self):
        return CONTOURS[self.contour]

    def zoom_range(self):
        try:
            return ZoomRange(self.zoom_min, self.zoom_max, self.zoom_step)
        except InvalidZoomRange as e:
            raise ConfigError(str(e)) from e

    def default_zoom_value(self):
        """Raw control value matching the default magnification."""
        if self.hardware_zoom:
            return 1.0
        return self.zoom_range().default_value(self.software_scale)

    def stages(self):
        return PipelineStages(
            masking=self.masking,
            toning=self.tone is not None,
            background=self.background,
        )

    def tone_transform(self):
        return ToneTransform.preset(self.tone) if self.tone else None

    def slot(self):
        return FaceSlot(*self.face_slot) if self.face_slot else None

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "PhotoboothConfig":
        """Build a configuration from ``PHOTOBOOTH_*`` environment variables."""
        environ = os.environ if environ is None else environ
        values = {}

        def read(name):
            value = environ.get(ENV_PREFIX + name)
            if value is None or value.strip() == "":
                return None
            return value.strip()

        readers = {
            "viewport_width": ("VIEWPORT_WIDTH", _parse_int),
            "viewport_height": ("VIEWPORT_HEIGHT", _parse_int),
            "feather_radius": ("FEATHER_RADIUS", _parse_float),
            "contour": ("CONTOUR", str.lower),
            "zoom_min": ("ZOOM_MIN", _parse_float),
            "zoom_max": ("ZOOM_MAX", _parse_float),
            "zoom_step": ("ZOOM_STEP", _parse_float),
            "software_scale": ("SOFTWARE_SCALE", _parse_float),
            "hardware_zoom": ("HARDWARE_ZOOM", _parse_bool),
            "mirror_front_camera": ("MIRROR", _parse_bool),
            "masking": ("MASKING", _parse_bool),
            "face_slot": ("FACE_SLOT", _parse_face_slot),
            "tone": ("TONE", str.lower),
            "background": ("BACKGROUND", _parse_color),
            "overlay_path": ("OVERLAY", str),
            "log_level": ("LOG_LEVEL", str.upper),
        }

        for field_name, (env_name, parse) in readers.items():
            raw = read(env_name)
            if raw is None:
                continue
            try:
                values[field_name] = parse(raw)
            except ValueError as e:
                logger.error("Invalid value for %s%s: %s", ENV_PREFIX, env_name, raw)
                raise ConfigError(f"Invalid value for {ENV_PREFIX}{env_name}: {e}") from e

        return cls(**values)


def _parse_int(value):
    return int(value)


def _parse_float(value):
    return float(value)


def _parse_bool(value):
    lowered = value.lower()
    if lowered in TRUE_VALUES:
        return True
    if lowered in FALSE_VALUES:
        return False
    raise ValueError(f"expected a boolean, got '{value}'")


def _parse_face_slot(value):
    if value.lower() in FACE_SLOTS:
        return FACE_SLOTS[value.lower()]
    parts = [float(part) for part in value.split(",")]
    if len(parts) != 3:
        raise ValueError("face slot needs 'left,top,width' or a preset name")
    return tuple(parts)


def _parse_color(value):
    """Parse ``#rrggbb``/``#rrggbbaa`` or ``r,g,b[,a]`` into an RGBA tuple."""
    if value.startswith("#"):
        digits = value[1:]
        if len(digits) not in (6, 8):
            raise ValueError("hex colors need 6 or 8 digits")
        channels = [int(digits[i:i + 2], 16) for i in range(0, len(digits), 2)]
    else:
        channels = [int(part) for part in value.split(",")]
    if len(channels) == 3:
        channels.append(255)
    if len(channels) != 4 or not all(0 <= c <= 255 for c in channels):
        raise ValueError("colors need 3 or 4 channels in 0..255")
    return tuple(channels)
