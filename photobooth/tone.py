"""
Linear color transforms (3x3 matrix plus bias) for captured photos
"""
from dataclasses import dataclass

import numpy as np

from .constants import TONE_PRESETS


@dataclass(frozen=True, eq=False)
class ToneTransform:
    matrix: np.ndarray
    bias: np.ndarray

    def __post_init__(self):
        matrix = np.asarray(self.matrix, dtype=np.float32)
        bias = np.asarray(self.bias, dtype=np.float32).reshape(-1)
        if matrix.shape != (3, 3):
            raise ValueError(f"tone matrix must be 3x3, got {matrix.shape}")
        if bias.shape != (3,):
            raise ValueError(f"tone bias must have 3 elements, got {bias.shape}")
        object.__setattr__(self, "matrix", matrix)
        object.__setattr__(self, "bias", bias)

    @classmethod
    def identity(cls):
        return cls(np.eye(3), np.zeros(3))

    @classmethod
    def preset(cls, name):
        """Build a transform from constants.TONE_PRESETS by name."""
        try:
            matrix, bias = TONE_PRESETS[name]
        except KeyError:
            raise ValueError(
                f"Unknown tone preset '{name}', expected one of {sorted(TONE_PRESETS)}"
            ) from None
        return cls(matrix, bias)

    def apply(self, buffer):
        return apply_tone(buffer, self.matrix, self.bias)


def apply_tone(buffer, matrix, bias):
    """
    Apply ``matrix · rgb + bias`` to every pixel of an RGBA buffer

    Parameters:
    - buffer: HxWx4 uint8 RGBA array (not modified)
    - matrix: 3x3 color matrix, rows produce R, G, B
    - bias: 3-element offset added after the multiplication

    Returns:
    - New RGBA buffer; RGB saturated to [0, 255], alpha copied unchanged
    """
    matrix = np.asarray(matrix, dtype=np.float32)
    bias = np.asarray(bias, dtype=np.float32).reshape(3)

    result = buffer.copy()
    rgb = buffer[..., :3].astype(np.float32)
    # out[c] = m[c, 0] * r + m[c, 1] * g + m[c, 2] * b + bias[c]
    toned = (rgb[..., 0:1] * matrix[:, 0]
             + rgb[..., 1:2] * matrix[:, 1]
             + rgb[..., 2:3] * matrix[:, 2]
             + bias)
    result[..., :3] = np.clip(np.rint(toned), 0, 255).astype(np.uint8)
    return result
