"""Custom exceptions for the photobooth pipeline."""


class PhotoboothError(Exception):
    """Base photobooth error."""
    pass


class MissingLandmarks(PhotoboothError):
    """A contour index is out of range for the supplied landmark set."""
    pass


class NoFaceDetected(PhotoboothError):
    """The detector found no face. Recovered by an unmasked composite."""
    pass


class InvalidZoomRange(PhotoboothError):
    """Zoom range or zoom control value cannot be resolved."""
    pass


class DegenerateFrame(PhotoboothError):
    """Frame (or viewport) with zero width or height."""
    pass


class EmptyOverlay(PhotoboothError):
    """Overlay bitmap missing or empty."""
    pass


class StaleDetection(PhotoboothError):
    """Detection result belongs to a frame that has been superseded."""
    pass


class DetectionFailed(PhotoboothError):
    """The landmark detector crashed or did not answer in time."""
    pass


class ConfigError(PhotoboothError):
    """Configuration-related errors."""
    pass


class CaptureFailed(PhotoboothError):
    """A capture request ended in the failed state."""

    def __init__(self, reason, trace=()):
        self.reason = reason
        self.trace = tuple(trace)
        super().__init__(f"capture failed: {type(reason).__name__}: {reason}")
