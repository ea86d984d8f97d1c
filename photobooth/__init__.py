"""
Face Photobooth: landmark-guided face masking, cropping, toning and overlay
compositing for captured camera frames.
"""
from .compositor import composite_live_capture, composite_masked
from .entities import (
    BoundingBox,
    CompositeRequest,
    CompositeResult,
    FaceSlot,
    Frame,
    LandmarkSet,
    PipelineStages,
    ZoomRange,
    ZoomState,
)
from .exceptions import (
    CaptureFailed,
    DegenerateFrame,
    DetectionFailed,
    EmptyOverlay,
    InvalidZoomRange,
    MissingLandmarks,
    NoFaceDetected,
    PhotoboothError,
    StaleDetection,
)
from .geometry import (
    apply_zoom_to_draw_rect,
    bounding_box,
    contour_polygon,
    fit_cover,
    resolve_zoom,
    zoom_control_value,
)
from .mask import build_mask
from .orchestrator import CaptureOrchestrator, CaptureState
from .tone import ToneTransform, apply_tone

__version__ = "0.1.0"
