"""
Capture orchestration for the Face Photobooth.

One ``capture`` call runs one request through

    IDLE -> FITTING -> [MASKING] -> [TONING] -> OVERLAYING -> DONE

or ends in FAILED. Nothing is kept between requests.
"""
import logging
from enum import Enum

import numpy as np

from . import compositor
from .entities import CompositeResult, ZoomState
from .exceptions import (
    CaptureFailed,
    DegenerateFrame,
    EmptyOverlay,
    NoFaceDetected,
    PhotoboothError,
)
from .geometry import apply_zoom_to_draw_rect, bounding_box, contour_polygon, fit_cover
from .mask import build_mask

logger = logging.getLogger(__name__)


class CaptureState(Enum):
    IDLE = "idle"
    FITTING = "fitting"
    MASKING = "masking"
    TONING = "toning"
    OVERLAYING = "overlaying"
    DONE = "done"
    FAILED = "failed"


class CaptureRun:
    """Bookkeeping for a single capture request."""

    def __init__(self, request):
        self.request = request
        self.state = CaptureState.IDLE
        self.trace = [CaptureState.IDLE.value]

    def advance(self, state):
        logger.debug("Frame %s: %s -> %s", self.request.frame.frame_id, self.state.value, state.value)
        self.state = state
        self.trace.append(state.value)


class CaptureOrchestrator:
    """
    Sequences fitting, masking, toning and overlaying for capture requests.

    ``gate`` is an optional DetectionGate, used when a request carries no
    landmarks but masking is enabled.
    """

    def __init__(self, gate=None, detection_timeout=None):
        self.gate = gate
        self.detection_timeout = detection_timeout

    def capture(self, request):
        """
        Run one capture request

        Returns:
        - CompositeResult at the request's viewport size

        Raises:
        - CaptureFailed: wraps the reason (DegenerateFrame, EmptyOverlay,
          MissingLandmarks, InvalidZoomRange, StaleDetection, DetectionFailed)
        """
        run = CaptureRun(request)
        try:
            return self._run(run)
        except PhotoboothError as e:
            run.advance(CaptureState.FAILED)
            logger.warning("Capture of frame %s failed: %s", request.frame.frame_id, e)
            raise CaptureFailed(e, run.trace) from e

    def _run(self, run):
        request = run.request
        frame = request.frame
        zoom = request.zoom or ZoomState()

        run.advance(CaptureState.FITTING)
        self._validate(request)
        viewport = (int(request.viewport[0]), int(request.viewport[1]))

        cover = fit_cover(frame.native_width, frame.native_height, *viewport)
        zoom_rect = apply_zoom_to_draw_rect(*cover, zoom.draw_factor)

        face_box = None
        landmarks = self._landmarks_for(request)
        try:
            if landmarks is None:
                raise NoFaceDetected(f"no face on frame {frame.frame_id}")
            run.advance(CaptureState.MASKING)
            canvas, face_box = self._mask_face(request, landmarks, zoom_rect, zoom.mirrored, viewport)
        except NoFaceDetected as e:
            if request.stages.masking:
                logger.info("%s, using the full frame", e)
            canvas = compositor.draw_frame(frame, zoom_rect, zoom.mirrored, viewport)

        if request.tone is not None and request.stages.toning:
            run.advance(CaptureState.TONING)
            canvas = request.tone.apply(canvas)

        run.advance(CaptureState.OVERLAYING)
        compositor.draw_overlay(canvas, request.overlay)

        run.advance(CaptureState.DONE)
        return CompositeResult(
            pixels=canvas,
            face_box=face_box,
            face_detected=face_box is not None,
            trace=tuple(run.trace),
        )

    def _validate(self, request):
        if request.frame.is_degenerate:
            raise DegenerateFrame(f"frame {request.frame.frame_id} has zero width or height")
        if not request.frame.native_width or not request.frame.native_height:
            raise DegenerateFrame(f"frame {request.frame.frame_id} has zero native size")
        view_w, view_h = request.viewport
        if view_w <= 0 or view_h <= 0:
            raise DegenerateFrame(f"viewport {view_w}x{view_h} has zero width or height")
        overlay = request.overlay
        if overlay is None or overlay.size == 0:
            raise EmptyOverlay("overlay bitmap is empty")
        if overlay.ndim != 3 or overlay.shape[2] != 4:
            raise EmptyOverlay(f"overlay must be an HxWx4 RGBA buffer, got shape {overlay.shape}")

    def _landmarks_for(self, request):
        if not request.stages.masking:
            return None
        if request.landmarks is not None:
            return request.landmarks
        if self.gate is not None:
            return self.gate.landmarks_for(request.frame, timeout=self.detection_timeout)
        return None

    def _mask_face(self, request, landmarks, zoom_rect, mirrored, viewport):
        frame = request.frame
        polygon = contour_polygon(landmarks, request.contour, frame.width, frame.height)
        face_box = bounding_box(polygon, frame.width, frame.height)
        mask = build_mask(polygon, frame.width, frame.height, request.feather_radius)
        face = compositor.composite_masked(frame, mask, face_box)

        canvas = np.zeros((viewport[1], viewport[0], 4), dtype=np.uint8)
        placement = self._face_placement(request, face_box, face, zoom_rect, mirrored, viewport)
        compositor.place_image(canvas, face, placement, mirrored=mirrored)

        if request.stages.background is not None:
            compositor.fill_background(canvas, request.stages.background)
        return canvas, face_box

    def _face_placement(self, request, face_box, face, zoom_rect, mirrored, viewport):
        face_h, face_w = face.shape[:2]
        if request.face_slot is not None:
            return request.face_slot.placement(viewport, face_w, face_h)

        # In place: where the crop sits in the fitted, zoomed (and mirrored) frame
        frame = request.frame
        draw_w, draw_h, dx, dy = zoom_rect
        scale_x = draw_w / frame.width
        scale_y = draw_h / frame.height
        x, y, _, _ = face_box.pixel_rect(frame.width, frame.height)

        width = max(1, int(round(face_w * scale_x)))
        height = max(1, int(round(face_h * scale_y)))
        left = dx + x * scale_x
        if mirrored:
            left = viewport[0] - (dx + (x + face_w) * scale_x)
        top = dy + y * scale_y
        return int(round(left)), int(round(top)), width, height
