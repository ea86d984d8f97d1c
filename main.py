import argparse
import logging
import sys
from pathlib import Path

import cv2

from photobooth.config import PhotoboothConfig
from photobooth.constants import CONTOURS, TONE_PRESETS
from photobooth.detection import DetectionGate, MediaPipeFaceDetector
from photobooth.entities import CompositeRequest, FaceSlot, Frame, PipelineStages
from photobooth.exceptions import CaptureFailed, PhotoboothError
from photobooth.geometry import resolve_zoom
from photobooth.imaging import load_frame, load_overlay
from photobooth.logging_config import setup_logging
from photobooth.orchestrator import CaptureOrchestrator
from photobooth.tone import ToneTransform

logger = logging.getLogger("photobooth.main")


def grab_camera_frame(camera_index):
    """Read a single frame from a webcam"""
    webcam = cv2.VideoCapture(camera_index)
    try:
        if not webcam.isOpened():
            raise PhotoboothError(f"Could not open camera {camera_index}")
        # Let auto exposure settle for a few frames
        ret, frame = False, None
        for _ in range(5):
            ret, frame = webcam.read()
        if not ret:
            raise PhotoboothError(f"Could not read from camera {camera_index}")
        return Frame.from_bgr(frame)
    finally:
        webcam.release()


def build_parser(config):
    parser = argparse.ArgumentParser(description="Face Photobooth capture")
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--image", help="Process an image file instead of the webcam")
    source.add_argument("--camera", type=int, default=0, help="Webcam index (default: 0)")
    parser.add_argument("--overlay", default=config.overlay_path, help="Overlay PNG painted on top")
    parser.add_argument("--output", default="capture.png", help="Where to write the PNG result")
    parser.add_argument("--zoom", type=float, default=None,
                        help="Raw zoom control value (software mode: -1 to -4)")
    parser.add_argument("--mirror", dest="mirror", action="store_true", default=config.mirror_front_camera)
    parser.add_argument("--no-mirror", dest="mirror", action="store_false")
    parser.add_argument("--no-mask", dest="masking", action="store_false", default=config.masking,
                        help="Skip face masking and keep the full frame")
    parser.add_argument("--feather", type=float, default=config.feather_radius, help="Mask edge blur radius")
    parser.add_argument("--contour", choices=sorted(CONTOURS), default=config.contour)
    parser.add_argument("--tone", choices=sorted(TONE_PRESETS), default=config.tone)
    parser.add_argument("--badge", action="store_true", help="Place the face in the badge slot")
    return parser


def main(argv=None):
    try:
        config = PhotoboothConfig.from_env()
    except PhotoboothError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    args = build_parser(config).parse_args(argv)
    setup_logging(config.log_level)

    if not args.overlay:
        logger.error("An overlay image is required (--overlay or PHOTOBOOTH_OVERLAY)")
        return 2

    try:
        frame = load_frame(args.image) if args.image else grab_camera_frame(args.camera)
        overlay = load_overlay(args.overlay)
        raw_zoom = args.zoom if args.zoom is not None else config.default_zoom_value()
        zoom = resolve_zoom(raw_zoom, config.hardware_zoom, mirrored=args.mirror,
                            zoom_range=config.zoom_range())
    except PhotoboothError as e:
        logger.error("%s", e)
        return 1

    tone = ToneTransform.preset(args.tone) if args.tone else None

    request = CompositeRequest(
        frame=frame,
        overlay=overlay,
        viewport=config.viewport,
        zoom=zoom,
        tone=tone,
        stages=PipelineStages(masking=args.masking, toning=tone is not None,
                              background=config.background),
        face_slot=FaceSlot.named("badge") if args.badge else config.slot(),
        feather_radius=args.feather,
        contour=CONTOURS[args.contour],
    )

    gate = None
    detector = None
    if args.masking:
        detector = MediaPipeFaceDetector(static_image_mode=True)
        gate = DetectionGate(detector)

    try:
        result = CaptureOrchestrator(gate=gate).capture(request)
    except CaptureFailed as e:
        logger.error("Capture failed: %s", e.reason)
        return 1
    finally:
        if gate is not None:
            gate.close()
        if detector is not None:
            detector.close()

    output = Path(args.output)
    output.write_bytes(result.to_png())
    logger.info("Saved %dx%d capture to %s (face detected: %s)",
                result.width, result.height, output, result.face_detected)
    return 0


if __name__ == "__main__":
    sys.exit(main())
