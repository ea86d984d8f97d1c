"""
Face landmark detection for the Face Photobooth.

The landmark model is an external collaborator: any callable
``detect(frame) -> LandmarkSet | None`` works. ``MediaPipeFaceDetector`` is
the default one, built on MediaPipe Face Mesh.

``DetectionGate`` runs a detector off the capture path and hands out one
future per frame. Submitting a newer frame supersedes the pending one; a
superseded result is dropped when it arrives instead of being applied to a
stale frame.
"""
import logging
from concurrent.futures import CancelledError, Future, InvalidStateError, ThreadPoolExecutor
from concurrent.futures import TimeoutError as DetectionTimeout

from .constants import FACE_MESH_OPTIONS
from .entities import LandmarkSet
from .exceptions import DetectionFailed, PhotoboothError, StaleDetection

logger = logging.getLogger(__name__)


class MediaPipeFaceDetector:
    """Landmark detector backed by MediaPipe Face Mesh (468/478 points)."""

    def __init__(self, face_mesh=None, static_image_mode=True, **options):
        if face_mesh is None:
            import mediapipe as mp

            face_mesh_options = dict(FACE_MESH_OPTIONS)
            face_mesh_options.update(options)
            face_mesh = mp.solutions.face_mesh.FaceMesh(
                static_image_mode=static_image_mode, **face_mesh_options
            )
        self._face_mesh = face_mesh

    def __call__(self, frame):
        rgb = frame.to_rgb()
        rgb.flags.writeable = False
        results = self._face_mesh.process(rgb)

        if not results.multi_face_landmarks:
            logger.debug("No face found on frame %s", frame.frame_id)
            return None
        return LandmarkSet.from_mediapipe(results.multi_face_landmarks[0], frame_id=frame.frame_id)

    def close(self):
        self._face_mesh.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


class DetectionGate:
    """Single-resolution detection futures keyed by frame id."""

    def __init__(self, detect, executor=None):
        self._detect = detect
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(max_workers=1, thread_name_prefix="face-detect")
        self._latest_id = None
        self._pending = {}

    @property
    def latest_frame_id(self):
        return self._latest_id

    def submit(self, frame):
        """
        Start detection for ``frame``, superseding any pending frame

        Returns:
        - Future resolving to a LandmarkSet or None; cancelled if a newer
          frame is submitted before it resolves
        """
        future = Future()
        # Newer id first, so a result landing mid-swap is already stale
        self._latest_id = frame.frame_id
        superseded = self._pending
        self._pending = {frame.frame_id: future}

        for frame_id, pending in superseded.items():
            if pending.cancel():
                logger.debug("Frame %s superseded by frame %s", frame_id, frame.frame_id)

        job = self._executor.submit(self._detect, frame)
        job.add_done_callback(
            lambda done, frame_id=frame.frame_id: self._deliver(frame_id, future, done)
        )
        return future

    def _deliver(self, frame_id, future, job):
        if frame_id != self._latest_id:
            logger.debug("Discarding detection result for stale frame %s", frame_id)
            future.cancel()
            return

        try:
            error = job.exception()
            if error is not None:
                future.set_exception(error)
                return
            landmarks = job.result()
            if landmarks is not None and landmarks.frame_id is None:
                landmarks = LandmarkSet(landmarks.points, frame_id=frame_id)
            future.set_result(landmarks)
        except (CancelledError, InvalidStateError):
            # Superseded while the detector was running
            logger.debug("Discarding detection result for stale frame %s", frame_id)

    def pending_for(self, frame):
        return self._pending.get(frame.frame_id)

    def landmarks_for(self, frame, timeout=None):
        """
        Wait for the landmarks of ``frame``, submitting it if needed

        Raises:
        - StaleDetection: a newer frame superseded this one
        - DetectionFailed: the detector raised or timed out
        """
        future = self._pending.get(frame.frame_id)
        if future is None:
            if self._latest_id is not None and frame.frame_id < self._latest_id:
                raise StaleDetection(
                    f"frame {frame.frame_id} was superseded by frame {self._latest_id}"
                )
            future = self.submit(frame)

        try:
            return future.result(timeout=timeout)
        except CancelledError:
            raise StaleDetection(
                f"frame {frame.frame_id} was superseded by frame {self._latest_id}"
            ) from None
        except DetectionTimeout as e:
            raise DetectionFailed(
                f"no landmarks for frame {frame.frame_id} within {timeout}s"
            ) from e
        except PhotoboothError:
            raise
        except Exception as e:
            raise DetectionFailed(f"detector failed on frame {frame.frame_id}: {e}") from e

    def close(self):
        for future in self._pending.values():
            future.cancel()
        self._pending = {}
        if self._owns_executor:
            self._executor.shutdown(wait=False)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
