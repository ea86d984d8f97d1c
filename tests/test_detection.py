"""Tests for the detection gate and the MediaPipe adapter."""
import threading
from concurrent.futures import Future
from types import SimpleNamespace

import numpy as np
import pytest

from photobooth.detection import DetectionGate, MediaPipeFaceDetector
from photobooth.entities import LandmarkSet
from photobooth.exceptions import DetectionFailed, StaleDetection

from .conftest import noise_frame


def fake_landmarks(count=478):
    return LandmarkSet(np.full((count, 2), 0.5))


class ManualExecutor:
    """Executor whose jobs run only when the test says so."""

    def __init__(self):
        self.jobs = []

    def submit(self, fn, *args):
        job = Future()
        self.jobs.append((fn, args, job))
        return job

    def run(self, index):
        fn, args, job = self.jobs[index]
        job.set_result(fn(*args))

    def shutdown(self, wait=True):
        pass


class TestDetectionGate:

    def test_resolves_landmarks_for_frame(self):
        frame = noise_frame(64, 48)
        with DetectionGate(lambda f: fake_landmarks()) as gate:
            landmarks = gate.landmarks_for(frame, timeout=5)

        assert len(landmarks) == 478
        assert landmarks.frame_id == frame.frame_id

    def test_no_face_resolves_to_none(self):
        frame = noise_frame(64, 48)
        with DetectionGate(lambda f: None) as gate:
            future = gate.submit(frame)
            assert future.result(timeout=5) is None
            assert gate.landmarks_for(frame, timeout=5) is None

    def test_detector_errors_are_wrapped(self):
        def broken(frame):
            raise RuntimeError("model crashed")

        with DetectionGate(broken) as gate:
            with pytest.raises(DetectionFailed, match="model crashed") as excinfo:
                gate.landmarks_for(noise_frame(8, 8), timeout=5)

        assert isinstance(excinfo.value.__cause__, RuntimeError)

    def test_slow_detector_times_out(self):
        release = threading.Event()

        def stuck(frame):
            release.wait(timeout=5)
            return fake_landmarks()

        with DetectionGate(stuck) as gate:
            try:
                with pytest.raises(DetectionFailed, match="within"):
                    gate.landmarks_for(noise_frame(8, 8), timeout=0.05)
            finally:
                release.set()

    def test_late_result_for_superseded_frame_is_dropped(self):
        executor = ManualExecutor()
        first, second = noise_frame(16, 16, seed=1), noise_frame(16, 16, seed=2)
        gate = DetectionGate(lambda f: fake_landmarks(), executor=executor)

        first_future = gate.submit(first)
        second_future = gate.submit(second)
        # The old frame finishes only after the newer one was submitted
        executor.run(0)

        assert first_future.cancelled()
        assert not second_future.done()

        executor.run(1)
        assert second_future.result(timeout=0).frame_id == second.frame_id
        gate.close()

    def test_newer_frame_supersedes_pending_detection(self):
        first, second = noise_frame(64, 48, seed=1), noise_frame(64, 48, seed=2)
        release = {first.frame_id: threading.Event(), second.frame_id: threading.Event()}
        started = threading.Event()
        delivered = []

        def slow_detect(frame):
            started.set()
            release[frame.frame_id].wait(timeout=5)
            delivered.append(frame.frame_id)
            return fake_landmarks()

        with DetectionGate(slow_detect) as gate:
            first_future = gate.submit(first)
            assert started.wait(timeout=5)
            second_future = gate.submit(second)

            # The first frame is abandoned as soon as a newer one arrives
            assert first_future.cancelled()
            with pytest.raises(StaleDetection):
                gate.landmarks_for(first, timeout=5)

            release[first.frame_id].set()
            release[second.frame_id].set()
            landmarks = second_future.result(timeout=5)

        assert landmarks.frame_id == second.frame_id
        assert first.frame_id in delivered
        assert first_future.cancelled()
        assert gate.latest_frame_id == second.frame_id

    def test_unsubmitted_frame_is_submitted_on_demand(self):
        frame = noise_frame(16, 16)
        with DetectionGate(lambda f: fake_landmarks()) as gate:
            assert gate.pending_for(frame) is None
            assert gate.landmarks_for(frame, timeout=5) is not None
            assert gate.pending_for(frame) is not None


class FakeFaceMesh:

    def __init__(self, faces):
        self.faces = faces
        self.closed = False
        self.seen = []

    def process(self, rgb):
        self.seen.append(rgb.shape)
        return SimpleNamespace(multi_face_landmarks=self.faces)

    def close(self):
        self.closed = True


class TestMediaPipeFaceDetector:

    def test_converts_first_face(self):
        points = [SimpleNamespace(x=0.1 * i, y=0.05 * i, z=0.0) for i in range(5)]
        mesh = FakeFaceMesh([SimpleNamespace(landmark=points)])
        frame = noise_frame(64, 48)

        with MediaPipeFaceDetector(face_mesh=mesh) as detector:
            landmarks = detector(frame)

        assert mesh.seen == [(48, 64, 3)]
        assert mesh.closed
        assert landmarks.frame_id == frame.frame_id
        np.testing.assert_allclose(landmarks.points[3], (0.3, 0.15))

    def test_no_face_returns_none(self):
        detector = MediaPipeFaceDetector(face_mesh=FakeFaceMesh(None))
        assert detector(noise_frame(10, 10)) is None
