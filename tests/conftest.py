"""Shared test fixtures for Survey Recorder tests."""

import numpy as np
import pytest

from survey_recorder.core.capture import LocalRecorder
from survey_recorder.core.config import Thresholds
from survey_recorder.core.events import EventEmitter
from survey_recorder.core.media import RECORDING_UPDATE, RecorderState


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeAnalyser:
    def __init__(self, samples):
        self.samples = samples
        self.closed = False

    def read_samples(self):
        return self.samples

    def close(self):
        self.closed = True


class FakeAudioTrack:
    """Audio track whose analysers return ``samples``."""

    def __init__(self, samples=None, fail=False):
        self.samples = np.zeros(2048, dtype=np.float32) if samples is None else samples
        self.fail = fail
        self.analysers = []

    def open_analyser(self, buffer_length):
        if self.fail:
            raise OSError("Device unavailable")
        analyser = FakeAnalyser(self.samples)
        self.analysers.append(analyser)
        return analyser

    def set_samples(self, samples):
        self.samples = samples
        for analyser in self.analysers:
            analyser.samples = samples


class FakeRaster:
    def __init__(self, frame):
        self.frame = frame
        self.closed = False

    def capture(self):
        return self.frame

    def close(self):
        self.closed = True


class FakeVideoTrack:
    """Video track whose rasters return ``frame``."""

    def __init__(self, frame=None, fail=False):
        self.frame = np.zeros((180, 240, 3), dtype=np.uint8) if frame is None else frame
        self.fail = fail
        self.rasters = []

    def open_raster(self, width, height):
        if self.fail:
            raise RuntimeError("Camera 0 could not be opened")
        raster = FakeRaster(self.frame)
        self.rasters.append(raster)
        return raster

    def set_frame(self, frame):
        self.frame = frame
        for raster in self.rasters:
            raster.frame = frame


class UnconfirmedRecorder(EventEmitter):
    """Recorder that never reports STOPPING after stop()."""

    def __init__(self):
        super().__init__()
        self.stop_calls = 0
        self.start_calls = 0

    def start(self):
        self.start_calls += 1
        self.emit(RECORDING_UPDATE, RecorderState.RECORDING)

    def stop(self):
        self.stop_calls += 1


@pytest.fixture
def clock():
    """Provide a manually advanced clock."""
    return FakeClock()


@pytest.fixture
def thresholds():
    """Default limits with sampling too slow to tick on its own during a test."""
    return Thresholds(sample_interval_ms=60000, duration_tick_ms=60000)


@pytest.fixture
def recorder():
    """Provide a local recorder that records emitted states."""
    recorder = LocalRecorder()
    recorder.events = []
    recorder.subscribe(RECORDING_UPDATE, recorder.events.append)
    return recorder


@pytest.fixture
def unconfirmed_recorder():
    return UnconfirmedRecorder()


@pytest.fixture
def quiet_samples():
    return np.full(2048, 0.01, dtype=np.float32)


@pytest.fixture
def loud_samples():
    t = np.arange(2048) / 16000
    return (0.5 * np.sin(2 * np.pi * 440 * t)).astype(np.float32)


@pytest.fixture
def audio_track(quiet_samples):
    """Audio track that starts out silent."""
    return FakeAudioTrack(quiet_samples)


@pytest.fixture
def video_track():
    """Video track that starts out dark."""
    return FakeVideoTrack(np.zeros((180, 240, 3), dtype=np.uint8))


@pytest.fixture
def dark_frame():
    return np.full((480, 640, 3), 20, dtype=np.uint8)


@pytest.fixture
def bright_frame():
    return np.full((480, 640, 3), 200, dtype=np.uint8)


@pytest.fixture
def make_audio_track():
    return FakeAudioTrack


@pytest.fixture
def make_video_track():
    return FakeVideoTrack
