"""Interfaces of the conferencing layer that Survey Recorder consumes.

The core never joins rooms or renders video itself. It only needs a self
participant with its audio/video tracks and a recorder, described here as
protocols so that SDK bindings, the local capture adapters and test fakes
can all be plugged in.
"""

from enum import Enum
from typing import Optional, Protocol

import numpy as np

from .events import Handler, Subscription

RECORDING_UPDATE = 'recordingUpdate'
AUDIO_UPDATE = 'audioUpdate'
VIDEO_UPDATE = 'videoUpdate'


class RecorderState(str, Enum):
    """Values carried by ``recordingUpdate`` events."""

    IDLE = 'IDLE'
    STARTING = 'STARTING'
    RECORDING = 'RECORDING'
    STOPPING = 'STOPPING'


class AudioAnalyser(Protocol):
    """Open analysis context on a live audio track."""

    def read_samples(self) -> np.ndarray:
        """Return the latest window of float samples in -1.0 to 1.0."""
        ...

    def close(self) -> None:
        ...


class FrameRaster(Protocol):
    """Open offscreen raster fed by a live video track."""

    def capture(self) -> Optional[np.ndarray]:
        """Return the current frame, or ``None`` if none is available yet."""
        ...

    def close(self) -> None:
        ...


class AudioTrack(Protocol):
    def open_analyser(self, buffer_length: int) -> AudioAnalyser:
        ...


class VideoTrack(Protocol):
    def open_raster(self, width: int, height: int) -> FrameRaster:
        ...


class EventSource(Protocol):
    def subscribe(self, event: str, handler: Handler) -> Subscription:
        ...

    def cancel(self, subscription: Subscription) -> None:
        ...


class Recorder(EventSource, Protocol):
    """Recorder emitting ``recordingUpdate`` with :class:`RecorderState` values."""

    def start(self) -> None:
        ...

    def stop(self) -> None:
        ...


class SelfParticipant(EventSource, Protocol):
    """Local participant emitting ``audioUpdate`` / ``videoUpdate`` with a bool."""

    audio_enabled: bool
    video_enabled: bool
    audio_track: Optional[AudioTrack]
    video_track: Optional[VideoTrack]
    recording: Recorder
