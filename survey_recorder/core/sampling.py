"""Periodic capture-quality sampling for Survey Recorder.

Two independent monitors run on the asyncio loop, one per media kind:

:class:`AudioMonitor`
    Reads the latest analysis window from the microphone track every tick and
    raises :attr:`FaultKind.SILENCE` while the window is silent.

:class:`VideoMonitor`
    Captures the current frame from the camera track every tick and raises
    :attr:`FaultKind.LOW_BRIGHTNESS` while it is darker than the threshold.

Each monitor owns its capture handle and its periodic task. :meth:`close`
is the only teardown path: it cancels the task, releases the handle and
retracts the monitor's fault in one synchronous step.
:class:`SamplingScheduler` creates and tears down monitors as tracks are
enabled and disabled.
"""

import asyncio
from typing import Any, Optional

from loguru import logger

from .config import Thresholds
from .faults import FaultAggregator, FaultKind
from .media import AudioAnalyser, AudioTrack, FrameRaster, VideoTrack
from .processing import brightness, is_silent, segment_rms


class Monitor:
    """Base task record for one media kind."""

    kind: FaultKind

    def __init__(
        self,
        aggregator: FaultAggregator,
        handle: Any,
        thresholds: Thresholds,
    ) -> None:
        self._aggregator = aggregator
        self._handle = handle
        self._thresholds = thresholds
        self._task: Optional[asyncio.Task] = None
        self._closed = False
        self.reading: Optional[float] = None

    @property
    def closed(self) -> bool:
        return self._closed

    def start(self) -> None:
        """Schedule the periodic task on the running event loop."""
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._thresholds.sample_interval)
            self.tick()

    def tick(self) -> None:
        """Run one sampling pass and update the aggregator."""
        if self._closed:
            return
        try:
            faulty = self._measure()
        except Exception as error:
            logger.warning(f"{self.kind.value} sampling failed: {error}")
            faulty = False

        if faulty:
            self._aggregator.add(self.kind)
        else:
            self._aggregator.remove(self.kind)

    def _measure(self) -> bool:
        raise NotImplementedError

    def close(self) -> None:
        """Cancel the task, release the capture handle and retract the fault."""
        if self._closed:
            return
        self._closed = True
        if self._task is not None:
            self._task.cancel()
            self._task = None
        try:
            self._handle.close()
        except Exception as error:
            logger.warning(f"Error releasing {self.kind.value} capture resources: {error}")
        self._aggregator.remove(self.kind)
        logger.debug(f"{self.kind.value} monitor stopped")


class AudioMonitor(Monitor):
    """Silence detection on a live audio track."""

    kind = FaultKind.SILENCE
    _handle: AudioAnalyser

    def _measure(self) -> bool:
        samples = self._handle.read_samples()
        levels = segment_rms(samples, self._thresholds.segment_length)
        self.reading = float(levels.max()) if levels.size else 0.0
        return is_silent(
            samples,
            segment_length=self._thresholds.segment_length,
            threshold=self._thresholds.silence_rms,
        )

    @classmethod
    def open(
        cls,
        track: Optional[AudioTrack],
        aggregator: FaultAggregator,
        thresholds: Thresholds,
    ) -> Optional["AudioMonitor"]:
        """Acquire an analysis context on ``track``.

        Returns:
            The monitor, or ``None`` if the track is missing or cannot be opened
        """
        if track is None:
            logger.debug("No audio track available, skipping silence detection")
            return None
        try:
            handle = track.open_analyser(thresholds.buffer_length)
        except Exception as error:
            logger.warning(f"Silence detection disabled: {error}")
            return None
        return cls(aggregator, handle, thresholds)


class VideoMonitor(Monitor):
    """Brightness estimation on a live video track."""

    kind = FaultKind.LOW_BRIGHTNESS
    _handle: FrameRaster

    def _measure(self) -> bool:
        frame = self._handle.capture()
        if frame is None:
            self.reading = None
            return False
        self.reading = brightness(frame, self._thresholds.raster_size)
        return self.reading < self._thresholds.brightness_min

    @classmethod
    def open(
        cls,
        track: Optional[VideoTrack],
        aggregator: FaultAggregator,
        thresholds: Thresholds,
    ) -> Optional["VideoMonitor"]:
        """Acquire an offscreen raster on ``track``.

        Returns:
            The monitor, or ``None`` if the track is missing or cannot be opened
        """
        if track is None:
            logger.debug("No video track available, skipping brightness detection")
            return None
        try:
            handle = track.open_raster(thresholds.raster_width, thresholds.raster_height)
        except Exception as error:
            logger.warning(f"Brightness detection disabled: {error}")
            return None
        return cls(aggregator, handle, thresholds)


class SamplingScheduler:
    """Starts and stops the audio and video monitors independently."""

    def __init__(
        self,
        aggregator: FaultAggregator,
        thresholds: Optional[Thresholds] = None,
    ) -> None:
        self._aggregator = aggregator
        self._thresholds = thresholds or Thresholds()
        self._audio_enabled: Optional[bool] = None
        self._video_enabled: Optional[bool] = None
        self.audio: Optional[AudioMonitor] = None
        self.video: Optional[VideoMonitor] = None

    def set_audio(self, enabled: bool, track: Optional[AudioTrack]) -> None:
        """Apply an audio-enabled change; unchanged flags are ignored."""
        if enabled == self._audio_enabled:
            return
        self._audio_enabled = enabled
        self._close_audio()
        if not enabled:
            return

        self.audio = AudioMonitor.open(track, self._aggregator, self._thresholds)
        if self.audio is not None:
            self.audio.start()
            logger.debug("Silence detection started")

    def set_video(self, enabled: bool, track: Optional[VideoTrack]) -> None:
        """Apply a video-enabled change; unchanged flags are ignored."""
        if enabled == self._video_enabled:
            return
        self._video_enabled = enabled
        self._close_video()
        if not enabled:
            return

        self.video = VideoMonitor.open(track, self._aggregator, self._thresholds)
        if self.video is not None:
            self.video.start()
            logger.debug("Brightness detection started")

    def _close_audio(self) -> None:
        if self.audio is not None:
            self.audio.close()
            self.audio = None
        self._aggregator.remove(FaultKind.SILENCE)

    def _close_video(self) -> None:
        if self.video is not None:
            self.video.close()
            self.video = None
        self._aggregator.remove(FaultKind.LOW_BRIGHTNESS)

    def close(self) -> None:
        """Tear down both monitors and forget the enabled flags."""
        self._close_audio()
        self._close_video()
        self._audio_enabled = None
        self._video_enabled = None
