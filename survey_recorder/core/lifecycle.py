"""Recording lifecycle for Survey Recorder.

:class:`RecordingLifecycleController` follows the recorder's
``recordingUpdate`` events, measures how long the current take has been
running and applies the duration policy: a take cannot be stopped by hand
until it is longer than ``min_record_seconds`` and is stopped automatically
once it reaches ``max_record_seconds``.
"""

import asyncio
import time
from enum import Enum
from typing import Callable, Optional

from loguru import logger

from .config import Thresholds
from .events import Subscription
from .media import RECORDING_UPDATE, Recorder, RecorderState


class LifecycleState(Enum):
    IDLE = "idle"
    RECORDING = "recording"
    # Transient, collapses to IDLE as soon as it is entered
    STOPPING = "stopping"


class RecordingLifecycleController:
    """State machine driven by recorder events and a duration ticker.

    Args:
        recorder: Recorder to follow and to stop at the maximum duration.
        thresholds: Duration limits and ticker cadence.
        clock: Monotonic time source in seconds.
    """

    def __init__(
        self,
        recorder: Recorder,
        thresholds: Optional[Thresholds] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._recorder = recorder
        self._thresholds = thresholds or Thresholds()
        self._clock = clock
        self._state = LifecycleState.IDLE
        self._started_at: Optional[float] = None
        self._recording_disabled = False
        self._subscription: Optional[Subscription] = None
        self._ticker: Optional[asyncio.Task] = None

    # ------------------------------------------------------------------
    # Subscription scope
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Begin following the recorder's ``recordingUpdate`` events.

        A take still running from before a :meth:`close` keeps its start
        time and gets its duration ticker back.
        """
        if self._subscription is None:
            self._subscription = self._recorder.subscribe(
                RECORDING_UPDATE, self._on_recording_update
            )
        if self.recording and self._ticker is None:
            self._start_ticker()

    def close(self) -> None:
        """Stop following the recorder and cancel the duration ticker."""
        if self._subscription is not None:
            self._recorder.cancel(self._subscription)
            self._subscription = None
        self._stop_ticker()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> LifecycleState:
        return self._state

    @property
    def recording(self) -> bool:
        return self._state is LifecycleState.RECORDING

    @property
    def started_at(self) -> Optional[float]:
        """Clock reading when the current take started, ``None`` when idle."""
        return self._started_at

    @property
    def elapsed_seconds(self) -> int:
        """Whole seconds since the take started; 0 when idle."""
        if self._started_at is None:
            return 0
        return max(0, int(self._clock() - self._started_at))

    @property
    def recording_disabled(self) -> bool:
        """True between an automatic stop and the recorder confirming it."""
        return self._recording_disabled

    @property
    def stop_allowed(self) -> bool:
        return (
            self.recording
            and not self._recording_disabled
            and self.elapsed_seconds > self._thresholds.min_record_seconds
        )

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def _on_recording_update(self, state: str) -> None:
        if state == RecorderState.RECORDING:
            self._enter_recording()
        elif state == RecorderState.STOPPING:
            self._enter_stopping()

    def _enter_recording(self) -> None:
        self._state = LifecycleState.RECORDING
        self._started_at = self._clock()
        self._start_ticker()
        logger.info("Recording started")

    def _enter_stopping(self) -> None:
        self._state = LifecycleState.STOPPING
        self._started_at = None
        self._stop_ticker()
        self._recording_disabled = False
        self._state = LifecycleState.IDLE
        logger.info("Recording stopped")

    def tick(self) -> int:
        """Recompute the elapsed duration and enforce the maximum.

        Returns:
            Elapsed whole seconds of the current take
        """
        if not self.recording:
            return 0

        elapsed = self.elapsed_seconds
        if elapsed >= self._thresholds.max_record_seconds and not self._recording_disabled:
            self._recording_disabled = True
            logger.info(f"Maximum duration of {self._thresholds.max_record_seconds}s reached, stopping")
            try:
                self._recorder.stop()
            except Exception as error:
                logger.error(f"Error stopping recorder: {error}")
                self._recording_disabled = False
        return elapsed

    def request_start(self) -> bool:
        """Start a take from the manual toggle.

        Returns:
            True if the start command was sent to the recorder
        """
        if self._state is not LifecycleState.IDLE or self._recording_disabled:
            logger.info("Start request ignored: a take is already running")
            return False
        self._recorder.start()
        return True

    def request_stop(self) -> bool:
        """Stop the take from the manual toggle.

        Returns:
            True if the stop command was sent to the recorder
        """
        if not self.stop_allowed:
            logger.info(
                f"Stop request rejected at {self.elapsed_seconds}s "
                f"(minimum {self._thresholds.min_record_seconds}s)"
            )
            return False
        self._recorder.stop()
        return True

    # ------------------------------------------------------------------
    # Duration ticker
    # ------------------------------------------------------------------

    def _start_ticker(self) -> None:
        self._stop_ticker()
        self._ticker = asyncio.get_running_loop().create_task(self._run_ticker())

    def _stop_ticker(self) -> None:
        if self._ticker is not None:
            self._ticker.cancel()
            self._ticker = None

    async def _run_ticker(self) -> None:
        while True:
            await asyncio.sleep(self._thresholds.duration_tick)
            self.tick()
