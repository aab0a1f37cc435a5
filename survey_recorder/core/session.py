"""Survey session wiring for Survey Recorder.

:class:`SurveySession` is the monitoring component mounted for one self
participant. It owns the fault aggregator, the sampling scheduler, the
lifecycle controller and the presenter, and tears all of them down on
:meth:`close`.

Example::

    async with SurveySession(participant) as session:
        session.request_start()
        while True:
            status = session.status()
            render(status.message, status.toggle_disabled, status.elapsed_seconds)
            await asyncio.sleep(0.2)
"""

import time
from typing import Any, Callable, Dict, List, Mapping, Optional

from loguru import logger

from .config import Thresholds
from .events import Subscription
from .faults import FaultAggregator
from .lifecycle import RecordingLifecycleController
from .media import AUDIO_UPDATE, VIDEO_UPDATE, SelfParticipant
from .sampling import SamplingScheduler
from .status import StatusPresenter, StatusSnapshot

# Presentation-layer settings stored for the UI, never read by the core
UIStates = Dict[str, Any]


class SurveySession:
    """Capture-quality monitoring and recording policy for a self participant.

    Args:
        participant: Local participant providing tracks and the recorder.
        thresholds: Detection thresholds and duration limits.
        clock: Optional monotonic time source for the lifecycle controller.
    """

    def __init__(
        self,
        participant: SelfParticipant,
        thresholds: Optional[Thresholds] = None,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        self._participant = participant
        self._thresholds = thresholds or Thresholds()
        self.aggregator = FaultAggregator()
        self.scheduler = SamplingScheduler(self.aggregator, self._thresholds)
        self.controller = RecordingLifecycleController(
            participant.recording, self._thresholds, clock=clock or time.monotonic
        )
        self.presenter = StatusPresenter(self._thresholds)
        self._subscriptions: List[Subscription] = []
        self._ui_states: UIStates = {}

    @property
    def active(self) -> bool:
        return bool(self._subscriptions)

    async def __aenter__(self) -> "SurveySession":
        self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self.close()

    def start(self) -> None:
        """Mount: follow the participant and recorder and start sampling.

        Must be called from a running event loop.
        """
        if self.active:
            return
        participant = self._participant
        self._subscriptions = [
            participant.subscribe(AUDIO_UPDATE, self._on_audio_update),
            participant.subscribe(VIDEO_UPDATE, self._on_video_update),
        ]
        self.controller.start()
        self.scheduler.set_audio(participant.audio_enabled, participant.audio_track)
        self.scheduler.set_video(participant.video_enabled, participant.video_track)
        logger.info("Survey session started")

    def close(self) -> None:
        """Unmount: cancel subscriptions, sampling and the duration ticker."""
        for subscription in self._subscriptions:
            self._participant.cancel(subscription)
        self._subscriptions = []
        self.scheduler.close()
        self.controller.close()
        logger.info("Survey session closed")

    def _on_audio_update(self, enabled: bool) -> None:
        self.scheduler.set_audio(enabled, self._participant.audio_track)

    def _on_video_update(self, enabled: bool) -> None:
        self.scheduler.set_video(enabled, self._participant.video_track)

    def status(self) -> StatusSnapshot:
        audio = self.scheduler.audio
        video = self.scheduler.video
        return self.presenter.snapshot(
            self.aggregator,
            self.controller,
            audio_rms=audio.reading if audio is not None else None,
            brightness=video.reading if video is not None else None,
        )

    def request_start(self) -> bool:
        return self.controller.request_start()

    def request_stop(self) -> bool:
        return self.controller.request_stop()

    @property
    def ui_states(self) -> UIStates:
        return self._ui_states

    def update_ui_states(self, states: Mapping[str, Any]) -> None:
        """Replace the stored UI settings as given."""
        self._ui_states = dict(states)
