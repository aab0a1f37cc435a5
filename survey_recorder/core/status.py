"""User-facing status for Survey Recorder.

:class:`StatusPresenter` turns the fault set and the lifecycle state into
what the recording screen shows: one guidance message, whether the record
toggle is disabled, and the elapsed duration.
"""

from dataclasses import dataclass
from typing import Dict, Optional, Tuple, Union

from .config import Thresholds
from .faults import FaultAggregator, FaultKind, FaultSet
from .lifecycle import LifecycleState, RecordingLifecycleController

OK = "ok"

MESSAGES: Dict[Union[str, FaultKind], str] = {
    OK: "Ensure your head and shoulders are in shot. Hit record when you are ready.",
    FaultKind.LOW_BRIGHTNESS: "You seem to be in a dark room, please try turning on the lights.",
    FaultKind.SILENCE: "Your voice is not loud enough. Please speak loud and clearly.",
}


@dataclass(frozen=True)
class StatusSnapshot:
    """Everything the recording screen renders for one refresh."""

    message: str
    toggle_disabled: bool
    elapsed_seconds: int
    recording: bool
    faults: Tuple[FaultKind, ...]
    audio_rms: Optional[float] = None
    brightness: Optional[float] = None


class StatusPresenter:
    def __init__(self, thresholds: Optional[Thresholds] = None) -> None:
        self._thresholds = thresholds or Thresholds()

    @staticmethod
    def message(fault_set: FaultSet) -> str:
        """Message for the most recently raised fault, or the ok message."""
        last = fault_set.last
        return MESSAGES[OK] if last is None else MESSAGES[last]

    def toggle_disabled(
        self,
        state: LifecycleState,
        elapsed_seconds: int,
        recording_disabled: bool,
    ) -> bool:
        """Whether the record toggle must be greyed out."""
        too_short = (
            state is LifecycleState.RECORDING
            and elapsed_seconds <= self._thresholds.min_record_seconds
        )
        return too_short or recording_disabled

    def snapshot(
        self,
        aggregator: FaultAggregator,
        controller: RecordingLifecycleController,
        audio_rms: Optional[float] = None,
        brightness: Optional[float] = None,
    ) -> StatusSnapshot:
        faults = aggregator.current()
        elapsed = controller.elapsed_seconds
        return StatusSnapshot(
            message=self.message(faults),
            toggle_disabled=self.toggle_disabled(
                controller.state, elapsed, controller.recording_disabled
            ),
            elapsed_seconds=elapsed,
            recording=controller.recording,
            faults=tuple(faults),
            audio_rms=audio_rms,
            brightness=brightness,
        )
