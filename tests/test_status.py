"""Status presenter tests for Survey Recorder."""

from survey_recorder.core.config import Thresholds
from survey_recorder.core.faults import FaultAggregator, FaultKind, FaultSet
from survey_recorder.core.lifecycle import LifecycleState
from survey_recorder.core.status import MESSAGES, OK, StatusPresenter


def test_message_for_empty_set_is_ok():
    assert StatusPresenter.message(FaultSet()) == MESSAGES[OK]
    assert "Hit record when you are ready" in MESSAGES[OK]


def test_message_shows_last_added_fault():
    """The most recently raised fault occludes earlier ones."""
    aggregator = FaultAggregator()

    aggregator.add(FaultKind.SILENCE)
    assert StatusPresenter.message(aggregator.current()) == MESSAGES[FaultKind.SILENCE]

    aggregator.add(FaultKind.LOW_BRIGHTNESS)
    assert StatusPresenter.message(aggregator.current()) == MESSAGES[FaultKind.LOW_BRIGHTNESS]

    aggregator.remove(FaultKind.LOW_BRIGHTNESS)
    assert StatusPresenter.message(aggregator.current()) == MESSAGES[FaultKind.SILENCE]


def test_exactly_three_messages():
    assert set(MESSAGES) == {OK, FaultKind.SILENCE, FaultKind.LOW_BRIGHTNESS}
    assert "dark room" in MESSAGES[FaultKind.LOW_BRIGHTNESS]
    assert "not loud enough" in MESSAGES[FaultKind.SILENCE]


def test_toggle_disabled_policy():
    presenter = StatusPresenter(Thresholds())

    assert presenter.toggle_disabled(LifecycleState.IDLE, 0, False) is False
    assert presenter.toggle_disabled(LifecycleState.RECORDING, 10, False) is True
    assert presenter.toggle_disabled(LifecycleState.RECORDING, 15, False) is True
    assert presenter.toggle_disabled(LifecycleState.RECORDING, 16, False) is False
    assert presenter.toggle_disabled(LifecycleState.RECORDING, 60, True) is True
    assert presenter.toggle_disabled(LifecycleState.IDLE, 0, True) is True


def test_toggle_disabled_uses_configured_minimum():
    presenter = StatusPresenter(Thresholds(min_record_seconds=5, max_record_seconds=10))
    assert presenter.toggle_disabled(LifecycleState.RECORDING, 5, False) is True
    assert presenter.toggle_disabled(LifecycleState.RECORDING, 6, False) is False
