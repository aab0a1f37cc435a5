"""Utility tests for Survey Recorder."""

from survey_recorder.cli.utils import (
    console,
    draw_level_bar,
    format_duration,
    make_status_panel,
)
from survey_recorder.core.config import Thresholds
from survey_recorder.core.faults import FaultKind
from survey_recorder.core.status import MESSAGES, StatusSnapshot


def test_console_available():
    """Test that console is available."""
    assert console is not None
    assert hasattr(console, 'print')


def test_draw_level_bar():
    assert draw_level_bar(0, 1.0, width=10) == '░' * 10
    assert draw_level_bar(0.5, 1.0, width=10) == '█' * 5 + '░' * 5
    assert draw_level_bar(5.0, 1.0, width=4) == '█' * 4


def test_format_duration():
    assert format_duration(0) == "00:00"
    assert format_duration(75) == "01:15"


def test_make_status_panel_renders():
    status = StatusSnapshot(
        message=MESSAGES[FaultKind.SILENCE],
        toggle_disabled=True,
        elapsed_seconds=12,
        recording=True,
        faults=(FaultKind.SILENCE,),
        audio_rms=0.01,
        brightness=0.55,
    )
    with console.capture() as capture:
        console.print(make_status_panel(status, Thresholds()))
    output = capture.get()
    assert "not loud enough" in output
    assert "00:12" in output
    assert "locked" in output
