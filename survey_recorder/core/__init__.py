"""Core business logic for Survey Recorder."""

from .capture import (
    CameraTrack,
    LocalParticipant,
    LocalRecorder,
    MicrophoneTrack,
    detect_driver_type,
    list_input_devices,
)
from .config import AppConfig, Thresholds
from .events import EventEmitter, Subscription
from .faults import FaultAggregator, FaultKind, FaultSet
from .lifecycle import LifecycleState, RecordingLifecycleController
from .media import RecorderState
from .processing import brightness, calculate_db_level, is_silent, segment_rms
from .sampling import AudioMonitor, SamplingScheduler, VideoMonitor
from .session import SurveySession
from .status import MESSAGES, StatusPresenter, StatusSnapshot

__all__ = [
    "AppConfig",
    "Thresholds",
    "EventEmitter",
    "Subscription",
    "FaultAggregator",
    "FaultKind",
    "FaultSet",
    "LifecycleState",
    "RecordingLifecycleController",
    "RecorderState",
    "AudioMonitor",
    "VideoMonitor",
    "SamplingScheduler",
    "StatusPresenter",
    "StatusSnapshot",
    "MESSAGES",
    "SurveySession",
    "MicrophoneTrack",
    "CameraTrack",
    "LocalRecorder",
    "LocalParticipant",
    "is_silent",
    "segment_rms",
    "brightness",
    "calculate_db_level",
    "detect_driver_type",
    "list_input_devices",
]
