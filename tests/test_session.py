"""Survey session tests for Survey Recorder."""

import asyncio

from survey_recorder.core.capture import LocalParticipant, LocalRecorder
from survey_recorder.core.config import Thresholds
from survey_recorder.core.faults import FaultKind
from survey_recorder.core.media import AUDIO_UPDATE, RECORDING_UPDATE, VIDEO_UPDATE, RecorderState
from survey_recorder.core.session import SurveySession
from survey_recorder.core.status import MESSAGES, OK


def test_session_mount_and_unmount(audio_track, video_track, thresholds, clock):
    """Closing the session leaves no subscription, monitor or fault behind."""
    participant = LocalParticipant(audio_track=audio_track, video_track=video_track)

    async def scenario():
        async with SurveySession(participant, thresholds, clock=clock) as session:
            assert session.active
            assert participant.listener_count(AUDIO_UPDATE) == 1
            assert participant.listener_count(VIDEO_UPDATE) == 1
            assert participant.recording.listener_count(RECORDING_UPDATE) == 1

            session.scheduler.audio.tick()
            session.scheduler.video.tick()
            assert len(session.aggregator.current()) == 2

        assert not session.active
        assert participant.listener_count(AUDIO_UPDATE) == 0
        assert participant.listener_count(VIDEO_UPDATE) == 0
        assert participant.recording.listener_count(RECORDING_UPDATE) == 0
        assert session.scheduler.audio is None
        assert session.scheduler.video is None
        assert len(session.aggregator.current()) == 0
        assert audio_track.analysers[0].closed
        assert video_track.rasters[0].closed

    asyncio.run(scenario())


def test_status_follows_faults(audio_track, video_track, thresholds, clock, loud_samples):
    participant = LocalParticipant(audio_track=audio_track, video_track=video_track)

    async def scenario():
        async with SurveySession(participant, thresholds, clock=clock) as session:
            status = session.status()
            assert status.message == MESSAGES[OK]
            assert status.faults == ()
            assert status.audio_rms is None

            session.scheduler.audio.tick()
            assert session.status().message == MESSAGES[FaultKind.SILENCE]

            session.scheduler.video.tick()
            status = session.status()
            assert status.message == MESSAGES[FaultKind.LOW_BRIGHTNESS]
            assert status.faults == (FaultKind.SILENCE, FaultKind.LOW_BRIGHTNESS)
            assert status.brightness == 0.0

            audio_track.set_samples(loud_samples)
            session.scheduler.audio.tick()
            status = session.status()
            assert status.faults == (FaultKind.LOW_BRIGHTNESS,)
            assert status.audio_rms > 0.05

    asyncio.run(scenario())


def test_participant_toggles_restart_monitors(audio_track, video_track, thresholds, clock):
    """Muting the microphone retracts SILENCE without touching video."""
    participant = LocalParticipant(audio_track=audio_track, video_track=video_track)

    async def scenario():
        async with SurveySession(participant, thresholds, clock=clock) as session:
            session.scheduler.audio.tick()
            session.scheduler.video.tick()

            participant.set_audio_enabled(False)
            assert session.scheduler.audio is None
            assert list(session.aggregator.current()) == [FaultKind.LOW_BRIGHTNESS]
            assert not video_track.rasters[0].closed

            participant.set_audio_enabled(True)
            assert session.scheduler.audio is not None
            assert len(audio_track.analysers) == 2

            participant.set_video_enabled(False)
            assert len(session.aggregator.current()) == 0

    asyncio.run(scenario())


def test_session_without_tracks_reports_ok(thresholds, clock):
    participant = LocalParticipant()
    assert participant.audio_enabled is False

    async def scenario():
        async with SurveySession(participant, thresholds, clock=clock) as session:
            participant.set_audio_enabled(True)
            assert session.scheduler.audio is None
            assert session.status().message == MESSAGES[OK]

    asyncio.run(scenario())


def test_session_recording_policy(thresholds, clock):
    """Toggle state and elapsed time flow from the controller to the status."""
    recorder = LocalRecorder()
    participant = LocalParticipant(recording=recorder)

    async def scenario():
        async with SurveySession(participant, thresholds, clock=clock) as session:
            assert session.status().toggle_disabled is False
            assert session.request_start() is True
            assert recorder.state is RecorderState.RECORDING

            clock.advance(10)
            status = session.status()
            assert status.recording is True
            assert status.elapsed_seconds == 10
            assert status.toggle_disabled is True
            assert session.request_stop() is False

            clock.advance(6)
            assert session.status().toggle_disabled is False
            assert session.request_stop() is True
            assert recorder.state is RecorderState.IDLE

            status = session.status()
            assert status.recording is False
            assert status.elapsed_seconds == 0

    asyncio.run(scenario())


def test_remount_keeps_enforcing_maximum(clock):
    """A take that outlives an unmount is still stopped at 60 s after remounting."""
    thresholds = Thresholds(sample_interval_ms=60000, duration_tick_ms=10)
    recorder = LocalRecorder()
    participant = LocalParticipant(recording=recorder)

    async def scenario():
        session = SurveySession(participant, thresholds, clock=clock)
        session.start()
        assert session.request_start() is True
        session.close()

        clock.advance(20)
        session.start()
        assert session.controller.recording
        assert session.status().elapsed_seconds == 20

        clock.advance(41)
        await asyncio.sleep(0.1)
        assert recorder.state is RecorderState.IDLE
        assert session.status().recording is False
        session.close()

    asyncio.run(scenario())


def test_ui_states_pass_through(thresholds):
    session = SurveySession(LocalParticipant(), thresholds)
    assert session.ui_states == {}

    states = {"activeSettings": True, "nested": {"tab": "audio"}}
    session.update_ui_states(states)
    assert session.ui_states == states
