"""CLI commands for Survey Recorder.

This module provides all command-line interface commands using Typer.
"""

import asyncio
import signal
import sys
from typing import Optional

import typer
from loguru import logger
from rich.live import Live
from rich.panel import Panel

from survey_recorder.cli.utils import (
    console,
    format_duration,
    make_device_table,
    make_status_panel,
    make_threshold_table,
    suppress_stderr,
)
from survey_recorder.core import (
    CameraTrack,
    LocalParticipant,
    MicrophoneTrack,
    SurveySession,
    Thresholds,
    list_input_devices,
)
from survey_recorder.core.config import AppConfig, CAMERA_INDEX, RATE
from survey_recorder.core.media import RECORDING_UPDATE, RecorderState

app = typer.Typer(help="Capture-quality checks and guarded recording takes for video surveys")

app_config = AppConfig()
default_device_id = app_config.get("audio_device_id")
default_camera = int(app_config.get("camera_index", CAMERA_INDEX))
default_rate = int(app_config.get("rate", RATE))


def _configure_logging(verbose: bool) -> None:
    """Route loguru to stderr at DEBUG with --verbose, WARNING otherwise."""
    logger.remove()
    if verbose:
        logger.add(sys.stderr, level="DEBUG")
    else:
        logger.add(sys.stderr, level="WARNING")


def _build_participant(
    audio: bool,
    video: bool,
    device_id: Optional[int],
    camera: int,
    rate: int,
) -> LocalParticipant:
    return LocalParticipant(
        audio_track=MicrophoneTrack(device_id=device_id, rate=rate) if audio else None,
        video_track=CameraTrack(index=camera) if video else None,
    )


async def _run_check(
    participant: LocalParticipant,
    thresholds: Thresholds,
    duration: Optional[int],
    interval: float,
) -> None:
    loop = asyncio.get_running_loop()
    async with SurveySession(participant, thresholds) as session:
        started = loop.time()
        with Live(make_status_panel(session.status(), thresholds), console=console,
                  refresh_per_second=4, screen=False) as live:
            while duration is None or loop.time() - started < duration:
                await asyncio.sleep(interval)
                live.update(make_status_panel(session.status(), thresholds))


async def _run_take(
    participant: LocalParticipant,
    thresholds: Thresholds,
    interval: float,
) -> int:
    """Run one take until the recorder returns to idle.

    Returns:
        Elapsed seconds shown when the take ended
    """
    loop = asyncio.get_running_loop()
    finished = asyncio.Event()
    recorder = participant.recording

    def on_recording_update(state: str) -> None:
        if state == RecorderState.IDLE:
            finished.set()

    async with SurveySession(participant, thresholds) as session:
        subscription = recorder.subscribe(RECORDING_UPDATE, on_recording_update)

        def on_interrupt() -> None:
            if session.request_stop():
                return
            elapsed_now = session.status().elapsed_seconds
            if elapsed_now <= thresholds.min_record_seconds:
                remaining = thresholds.min_record_seconds - elapsed_now + 1
                console.print(
                    f"[warning]⏳ Too short to stop, keep going for {remaining}s more[/warning]"
                )

        loop.add_signal_handler(signal.SIGINT, on_interrupt)
        elapsed = 0
        try:
            session.request_start()
            with Live(make_status_panel(session.status(), thresholds), console=console,
                      refresh_per_second=4, screen=False) as live:
                while not finished.is_set():
                    status = session.status()
                    elapsed = max(elapsed, status.elapsed_seconds)
                    live.update(make_status_panel(status, thresholds))
                    try:
                        await asyncio.wait_for(finished.wait(), timeout=interval)
                    except asyncio.TimeoutError:
                        pass
        finally:
            loop.remove_signal_handler(signal.SIGINT)
            recorder.cancel(subscription)
    return elapsed


def _load_thresholds() -> Thresholds:
    try:
        return app_config.get_thresholds()
    except ValueError as e:
        console.print(f"[error]✗ {e}[/error]")
        sys.exit(1)


@app.command()
def list_devices(
    driver: Optional[str] = typer.Option(
        None, help="Filter by driver type: pulse, alsa, jack, usb, default"
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Show debug output from audio libraries"
    ),
):
    """List all available input audio devices."""
    if verbose:
        devices = list_input_devices(driver_filter=driver)
    else:
        with suppress_stderr():
            devices = list_input_devices(driver_filter=driver)

    title = "Available Input Devices"
    if driver:
        title += f" (filtered by: {driver})"
    console.print(Panel(make_device_table(devices), title=f"[bold]{title}[/bold]"))


@app.command()
def check(
    duration: Optional[int] = typer.Option(
        None, help="Check duration in seconds. Leave empty to run until Ctrl+C."
    ),
    device_id: Optional[int] = typer.Option(default_device_id, help="Audio input device ID"),
    camera: int = typer.Option(default_camera, help="Camera index for OpenCV"),
    rate: int = typer.Option(default_rate, help="Sample rate in Hz"),
    audio: bool = typer.Option(True, "--audio/--no-audio", help="Check microphone loudness"),
    video: bool = typer.Option(True, "--video/--no-video", help="Check camera brightness"),
    interval: float = typer.Option(0.25, help="Refresh interval in seconds"),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Show debug output from audio libraries"
    ),
):
    """Check that the microphone is loud enough and the camera bright enough."""
    _configure_logging(verbose)
    thresholds = _load_thresholds()
    participant = _build_participant(audio, video, device_id, camera, rate)

    console.print("[info]Checking capture quality. Press Ctrl+C to stop.[/info]")
    try:
        asyncio.run(_run_check(participant, thresholds, duration, interval))
    except KeyboardInterrupt:
        console.print("\n[warning]⏹ Check stopped by user[/warning]")
        return
    console.print("[success]✓ Check completed[/success]")


@app.command()
def record(
    device_id: Optional[int] = typer.Option(default_device_id, help="Audio input device ID"),
    camera: int = typer.Option(default_camera, help="Camera index for OpenCV"),
    rate: int = typer.Option(default_rate, help="Sample rate in Hz"),
    audio: bool = typer.Option(True, "--audio/--no-audio", help="Check microphone loudness"),
    video: bool = typer.Option(True, "--video/--no-video", help="Check camera brightness"),
    interval: float = typer.Option(0.25, help="Refresh interval in seconds"),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Show debug output from audio libraries"
    ),
):
    """Rehearse a recording take with the minimum and maximum duration enforced.

    Ctrl+C stops the take once it is longer than the minimum duration; the
    take stops by itself at the maximum. Nothing is saved.
    """
    _configure_logging(verbose)
    thresholds = _load_thresholds()
    participant = _build_participant(audio, video, device_id, camera, rate)

    console.print(
        f"[info]🎬 Take started: stop allowed after {thresholds.min_record_seconds}s, "
        f"automatic stop at {thresholds.max_record_seconds}s[/info]"
    )
    elapsed = asyncio.run(_run_take(participant, thresholds, interval))
    console.print(f"[success]✓ Take finished after {format_duration(elapsed)}[/success]")


@app.command()
def status(
    devices: bool = typer.Option(False, "--devices", help="Also list audio input devices"),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Show debug output from audio libraries"
    ),
):
    """Show the capture thresholds and recording limits in effect."""
    _configure_logging(verbose)

    console.rule("[bold]📋 Survey Recorder Status[/bold]")
    console.print()
    thresholds = _load_thresholds()
    console.print(Panel(
        make_threshold_table(thresholds, app_config.source),
        title="[bold]Thresholds[/bold]",
    ))

    if devices:
        try:
            if verbose:
                found = list_input_devices()
            else:
                with suppress_stderr():
                    found = list_input_devices()
            console.print(Panel(make_device_table(found), title="[bold]Available Input Devices[/bold]"))
        except Exception as e:
            console.print(f"[error]✗ Error listing devices: {e}[/error]")
