"""CLI utilities for Survey Recorder.

This module provides common CLI utilities like the themed Rich console and
the renderables used by the live status display.
"""

import os
from contextlib import contextmanager
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.theme import Theme

from survey_recorder.core.config import Thresholds
from survey_recorder.core.processing import calculate_db_level
from survey_recorder.core.status import StatusSnapshot

# Create themed console for consistent output
_theme = Theme(
    {
        "info": "cyan",
        "success": "green",
        "warning": "yellow",
        "error": "bold red",
        "debug": "dim white",
    }
)

console = Console(theme=_theme)


def make_device_table(devices: List[dict]) -> Table:
    """Build a Rich Table from the device list returned by list_input_devices().

    Args:
        devices: List of dicts with keys: id, name, driver, channels, rate, is_default

    Returns:
        Configured Rich Table ready to print.
    """
    table = Table(show_header=True, header_style="bold", show_lines=False, expand=False)
    table.add_column("ID", style="cyan", width=4, justify="right")
    table.add_column("Name", min_width=30)
    table.add_column("Driver", style="dim", width=8)
    table.add_column("Ch", justify="right", style="dim", width=4)
    table.add_column("Rate", justify="right", style="dim", width=12)
    table.add_column("", width=9)

    for d in devices:
        default_mark = "[bold green]DEFAULT[/bold green]" if d.get("is_default") else ""
        table.add_row(
            str(d["id"]),
            d["name"],
            d.get("driver", "").upper(),
            str(d.get("channels", "")),
            f"{d.get('rate', '')} Hz",
            default_mark,
        )
    return table


def make_threshold_table(thresholds: Thresholds, source: Optional[Path] = None) -> Table:
    """Build a two-column table of the thresholds in effect."""
    table = Table(show_header=True, header_style="bold", expand=False)
    table.add_column("Setting", style="cyan")
    table.add_column("Value", justify="right")

    table.add_row("Silence RMS", f"{thresholds.silence_rms:g}")
    table.add_row("Minimum brightness", f"{thresholds.brightness_min:g}")
    table.add_row("Sample interval", f"{thresholds.sample_interval_ms} ms")
    table.add_row("Audio window", f"{thresholds.buffer_length} / {thresholds.segment_length} samples")
    table.add_row("Raster", f"{thresholds.raster_width}x{thresholds.raster_height}")
    table.add_row("Minimum take", f"{thresholds.min_record_seconds} s")
    table.add_row("Maximum take", f"{thresholds.max_record_seconds} s")
    table.add_row("Source", str(source) if source else "[dim]defaults[/dim]")
    return table


def draw_level_bar(value: float, maximum: float, width: int = 30) -> str:
    """Create a visual bar for a value between 0 and ``maximum``."""
    ratio = max(0.0, min(1.0, value / maximum)) if maximum else 0.0
    filled = int(ratio * width)
    return '█' * filled + '░' * (width - filled)


def format_duration(seconds: int) -> str:
    minutes, secs = divmod(max(0, seconds), 60)
    return f"{minutes:02}:{secs:02}"


def make_status_panel(status: StatusSnapshot, thresholds: Thresholds) -> Panel:
    """Render one status snapshot as the live recording panel."""
    grid = Table.grid(padding=(0, 1))
    grid.add_column(style="dim", justify="right")
    grid.add_column()

    style = "success" if not status.faults else "warning"
    grid.add_row("Status:", f"[{style}]{status.message}[/{style}]")

    if status.audio_rms is None:
        grid.add_row("Audio:", "[dim]not monitored[/dim]")
    else:
        db_level = calculate_db_level([status.audio_rms])
        grid.add_row(
            "Audio:",
            f"{draw_level_bar(db_level, 120)} {db_level:5.1f} dB (RMS {status.audio_rms:.3f})",
        )

    if status.brightness is None:
        grid.add_row("Video:", "[dim]not monitored[/dim]")
    else:
        grid.add_row(
            "Video:",
            f"{draw_level_bar(status.brightness, 1.0)} brightness {status.brightness:.2f} "
            f"(min {thresholds.brightness_min:g})",
        )

    if status.recording:
        toggle = "[dim]locked[/dim]" if status.toggle_disabled else "[success]Ctrl+C to stop[/success]"
        grid.add_row(
            "Recording:",
            f"[bold red]● {format_duration(status.elapsed_seconds)}[/bold red] "
            f"/ {format_duration(thresholds.max_record_seconds)}  {toggle}",
        )

    return Panel(grid, title="[bold]🎥 Capture Check[/bold]", border_style="green" if not status.faults else "yellow")


@contextmanager
def suppress_stderr():
    """Context manager to suppress stderr output from libraries like ALSA, JACK.

    Used to hide debug/warning messages from audio subsystems that pollute
    terminal output.
    """
    # Save original stderr file descriptor
    original_stderr_fd = os.dup(2)
    try:
        # Open /dev/null and redirect stderr to it
        null_fd = os.open(os.devnull, os.O_WRONLY)
        os.dup2(null_fd, 2)
        os.close(null_fd)
        yield
    finally:
        # Restore original stderr
        os.dup2(original_stderr_fd, 2)
        os.close(original_stderr_fd)


__all__ = [
    "console",
    "suppress_stderr",
    "make_device_table",
    "make_threshold_table",
    "make_status_panel",
    "draw_level_bar",
    "format_duration",
]
