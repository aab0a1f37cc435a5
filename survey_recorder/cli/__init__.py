"""Command-line interface for Survey Recorder."""

from .commands import app

__all__ = ["app"]
