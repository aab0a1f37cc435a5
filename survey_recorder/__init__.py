"""Survey Recorder - capture-quality monitoring for self-recorded video answers.

This package checks that a live capture is audible and well lit while a user
records a video survey answer, and enforces the minimum and maximum length of
each take.
"""

from .cli.commands import app

__version__ = "1.0.0"
__author__ = "Survey Recorder Team"

__all__ = ["app", "__version__"]
