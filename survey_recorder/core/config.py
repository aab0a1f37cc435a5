"""Configuration management for Survey Recorder.

This module provides the capture-quality and recording-policy constants and
the :class:`AppConfig` class which merges defaults with values from an
optional YAML file (``.survey-recorder.yml`` in the working directory).

Monitoring constants
--------------------
- ``SILENCE_RMS``         – per-segment RMS at or below which audio is silent
- ``BRIGHTNESS_MIN``      – normalised luma below which video is too dark
- ``SAMPLE_INTERVAL_MS``  – cadence of the audio and video sampling tasks
- ``BUFFER_LENGTH``       – samples in one audio analysis window
- ``SEGMENT_LENGTH``      – samples per RMS segment inside the window
- ``RASTER_WIDTH`` / ``RASTER_HEIGHT`` – size frames are resampled to

Recording constants
-------------------
- ``MIN_RECORD_SECONDS``  – manual stop is refused up to this many seconds
- ``MAX_RECORD_SECONDS``  – the recorder is stopped automatically here
- ``DURATION_TICK_MS``    – how often the elapsed duration is recomputed

Configuration file
------------------
All constants above can be overridden via ``.survey-recorder.yml`` placed in
the project root:

.. code-block:: yaml

    monitoring:
      silence_rms: 0.05
      brightness_min: 0.4
      sample_interval_ms: 1000
    recording:
      min_record_seconds: 15
      max_record_seconds: 60
    devices:
      audio_device_id: 3
      camera_index: 0
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

# Capture quality thresholds
SILENCE_RMS = 0.05
BRIGHTNESS_MIN = 0.4
SAMPLE_INTERVAL_MS = 1000
BUFFER_LENGTH = 2048
SEGMENT_LENGTH = 1024
RASTER_WIDTH = 240
RASTER_HEIGHT = 180

# Recording duration policy
MIN_RECORD_SECONDS = 15
MAX_RECORD_SECONDS = 60
DURATION_TICK_MS = 500

# Local capture devices
RATE = 16000
CAMERA_INDEX = 0

CONFIG_FILE = '.survey-recorder.yml'

_MONITORING_KEYS = (
    'silence_rms', 'brightness_min', 'sample_interval_ms',
    'buffer_length', 'segment_length', 'raster_width', 'raster_height',
)
_RECORDING_KEYS = ('min_record_seconds', 'max_record_seconds', 'duration_tick_ms')
_DEVICE_KEYS = ('audio_device_id', 'camera_index', 'rate')
_INTEGER_FIELDS = (
    'sample_interval_ms', 'buffer_length', 'segment_length', 'raster_width',
    'raster_height', 'min_record_seconds', 'max_record_seconds', 'duration_tick_ms',
)


@dataclass(frozen=True)
class Thresholds:
    """Fixed limits shared by the sampling tasks, lifecycle and presenter."""

    silence_rms: float = SILENCE_RMS
    brightness_min: float = BRIGHTNESS_MIN
    sample_interval_ms: int = SAMPLE_INTERVAL_MS
    buffer_length: int = BUFFER_LENGTH
    segment_length: int = SEGMENT_LENGTH
    raster_width: int = RASTER_WIDTH
    raster_height: int = RASTER_HEIGHT
    min_record_seconds: int = MIN_RECORD_SECONDS
    max_record_seconds: int = MAX_RECORD_SECONDS
    duration_tick_ms: int = DURATION_TICK_MS

    def __post_init__(self) -> None:
        for name in _INTEGER_FIELDS:
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{name} must be a whole number, got {value!r}")
        if not 0 < self.silence_rms <= 1:
            raise ValueError(f"silence_rms ({self.silence_rms}) must be in (0, 1]")
        if not 0 <= self.brightness_min <= 1:
            raise ValueError(f"brightness_min ({self.brightness_min}) must be in [0, 1]")
        if self.segment_length <= 0 or self.buffer_length < self.segment_length:
            raise ValueError(
                f"buffer_length ({self.buffer_length}) must hold at least one "
                f"segment of {self.segment_length} samples"
            )
        if self.sample_interval_ms <= 0 or self.duration_tick_ms <= 0:
            raise ValueError("sample_interval_ms and duration_tick_ms must be positive")
        if self.raster_width <= 0 or self.raster_height <= 0:
            raise ValueError("raster size must be positive")
        if not 0 <= self.min_record_seconds < self.max_record_seconds:
            raise ValueError(
                f"min_record_seconds ({self.min_record_seconds}) must be below "
                f"max_record_seconds ({self.max_record_seconds})"
            )

    @property
    def sample_interval(self) -> float:
        """Sampling cadence in seconds."""
        return self.sample_interval_ms / 1000

    @property
    def duration_tick(self) -> float:
        """Duration ticker cadence in seconds."""
        return self.duration_tick_ms / 1000

    @property
    def raster_size(self) -> tuple:
        return (self.raster_width, self.raster_height)


class AppConfig:
    """Application configuration management."""

    def __init__(self) -> None:
        """Initialize configuration with defaults."""
        self._config: Dict[str, Any] = {
            'silence_rms': SILENCE_RMS,
            'brightness_min': BRIGHTNESS_MIN,
            'sample_interval_ms': SAMPLE_INTERVAL_MS,
            'buffer_length': BUFFER_LENGTH,
            'segment_length': SEGMENT_LENGTH,
            'raster_width': RASTER_WIDTH,
            'raster_height': RASTER_HEIGHT,
            'min_record_seconds': MIN_RECORD_SECONDS,
            'max_record_seconds': MAX_RECORD_SECONDS,
            'duration_tick_ms': DURATION_TICK_MS,
            'audio_device_id': None,
            'camera_index': CAMERA_INDEX,
            'rate': RATE,
        }
        self._source: Optional[Path] = None
        self._load_yaml_config()

    def _load_yaml_config(self) -> None:
        """Load optional YAML configuration from project root."""
        config_path = Path.cwd() / CONFIG_FILE
        if not config_path.exists():
            return

        content = yaml.safe_load(config_path.read_text(encoding='utf-8'))
        if not content:
            return

        if not isinstance(content, dict):
            raise ValueError(f"Configuration in {CONFIG_FILE} must be a mapping")

        for section, keys in (
            ('monitoring', _MONITORING_KEYS),
            ('recording', _RECORDING_KEYS),
            ('devices', _DEVICE_KEYS),
        ):
            section_config = content.get(section)
            if section_config is None:
                continue
            if not isinstance(section_config, dict):
                raise ValueError(f"Section '{section}' in {CONFIG_FILE} must be a mapping")
            for key in keys:
                if key in section_config:
                    self._config[key] = section_config[key]

        self._source = config_path

    @property
    def source(self) -> Optional[Path]:
        """Path of the YAML file that was loaded, if any."""
        return self._source

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value.

        Args:
            key: Configuration key
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        return self._config.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """Set configuration value.

        Args:
            key: Configuration key
            value: Configuration value
        """
        self._config[key] = value

    def get_thresholds(self) -> Thresholds:
        """Build the validated :class:`Thresholds` from the merged values.

        Raises:
            ValueError: If a value has the wrong type or violates a limit.
        """
        try:
            return Thresholds(
                silence_rms=float(self._config['silence_rms']),
                brightness_min=float(self._config['brightness_min']),
                sample_interval_ms=self._config['sample_interval_ms'],
                buffer_length=self._config['buffer_length'],
                segment_length=self._config['segment_length'],
                raster_width=self._config['raster_width'],
                raster_height=self._config['raster_height'],
                min_record_seconds=self._config['min_record_seconds'],
                max_record_seconds=self._config['max_record_seconds'],
                duration_tick_ms=self._config['duration_tick_ms'],
            )
        except (TypeError, ValueError) as error:
            raise ValueError(f"Invalid threshold in {CONFIG_FILE}: {error}") from error
