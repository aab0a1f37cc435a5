"""Signal analysis for Survey Recorder.

This module provides the pure functions the sampling tasks run on every tick:
RMS-based silence detection for audio windows and luma-based brightness
estimation for video frames.
"""

from typing import Sequence, Tuple, Union

import cv2
import numpy as np

from .config import RASTER_HEIGHT, RASTER_WIDTH, SEGMENT_LENGTH, SILENCE_RMS

Samples = Union[Sequence[float], np.ndarray]

# Rec. 601 luma weights for R, G, B
LUMA_WEIGHTS = np.array([0.299, 0.587, 0.114], dtype=np.float32)


def segment_rms(samples: Samples, segment_length: int = SEGMENT_LENGTH) -> np.ndarray:
    """Compute the RMS of each complete segment of a sample window.

    Args:
        samples: Float samples in the range -1.0 to 1.0
        segment_length: Number of samples per segment

    Returns:
        One RMS value per segment; a trailing partial segment is dropped
    """
    audio_array = np.asarray(samples, dtype=np.float64)
    num_segments = audio_array.size // segment_length
    if num_segments == 0:
        return np.zeros(0, dtype=np.float64)

    segments = audio_array[:num_segments * segment_length].reshape(num_segments, segment_length)
    return np.sqrt(np.mean(segments ** 2, axis=1))


def is_silent(
    samples: Samples,
    segment_length: int = SEGMENT_LENGTH,
    threshold: float = SILENCE_RMS,
) -> bool:
    """Decide whether an analysis window is silent.

    The window is split into contiguous segments of ``segment_length``
    samples. It is silent only if every segment's RMS is at or below
    ``threshold``; the scan stops at the first loud segment.

    Args:
        samples: Float samples in the range -1.0 to 1.0
        segment_length: Number of samples per segment
        threshold: RMS at or below which a segment counts as silent

    Returns:
        True if no segment exceeds the threshold
    """
    audio_array = np.asarray(samples, dtype=np.float64)
    num_segments = audio_array.size // segment_length

    for i in range(num_segments):
        segment = audio_array[i * segment_length:(i + 1) * segment_length]
        rms = np.sqrt(np.mean(segment ** 2))
        if rms > threshold:
            return False

    return True


def calculate_db_level(samples: Samples) -> float:
    """Calculate dB level from float audio samples.

    Args:
        samples: Float samples in the range -1.0 to 1.0

    Returns:
        dB level (0-120 range)
    """
    audio_array = np.asarray(samples, dtype=np.float64)
    if audio_array.size == 0:
        return 0.0

    rms = np.sqrt(np.mean(audio_array ** 2))
    if rms <= 0:
        return 0.0

    # Full scale is 1.0, shift so that -120 dBFS maps to 0
    db = 20 * np.log10(rms) + 120
    return float(max(0.0, min(120.0, db)))


def _normalise_frame(frame: np.ndarray) -> np.ndarray:
    """Convert a frame to float32 in the range 0.0 to 1.0."""
    if np.issubdtype(frame.dtype, np.integer):
        return frame.astype(np.float32) / float(np.iinfo(frame.dtype).max)
    return np.clip(frame.astype(np.float32), 0.0, 1.0)


def brightness(
    frame: np.ndarray,
    size: Tuple[int, int] = (RASTER_WIDTH, RASTER_HEIGHT),
) -> float:
    """Estimate the brightness of a video frame.

    The frame is resampled to a fixed raster with area interpolation and the
    mean Rec. 601 luma is returned. Grayscale (H x W) and RGB/RGBA
    (H x W x 3/4) frames are accepted; alpha is ignored.

    Args:
        frame: Pixel buffer, integer or float in the range 0.0 to 1.0
        size: Raster (width, height) the frame is resampled to

    Returns:
        Normalised brightness, 0.0 for black and 1.0 for white
    """
    pixels = np.asarray(frame)
    if pixels.size == 0:
        return 0.0
    if pixels.ndim == 3 and pixels.shape[2] == 1:
        pixels = pixels[:, :, 0]
    if pixels.ndim == 3:
        pixels = pixels[:, :, :3]
    elif pixels.ndim != 2:
        raise ValueError(f"Unsupported frame shape: {pixels.shape}")

    raster = cv2.resize(
        np.ascontiguousarray(_normalise_frame(pixels)),
        size,
        interpolation=cv2.INTER_AREA,
    )

    if raster.ndim == 3:
        luma = raster @ LUMA_WEIGHTS
    else:
        luma = raster

    return float(np.clip(luma.mean(), 0.0, 1.0))
