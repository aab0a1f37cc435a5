"""Local capture adapters for Survey Recorder.

These classes stand in for the conferencing SDK when the session runs on the
local machine, e.g. from the CLI:

:class:`MicrophoneTrack`
    PyAudio input stream. Audio is captured in PyAudio's callback thread
    into a rolling window that :meth:`MicrophoneAnalyser.read_samples`
    copies out on every sampling tick.

:class:`CameraTrack`
    OpenCV camera. A reader thread keeps only the latest frame, resampled to
    the analysis raster, so a sampling tick never waits on the device.

:class:`LocalRecorder` / :class:`LocalParticipant`
    In-process recorder and self participant emitting the same events as
    the SDK objects. Nothing is written to disk.
"""

import threading
from typing import Any, Dict, List, Optional

import cv2
import numpy as np
from loguru import logger

from .config import CAMERA_INDEX, RATE
from .events import EventEmitter
from .media import (
    AUDIO_UPDATE, RECORDING_UPDATE, VIDEO_UPDATE, AudioTrack, RecorderState, VideoTrack,
)


def detect_driver_type(device_name: str) -> str:
    """Detect the audio driver type from device name.

    Args:
        device_name: The name of the audio device

    Returns:
        Driver type: 'pulse', 'alsa', 'jack', 'default', etc.
    """
    name_lower = device_name.lower()

    if 'pulse' in name_lower or 'pipewire' in name_lower:
        return 'pulse'
    elif 'alsa' in name_lower or 'hw:' in name_lower or 'plughw' in name_lower:
        return 'alsa'
    elif 'jack' in name_lower:
        return 'jack'
    elif 'usb' in name_lower:
        return 'usb'
    else:
        return 'default'


def list_input_devices(driver_filter: Optional[str] = None) -> List[Dict[str, Any]]:
    """List all available input audio devices.

    Args:
        driver_filter: Optional driver type to filter by ('pulse', 'alsa', 'jack', 'usb', 'default')

    Returns:
        List of dicts with keys: id, name, driver, channels, rate, is_default
    """
    import pyaudio

    audio = pyaudio.PyAudio()
    try:
        try:
            default_device_id = int(audio.get_default_input_device_info()['index'])
        except IOError:
            default_device_id = -1

        devices = []
        for i in range(audio.get_device_count()):
            device_info = audio.get_device_info_by_index(i)
            if device_info.get('maxInputChannels', 0) <= 0:
                continue
            device_name = device_info.get('name', 'Unknown')
            driver_type = detect_driver_type(device_name)

            # Skip if driver filter is specified and doesn't match
            if driver_filter and driver_type != driver_filter.lower():
                continue

            devices.append({
                'id': i,
                'name': device_name,
                'driver': driver_type,
                'channels': int(device_info.get('maxInputChannels', 0)),
                'rate': int(device_info.get('defaultSampleRate', 0)),
                'is_default': i == default_device_id,
            })
        return devices
    finally:
        audio.terminate()


class MicrophoneAnalyser:
    """Rolling window over a PyAudio callback stream."""

    def __init__(self, buffer_length: int, continue_flag: int) -> None:
        self._window = np.zeros(buffer_length, dtype=np.float32)
        self._lock = threading.Lock()
        self._continue_flag = continue_flag
        self._audio_interface: Any = None
        self._audio_stream: Any = None

    def attach(self, audio_interface: Any, audio_stream: Any) -> None:
        self._audio_interface = audio_interface
        self._audio_stream = audio_stream

    def _fill_buffer(
        self,
        in_data: bytes,
        frame_count: int,
        time_info: object,
        status_flags: object,
    ) -> tuple:
        """Shift newly captured int16 audio into the float window."""
        samples = np.frombuffer(in_data, dtype=np.int16).astype(np.float32) / 32768.0
        size = self._window.size
        with self._lock:
            if samples.size >= size:
                self._window = samples[-size:].copy()
            else:
                self._window = np.concatenate((self._window[samples.size:], samples))
        return None, self._continue_flag

    def read_samples(self) -> np.ndarray:
        with self._lock:
            return self._window.copy()

    def close(self) -> None:
        audio_stream, self._audio_stream = self._audio_stream, None
        audio_interface, self._audio_interface = self._audio_interface, None
        try:
            if audio_stream is not None:
                try:
                    audio_stream.stop_stream()
                finally:
                    audio_stream.close()
        finally:
            if audio_interface is not None:
                audio_interface.terminate()
            logger.debug('Microphone has been closed')


class MicrophoneTrack:
    """Microphone input usable as the participant's audio track.

    Args:
        device_id: PyAudio input device index, ``None`` for the default device
        rate: Sample rate in Hz
    """

    def __init__(self, device_id: Optional[int] = None, rate: int = RATE) -> None:
        self.device_id = device_id
        self.rate = rate

    def open_analyser(self, buffer_length: int) -> MicrophoneAnalyser:
        import pyaudio

        analyser = MicrophoneAnalyser(buffer_length, pyaudio.paContinue)
        audio_interface = pyaudio.PyAudio()
        try:
            audio_stream = audio_interface.open(
                format=pyaudio.paInt16,
                channels=1,
                rate=self.rate,
                input=True,
                input_device_index=self.device_id,
                frames_per_buffer=buffer_length // 2,
                stream_callback=analyser._fill_buffer,
            )
        except Exception:
            audio_interface.terminate()
            raise
        analyser.attach(audio_interface, audio_stream)
        logger.debug(f'Microphone opened (device: {self.device_id}, rate: {self.rate} Hz)')
        return analyser


class CameraRaster:
    """Latest camera frame, resampled to the raster size, as RGB."""

    def __init__(self, capture: Any, width: int, height: int) -> None:
        self._capture = capture
        self._size = (width, height)
        self._frame: Optional[np.ndarray] = None
        self._lock = threading.Lock()
        self._stop = threading.Event()
        self._reader = threading.Thread(target=self._read_frames, daemon=True)
        self._reader.start()

    def _read_frames(self) -> None:
        try:
            while not self._stop.is_set():
                ok, frame = self._capture.read()
                if not ok:
                    self._stop.wait(0.05)
                    continue
                raster = cv2.resize(frame, self._size, interpolation=cv2.INTER_AREA)
                raster = cv2.cvtColor(raster, cv2.COLOR_BGR2RGB)
                with self._lock:
                    self._frame = raster
        finally:
            # The device is only released once no read is in flight
            self._capture.release()

    def capture(self) -> Optional[np.ndarray]:
        with self._lock:
            return self._frame

    def close(self) -> None:
        self._stop.set()
        self._reader.join(timeout=2.0)
        if self._reader.is_alive():
            logger.warning('Camera read still blocking, device will be released when it returns')
            return
        logger.debug('Camera has been closed')


class CameraTrack:
    """Camera input usable as the participant's video track."""

    def __init__(self, index: int = CAMERA_INDEX) -> None:
        self.index = index

    def open_raster(self, width: int, height: int) -> CameraRaster:
        capture = cv2.VideoCapture(self.index)
        if not capture.isOpened():
            capture.release()
            raise RuntimeError(f'Camera {self.index} could not be opened')
        logger.debug(f'Camera {self.index} opened')
        return CameraRaster(capture, width, height)


class LocalRecorder(EventEmitter):
    """Recorder that only reports state changes; takes are not stored."""

    def __init__(self) -> None:
        super().__init__()
        self.state = RecorderState.IDLE

    def _set_state(self, state: RecorderState) -> None:
        self.state = state
        self.emit(RECORDING_UPDATE, state)

    def start(self) -> None:
        if self.state is not RecorderState.IDLE:
            return
        self._set_state(RecorderState.STARTING)
        self._set_state(RecorderState.RECORDING)

    def stop(self) -> None:
        if self.state is not RecorderState.RECORDING:
            return
        self._set_state(RecorderState.STOPPING)
        self._set_state(RecorderState.IDLE)


class LocalParticipant(EventEmitter):
    """Self participant built from local tracks."""

    def __init__(
        self,
        audio_track: Optional[AudioTrack] = None,
        video_track: Optional[VideoTrack] = None,
        recording: Optional[LocalRecorder] = None,
    ) -> None:
        super().__init__()
        self.audio_track = audio_track
        self.video_track = video_track
        self.recording = recording or LocalRecorder()
        self.audio_enabled = audio_track is not None
        self.video_enabled = video_track is not None

    def set_audio_enabled(self, enabled: bool) -> None:
        if enabled != self.audio_enabled:
            self.audio_enabled = enabled
            self.emit(AUDIO_UPDATE, enabled)

    def set_video_enabled(self, enabled: bool) -> None:
        if enabled != self.video_enabled:
            self.video_enabled = enabled
            self.emit(VIDEO_UPDATE, enabled)
