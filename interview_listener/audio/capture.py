"""System audio capture that streams encoded frames to the transcription session."""

import logging
import time
from datetime import datetime
from typing import Any, Optional

import numpy as np
import pyaudio

from .pcm import encode_frame
from .sources import AbstractAudioBackend, PyAudioBackend
from ..models.audio import AudioSource, AudioStats
from ..transcription.providers import get_provider_class
from ..transcription.session_manager import RealtimeTranscriptionManager

logger = logging.getLogger(__name__)


class SystemAudioCapture:
    """Captures system audio and forwards PCM16 frames to the transcription manager.

    Sample rate and buffer size follow the manager's provider: each backend
    expects a fixed input rate, and the lower-rate provider uses smaller
    buffers to keep added latency bounded.
    """

    def __init__(self,
                 transcription_manager: RealtimeTranscriptionManager,
                 backend: Optional[AbstractAudioBackend] = None,
                 monitor: bool = False):
        """Initialize system audio capture.

        Args:
            transcription_manager: Session that receives every encoded frame
            backend: Audio processing context (PyAudio when omitted)
            monitor: Also play captured audio back through the output device
        """
        self.transcription_manager = transcription_manager
        self.backend = backend or PyAudioBackend()
        self.monitor = monitor

        self.sample_rate: Optional[int] = None
        self.buffer_size: Optional[int] = None
        self.channels = 1
        self.is_initialized = False

        # Capture state
        self.stream: Any = None
        self.source: Optional[AudioSource] = None
        self.is_capturing = False
        self.start_time: Optional[datetime] = None
        self.total_frames = 0

    def initialize(self) -> bool:
        """Create the audio processing context at the provider's sample rate."""
        provider = self.transcription_manager.get_provider()
        profile = get_provider_class(provider)
        self.sample_rate = profile.sample_rate
        self.buffer_size = profile.buffer_size

        logger.info(f"Initializing audio context with sample rate {self.sample_rate}Hz for {provider.value}")
        try:
            self.backend.open(self.sample_rate)
        except (OSError, RuntimeError) as e:
            logger.error(f"Failed to initialize audio context: {e}")
            self.is_initialized = False
            return False

        self.is_initialized = True
        return True

    def start_capturing(self) -> bool:
        """Start capturing system audio.

        Returns:
            True if capture is running, False if no source could be opened
        """
        if self.is_capturing:
            return True

        if not self.is_initialized and not self.initialize():
            logger.error("Failed to initialize audio context")
            return False

        try:
            sources = self.backend.list_sources()
        except (OSError, RuntimeError) as e:
            logger.error(f"Error enumerating audio sources: {e}")
            return False

        if not sources:
            logger.error("No system audio sources found")
            return False

        source = sources[0]
        self.channels = max(1, min(source.max_input_channels, 2))
        self.total_frames = 0
        try:
            self.stream = self.backend.open_stream(
                source,
                sample_rate=self.sample_rate,
                frames_per_buffer=self.buffer_size,
                channels=self.channels,
                callback=self._on_audio_buffer,
                monitor=self.monitor,
            )
        except (OSError, RuntimeError) as e:
            logger.error(f"Error capturing system audio from '{source.name}': {e}")
            self.stream = None
            return False

        self.source = source
        self.start_time = datetime.now()
        self.is_capturing = True
        logger.info(f"Capturing system audio from '{source.name}'")
        return True

    def stop_capturing(self) -> None:
        """Stop capturing and release the stream. Safe to call when not capturing."""
        if not self.is_capturing:
            return

        self.is_capturing = False
        stream, self.stream = self.stream, None
        if stream is not None:
            try:
                stream.stop_stream()
                stream.close()
            except OSError as e:
                logger.warning(f"Error closing audio stream: {e}")

        logger.info(f"Capture stopped. Total frames: {self.total_frames}")
        self.source = None

    def cleanup(self) -> None:
        """Stop capturing and release the audio context."""
        self.stop_capturing()
        if self.is_initialized:
            self.backend.terminate()
            self.is_initialized = False

    def _on_audio_buffer(self, in_data: bytes, frame_count: int, time_info: Any, status_flags: int):
        """PortAudio callback: encode one buffer and hand it to the session."""
        if not self.is_capturing:
            return (None, pyaudio.paComplete)

        if status_flags:
            logger.debug(f"Audio callback status flags: {status_flags}")

        try:
            samples = np.frombuffer(in_data, dtype=np.float32)
            if self.channels > 1:
                usable = len(samples) - len(samples) % self.channels
                samples = samples[:usable].reshape(-1, self.channels)[:, 0]

            self.total_frames += 1
            frame = encode_frame(samples, self.sample_rate, self.total_frames, timestamp=time.time())
            self.transcription_manager.send_audio_chunk(frame)
        except Exception as e:
            # An exception here would abort the PortAudio stream
            logger.error(f"Error processing audio buffer: {e}", exc_info=True)

        return (in_data if self.monitor else None, pyaudio.paContinue)

    def is_active(self) -> bool:
        """Check whether capture is running."""
        return self.is_capturing

    def get_capture_stats(self) -> AudioStats:
        """Get current capture statistics."""
        duration = 0.0
        if self.start_time and self.is_capturing:
            duration = (datetime.now() - self.start_time).total_seconds()

        return AudioStats(
            is_capturing=self.is_capturing,
            duration_seconds=duration,
            sample_rate=self.sample_rate or 0,
            buffer_size=self.buffer_size or 0,
            total_frames=self.total_frames,
            source_name=self.source.name if self.source else "",
        )

    def __del__(self):
        """Ensure the stream is released on deletion."""
        if getattr(self, "is_capturing", False):
            self.stop_capturing()
