"""Platform audio sources: device enumeration and stream acquisition."""

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, List, Optional

import pyaudio

from ..models.audio import AudioSource

logger = logging.getLogger(__name__)

# Device name fragments that identify system-audio (loopback) capture devices
LOOPBACK_HINTS = (
    "loopback",
    "monitor",
    "stereo mix",
    "what u hear",
    "blackhole",
    "soundflower",
    "system audio",
)

# PortAudio stream callback: (in_data, frame_count, time_info, status) -> (out_data, flag)
StreamCallback = Callable[[bytes, int, Any, int], Any]


class AbstractAudioBackend(ABC):
    """Audio processing context that can list sources and open capture streams."""

    @abstractmethod
    def open(self, sample_rate: int) -> None:
        """Create the processing context for the given sample rate."""
        pass

    @abstractmethod
    def list_sources(self) -> List[AudioSource]:
        """Return capturable sources, preferred ones first (may be empty)."""
        pass

    @abstractmethod
    def open_stream(self,
                    source: AudioSource,
                    sample_rate: int,
                    frames_per_buffer: int,
                    channels: int,
                    callback: StreamCallback,
                    monitor: bool = False) -> Any:
        """Open a live float32 capture stream bound to ``source``.

        Raises:
            OSError: If the platform refuses the stream
        """
        pass

    @abstractmethod
    def terminate(self) -> None:
        """Release the processing context."""
        pass


class PyAudioBackend(AbstractAudioBackend):
    """PortAudio-backed audio context using PyAudio."""

    def __init__(self):
        self.pyaudio_instance: Optional[pyaudio.PyAudio] = None
        self.sample_rate: Optional[int] = None

    def open(self, sample_rate: int) -> None:
        if self.pyaudio_instance is None:
            self.pyaudio_instance = pyaudio.PyAudio()
        self.sample_rate = sample_rate
        logger.info(f"PyAudio context opened for {sample_rate}Hz capture")

    def list_sources(self) -> List[AudioSource]:
        if self.pyaudio_instance is None:
            raise RuntimeError("Audio backend not opened")

        sources = []
        for index in range(self.pyaudio_instance.get_device_count()):
            info = self.pyaudio_instance.get_device_info_by_index(index)
            channels = int(info.get("maxInputChannels", 0))
            if channels <= 0:
                continue
            name = str(info.get("name", f"device {index}"))
            sources.append(AudioSource(
                index=int(info.get("index", index)),
                name=name,
                max_input_channels=channels,
                default_sample_rate=float(info.get("defaultSampleRate", 0.0)),
                is_loopback=any(hint in name.lower() for hint in LOOPBACK_HINTS),
            ))

        # System audio first; sorted() is stable so device order is kept otherwise
        sources = sorted(sources, key=lambda s: not s.is_loopback)
        logger.debug(f"Discovered {len(sources)} input sources: {[s.name for s in sources]}")
        return sources

    def open_stream(self,
                    source: AudioSource,
                    sample_rate: int,
                    frames_per_buffer: int,
                    channels: int,
                    callback: StreamCallback,
                    monitor: bool = False) -> Any:
        if self.pyaudio_instance is None:
            raise RuntimeError("Audio backend not opened")

        stream = self.pyaudio_instance.open(
            format=pyaudio.paFloat32,
            channels=channels,
            rate=sample_rate,
            input=True,
            output=monitor,
            input_device_index=source.index,
            frames_per_buffer=frames_per_buffer,
            stream_callback=callback,
        )
        logger.info(f"Audio stream opened on '{source.name}': {sample_rate}Hz, "
                    f"{frames_per_buffer} frames/buffer, {channels} channels")
        return stream

    def terminate(self) -> None:
        if self.pyaudio_instance is not None:
            self.pyaudio_instance.terminate()
            self.pyaudio_instance = None
