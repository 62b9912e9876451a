"""Audio-related data models."""

from dataclasses import dataclass

import numpy as np


@dataclass
class AudioStats:
    """Audio capture statistics."""
    is_capturing: bool
    duration_seconds: float
    sample_rate: int
    buffer_size: int
    total_frames: int
    source_name: str = ""


@dataclass(frozen=True)
class AudioFrame:
    """A single encoded PCM16 audio frame with timestamp."""
    data: bytes  # PCM16 little-endian mono
    timestamp: float  # Time when this frame was captured
    frame_number: int
    sample_rate: int

    @property
    def samples(self) -> np.ndarray:
        """Signed 16-bit samples, in capture order."""
        return np.frombuffer(self.data, dtype="<i2")

    @property
    def duration_ms(self) -> int:
        return int(len(self.data) / 2 / self.sample_rate * 1000)


@dataclass
class AudioSource:
    """A capturable audio source as reported by the platform."""
    index: int
    name: str
    max_input_channels: int
    default_sample_rate: float
    is_loopback: bool = False
