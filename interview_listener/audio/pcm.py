"""PCM16 conversion utilities."""

import time
from typing import Optional, Sequence, Union

import numpy as np

from ..models.audio import AudioFrame

PCM16_MAX = 32767
PCM16_MIN = -32768


def float32_to_pcm16le(samples: Union[np.ndarray, Sequence[float]]) -> bytes:
    """Convert float samples in [-1.0, 1.0] to PCM16 little-endian bytes.

    Samples outside the range are clamped first. Negative values are scaled
    by 32768 and non-negative values by 32767 so that -1.0 maps to -32768 and
    1.0 maps to 32767. NaN is treated as silence.

    Args:
        samples: Mono float samples

    Returns:
        Packed little-endian signed 16-bit samples
    """
    audio = np.asarray(samples, dtype=np.float64)
    audio = np.nan_to_num(audio, nan=0.0, posinf=1.0, neginf=-1.0)
    clipped = np.clip(audio, -1.0, 1.0)
    scaled = np.where(clipped < 0, clipped * -PCM16_MIN, clipped * PCM16_MAX)
    # astype truncates toward zero
    return scaled.astype("<i2").tobytes()


def encode_frame(samples: Union[np.ndarray, Sequence[float]],
                 sample_rate: int,
                 frame_number: int,
                 timestamp: Optional[float] = None) -> AudioFrame:
    """Encode one buffer of float samples into an immutable AudioFrame."""
    return AudioFrame(
        data=float32_to_pcm16le(samples),
        timestamp=time.time() if timestamp is None else timestamp,
        frame_number=frame_number,
        sample_rate=sample_rate,
    )
