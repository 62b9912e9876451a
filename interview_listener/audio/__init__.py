"""Audio capture and encoding module."""

from .capture import SystemAudioCapture
from .pcm import float32_to_pcm16le, encode_frame
from .sources import AbstractAudioBackend, PyAudioBackend

__all__ = [
    'SystemAudioCapture',
    'float32_to_pcm16le',
    'encode_frame',
    'AbstractAudioBackend',
    'PyAudioBackend',
]
