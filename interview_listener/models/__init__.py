"""Data models for the Interview Listener application."""

from .audio import AudioStats, AudioFrame, AudioSource
from .session import Provider, ConnectionState, TranscriptionSession
from .classification import QuestionType
from .ui import VoiceAction, VoiceRecognitionState
from .events import (
    EventKind,
    TranscriptionDelta,
    TranscriptionCompleted,
    SpeechStarted,
    SpeechStopped,
    ApiError,
    Connected,
    Disconnected,
    TransportError,
    TranscriptionEvent,
    SessionEvent,
)

__all__ = [
    "AudioStats",
    "AudioFrame",
    "AudioSource",
    "Provider",
    "ConnectionState",
    "TranscriptionSession",
    "QuestionType",
    "VoiceAction",
    "VoiceRecognitionState",
    # Session events
    "EventKind",
    "TranscriptionDelta",
    "TranscriptionCompleted",
    "SpeechStarted",
    "SpeechStopped",
    "ApiError",
    "Connected",
    "Disconnected",
    "TransportError",
    "TranscriptionEvent",
    "SessionEvent",
]
