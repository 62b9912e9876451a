"""Realtime transcription module for Interview Listener."""

from .providers import (
    AbstractRealtimeProvider,
    SessionNegotiationError,
    OpenAIRealtimeProvider,
    DeepSeekRealtimeProvider,
    create_provider,
    get_provider_class,
)
from .session_manager import RealtimeTranscriptionManager
from .publisher import TranscriptionEventPublisher

__all__ = [
    "AbstractRealtimeProvider",
    "SessionNegotiationError",
    "OpenAIRealtimeProvider",
    "DeepSeekRealtimeProvider",
    "create_provider",
    "get_provider_class",
    "RealtimeTranscriptionManager",
    "TranscriptionEventPublisher",
]
