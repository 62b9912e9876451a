"""DeepSeek realtime transcription provider.

The DeepSeek endpoints and message names below are provisional: they follow
the shape of the OpenAI protocol and have not been confirmed against a public
API reference. Everything provider-specific lives in this module so it can be
corrected without touching the session manager or its consumers.
"""

import logging
from typing import Any, Dict, Optional

from .base import AbstractRealtimeProvider
from ...models.audio import AudioFrame
from ...models.events import (
    ApiError,
    SpeechStarted,
    SpeechStopped,
    TranscriptionCompleted,
    TranscriptionDelta,
    TranscriptionEvent,
)
from ...models.session import Provider

logger = logging.getLogger(__name__)

DEFAULT_ITEM_ID = "0"


class DeepSeekRealtimeProvider(AbstractRealtimeProvider):
    """DeepSeek speech sessions (PCM16 at 16kHz, smaller buffers)."""

    provider = Provider.DEEPSEEK
    session_url = "https://api.deepseek.com/v1/audio/transcription_sessions"
    websocket_url = "wss://api.deepseek.com/v1/audio/realtime"
    sample_rate = 16000
    buffer_size = 2048

    model = "deepseek-speech"
    language = "en"

    def build_session_request(self) -> Dict[str, Any]:
        return {
            "model": self.model,
            "format": "pcm16",
            "sample_rate": self.sample_rate,
            "language": self.language,
            "task": "transcribe",
            "prompt": self.prompt,
        }

    def extract_session_token(self, payload: Any) -> Optional[str]:
        if not isinstance(payload, dict):
            return None
        return payload.get("session_token") or None

    def encode_audio_envelope(self, audio_b64: str, frame: AudioFrame) -> Dict[str, Any]:
        return {
            "type": "audio.chunk",
            "audio": audio_b64,
            "timestamp": int(frame.timestamp * 1000),
        }

    def translate_message(self, message: Dict[str, Any]) -> Optional[TranscriptionEvent]:
        message_type = message.get("type")
        item_id = str(message.get("id") or DEFAULT_ITEM_ID)

        if message_type == "transcription.partial":
            return TranscriptionDelta(text=message.get("text", ""), item_id=item_id, content_index=0)
        if message_type == "transcription.final":
            return TranscriptionCompleted(text=message.get("text", ""), item_id=item_id, content_index=0)
        if message_type == "speech.started":
            return SpeechStarted(offset_ms=self._as_int(message.get("timestamp")), item_id=item_id)
        if message_type == "speech.stopped":
            return SpeechStopped(offset_ms=self._as_int(message.get("timestamp")), item_id=item_id)
        if message_type == "error":
            logger.error(f"DeepSeek API error: {message.get('error')}")
            return ApiError(payload=message.get("error"))

        logger.debug(f"DeepSeek websocket message ignored: {message_type}")
        return None
