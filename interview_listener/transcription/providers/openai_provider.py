"""OpenAI realtime transcription provider."""

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


class OpenAIRealtimeProvider(AbstractRealtimeProvider):
    """OpenAI realtime transcription sessions (PCM16 at 24kHz)."""

    provider = Provider.OPENAI
    session_url = "https://api.openai.com/v1/realtime/transcription_sessions"
    websocket_url = "wss://api.openai.com/v1/audio/realtime"
    sample_rate = 24000
    buffer_size = 4096

    model = "gpt-4o-mini-transcribe"

    def build_session_request(self) -> Dict[str, Any]:
        return {
            "input_audio_transcription": {
                "model": self.model,
                "prompt": self.prompt,
            },
            "turn_detection": {
                "type": "server_vad",
                "threshold": 0.5,
                "prefix_padding_ms": 300,
                "silence_duration_ms": 500,
            },
            "input_audio_noise_reduction": {
                "type": "near_field",
            },
            "input_audio_format": "pcm16",
        }

    def extract_session_token(self, payload: Any) -> Optional[str]:
        if not isinstance(payload, dict):
            return None
        client_secret = payload.get("client_secret")
        if isinstance(client_secret, dict):
            return client_secret.get("value") or None
        return None

    def encode_audio_envelope(self, audio_b64: str, frame: AudioFrame) -> Dict[str, Any]:
        return {
            "type": "input_audio_buffer.append",
            "audio": audio_b64,
        }

    def translate_message(self, message: Dict[str, Any]) -> Optional[TranscriptionEvent]:
        message_type = message.get("type")

        if message_type == "conversation.item.input_audio_transcription.delta":
            return TranscriptionDelta(
                text=message.get("delta", ""),
                item_id=message.get("item_id", ""),
                content_index=self._as_int(message.get("content_index"), 0),
            )
        if message_type == "conversation.item.input_audio_transcription.completed":
            return TranscriptionCompleted(
                text=message.get("transcript", ""),
                item_id=message.get("item_id", ""),
                content_index=self._as_int(message.get("content_index"), 0),
            )
        if message_type == "input_audio_buffer.speech_started":
            return SpeechStarted(
                offset_ms=self._as_int(message.get("audio_start_ms")),
                item_id=message.get("item_id", ""),
            )
        if message_type == "input_audio_buffer.speech_stopped":
            return SpeechStopped(
                offset_ms=self._as_int(message.get("audio_end_ms")),
                item_id=message.get("item_id", ""),
            )
        if message_type == "error":
            logger.error(f"OpenAI API error: {message.get('error')}")
            return ApiError(payload=message.get("error"))

        logger.debug(f"OpenAI websocket message ignored: {message_type}")
        return None
