"""Abstract base class for realtime transcription providers."""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import aiohttp

from ...models.audio import AudioFrame
from ...models.events import TranscriptionEvent
from ...models.session import Provider

logger = logging.getLogger(__name__)

INTERVIEW_PROMPT = "This is a technical job interview about programming, system design, and algorithms."


class SessionNegotiationError(RuntimeError):
    """The provider did not hand out a usable session token."""


class AbstractRealtimeProvider(ABC):
    """Wire-format adapter for one realtime transcription provider.

    Subclasses describe how to negotiate a session token, how to wrap audio
    for the websocket and how to translate inbound messages into normalized
    transcription events. They hold no connection state.
    """

    provider: Provider
    session_url: str
    websocket_url: str
    sample_rate: int
    buffer_size: int

    def __init__(self,
                 api_key: str,
                 session_url: Optional[str] = None,
                 websocket_url: Optional[str] = None,
                 prompt: str = INTERVIEW_PROMPT,
                 request_timeout: float = 10.0):
        self.api_key = api_key
        if session_url:
            self.session_url = session_url
        if websocket_url:
            self.websocket_url = websocket_url
        self.prompt = prompt
        self.request_timeout = request_timeout

    @abstractmethod
    def build_session_request(self) -> Dict[str, Any]:
        """Return the JSON body of the session negotiation request."""
        pass

    @abstractmethod
    def extract_session_token(self, payload: Any) -> Optional[str]:
        """Pull the session token out of the negotiation response, if present."""
        pass

    @abstractmethod
    def encode_audio_envelope(self, audio_b64: str, frame: AudioFrame) -> Dict[str, Any]:
        """Wrap base64 PCM16 audio in the provider's outbound message."""
        pass

    @abstractmethod
    def translate_message(self, message: Dict[str, Any]) -> Optional[TranscriptionEvent]:
        """Translate one inbound message; None for types this provider ignores."""
        pass

    def build_auth_frame(self, token: str) -> Dict[str, Any]:
        """First frame sent on a freshly opened websocket."""
        return {"type": "auth", "token": token}

    def request_headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    async def negotiate(self, http: aiohttp.ClientSession) -> str:
        """Exchange the API key for a session token.

        Args:
            http: Client session used for the request

        Returns:
            The opaque session token

        Raises:
            SessionNegotiationError: If the response carries no token
            aiohttp.ClientError: On transport failures
            ValueError: If the response body is not JSON
        """
        body = self.build_session_request()
        logger.debug(f"Negotiating {self.provider.value} session at {self.session_url}")

        timeout = aiohttp.ClientTimeout(total=self.request_timeout)
        async with http.post(self.session_url,
                             headers=self.request_headers(),
                             json=body,
                             timeout=timeout) as response:
            payload = await response.json(content_type=None)

        token = self.extract_session_token(payload)
        if not token:
            raise SessionNegotiationError(
                f"Failed to obtain {self.provider.value} session token "
                f"(status {response.status}): {payload}")
        return token

    @staticmethod
    def _as_int(value: Any, default: Optional[int] = None) -> Optional[int]:
        try:
            return int(value)
        except (TypeError, ValueError):
            return default
