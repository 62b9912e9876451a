"""Realtime transcription session manager.

Owns one provider session: token negotiation, the websocket, outbound audio
framing and translation of inbound messages into normalized session events.
"""

import asyncio
import base64
import json
import logging
import threading
from typing import Any, Callable, Dict, List, Optional, Union

import aiohttp

from .providers import AbstractRealtimeProvider, SessionNegotiationError, create_provider
from ..models.audio import AudioFrame
from ..models.events import Connected, Disconnected, SessionEvent, TransportError
from ..models.session import ConnectionState, Provider, TranscriptionSession

logger = logging.getLogger(__name__)

EventListener = Callable[[SessionEvent], None]


class RealtimeTranscriptionManager:
    """Provider-agnostic realtime transcription session.

    Audio goes in through ``send_audio_chunk``; normalized events come out
    through the registered listeners, in the order the transport delivers them.
    """

    def __init__(self,
                 api_key: str,
                 provider: Provider = Provider.OPENAI,
                 adapter: Optional[AbstractRealtimeProvider] = None,
                 http_session: Optional[aiohttp.ClientSession] = None,
                 on_event: Optional[EventListener] = None,
                 heartbeat: Optional[float] = 20.0):
        """Initialize the manager.

        Args:
            api_key: Provider API key used for session negotiation
            provider: Which realtime provider to talk to
            adapter: Pre-built provider adapter (defaults to the registered one)
            http_session: Shared aiohttp session; created lazily when omitted
            on_event: Listener registered before any other
            heartbeat: Websocket ping interval in seconds (None disables)
        """
        self.adapter = adapter or create_provider(provider, api_key)
        self.session = TranscriptionSession(provider=self.adapter.provider, api_key=api_key)
        self.heartbeat = heartbeat

        self._http = http_session
        self._owns_http = http_session is None
        self._ws: Optional[aiohttp.ClientWebSocketResponse] = None
        self._receive_task: Optional[asyncio.Task] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None

        # Guards connection state; send_audio_chunk runs on the audio thread
        self._state_lock = threading.Lock()
        # Bumped by every create_session/connect/close; stale awaits compare against it
        self._attempt = 0
        self._listeners: List[EventListener] = []
        if on_event is not None:
            self._listeners.append(on_event)

        self.frames_sent = 0
        self.frames_dropped = 0
        self.send_failures = 0

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def add_listener(self, listener: EventListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: EventListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _emit(self, event: SessionEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                logger.error(f"Event listener failed on {event.kind.value}: {e}", exc_info=True)

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    def _next_attempt(self) -> int:
        """Start a new lifecycle operation; caller holds _state_lock."""
        self._attempt += 1
        return self._attempt

    async def create_session(self) -> bool:
        """Negotiate a session token with the provider.

        Returns:
            True if a token was obtained, False otherwise (the caller may retry)
        """
        with self._state_lock:
            if self.session.connection_state == ConnectionState.CONNECTED:
                logger.warning("create_session called while connected; keeping current session")
                return True
            if self.session.connection_state == ConnectionState.NEGOTIATING:
                logger.warning("Session negotiation or connection already in progress")
                return False
            self.session.connection_state = ConnectionState.NEGOTIATING
            self.session.session_token = None
            attempt = self._next_attempt()

        provider_name = self.session.provider.value
        try:
            token = await self.adapter.negotiate(self._get_http_session())
        except SessionNegotiationError as e:
            logger.error(str(e))
            token = None
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.error(f"Error creating {provider_name} transcription session: {e}")
            token = None

        with self._state_lock:
            if attempt != self._attempt:
                logger.info(f"{provider_name} session closed during negotiation; token discarded")
                return False
            self.session.session_token = token
            self.session.connection_state = ConnectionState.IDLE

        if token:
            logger.info(f"{provider_name} transcription session created")
        return token is not None

    async def connect(self) -> bool:
        """Open the websocket and authenticate with the session token.

        Returns:
            True once connected and authenticated, False otherwise
        """
        with self._state_lock:
            if not self.session.has_token:
                logger.error("No session token available")
                return False
            if self.session.connection_state == ConnectionState.CONNECTED:
                logger.warning("Already connected; ignoring connect()")
                return True
            if self.session.connection_state == ConnectionState.NEGOTIATING:
                logger.warning("Connection already in progress; ignoring connect()")
                return False
            token = self.session.session_token
            self.session.connection_state = ConnectionState.NEGOTIATING
            attempt = self._next_attempt()

        url = self.adapter.websocket_url
        logger.info(f"Connecting to {self.session.provider.value} realtime endpoint: {url}")
        ws = None
        try:
            ws = await self._get_http_session().ws_connect(url, heartbeat=self.heartbeat)
            await ws.send_str(json.dumps(self.adapter.build_auth_frame(token)))
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
            logger.error(f"Error connecting to websocket: {e}")
            if ws is not None:
                await ws.close()
            with self._state_lock:
                superseded = attempt != self._attempt
                if not superseded:
                    self.session.connection_state = ConnectionState.CLOSED
                    self.session.session_token = None
            if not superseded:
                self._emit(TransportError(error=str(e)))
            return False

        with self._state_lock:
            superseded = attempt != self._attempt
            if not superseded:
                self._ws = ws
                self._loop = asyncio.get_running_loop()
                self.session.connection_state = ConnectionState.CONNECTED

        if superseded:
            # close() ran while the handshake was pending
            logger.info("Connection closed before it was established; dropping websocket")
            await ws.close()
            return False

        self._receive_task = asyncio.create_task(self._receive_loop(ws))
        self._emit(Connected(provider=self.session.provider))
        return True

    async def close(self) -> None:
        """Close the connection and clear local state. Safe to call repeatedly."""
        with self._state_lock:
            self._next_attempt()
            ws, self._ws = self._ws, None
            task, self._receive_task = self._receive_task, None
            self.session.session_token = None
            if self.session.connection_state != ConnectionState.IDLE:
                self.session.connection_state = ConnectionState.CLOSED

        if ws is not None and not ws.closed:
            await ws.close()
            logger.info(f"{self.session.provider.value} websocket closed")

        if task is not None and task is not asyncio.current_task() and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        if self._owns_http and self._http is not None:
            await self._http.close()
            self._http = None

    # ------------------------------------------------------------------
    # Audio out
    # ------------------------------------------------------------------

    def send_audio_chunk(self, frame: AudioFrame) -> bool:
        """Send one PCM16 frame; never blocks and never queues.

        Safe to call from the audio callback thread. The frame is dropped when
        the session is not connected.

        Returns:
            True if the frame was handed to the connection, False if dropped
        """
        with self._state_lock:
            ws, loop = self._ws, self._loop
            connected = self.session.connection_state == ConnectionState.CONNECTED
            if not connected or ws is None or loop is None:
                self.frames_dropped += 1
                return False

            try:
                audio_b64 = base64.b64encode(frame.data).decode("ascii")
                message = json.dumps(self.adapter.encode_audio_envelope(audio_b64, frame))
                asyncio.run_coroutine_threadsafe(self._write(ws, message), loop)
            except Exception as e:
                logger.error(f"Error sending audio chunk: {e}")
                self.send_failures += 1
                return False

            self.frames_sent += 1
            return True

    async def _write(self, ws: aiohttp.ClientWebSocketResponse, message: str) -> None:
        try:
            await ws.send_str(message)
        except (aiohttp.ClientError, ConnectionResetError, RuntimeError) as e:
            logger.warning(f"Audio frame write failed: {e}")
            with self._state_lock:
                self.send_failures += 1

    # ------------------------------------------------------------------
    # Messages in
    # ------------------------------------------------------------------

    def handle_message(self, raw: Union[str, bytes]) -> None:
        """Parse one inbound frame and emit its normalized event, if any."""
        try:
            if isinstance(raw, (bytes, bytearray)):
                raw = raw.decode("utf-8")
            message = json.loads(raw)
        except (UnicodeDecodeError, ValueError) as e:
            logger.error(f"Error processing websocket message: {e}")
            return

        if not isinstance(message, dict):
            logger.error(f"Ignoring websocket message that is not an object: {message!r}")
            return

        event = self.adapter.translate_message(message)
        if event is not None:
            self._emit(event)

    async def _receive_loop(self, ws: aiohttp.ClientWebSocketResponse) -> None:
        try:
            async for msg in ws:
                if msg.type in (aiohttp.WSMsgType.TEXT, aiohttp.WSMsgType.BINARY):
                    self.handle_message(msg.data)
                elif msg.type == aiohttp.WSMsgType.ERROR:
                    logger.error(f"Websocket error: {ws.exception()}")
                    if self._ws is ws:
                        self._emit(TransportError(error=str(ws.exception())))
        except (aiohttp.ClientError, ConnectionResetError) as e:
            logger.error(f"Websocket receive failed: {e}")
            if self._ws is ws:
                self._emit(TransportError(error=str(e)))
        finally:
            self._on_connection_lost(ws)

    def _on_connection_lost(self, ws: aiohttp.ClientWebSocketResponse) -> None:
        with self._state_lock:
            if self._ws is not ws:
                # Closed locally or replaced; nothing to report
                return
            self._ws = None
            self._receive_task = None
            self.session.session_token = None
            self.session.connection_state = ConnectionState.CLOSED

        logger.warning(f"{self.session.provider.value} websocket disconnected (code={ws.close_code})")
        self._emit(Disconnected(close_code=ws.close_code))

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    def _get_http_session(self) -> aiohttp.ClientSession:
        if self._http is None or self._http.closed:
            self._http = aiohttp.ClientSession()
            self._owns_http = True
        return self._http

    @property
    def connection_state(self) -> ConnectionState:
        return self.session.connection_state

    def is_active(self) -> bool:
        """Check whether the websocket is connected."""
        return self.session.connection_state == ConnectionState.CONNECTED

    def get_provider(self) -> Provider:
        return self.session.provider

    def get_stats(self) -> Dict[str, Any]:
        """Get outbound audio statistics."""
        with self._state_lock:
            return {
                "provider": self.session.provider.value,
                "connection_state": self.session.connection_state.value,
                "frames_sent": self.frames_sent,
                "frames_dropped": self.frames_dropped,
                "send_failures": self.send_failures,
            }
