"""Unit tests for RealtimeTranscriptionManager."""

import asyncio
import json
from unittest.mock import AsyncMock, Mock

import aiohttp
import pytest

from interview_listener.models.audio import AudioFrame
from interview_listener.models.events import (
    ApiError,
    Connected,
    Disconnected,
    TranscriptionCompleted,
    TransportError,
)
from interview_listener.models.session import ConnectionState, Provider
from interview_listener.transcription.providers import (
    DeepSeekRealtimeProvider,
    OpenAIRealtimeProvider,
    SessionNegotiationError,
)
from interview_listener.transcription.session_manager import RealtimeTranscriptionManager
from tests.conftest import FakeWebSocket, make_http_session, settle


COMPLETED_MESSAGE = json.dumps({
    "type": "conversation.item.input_audio_transcription.completed",
    "transcript": "what is a hash table",
    "item_id": "a1",
    "content_index": 0,
})


def make_frame(data=b'\x00\x00\xff\x7f', frame_number=1):
    return AudioFrame(data=data, timestamp=1700000000.0, frame_number=frame_number, sample_rate=24000)


def make_manager(http, events, token="tok123", adapter=None):
    adapter = adapter or OpenAIRealtimeProvider("sk-test")
    adapter.negotiate = AsyncMock(return_value=token)
    return RealtimeTranscriptionManager("sk-test", adapter=adapter, http_session=http,
                                        on_event=events.append, heartbeat=None)


async def connected_manager(events, adapter=None):
    ws = FakeWebSocket()
    http = make_http_session(ws=ws)
    manager = make_manager(http, events, adapter=adapter)
    assert await manager.create_session()
    assert await manager.connect()
    return manager, ws, http


@pytest.mark.unit
class TestSessionNegotiation:

    def test_create_session_stores_token(self, event_log):
        manager = make_manager(make_http_session(), event_log)

        assert asyncio.run(manager.create_session()) is True
        assert manager.session.session_token == "tok123"
        assert manager.connection_state == ConnectionState.IDLE
        assert event_log == []

    @pytest.mark.parametrize("error", [
        SessionNegotiationError("Failed to create openai session: 401 Unauthorized"),
        aiohttp.ClientConnectionError("connection refused"),
        asyncio.TimeoutError(),
        ValueError("Expecting value: line 1 column 1"),
    ])
    def test_create_session_failure_is_reported_not_raised(self, event_log, error):
        manager = make_manager(make_http_session(), event_log)
        manager.adapter.negotiate = AsyncMock(side_effect=error)

        assert asyncio.run(manager.create_session()) is False
        assert manager.session.session_token is None
        assert manager.connection_state == ConnectionState.IDLE
        assert event_log == []

    def test_connect_without_token_fails_quietly(self, event_log):
        http = make_http_session()
        manager = make_manager(http, event_log)

        assert asyncio.run(manager.connect()) is False
        http.ws_connect.assert_not_called()
        assert event_log == []
        assert manager.connection_state == ConnectionState.IDLE


@pytest.mark.unit
class TestConnectionLifecycle:

    def test_connect_sends_auth_frame_first(self, event_log):
        async def scenario():
            manager, ws, http = await connected_manager(event_log)
            try:
                http.ws_connect.assert_awaited_once()
                assert http.ws_connect.call_args[0][0] == "wss://api.openai.com/v1/audio/realtime"
                assert json.loads(ws.sent[0]) == {"type": "auth", "token": "tok123"}
                assert manager.is_active()
                assert event_log == [Connected(provider=Provider.OPENAI)]
            finally:
                await manager.close()

        asyncio.run(scenario())

    def test_connect_twice_is_a_no_op(self, event_log):
        async def scenario():
            manager, ws, http = await connected_manager(event_log)
            assert await manager.connect() is True
            assert http.ws_connect.await_count == 1
            assert len(ws.sent) == 1
            await manager.close()

        asyncio.run(scenario())

    def test_connect_failure_emits_transport_error(self, event_log):
        async def scenario():
            http = make_http_session(error=aiohttp.ClientConnectionError("handshake failed"))
            manager = make_manager(http, event_log)
            await manager.create_session()

            assert await manager.connect() is False
            assert manager.connection_state == ConnectionState.CLOSED
            assert manager.session.session_token is None
            assert event_log == [TransportError(error="handshake failed")]

        asyncio.run(scenario())

    def test_remote_close_emits_disconnected_and_clears_token(self, event_log):
        async def scenario():
            manager, ws, _ = await connected_manager(event_log)
            ws.remote_close(1006)
            await settle()

            assert manager.connection_state == ConnectionState.CLOSED
            assert manager.session.session_token is None
            assert event_log[-1] == Disconnected(close_code=1006)
            # Reconnecting needs a new token
            assert await manager.connect() is False
            await manager.close()

        asyncio.run(scenario())

    def test_close_is_idempotent_and_silent(self, event_log):
        async def scenario():
            manager, ws, http = await connected_manager(event_log)
            await manager.close()
            await manager.close()
            await settle()

            assert ws.closed
            assert manager.connection_state == ConnectionState.CLOSED
            assert manager.session.session_token is None
            assert event_log == [Connected(provider=Provider.OPENAI)]
            # Shared http session belongs to the caller
            http.close.assert_not_called()

        asyncio.run(scenario())

    def test_close_before_connect(self, event_log):
        manager = make_manager(make_http_session(), event_log)
        asyncio.run(manager.close())
        assert manager.connection_state == ConnectionState.IDLE
        assert event_log == []

    def test_close_while_connecting_drops_new_socket(self, event_log):
        async def scenario():
            ws = FakeWebSocket()
            handshake = asyncio.Event()

            async def slow_ws_connect(url, **kwargs):
                await handshake.wait()
                return ws

            http = make_http_session()
            http.ws_connect = AsyncMock(side_effect=slow_ws_connect)
            manager = make_manager(http, event_log)
            await manager.create_session()

            pending = asyncio.create_task(manager.connect())
            await settle()
            assert manager.connection_state == ConnectionState.NEGOTIATING

            await manager.close()
            handshake.set()

            assert await pending is False
            assert ws.closed
            assert manager.connection_state == ConnectionState.CLOSED
            assert not manager.is_active()
            assert manager.send_audio_chunk(make_frame()) is False
            assert event_log == []

        asyncio.run(scenario())

    def test_overlapping_connects_open_one_socket(self, event_log):
        async def scenario():
            sockets = []

            async def slow_ws_connect(url, **kwargs):
                await asyncio.sleep(0.01)
                ws = FakeWebSocket()
                sockets.append(ws)
                return ws

            http = make_http_session()
            http.ws_connect = AsyncMock(side_effect=slow_ws_connect)
            manager = make_manager(http, event_log)
            await manager.create_session()

            results = await asyncio.gather(manager.connect(), manager.connect())

            assert sorted(results) == [False, True]
            assert len(sockets) == 1
            assert event_log == [Connected(provider=Provider.OPENAI)]

            await manager.close()
            assert sockets[0].closed

        asyncio.run(scenario())

    def test_close_during_negotiation_discards_token(self, event_log):
        async def scenario():
            reply = asyncio.Event()

            async def slow_negotiate(http):
                await reply.wait()
                return "tok123"

            http = make_http_session(ws=FakeWebSocket())
            manager = make_manager(http, event_log)
            manager.adapter.negotiate = AsyncMock(side_effect=slow_negotiate)

            pending = asyncio.create_task(manager.create_session())
            await settle()
            await manager.close()
            reply.set()

            assert await pending is False
            assert manager.session.session_token is None
            assert manager.connection_state == ConnectionState.CLOSED
            assert await manager.connect() is False
            http.ws_connect.assert_not_called()

        asyncio.run(scenario())


@pytest.mark.unit
class TestAudioOut:

    def test_send_while_disconnected_drops_frame(self, event_log):
        manager = make_manager(make_http_session(), event_log)

        assert manager.send_audio_chunk(make_frame()) is False
        assert manager.get_stats()["frames_dropped"] == 1
        assert manager.get_stats()["frames_sent"] == 0

    def test_send_while_connected_writes_envelope(self, event_log):
        async def scenario():
            manager, ws, _ = await connected_manager(event_log)
            assert manager.send_audio_chunk(make_frame()) is True
            await settle()

            assert json.loads(ws.sent[1]) == {
                "type": "input_audio_buffer.append",
                "audio": "AAD/fw==",
            }
            assert manager.get_stats()["frames_sent"] == 1
            await manager.close()

        asyncio.run(scenario())

    def test_frames_keep_submission_order(self, event_log):
        async def scenario():
            manager, ws, _ = await connected_manager(event_log)
            for n in range(5):
                manager.send_audio_chunk(make_frame(data=bytes([n, 0]), frame_number=n))
            await settle(20)

            payloads = [json.loads(m)["audio"] for m in ws.sent[1:]]
            assert payloads == ["AAA=", "AQA=", "AgA=", "AwA=", "BAA="]
            await manager.close()

        asyncio.run(scenario())

    def test_deepseek_envelope(self, event_log):
        async def scenario():
            manager, ws, _ = await connected_manager(event_log, adapter=DeepSeekRealtimeProvider("ds-test"))
            manager.send_audio_chunk(make_frame())
            await settle()

            assert json.loads(ws.sent[1]) == {
                "type": "audio.chunk",
                "audio": "AAD/fw==",
                "timestamp": 1700000000000,
            }
            await manager.close()

        asyncio.run(scenario())

    def test_send_from_another_thread(self, event_log):
        async def scenario():
            manager, ws, _ = await connected_manager(event_log)
            loop = asyncio.get_running_loop()
            sent = await loop.run_in_executor(None, manager.send_audio_chunk, make_frame())
            await settle()

            assert sent is True
            assert len(ws.sent) == 2
            await manager.close()

        asyncio.run(scenario())

    def test_send_after_close_is_dropped(self, event_log):
        async def scenario():
            manager, ws, _ = await connected_manager(event_log)
            await manager.close()

            assert manager.send_audio_chunk(make_frame()) is False
            assert len(ws.sent) == 1

        asyncio.run(scenario())


@pytest.mark.unit
class TestMessagesIn:

    @pytest.mark.parametrize("raw", ["not json{", b'\xff\xfe', "[1, 2]", "null", "42"])
    def test_malformed_messages_are_discarded(self, event_log, raw):
        manager = make_manager(make_http_session(), event_log)

        manager.handle_message(raw)

        assert event_log == []
        assert manager.connection_state == ConnectionState.IDLE

    def test_bytes_message_is_decoded(self, event_log):
        manager = make_manager(make_http_session(), event_log)
        manager.handle_message(COMPLETED_MESSAGE.encode("utf-8"))
        assert event_log == [TranscriptionCompleted(text="what is a hash table", item_id="a1", content_index=0)]

    def test_inbound_events_are_emitted_in_order(self, event_log):
        async def scenario():
            manager, ws, _ = await connected_manager(event_log)
            ws.feed(json.dumps({"type": "transcription_session.created"}))
            ws.feed("garbage")
            ws.feed(COMPLETED_MESSAGE)
            ws.feed(json.dumps({"type": "error", "error": {"message": "bad"}}))
            await settle()

            assert event_log == [
                Connected(provider=Provider.OPENAI),
                TranscriptionCompleted(text="what is a hash table", item_id="a1", content_index=0),
                ApiError(payload={"message": "bad"}),
            ]
            assert manager.is_active()
            await manager.close()

        asyncio.run(scenario())

    def test_listener_failure_does_not_stop_others(self, event_log):
        manager = make_manager(make_http_session(), event_log)
        broken = Mock(side_effect=RuntimeError("listener bug"))
        manager._listeners.insert(0, broken)
        manager.add_listener(event_log.append)  # already registered

        manager.handle_message(COMPLETED_MESSAGE)

        broken.assert_called_once()
        assert len(event_log) == 1

    def test_removed_listener_is_not_called(self, event_log):
        manager = make_manager(make_http_session(), event_log)
        manager.remove_listener(event_log.append)
        manager.handle_message(COMPLETED_MESSAGE)
        assert event_log == []
