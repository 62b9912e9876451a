"""Pytest configuration and fixtures for Interview Listener tests."""

import asyncio
import logging
from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock, patch

import aiohttp
import numpy as np
import pytest

from interview_listener.audio.sources import AbstractAudioBackend
from interview_listener.models.audio import AudioSource


# Configure logging for tests
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


async def settle(iterations: int = 10) -> None:
    """Let scheduled callbacks and tasks on the running loop make progress."""
    for _ in range(iterations):
        await asyncio.sleep(0)


async def wait_until(predicate, timeout: float = 5.0) -> None:
    """Poll ``predicate`` on the running loop until it is true."""
    async def _poll():
        while not predicate():
            await asyncio.sleep(0.01)
    await asyncio.wait_for(_poll(), timeout)


class FakeWebSocket:
    """Stand-in for aiohttp.ClientWebSocketResponse driven by the test."""

    def __init__(self):
        self.sent = []
        self.closed = False
        self.close_code = None
        self._incoming = asyncio.Queue()

    async def send_str(self, data: str) -> None:
        if self.closed:
            raise ConnectionResetError("Cannot write to closing transport")
        self.sent.append(data)

    async def close(self) -> bool:
        if not self.closed:
            self.closed = True
            self.close_code = 1000
            self._incoming.put_nowait(None)
        return True

    def exception(self):
        return None

    def feed(self, text: str) -> None:
        """Deliver one inbound text message."""
        self._incoming.put_nowait(SimpleNamespace(type=aiohttp.WSMsgType.TEXT, data=text))

    def remote_close(self, code: int = 1006) -> None:
        """Simulate the server dropping the connection."""
        self.close_code = code
        self._incoming.put_nowait(None)

    def __aiter__(self):
        return self

    async def __anext__(self):
        msg = await self._incoming.get()
        if msg is None:
            self.closed = True
            raise StopAsyncIteration
        return msg


def make_http_session(ws=None, error=None):
    """Mock aiohttp.ClientSession whose ws_connect yields ``ws`` or raises ``error``."""
    http = Mock()
    http.closed = False
    http.close = AsyncMock()
    if error is not None:
        http.ws_connect = AsyncMock(side_effect=error)
    else:
        http.ws_connect = AsyncMock(return_value=ws)
    return http


class FakeAudioBackend(AbstractAudioBackend):
    """In-memory audio backend that records how it was driven."""

    def __init__(self, sources=None, fail_open=False, fail_stream=False):
        self.sources = list(sources or [])
        self.fail_open = fail_open
        self.fail_stream = fail_stream
        self.opened_rate = None
        self.stream = None
        self.stream_args = None
        self.callback = None
        self.terminated = False

    def open(self, sample_rate):
        if self.fail_open:
            raise OSError("No audio subsystem available")
        self.opened_rate = sample_rate

    def list_sources(self):
        return list(self.sources)

    def open_stream(self, source, sample_rate, frames_per_buffer, channels, callback, monitor=False):
        if self.fail_stream:
            raise OSError("Permission denied")
        self.stream_args = {
            "source": source,
            "sample_rate": sample_rate,
            "frames_per_buffer": frames_per_buffer,
            "channels": channels,
            "monitor": monitor,
        }
        self.callback = callback
        self.stream = Mock()
        return self.stream

    def terminate(self):
        self.terminated = True


@pytest.fixture
def system_source():
    return AudioSource(index=3, name="Monitor of Built-in Audio", max_input_channels=2,
                       default_sample_rate=48000.0, is_loopback=True)


@pytest.fixture
def mono_source():
    return AudioSource(index=1, name="USB Microphone", max_input_channels=1,
                       default_sample_rate=44100.0)


@pytest.fixture
def event_log():
    """List that records every emitted session event, usable as a listener."""
    events = []
    return events


@pytest.fixture
def sample_float_audio():
    """Generate 4096 float32 samples of a 440Hz sine wave at 24kHz."""
    sample_rate = 24000
    t = np.arange(4096) / sample_rate
    return (0.8 * np.sin(2 * np.pi * 440 * t)).astype(np.float32)


@pytest.fixture
def mock_pyaudio():
    """Mock PyAudio for testing without actual audio hardware."""
    with patch('pyaudio.PyAudio') as mock_pyaudio_class:
        mock_pyaudio_instance = Mock()
        mock_stream = Mock()

        mock_stream.stop_stream.return_value = None
        mock_stream.close.return_value = None

        devices = [
            {"index": 0, "name": "Built-in Output", "maxInputChannels": 0, "defaultSampleRate": 48000.0},
            {"index": 1, "name": "Built-in Microphone", "maxInputChannels": 1, "defaultSampleRate": 44100.0},
            {"index": 2, "name": "BlackHole 2ch", "maxInputChannels": 2, "defaultSampleRate": 48000.0},
        ]
        mock_pyaudio_instance.get_device_count.return_value = len(devices)
        mock_pyaudio_instance.get_device_info_by_index.side_effect = lambda i: devices[i]
        mock_pyaudio_instance.open.return_value = mock_stream
        mock_pyaudio_instance.terminate.return_value = None

        mock_pyaudio_class.return_value = mock_pyaudio_instance

        yield {
            'class': mock_pyaudio_class,
            'instance': mock_pyaudio_instance,
            'stream': mock_stream,
            'devices': devices,
        }


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests with no network or audio hardware")
    config.addinivalue_line("markers", "integration: tests against a local aiohttp server")
