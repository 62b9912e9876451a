"""Normalized session events emitted by the realtime transcription manager.

Every provider's wire messages are translated into this closed set of event
types. Consumers match on the concrete class (or on ``event.kind``) and never
see provider-specific field names.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, Optional, Union

from .session import Provider


class EventKind(Enum):
    """Kinds of session events; also used as pub/sub topic suffixes."""
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    TRANSPORT_ERROR = "transport_error"
    TRANSCRIPTION_DELTA = "transcription_delta"
    TRANSCRIPTION_COMPLETED = "transcription_completed"
    SPEECH_STARTED = "speech_started"
    SPEECH_STOPPED = "speech_stopped"
    API_ERROR = "api_error"


@dataclass(frozen=True)
class TranscriptionDelta:
    """Partial, not-yet-final transcription text for an in-progress item."""
    kind: ClassVar[EventKind] = EventKind.TRANSCRIPTION_DELTA
    text: str
    item_id: str
    content_index: int


@dataclass(frozen=True)
class TranscriptionCompleted:
    """Finalized transcription text for one item."""
    kind: ClassVar[EventKind] = EventKind.TRANSCRIPTION_COMPLETED
    text: str
    item_id: str
    content_index: int


@dataclass(frozen=True)
class SpeechStarted:
    kind: ClassVar[EventKind] = EventKind.SPEECH_STARTED
    offset_ms: Optional[int]
    item_id: str


@dataclass(frozen=True)
class SpeechStopped:
    kind: ClassVar[EventKind] = EventKind.SPEECH_STOPPED
    offset_ms: Optional[int]
    item_id: str


@dataclass(frozen=True)
class ApiError:
    """Error reported by the remote API inside the stream."""
    kind: ClassVar[EventKind] = EventKind.API_ERROR
    payload: Any


@dataclass(frozen=True)
class Connected:
    kind: ClassVar[EventKind] = EventKind.CONNECTED
    provider: Provider


@dataclass(frozen=True)
class Disconnected:
    """The remote side closed the connection."""
    kind: ClassVar[EventKind] = EventKind.DISCONNECTED
    close_code: Optional[int] = None


@dataclass(frozen=True)
class TransportError:
    """The connection could not be opened or failed mid-stream."""
    kind: ClassVar[EventKind] = EventKind.TRANSPORT_ERROR
    error: str


TranscriptionEvent = Union[
    TranscriptionDelta,
    TranscriptionCompleted,
    SpeechStarted,
    SpeechStopped,
    ApiError,
]

SessionEvent = Union[
    Connected,
    Disconnected,
    TransportError,
    TranscriptionDelta,
    TranscriptionCompleted,
    SpeechStarted,
    SpeechStopped,
    ApiError,
]
