"""Session-related data models."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class Provider(Enum):
    """Supported realtime transcription providers."""
    OPENAI = "openai"
    DEEPSEEK = "deepseek"

    @classmethod
    def from_name(cls, name: str) -> "Provider":
        """Parse a provider name from configuration (case-insensitive)."""
        try:
            return cls(name.strip().lower())
        except ValueError:
            valid = ", ".join(p.value for p in cls)
            raise ValueError(f"Unknown provider '{name}' (expected one of: {valid})")


class ConnectionState(Enum):
    """Lifecycle of a realtime transcription connection."""
    IDLE = "idle"
    NEGOTIATING = "negotiating"
    CONNECTED = "connected"
    CLOSED = "closed"


@dataclass
class TranscriptionSession:
    """State of one realtime transcription session."""
    provider: Provider
    api_key: str = field(repr=False)
    session_token: Optional[str] = field(default=None, repr=False)
    connection_state: ConnectionState = ConnectionState.IDLE

    @property
    def has_token(self) -> bool:
        return bool(self.session_token)
