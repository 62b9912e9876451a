"""Voice-recognition state models."""

from dataclasses import dataclass
from enum import Enum

from .classification import QuestionType


class VoiceAction(Enum):
    """Actions accepted by the voice-recognition state reducer."""
    START = "start"
    STOP = "stop"
    SET_SPEAKING = "set_speaking"
    SET_TRANSCRIPT = "set_transcript"
    SET_QUESTION_TYPE = "set_question_type"
    RESET = "reset"


@dataclass(frozen=True)
class VoiceRecognitionState:
    """Status information for the listening session."""
    is_active: bool = False
    is_speaking: bool = False
    transcript: str = ""
    question_type: QuestionType = QuestionType.UNKNOWN
