"""Reducer for the voice-recognition state."""

from dataclasses import replace
from typing import Any

from ..models.classification import QuestionType
from ..models.ui import VoiceAction, VoiceRecognitionState


def reduce_voice_state(state: VoiceRecognitionState,
                       action: VoiceAction,
                       payload: Any = None) -> VoiceRecognitionState:
    """Return the state that results from applying ``action`` to ``state``."""
    if action == VoiceAction.START:
        return replace(state, is_active=True)
    if action == VoiceAction.STOP:
        return replace(state, is_active=False, is_speaking=False)
    if action == VoiceAction.SET_SPEAKING:
        return replace(state, is_speaking=bool(payload))
    if action == VoiceAction.SET_TRANSCRIPT:
        return replace(state, transcript=str(payload or ""))
    if action == VoiceAction.SET_QUESTION_TYPE:
        return replace(state, question_type=payload)
    if action == VoiceAction.RESET:
        return replace(state, transcript="", question_type=QuestionType.UNKNOWN)
    raise ValueError(f"Unknown voice action: {action}")
