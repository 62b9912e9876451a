"""Services layer for Interview Listener application logic."""

from .interview_monitor import InterviewMonitor
from .voice_state import reduce_voice_state

__all__ = [
    "InterviewMonitor",
    "reduce_voice_state",
]
