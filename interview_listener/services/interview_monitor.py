"""Interview monitor that turns session events into recognition state and question types.

Subscribes to the session event topics published by
``TranscriptionEventPublisher``. Partial transcripts are accumulated per item;
each completed transcript replaces the current transcript, is classified and
is kept in the question history.
"""

import logging
import threading
from typing import Callable, Dict, List, Optional, Tuple

from pubsub import pub

from .voice_state import reduce_voice_state
from ..classification import QuestionClassifier
from ..models.classification import QuestionType
from ..models.events import (
    ApiError,
    Connected,
    Disconnected,
    EventKind,
    SessionEvent,
    SpeechStarted,
    SpeechStopped,
    TranscriptionCompleted,
    TranscriptionDelta,
    TransportError,
)
from ..models.ui import VoiceAction, VoiceRecognitionState
from ..transcription.publisher import topic_for

logger = logging.getLogger(__name__)

QuestionCallback = Callable[[str, QuestionType], None]


class InterviewMonitor:
    """Tracks the live transcript and classifies each finished question."""

    def __init__(self,
                 classifier: QuestionClassifier,
                 prefix: str = "transcription",
                 on_question: Optional[QuestionCallback] = None):
        """Initialize interview monitor.

        Args:
            classifier: Classifier applied to every completed transcript
            prefix: Topic prefix the session events are published under
            on_question: Called with (text, question_type) for each completed transcript
        """
        self.classifier = classifier
        self.prefix = prefix
        self.on_question = on_question

        self.state = VoiceRecognitionState()
        self.partials: Dict[str, str] = {}
        self.questions: List[Tuple[str, QuestionType]] = []

        self.lock = threading.RLock()
        self.topics = [topic_for(prefix, kind) for kind in EventKind]
        for topic in self.topics:
            pub.subscribe(self.handle_event, topic)

        logger.info(f"InterviewMonitor initialized - subscribed to {prefix}.*")

    def handle_event(self, event: SessionEvent) -> None:
        """Apply one session event."""
        completed = None
        with self.lock:
            if isinstance(event, Connected):
                self._dispatch(VoiceAction.START)
            elif isinstance(event, Disconnected):
                # Items still open when the connection drops never complete
                self.partials.clear()
                self._dispatch(VoiceAction.STOP)
            elif isinstance(event, SpeechStarted):
                self._dispatch(VoiceAction.SET_SPEAKING, True)
            elif isinstance(event, SpeechStopped):
                self._dispatch(VoiceAction.SET_SPEAKING, False)
            elif isinstance(event, TranscriptionDelta):
                text = self.partials.get(event.item_id, "") + event.text
                self.partials[event.item_id] = text
                self._dispatch(VoiceAction.SET_TRANSCRIPT, text)
            elif isinstance(event, TranscriptionCompleted):
                self.partials.pop(event.item_id, None)
                question_type = self.classifier.quick_classify(event.text)
                self._dispatch(VoiceAction.SET_TRANSCRIPT, event.text)
                self._dispatch(VoiceAction.SET_QUESTION_TYPE, question_type)
                self.questions.append((event.text, question_type))
                completed = (event.text, question_type)
            elif isinstance(event, (ApiError, TransportError)):
                logger.warning(f"Transcription problem reported: {event}")

        # Call out without holding the lock
        if completed is not None:
            logger.info(f"[{completed[1].value}] {completed[0]}")
            if self.on_question:
                self.on_question(*completed)

    def _dispatch(self, action: VoiceAction, payload=None) -> None:
        self.state = reduce_voice_state(self.state, action, payload)

    def reset(self) -> None:
        """Clear the transcript and question type."""
        with self.lock:
            self.partials.clear()
            self._dispatch(VoiceAction.RESET)

    def get_state(self) -> VoiceRecognitionState:
        with self.lock:
            return self.state

    def get_questions(self) -> List[Tuple[str, QuestionType]]:
        with self.lock:
            return list(self.questions)

    def shutdown(self) -> None:
        """Unsubscribe from all session event topics."""
        for topic in self.topics:
            try:
                pub.unsubscribe(self.handle_event, topic)
            except Exception as e:
                logger.warning(f"Error during unsubscribe from {topic}: {e}")
        logger.info(f"InterviewMonitor shut down after {len(self.questions)} questions")
