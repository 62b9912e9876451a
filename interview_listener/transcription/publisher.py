"""Session event publisher module for pub/sub event publishing."""

import logging
from typing import Callable

from pubsub import pub

from ..models.events import EventKind, SessionEvent

logger = logging.getLogger(__name__)


def topic_for(prefix: str, kind: EventKind) -> str:
    """Pub/sub topic name for one kind of session event."""
    return f"{prefix}.{kind.value}"


class TranscriptionEventPublisher:
    """Publishes normalized session events using pubsub.pub."""

    def __init__(self, prefix: str = "transcription"):
        """Initialize session event publisher.

        Args:
            prefix: Topic prefix; each event goes to ``<prefix>.<kind>``
        """
        self.prefix = prefix
        logger.info(f"TranscriptionEventPublisher initialized with topic prefix: {prefix}")

    def publish_event(self, event: SessionEvent) -> None:
        """Publish a session event to its pub/sub topic.

        Args:
            event: Session event emitted by the transcription manager
        """
        pub.sendMessage(topic_for(self.prefix, event.kind), event=event)
        logger.debug(f"Published session event: {event.kind.value}")

    def get_callback(self) -> Callable[[SessionEvent], None]:
        """Get callback function for RealtimeTranscriptionManager to use.

        Returns:
            Callback function that publishes session events
        """
        return self.publish_event
