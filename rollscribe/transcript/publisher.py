"""Transcript publisher module for pub/sub event publishing."""

import logging
from typing import Callable
from pubsub import pub
from ..models.transcription import TranscriptSnapshot

logger = logging.getLogger(__name__)


class TranscriptPublisher:
    """Publishes transcript snapshots using pubsub.pub."""

    def __init__(self, topic: str = "transcript.changed"):
        """Initialize transcript publisher.

        Args:
            topic: Pub/sub topic name for transcript snapshots
        """
        self.topic = topic
        logger.info(f"TranscriptPublisher initialized with topic: {topic}")

    def publish_snapshot(self, snapshot: TranscriptSnapshot) -> None:
        """Publish a transcript snapshot to the pub/sub topic.

        Args:
            snapshot: TranscriptSnapshot to publish
        """
        pub.sendMessage(self.topic, snapshot=snapshot)

    def subscribe(self, listener: Callable[[TranscriptSnapshot], None]) -> None:
        """Register a listener taking a single `snapshot` argument."""
        pub.subscribe(listener, self.topic)

    def unsubscribe(self, listener: Callable[[TranscriptSnapshot], None]) -> None:
        pub.unsubscribe(listener, self.topic)
