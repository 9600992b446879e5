"""
Unit tests for EventPublisher.
"""

import logging
from datetime import datetime

from ephemera.application.event_publisher import EventPublisher
from ephemera.domain.events import DomainEvent, FileCreatedEvent, FileDeletedEvent

NOW = datetime(2024, 1, 15, 12, 0, 0)


def _deleted(file_id="f1"):
    return FileDeletedEvent(aggregate_id=file_id, occurred_at=NOW, reason="owner")


class TestEventPublisher:
    """Test subscription and dispatch."""

    def test_dispatches_to_exact_type(self):
        publisher = EventPublisher()
        received = []
        publisher.subscribe(FileDeletedEvent, received.append)

        event = _deleted()
        publisher.publish(event)

        assert received == [event]

    def test_base_class_handler_receives_every_event(self):
        publisher = EventPublisher()
        received = []
        publisher.subscribe(DomainEvent, received.append)

        publisher.publish(_deleted())
        publisher.publish(FileCreatedEvent(
            aggregate_id="f2", occurred_at=NOW, owner_id=None, size_bytes=1,
            expires_at=NOW, max_downloads=None,
        ))

        assert [e.aggregate_id for e in received] == ["f1", "f2"]

    def test_unrelated_handler_not_called(self):
        publisher = EventPublisher()
        received = []
        publisher.subscribe(FileCreatedEvent, received.append)

        publisher.publish(_deleted())

        assert received == []

    def test_handler_error_is_isolated(self, caplog):
        publisher = EventPublisher()
        received = []

        def broken(event):
            raise RuntimeError("handler failed")

        publisher.subscribe(FileDeletedEvent, broken)
        publisher.subscribe(FileDeletedEvent, received.append)

        with caplog.at_level(logging.ERROR):
            publisher.publish(_deleted())

        assert len(received) == 1
        assert "handler failed" in caplog.text

    def test_publish_without_handlers(self):
        EventPublisher().publish(_deleted())

    def test_handler_count(self):
        publisher = EventPublisher()
        publisher.subscribe(FileDeletedEvent, lambda e: None)
        publisher.subscribe(FileDeletedEvent, lambda e: None)

        assert publisher.handler_count(FileDeletedEvent) == 2
        assert publisher.handler_count(FileCreatedEvent) == 0
