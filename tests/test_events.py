"""Tests del bus de eventos en proceso"""

import logging

from app.events import EventBus, HierarchyChanged


def test_publish_reaches_subscribers_in_order():
    bus = EventBus()
    received = []
    bus.subscribe(HierarchyChanged, lambda event: received.append(("first", event.action)))
    bus.subscribe(HierarchyChanged, lambda event: received.append(("second", event.action)))

    bus.publish(HierarchyChanged(1, 2, "created"))

    assert received == [("first", "created"), ("second", "created")]


def test_failing_subscriber_is_logged_and_skipped(caplog):
    bus = EventBus()
    received = []

    def broken(event):
        raise RuntimeError("audit log down")

    bus.subscribe(HierarchyChanged, broken)
    bus.subscribe(HierarchyChanged, received.append)

    with caplog.at_level(logging.ERROR, logger="app.events"):
        bus.publish(HierarchyChanged(1, 2, "deleted"))

    assert received == [HierarchyChanged(1, 2, "deleted")]
    assert "audit log down" in caplog.text


def test_unsubscribe():
    bus = EventBus()
    received = []
    bus.subscribe(HierarchyChanged, received.append)
    bus.unsubscribe(HierarchyChanged, received.append)

    bus.publish(HierarchyChanged(1, None, "cleared"))

    assert received == []
