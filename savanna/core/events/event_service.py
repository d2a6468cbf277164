"""Event persistence and dispatch."""

from __future__ import annotations

from typing import Optional

from savanna.core.events.event_bus import event_bus
from savanna.core.events.event_models import EventRecord
from savanna.extensions import db


def log_event(event_type: str, payload: dict, actor_ref: Optional[str] = None) -> EventRecord:
    """Persist an event and publish to subscribers."""
    record = EventRecord(event_type=event_type, payload=payload, actor_ref=actor_ref)
    db.session.add(record)
    db.session.commit()
    event_bus.publish(record)
    return record


def publish_transient(event_type: str, payload: dict, actor_ref: Optional[str] = None) -> EventRecord:
    """Publish an event to subscribers without persisting it."""
    record = EventRecord(event_type=event_type, payload=payload, actor_ref=actor_ref)
    event_bus.publish(record)
    return record
