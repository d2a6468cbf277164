"""Audit trail for authentication attempts.

Sinks are injected at construction time; ``NullAuditSink`` is the default.
Entries carry a non-reversible actor reference and never credentials.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Protocol

from savanna.core.utils.redaction import actor_reference

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuditEntry:
    event_type: str
    success: bool
    actor_ref: str
    details: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def build(
        cls,
        event_type: str,
        success: bool,
        identity: Optional[str],
        reason: Optional[str] = None,
        **details: Any,
    ) -> "AuditEntry":
        payload = dict(details)
        if reason:
            payload["reason"] = reason
        return cls(event_type=event_type, success=success, actor_ref=actor_reference(identity), details=payload)


class AuditSink(Protocol):
    def record(self, entry: AuditEntry) -> None: ...


class NullAuditSink:
    def record(self, entry: AuditEntry) -> None:
        return None


class LoggingAuditSink:
    def record(self, entry: AuditEntry) -> None:
        logger.info(
            "auth audit: %s success=%s actor=%s",
            entry.event_type,
            entry.success,
            entry.actor_ref,
        )


class EventLogAuditSink:
    """Persist audit entries as event records (requires an app context)."""

    def record(self, entry: AuditEntry) -> None:
        from savanna.core.events.event_service import log_event  # local import to avoid cycle

        log_event(
            entry.event_type,
            {"success": entry.success, **entry.details},
            actor_ref=entry.actor_ref,
        )


def record_safely(sink: AuditSink, entry: AuditEntry) -> None:
    """Record an entry; audit failures never affect the audited operation."""
    try:
        sink.record(entry)
    except Exception:
        logger.warning("Failed to record audit entry %s", entry.event_type, exc_info=True)


__all__ = [
    "AuditEntry",
    "AuditSink",
    "NullAuditSink",
    "LoggingAuditSink",
    "EventLogAuditSink",
    "record_safely",
]
