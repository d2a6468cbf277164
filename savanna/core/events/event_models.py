"""Persistent event models."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy.orm import Mapped, mapped_column

from savanna.extensions import db


class EventRecord(db.Model):
    __tablename__ = "event_record"
    __table_args__ = (
        db.Index("ix_event_record_actor_created_at", "actor_ref", "created_at"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    event_type: Mapped[str] = mapped_column(db.String(128), index=True, nullable=False)
    payload: Mapped[dict] = mapped_column(db.JSON, nullable=False, default=dict)
    # Non-reversible actor reference (hash prefix), never a raw id or email.
    actor_ref: Mapped[str | None] = mapped_column(db.String(64), index=True)
    created_at: Mapped[datetime] = mapped_column(default=datetime.utcnow, index=True)
