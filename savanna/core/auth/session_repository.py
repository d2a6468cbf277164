"""Persistence for per-client sessions, so any worker can serve any client."""

from __future__ import annotations

import uuid
from contextlib import nullcontext
from datetime import datetime
from typing import Any, Dict, Optional

from flask import has_app_context
from sqlalchemy.exc import SQLAlchemyError

from savanna.core.auth.models import PersistedSession, Session
from savanna.core.auth.session_models import ClientSession
from savanna.extensions import db


class ClientSessionRepository:
    """Reads and replaces ``auth_client_session`` rows. Writes commit immediately.

    ``app`` lets callbacks that fire outside a request (token refresh
    notifications) reach the database.
    """

    def __init__(self, app=None):
        self._app = app

    def load(self, client_id: str) -> Optional[PersistedSession]:
        with self._scope():
            record = db.session.get(ClientSession, client_id, populate_existing=True)
            if record is None:
                return None
            return PersistedSession(
                revision=record.revision,
                session=Session(
                    actor_id=record.actor_id,
                    email=record.email,
                    phone=record.phone,
                    access_token=record.access_token,
                    refresh_token=record.refresh_token,
                    expires_at=record.expires_at,
                    is_demo=record.is_demo,
                    user_metadata=dict(record.user_metadata or {}),
                ),
                demo_profile=dict(record.demo_profile) if record.demo_profile is not None else None,
            )

    def save(self, client_id: str, session: Session, demo_profile: Optional[Dict[str, Any]] = None) -> str:
        """Replace the client's row and return its new revision."""
        with self._scope():
            record = db.session.get(ClientSession, client_id)
            if record is None:
                record = ClientSession(client_id=client_id)
                db.session.add(record)
            revision = uuid.uuid4().hex
            record.revision = revision
            record.actor_id = session.actor_id
            record.email = session.email
            record.phone = session.phone
            record.access_token = session.access_token
            record.refresh_token = session.refresh_token
            record.expires_at = session.expires_at
            record.is_demo = session.is_demo
            record.user_metadata = dict(session.user_metadata)
            record.demo_profile = dict(demo_profile) if demo_profile is not None else None
            record.updated_at = datetime.utcnow()
            self._commit()
            return revision

    def delete(self, client_id: str) -> None:
        with self._scope():
            db.session.query(ClientSession).filter_by(client_id=client_id).delete()
            self._commit()

    def purge_idle(self, before: datetime) -> int:
        """Remove rows untouched since ``before``; returns how many went."""
        with self._scope():
            removed = db.session.query(ClientSession).filter(ClientSession.updated_at < before).delete()
            self._commit()
            return removed

    def _scope(self):
        if self._app is None or has_app_context():
            return nullcontext()
        return self._app.app_context()

    @staticmethod
    def _commit() -> None:
        try:
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            raise


__all__ = ["ClientSessionRepository"]
