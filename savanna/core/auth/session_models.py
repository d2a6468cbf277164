"""Per-client session records shared by every worker process."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy.orm import Mapped, mapped_column

from savanna.extensions import db


class ClientSession(db.Model):
    """Latest session of one auth client (browser or API caller).

    Rows are replaced on every session change and removed on sign-out; a
    missing row means the client is signed out.
    """

    __tablename__ = "auth_client_session"

    client_id: Mapped[str] = mapped_column(db.String(64), primary_key=True)
    revision: Mapped[str] = mapped_column(db.String(32), nullable=False)
    actor_id: Mapped[str] = mapped_column(db.String(64), nullable=False, index=True)
    email: Mapped[str | None] = mapped_column(db.String(255))
    phone: Mapped[str | None] = mapped_column(db.String(32))
    access_token: Mapped[str | None] = mapped_column(db.Text)
    refresh_token: Mapped[str | None] = mapped_column(db.Text)
    expires_at: Mapped[int | None] = mapped_column(nullable=True)
    is_demo: Mapped[bool] = mapped_column(default=False)
    user_metadata: Mapped[dict] = mapped_column(db.JSON, nullable=False, default=dict)
    demo_profile: Mapped[dict | None] = mapped_column(db.JSON, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(default=datetime.utcnow, onupdate=datetime.utcnow, index=True)


__all__ = ["ClientSession"]
