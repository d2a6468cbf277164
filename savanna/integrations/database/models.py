"""Built-in identity, organization and profile tables."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy.orm import Mapped, mapped_column

from savanna.extensions import db


def _uuid() -> str:
    return str(uuid.uuid4())


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(default=datetime.utcnow, onupdate=datetime.utcnow)


class AuthAccount(db.Model, TimestampMixin):
    """Identity record owned by the database auth backend."""

    __tablename__ = "auth_account"

    id: Mapped[str] = mapped_column(db.String(64), primary_key=True, default=_uuid)
    email: Mapped[str] = mapped_column(db.String(255), unique=True, nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column(db.String(255), nullable=False)
    phone: Mapped[str | None] = mapped_column(db.String(32))
    user_metadata: Mapped[dict] = mapped_column(db.JSON, nullable=False, default=dict)
    is_active: Mapped[bool] = mapped_column(default=True)


class Organization(db.Model, TimestampMixin):
    __tablename__ = "organizations"

    id: Mapped[str] = mapped_column(db.String(64), primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(db.String(255), nullable=False)
    business_type: Mapped[str | None] = mapped_column(db.String(64))
    county: Mapped[str | None] = mapped_column(db.String(64))
    town: Mapped[str | None] = mapped_column(db.String(64))


class UserProfile(db.Model, TimestampMixin):
    """Application profile keyed by the actor id.

    Every column except ``id`` is optional so that degraded creation shapes
    (and the permission probe row) can be stored.
    """

    __tablename__ = "user_profiles"

    id: Mapped[str] = mapped_column(db.String(64), primary_key=True)
    email: Mapped[str | None] = mapped_column(db.String(255), index=True)
    phone: Mapped[str | None] = mapped_column(db.String(32))
    first_name: Mapped[str | None] = mapped_column(db.String(128))
    last_name: Mapped[str | None] = mapped_column(db.String(128))
    user_type: Mapped[str | None] = mapped_column(db.String(32), index=True)
    location: Mapped[str | None] = mapped_column(db.String(128))
    verification_level: Mapped[str | None] = mapped_column(db.String(32), default="basic")
    kyc_status: Mapped[str | None] = mapped_column(db.String(32), default="pending")
    is_active: Mapped[bool] = mapped_column(default=True)
    preferences: Mapped[dict | None] = mapped_column(db.JSON, default=dict)
    wildlife_profile: Mapped[dict | None] = mapped_column(db.JSON, default=dict)
    last_login_date: Mapped[datetime | None] = mapped_column(nullable=True)
    organization_id: Mapped[str | None] = mapped_column(db.ForeignKey("organizations.id"), index=True)


__all__ = ["AuthAccount", "Organization", "UserProfile"]
