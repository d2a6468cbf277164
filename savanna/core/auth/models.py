"""In-memory auth models: sessions and backend call results."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class Session:
    """Live binding between an actor and this client.

    Token and expiry fields are owned by the remote service and treated as
    opaque values.
    """

    actor_id: str
    email: Optional[str] = None
    phone: Optional[str] = None
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    expires_at: Optional[int] = None
    is_demo: bool = False
    user_metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.actor_id:
            raise ValueError("session actor_id must be non-empty")

    def to_public_dict(self) -> dict:
        """Serializable view without tokens."""
        return {
            "actor_id": self.actor_id,
            "email": self.email,
            "phone": self.phone,
            "expires_at": self.expires_at,
            "is_demo": self.is_demo,
            "user_metadata": dict(self.user_metadata),
        }


@dataclass
class AuthResult:
    """Outcome of a credential sign-in or sign-up call."""

    success: bool
    session: Optional[Session] = None
    user: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    welcome_message: Optional[str] = None


@dataclass
class DemoResult:
    """Outcome of a demo issuance call; ``user`` is used verbatim as the profile."""

    success: bool
    user: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    welcome_message: Optional[str] = None


@dataclass
class PersistedSession:
    """A client's session as stored outside the worker process.

    ``revision`` changes on every write so workers can tell whether their
    in-memory copy is current. Demo sessions carry their profile data because
    no backend can re-issue them.
    """

    revision: str
    session: Session
    demo_profile: Optional[Dict[str, Any]] = None


__all__ = ["Session", "AuthResult", "DemoResult", "PersistedSession"]
