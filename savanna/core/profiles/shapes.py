"""Profile shapes written by the creation ladder, from richest to barest."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

from savanna.core.profiles.models import PLACEHOLDERS, Profile, ProfileCompleteness

DEFAULT_PREFERENCES = {"language": "en", "notifications": True, "currency": "KES"}
DEFAULT_WILDLIFE_PROFILE = {
    "tier": "cub",
    "points": 0,
    "achievements": [],
    "preferred_animal": "gazelle",
}


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _location_from(metadata: Mapping[str, Any]) -> str:
    location = metadata.get("location")
    if isinstance(location, Mapping):
        return location.get("county") or PLACEHOLDERS["location"]
    return location or PLACEHOLDERS["location"]


def full_shape(
    actor_id: str,
    email: Optional[str] = None,
    phone: Optional[str] = None,
    metadata: Optional[Mapping[str, Any]] = None,
) -> Dict[str, Any]:
    """Every application-defined profile column."""
    metadata = metadata or {}
    return {
        "id": actor_id,
        "email": email or PLACEHOLDERS["email"],
        "phone": phone or metadata.get("phone") or "",
        "first_name": metadata.get("first_name") or PLACEHOLDERS["first_name"],
        "last_name": metadata.get("last_name") or "",
        "user_type": metadata.get("user_type") or PLACEHOLDERS["user_type"],
        "location": _location_from(metadata),
        "verification_level": "basic",
        "kyc_status": "pending",
        "is_active": True,
        "preferences": dict(DEFAULT_PREFERENCES),
        "wildlife_profile": {**DEFAULT_WILDLIFE_PROFILE, "achievements": []},
    }


def minimal_shape(actor_id: str, email: Optional[str] = None) -> Dict[str, Any]:
    return {"id": actor_id, "email": email or PLACEHOLDERS["email"]}


def identifier_shape(actor_id: str) -> Dict[str, Any]:
    return {"id": actor_id}


def synthetic_profile(
    actor_id: str,
    email: Optional[str] = None,
    phone: Optional[str] = None,
    metadata: Optional[Mapping[str, Any]] = None,
) -> Profile:
    """In-memory profile built only from locally known data; never persisted."""
    data = full_shape(actor_id, email=email, phone=phone, metadata=metadata)
    now = _now_iso()
    data["created_at"] = now
    data["updated_at"] = now
    return Profile(id=actor_id, data=data, completeness=ProfileCompleteness.SYNTHETIC)


__all__ = [
    "DEFAULT_PREFERENCES",
    "DEFAULT_WILDLIFE_PROFILE",
    "full_shape",
    "minimal_shape",
    "identifier_shape",
    "synthetic_profile",
]
