"""Helpers for keeping identifiers out of logs and audit payloads."""

from __future__ import annotations

from hashlib import sha256
from typing import Optional

ACTOR_REF_LENGTH = 16


def actor_reference(value: Optional[str]) -> str:
    """Stable, non-reversible reference to an actor id or email."""
    if not value:
        return "anonymous"
    normalized = value.strip().lower()
    return sha256(normalized.encode("utf-8")).hexdigest()[:ACTOR_REF_LENGTH]
