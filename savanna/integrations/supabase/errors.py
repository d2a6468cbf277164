"""Translate PostgREST / Postgres error payloads into store error kinds."""

from __future__ import annotations

from typing import Any, Mapping, Optional

from savanna.core.auth.backend import StoreError, StoreErrorKind

CODE_KINDS = {
    "PGRST116": StoreErrorKind.NO_ROWS,
    "23505": StoreErrorKind.DUPLICATE_KEY,
    "PGRST204": StoreErrorKind.UNKNOWN_COLUMN,
    "42703": StoreErrorKind.UNKNOWN_COLUMN,
    "42501": StoreErrorKind.ACCESS_DENIED,
    "42P01": StoreErrorKind.TABLE_MISSING,
    "PGRST205": StoreErrorKind.TABLE_MISSING,
    "42000": StoreErrorKind.TABLE_MISSING,
}


class SupabaseError(Exception):
    """Raised for auth endpoint failures that are not credential rejections."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


def store_error_from_payload(status: int, payload: Optional[Mapping[str, Any]]) -> StoreError:
    payload = payload or {}
    code = str(payload.get("code") or "") or None
    message = str(payload.get("message") or payload.get("msg") or f"HTTP {status}")
    kind = CODE_KINDS.get(code or "")
    if kind is None:
        if status in (401, 403):
            kind = StoreErrorKind.ACCESS_DENIED
        elif status == 404 and not code:
            kind = StoreErrorKind.TABLE_MISSING
        else:
            kind = StoreErrorKind.OTHER
    return StoreError(kind=kind, message=message, code=code)


def auth_error_message(payload: Optional[Mapping[str, Any]], fallback: str) -> str:
    """GoTrue reports errors under several keys depending on version."""
    payload = payload or {}
    for key in ("error_description", "msg", "message", "error"):
        value = payload.get(key)
        if isinstance(value, str) and value:
            return value
    return fallback


__all__ = ["CODE_KINDS", "SupabaseError", "store_error_from_payload", "auth_error_message"]
