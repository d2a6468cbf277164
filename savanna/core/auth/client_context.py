"""Resolve the calling browser/client to its auth provider."""

from __future__ import annotations

import hashlib
import hmac
import logging
import uuid
from typing import Optional

from flask import current_app, request, session

from savanna.core.auth.provider import AuthProvider, AuthProviderRegistry
from savanna.core.auth.state import AuthState

logger = logging.getLogger(__name__)

CLIENT_ID_KEY = "auth_client_id"
CLIENT_ID_HEADER = "X-Auth-Client"
_SIGNATURE_LENGTH = 32


def _signature(value: str, secret: str) -> str:
    digest = hmac.new(secret.encode("utf-8"), value.encode("utf-8"), hashlib.sha256).hexdigest()
    return digest[:_SIGNATURE_LENGTH]


def sign_client_id(value: str, secret: Optional[str] = None) -> str:
    """Token an API caller sends back in ``X-Auth-Client`` to pin its client."""
    return f"{value}.{_signature(value, secret or current_app.config['SECRET_KEY'])}"


def verify_client_token(token: Optional[str], secret: Optional[str] = None) -> Optional[str]:
    """Client id carried by a token issued here, or ``None``."""
    if not token or "." not in token:
        return None
    value, _, signature = token.rpartition(".")
    if not value:
        return None
    expected = _signature(value, secret or current_app.config["SECRET_KEY"])
    if not hmac.compare_digest(signature, expected):
        return None
    return value


def client_id(create: bool = True) -> Optional[str]:
    """A signed header wins over the cookie session so API callers can pin a client."""
    header_value = request.headers.get(CLIENT_ID_HEADER)
    value = verify_client_token(header_value)
    if value is None:
        if header_value:
            logger.info("Ignoring %s header without a valid signature", CLIENT_ID_HEADER)
        value = session.get(CLIENT_ID_KEY)
        if value is None and create:
            value = uuid.uuid4().hex
            session[CLIENT_ID_KEY] = value
    return value


def client_token() -> Optional[str]:
    value = client_id(create=False)
    return sign_client_id(value) if value else None


def registry() -> AuthProviderRegistry:
    return current_app.extensions["auth_registry"]


def current_provider() -> AuthProvider:
    return registry().get(client_id()).sync()


def current_auth_state() -> AuthState:
    return current_provider().state


__all__ = [
    "CLIENT_ID_KEY",
    "CLIENT_ID_HEADER",
    "sign_client_id",
    "verify_client_token",
    "client_id",
    "client_token",
    "registry",
    "current_provider",
    "current_auth_state",
]
