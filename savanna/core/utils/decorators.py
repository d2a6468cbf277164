"""Reusable decorators for controllers."""

from __future__ import annotations

from functools import wraps
from typing import Callable, TypeVar

from flask import g, jsonify

from savanna.core.auth.client_context import current_auth_state

F = TypeVar("F", bound=Callable)

ADMIN_USER_TYPE = "admin"


def require_user_types(*allowed: str):
    """Require a signed-in client whose profile user type is in ``allowed``.

    With no arguments only a session is required. Admins pass every check.
    The checked state is available as ``g.auth_state``.
    """

    def decorator(fn: F) -> F:
        @wraps(fn)
        def wrapper(*args, **kwargs):  # type: ignore[misc]
            state = current_auth_state()
            if state.session is None:
                return jsonify({"ok": False, "error": "unauthorized"}), 401
            g.auth_state = state
            if not allowed:
                return fn(*args, **kwargs)
            user_type = state.profile.user_type if state.profile else None
            if user_type == ADMIN_USER_TYPE or user_type in allowed:
                return fn(*args, **kwargs)
            return jsonify({"ok": False, "error": "forbidden"}), 403

        return wrapper  # type: ignore[return-value]

    return decorator


require_session = require_user_types()
