"""Auth HTTP controllers (API only)."""

from __future__ import annotations

from flask import Blueprint, jsonify, request

from savanna.core.auth.client_context import CLIENT_ID_HEADER, client_id, client_token, current_provider, registry
from savanna.extensions import limiter

auth_bp = Blueprint("auth_api", __name__)


@auth_bp.after_request
def _expose_client_token(response):
    token = client_token()
    if token:
        response.headers[CLIENT_ID_HEADER] = token
    return response


def _state_response(state):
    return jsonify({"ok": True, "state": state.to_dict()})


@auth_bp.get("/state")
def get_state():
    return _state_response(current_provider().state)


@auth_bp.post("/sign-in")
@limiter.limit("5/minute")
def sign_in():
    payload = request.get_json(silent=True) or {}
    state = current_provider().sign_in(payload.get("email") or "", payload.get("password") or "")
    return _state_response(state)


@auth_bp.post("/sign-up")
@limiter.limit("5/minute")
def sign_up():
    payload = request.get_json(silent=True) or {}
    metadata = payload.get("metadata") or payload.get("user_data")
    state = current_provider().sign_up(payload.get("email") or "", payload.get("password") or "", metadata)
    return _state_response(state), 201


@auth_bp.post("/sign-out")
def sign_out():
    state = current_provider().sign_out()
    # A signed-out client keeps nothing in memory until it returns.
    registry().close(client_id())
    return _state_response(state)


@auth_bp.post("/demo-login")
@limiter.limit("10/minute")
def demo_login():
    payload = request.get_json(silent=True) or {}
    state = current_provider().demo_login(payload.get("user_type") or "")
    return _state_response(state)
