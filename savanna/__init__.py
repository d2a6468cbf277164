"""Savanna Marketplace application factory and bootstrap."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from flask import Flask

from savanna.config import config_by_name
from savanna.core.auth.audit import EventLogAuditSink
from savanna.core.auth.errors import AuthError
from savanna.core.auth.notifications import EventBusNotifier
from savanna.core.auth.provider import AuthProvider, AuthProviderRegistry
from savanna.core.auth.session_repository import ClientSessionRepository
from savanna.core.events.event_bus import event_bus
from savanna.core.profiles.resolver import ResolverSettings
from savanna.domains.payments.services.payment_service import PaymentService
from savanna.extensions import init_extensions


def create_app(config_name: Optional[str] = None) -> Flask:
    """Create and configure the Savanna Flask application."""
    env_name = (config_name or os.environ.get("APP_ENV") or "development").lower()
    project_root = Path(__file__).resolve().parent.parent
    instance_root = project_root / "instance"

    app = Flask(__name__, instance_path=str(instance_root), instance_relative_config=True)
    config_cls = config_by_name.get(env_name, config_by_name["development"])
    app.config.from_object(config_cls)

    # Normalize sqlite path to absolute to avoid "unable to open database file"
    db_uri = app.config.get("SQLALCHEMY_DATABASE_URI")
    if db_uri and db_uri.startswith("sqlite:///"):
        abs_path = project_root / db_uri.replace("sqlite:///", "", 1)
        abs_path.parent.mkdir(parents=True, exist_ok=True)
        app.config["SQLALCHEMY_DATABASE_URI"] = f"sqlite:///{abs_path}"

    init_extensions(app)
    _register_models()
    _register_blueprints(app)
    _register_error_handlers(app)
    _register_auth_providers(app)

    app.extensions["event_bus"] = event_bus
    app.extensions["payment_service"] = PaymentService.from_config(app.config)

    @app.get("/health")
    def health():
        return {"ok": True}, 200

    from savanna.scripts.auth_commands import register_commands

    register_commands(app)

    return app


def _register_models() -> None:
    """Import model modules so their tables join the shared metadata."""
    from savanna.core.auth import session_models  # noqa: F401
    from savanna.core.events import event_models  # noqa: F401
    from savanna.integrations.database import models  # noqa: F401


def _register_blueprints(app: Flask) -> None:
    """Lazy import and register all controllers."""
    from savanna.core.auth.controllers import auth_bp  # local import to avoid circulars
    from savanna.domains.payments.controllers.payment_api import payment_api_bp

    app.register_blueprint(auth_bp, url_prefix="/auth")
    app.register_blueprint(payment_api_bp, url_prefix="/api/payments")


def _register_error_handlers(app: Flask) -> None:
    """JSON error responses."""
    from werkzeug.exceptions import HTTPException

    @app.errorhandler(AuthError)
    def _auth_error(exc: AuthError):
        return {"ok": False, "error": exc.code, "message": exc.message}, exc.http_status

    @app.errorhandler(HTTPException)
    def _http_error(exc: HTTPException):
        return {"ok": False, "error": exc.description}, exc.code

    @app.errorhandler(Exception)
    def _generic_error(exc: Exception):
        app.logger.exception("Unhandled error: %s", exc)
        if app.debug or app.testing:
            return {"ok": False, "error": str(exc)}, 500
        return {"ok": False, "error": "unexpected_error"}, 500


def _register_auth_providers(app: Flask) -> None:
    """One auth provider per client, built against the configured service."""
    from savanna.integrations.factory import build_backend

    settings = ResolverSettings.from_config(app.config)
    persistence = ClientSessionRepository(app) if app.config.get("AUTH_PERSIST_SESSIONS", True) else None

    def _factory(client_id: str) -> AuthProvider:
        backend, store = build_backend(app.config)
        return AuthProvider(
            backend,
            store,
            settings=settings,
            notifier=EventBusNotifier(client_id),
            audit=EventLogAuditSink(),
            client_id=client_id,
            persistence=persistence,
        )

    app.extensions["auth_registry"] = AuthProviderRegistry(
        _factory,
        max_size=app.config.get("AUTH_PROVIDER_MAX_CLIENTS"),
        idle_seconds=app.config.get("AUTH_PROVIDER_IDLE_SECONDS"),
    )
