"""Shared extensions for the Savanna application."""

from pathlib import Path

from flask import request
from flask_bcrypt import Bcrypt
from flask_jwt_extended import JWTManager
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy

MIGRATIONS_DIR = Path(__file__).resolve().parent / "migrations"


def client_rate_limit_key() -> str:
    """Rate-limit per auth client behind a shared address (NAT, mobile carriers)."""
    from savanna.core.auth.client_context import CLIENT_ID_HEADER, verify_client_token  # local import to avoid circulars

    address = get_remote_address()
    client = verify_client_token(request.headers.get(CLIENT_ID_HEADER))
    return f"{address}:{client}" if client else address


# Persistence, local-backend token issuance and password hashing
db = SQLAlchemy(session_options={"expire_on_commit": False})
migrate = Migrate()
jwt = JWTManager()
bcrypt = Bcrypt()
limiter = Limiter(key_func=client_rate_limit_key, enabled=True, default_limits=["200 per hour"])


def init_extensions(app) -> None:
    """Initialize all extensions with the Flask app."""
    db.init_app(app)
    migrate.init_app(app, db, directory=str(MIGRATIONS_DIR))
    jwt.init_app(app)
    bcrypt.init_app(app)
    limiter.enabled = app.config.get("RATELIMIT_ENABLED", True)
    limiter.default_limits = [app.config.get("RATELIMIT_DEFAULT", "200 per hour")]
    limiter.storage_uri = app.config.get("RATELIMIT_STORAGE_URI", "memory://")
    limiter.init_app(app)
