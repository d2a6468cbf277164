"""Application configuration for Savanna Marketplace."""

from __future__ import annotations

import os
from datetime import timedelta
from typing import Dict, Optional, Type

from dotenv import load_dotenv
from sqlalchemy.engine.url import make_url

load_dotenv()


def _env_flag(name: str, default: str) -> bool:
    return os.environ.get(name, default).lower() in ("1", "true", "yes")


def _env_float(name: str) -> Optional[float]:
    value = os.environ.get(name)
    return float(value) if value else None


def _engine_options_from_uri(uri: str, write_timeout: float) -> dict:
    url = make_url(uri)
    if url.get_backend_name() == "sqlite":
        # A locked database must not stall a profile write past its own bound.
        return {"pool_pre_ping": True, "connect_args": {"timeout": min(30.0, write_timeout)}}
    if url.get_backend_name() in {"postgresql", "postgres"}:
        timeout = int(os.environ.get("DB_CONNECT_TIMEOUT_SECONDS", "10"))
        return {"pool_pre_ping": True, "connect_args": {"connect_timeout": timeout}}
    return {"pool_pre_ping": True}


class BaseConfig:
    """Base configuration loaded for all environments."""

    SECRET_KEY = os.environ.get("SECRET_KEY", "change-me")
    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL", "sqlite:///instance/savanna.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    PROFILE_WRITE_TIMEOUT_SECONDS = float(os.environ.get("PROFILE_WRITE_TIMEOUT_SECONDS", "10"))
    SQLALCHEMY_ENGINE_OPTIONS = _engine_options_from_uri(SQLALCHEMY_DATABASE_URI, PROFILE_WRITE_TIMEOUT_SECONDS)
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = "Lax"
    SESSION_COOKIE_SECURE = _env_flag("SESSION_COOKIE_SECURE", "false")

    JWT_SECRET_KEY = os.environ.get("JWT_SECRET_KEY", SECRET_KEY)
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(minutes=int(os.environ.get("JWT_ACCESS_MINUTES", "60")))
    JWT_REFRESH_TOKEN_EXPIRES = timedelta(days=int(os.environ.get("JWT_REFRESH_DAYS", "14")))

    RATELIMIT_DEFAULT = "200/hour"
    RATELIMIT_STORAGE_URI = os.environ.get("REDIS_URL", "memory://")
    RATELIMIT_ENABLED = _env_flag("RATELIMIT_ENABLED", "true")

    # Remote auth/data service: "supabase" or "database" (built-in tables).
    AUTH_BACKEND = os.environ.get("AUTH_BACKEND", "database").lower()
    SUPABASE_URL = os.environ.get("SUPABASE_URL", "")
    SUPABASE_ANON_KEY = os.environ.get("SUPABASE_ANON_KEY", "")
    SUPABASE_DEMO_FUNCTION = os.environ.get("SUPABASE_DEMO_FUNCTION", "demo-login")
    SUPABASE_HTTP_TIMEOUT_SECONDS = float(os.environ.get("SUPABASE_HTTP_TIMEOUT_SECONDS", "15"))

    PROFILE_TABLE = os.environ.get("PROFILE_TABLE", "user_profiles")
    ORGANIZATION_TABLE = os.environ.get("ORGANIZATION_TABLE", "organizations")
    # Probe write permission with a disposable row before creating profiles.
    PROFILE_PERMISSION_PROBE = _env_flag("PROFILE_PERMISSION_PROBE", "true")
    DEMO_LOGIN_ENABLED = _env_flag("DEMO_LOGIN_ENABLED", "true")

    # In-memory providers per worker; sessions themselves live in auth_client_session.
    AUTH_PROVIDER_MAX_CLIENTS = int(os.environ.get("AUTH_PROVIDER_MAX_CLIENTS", "1000"))
    AUTH_PROVIDER_IDLE_SECONDS = float(os.environ.get("AUTH_PROVIDER_IDLE_SECONDS", "1800"))
    # Share sessions across worker processes through the database.
    AUTH_PERSIST_SESSIONS = _env_flag("AUTH_PERSIST_SESSIONS", "true")

    # Overrides every sandbox processor's own success rate when set.
    PAYMENT_SANDBOX_SUCCESS_RATE = _env_float("PAYMENT_SANDBOX_SUCCESS_RATE")


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    ENV = "development"


class TestingConfig(BaseConfig):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = os.environ.get("TEST_DATABASE_URL", "sqlite://")
    SQLALCHEMY_ENGINE_OPTIONS = _engine_options_from_uri(
        SQLALCHEMY_DATABASE_URI, BaseConfig.PROFILE_WRITE_TIMEOUT_SECONDS
    )
    RATELIMIT_ENABLED = False
    JWT_SECRET_KEY = "testing-jwt-secret-key-0123456789abcdef"
    BCRYPT_LOG_ROUNDS = 4
    AUTH_BACKEND = "database"
    PAYMENT_SANDBOX_SUCCESS_RATE = 1.0


class ProductionConfig(BaseConfig):
    ENV = "production"
    SESSION_COOKIE_SECURE = True
    AUTH_BACKEND = os.environ.get("AUTH_BACKEND", "supabase").lower()


config_by_name: Dict[str, Type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
    # CI pipelines set APP_ENV=ci; map to testing defaults.
    "ci": TestingConfig,
}
