from __future__ import annotations

import pytest

from savanna.config import BaseConfig, TestingConfig, _engine_options_from_uri

pytestmark = pytest.mark.unit


def test_sqlite_busy_timeout_never_exceeds_profile_write_timeout():
    options = _engine_options_from_uri("sqlite:///instance/savanna.db", 10.0)

    assert options["connect_args"]["timeout"] == 10.0


def test_sqlite_busy_timeout_keeps_its_ceiling():
    options = _engine_options_from_uri("sqlite://", 120.0)

    assert options["connect_args"]["timeout"] == 30.0


def test_postgres_uses_connect_timeout():
    options = _engine_options_from_uri("postgresql://savanna@db/savanna", 10.0)

    assert "timeout" not in options["connect_args"]
    assert options["pool_pre_ping"] is True


def test_configured_engines_respect_write_timeout():
    for config in (BaseConfig, TestingConfig):
        connect_args = config.SQLALCHEMY_ENGINE_OPTIONS.get("connect_args", {})
        if "timeout" in connect_args:
            assert connect_args["timeout"] <= config.PROFILE_WRITE_TIMEOUT_SECONDS


def test_provider_registry_limits_have_defaults():
    assert BaseConfig.AUTH_PROVIDER_MAX_CLIENTS > 0
    assert BaseConfig.AUTH_PROVIDER_IDLE_SECONDS > 0
