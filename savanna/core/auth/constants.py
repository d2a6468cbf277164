"""Auth constants shared by the gateway, schemas and integrations."""

from __future__ import annotations

import re

DEMO_KINDS = ("retailer", "supplier", "logistics")
USER_TYPES = ("admin", "supplier", "retailer", "logistics", "guest")
DEFAULT_USER_TYPE = "retailer"
# User types allowed to move money on the marketplace.
TRADING_USER_TYPES = ("retailer", "supplier", "logistics")

MIN_PASSWORD_LENGTH = 6
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
# Kenyan mobile numbers: +254, 254 or 0 prefix (or none), then 7XX/1XX and eight digits.
KENYA_PHONE_PATTERN = re.compile(r"^(?:\+?254|0)?([17]\d{8})$")

# Session-change notification kinds, mirroring the remote service's vocabulary.
SESSION_EVENT_INITIAL = "INITIAL_SESSION"
SESSION_EVENT_SIGNED_IN = "SIGNED_IN"
SESSION_EVENT_SIGNED_OUT = "SIGNED_OUT"
SESSION_EVENT_TOKEN_REFRESHED = "TOKEN_REFRESHED"

# Audit trail event types
AUTH_SIGN_IN_SUCCEEDED = "auth.sign_in.succeeded"
AUTH_SIGN_IN_FAILED = "auth.sign_in.failed"
AUTH_SIGN_UP_SUCCEEDED = "auth.sign_up.succeeded"
AUTH_SIGN_UP_FAILED = "auth.sign_up.failed"
AUTH_SIGNED_OUT = "auth.signed_out"
AUTH_DEMO_LOGIN = "auth.demo_login"

NOTIFICATION_EVENT = "ui.notification"

__all__ = [
    "DEMO_KINDS",
    "USER_TYPES",
    "DEFAULT_USER_TYPE",
    "TRADING_USER_TYPES",
    "MIN_PASSWORD_LENGTH",
    "EMAIL_PATTERN",
    "KENYA_PHONE_PATTERN",
    "SESSION_EVENT_INITIAL",
    "SESSION_EVENT_SIGNED_IN",
    "SESSION_EVENT_SIGNED_OUT",
    "SESSION_EVENT_TOKEN_REFRESHED",
    "AUTH_SIGN_IN_SUCCEEDED",
    "AUTH_SIGN_IN_FAILED",
    "AUTH_SIGN_UP_SUCCEEDED",
    "AUTH_SIGN_UP_FAILED",
    "AUTH_SIGNED_OUT",
    "AUTH_DEMO_LOGIN",
    "NOTIFICATION_EVENT",
]
