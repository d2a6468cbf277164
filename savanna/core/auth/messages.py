"""User-facing auth copy: friendly error text and welcome messages."""

from __future__ import annotations

import random
from typing import Optional

from savanna.core.auth.constants import DEFAULT_USER_TYPE

FRIENDLY_AUTH_ERRORS = {
    "Invalid login credentials": "These credentials don't match our pride records",
    "Email not confirmed": "Please check your email and confirm your account",
    "Too many requests": "Too many attempts. Please wait a moment before trying again",
    "User not found": "No account found with these details",
}

SIGN_UP_WELCOMES = {
    "retailer": "Welcome to the pride, {name}! Your shop is now part of the savanna ecosystem.",
    "supplier": "Welcome, {name}! Your products will feed the entire savanna.",
    "logistics": "Welcome, {name}! You're the cheetah that keeps the savanna moving.",
}

WELCOME_BACK_TEMPLATES = (
    "Welcome back to the pride, {name}!",
    "The savanna awakens with your return, {name}!",
    "The acacia trees missed you, {name}!",
)


def friendly_auth_message(message: Optional[str]) -> Optional[str]:
    """Known remote sign-in errors get friendlier wording; others pass through."""
    if not message:
        return message
    return FRIENDLY_AUTH_ERRORS.get(message.strip(), message)


def sign_up_welcome(first_name: Optional[str], user_type: Optional[str]) -> str:
    template = SIGN_UP_WELCOMES.get(user_type or DEFAULT_USER_TYPE, SIGN_UP_WELCOMES[DEFAULT_USER_TYPE])
    return template.format(name=first_name or "friend")


def welcome_back(first_name: Optional[str], rng: Optional[random.Random] = None) -> str:
    return (rng or random).choice(WELCOME_BACK_TEMPLATES).format(name=first_name or "friend")


__all__ = [
    "FRIENDLY_AUTH_ERRORS",
    "SIGN_UP_WELCOMES",
    "WELCOME_BACK_TEMPLATES",
    "friendly_auth_message",
    "sign_up_welcome",
    "welcome_back",
]
