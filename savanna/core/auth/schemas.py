"""Schemas for auth flows (sign-in, sign-up, demo login) and state views."""

from __future__ import annotations

from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from savanna.core.auth.constants import (
    DEFAULT_USER_TYPE,
    EMAIL_PATTERN,
    KENYA_PHONE_PATTERN,
    MIN_PASSWORD_LENGTH,
)


def _normalize_email(value: str) -> str:
    email = (value or "").strip().lower()
    if not email:
        raise ValueError("Email and password are required")
    if not EMAIL_PATTERN.match(email):
        raise ValueError("Please enter a valid email address")
    return email


def _check_password(value: str) -> str:
    if not value:
        raise ValueError("Email and password are required")
    if len(value) < MIN_PASSWORD_LENGTH:
        raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
    return value


def _normalize_kenya_phone(value: Optional[str]) -> Optional[str]:
    """Canonical ``+2547XXXXXXXX`` form; an empty value means no phone."""
    compact = "".join((value or "").split())
    if not compact:
        return None
    match = KENYA_PHONE_PATTERN.match(compact)
    if match is None:
        raise ValueError("Please enter a valid Kenyan phone number (+254...)")
    return f"+254{match.group(1)}"


class SignInRequest(BaseModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return _normalize_email(v)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return _check_password(v)


class SignUpMetadata(BaseModel):
    """Free-form sign-up form metadata as sent by the frontend."""

    model_config = ConfigDict(extra="ignore")

    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    business_name: Optional[str] = None
    business_type: Optional[str] = None
    user_type: Optional[str] = None
    location: Optional[str] = None
    town: Optional[str] = None
    referred_by: Optional[str] = None

    @field_validator("phone")
    @classmethod
    def normalize_phone(cls, v: Optional[str]) -> Optional[str]:
        return _normalize_kenya_phone(v)


class SignUpRequest(SignInRequest):
    metadata: SignUpMetadata


class DemoLoginRequest(BaseModel):
    user_type: Literal["retailer", "supplier", "logistics"]


class Location(BaseModel):
    county: str = "Nairobi"
    town: str = "Nairobi"


class SignUpFields(BaseModel):
    """Shape handed to the remote service's sign-up call."""

    email: str
    password: str
    first_name: str = ""
    last_name: str = ""
    phone: str = ""
    business_name: Optional[str] = None
    business_type: Optional[str] = None
    user_type: str = DEFAULT_USER_TYPE
    location: Location = Field(default_factory=Location)
    mpesa_phone: Optional[str] = None
    referred_by: Optional[str] = None

    @classmethod
    def from_request(cls, request: SignUpRequest) -> "SignUpFields":
        meta = request.metadata
        return cls(
            email=request.email,
            password=request.password,
            first_name=meta.first_name or "",
            last_name=meta.last_name or "",
            phone=meta.phone or "",
            business_name=meta.business_name,
            business_type=meta.business_type,
            user_type=meta.user_type or DEFAULT_USER_TYPE,
            location=Location(county=meta.location or "Nairobi", town=meta.town or "Nairobi"),
            # M-Pesa expects the MSISDN without the leading "+".
            mpesa_phone=meta.phone.lstrip("+") if meta.phone else None,
            referred_by=meta.referred_by,
        )

    def user_metadata(self) -> Dict[str, Any]:
        """Metadata stored alongside the remote identity (no password)."""
        return self.model_dump(exclude={"email", "password"}, exclude_none=True)


class AuthStateResponse(BaseModel):
    status: str
    loading: bool
    session: Optional[Dict[str, Any]] = None
    profile: Optional[Dict[str, Any]] = None
    last_auth_error: Optional[str] = None
    initialization_failed: bool = False


__all__ = [
    "SignInRequest",
    "SignUpMetadata",
    "SignUpRequest",
    "DemoLoginRequest",
    "Location",
    "SignUpFields",
    "AuthStateResponse",
]
