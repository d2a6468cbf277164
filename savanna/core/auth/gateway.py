"""Action gateway: sign-in, sign-up, sign-out and demo login."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

import pydantic

from savanna.core.auth.audit import AuditEntry, AuditSink, NullAuditSink, record_safely
from savanna.core.auth.backend import AuthBackend
from savanna.core.auth.constants import (
    AUTH_DEMO_LOGIN,
    AUTH_SIGN_IN_FAILED,
    AUTH_SIGN_IN_SUCCEEDED,
    AUTH_SIGN_UP_FAILED,
    AUTH_SIGN_UP_SUCCEEDED,
    AUTH_SIGNED_OUT,
)
from savanna.core.auth.errors import (
    AccountCreationError,
    AuthError,
    CredentialsError,
    DemoUnavailableError,
    ServiceUnavailableError,
    ValidationError,
)
from savanna.core.auth.messages import sign_up_welcome
from savanna.core.auth.models import AuthResult, DemoResult, Session
from savanna.core.auth.notifications import (
    VARIANT_DESTRUCTIVE,
    Notifier,
    NullNotifier,
    notify_safely,
)
from savanna.core.auth.schemas import DemoLoginRequest, SignInRequest, SignUpFields, SignUpRequest
from savanna.core.auth.session_manager import SessionManager
from savanna.core.auth.state import AuthState, AuthStateStore
from savanna.core.profiles.models import Profile, ProfileCompleteness

logger = logging.getLogger(__name__)


def _validation_message(exc: pydantic.ValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return ValidationError.default_message
    message = str(errors[0].get("msg") or ValidationError.default_message)
    # pydantic prefixes custom validator messages.
    return message.removeprefix("Value error, ")


class AuthGateway:
    def __init__(
        self,
        backend: Optional[AuthBackend],
        session_manager: SessionManager,
        store: AuthStateStore,
        notifier: Optional[Notifier] = None,
        audit: Optional[AuditSink] = None,
    ):
        self.backend = backend
        self.session_manager = session_manager
        self.store = store
        self.notifier = notifier or NullNotifier()
        self.audit = audit or NullAuditSink()

    def sign_in(self, email: str, password: str) -> AuthState:
        try:
            data = SignInRequest.model_validate({"email": email, "password": password})
        except pydantic.ValidationError as exc:
            raise self._fail(ValidationError(_validation_message(exc))) from exc

        backend = self._require_backend()
        try:
            result = backend.sign_in_with_password(data.email, data.password)
        except Exception as exc:
            logger.error("Auth service sign-in error: %s", exc.__class__.__name__)
            self._audit(AUTH_SIGN_IN_FAILED, False, data.email, reason="service_error")
            raise self._fail(ServiceUnavailableError()) from exc

        if not isinstance(result, AuthResult):
            self._audit(AUTH_SIGN_IN_FAILED, False, data.email, reason="invalid_response")
            raise self._fail(ServiceUnavailableError("Invalid response from authentication service"))

        if not result.success or result.session is None:
            self._audit(AUTH_SIGN_IN_FAILED, False, data.email, reason=result.error or "rejected")
            error = CredentialsError(result.error or None)
            notify_safely(self.notifier, "Sign In Failed", error.message, VARIANT_DESTRUCTIVE)
            raise self._fail(error)

        self._audit(AUTH_SIGN_IN_SUCCEEDED, True, result.session.actor_id)
        self.store.clear_error()
        # Profile problems never fail an authenticated sign-in.
        self.session_manager.on_session_changed(result.session)
        self.session_manager.record_login(result.session)
        notify_safely(
            self.notifier,
            result.welcome_message or "Welcome Back!",
            "Successfully signed in to Savanna Marketplace",
        )
        return self.store.snapshot()

    def sign_up(self, email: str, password: str, metadata: Optional[Mapping[str, Any]]) -> AuthState:
        if not metadata:
            raise self._fail(ValidationError("User metadata is required"))
        try:
            request = SignUpRequest.model_validate({"email": email, "password": password, "metadata": dict(metadata)})
        except pydantic.ValidationError as exc:
            raise self._fail(ValidationError(_validation_message(exc))) from exc
        fields = SignUpFields.from_request(request)

        backend = self._require_backend()
        try:
            result = backend.sign_up(fields)
        except Exception as exc:
            logger.error("Auth service sign-up error: %s", exc.__class__.__name__)
            self._audit(AUTH_SIGN_UP_FAILED, False, fields.email, reason="service_error")
            raise self._fail(ServiceUnavailableError()) from exc

        if not isinstance(result, AuthResult):
            raise self._fail(ServiceUnavailableError("Invalid response from authentication service"))

        if not result.success:
            self._audit(AUTH_SIGN_UP_FAILED, False, fields.email, reason=result.error or "rejected")
            error = AccountCreationError(result.error or None)
            notify_safely(self.notifier, "Sign Up Failed", error.message, VARIANT_DESTRUCTIVE)
            raise self._fail(error)

        self._audit(AUTH_SIGN_UP_SUCCEEDED, True, fields.email, user_type=fields.user_type)
        self.store.clear_error()
        if result.session is not None:
            self.session_manager.on_session_changed(result.session)
        notify_safely(
            self.notifier,
            result.welcome_message or sign_up_welcome(fields.first_name, fields.user_type),
            "Welcome to the Savanna pride!",
        )
        return self.store.snapshot()

    def sign_out(self) -> AuthState:
        actor_id = self.store.snapshot().actor_id
        try:
            if self.backend is not None:
                self.backend.sign_out()
        except Exception:
            logger.error("Auth service sign-out failed; clearing local session anyway", exc_info=True)
        finally:
            self.store.clear()
        self._audit(AUTH_SIGNED_OUT, True, actor_id)
        return self.store.snapshot()

    def demo_login(self, kind: str) -> AuthState:
        try:
            data = DemoLoginRequest.model_validate({"user_type": kind})
        except pydantic.ValidationError as exc:
            raise self._fail(ValidationError("Invalid user type for demo login")) from exc

        try:
            backend = self._require_backend()
            result = backend.demo_login(data.user_type)
            session, profile = self._demo_identity(result)
        except Exception as exc:
            logger.error("Demo login for %s failed: %s", data.user_type, exc)
            notify_safely(
                self.notifier,
                "Demo Login Failed",
                "Please try again or contact support.",
                VARIANT_DESTRUCTIVE,
            )
            raise self._fail(DemoUnavailableError()) from exc

        self.store.set_session_and_profile(session, profile)
        self._audit(AUTH_DEMO_LOGIN, True, session.actor_id, user_type=data.user_type)
        notify_safely(self.notifier, result.welcome_message or "Demo Login Successful", "Demo mode activated!")
        return self.store.snapshot()

    # --- helpers ---

    def _require_backend(self) -> AuthBackend:
        if self.backend is None:
            raise self._fail(ServiceUnavailableError("Authentication service not properly initialized"))
        return self.backend

    @staticmethod
    def _demo_identity(result: DemoResult) -> tuple[Session, Profile]:
        if not isinstance(result, DemoResult):
            raise ValueError("Invalid response from authentication service")
        if not result.success or not result.user:
            raise ValueError(result.error or "Demo login failed")
        user = result.user
        if not user.get("id") or not user.get("email"):
            raise ValueError("Invalid user data - missing required fields")

        session = Session(
            actor_id=str(user["id"]),
            email=user["email"],
            is_demo=True,
            user_metadata={
                "first_name": user.get("firstName") or "Demo",
                "last_name": user.get("lastName") or "User",
                "user_type": user.get("userType") or "retailer",
            },
        )
        profile = Profile(id=str(user["id"]), data=dict(user), completeness=ProfileCompleteness.DEMO)
        return session, profile

    def _fail(self, error: AuthError) -> AuthError:
        self.store.set_error(error.message)
        return error

    def _audit(self, event_type: str, success: bool, identity: Optional[str], **details: Any) -> None:
        record_safely(self.audit, AuditEntry.build(event_type, success, identity, **details))


__all__ = ["AuthGateway"]
