"""``AuthBackend`` backed by the application's own database.

Accounts live in ``auth_account``; sessions are pairs of JWTs issued with
flask_jwt_extended. One instance per client, like the Supabase client.
"""

from __future__ import annotations

import copy
import logging
import random
import threading
from datetime import datetime, timezone
from typing import List, Optional

from flask_jwt_extended import create_access_token, create_refresh_token, decode_token
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt.exceptions import ExpiredSignatureError, PyJWTError
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from savanna.core.auth.backend import SessionCallback, Unsubscribe
from savanna.core.auth.constants import (
    SESSION_EVENT_SIGNED_IN,
    SESSION_EVENT_SIGNED_OUT,
    SESSION_EVENT_TOKEN_REFRESHED,
)
from savanna.core.auth.messages import friendly_auth_message, sign_up_welcome, welcome_back
from savanna.core.auth.models import AuthResult, DemoResult, Session
from savanna.core.auth.schemas import SignUpFields
from savanna.extensions import bcrypt, db
from savanna.integrations.database.demo_users import DEMO_USERS
from savanna.integrations.database.models import AuthAccount

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid login credentials"
ALREADY_REGISTERED = "User already exists with this email or phone number"


def hash_password(plain_password: str) -> str:
    return bcrypt.generate_password_hash(plain_password).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return bcrypt.check_password_hash(hashed_password, plain_password)


class LocalAuthBackend:
    def __init__(
        self,
        demo_enabled: bool = True,
        session: Optional[Session] = None,
        rng: Optional[random.Random] = None,
    ):
        self.demo_enabled = demo_enabled
        self._session = session
        self._rng = rng or random.Random()
        self._listeners: List[SessionCallback] = []
        self._lock = threading.Lock()

    def subscribe(self, callback: SessionCallback) -> Unsubscribe:
        with self._lock:
            self._listeners.append(callback)

        def _unsubscribe() -> None:
            with self._lock:
                if callback in self._listeners:
                    self._listeners.remove(callback)

        return _unsubscribe

    def _emit(self, event: str, session: Optional[Session]) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(event, session)
            except Exception:
                logger.exception("Session listener failed for %s", event)

    def get_current_session(self) -> Optional[Session]:
        session = self._session
        if session is None or not session.access_token:
            return None
        try:
            claims = decode_token(session.access_token)
        except ExpiredSignatureError:
            return self.refresh_session()
        except (PyJWTError, JWTExtendedException):
            logger.info("Dropping session with an invalid access token")
            self._session = None
            return None

        account = db.session.get(AuthAccount, claims.get("sub"))
        if account is None or not account.is_active:
            self._session = None
            return None
        return session

    def refresh_session(self) -> Optional[Session]:
        current = self._session
        if current is None or not current.refresh_token:
            return None
        try:
            claims = decode_token(current.refresh_token)
            account = db.session.get(AuthAccount, claims.get("sub"))
        except (PyJWTError, JWTExtendedException):
            account = None
        if account is None or not account.is_active:
            self._session = None
            self._emit(SESSION_EVENT_SIGNED_OUT, None)
            return None

        self._session = self._issue_session(account)
        self._emit(SESSION_EVENT_TOKEN_REFRESHED, self._session)
        return self._session

    def sign_in_with_password(self, email: str, password: str) -> AuthResult:
        account = AuthAccount.query.filter_by(email=email).first()
        if account is None or not verify_password(password, account.password_hash):
            return AuthResult(success=False, error=friendly_auth_message(INVALID_CREDENTIALS))
        if not account.is_active:
            return AuthResult(success=False, error="Account is disabled")

        session = self._issue_session(account)
        self._session = session
        self._emit(SESSION_EVENT_SIGNED_IN, session)
        return AuthResult(
            success=True,
            session=session,
            user={"id": account.id, "email": account.email},
            welcome_message=self._welcome_back(account.user_metadata.get("first_name")),
        )

    def sign_up(self, fields: SignUpFields) -> AuthResult:
        if self._account_exists(fields.email, fields.phone):
            return AuthResult(success=False, error=ALREADY_REGISTERED)

        account = AuthAccount(
            email=fields.email,
            password_hash=hash_password(fields.password),
            phone=fields.phone or None,
            user_metadata=fields.user_metadata(),
        )
        db.session.add(account)
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            return AuthResult(success=False, error=ALREADY_REGISTERED)

        session = self._issue_session(account)
        self._session = session
        self._emit(SESSION_EVENT_SIGNED_IN, session)
        return AuthResult(
            success=True,
            session=session,
            user={"id": account.id, "email": account.email},
            welcome_message=sign_up_welcome(fields.first_name, fields.user_type),
        )

    def restore_session(self, session: Optional[Session]) -> None:
        self._session = session

    def sign_out(self) -> None:
        self._session = None
        self._emit(SESSION_EVENT_SIGNED_OUT, None)

    def demo_login(self, kind: str) -> DemoResult:
        if not self.demo_enabled:
            return DemoResult(success=False, error="Demo login is disabled")
        template = DEMO_USERS.get(kind)
        if template is None:
            return DemoResult(success=False, error=f"Unknown demo user type: {kind}")

        user = copy.deepcopy(template)
        user["lastLoginDate"] = datetime.now(timezone.utc).isoformat()
        return DemoResult(success=True, user=user, welcome_message=self._welcome_back(user["firstName"]))

    def _issue_session(self, account: AuthAccount) -> Session:
        access_token = create_access_token(identity=account.id, additional_claims={"email": account.email})
        refresh_token = create_refresh_token(identity=account.id)
        expires = decode_token(access_token).get("exp")
        return Session(
            actor_id=account.id,
            email=account.email,
            phone=account.phone,
            access_token=access_token,
            refresh_token=refresh_token,
            expires_at=int(expires) if expires else None,
            user_metadata=dict(account.user_metadata or {}),
        )

    def _welcome_back(self, name: Optional[str]) -> str:
        return welcome_back(name, self._rng)

    @staticmethod
    def _account_exists(email: str, phone: Optional[str]) -> bool:
        clauses = [AuthAccount.email == email]
        if phone:
            clauses.append(AuthAccount.phone == phone)
        return AuthAccount.query.filter(or_(*clauses)).first() is not None


__all__ = ["LocalAuthBackend", "hash_password", "verify_password", "INVALID_CREDENTIALS", "ALREADY_REGISTERED"]
