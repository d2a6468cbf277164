"""Supabase client: GoTrue auth, PostgREST tables and the demo edge function."""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import requests

from savanna.core.auth.backend import (
    SessionCallback,
    StoreErrorKind,
    StoreResult,
    Unsubscribe,
)
from savanna.core.auth.constants import (
    SESSION_EVENT_SIGNED_IN,
    SESSION_EVENT_SIGNED_OUT,
    SESSION_EVENT_TOKEN_REFRESHED,
)
from savanna.core.auth.messages import friendly_auth_message
from savanna.core.auth.models import AuthResult, DemoResult, Session
from savanna.core.auth.schemas import SignUpFields
from savanna.integrations.supabase.errors import (
    SupabaseError,
    auth_error_message,
    store_error_from_payload,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 15.0
SINGLE_OBJECT_MIME = "application/vnd.pgrst.object+json"
USER_EXISTS = "User already exists with this email or phone number"


class SupabaseClient:
    """Implements both ``AuthBackend`` and ``TableStore`` for one client.

    Holds that client's tokens, so every browser/client gets its own instance.
    """

    def __init__(
        self,
        url: str,
        anon_key: str,
        *,
        demo_function: str = "demo-login",
        profile_table: str = "user_profiles",
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        http: Optional[requests.Session] = None,
        session: Optional[Session] = None,
    ):
        if not url or not anon_key:
            raise SupabaseError("Missing Supabase configuration")
        self.url = url.rstrip("/")
        self.anon_key = anon_key
        self.demo_function = demo_function
        self.profile_table = profile_table
        self.timeout = timeout
        self._http = http or requests.Session()
        self._session = session
        self._listeners: List[SessionCallback] = []
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "SupabaseClient":
        return cls(
            config.get("SUPABASE_URL", ""),
            config.get("SUPABASE_ANON_KEY", ""),
            demo_function=config.get("SUPABASE_DEMO_FUNCTION", "demo-login"),
            profile_table=config.get("PROFILE_TABLE", "user_profiles"),
            timeout=float(config.get("SUPABASE_HTTP_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS)),
        )

    # --- session-change notifications ---

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

    # --- auth ---

    def get_current_session(self) -> Optional[Session]:
        session = self._session
        if session is None:
            return None
        if session.expires_at and session.expires_at <= int(time.time()) and session.refresh_token:
            return self.refresh_session()

        status, payload = self._request("GET", "/auth/v1/user", bearer=session.access_token)
        if status == 200 and isinstance(payload, dict):
            session.email = payload.get("email") or session.email
            session.phone = payload.get("phone") or session.phone
            session.user_metadata = payload.get("user_metadata") or session.user_metadata
            return session
        if status in (401, 403):
            self._session = None
            return None
        raise SupabaseError(auth_error_message(payload, "Failed to load session"), status)

    def refresh_session(self) -> Optional[Session]:
        current = self._session
        if current is None or not current.refresh_token:
            return None
        status, payload = self._request(
            "POST",
            "/auth/v1/token",
            params={"grant_type": "refresh_token"},
            json={"refresh_token": current.refresh_token},
        )
        if status == 200 and isinstance(payload, dict):
            self._session = self._session_from_payload(payload)
            self._emit(SESSION_EVENT_TOKEN_REFRESHED, self._session)
            return self._session
        if status >= 500:
            raise SupabaseError(auth_error_message(payload, "Token refresh failed"), status)
        self._session = None
        self._emit(SESSION_EVENT_SIGNED_OUT, None)
        return None

    def sign_in_with_password(self, email: str, password: str) -> AuthResult:
        status, payload = self._request(
            "POST",
            "/auth/v1/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        if status >= 500:
            raise SupabaseError(auth_error_message(payload, "Authentication service error"), status)
        if status != 200 or not isinstance(payload, dict) or not payload.get("access_token"):
            message = auth_error_message(payload, "Invalid login credentials")
            return AuthResult(success=False, error=friendly_auth_message(message))

        session = self._session_from_payload(payload)
        self._session = session
        self._emit(SESSION_EVENT_SIGNED_IN, session)
        return AuthResult(success=True, session=session, user=payload.get("user"))

    def sign_up(self, fields: SignUpFields) -> AuthResult:
        if self._profile_exists(fields.email, fields.phone):
            return AuthResult(success=False, error=USER_EXISTS)
        status, payload = self._request(
            "POST",
            "/auth/v1/signup",
            json={"email": fields.email, "password": fields.password, "data": fields.user_metadata()},
        )
        if status >= 500:
            raise SupabaseError(auth_error_message(payload, "Authentication service error"), status)
        if status not in (200, 201) or not isinstance(payload, dict):
            return AuthResult(success=False, error=auth_error_message(payload, "Failed to create account"))

        if payload.get("access_token"):
            session = self._session_from_payload(payload)
            self._session = session
            self._emit(SESSION_EVENT_SIGNED_IN, session)
            return AuthResult(success=True, session=session, user=payload.get("user"))
        # Email confirmation pending: the user exists but has no session yet.
        user = payload.get("user") if "user" in payload else payload
        return AuthResult(success=True, user=user)

    def restore_session(self, session: Optional[Session]) -> None:
        self._session = session

    def sign_out(self) -> None:
        session, self._session = self._session, None
        try:
            if session is not None and session.access_token:
                status, payload = self._request("POST", "/auth/v1/logout", bearer=session.access_token)
                if status >= 500:
                    raise SupabaseError(auth_error_message(payload, "Sign out failed"), status)
        finally:
            self._emit(SESSION_EVENT_SIGNED_OUT, None)

    def demo_login(self, kind: str) -> DemoResult:
        status, payload = self._request(
            "POST",
            f"/functions/v1/{self.demo_function}",
            json={"userType": kind},
        )
        if status != 200 or not isinstance(payload, dict):
            return DemoResult(success=False, error=auth_error_message(payload, "Demo login failed"))
        welcome = payload.get("wildlifeWelcome") or {}
        return DemoResult(
            success=bool(payload.get("success")),
            user=payload.get("user"),
            error=payload.get("error"),
            welcome_message=welcome.get("message") if isinstance(welcome, dict) else None,
        )

    # --- tables ---

    def select_one(
        self,
        table: str,
        filters: Mapping[str, Any],
        embed: Optional[Mapping[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> StoreResult:
        columns = ["*"] + [f"{key}:{related}(*)" for key, related in (embed or {}).items()]
        params = {"select": ",".join(columns), **self._filter_params(filters)}
        return self._table_call(
            "GET",
            table,
            params=params,
            headers={"Accept": SINGLE_OBJECT_MIME},
            timeout=timeout,
        )

    def insert(self, table: str, rows: Sequence[Mapping[str, Any]], timeout: Optional[float] = None) -> StoreResult:
        return self._table_call(
            "POST",
            table,
            json=[dict(row) for row in rows],
            headers={"Prefer": "return=representation"},
            timeout=timeout,
        )

    def delete(self, table: str, filters: Mapping[str, Any], timeout: Optional[float] = None) -> StoreResult:
        return self._table_call("DELETE", table, params=self._filter_params(filters), timeout=timeout)

    def update(
        self,
        table: str,
        values: Mapping[str, Any],
        filters: Mapping[str, Any],
        timeout: Optional[float] = None,
    ) -> StoreResult:
        result = self._table_call(
            "PATCH",
            table,
            params=self._filter_params(filters),
            json=dict(values),
            headers={"Prefer": "return=representation"},
            timeout=timeout,
        )
        if result.ok:
            return StoreResult.success(len(result.data) if isinstance(result.data, list) else 0)
        return result

    def _profile_exists(self, email: str, phone: Optional[str]) -> bool:
        """Best-effort duplicate check against profiles; lookup failures count as "no"."""
        conditions = [f"email.eq.{email}"]
        if phone:
            conditions.append(f"phone.eq.{phone}")
        result = self._table_call(
            "GET",
            self.profile_table,
            params={"select": "id", "or": "(" + ",".join(conditions) + ")", "limit": "1"},
        )
        if not result.ok:
            logger.info("User existence check failed (%s)", result.error_kind.value)
            return False
        return bool(result.data)

    def _table_call(self, method: str, table: str, **kwargs: Any) -> StoreResult:
        bearer = self._session.access_token if self._session and self._session.access_token else None
        try:
            status, payload = self._request(method, f"/rest/v1/{table}", bearer=bearer, **kwargs)
        except requests.Timeout as exc:
            return StoreResult.failure(StoreErrorKind.TIMEOUT, str(exc) or "request timed out")
        except requests.RequestException as exc:
            return StoreResult.failure(StoreErrorKind.OTHER, str(exc))
        if 200 <= status < 300:
            return StoreResult.success(payload)
        error = store_error_from_payload(status, payload if isinstance(payload, dict) else None)
        return StoreResult(error=error)

    @staticmethod
    def _filter_params(filters: Mapping[str, Any]) -> Dict[str, str]:
        return {column: f"eq.{value}" for column, value in filters.items()}

    # --- transport ---

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        json: Any = None,
        headers: Optional[Mapping[str, str]] = None,
        bearer: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> Tuple[int, Any]:
        merged = {
            "apikey": self.anon_key,
            "Authorization": f"Bearer {bearer or self.anon_key}",
            "Content-Type": "application/json",
        }
        merged.update(headers or {})
        resp = self._http.request(
            method,
            f"{self.url}{path}",
            params=params,
            json=json,
            headers=merged,
            timeout=timeout or self.timeout,
        )
        if not resp.content:
            return resp.status_code, None
        try:
            return resp.status_code, resp.json()
        except ValueError:
            return resp.status_code, {"message": resp.text}

    @staticmethod
    def _session_from_payload(payload: Mapping[str, Any]) -> Session:
        user = payload.get("user") or {}
        expires_at = payload.get("expires_at")
        if not expires_at and payload.get("expires_in"):
            expires_at = int(time.time()) + int(payload["expires_in"])
        return Session(
            actor_id=str(user.get("id") or ""),
            email=user.get("email"),
            phone=user.get("phone") or None,
            access_token=payload.get("access_token"),
            refresh_token=payload.get("refresh_token"),
            expires_at=int(expires_at) if expires_at else None,
            user_metadata=dict(user.get("user_metadata") or {}),
        )


__all__ = ["SupabaseClient", "DEFAULT_TIMEOUT_SECONDS"]
