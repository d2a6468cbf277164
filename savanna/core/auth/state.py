"""Explicitly owned auth state container.

One ``AuthStateStore`` per client. All mutations go through a single lock so
that request threads and remote session-change callbacks observe
last-write-wins ordering on the session field.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, List, Optional

from savanna.core.auth.models import Session
from savanna.core.profiles.models import Profile

logger = logging.getLogger(__name__)


class AuthStatus(str, Enum):
    LOADING = "loading"
    READY = "ready"


@dataclass(frozen=True)
class AuthState:
    session: Optional[Session] = None
    profile: Optional[Profile] = None
    status: AuthStatus = AuthStatus.LOADING
    last_auth_error: Optional[str] = None
    initialization_failed: bool = False

    @property
    def loading(self) -> bool:
        return self.status == AuthStatus.LOADING

    @property
    def actor_id(self) -> Optional[str]:
        return self.session.actor_id if self.session else None

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "loading": self.loading,
            "session": self.session.to_public_dict() if self.session else None,
            "profile": self.profile.to_dict() if self.profile else None,
            "last_auth_error": self.last_auth_error,
            "initialization_failed": self.initialization_failed,
        }


StateListener = Callable[[AuthState], None]


class AuthStateStore:
    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._state = AuthState()
        self._listeners: List[StateListener] = []

    def snapshot(self) -> AuthState:
        with self._lock:
            return self._state

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)

        def _unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return _unsubscribe

    # --- transitions ---

    def mark_ready(self, initialization_failed: bool = False) -> bool:
        """Leave ``loading``; only the first call has an effect."""
        with self._lock:
            if self._state.status == AuthStatus.READY:
                return False
            return self._commit(
                replace(self._state, status=AuthStatus.READY, initialization_failed=initialization_failed)
            )

    def set_session(self, session: Optional[Session]) -> bool:
        with self._lock:
            current = self._state
            if session == current.session:
                return False
            profile = current.profile
            if session is None or (profile is not None and profile.id != session.actor_id):
                profile = None
            return self._commit(replace(current, session=session, profile=profile))

    def apply_profile(self, actor_id: str, profile: Profile) -> bool:
        """Apply a resolved profile unless the session moved on to another actor."""
        with self._lock:
            current = self._state
            if current.session is None or current.session.actor_id != actor_id:
                logger.info("Discarding stale profile resolution")
                return False
            if current.profile == profile:
                return False
            return self._commit(replace(current, profile=profile))

    def set_session_and_profile(self, session: Session, profile: Profile) -> bool:
        with self._lock:
            return self._commit(replace(self._state, session=session, profile=profile, last_auth_error=None))

    def clear(self) -> bool:
        with self._lock:
            if self._state.session is None and self._state.profile is None:
                return False
            return self._commit(replace(self._state, session=None, profile=None))

    def set_error(self, message: Optional[str]) -> bool:
        with self._lock:
            if self._state.last_auth_error == message:
                return False
            return self._commit(replace(self._state, last_auth_error=message))

    def clear_error(self) -> bool:
        return self.set_error(None)

    def _commit(self, new_state: AuthState) -> bool:
        self._state = new_state
        for listener in list(self._listeners):
            try:
                listener(new_state)
            except Exception:
                logger.exception("Auth state listener failed")
        return True


__all__ = ["AuthState", "AuthStatus", "AuthStateStore", "StateListener"]
