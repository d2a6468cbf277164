"""Session manager: the single source of truth for "who is signed in"."""

from __future__ import annotations

import logging
from typing import Optional

from savanna.core.auth.backend import AuthBackend, Unsubscribe
from savanna.core.auth.models import Session
from savanna.core.auth.state import AuthStateStore
from savanna.core.profiles.models import Profile
from savanna.core.profiles.resolver import ProfileResolver
from savanna.core.profiles.shapes import synthetic_profile
from savanna.core.utils.redaction import actor_reference

logger = logging.getLogger(__name__)


class SessionManager:
    def __init__(self, backend: Optional[AuthBackend], resolver: ProfileResolver, store: AuthStateStore):
        self.backend = backend
        self.resolver = resolver
        self.store = store
        self._unsubscribe: Optional[Unsubscribe] = None
        self._initialized = False

    def initialize(self) -> None:
        """Load the current session once; failures leave a ready, signed-out state."""
        if self._initialized:
            return
        self._initialized = True

        if self.backend is None:
            logger.error("No authentication service configured; starting signed out")
            self.store.mark_ready(initialization_failed=True)
            return

        failed = False
        try:
            session = self.backend.get_current_session()
        except Exception:
            logger.error("Failed to get initial session", exc_info=True)
            session, failed = None, True

        # Session is published (and loading ends) before profile resolution starts.
        self.store.set_session(session)
        self.store.mark_ready(initialization_failed=failed)

        # Notifications raised while reading the initial session (a token
        # refresh) are already reflected in ``session``; only later ones count.
        try:
            self._unsubscribe = self.backend.subscribe(self._handle_backend_event)
        except Exception:
            logger.exception("Could not subscribe to session changes")

        if session is not None:
            self._resolve_profile(session)

    def on_session_changed(self, session: Optional[Session]) -> None:
        if session is None:
            self.store.clear()
            return

        current = self.store.snapshot()
        already_resolved = (
            current.session == session
            and current.profile is not None
            and current.profile.id == session.actor_id
        )
        self.store.set_session(session)
        if not already_resolved:
            self._resolve_profile(session)

    def adopt(self, session: Optional[Session], demo_profile: Optional[Profile] = None) -> None:
        """Take over a session another worker persisted for this client."""
        if self.backend is not None:
            try:
                self.backend.restore_session(None if demo_profile is not None else session)
            except Exception:
                logger.warning("Restoring persisted tokens into the auth service failed", exc_info=True)
        if session is None:
            self.store.clear()
        elif demo_profile is not None:
            self.store.set_session_and_profile(session, demo_profile)
        else:
            self.on_session_changed(session)

    def record_login(self, session: Session) -> None:
        """Stamp the stored profile's last login; degraded profiles are skipped."""
        profile = self.store.snapshot().profile
        if profile is None or profile.id != session.actor_id or not profile.is_persisted:
            return
        try:
            self.resolver.record_login(session.actor_id)
        except Exception:
            logger.warning(
                "Recording last login failed for actor %s", actor_reference(session.actor_id), exc_info=True
            )

    def teardown(self) -> None:
        unsubscribe, self._unsubscribe = self._unsubscribe, None
        if unsubscribe is None:
            return
        try:
            unsubscribe()
        except Exception:
            logger.warning("Unsubscribing from session changes failed", exc_info=True)

    def _handle_backend_event(self, event: str, session: Optional[Session]) -> None:
        logger.debug("Session change notification: %s", event)
        self.on_session_changed(session)

    def _resolve_profile(self, session: Session) -> Optional[Profile]:
        try:
            profile = self.resolver.resolve(
                session.actor_id,
                email=session.email,
                phone=session.phone,
                metadata=session.user_metadata,
            )
        except Exception:
            logger.warning(
                "Profile resolution failed for actor %s; using synthetic profile",
                actor_reference(session.actor_id),
                exc_info=True,
            )
            profile = synthetic_profile(
                session.actor_id,
                email=session.email,
                phone=session.phone,
                metadata=session.user_metadata,
            )
        self.store.apply_profile(session.actor_id, profile)
        return profile


__all__ = ["SessionManager"]
