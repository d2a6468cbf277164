"""Per-client composition of state, session manager, resolver and gateway."""

from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from contextlib import contextmanager
from dataclasses import replace
from typing import Callable, Dict, List, Optional

from savanna.core.auth.audit import AuditSink
from savanna.core.auth.backend import AuthBackend, TableStore
from savanna.core.auth.gateway import AuthGateway
from savanna.core.auth.models import PersistedSession, Session
from savanna.core.auth.notifications import Notifier
from savanna.core.auth.session_manager import SessionManager
from savanna.core.auth.session_repository import ClientSessionRepository
from savanna.core.auth.state import AuthState, AuthStateStore
from savanna.core.profiles.models import Profile, ProfileCompleteness
from savanna.core.profiles.resolver import ProfileResolver, ResolverSettings
from savanna.core.utils.redaction import actor_reference

logger = logging.getLogger(__name__)


class AuthProvider:
    """Everything one client needs to know who is signed in.

    Exposes the state read and the four gateway verbs; ``initialize`` and
    ``teardown`` bracket the provider's lifetime.

    With ``persistence`` set, every session change is written to the shared
    per-client record and ``sync`` adopts changes made by other workers.
    """

    def __init__(
        self,
        backend: Optional[AuthBackend],
        store: TableStore,
        settings: Optional[ResolverSettings] = None,
        notifier: Optional[Notifier] = None,
        audit: Optional[AuditSink] = None,
        client_id: Optional[str] = None,
        persistence: Optional[ClientSessionRepository] = None,
    ):
        self.client_id = client_id
        self.persistence = persistence if client_id else None
        self.state_store = AuthStateStore()
        self.resolver = ProfileResolver(store, settings)
        self.session_manager = SessionManager(backend, self.resolver, self.state_store)
        self.gateway = AuthGateway(
            backend,
            self.session_manager,
            self.state_store,
            notifier=notifier,
            audit=audit,
        )
        self._sync_lock = threading.RLock()
        self._adopting = threading.local()
        self._revision: Optional[str] = None
        self._persisted: Optional[Session] = None
        self._unsubscribe_state = self.state_store.subscribe(self._persist) if self.persistence else None

    @property
    def state(self) -> AuthState:
        return self.state_store.snapshot()

    def initialize(self) -> "AuthProvider":
        record = self._load()
        if record is not None and not record.session.is_demo:
            self._remember(record)
            self._restore_tokens(record.session)
        with self._adopt_scope():
            self.session_manager.initialize()

        state = self.state
        if record is not None and record.session.is_demo:
            self._adopt(record)
        elif record is None or state.session is not None:
            # Refreshed tokens (or a session the service already held) are shared.
            self._persist(state)
        elif state.initialization_failed:
            # Retry the persisted session on the next request.
            with self._sync_lock:
                self._revision = None
        else:
            logger.info("Persisted session for actor %s is no longer valid", actor_reference(record.session.actor_id))
            self._forget()
        return self

    def sync(self) -> "AuthProvider":
        """Adopt the persisted session if another worker changed it."""
        if self.persistence is None:
            return self
        with self._sync_lock:
            try:
                record = self.persistence.load(self.client_id)
            except Exception:
                logger.warning("Reading the persisted client session failed; keeping local state", exc_info=True)
                return self
            revision = record.revision if record else None
            if revision == self._revision:
                return self
            self._revision = revision
            self._persisted = record.session if record else None
        # State listeners take the lock, so adoption runs outside it.
        if record is None:
            logger.debug("Client signed out elsewhere; clearing local session")
            with self._adopt_scope():
                self.session_manager.adopt(None)
        else:
            self._adopt(record)
        return self

    def teardown(self) -> None:
        unsubscribe, self._unsubscribe_state = self._unsubscribe_state, None
        if unsubscribe is not None:
            unsubscribe()
        self.session_manager.teardown()

    def sign_in(self, email: str, password: str) -> AuthState:
        return self.gateway.sign_in(email, password)

    def sign_up(self, email: str, password: str, metadata) -> AuthState:
        return self.gateway.sign_up(email, password, metadata)

    def sign_out(self) -> AuthState:
        return self.gateway.sign_out()

    def demo_login(self, kind: str) -> AuthState:
        return self.gateway.demo_login(kind)

    # --- persistence ---

    def _adopt(self, record: PersistedSession) -> None:
        demo_profile = None
        if record.demo_profile is not None:
            demo_profile = Profile(
                id=record.session.actor_id,
                data=dict(record.demo_profile),
                completeness=ProfileCompleteness.DEMO,
            )
        self._remember(record)
        with self._adopt_scope():
            self.session_manager.adopt(record.session, demo_profile)

    def _persist(self, state: AuthState) -> None:
        if self.persistence is None or getattr(self._adopting, "active", False):
            return
        session = state.session
        with self._sync_lock:
            if session == self._persisted:
                return
            if session is not None and session.is_demo and state.profile is None:
                return
            try:
                if session is None:
                    self.persistence.delete(self.client_id)
                    self._revision = None
                else:
                    demo_profile = state.profile.to_dict() if session.is_demo else None
                    self._revision = self.persistence.save(self.client_id, session, demo_profile)
            except Exception:
                logger.warning("Persisting the client session failed", exc_info=True)
                return
            self._persisted = session

    def _load(self) -> Optional[PersistedSession]:
        if self.persistence is None:
            return None
        try:
            return self.persistence.load(self.client_id)
        except Exception:
            logger.warning("Loading the persisted client session failed", exc_info=True)
            return None

    def _forget(self) -> None:
        try:
            self.persistence.delete(self.client_id)
        except Exception:
            logger.warning("Removing the persisted client session failed", exc_info=True)
        with self._sync_lock:
            self._revision, self._persisted = None, None

    def _remember(self, record: PersistedSession) -> None:
        with self._sync_lock:
            self._revision = record.revision
            self._persisted = record.session

    def _restore_tokens(self, session: Session) -> None:
        backend = self.session_manager.backend
        if backend is None:
            return
        try:
            backend.restore_session(replace(session))
        except Exception:
            logger.warning("Restoring persisted tokens into the auth service failed", exc_info=True)

    @contextmanager
    def _adopt_scope(self):
        """Changes applied inside are not written back to the shared record."""
        self._adopting.active = True
        try:
            yield
        finally:
            self._adopting.active = False


ProviderFactory = Callable[[str], AuthProvider]


class AuthProviderRegistry:
    """Process-wide map of client id -> initialized provider.

    Least recently used providers are torn down once ``max_size`` is exceeded
    or after ``idle_seconds`` without a request. Eviction only drops the
    in-memory copy; persisted sessions are rehydrated on the next request.
    """

    def __init__(
        self,
        factory: ProviderFactory,
        max_size: Optional[int] = None,
        idle_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._factory = factory
        self._max_size = max_size if max_size and max_size > 0 else None
        self._idle_seconds = idle_seconds if idle_seconds and idle_seconds > 0 else None
        self._clock = clock
        self._providers: "OrderedDict[str, AuthProvider]" = OrderedDict()
        self._last_used: Dict[str, float] = {}
        self._lock = threading.Lock()

    def get(self, client_id: str) -> AuthProvider:
        now = self._clock()
        with self._lock:
            evicted = self._pop_idle(now)
            provider = self._providers.get(client_id)
            if provider is None:
                provider = self._factory(client_id)
                self._providers[client_id] = provider
                created = True
            else:
                self._providers.move_to_end(client_id)
                created = False
            self._last_used[client_id] = now
            evicted.extend(self._pop_overflow())
        self._teardown(evicted)
        if created:
            provider.initialize()
        return provider

    def peek(self, client_id: str) -> Optional[AuthProvider]:
        with self._lock:
            return self._providers.get(client_id)

    def close(self, client_id: str) -> None:
        with self._lock:
            provider = self._providers.pop(client_id, None)
            self._last_used.pop(client_id, None)
        if provider is not None:
            provider.teardown()

    def close_all(self) -> None:
        with self._lock:
            providers = list(self._providers.values())
            self._providers.clear()
            self._last_used.clear()
        self._teardown(providers)

    def evict_idle(self) -> int:
        """Tear down providers idle past the limit; returns how many went."""
        with self._lock:
            evicted = self._pop_idle(self._clock())
        self._teardown(evicted)
        return len(evicted)

    def __len__(self) -> int:
        with self._lock:
            return len(self._providers)

    def _pop_idle(self, now: float) -> List[AuthProvider]:
        evicted: List[AuthProvider] = []
        if self._idle_seconds is None:
            return evicted
        cutoff = now - self._idle_seconds
        # Insertion order tracks last use, so idle clients sit at the front.
        while self._providers:
            oldest = next(iter(self._providers))
            if self._last_used.get(oldest, now) > cutoff:
                break
            evicted.append(self._providers.pop(oldest))
            self._last_used.pop(oldest, None)
        return evicted

    def _pop_overflow(self) -> List[AuthProvider]:
        evicted: List[AuthProvider] = []
        if self._max_size is None:
            return evicted
        while len(self._providers) > self._max_size:
            oldest, provider = self._providers.popitem(last=False)
            self._last_used.pop(oldest, None)
            evicted.append(provider)
        return evicted

    @staticmethod
    def _teardown(providers: List[AuthProvider]) -> None:
        for provider in providers:
            try:
                provider.teardown()
            except Exception:
                logger.warning("Provider teardown failed", exc_info=True)


__all__ = ["AuthProvider", "AuthProviderRegistry", "ProviderFactory"]
