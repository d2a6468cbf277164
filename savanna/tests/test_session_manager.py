from __future__ import annotations

import pytest

from savanna.core.auth.constants import (
    SESSION_EVENT_SIGNED_IN,
    SESSION_EVENT_SIGNED_OUT,
    SESSION_EVENT_TOKEN_REFRESHED,
)
from savanna.core.auth.session_manager import SessionManager
from savanna.core.auth.state import AuthStateStore, AuthStatus
from savanna.core.profiles.models import Profile, ProfileCompleteness
from savanna.core.profiles.resolver import ProfileResolver
from savanna.tests.fakes import FakeAuthBackend, FakeTableStore, make_session

pytestmark = pytest.mark.unit


class CountingResolver:
    def __init__(self, error: Exception | None = None):
        self.calls = []
        self.error = error
        self.logins = []
        self.login_error: Exception | None = None

    def resolve(self, actor_id, email=None, phone=None, metadata=None):
        self.calls.append(actor_id)
        if self.error:
            raise self.error
        return Profile(id=actor_id, data={"id": actor_id, "email": email}, completeness=ProfileCompleteness.STORED)

    def record_login(self, actor_id):
        self.logins.append(actor_id)
        if self.login_error:
            raise self.login_error
        return True


def _manager(backend=None, resolver=None):
    store = AuthStateStore()
    manager = SessionManager(backend or FakeAuthBackend(), resolver or CountingResolver(), store)
    return manager, store


def test_initialize_without_session_becomes_ready():
    manager, store = _manager()

    manager.initialize()

    state = store.snapshot()
    assert state.status == AuthStatus.READY
    assert state.session is None
    assert state.initialization_failed is False


def test_initialize_with_session_resolves_profile():
    backend = FakeAuthBackend(session=make_session())
    resolver = CountingResolver()
    manager, store = _manager(backend, resolver)

    manager.initialize()

    assert resolver.calls == ["user-42"]
    assert store.snapshot().profile.id == "user-42"


def test_session_is_published_before_profile_resolution():
    backend = FakeAuthBackend(session=make_session())
    manager, store = _manager(backend)
    observed = []
    store.subscribe(lambda state: observed.append((state.status, state.session is not None, state.profile is not None)))

    manager.initialize()

    assert observed[0] == (AuthStatus.LOADING, True, False)
    assert observed[1] == (AuthStatus.READY, True, False)
    assert observed[-1] == (AuthStatus.READY, True, True)


def test_initialization_fails_open():
    backend = FakeAuthBackend()
    backend.get_session_error = ConnectionError("service unreachable")
    manager, store = _manager(backend)

    manager.initialize()

    state = store.snapshot()
    assert state.status == AuthStatus.READY
    assert state.session is None
    assert state.initialization_failed is True


def test_initialize_without_backend_fails_open():
    store = AuthStateStore()
    manager = SessionManager(None, CountingResolver(), store)

    manager.initialize()

    assert store.snapshot().status == AuthStatus.READY
    assert store.snapshot().initialization_failed is True


def test_initialize_is_idempotent():
    backend = FakeAuthBackend()
    manager, _ = _manager(backend)

    manager.initialize()
    manager.initialize()

    assert backend.calls.count(("get_current_session",)) == 1
    assert backend.calls.count(("subscribe",)) == 1


def test_repeated_identical_session_changes_are_idempotent():
    resolver = CountingResolver()
    manager, store = _manager(resolver=resolver)
    manager.initialize()

    manager.on_session_changed(make_session())
    once = store.snapshot()
    for _ in range(5):
        manager.on_session_changed(make_session())

    assert store.snapshot() == once
    assert resolver.calls == ["user-42"]


def test_profile_failure_does_not_block_session():
    resolver = CountingResolver(error=RuntimeError("resolver bug"))
    manager, store = _manager(resolver=resolver)

    manager.on_session_changed(make_session())

    state = store.snapshot()
    assert state.session.actor_id == "user-42"
    assert state.profile.completeness == ProfileCompleteness.SYNTHETIC
    assert state.profile.get("email") == "e@x.com"


def test_backend_notifications_drive_state():
    backend = FakeAuthBackend()
    manager, store = _manager(backend)
    manager.initialize()

    backend.emit(SESSION_EVENT_SIGNED_IN, make_session("user-7"))
    assert store.snapshot().actor_id == "user-7"

    backend.emit(SESSION_EVENT_SIGNED_OUT, None)
    assert store.snapshot().session is None
    assert store.snapshot().profile is None


def test_superseded_resolution_is_discarded():
    store = AuthStateStore()

    class SwitchingResolver(CountingResolver):
        def resolve(self, actor_id, email=None, phone=None, metadata=None):
            profile = super().resolve(actor_id, email, phone, metadata)
            if actor_id == "first":
                manager.on_session_changed(make_session("second"))
            return profile

    manager = SessionManager(FakeAuthBackend(), SwitchingResolver(), store)

    manager.on_session_changed(make_session("first"))

    state = store.snapshot()
    assert state.actor_id == "second"
    assert state.profile.id == "second"


def test_teardown_before_initialize_is_safe():
    manager, _ = _manager()

    manager.teardown()
    manager.teardown()


def test_teardown_unsubscribes_once():
    backend = FakeAuthBackend()
    manager, _ = _manager(backend)
    manager.initialize()

    manager.teardown()
    manager.teardown()

    assert backend.unsubscribed == 1
    assert backend.listeners == []


def test_end_to_end_with_real_resolver():
    backend = FakeAuthBackend(session=make_session())
    store = FakeTableStore()
    state_store = AuthStateStore()
    manager = SessionManager(backend, ProfileResolver(store), state_store)

    manager.initialize()

    assert state_store.snapshot().profile.completeness == ProfileCompleteness.FULL


def test_refresh_during_initial_read_resolves_profile_once():
    backend = FakeAuthBackend(session=make_session())
    resolver = CountingResolver()
    manager, store = _manager(backend, resolver)
    backend.during_get_session = lambda: backend.emit(SESSION_EVENT_TOKEN_REFRESHED, make_session())

    manager.initialize()

    assert resolver.calls == ["user-42"]
    assert backend.calls.index(("get_current_session",)) < backend.calls.index(("subscribe",))
    assert store.snapshot().profile.id == "user-42"


def test_notifications_after_initialize_are_handled():
    backend = FakeAuthBackend(session=make_session())
    resolver = CountingResolver()
    manager, store = _manager(backend, resolver)
    manager.initialize()

    backend.emit(SESSION_EVENT_TOKEN_REFRESHED, make_session("user-9"))

    assert resolver.calls == ["user-42", "user-9"]
    assert store.snapshot().actor_id == "user-9"


def test_adopt_restores_tokens_and_resolves_profile():
    backend = FakeAuthBackend()
    resolver = CountingResolver()
    manager, store = _manager(backend, resolver)
    manager.initialize()

    manager.adopt(make_session("user-5"))

    assert ("restore_session", make_session("user-5")) in backend.calls
    assert store.snapshot().profile.id == "user-5"
    assert resolver.calls == ["user-5"]


def test_adopt_demo_session_uses_stored_profile():
    backend = FakeAuthBackend()
    resolver = CountingResolver()
    manager, store = _manager(backend, resolver)
    demo = Profile(id="demo-1", data={"id": "demo-1", "firstName": "Baraka"}, completeness=ProfileCompleteness.DEMO)

    manager.adopt(make_session("demo-1", is_demo=True), demo)

    assert store.snapshot().profile is demo
    assert resolver.calls == []
    assert ("restore_session", None) in backend.calls


def test_adopt_none_signs_out():
    manager, store = _manager()
    manager.on_session_changed(make_session())

    manager.adopt(None)

    assert store.snapshot().session is None
    assert store.snapshot().profile is None


def test_record_login_for_stored_profile():
    resolver = CountingResolver()
    manager, _ = _manager(resolver=resolver)
    manager.on_session_changed(make_session())

    manager.record_login(make_session())

    assert resolver.logins == ["user-42"]


def test_record_login_skips_synthetic_profiles_and_absorbs_failures():
    resolver = CountingResolver(error=RuntimeError("store down"))
    manager, _ = _manager(resolver=resolver)
    manager.on_session_changed(make_session())

    manager.record_login(make_session())
    assert resolver.logins == []

    healthy = CountingResolver()
    healthy.login_error = ConnectionError("timeout")
    manager, _ = _manager(resolver=healthy)
    manager.on_session_changed(make_session())

    manager.record_login(make_session())
    assert healthy.logins == ["user-42"]
