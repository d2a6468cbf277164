from __future__ import annotations

import pytest

from savanna.core.auth.state import AuthStateStore, AuthStatus
from savanna.core.profiles.models import Profile
from savanna.tests.fakes import make_session

pytestmark = pytest.mark.unit


def test_initial_state_is_loading_and_empty():
    state = AuthStateStore().snapshot()

    assert state.loading
    assert state.session is None
    assert state.profile is None
    assert state.to_dict()["status"] == "loading"


def test_mark_ready_happens_once():
    store = AuthStateStore()
    statuses = []
    store.subscribe(lambda state: statuses.append(state.status))

    assert store.mark_ready() is True
    assert store.mark_ready(initialization_failed=True) is False

    assert statuses == [AuthStatus.READY]
    assert store.snapshot().initialization_failed is False


def test_setting_an_equal_session_does_not_notify():
    store = AuthStateStore()
    seen = []
    store.subscribe(seen.append)

    store.set_session(make_session())
    store.set_session(make_session())

    assert len(seen) == 1


def test_switching_actor_drops_the_previous_profile():
    store = AuthStateStore()
    store.set_session(make_session("a"))
    store.apply_profile("a", Profile(id="a"))

    store.set_session(make_session("b"))

    assert store.snapshot().profile is None


def test_refreshing_tokens_for_the_same_actor_keeps_the_profile():
    store = AuthStateStore()
    store.set_session(make_session("a"))
    store.apply_profile("a", Profile(id="a"))

    refreshed = make_session("a")
    refreshed.access_token = "rotated"
    store.set_session(refreshed)

    assert store.snapshot().session.access_token == "rotated"
    assert store.snapshot().profile.id == "a"


def test_stale_profile_is_discarded():
    store = AuthStateStore()
    store.set_session(make_session("b"))

    assert store.apply_profile("a", Profile(id="a")) is False
    assert store.snapshot().profile is None


def test_profile_without_session_is_discarded():
    store = AuthStateStore()

    assert store.apply_profile("a", Profile(id="a")) is False


def test_clear_keeps_readiness_and_error():
    store = AuthStateStore()
    store.mark_ready()
    store.set_session(make_session())
    store.set_error("Invalid credentials")

    store.clear()

    state = store.snapshot()
    assert state.session is None and state.profile is None
    assert state.status == AuthStatus.READY
    assert state.last_auth_error == "Invalid credentials"


def test_listener_errors_are_absorbed():
    store = AuthStateStore()

    def broken(state):
        raise RuntimeError("listener bug")

    store.subscribe(broken)
    store.set_session(make_session())

    assert store.snapshot().actor_id == "user-42"


def test_unsubscribe_stops_notifications():
    store = AuthStateStore()
    seen = []
    unsubscribe = store.subscribe(seen.append)
    unsubscribe()
    unsubscribe()

    store.set_session(make_session())

    assert seen == []


def test_public_dict_never_exposes_tokens():
    store = AuthStateStore()
    store.set_session(make_session(refresh_token="refresh-secret"))

    payload = store.snapshot().to_dict()

    assert "access_token" not in payload["session"]
    assert "refresh_token" not in payload["session"]
    assert payload["session"]["actor_id"] == "user-42"
