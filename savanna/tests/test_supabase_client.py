from __future__ import annotations

import json
import time

import pytest
import requests

from savanna.core.auth.backend import StoreErrorKind
from savanna.core.auth.constants import (
    SESSION_EVENT_SIGNED_IN,
    SESSION_EVENT_SIGNED_OUT,
    SESSION_EVENT_TOKEN_REFRESHED,
)
from savanna.core.auth.schemas import Location, SignUpFields
from savanna.integrations.supabase import SupabaseClient, SupabaseError
from savanna.integrations.supabase.errors import auth_error_message, store_error_from_payload
from savanna.tests.fakes import make_session

pytestmark = pytest.mark.unit

URL = "https://savanna.supabase.co"
ANON_KEY = "anon-key"


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=None):
        self.status_code = status_code
        self._payload = payload
        if text is not None:
            self.text = text
        else:
            self.text = json.dumps(payload) if payload is not None else ""
        self.content = self.text.encode("utf-8")

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


class FakeHttp:
    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []

    def request(self, method, url, **kwargs):
        self.requests.append((method, url, kwargs))
        outcome = self.responses.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


def _token_payload(actor_id="user-42", **extra):
    payload = {
        "access_token": "access-1",
        "refresh_token": "refresh-1",
        "expires_in": 3600,
        "user": {"id": actor_id, "email": "e@x.com", "user_metadata": {"first_name": "Amina"}},
    }
    payload.update(extra)
    return payload


def _client(*responses, session=None):
    http = FakeHttp(*responses)
    return SupabaseClient(URL + "/", ANON_KEY, http=http, session=session), http


def _recorder(client):
    events = []
    client.subscribe(lambda event, session: events.append((event, session.actor_id if session else None)))
    return events


def test_missing_configuration_is_rejected():
    with pytest.raises(SupabaseError):
        SupabaseClient("", ANON_KEY)
    with pytest.raises(SupabaseError):
        SupabaseClient.from_config({"SUPABASE_URL": URL})


def test_sign_in_builds_session_and_notifies():
    client, http = _client(FakeResponse(200, _token_payload()))
    events = _recorder(client)

    result = client.sign_in_with_password("e@x.com", "secret1")

    assert result.success
    assert result.session.actor_id == "user-42"
    assert result.session.user_metadata == {"first_name": "Amina"}
    assert result.session.expires_at >= int(time.time()) + 3500
    assert events == [(SESSION_EVENT_SIGNED_IN, "user-42")]
    method, url, kwargs = http.requests[0]
    assert (method, url) == ("POST", f"{URL}/auth/v1/token")
    assert kwargs["params"] == {"grant_type": "password"}
    assert kwargs["headers"]["apikey"] == ANON_KEY
    assert kwargs["headers"]["Authorization"] == f"Bearer {ANON_KEY}"


def test_rejected_sign_in_returns_remote_message():
    client, _ = _client(FakeResponse(400, {"error": "invalid_grant", "error_description": "Invalid login credentials"}))

    result = client.sign_in_with_password("e@x.com", "wrong-password")

    assert not result.success
    assert result.error == "These credentials don't match our pride records"
    assert client.get_current_session() is None


def test_server_error_on_sign_in_raises():
    client, _ = _client(FakeResponse(503, {"message": "upstream down"}))

    with pytest.raises(SupabaseError) as excinfo:
        client.sign_in_with_password("e@x.com", "secret1")

    assert excinfo.value.status == 503


def test_sign_up_with_session_and_metadata():
    client, http = _client(FakeResponse(200, []), FakeResponse(200, _token_payload("new-user")))
    fields = SignUpFields(
        email="new@example.com",
        password="secret1",
        first_name="Amina",
        user_type="supplier",
        location=Location(county="Kisumu", town="Kondele"),
    )

    result = client.sign_up(fields)

    assert result.success and result.session.actor_id == "new-user"
    body = http.requests[1][2]["json"]
    assert body["email"] == "new@example.com"
    assert body["data"]["user_type"] == "supplier"
    assert body["data"]["location"] == {"county": "Kisumu", "town": "Kondele"}
    assert "password" not in body["data"]


def test_sign_up_pending_confirmation_has_no_session():
    client, _ = _client(FakeResponse(200, []), FakeResponse(200, {"id": "new-user", "email": "new@example.com"}))

    result = client.sign_up(SignUpFields(email="new@example.com", password="secret1"))

    assert result.success
    assert result.session is None
    assert result.user["id"] == "new-user"


def test_rejected_sign_up():
    client, _ = _client(FakeResponse(200, []), FakeResponse(422, {"msg": "User already registered"}))

    result = client.sign_up(SignUpFields(email="new@example.com", password="secret1"))

    assert not result.success
    assert result.error == "User already registered"


def test_sign_up_stops_when_profile_exists():
    client, http = _client(FakeResponse(200, [{"id": "user-42"}]))

    result = client.sign_up(SignUpFields(email="new@example.com", password="secret1", phone="+254712000111"))

    assert not result.success
    assert result.error == "User already exists with this email or phone number"
    assert len(http.requests) == 1
    method, url, kwargs = http.requests[0]
    assert (method, url) == ("GET", f"{URL}/rest/v1/user_profiles")
    assert kwargs["params"]["or"] == "(email.eq.new@example.com,phone.eq.+254712000111)"
    assert kwargs["params"]["limit"] == "1"


def test_sign_up_proceeds_when_existence_check_fails():
    client, http = _client(
        FakeResponse(401, {"code": "42501", "message": "permission denied for table user_profiles"}),
        FakeResponse(200, {"id": "new-user", "email": "new@example.com"}),
    )

    result = client.sign_up(SignUpFields(email="new@example.com", password="secret1"))

    assert result.success
    assert http.requests[0][2]["params"]["or"] == "(email.eq.new@example.com)"
    assert http.requests[1][1] == f"{URL}/auth/v1/signup"


@pytest.mark.parametrize(
    "remote, shown",
    [
        ("Email not confirmed", "Please check your email and confirm your account"),
        ("Too many requests", "Too many attempts. Please wait a moment before trying again"),
        ("User not found", "No account found with these details"),
        ("Signups not allowed for this instance", "Signups not allowed for this instance"),
    ],
)
def test_sign_in_errors_are_reworded(remote, shown):
    client, _ = _client(FakeResponse(400, {"error_description": remote}))

    assert client.sign_in_with_password("e@x.com", "secret1").error == shown


def test_current_session_is_validated_remotely():
    session = make_session(refresh_token="refresh-1")
    client, http = _client(
        FakeResponse(200, {"id": "user-42", "email": "e@x.com", "user_metadata": {"user_type": "supplier"}}),
        session=session,
    )

    current = client.get_current_session()

    assert current.actor_id == "user-42"
    assert current.user_metadata == {"user_type": "supplier"}
    assert http.requests[0][2]["headers"]["Authorization"] == "Bearer token-user-42"


def test_revoked_session_is_dropped():
    client, _ = _client(FakeResponse(401, {"msg": "invalid JWT"}), session=make_session())

    assert client.get_current_session() is None
    assert client.get_current_session() is None


def test_unexpected_session_check_failure_raises():
    client, _ = _client(FakeResponse(500, {"message": "boom"}), session=make_session())

    with pytest.raises(SupabaseError):
        client.get_current_session()


def test_expired_session_is_refreshed():
    expired = make_session(refresh_token="refresh-0", expires_at=int(time.time()) - 10)
    client, http = _client(FakeResponse(200, _token_payload()), session=expired)
    events = _recorder(client)

    current = client.get_current_session()

    assert current.access_token == "access-1"
    assert http.requests[0][2]["json"] == {"refresh_token": "refresh-0"}
    assert events == [(SESSION_EVENT_TOKEN_REFRESHED, "user-42")]


def test_rejected_refresh_signs_out():
    expired = make_session(refresh_token="refresh-0", expires_at=int(time.time()) - 10)
    client, _ = _client(FakeResponse(400, {"error_description": "Invalid Refresh Token"}), session=expired)
    events = _recorder(client)

    assert client.get_current_session() is None
    assert events == [(SESSION_EVENT_SIGNED_OUT, None)]


def test_sign_out_always_clears_and_notifies():
    client, _ = _client(requests.ConnectionError("offline"), session=make_session())
    events = _recorder(client)

    with pytest.raises(requests.ConnectionError):
        client.sign_out()

    assert client.get_current_session() is None
    assert events == [(SESSION_EVENT_SIGNED_OUT, None)]


def test_listener_failures_do_not_break_sign_in():
    client, _ = _client(FakeResponse(200, _token_payload()))

    def broken(event, session):
        raise RuntimeError("listener bug")

    client.subscribe(broken)

    assert client.sign_in_with_password("e@x.com", "secret1").success


def test_unsubscribe_stops_notifications():
    client, _ = _client(FakeResponse(200, _token_payload()))
    events = []
    unsubscribe = client.subscribe(lambda event, session: events.append(event))
    unsubscribe()
    unsubscribe()

    client.sign_in_with_password("e@x.com", "secret1")

    assert events == []


def test_demo_login_parses_welcome():
    user = {"id": "demo-retailer-001", "email": "demo.retailer@savanna.co.ke", "userType": "retailer"}
    client, http = _client(
        FakeResponse(200, {"success": True, "user": user, "wildlifeWelcome": {"message": "Karibu, Mary!"}})
    )

    result = client.demo_login("retailer")

    assert result.success
    assert result.user == user
    assert result.welcome_message == "Karibu, Mary!"
    assert http.requests[0][1] == f"{URL}/functions/v1/demo-login"
    assert http.requests[0][2]["json"] == {"userType": "retailer"}


def test_demo_login_failure():
    client, _ = _client(FakeResponse(500, text="<html>bad gateway</html>"))

    result = client.demo_login("supplier")

    assert not result.success
    assert result.error == "<html>bad gateway</html>"


def test_select_one_requests_single_object_with_embed():
    row = {"id": "user-42", "organization": None}
    client, http = _client(FakeResponse(200, row), session=make_session())

    result = client.select_one("user_profiles", {"id": "user-42"}, embed={"organization": "organizations"})

    assert result.ok and result.data == row
    method, url, kwargs = http.requests[0]
    assert (method, url) == ("GET", f"{URL}/rest/v1/user_profiles")
    assert kwargs["params"] == {"select": "*,organization:organizations(*)", "id": "eq.user-42"}
    assert kwargs["headers"]["Accept"] == "application/vnd.pgrst.object+json"
    assert kwargs["headers"]["Authorization"] == "Bearer token-user-42"


def test_insert_passes_write_timeout():
    client, http = _client(FakeResponse(201, [{"id": "user-42"}]))

    result = client.insert("user_profiles", [{"id": "user-42"}], timeout=10.0)

    assert result.ok and result.data == [{"id": "user-42"}]
    assert http.requests[0][2]["timeout"] == 10.0
    assert http.requests[0][2]["headers"]["Prefer"] == "return=representation"


def test_update_counts_changed_rows():
    client, http = _client(FakeResponse(200, [{"id": "user-42"}]), session=make_session())

    result = client.update("user_profiles", {"last_login_date": "2026-10-17T06:30:00+00:00"}, {"id": "user-42"}, 5.0)

    assert result.ok and result.data == 1
    method, url, kwargs = http.requests[0]
    assert (method, url) == ("PATCH", f"{URL}/rest/v1/user_profiles")
    assert kwargs["params"] == {"id": "eq.user-42"}
    assert kwargs["json"] == {"last_login_date": "2026-10-17T06:30:00+00:00"}
    assert kwargs["timeout"] == 5.0


def test_delete_with_empty_response():
    client, _ = _client(FakeResponse(204))

    result = client.delete("user_profiles", {"id": "probe"})

    assert result.ok and result.data is None


@pytest.mark.parametrize(
    "status, payload, kind",
    [
        (406, {"code": "PGRST116", "message": "JSON object requested, multiple (or no) rows returned"}, StoreErrorKind.NO_ROWS),
        (409, {"code": "23505", "message": "duplicate key value violates unique constraint"}, StoreErrorKind.DUPLICATE_KEY),
        (400, {"code": "PGRST204", "message": "Could not find the 'phone' column"}, StoreErrorKind.UNKNOWN_COLUMN),
        (400, {"code": "42703", "message": "column does not exist"}, StoreErrorKind.UNKNOWN_COLUMN),
        (401, {"code": "42501", "message": "permission denied for table user_profiles"}, StoreErrorKind.ACCESS_DENIED),
        (404, {"code": "42P01", "message": "relation does not exist"}, StoreErrorKind.TABLE_MISSING),
        (500, {"code": "XX000", "message": "internal"}, StoreErrorKind.OTHER),
    ],
)
def test_table_errors_are_classified(status, payload, kind):
    client, _ = _client(FakeResponse(status, payload))

    result = client.insert("user_profiles", [{"id": "user-42"}])

    assert result.error_kind == kind
    assert result.error.message == payload["message"]


@pytest.mark.parametrize(
    "exc, kind",
    [
        (requests.Timeout("read timed out"), StoreErrorKind.TIMEOUT),
        (requests.ConnectionError("refused"), StoreErrorKind.OTHER),
    ],
)
def test_transport_failures_become_store_errors(exc, kind):
    client, _ = _client(exc)

    assert client.insert("user_profiles", [{"id": "user-42"}]).error_kind == kind


def test_store_error_from_status_only():
    assert store_error_from_payload(403, None).kind == StoreErrorKind.ACCESS_DENIED
    assert store_error_from_payload(404, {}).kind == StoreErrorKind.TABLE_MISSING
    assert store_error_from_payload(502, {}).message == "HTTP 502"


def test_auth_error_message_fallback():
    assert auth_error_message({"error": ""}, "fallback") == "fallback"
    assert auth_error_message(None, "fallback") == "fallback"
