from __future__ import annotations

import pytest

from savanna.core.events.event_models import EventRecord
from savanna.core.utils.redaction import actor_reference
from savanna.domains.payments.events import PAYMENTS_PAYMENT_FAILED, PAYMENTS_PAYMENT_SUCCEEDED

pytestmark = pytest.mark.integration

PROCESS = {
    "provider_id": "mpesa",
    "payment": {"amount": 1500, "currency": "KES", "order_id": "ORD-7"},
    "method": {"phone_number": "254712345678"},
}


def _demo_login(client, kind="retailer"):
    resp = client.post("/auth/demo-login", json={"user_type": kind})
    assert resp.status_code == 200
    return resp.get_json()["state"]["session"]["actor_id"]


def test_list_providers_for_kenya(client):
    resp = client.get("/api/payments/providers?country=Kenya&currency=kes")

    data = resp.get_json()
    assert resp.status_code == 200
    assert data["providers"][0]["id"] == "mpesa"
    assert data["providers"][0]["fees"] == {"percentage": 1.5, "fixed": 0, "currency": "KES"}
    assert "Kenya" in data["countries"]


def test_quote(client):
    resp = client.post("/api/payments/quote", json={"provider_id": "stripe", "amount": 1000})

    assert resp.status_code == 200
    assert resp.get_json()["quote"]["fees"] == 59


def test_quote_validation_and_unknown_provider(client):
    bad = client.post("/api/payments/quote", json={"provider_id": "stripe", "amount": -1})
    assert bad.status_code == 400
    assert bad.get_json()["error"] == "bad_request"
    assert bad.get_json()["details"]

    missing = client.post("/api/payments/quote", json={"provider_id": "mobicash", "amount": 100})
    assert missing.status_code == 404


def test_process_requires_session(client):
    resp = client.post("/api/payments/process", json=PROCESS)

    assert resp.status_code == 401
    assert resp.get_json() == {"ok": False, "error": "unauthorized"}


def test_process_forbidden_for_guest_accounts(client):
    signed_up = client.post(
        "/auth/sign-up",
        json={
            "email": "wanjiru@example.com",
            "password": "secret1",
            "metadata": {"first_name": "Wanjiru", "last_name": "Kamau", "user_type": "guest"},
        },
    )
    assert signed_up.status_code == 201

    resp = client.post("/api/payments/process", json=PROCESS)

    assert resp.status_code == 403
    assert resp.get_json() == {"ok": False, "error": "forbidden"}
    assert EventRecord.query.filter_by(event_type=PAYMENTS_PAYMENT_SUCCEEDED).count() == 0


def test_process_payment_records_event(client):
    actor_id = _demo_login(client)

    resp = client.post("/api/payments/process", json=PROCESS)

    assert resp.status_code == 200
    result = resp.get_json()["result"]
    assert result["success"] is True
    assert result["transaction_id"].startswith("MP")

    record = EventRecord.query.filter_by(event_type=PAYMENTS_PAYMENT_SUCCEEDED).one()
    assert record.payload["order_id"] == "ORD-7"
    assert record.payload["fees"] == 23
    assert record.actor_ref == actor_reference(actor_id)


def test_failed_payment_is_payment_required(client):
    _demo_login(client)
    payload = dict(PROCESS, method={"phone_number": "0712345678"})

    resp = client.post("/api/payments/process", json=payload)

    assert resp.status_code == 402
    assert resp.get_json()["error"] == "payment_failed"
    record = EventRecord.query.filter_by(event_type=PAYMENTS_PAYMENT_FAILED).one()
    assert record.payload["error"].startswith("Invalid M-Pesa phone number")


def test_process_rejects_malformed_payment(client):
    _demo_login(client)

    resp = client.post("/api/payments/process", json={"provider_id": "mpesa", "payment": {"amount": 10}})

    assert resp.status_code == 400


def test_payment_status(client):
    assert client.get("/api/payments/MP123abc/status").get_json()["status"]["status"] == "completed"
    assert client.get("/api/payments/unknown/status").get_json()["status"]["status"] == "failed"


def test_convert(client):
    resp = client.get("/api/payments/convert?amount=1000&from=kes&to=usd")

    assert resp.get_json()["converted"] == 6.7
    assert client.get("/api/payments/convert?amount=lots").status_code == 400
