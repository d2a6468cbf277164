"""Payments JSON API controllers (thin, schema-validated)."""

from __future__ import annotations

from flask import Blueprint, current_app, g, jsonify, request
from pydantic import ValidationError

from savanna.core.auth.constants import TRADING_USER_TYPES
from savanna.core.events.event_service import log_event
from savanna.core.utils.decorators import require_user_types
from savanna.core.utils.redaction import actor_reference
from savanna.domains.payments.events import PAYMENTS_PAYMENT_FAILED, PAYMENTS_PAYMENT_SUCCEEDED
from savanna.domains.payments.schemas.payment_schemas import ProcessPaymentRequest, QuoteRequest
from savanna.domains.payments.services.payment_service import PaymentService

payment_api_bp = Blueprint("payment_api", __name__)


def _service() -> PaymentService:
    return current_app.extensions["payment_service"]


def _bad_request(exc: ValidationError):
    return jsonify({"ok": False, "error": "bad_request", "details": exc.errors(include_context=False)}), 400


@payment_api_bp.get("/providers")
def list_providers():
    country = request.args.get("country", "Kenya")
    currency = (request.args.get("currency") or "KES").upper()
    providers = _service().available_providers(country, currency)
    return jsonify(
        {
            "ok": True,
            "providers": [p.to_dict() for p in providers],
            "countries": _service().supported_countries(),
            "currencies": _service().supported_currencies(),
        }
    )


@payment_api_bp.post("/quote")
def quote():
    payload = request.get_json(silent=True) or {}
    try:
        data = QuoteRequest.model_validate(payload)
    except ValidationError as exc:
        return _bad_request(exc)
    provider = _service().get_provider(data.provider_id)
    if provider is None:
        return jsonify({"ok": False, "error": "not_found"}), 404
    return jsonify({"ok": True, "quote": _service().quote(provider, data.amount, data.currency)})


@payment_api_bp.post("/process")
@require_user_types(*TRADING_USER_TYPES)
def process_payment():
    payload = request.get_json(silent=True) or {}
    try:
        data = ProcessPaymentRequest.model_validate(payload)
    except ValidationError as exc:
        return _bad_request(exc)
    service = _service()
    provider = service.get_provider(data.provider_id)
    if provider is None:
        return jsonify({"ok": False, "error": "not_found"}), 404

    payment = data.payment
    if not payment.customer_id:
        payment = payment.model_copy(update={"customer_id": g.auth_state.actor_id})
    result = service.process_payment(provider, payment, data.method)

    event_payload = {
        "provider_id": provider.id,
        "order_id": payment.order_id,
        "amount": payment.amount,
        "currency": payment.currency,
    }
    if result.success:
        event_payload.update(
            {"fees": service.calculate_fees(payment.amount, provider), "transaction_id": result.transaction_id}
        )
        log_event(PAYMENTS_PAYMENT_SUCCEEDED, event_payload, actor_ref=actor_reference(g.auth_state.actor_id))
        return jsonify({"ok": True, "result": result.model_dump()})

    event_payload["error"] = result.error
    log_event(PAYMENTS_PAYMENT_FAILED, event_payload, actor_ref=actor_reference(g.auth_state.actor_id))
    return jsonify({"ok": False, "error": "payment_failed", "result": result.model_dump()}), 402


@payment_api_bp.get("/<transaction_id>/status")
def payment_status(transaction_id: str):
    status = _service().get_payment_status(transaction_id)
    return jsonify({"ok": True, "status": status.model_dump(mode="json")})


@payment_api_bp.get("/convert")
def convert():
    try:
        amount = float(request.args.get("amount", ""))
    except ValueError:
        return jsonify({"ok": False, "error": "bad_request"}), 400
    source = (request.args.get("from") or "KES").upper()
    target = (request.args.get("to") or "KES").upper()
    converted = _service().convert_currency(amount, source, target)
    return jsonify({"ok": True, "amount": amount, "from": source, "to": target, "converted": converted})
