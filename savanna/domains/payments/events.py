"""Payments domain event catalog."""

from __future__ import annotations

PAYMENTS_PAYMENT_SUCCEEDED = "payments.payment.succeeded"
PAYMENTS_PAYMENT_FAILED = "payments.payment.failed"

EVENT_CATALOG = {
    PAYMENTS_PAYMENT_SUCCEEDED: {
        "version": "v1",
        "payload": {
            "provider_id": "str",
            "order_id": "str",
            "amount": "float",
            "currency": "str",
            "fees": "int",
            "transaction_id": "str",
        },
    },
    PAYMENTS_PAYMENT_FAILED: {
        "version": "v1",
        "payload": {
            "provider_id": "str",
            "order_id": "str",
            "amount": "float",
            "currency": "str",
            "error": "str",
        },
    },
}

__all__ = ["EVENT_CATALOG", "PAYMENTS_PAYMENT_SUCCEEDED", "PAYMENTS_PAYMENT_FAILED"]
