"""Sandbox payment processors, one per provider.

Every processor honours the same contract: ``process(payment, method)`` returns
a ``PaymentResult`` and never raises for a declined payment. No money moves;
outcomes are drawn from an injectable random source.
"""

from __future__ import annotations

import random
import re
import string
import time
from typing import Callable, Dict, Optional

from savanna.domains.payments.schemas.payment_schemas import PaymentData, PaymentMethod, PaymentResult

MPESA_PHONE_PATTERN = re.compile(r"^254\d{9}$")
_ID_ALPHABET = string.digits + string.ascii_lowercase


class SandboxProcessor:
    provider_id = ""
    prefix = ""
    default_success_rate = 1.0
    failure_message = "Payment failed. Please try again."
    processing_time = ""

    def __init__(
        self,
        success_rate: Optional[float] = None,
        rng: Optional[random.Random] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.success_rate = self.default_success_rate if success_rate is None else success_rate
        self._rng = rng or random.Random()
        self._clock = clock

    def process(self, payment: PaymentData, method: PaymentMethod) -> PaymentResult:
        error = self.check_method(method)
        if error:
            return PaymentResult(success=False, error=error)
        if self._rng.random() >= self.success_rate:
            return PaymentResult(success=False, error=self.failure_message)
        return PaymentResult(
            success=True,
            transaction_id=self._transaction_id(),
            metadata={"provider": self.provider_id, "processing_time": self.processing_time, **self.extra_metadata(method)},
        )

    def check_method(self, method: PaymentMethod) -> Optional[str]:
        return None

    def extra_metadata(self, method: PaymentMethod) -> Dict[str, str]:
        return {}

    def _transaction_id(self) -> str:
        suffix = "".join(self._rng.choice(_ID_ALPHABET) for _ in range(9))
        return f"{self.prefix}{int(self._clock() * 1000)}{suffix}"


class MpesaProcessor(SandboxProcessor):
    provider_id = "mpesa"
    prefix = "MP"
    default_success_rate = 0.9
    failure_message = "M-Pesa payment failed. Please try again or use a different payment method."
    processing_time = "instant"

    def check_method(self, method: PaymentMethod) -> Optional[str]:
        if not method.phone_number or not MPESA_PHONE_PATTERN.match(method.phone_number):
            return "Invalid M-Pesa phone number format. Use 254XXXXXXXXX"
        return None

    def extra_metadata(self, method: PaymentMethod) -> Dict[str, str]:
        return {"phone_number": method.phone_number or ""}


class StripeProcessor(SandboxProcessor):
    provider_id = "stripe"
    prefix = "pi_"
    default_success_rate = 0.95
    failure_message = "Card payment failed. Please check your card details and try again."
    processing_time = "2-3 business days"

    def check_method(self, method: PaymentMethod) -> Optional[str]:
        if not method.id:
            return "Invalid payment method"
        return None

    def extra_metadata(self, method: PaymentMethod) -> Dict[str, str]:
        return {"payment_method_id": method.id or ""}


class PayPalProcessor(SandboxProcessor):
    provider_id = "paypal"
    prefix = "PAYPAL"
    default_success_rate = 0.93
    failure_message = "PayPal payment failed. Please try again."
    processing_time = "1-3 business days"


class PaystackProcessor(SandboxProcessor):
    provider_id = "paystack"
    prefix = "PS"
    default_success_rate = 0.92
    failure_message = "Paystack payment failed. Please try again."
    processing_time = "1-2 business days"


class UnavailableProcessor:
    """Catalogued provider without an integration yet."""

    def __init__(self, message: str):
        self.message = message

    def process(self, payment: PaymentData, method: PaymentMethod) -> PaymentResult:
        return PaymentResult(success=False, error=self.message)


def default_processors(success_rate: Optional[float] = None, rng: Optional[random.Random] = None) -> Dict[str, object]:
    rng = rng or random.Random()
    return {
        "mpesa": MpesaProcessor(success_rate, rng),
        "stripe": StripeProcessor(success_rate, rng),
        "paypal": PayPalProcessor(success_rate, rng),
        "paystack": PaystackProcessor(success_rate, rng),
        "flutterwave": UnavailableProcessor("Flutterwave integration coming soon"),
    }


# Transaction id prefixes issued by the processors above.
TRANSACTION_PREFIXES = tuple(cls.prefix for cls in (MpesaProcessor, StripeProcessor, PayPalProcessor, PaystackProcessor))

__all__ = [
    "SandboxProcessor",
    "MpesaProcessor",
    "StripeProcessor",
    "PayPalProcessor",
    "PaystackProcessor",
    "UnavailableProcessor",
    "default_processors",
    "MPESA_PHONE_PATTERN",
    "TRANSACTION_PREFIXES",
]
