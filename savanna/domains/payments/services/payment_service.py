"""Payment service: provider selection, fees, validation and routing."""

from __future__ import annotations

import logging
import random
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, List, Mapping, Optional, Sequence

from savanna.domains.payments.providers import GLOBAL_COUNTRY, KES_RATES, PAYMENT_PROVIDERS, PaymentProvider
from savanna.domains.payments.schemas.payment_schemas import (
    PaymentData,
    PaymentMethod,
    PaymentResult,
    PaymentStatus,
)
from savanna.domains.payments.services.processors import TRANSACTION_PREFIXES, default_processors

logger = logging.getLogger(__name__)

PREFERRED_BY_COUNTRY = {"Kenya": "mpesa"}


def _round_half_up(value: float, places: int = 0) -> Decimal:
    exponent = Decimal(1).scaleb(-places)
    return Decimal(str(value)).quantize(exponent, rounding=ROUND_HALF_UP)


class PaymentService:
    def __init__(
        self,
        providers: Sequence[PaymentProvider] = PAYMENT_PROVIDERS,
        processors: Optional[Mapping[str, Any]] = None,
        rates: Optional[Mapping[str, float]] = None,
        success_rate: Optional[float] = None,
        rng: Optional[random.Random] = None,
    ):
        self.providers = list(providers)
        self.processors = dict(processors) if processors is not None else default_processors(success_rate, rng)
        self.rates = dict(rates or KES_RATES)

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "PaymentService":
        return cls(success_rate=config.get("PAYMENT_SANDBOX_SUCCESS_RATE"))

    def available_providers(self, country: str, currency: str = "KES") -> List[PaymentProvider]:
        """Active providers serving the country and currency, cheapest first."""
        preferred = PREFERRED_BY_COUNTRY.get(country)
        matches = [p for p in self.providers if p.serves(country, currency)]
        return sorted(matches, key=lambda p: (p.id != preferred, p.fees.percentage))

    def get_provider(self, provider_id: str) -> Optional[PaymentProvider]:
        return next((p for p in self.providers if p.id == provider_id), None)

    def calculate_fees(self, amount: float, provider: PaymentProvider) -> int:
        fee = amount * provider.fees.percentage / 100 + (provider.fees.fixed or 0)
        return int(_round_half_up(fee))

    def validate(self, payment: PaymentData, provider: PaymentProvider) -> Optional[str]:
        """Return an error message, or None when the payment may proceed."""
        if payment.amount < provider.minimum_amount:
            return f"Amount must be at least {provider.minimum_amount} {provider.fees.currency}"
        if payment.amount > provider.maximum_amount:
            return f"Amount cannot exceed {provider.maximum_amount} {provider.fees.currency}"
        if payment.currency not in provider.supported_currencies:
            return f"Currency {payment.currency} is not supported by {provider.name}"
        return None

    def quote(self, provider: PaymentProvider, amount: float, currency: str = "KES") -> Dict[str, Any]:
        fees = self.calculate_fees(amount, provider)
        return {
            "provider_id": provider.id,
            "amount": amount,
            "currency": currency,
            "fees": fees,
            "total": amount + fees,
            "processing_time": provider.processing_time,
        }

    def process_payment(
        self,
        provider: PaymentProvider,
        payment: PaymentData,
        method: Optional[PaymentMethod] = None,
    ) -> PaymentResult:
        error = self.validate(payment, provider)
        if error:
            return PaymentResult(success=False, error=error)

        processor = self.processors.get(provider.id)
        if processor is None:
            return PaymentResult(success=False, error=f"Payment provider {provider.id} is not supported")

        try:
            result = processor.process(payment, method or PaymentMethod())
        except Exception:
            logger.exception("Payment processor %s failed", provider.id)
            return PaymentResult(success=False, error=f"{provider.name} service temporarily unavailable")

        logger.info(
            "Payment via %s for order %s: %s",
            provider.id,
            payment.order_id,
            "succeeded" if result.success else "failed",
        )
        return result

    def get_payment_status(self, transaction_id: str) -> PaymentStatus:
        if transaction_id.startswith(TRANSACTION_PREFIXES):
            return PaymentStatus(
                transaction_id=transaction_id,
                status="completed",
                timestamp=datetime.now(timezone.utc),
            )
        return PaymentStatus(transaction_id=transaction_id, status="failed")

    def supported_countries(self) -> List[str]:
        countries = {c for p in self.providers for c in p.supported_countries if c != GLOBAL_COUNTRY}
        return sorted(countries)

    def supported_currencies(self) -> List[str]:
        return sorted({c for p in self.providers for c in p.supported_currencies})

    def convert_currency(self, amount: float, from_currency: str, to_currency: str) -> float:
        if from_currency == to_currency:
            return amount
        # Unknown currencies fall back to parity with KES.
        from_rate = self.rates.get(from_currency) or 1
        to_rate = self.rates.get(to_currency) or 1
        return float(_round_half_up(amount / from_rate * to_rate, places=2))


__all__ = ["PaymentService"]
