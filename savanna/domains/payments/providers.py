"""Payment provider catalog."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Optional, Tuple

GLOBAL_COUNTRY = "Global"


@dataclass(frozen=True)
class ProviderFees:
    percentage: float
    fixed: float = 0
    currency: str = "KES"


@dataclass(frozen=True)
class PaymentProvider:
    id: str
    name: str
    display_name: str
    description: str
    fees: ProviderFees
    supported_countries: Tuple[str, ...]
    supported_currencies: Tuple[str, ...]
    minimum_amount: float
    maximum_amount: float
    processing_time: str
    is_active: bool = True
    icon: Optional[str] = None

    def serves(self, country: str, currency: str) -> bool:
        return (
            self.is_active
            and (country in self.supported_countries or GLOBAL_COUNTRY in self.supported_countries)
            and currency in self.supported_currencies
        )

    def to_dict(self) -> dict:
        data = asdict(self)
        data["supported_countries"] = list(self.supported_countries)
        data["supported_currencies"] = list(self.supported_currencies)
        return data


PAYMENT_PROVIDERS: Tuple[PaymentProvider, ...] = (
    PaymentProvider(
        id="mpesa",
        name="M-Pesa",
        display_name="M-Pesa",
        description="Kenya's leading mobile money service",
        fees=ProviderFees(percentage=1.5, fixed=0, currency="KES"),
        supported_countries=("Kenya", "Tanzania", "Uganda"),
        supported_currencies=("KES", "TZS", "UGX"),
        minimum_amount=10,
        maximum_amount=1_000_000,
        processing_time="Instant",
        icon="smartphone",
    ),
    PaymentProvider(
        id="stripe",
        name="Stripe",
        display_name="Credit/Debit Card",
        description="International card payments via Stripe",
        fees=ProviderFees(percentage=2.9, fixed=30, currency="KES"),
        supported_countries=("Kenya", "Uganda", "Tanzania", "Rwanda", "Ethiopia", GLOBAL_COUNTRY),
        supported_currencies=("KES", "USD", "EUR", "GBP", "TZS", "UGX"),
        minimum_amount=50,
        maximum_amount=5_000_000,
        processing_time="2-3 business days",
        icon="credit-card",
    ),
    PaymentProvider(
        id="paypal",
        name="PayPal",
        display_name="PayPal",
        description="Global digital payments platform",
        fees=ProviderFees(percentage=3.4, fixed=15, currency="USD"),
        supported_countries=(GLOBAL_COUNTRY,),
        supported_currencies=("USD", "EUR", "GBP", "KES"),
        minimum_amount=1,
        maximum_amount=10_000,
        processing_time="1-3 business days",
        icon="globe",
    ),
    PaymentProvider(
        id="paystack",
        name="Paystack",
        display_name="Paystack",
        description="African payment gateway",
        fees=ProviderFees(percentage=1.95, fixed=0, currency="KES"),
        supported_countries=("Kenya", "Nigeria", "Ghana", "South Africa"),
        supported_currencies=("KES", "NGN", "GHS", "ZAR"),
        minimum_amount=100,
        maximum_amount=2_000_000,
        processing_time="1-2 business days",
        icon="building-2",
    ),
    PaymentProvider(
        id="flutterwave",
        name="Flutterwave",
        display_name="Flutterwave",
        description="Pan-African payment infrastructure",
        fees=ProviderFees(percentage=1.4, fixed=0, currency="KES"),
        supported_countries=("Kenya", "Nigeria", "Uganda", "Tanzania", "Rwanda"),
        supported_currencies=("KES", "NGN", "UGX", "TZS", "RWF"),
        minimum_amount=50,
        maximum_amount=1_500_000,
        processing_time="1-2 business days",
        icon="zap",
    ),
)

# Units of each currency per 1 KES.
KES_RATES = {
    "KES": 1,
    "USD": 0.0067,
    "EUR": 0.0063,
    "GBP": 0.0054,
    "TZS": 2.4,
    "UGX": 24.8,
    "NGN": 10.4,
    "GHS": 0.081,
    "ZAR": 0.12,
    "RWF": 8.7,
}

__all__ = ["GLOBAL_COUNTRY", "KES_RATES", "PAYMENT_PROVIDERS", "PaymentProvider", "ProviderFees"]
