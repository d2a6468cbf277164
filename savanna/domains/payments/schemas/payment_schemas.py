"""Payment DTOs and schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _upper_currency(value: str) -> str:
    return (value or "").strip().upper()


class PaymentData(BaseModel):
    amount: float = Field(gt=0)
    currency: str = Field(default="KES", min_length=3, max_length=3)
    order_id: str = Field(min_length=1, max_length=128)
    customer_id: Optional[str] = Field(default=None, max_length=128)
    description: str = Field(default="", max_length=512)
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("currency", mode="before")
    @classmethod
    def normalize_currency(cls, v: str) -> str:
        return _upper_currency(v)


class PaymentMethod(BaseModel):
    """Provider-specific method details; unknown keys are kept."""

    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    phone_number: Optional[str] = None


class PaymentResult(BaseModel):
    success: bool
    transaction_id: Optional[str] = None
    error: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)


class QuoteRequest(BaseModel):
    provider_id: str = Field(min_length=1, max_length=32)
    amount: float = Field(gt=0)
    currency: str = Field(default="KES", min_length=3, max_length=3)

    @field_validator("currency", mode="before")
    @classmethod
    def normalize_currency(cls, v: str) -> str:
        return _upper_currency(v)


class ProcessPaymentRequest(BaseModel):
    provider_id: str = Field(min_length=1, max_length=32)
    payment: PaymentData
    method: PaymentMethod = Field(default_factory=PaymentMethod)


class PaymentStatus(BaseModel):
    transaction_id: str
    status: Literal["pending", "completed", "failed", "cancelled"]
    amount: Optional[float] = None
    currency: Optional[str] = None
    timestamp: Optional[datetime] = None


__all__ = [
    "PaymentData",
    "PaymentMethod",
    "PaymentResult",
    "QuoteRequest",
    "ProcessPaymentRequest",
    "PaymentStatus",
]
