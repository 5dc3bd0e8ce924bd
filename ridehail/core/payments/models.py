# ridehail/core/payments/models.py
"""
Модели платежей.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, Field

from ridehail.common.constants import PaymentMethod, PaymentStatus


class PaymentTransaction(BaseModel):
    """Платёжная транзакция по поездке."""

    id: str = Field(default_factory=lambda: str(uuid4()), description="UUID транзакции")
    trip_id: str
    user_id: str
    amount: int = Field(..., ge=0)
    status: PaymentStatus
    payment_type: PaymentMethod
    provider: Optional[str] = None
    provider_transaction_id: Optional[str] = None
    payment_link: Optional[str] = None
    description: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    approved_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class PaymentRequestDTO(BaseModel):
    """DTO оплаты поездки."""

    trip_id: str
    payment_method: PaymentMethod


class PaymentOutcome(BaseModel):
    """Результат оплаты для клиента."""

    transaction: PaymentTransaction
    payment_url: Optional[str] = None
    message: str = ""


@dataclass
class PaymentIntent:
    """Запрос на создание платежа у провайдера."""
    amount: int
    currency: str
    reference: str
    customer_email: str
    payment_method: PaymentMethod
    redirect_url: Optional[str] = None


@dataclass
class ProviderResult:
    """Ответ платёжного провайдера."""
    success: bool
    status: PaymentStatus
    transaction_id: Optional[str] = None
    payment_url: Optional[str] = None
    message: str = ""
