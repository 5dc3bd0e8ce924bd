# ridehail/core/payments/__init__.py
"""
Домен платежей: оплата поездок и вебхук провайдера.
"""

from ridehail.core.payments.models import (
    PaymentIntent,
    PaymentOutcome,
    PaymentRequestDTO,
    PaymentTransaction,
    ProviderResult,
)
from ridehail.core.payments.provider import WompiClient
from ridehail.core.payments.repository import PaymentRepository
from ridehail.core.payments.service import PaymentService

__all__ = [
    "PaymentIntent",
    "PaymentOutcome",
    "PaymentRequestDTO",
    "PaymentTransaction",
    "ProviderResult",
    "WompiClient",
    "PaymentRepository",
    "PaymentService",
]
