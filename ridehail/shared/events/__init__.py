# ridehail/shared/events/__init__.py
"""
Схемы событий для RabbitMQ.

- trip_events: создание поездки, назначение водителя, смена статуса, оценка, предложения цены
- payment_events: оплата поездки, начисления и выводы в кошельке

routing_key события равен его event_type; event_id служит для дедупликации.
"""

from ridehail.shared.events.base import DomainEvent, EventMetadata
from ridehail.shared.events.payment_events import (
    PaymentProcessed,
    WalletCredited,
    WithdrawalRequested,
)
from ridehail.shared.events.trip_events import (
    OfferProposed,
    TripAccepted,
    TripCreated,
    TripRated,
    TripStatusChanged,
)

__all__ = [
    "DomainEvent",
    "EventMetadata",
    "TripCreated",
    "TripAccepted",
    "TripStatusChanged",
    "TripRated",
    "OfferProposed",
    "PaymentProcessed",
    "WalletCredited",
    "WithdrawalRequested",
]
