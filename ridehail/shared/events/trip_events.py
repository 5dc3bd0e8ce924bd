# ridehail/shared/events/trip_events.py
"""
События домена поездок.
"""

from __future__ import annotations

from typing import Literal

from ridehail.shared.events.base import DomainEvent


class TripCreated(DomainEvent):
    """Событие: пассажир создал поездку."""

    event_type: Literal["trip.created"] = "trip.created"

    trip_id: str
    passenger_id: str
    pickup_lat: float
    pickup_lng: float
    fare: int
    distance_km: float
    drivers_notified: int = 0


class TripAccepted(DomainEvent):
    """Событие: водитель назначен на поездку (напрямую или через предложение)."""

    event_type: Literal["trip.accepted"] = "trip.accepted"

    trip_id: str
    passenger_id: str
    driver_id: str
    fare: int
    via_offer: bool = False


class TripStatusChanged(DomainEvent):
    """Событие: статус поездки изменён."""

    event_type: Literal["trip.status_changed"] = "trip.status_changed"

    trip_id: str
    old_status: str
    new_status: str
    changed_by: str


class TripRated(DomainEvent):
    """Событие: участник поездки поставил оценку."""

    event_type: Literal["trip.rated"] = "trip.rated"

    trip_id: str
    rated_user_id: str
    direction: str
    rating: int
    new_average: float


class OfferProposed(DomainEvent):
    """Событие: водитель предложил цену."""

    event_type: Literal["offer.proposed"] = "offer.proposed"

    trip_id: str
    driver_id: str
    offered_price: int
