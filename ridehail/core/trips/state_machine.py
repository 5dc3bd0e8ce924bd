# ridehail/core/trips/state_machine.py
"""
Жизненный цикл поездки.
"""

from __future__ import annotations

from typing import Optional

from ridehail.common.constants import TripStatus
from ridehail.common.exceptions import AuthorizationError, ValidationError
from ridehail.core.identity import Identity
from ridehail.core.trips.models import Trip


class TripStateMachine:
    """
    Допустимые переходы статусов поездки.

    requested -> accepted выполняется только через AcceptanceArbiter,
    поэтому accepted не является целью ни одного обычного перехода.
    """

    ALLOWED_TRANSITIONS: dict[TripStatus, list[TripStatus]] = {
        TripStatus.REQUESTED: [TripStatus.CANCELLED],
        TripStatus.ACCEPTED: [TripStatus.DRIVER_ARRIVING, TripStatus.IN_PROGRESS, TripStatus.CANCELLED],
        TripStatus.DRIVER_ARRIVING: [TripStatus.IN_PROGRESS, TripStatus.CANCELLED],
        TripStatus.IN_PROGRESS: [TripStatus.COMPLETED, TripStatus.CANCELLED],
        TripStatus.COMPLETED: [],
        TripStatus.CANCELLED: [],
    }

    TIMESTAMP_FIELDS: dict[TripStatus, str] = {
        TripStatus.ACCEPTED: "accepted_at",
        TripStatus.IN_PROGRESS: "started_at",
        TripStatus.COMPLETED: "completed_at",
        TripStatus.CANCELLED: "cancelled_at",
    }

    @staticmethod
    def can_transition(current_status: str, new_status: str) -> bool:
        try:
            curr = TripStatus(current_status)
            new = TripStatus(new_status)
        except ValueError:
            return False
        return new in TripStateMachine.ALLOWED_TRANSITIONS.get(curr, [])

    @staticmethod
    def timestamp_field(status: TripStatus) -> Optional[str]:
        """Колонка времени, которую проставляет переход в статус."""
        return TripStateMachine.TIMESTAMP_FIELDS.get(status)

    @staticmethod
    def check(trip: Trip, identity: Identity, new_status: TripStatus) -> None:
        """
        Проверяет, может ли пользователь перевести поездку в статус.

        Raises:
            AuthorizationError: пользователь не пассажир и не водитель поездки
            ValidationError: статус недостижим из текущего
        """
        if not trip.is_party(identity.user_id):
            raise AuthorizationError("Unauthorized")

        if not TripStateMachine.can_transition(trip.status, new_status):
            raise ValidationError(
                f"Invalid status transition from {trip.status} to {new_status}"
            )
