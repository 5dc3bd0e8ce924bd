# ridehail/core/trips/arbiter.py
"""
Арбитр принятия поездки.

Единственная точка, где поездке назначается водитель. Прямое принятие
водителем и принятие предложения пассажиром проходят через одну и ту же
атомарную запись, поэтому из любого числа конкурентов выигрывает ровно один.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from ridehail.common.constants import TypeMsg
from ridehail.common.exceptions import AuthorizationError, NotFoundError
from ridehail.common.logger import log_info
from ridehail.core.drivers.repository import DriverRepository
from ridehail.core.identity import Identity
from ridehail.core.trips.models import Trip
from ridehail.core.trips.store import TripStore
from ridehail.infra.event_bus import EventBus
from ridehail.shared.events import TripAccepted

if TYPE_CHECKING:
    from ridehail.core.notifications.service import NotificationFanout


ALREADY_ACCEPTED_MESSAGE = "Trip not found or already accepted"


class AcceptanceArbiter:
    """Назначение водителя на поездку."""

    def __init__(
        self,
        store: TripStore,
        drivers: DriverRepository,
        fanout: NotificationFanout,
        event_bus: Optional[EventBus] = None,
    ) -> None:
        self._store = store
        self._drivers = drivers
        self._fanout = fanout
        self._event_bus = event_bus

    async def accept(self, trip_id: str, identity: Identity) -> Trip:
        """
        Водитель принимает поездку по цене пассажира.

        Raises:
            AuthorizationError: вызывающий не водитель или не верифицирован
            NotFoundError: поездки нет или её уже принял другой водитель
        """
        if not identity.is_driver:
            raise AuthorizationError("Only drivers can accept trips")

        driver = await self._drivers.get(identity.user_id)
        if driver is None or not driver.is_approved:
            raise AuthorizationError("Driver must be verified to accept trips")

        trip = await self.assign(trip_id, identity.user_id)

        vehicle = " ".join(p for p in (driver.vehicle_model, driver.vehicle_color) if p)
        self._fanout.fire(self._fanout.trip_accepted(trip, driver.full_name, vehicle))
        return trip

    async def assign(
        self,
        trip_id: str,
        driver_id: str,
        *,
        fare: Optional[int] = None,
    ) -> Trip:
        """
        Атомарно назначает водителя; fare (если задана) пишется той же операцией.

        Args:
            trip_id: ID поездки
            driver_id: ID водителя
            fare: Цена принятого предложения

        Raises:
            NotFoundError: условие status=requested не выполнено
        """
        trip = await self._store.assign_driver(trip_id, driver_id, fare=fare)
        if trip is None:
            await log_info(
                f"Водитель {driver_id} проиграл принятие поездки {trip_id}",
                type_msg=TypeMsg.DEBUG,
            )
            raise NotFoundError(ALREADY_ACCEPTED_MESSAGE)

        await log_info(
            f"Поездка {trip_id} принята водителем {driver_id}, fare={trip.fare}",
            type_msg=TypeMsg.INFO,
        )

        if self._event_bus is not None:
            await self._event_bus.publish(TripAccepted(
                trip_id=trip.id,
                passenger_id=trip.passenger_id,
                driver_id=driver_id,
                fare=trip.fare,
                via_offer=fare is not None,
            ))
        return trip
