# ridehail/core/trips/dispatch.py
"""
Создание поездок и рассылка водителям поблизости.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

from ridehail.common.constants import TripStatus, TypeMsg
from ridehail.common.exceptions import AuthorizationError
from ridehail.common.logger import log_error, log_info
from ridehail.core.drivers.repository import DriverRepository
from ridehail.core.geo.service import GeoIndex, GeoPoint, calculate_distance
from ridehail.core.identity import Identity
from ridehail.core.trips.models import AvailableTrip, Trip, TripCreateDTO
from ridehail.core.trips.store import TripStore
from ridehail.infra.event_bus import EventBus
from ridehail.shared.events import TripCreated

if TYPE_CHECKING:
    from ridehail.core.notifications.service import NotificationFanout


PENDING_VERIFICATION_MESSAGE = "Tu cuenta está pendiente de verificación"


@dataclass
class DispatchResult:
    """Созданная поездка и число водителей, получивших уведомление."""
    trip: Trip
    drivers_notified: int = 0


@dataclass
class TripBoard:
    """Доска доступных поездок для водителя."""
    trips: list[AvailableTrip] = field(default_factory=list)
    message: Optional[str] = None


class DispatchEngine:
    """
    Движок диспетчеризации.

    Создание поездки не зависит от рассылки: поездка сохраняется первой,
    а ошибки поиска водителей и доставки только логируются. Водители
    в любом случае видят поездку на доске.
    """

    def __init__(
        self,
        store: TripStore,
        drivers: DriverRepository,
        fanout: NotificationFanout,
        event_bus: Optional[EventBus] = None,
        radius_km: Optional[float] = None,
        board_limit: Optional[int] = None,
    ) -> None:
        """
        Args:
            store: Хранилище поездок
            drivers: Репозиторий водителей (снимок для GeoIndex)
            fanout: Рассылка уведомлений
            event_bus: Шина событий
            radius_km: Радиус поиска водителей (из конфига если None)
            board_limit: Максимум поездок на доске водителя
        """
        if radius_km is None or board_limit is None:
            from ridehail.config import settings
            radius_km = radius_km if radius_km is not None else settings.search.DRIVER_SEARCH_RADIUS_KM
            board_limit = board_limit if board_limit is not None else settings.search.ACTIVE_TRIPS_LIMIT

        self._store = store
        self._drivers = drivers
        self._fanout = fanout
        self._event_bus = event_bus
        self._radius_km = radius_km
        self._board_limit = board_limit

    async def create_trip(self, identity: Identity, data: TripCreateDTO) -> DispatchResult:
        """
        Создаёт поездку и уведомляет доступных водителей в радиусе.

        Args:
            identity: Пассажир
            data: Маршрут, цена и расстояние

        Returns:
            Поездка и количество успешных уведомлений
        """
        if not identity.is_passenger:
            raise AuthorizationError("Only passengers can create trips")

        trip = await self._store.create(Trip(
            passenger_id=identity.user_id,
            pickup=data.pickup,
            dropoff=data.dropoff,
            fare=data.estimated_fare,
            distance_km=data.distance_km,
            status=TripStatus.REQUESTED,
        ))
        await log_info(
            f"Поездка {trip.id} создана пассажиром {identity.user_id}",
            type_msg=TypeMsg.INFO,
        )

        notified = await self._notify_nearby(trip)

        if self._event_bus is not None:
            await self._event_bus.publish(TripCreated(
                trip_id=trip.id,
                passenger_id=trip.passenger_id,
                pickup_lat=trip.pickup.latitude,
                pickup_lng=trip.pickup.longitude,
                fare=trip.fare,
                distance_km=trip.distance_km,
                drivers_notified=notified,
            ))

        return DispatchResult(trip=trip, drivers_notified=notified)

    async def _notify_nearby(self, trip: Trip) -> int:
        try:
            snapshot = await self._drivers.list_dispatchable()
            pickup = GeoPoint(trip.pickup.latitude, trip.pickup.longitude)
            driver_ids = GeoIndex(snapshot).nearby(pickup, self._radius_km)
            if not driver_ids:
                await log_info(f"Поездка {trip.id}: рядом нет водителей", type_msg=TypeMsg.DEBUG)
                return 0
            return await self._fanout.notify_drivers(trip, driver_ids)
        except Exception as e:
            await log_error(f"Ошибка рассылки по поездке {trip.id}: {e}")
            return 0

    async def list_board(self, identity: Identity) -> TripBoard:
        """
        Поездки, ожидающие водителя, с расстоянием до точки подачи.

        Неверифицированный водитель получает пустой список и сообщение.
        Поездки без известного расстояния идут в конце.
        """
        if not identity.is_driver:
            raise AuthorizationError("Only drivers can view available trips")

        driver = await self._drivers.get(identity.user_id)
        if driver is None or not driver.is_approved:
            return TripBoard(trips=[], message=PENDING_VERIFICATION_MESSAGE)

        requested = await self._store.list_requested(self._board_limit)
        board: list[AvailableTrip] = []
        for trip in requested:
            if trip.driver_id is not None:
                continue
            distance = None
            if driver.has_location:
                distance = round(calculate_distance(
                    driver.latitude, driver.longitude,
                    trip.pickup.latitude, trip.pickup.longitude,
                ), 2)
            board.append(AvailableTrip(trip=trip, distance_to_pickup_km=distance))

        board.sort(key=lambda t: (t.distance_to_pickup_km is None, t.distance_to_pickup_km or 0.0))
        return TripBoard(trips=board)
