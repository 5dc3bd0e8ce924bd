# ridehail/core/offers/service.py
"""
Книга предложений цены.

Водители торгуются за поездку, пока она в статусе requested. Принятие
предложения идёт через AcceptanceArbiter: водитель и новая цена
записываются одной атомарной операцией.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from ridehail.common.constants import TripStatus, TypeMsg
from ridehail.common.exceptions import AuthorizationError, NotFoundError, ValidationError
from ridehail.common.logger import log_info
from ridehail.core.drivers.repository import DriverRepository
from ridehail.core.identity import Identity
from ridehail.core.offers.models import Offer
from ridehail.core.offers.repository import OfferRepository
from ridehail.core.trips.arbiter import AcceptanceArbiter
from ridehail.core.trips.models import Trip
from ridehail.core.trips.store import TripStore
from ridehail.infra.event_bus import EventBus
from ridehail.shared.events import OfferProposed

if TYPE_CHECKING:
    from ridehail.core.notifications.service import NotificationFanout


class OfferBook:
    """Предложения цены по поездкам."""

    def __init__(
        self,
        store: TripStore,
        offers: OfferRepository,
        drivers: DriverRepository,
        arbiter: AcceptanceArbiter,
        fanout: NotificationFanout,
        event_bus: Optional[EventBus] = None,
        min_price: Optional[int] = None,
    ) -> None:
        """
        Args:
            store: Хранилище поездок
            offers: Репозиторий предложений
            drivers: Репозиторий водителей (снимок профиля в предложение)
            arbiter: Арбитр принятия поездки
            fanout: Рассылка уведомлений
            event_bus: Шина событий
            min_price: Минимальная цена предложения (из конфига если None)
        """
        if min_price is None:
            from ridehail.config import settings
            min_price = settings.offers.MIN_OFFER_PRICE

        self._store = store
        self._offers = offers
        self._drivers = drivers
        self._arbiter = arbiter
        self._fanout = fanout
        self._event_bus = event_bus
        self._min_price = min_price

    async def _get_trip(self, trip_id: str) -> Trip:
        trip = await self._store.get(trip_id)
        if trip is None:
            raise NotFoundError("Trip not found")
        return trip

    async def propose(self, trip_id: str, identity: Identity, offered_price: int) -> Offer:
        """
        Водитель предлагает свою цену; повторное предложение заменяет прежнее.

        Raises:
            AuthorizationError: вызывающий не водитель
            ValidationError: цена некорректна, поездка уже не ждёт водителя,
                профиль водителя не заполнен или не верифицирован
            NotFoundError: поездки нет
        """
        if not identity.is_driver:
            raise AuthorizationError("Only drivers can send price offers")

        if offered_price <= 0:
            raise ValidationError("Invalid price")
        if offered_price < self._min_price:
            raise ValidationError(f"Minimum price is ${self._min_price:,}")

        trip = await self._get_trip(trip_id)
        if trip.status != TripStatus.REQUESTED:
            raise ValidationError("Trip is no longer available for offers")

        driver = await self._drivers.get(identity.user_id)
        if driver is None or not driver.profile_completed:
            raise ValidationError("Please complete your driver profile first")
        if not driver.is_approved:
            raise ValidationError("Your account is pending verification")

        offer = await self._offers.upsert(Offer(
            trip_id=trip_id,
            driver_id=identity.user_id,
            offered_price=offered_price,
            driver_name=driver.full_name or None,
            vehicle_model=driver.vehicle_model,
            vehicle_color=driver.vehicle_color,
            vehicle_plate=driver.vehicle_plate,
            driver_rating=driver.rating,
        ))
        await log_info(
            f"Предложение по поездке {trip_id}: водитель {identity.user_id}, цена {offered_price}",
            type_msg=TypeMsg.INFO,
        )

        self._fanout.fire(self._fanout.new_offer(trip, driver.full_name, offered_price))

        if self._event_bus is not None:
            await self._event_bus.publish(OfferProposed(
                trip_id=trip_id,
                driver_id=identity.user_id,
                offered_price=offered_price,
            ))
        return offer

    async def list_offers(self, trip_id: str, identity: Identity) -> list[Offer]:
        """
        Действующие предложения по поездке для её пассажира.
        После выхода поездки из requested предложений нет.
        """
        trip = await self._get_trip(trip_id)
        if trip.passenger_id != identity.user_id:
            raise AuthorizationError("Unauthorized")

        if trip.status != TripStatus.REQUESTED:
            return []
        return await self._offers.list_for_trip(trip_id)

    async def accept_offer(self, trip_id: str, identity: Identity, driver_id: str) -> Trip:
        """
        Пассажир принимает предложение водителя.

        Returns:
            Поездка с назначенным водителем и ценой предложения

        Raises:
            AuthorizationError: вызывающий не пассажир этой поездки
            ValidationError: поездка уже не ждёт водителя
            NotFoundError: предложения нет или поездку успели принять
        """
        if not identity.is_passenger:
            raise AuthorizationError("Only passengers can accept offers")
        if not driver_id:
            raise ValidationError("driver_id is required")

        trip = await self._get_trip(trip_id)
        if trip.passenger_id != identity.user_id:
            raise AuthorizationError("Unauthorized")
        if trip.status != TripStatus.REQUESTED:
            raise ValidationError("Trip is no longer available")

        offer = await self._offers.get(trip_id, driver_id)
        if offer is None:
            raise NotFoundError("Offer not found")

        accepted = await self._arbiter.assign(trip_id, driver_id, fare=offer.offered_price)

        self._fanout.fire(self._fanout.offer_accepted(accepted))
        return accepted
