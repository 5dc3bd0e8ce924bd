# ridehail/core/drivers/service.py
"""
Сервис водителей: геопозиция, выход на линию, поиск поблизости, заработок.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from ridehail.common.constants import TypeMsg
from ridehail.common.exceptions import AuthorizationError, NotFoundError, ValidationError
from ridehail.common.logger import log_info
from ridehail.core.drivers.models import DriverEarnings
from ridehail.core.drivers.repository import DriverRepository
from ridehail.core.geo.service import GeoIndex, GeoPoint, NearbyDriver
from ridehail.core.identity import Identity
from ridehail.core.trips.store import TripStore


class DriverService:
    """Сервис водителей."""

    def __init__(
        self,
        repository: DriverRepository,
        store: TripStore,
        radius_km: Optional[float] = None,
        nearby_limit: Optional[int] = None,
    ) -> None:
        """
        Args:
            repository: Репозиторий водителей
            store: Хранилище поездок (для заработка)
            radius_km: Радиус поиска водителей поблизости
            nearby_limit: Максимум водителей в ответе
        """
        if radius_km is None or nearby_limit is None:
            from ridehail.config import settings
            radius_km = radius_km if radius_km is not None else settings.search.DRIVER_SEARCH_RADIUS_KM
            nearby_limit = nearby_limit if nearby_limit is not None else settings.search.NEARBY_DRIVERS_LIMIT

        self._repository = repository
        self._store = store
        self._radius_km = radius_km
        self._nearby_limit = nearby_limit

    @staticmethod
    def _require_driver(identity: Identity) -> None:
        if not identity.is_driver:
            raise AuthorizationError("Only drivers can perform this action")

    async def update_location(self, identity: Identity, latitude: float, longitude: float) -> None:
        """
        Сохраняет текущую позицию водителя.

        Raises:
            ValidationError: координаты вне диапазона
            NotFoundError: профиль водителя не найден
        """
        self._require_driver(identity)
        if not (-90.0 <= latitude <= 90.0 and -180.0 <= longitude <= 180.0):
            raise ValidationError("Invalid coordinates")

        if not await self._repository.update_location(identity.user_id, latitude, longitude):
            raise NotFoundError("Driver profile not found")

    async def set_availability(self, identity: Identity, is_available: bool) -> None:
        """
        Выход на линию / уход с линии.
        На линию выходит только водитель с заполненным и верифицированным профилем.
        """
        self._require_driver(identity)

        driver = await self._repository.get(identity.user_id)
        if driver is None:
            raise NotFoundError("Driver profile not found")

        if is_available:
            if not driver.profile_completed:
                raise ValidationError("Complete your driver profile before going online")
            if not driver.is_approved:
                raise ValidationError("Your account is pending verification")

        await self._repository.set_availability(identity.user_id, is_available)
        await log_info(
            f"Водитель {identity.user_id} {'на линии' if is_available else 'offline'}",
            type_msg=TypeMsg.INFO,
        )

    async def nearby(self, latitude: float, longitude: float) -> list[NearbyDriver]:
        """Ближайшие доступные водители к точке."""
        snapshot = await self._repository.list_dispatchable()
        return GeoIndex(snapshot).nearby_with_distance(
            GeoPoint(latitude, longitude),
            self._radius_km,
            limit=self._nearby_limit,
        )

    async def earnings(self, identity: Identity) -> DriverEarnings:
        """Заработок водителя по завершённым поездкам, всего и за сегодня (UTC)."""
        self._require_driver(identity)

        trips = await self._store.list_completed_for_driver(identity.user_id)
        today = datetime.now(timezone.utc).date()
        today_trips = [t for t in trips if t.completed_at and t.completed_at.date() == today]

        return DriverEarnings(
            driver_id=identity.user_id,
            completed_trips=len(trips),
            total_earnings=sum(t.fare for t in trips),
            today_trips=len(today_trips),
            today_earnings=sum(t.fare for t in today_trips),
        )
