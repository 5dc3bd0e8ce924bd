# ridehail/core/geo/service.py
"""
Геоиндекс водителей.
Поиск доступных водителей в радиусе от точки подачи по снимку их состояния.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable, Optional

from pydantic import BaseModel

if TYPE_CHECKING:
    from ridehail.core.drivers.models import DriverAvailability


EARTH_RADIUS_KM = 6371.0


@dataclass(frozen=True)
class GeoPoint:
    """Точка на карте."""
    latitude: float
    longitude: float


class NearbyDriver(BaseModel):
    """Водитель поблизости с расстоянием до точки."""

    driver_id: str
    full_name: str = ""
    latitude: float
    longitude: float
    distance_km: float
    rating: float = 5.0
    vehicle_model: Optional[str] = None
    vehicle_color: Optional[str] = None
    vehicle_plate: Optional[str] = None


def calculate_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Расстояние между двумя точками по большому кругу (формула Haversine).

    Returns:
        Расстояние в километрах
    """
    dlat = math.radians(lat2 - lat1)
    dlon = math.radians(lon2 - lon1)

    a = (math.sin(dlat / 2) ** 2 +
         math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) *
         math.sin(dlon / 2) ** 2)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_KM * c


class GeoIndex:
    """
    Индекс водителей поверх снимка их состояния.

    Водитель попадает в выдачу, только если он на линии, верифицирован,
    его позиция известна и расстояние до точки не больше радиуса.
    Индекс ничего не хранит между вызовами: каждый снимок берётся заново.
    """

    def __init__(self, drivers: Iterable[DriverAvailability]) -> None:
        self._drivers = list(drivers)

    def nearby(self, pickup: GeoPoint, radius_km: float) -> list[str]:
        """
        ID водителей в радиусе, ближайшие первыми.

        Args:
            pickup: Точка подачи
            radius_km: Радиус поиска в км (граница включительно)
        """
        return [d.driver_id for d in self.nearby_with_distance(pickup, radius_km)]

    def nearby_with_distance(
        self,
        pickup: GeoPoint,
        radius_km: float,
        limit: Optional[int] = None,
    ) -> list[NearbyDriver]:
        """
        Водители в радиусе вместе с расстоянием до точки.

        Args:
            pickup: Точка подачи
            radius_km: Радиус поиска в км
            limit: Максимум записей в ответе

        Returns:
            Список, отсортированный по возрастанию расстояния
        """
        found: list[NearbyDriver] = []
        for driver in self._drivers:
            if not driver.is_dispatchable:
                continue

            distance = calculate_distance(
                pickup.latitude, pickup.longitude, driver.latitude, driver.longitude
            )
            if distance > radius_km:
                continue

            found.append(NearbyDriver(
                driver_id=driver.driver_id,
                full_name=driver.full_name,
                latitude=driver.latitude,
                longitude=driver.longitude,
                distance_km=round(distance, 3),
                rating=driver.rating,
                vehicle_model=driver.vehicle_model,
                vehicle_color=driver.vehicle_color,
                vehicle_plate=driver.vehicle_plate,
            ))

        found.sort(key=lambda d: d.distance_km)
        if limit is not None:
            found = found[:limit]
        return found
