# tests/core/test_drivers.py
"""
Тесты для DriverService и DriverRepository.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from ridehail.common.constants import TripStatus, VerificationStatus
from ridehail.common.exceptions import AuthorizationError, NotFoundError, ValidationError
from ridehail.core.drivers import DriverRepository, DriverService


@pytest.fixture
def mock_driver_repo(mock_drivers) -> AsyncMock:
    mock_drivers.update_location = AsyncMock(return_value=True)
    mock_drivers.set_availability = AsyncMock(return_value=True)
    return mock_drivers


@pytest.fixture
def service(mock_driver_repo, store) -> DriverService:
    return DriverService(mock_driver_repo, store, radius_km=10.0, nearby_limit=2)


class TestLocation:
    """Обновление позиции."""

    @pytest.mark.asyncio
    async def test_update(self, service, mock_driver_repo, driver) -> None:
        await service.update_location(driver, 4.71, -74.07)

        mock_driver_repo.update_location.assert_awaited_once_with("driver-1", 4.71, -74.07)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("lat,lng", [(91.0, 0.0), (0.0, -181.0)])
    async def test_invalid_coordinates(self, service, driver, lat: float, lng: float) -> None:
        with pytest.raises(ValidationError):
            await service.update_location(driver, lat, lng)

    @pytest.mark.asyncio
    async def test_unknown_driver(self, service, mock_driver_repo, driver) -> None:
        mock_driver_repo.update_location.return_value = False

        with pytest.raises(NotFoundError):
            await service.update_location(driver, 4.71, -74.07)

    @pytest.mark.asyncio
    async def test_passenger(self, service, passenger) -> None:
        with pytest.raises(AuthorizationError):
            await service.update_location(passenger, 4.71, -74.07)


class TestAvailability:
    """Выход на линию."""

    @pytest.mark.asyncio
    async def test_go_online(self, service, mock_driver_repo, driver, make_driver) -> None:
        mock_driver_repo.get.return_value = make_driver(is_available=False)

        await service.set_availability(driver, True)

        mock_driver_repo.set_availability.assert_awaited_once_with("driver-1", True)

    @pytest.mark.asyncio
    async def test_unverified_cannot_go_online(self, service, mock_driver_repo, driver, make_driver) -> None:
        mock_driver_repo.get.return_value = make_driver(verification_status=VerificationStatus.PENDING)

        with pytest.raises(ValidationError):
            await service.set_availability(driver, True)
        mock_driver_repo.set_availability.assert_not_called()

    @pytest.mark.asyncio
    async def test_incomplete_profile_cannot_go_online(self, service, mock_driver_repo, driver, make_driver) -> None:
        mock_driver_repo.get.return_value = make_driver(profile_completed=False)

        with pytest.raises(ValidationError):
            await service.set_availability(driver, True)

    @pytest.mark.asyncio
    async def test_unverified_can_go_offline(self, service, mock_driver_repo, driver, make_driver) -> None:
        mock_driver_repo.get.return_value = make_driver(verification_status=VerificationStatus.PENDING)

        await service.set_availability(driver, False)

        mock_driver_repo.set_availability.assert_awaited_once_with("driver-1", False)

    @pytest.mark.asyncio
    async def test_no_profile(self, service, driver) -> None:
        with pytest.raises(NotFoundError):
            await service.set_availability(driver, True)


class TestNearbyAndEarnings:
    @pytest.mark.asyncio
    async def test_nearby_limited_and_sorted(self, service, mock_driver_repo, make_driver) -> None:
        mock_driver_repo.list_dispatchable.return_value = [
            make_driver("d3", latitude=4.74),
            make_driver("d1", latitude=4.712),
            make_driver("d2", latitude=4.72),
        ]

        nearby = await service.nearby(4.7110, -74.0721)

        assert [d.driver_id for d in nearby] == ["d1", "d2"]
        assert nearby[0].vehicle_plate == "ABC123"

    @pytest.mark.asyncio
    async def test_earnings(self, service, store, driver, make_trip) -> None:
        now = datetime.now(timezone.utc)
        await store.create(make_trip(status=TripStatus.COMPLETED, driver_id="driver-1", fare=15000, completed_at=now))
        await store.create(make_trip(
            status=TripStatus.COMPLETED, driver_id="driver-1", fare=20000, completed_at=now - timedelta(days=2),
        ))
        await store.create(make_trip(status=TripStatus.CANCELLED, driver_id="driver-1", fare=9000))

        earnings = await service.earnings(driver)

        assert earnings.completed_trips == 2
        assert earnings.total_earnings == 35000
        assert earnings.today_trips == 1
        assert earnings.today_earnings == 15000


class TestDriverRepository:
    """SQL уровня репозитория (БД замокана)."""

    @pytest.mark.asyncio
    async def test_row_mapping(self, mock_db) -> None:
        mock_db.fetchrow.return_value = {
            "driver_id": "driver-1",
            "full_name": None,
            "latitude": 4.71,
            "longitude": -74.07,
            "last_location_update": None,
            "is_available": True,
            "verification_status": "approved",
            "profile_completed": True,
            "rating": 4.9,
            "total_trips": 12,
            "vehicle_model": "Renault Logan",
            "vehicle_color": "Gris",
            "vehicle_plate": "XYZ987",
        }
        repo = DriverRepository(mock_db)

        driver = await repo.get("driver-1")

        assert driver.full_name == ""
        assert driver.is_dispatchable
        assert driver.verification_status == VerificationStatus.APPROVED

    @pytest.mark.asyncio
    async def test_update_location_not_found(self, mock_db) -> None:
        mock_db.execute.return_value = "UPDATE 0"
        repo = DriverRepository(mock_db)

        assert await repo.update_location("driver-1", 4.7, -74.0) is False

    @pytest.mark.asyncio
    async def test_list_dispatchable_filters_in_sql(self, mock_db) -> None:
        repo = DriverRepository(mock_db)

        assert await repo.list_dispatchable() == []
        query, status = mock_db.fetch.call_args[0]
        assert "is_available = TRUE" in query
        assert status == "approved"
