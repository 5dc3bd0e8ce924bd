# tests/core/test_ratings.py
"""
Тесты для RatingAggregator.
"""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from ridehail.common.constants import RatingDirection, TripStatus
from ridehail.common.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ridehail.core.ratings import DEFAULT_RATING, RatingAggregator


@pytest.fixture
def mock_rating_repo() -> AsyncMock:
    repo = AsyncMock()
    repo.save_average = AsyncMock(return_value=None)
    return repo


@pytest.fixture
def aggregator(store, mock_rating_repo, mock_fanout, mock_event_bus) -> RatingAggregator:
    return RatingAggregator(store, mock_rating_repo, mock_fanout, mock_event_bus)


class TestRate:
    """Тесты выставления оценки."""

    @pytest.mark.asyncio
    async def test_passenger_rates_driver(
        self, aggregator, store, mock_rating_repo, mock_fanout, mock_event_bus, passenger, make_trip
    ) -> None:
        trip = await store.create(make_trip(status=TripStatus.COMPLETED, driver_id="driver-1"))

        updated = await aggregator.rate(trip.id, passenger, 5, "Muy amable")

        assert updated.driver_rating == 5
        assert updated.driver_comment == "Muy amable"
        mock_rating_repo.save_average.assert_awaited_once_with("driver-1", RatingDirection.DRIVER, 5.0)
        mock_fanout.new_rating.assert_called_once()

        event = mock_event_bus.publish.call_args[0][0]
        assert event.event_type == "trip.rated"
        assert event.new_average == 5.0

    @pytest.mark.asyncio
    async def test_driver_rates_passenger_without_push(
        self, aggregator, store, mock_rating_repo, mock_fanout, driver, make_trip
    ) -> None:
        trip = await store.create(make_trip(status=TripStatus.COMPLETED, driver_id="driver-1"))

        updated = await aggregator.rate(trip.id, driver, 4)

        assert updated.passenger_rating == 4
        mock_rating_repo.save_average.assert_awaited_once_with("passenger-1", RatingDirection.PASSENGER, 4.0)
        mock_fanout.new_rating.assert_not_called()

    @pytest.mark.asyncio
    async def test_average_rounded(self, aggregator, store, mock_rating_repo, passenger, make_trip) -> None:
        """Средний рейтинг округляется до двух знаков."""
        for rating in (5, 4):
            trip = await store.create(make_trip(status=TripStatus.COMPLETED, driver_id="driver-1"))
            await aggregator.rate(trip.id, passenger, rating)
        trip = await store.create(make_trip(status=TripStatus.COMPLETED, driver_id="driver-1"))

        await aggregator.rate(trip.id, passenger, 4)

        assert mock_rating_repo.save_average.call_args[0][2] == 4.33

    @pytest.mark.asyncio
    async def test_second_rating_same_direction(self, aggregator, store, passenger, make_trip) -> None:
        trip = await store.create(make_trip(status=TripStatus.COMPLETED, driver_id="driver-1"))
        await aggregator.rate(trip.id, passenger, 5)

        with pytest.raises(ConflictError) as exc_info:
            await aggregator.rate(trip.id, passenger, 1)
        assert exc_info.value.message == "Trip already rated by passenger"
        assert (await store.get(trip.id)).driver_rating == 5

    @pytest.mark.asyncio
    @pytest.mark.parametrize("rating", [0, 6, -1])
    async def test_out_of_range(self, aggregator, store, passenger, make_trip, rating: int) -> None:
        trip = await store.create(make_trip(status=TripStatus.COMPLETED, driver_id="driver-1"))

        with pytest.raises(ValidationError):
            await aggregator.rate(trip.id, passenger, rating)

    @pytest.mark.asyncio
    async def test_not_completed(self, aggregator, store, passenger, make_trip) -> None:
        trip = await store.create(make_trip(status=TripStatus.IN_PROGRESS, driver_id="driver-1"))

        with pytest.raises(ValidationError) as exc_info:
            await aggregator.rate(trip.id, passenger, 5)
        assert exc_info.value.message == "Can only rate completed trips"

    @pytest.mark.asyncio
    async def test_stranger(self, aggregator, store, other_driver, make_trip) -> None:
        trip = await store.create(make_trip(status=TripStatus.COMPLETED, driver_id="driver-1"))

        with pytest.raises(AuthorizationError):
            await aggregator.rate(trip.id, other_driver, 5)

    @pytest.mark.asyncio
    async def test_unknown_trip(self, aggregator, passenger) -> None:
        with pytest.raises(NotFoundError):
            await aggregator.rate("missing", passenger, 5)

    @pytest.mark.asyncio
    async def test_profile_save_failure_keeps_rating(
        self, aggregator, store, mock_rating_repo, passenger, make_trip
    ) -> None:
        mock_rating_repo.save_average.side_effect = RuntimeError("db")
        trip = await store.create(make_trip(status=TripStatus.COMPLETED, driver_id="driver-1"))

        updated = await aggregator.rate(trip.id, passenger, 3)

        assert updated.driver_rating == 3


class TestRecompute:
    """Тесты пересчёта рейтинга."""

    @pytest.mark.asyncio
    async def test_no_ratings_is_default(self, aggregator, mock_rating_repo) -> None:
        average = await aggregator.recompute("driver-9", RatingDirection.DRIVER)

        assert average == DEFAULT_RATING == 5.0
        mock_rating_repo.save_average.assert_awaited_once_with("driver-9", RatingDirection.DRIVER, 5.0)
