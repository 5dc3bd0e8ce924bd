# tests/core/test_trip_state_machine.py
"""
Тесты для TripStateMachine.
"""

from __future__ import annotations

import pytest

from ridehail.common.constants import TripStatus, UserRole
from ridehail.common.exceptions import AuthorizationError, ValidationError
from ridehail.core.identity import Identity
from ridehail.core.trips import TripStateMachine


class TestCanTransition:
    """Тесты таблицы переходов."""

    @pytest.mark.parametrize(
        "current,new",
        [
            (TripStatus.REQUESTED, TripStatus.CANCELLED),
            (TripStatus.ACCEPTED, TripStatus.DRIVER_ARRIVING),
            (TripStatus.ACCEPTED, TripStatus.IN_PROGRESS),
            (TripStatus.ACCEPTED, TripStatus.CANCELLED),
            (TripStatus.DRIVER_ARRIVING, TripStatus.IN_PROGRESS),
            (TripStatus.DRIVER_ARRIVING, TripStatus.CANCELLED),
            (TripStatus.IN_PROGRESS, TripStatus.COMPLETED),
            (TripStatus.IN_PROGRESS, TripStatus.CANCELLED),
        ],
    )
    def test_allowed(self, current: TripStatus, new: TripStatus) -> None:
        assert TripStateMachine.can_transition(current, new)

    @pytest.mark.parametrize(
        "current,new",
        [
            (TripStatus.REQUESTED, TripStatus.ACCEPTED),
            (TripStatus.REQUESTED, TripStatus.IN_PROGRESS),
            (TripStatus.ACCEPTED, TripStatus.COMPLETED),
            (TripStatus.DRIVER_ARRIVING, TripStatus.ACCEPTED),
            (TripStatus.COMPLETED, TripStatus.CANCELLED),
            (TripStatus.CANCELLED, TripStatus.REQUESTED),
        ],
    )
    def test_forbidden(self, current: TripStatus, new: TripStatus) -> None:
        assert not TripStateMachine.can_transition(current, new)

    def test_unknown_status(self) -> None:
        """Неизвестный статус не переходит никуда."""
        assert not TripStateMachine.can_transition("teleported", "completed")

    def test_terminal_states_have_no_exits(self) -> None:
        assert TripStateMachine.ALLOWED_TRANSITIONS[TripStatus.COMPLETED] == []
        assert TripStateMachine.ALLOWED_TRANSITIONS[TripStatus.CANCELLED] == []


class TestTimestampField:
    """Тесты колонок времени."""

    def test_fields(self) -> None:
        assert TripStateMachine.timestamp_field(TripStatus.IN_PROGRESS) == "started_at"
        assert TripStateMachine.timestamp_field(TripStatus.COMPLETED) == "completed_at"
        assert TripStateMachine.timestamp_field(TripStatus.CANCELLED) == "cancelled_at"

    def test_driver_arriving_has_no_timestamp(self) -> None:
        assert TripStateMachine.timestamp_field(TripStatus.DRIVER_ARRIVING) is None


class TestCheck:
    """Тесты проверки перехода для конкретного пользователя."""

    def test_stranger_is_rejected(self, make_trip) -> None:
        trip = make_trip(status=TripStatus.ACCEPTED, driver_id="driver-1")
        stranger = Identity(user_id="someone", role=UserRole.PASSENGER)

        with pytest.raises(AuthorizationError):
            TripStateMachine.check(trip, stranger, TripStatus.CANCELLED)

    def test_invalid_transition_message(self, make_trip, passenger) -> None:
        trip = make_trip(status=TripStatus.COMPLETED, driver_id="driver-1")

        with pytest.raises(ValidationError) as exc_info:
            TripStateMachine.check(trip, passenger, TripStatus.CANCELLED)

        assert exc_info.value.message == "Invalid status transition from completed to cancelled"

    def test_either_party_may_cancel_in_progress(self, make_trip, passenger, driver) -> None:
        trip = make_trip(status=TripStatus.IN_PROGRESS, driver_id="driver-1")

        TripStateMachine.check(trip, passenger, TripStatus.CANCELLED)
        TripStateMachine.check(trip, driver, TripStatus.CANCELLED)

    def test_driver_without_assignment_cannot_act(self, make_trip, driver) -> None:
        """Водитель не участник поездки, на которую ещё никто не назначен."""
        trip = make_trip()

        with pytest.raises(AuthorizationError):
            TripStateMachine.check(trip, driver, TripStatus.CANCELLED)
