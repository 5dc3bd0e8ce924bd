# ridehail/core/trips/__init__.py
"""
Домен поездок: хранилище, жизненный цикл, диспетчеризация и принятие.
"""

from ridehail.core.trips.arbiter import AcceptanceArbiter
from ridehail.core.trips.dispatch import DispatchEngine, DispatchResult, TripBoard
from ridehail.core.trips.models import AvailableTrip, Location, Trip, TripCreateDTO
from ridehail.core.trips.service import TripService
from ridehail.core.trips.state_machine import TripStateMachine
from ridehail.core.trips.store import InMemoryTripStore, PostgresTripStore, TripStore

__all__ = [
    "AcceptanceArbiter",
    "DispatchEngine",
    "DispatchResult",
    "TripBoard",
    "AvailableTrip",
    "Location",
    "Trip",
    "TripCreateDTO",
    "TripService",
    "TripStateMachine",
    "TripStore",
    "InMemoryTripStore",
    "PostgresTripStore",
]
