# ridehail/services/trip_service/routes.py
"""
HTTP маршруты поездок, предложений цены и оценок.
"""

from typing import Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel

from ridehail.core.identity import Identity
from ridehail.core.offers import Offer, OfferAcceptDTO, OfferBook, OfferCreateDTO
from ridehail.core.ratings import RatingAggregator
from ridehail.core.trips import AvailableTrip, DispatchEngine, AcceptanceArbiter, Trip, TripCreateDTO, TripService
from ridehail.core.trips.models import TripRatingDTO, TripStatusUpdateDTO
from ridehail.services.common.dependencies import (
    get_arbiter,
    get_dispatch_engine,
    get_offer_book,
    get_rating_aggregator,
    get_trip_service,
)
from ridehail.services.common.identity import get_identity

router = APIRouter(prefix="/trips", tags=["Trips"])


class CreateTripResponse(BaseModel):
    trip: Trip
    drivers_notified: int


class TripBoardResponse(BaseModel):
    trips: list[AvailableTrip]
    message: Optional[str] = None


class CurrentTripResponse(BaseModel):
    trip: Optional[Trip] = None


@router.post("", response_model=CreateTripResponse, status_code=status.HTTP_201_CREATED)
async def create_trip(
    request: TripCreateDTO,
    identity: Identity = Depends(get_identity),
    engine: DispatchEngine = Depends(get_dispatch_engine),
):
    result = await engine.create_trip(identity, request)
    return CreateTripResponse(trip=result.trip, drivers_notified=result.drivers_notified)


@router.get("/active", response_model=TripBoardResponse)
async def list_active_trips(
    identity: Identity = Depends(get_identity),
    engine: DispatchEngine = Depends(get_dispatch_engine),
):
    board = await engine.list_board(identity)
    return TripBoardResponse(trips=board.trips, message=board.message)


@router.get("/current", response_model=CurrentTripResponse)
async def get_current_trip(
    identity: Identity = Depends(get_identity),
    service: TripService = Depends(get_trip_service),
):
    return CurrentTripResponse(trip=await service.current_for_passenger(identity))


@router.get("/current-driver", response_model=CurrentTripResponse)
async def get_current_driver_trip(
    identity: Identity = Depends(get_identity),
    service: TripService = Depends(get_trip_service),
):
    return CurrentTripResponse(trip=await service.current_for_driver(identity))


@router.get("/history", response_model=list[Trip])
async def get_trip_history(
    identity: Identity = Depends(get_identity),
    service: TripService = Depends(get_trip_service),
):
    return await service.history(identity)


@router.get("/{trip_id}", response_model=Trip)
async def get_trip(
    trip_id: str,
    identity: Identity = Depends(get_identity),
    service: TripService = Depends(get_trip_service),
):
    return await service.get_trip(trip_id, identity)


@router.put("/{trip_id}/accept", response_model=Trip)
async def accept_trip(
    trip_id: str,
    identity: Identity = Depends(get_identity),
    arbiter: AcceptanceArbiter = Depends(get_arbiter),
):
    return await arbiter.accept(trip_id, identity)


@router.put("/{trip_id}/status", response_model=Trip)
async def update_trip_status(
    trip_id: str,
    request: TripStatusUpdateDTO,
    identity: Identity = Depends(get_identity),
    service: TripService = Depends(get_trip_service),
):
    return await service.update_status(trip_id, identity, request.status)


@router.put("/{trip_id}/rate", response_model=Trip)
async def rate_trip(
    trip_id: str,
    request: TripRatingDTO,
    identity: Identity = Depends(get_identity),
    aggregator: RatingAggregator = Depends(get_rating_aggregator),
):
    return await aggregator.rate(trip_id, identity, request.rating, request.comment)


# =============================================================================
# ПРЕДЛОЖЕНИЯ ЦЕНЫ
# =============================================================================

@router.put("/{trip_id}/offer-price", response_model=Offer)
async def offer_price(
    trip_id: str,
    request: OfferCreateDTO,
    identity: Identity = Depends(get_identity),
    book: OfferBook = Depends(get_offer_book),
):
    return await book.propose(trip_id, identity, request.offered_price)


@router.get("/{trip_id}/offers", response_model=list[Offer])
async def list_offers(
    trip_id: str,
    identity: Identity = Depends(get_identity),
    book: OfferBook = Depends(get_offer_book),
):
    return await book.list_offers(trip_id, identity)


@router.put("/{trip_id}/accept-offer", response_model=Trip)
async def accept_offer(
    trip_id: str,
    request: OfferAcceptDTO,
    identity: Identity = Depends(get_identity),
    book: OfferBook = Depends(get_offer_book),
):
    return await book.accept_offer(trip_id, identity, request.driver_id)
