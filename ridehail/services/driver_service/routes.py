# ridehail/services/driver_service/routes.py
"""
HTTP маршруты водителей.
"""

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from ridehail.core.drivers import DriverEarnings, DriverService
from ridehail.core.geo import NearbyDriver
from ridehail.core.identity import Identity
from ridehail.services.common.dependencies import get_driver_service
from ridehail.services.common.identity import get_identity

router = APIRouter(prefix="/drivers", tags=["Drivers"])


class UpdateLocationRequest(BaseModel):
    latitude: float
    longitude: float


class UpdateAvailabilityRequest(BaseModel):
    is_available: bool = Field(..., description="Выйти на линию или уйти с неё")


@router.put("/location")
async def update_location(
    request: UpdateLocationRequest,
    identity: Identity = Depends(get_identity),
    service: DriverService = Depends(get_driver_service),
):
    await service.update_location(identity, request.latitude, request.longitude)
    return {"message": "Location updated"}


@router.put("/availability")
async def update_availability(
    request: UpdateAvailabilityRequest,
    identity: Identity = Depends(get_identity),
    service: DriverService = Depends(get_driver_service),
):
    await service.set_availability(identity, request.is_available)
    return {"is_available": request.is_available}


@router.get("/nearby", response_model=list[NearbyDriver])
async def get_nearby_drivers(
    lat: float = Query(..., ge=-90.0, le=90.0),
    lng: float = Query(..., ge=-180.0, le=180.0),
    identity: Identity = Depends(get_identity),
    service: DriverService = Depends(get_driver_service),
):
    return await service.nearby(lat, lng)


@router.get("/earnings", response_model=DriverEarnings)
async def get_earnings(
    identity: Identity = Depends(get_identity),
    service: DriverService = Depends(get_driver_service),
):
    return await service.earnings(identity)
