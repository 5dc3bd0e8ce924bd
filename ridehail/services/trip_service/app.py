# ridehail/services/trip_service/app.py
"""
FastAPI приложение Trip Service.

Endpoints:
- POST /api/v1/trips - создать поездку и разослать водителям
- GET /api/v1/trips/active - доска поездок для водителя
- GET /api/v1/trips/current, /current-driver, /history, /{id}
- PUT /api/v1/trips/{id}/accept, /status, /rate
- PUT /api/v1/trips/{id}/offer-price, GET /{id}/offers, PUT /{id}/accept-offer
"""

from fastapi import FastAPI

from ridehail.config import settings
from ridehail.services.common import register_exception_handlers, service_lifespan
from ridehail.services.trip_service.routes import router

app = FastAPI(
    title="Trip Service",
    version=settings.system.VERSION,
    lifespan=service_lifespan("Trip Service"),
)

register_exception_handlers(app)
app.include_router(router, prefix="/api/v1")


@app.get("/health")
async def health_check():
    return {"status": "ok", "service": "trip_service"}
