# ridehail/services/driver_service/app.py
"""
FastAPI приложение Driver Service.

Endpoints:
- PUT /api/v1/drivers/location - обновить координаты
- PUT /api/v1/drivers/availability - выйти на линию / уйти с линии
- GET /api/v1/drivers/nearby?lat&lng - доступные водители поблизости
- GET /api/v1/drivers/earnings - заработок водителя
"""

from fastapi import FastAPI

from ridehail.config import settings
from ridehail.services.common import register_exception_handlers, service_lifespan
from ridehail.services.driver_service.routes import router

app = FastAPI(
    title="Driver Service",
    version=settings.system.VERSION,
    lifespan=service_lifespan("Driver Service"),
)

register_exception_handlers(app)
app.include_router(router, prefix="/api/v1")


@app.get("/health")
async def health_check():
    return {"status": "ok", "service": "driver_service"}
