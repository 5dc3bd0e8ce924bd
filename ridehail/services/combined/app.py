# ridehail/services/combined/app.py
"""
Все HTTP сервисы в одном FastAPI приложении (разработка и простые деплойменты).

Один lifespan подключает и закрывает общую инфраструктуру процесса,
поэтому пул PostgreSQL, Redis и RabbitMQ создаются ровно один раз.
"""

from fastapi import FastAPI

from ridehail.config import settings
from ridehail.services.common import register_exception_handlers, service_lifespan
from ridehail.services.driver_service.routes import router as driver_router
from ridehail.services.payments.app import check_payment_provider
from ridehail.services.payments.routes import router as payments_router
from ridehail.services.trip_service.routes import router as trip_router

app = FastAPI(
    title="Ride-hailing Services",
    version=settings.system.VERSION,
    lifespan=service_lifespan("Trip + Driver + Payments", on_startup=check_payment_provider),
)

register_exception_handlers(app)
for router in (trip_router, driver_router, payments_router):
    app.include_router(router, prefix="/api/v1")


@app.get("/health")
async def health_check():
    return {"status": "ok", "service": "combined"}
