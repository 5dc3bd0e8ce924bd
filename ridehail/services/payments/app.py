# ridehail/services/payments/app.py
"""
FastAPI приложение Payments Service.

Endpoints:
- POST /api/v1/payments/process - оплатить поездку (наличные или Wompi)
- POST /api/v1/payments/webhook - события провайдера
- GET /api/v1/payments/wallet - кошелёк водителя
- POST /api/v1/payments/wallet/withdraw - заявка на вывод
"""

from fastapi import FastAPI

from ridehail.config import settings
from ridehail.services.common import register_exception_handlers, service_lifespan
from ridehail.services.common.dependencies import get_payment_provider
from ridehail.services.payments.routes import router


async def check_payment_provider() -> None:
    """Предупреждает, если вебхуки провайдера не подписываются."""
    await get_payment_provider().warn_if_unsigned()


app = FastAPI(
    title="Payments Service",
    description="Оплата поездок, кошельки водителей и выводы",
    version=settings.system.VERSION,
    lifespan=service_lifespan("Payments Service", on_startup=check_payment_provider),
)

register_exception_handlers(app)
app.include_router(router, prefix="/api/v1")


@app.get("/health")
async def health_check():
    return {"status": "ok", "service": "payments_service"}
