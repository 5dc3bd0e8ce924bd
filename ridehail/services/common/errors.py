# ridehail/services/common/errors.py
"""
Перевод доменных ошибок в HTTP ответы.
"""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from ridehail.common.exceptions import RideHailError
from ridehail.common.logger import log_debug, log_error


def register_exception_handlers(app: FastAPI) -> None:
    """Регистрирует обработчики: RideHailError -> {"error": message} со статусом ошибки."""

    @app.exception_handler(RideHailError)
    async def handle_domain_error(request: Request, exc: RideHailError) -> JSONResponse:
        if exc.status_code >= 500:
            await log_error(f"{request.method} {request.url.path}: {exc.message}")
        else:
            await log_debug(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())
