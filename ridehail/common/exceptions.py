# ridehail/common/exceptions.py
"""
Иерархия доменных ошибок.
Каждая ошибка знает свой HTTP-статус; транспортный слой только переводит её в ответ.
"""

from __future__ import annotations


class RideHailError(Exception):
    """Базовая ошибка предметной области."""

    status_code: int = 500

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> dict[str, str]:
        """Тело ответа для клиента."""
        return {"error": self.message}


class ValidationError(RideHailError):
    """Некорректные или отсутствующие входные данные."""

    status_code = 400


class AuthenticationError(RideHailError):
    """Вызывающий не идентифицирован шлюзом."""

    status_code = 401


class AuthorizationError(RideHailError):
    """Неверная роль или пользователь не участвует в поездке."""

    status_code = 403


class NotFoundError(RideHailError):
    """Неизвестный ID или поездка уже занята другим водителем."""

    status_code = 404


class ConflictError(RideHailError):
    """Повторная оценка, повторная оплата, устаревшее состояние."""

    status_code = 400


class UpstreamError(RideHailError):
    """Сбой внешнего провайдера (платежи, push)."""

    status_code = 502
