# ridehail/core/notifications/sink.py
"""
Каналы доставки push-уведомлений.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

import httpx

from ridehail.common.constants import TypeMsg
from ridehail.common.logger import log_error, log_info
from ridehail.core.notifications.models import PushMessage


@runtime_checkable
class NotificationSink(Protocol):
    """Канал доставки: True если провайдер принял сообщение."""

    async def send(self, message: PushMessage) -> bool:
        ...


class ExpoPushSink:
    """
    Доставка через Expo Push API.

    Ошибки сети и ответы с полем `errors` считаются недоставкой,
    исключения наружу не выходят.
    """

    def __init__(
        self,
        url: str | None = None,
        timeout: float | None = None,
        enabled: bool | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Args:
            url: Адрес Expo Push API (из конфига если None)
            timeout: Таймаут запроса в секундах
            enabled: Выключенный канал ничего не отправляет
            client: Готовый HTTP клиент (для тестов)
        """
        if url is None or timeout is None or enabled is None:
            from ridehail.config import settings
            url = url or settings.push.EXPO_PUSH_URL
            timeout = timeout if timeout is not None else settings.push.PUSH_TIMEOUT
            enabled = enabled if enabled is not None else settings.push.PUSH_ENABLED

        self._url = url
        self._enabled = enabled
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def close(self) -> None:
        """Закрывает HTTP клиент."""
        await self._client.aclose()

    async def send(self, message: PushMessage) -> bool:
        if not self._enabled:
            await log_info(f"Push отключён, пропуск: {message.title}", type_msg=TypeMsg.DEBUG)
            return False

        try:
            response = await self._client.post(
                self._url,
                json=message.to_payload(),
                headers={"Accept": "application/json"},
            )
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            await log_error(f"Ошибка отправки push: {e}")
            return False

        if response.status_code >= 400 or data.get("errors"):
            await log_error(
                f"Expo отклонил push: status={response.status_code}, errors={data.get('errors')}"
            )
            return False

        ticket = data.get("data")
        if isinstance(ticket, dict) and ticket.get("status") == "error":
            await log_error(f"Expo вернул ошибку тикета: {ticket.get('message')}")
            return False

        return True
