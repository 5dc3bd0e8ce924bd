# ridehail/core/payments/provider.py
"""
Клиент платёжного провайдера Wompi (PSE, Nequi, карты).
"""

from __future__ import annotations

import hashlib
import hmac
from typing import Any, Optional

import httpx

from ridehail.common.constants import PaymentMethod, PaymentStatus, TypeMsg
from ridehail.common.logger import log_error, log_info, log_warning
from ridehail.core.payments.models import PaymentIntent, ProviderResult


_STATUS_MAP: dict[str, PaymentStatus] = {
    "APPROVED": PaymentStatus.APPROVED,
    "DECLINED": PaymentStatus.DECLINED,
    "VOIDED": PaymentStatus.DECLINED,
    "PENDING": PaymentStatus.PENDING,
}


class WompiClient:
    """
    Клиент Wompi REST API.

    Реализует:
    - Создание транзакции (amount_in_cents = amount * 100)
    - Проверку статуса транзакции
    - Проверку подписи событий вебхука
    """

    def __init__(
        self,
        public_key: str | None = None,
        events_secret: str | None = None,
        api_url: str | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Args:
            public_key: Публичный ключ (из конфига если None)
            events_secret: Секрет подписи событий; пустой отключает проверку
            api_url: Базовый URL API (sandbox или production)
            timeout: Таймаут запросов в секундах
            client: Готовый HTTP клиент (для тестов)
        """
        if public_key is None or api_url is None:
            from ridehail.config import settings
            provider = settings.payment_provider
            public_key = public_key if public_key is not None else provider.WOMPI_PUBLIC_KEY
            events_secret = events_secret if events_secret is not None else provider.WOMPI_EVENTS_SECRET
            api_url = api_url or provider.api_url
            timeout = timeout if timeout is not None else provider.WOMPI_TIMEOUT

        self._public_key = public_key
        self._events_secret = events_secret or ""
        self._api_url = api_url.rstrip("/")
        self._client = client or httpx.AsyncClient(timeout=timeout or 15.0)

    async def close(self) -> None:
        """Закрывает HTTP клиент."""
        await self._client.aclose()

    @staticmethod
    def map_status(wompi_status: Optional[str]) -> PaymentStatus:
        """Статус Wompi -> наш статус; всё неизвестное считается ошибкой."""
        return _STATUS_MAP.get((wompi_status or "").upper(), PaymentStatus.ERROR)

    @staticmethod
    def _payment_method_payload(method: PaymentMethod, reference: str) -> dict[str, Any]:
        if method == PaymentMethod.PSE:
            return {
                "type": "PSE",
                "user_type": "0",
                "user_legal_id_type": "CC",
                "user_legal_id": "",
                "financial_institution_code": "",
                "payment_description": f"Pago viaje {reference}",
            }
        if method == PaymentMethod.NEQUI:
            return {"type": "NEQUI", "phone_number": ""}
        return {"type": "CARD", "installments": 1}

    async def create_payment(self, intent: PaymentIntent) -> ProviderResult:
        """
        Создаёт транзакцию у провайдера.

        Returns:
            Результат; при сетевой ошибке или отказе API success=False и status=error
        """
        payload = {
            "amount_in_cents": intent.amount * 100,
            "currency": intent.currency,
            "reference": intent.reference,
            "customer_email": intent.customer_email,
            "redirect_url": intent.redirect_url,
            "payment_method": self._payment_method_payload(intent.payment_method, intent.reference),
        }

        try:
            response = await self._client.post(
                f"{self._api_url}/transactions",
                json=payload,
                headers={"Authorization": f"Bearer {self._public_key}"},
            )
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            await log_error(f"Ошибка соединения с Wompi: {e}")
            return ProviderResult(
                success=False,
                status=PaymentStatus.ERROR,
                message="Failed to connect to payment processor",
            )

        transaction = data.get("data") if isinstance(data, dict) else None
        if response.is_success and transaction:
            status = self.map_status(transaction.get("status"))
            await log_info(
                f"Wompi транзакция {transaction.get('id')} создана: {status}",
                type_msg=TypeMsg.INFO,
            )
            return ProviderResult(
                success=True,
                status=PaymentStatus.APPROVED if status == PaymentStatus.APPROVED else PaymentStatus.PENDING,
                transaction_id=transaction.get("id"),
                payment_url=transaction.get("payment_link_url") or transaction.get("payment_method_url"),
                message="Payment created successfully",
            )

        error = (data.get("error") or {}) if isinstance(data, dict) else {}
        messages = error.get("messages")
        if isinstance(messages, dict):
            message = ", ".join(f"{k}: {v}" for k, v in messages.items())
        elif isinstance(messages, list):
            message = ", ".join(str(m) for m in messages)
        else:
            message = error.get("type") or "Payment creation failed"

        await log_error(f"Wompi отклонил транзакцию ({response.status_code}): {message}")
        return ProviderResult(success=False, status=PaymentStatus.ERROR, message=message)

    def verify_event(self, body: dict[str, Any]) -> bool:
        """
        Проверяет подпись события вебхука.

        checksum = SHA256(значения signature.properties из data + timestamp + секрет).
        Без настроенного секрета проверка пропускается.
        """
        if not self._events_secret:
            return True

        signature = body.get("signature") or {}
        checksum = signature.get("checksum")
        properties = signature.get("properties") or []
        if not checksum or not isinstance(properties, list):
            return False

        parts: list[str] = []
        for path in properties:
            value: Any = body.get("data") or {}
            for key in str(path).split("."):
                value = value.get(key) if isinstance(value, dict) else None
            parts.append("" if value is None else str(value))

        raw = "".join(parts) + str(body.get("timestamp", "")) + self._events_secret
        expected = hashlib.sha256(raw.encode("utf-8")).hexdigest()
        return hmac.compare_digest(expected.lower(), str(checksum).lower())

    async def warn_if_unsigned(self) -> None:
        if not self._events_secret:
            await log_warning("WOMPI_EVENTS_SECRET не задан: подпись вебхуков не проверяется")
