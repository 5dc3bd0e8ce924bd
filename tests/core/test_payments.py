# tests/core/test_payments.py
"""
Тесты оплаты: клиент Wompi и PaymentService.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any
from unittest.mock import AsyncMock

import asyncpg
import httpx
import pytest

from ridehail.common.constants import PaymentMethod, PaymentStatus, TripStatus, UserRole
from ridehail.common.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    UpstreamError,
    ValidationError,
)
from ridehail.core.identity import Identity
from ridehail.core.payments import (
    PaymentIntent,
    PaymentRequestDTO,
    PaymentService,
    PaymentTransaction,
    ProviderResult,
    WompiClient,
)
from ridehail.core.payments.service import ALREADY_PAID_MESSAGE


SECRET = "test_events_secret"


def _client(handler, events_secret: str = "") -> WompiClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return WompiClient(
        public_key="pub_test_123",
        events_secret=events_secret,
        api_url="https://sandbox.wompi.test/v1/",
        timeout=5.0,
        client=http,
    )


def _intent(method: PaymentMethod = PaymentMethod.CARD) -> PaymentIntent:
    return PaymentIntent(
        amount=15000,
        currency="COP",
        reference="ref-1",
        customer_email="pasajero@example.com",
        payment_method=method,
        redirect_url="https://ridehail.test/callback",
    )


def _signed_event(status: str = "APPROVED", secret: str = SECRET) -> dict[str, Any]:
    body: dict[str, Any] = {
        "event": "transaction.updated",
        "data": {"transaction": {"id": "wompi-1", "status": status, "amount_in_cents": 1500000, "reference": "ref-1"}},
        "timestamp": 1700000000,
    }
    properties = ["transaction.id", "transaction.status", "transaction.amount_in_cents"]
    raw = f"wompi-1{status}1500000" + "1700000000" + secret
    body["signature"] = {
        "properties": properties,
        "checksum": hashlib.sha256(raw.encode("utf-8")).hexdigest(),
    }
    return body


class TestWompiClient:
    """Тесты клиента провайдера."""

    @pytest.mark.asyncio
    async def test_create_payment_pending(self) -> None:
        seen: dict[str, Any] = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["auth"] = request.headers.get("Authorization")
            seen["body"] = json.loads(request.content)
            return httpx.Response(201, json={"data": {
                "id": "wompi-1", "status": "PENDING", "payment_link_url": "https://pay.test/wompi-1",
            }})

        client = _client(handler)
        result = await client.create_payment(_intent())
        await client.close()

        assert result == ProviderResult(
            success=True,
            status=PaymentStatus.PENDING,
            transaction_id="wompi-1",
            payment_url="https://pay.test/wompi-1",
            message="Payment created successfully",
        )
        assert seen["url"] == "https://sandbox.wompi.test/v1/transactions"
        assert seen["auth"] == "Bearer pub_test_123"
        assert seen["body"]["amount_in_cents"] == 1500000
        assert seen["body"]["reference"] == "ref-1"
        assert seen["body"]["payment_method"] == {"type": "CARD", "installments": 1}

    @pytest.mark.asyncio
    async def test_create_payment_approved(self) -> None:
        client = _client(lambda r: httpx.Response(201, json={"data": {"id": "w", "status": "APPROVED"}}))

        result = await client.create_payment(_intent(PaymentMethod.NEQUI))

        assert result.success is True
        assert result.status == PaymentStatus.APPROVED

    @pytest.mark.asyncio
    async def test_api_error_messages(self) -> None:
        client = _client(lambda r: httpx.Response(422, json={"error": {
            "type": "INPUT_VALIDATION_ERROR",
            "messages": {"customer_email": ["invalid"]},
        }}))

        result = await client.create_payment(_intent())

        assert result.success is False
        assert result.status == PaymentStatus.ERROR
        assert result.message.startswith("customer_email")

    @pytest.mark.asyncio
    async def test_network_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectTimeout("timeout", request=request)

        result = await _client(handler).create_payment(_intent(PaymentMethod.PSE))

        assert result.success is False
        assert result.message == "Failed to connect to payment processor"

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("APPROVED", PaymentStatus.APPROVED),
            ("declined", PaymentStatus.DECLINED),
            ("VOIDED", PaymentStatus.DECLINED),
            ("PENDING", PaymentStatus.PENDING),
            ("ERROR", PaymentStatus.ERROR),
            (None, PaymentStatus.ERROR),
        ],
    )
    def test_map_status(self, raw, expected: PaymentStatus) -> None:
        assert WompiClient.map_status(raw) == expected


class TestVerifyEvent:
    """Проверка подписи событий вебхука."""

    def test_valid_signature(self) -> None:
        client = _client(lambda r: httpx.Response(200), events_secret=SECRET)
        assert client.verify_event(_signed_event()) is True

    def test_tampered_body(self) -> None:
        client = _client(lambda r: httpx.Response(200), events_secret=SECRET)
        body = _signed_event()
        body["data"]["transaction"]["status"] = "DECLINED"

        assert client.verify_event(body) is False

    def test_wrong_secret(self) -> None:
        client = _client(lambda r: httpx.Response(200), events_secret=SECRET)
        assert client.verify_event(_signed_event(secret="other")) is False

    def test_missing_signature(self) -> None:
        client = _client(lambda r: httpx.Response(200), events_secret=SECRET)
        assert client.verify_event({"event": "transaction.updated", "data": {}}) is False

    def test_no_secret_accepts_everything(self) -> None:
        client = _client(lambda r: httpx.Response(200))
        assert client.verify_event({"event": "transaction.updated"}) is True


# =============================================================================
# PaymentService
# =============================================================================

@pytest.fixture
def mock_payment_repo() -> AsyncMock:
    repo = AsyncMock()
    repo.find_approved = AsyncMock(return_value=None)
    repo.insert = AsyncMock(side_effect=lambda tx: tx)
    repo.update_from_provider = AsyncMock(return_value=None)
    repo.get_user_email = AsyncMock(return_value="pasajero@example.com")
    return repo


@pytest.fixture
def mock_provider() -> AsyncMock:
    provider = AsyncMock()
    provider.create_payment = AsyncMock(return_value=ProviderResult(
        success=True,
        status=PaymentStatus.PENDING,
        transaction_id="wompi-1",
        payment_url="https://pay.test/wompi-1",
        message="Payment created successfully",
    ))
    provider.verify_event = lambda body: True
    provider.map_status = WompiClient.map_status
    return provider


@pytest.fixture
def mock_ledger() -> AsyncMock:
    ledger = AsyncMock()
    ledger.settle_trip_payment = AsyncMock(return_value=None)
    return ledger


@pytest.fixture
def payments(store, mock_payment_repo, mock_provider, mock_ledger, mock_event_bus) -> PaymentService:
    return PaymentService(
        store=store,
        repository=mock_payment_repo,
        provider=mock_provider,
        ledger=mock_ledger,
        event_bus=mock_event_bus,
        currency="COP",
        redirect_url="https://ridehail.test/callback",
    )


class TestProcessPayment:
    """Оплата поездки."""

    @pytest.mark.asyncio
    async def test_cash_settles_immediately(
        self, payments, store, mock_ledger, mock_provider, mock_event_bus, passenger, make_trip
    ) -> None:
        trip = await store.create(make_trip(status=TripStatus.COMPLETED, driver_id="driver-1"))

        outcome = await payments.process(passenger, PaymentRequestDTO(trip_id=trip.id, payment_method="cash"))

        assert outcome.transaction.status == PaymentStatus.APPROVED
        assert outcome.transaction.amount == 15000
        assert outcome.transaction.approved_at is not None
        assert outcome.message == "Cash payment recorded"
        mock_ledger.settle_trip_payment.assert_awaited_once_with(trip.id, "driver-1", 15000)
        mock_provider.create_payment.assert_not_called()
        assert mock_event_bus.publish.call_args[0][0].status == "approved"

    @pytest.mark.asyncio
    async def test_electronic_pending_waits_for_webhook(
        self, payments, store, mock_ledger, mock_provider, passenger, make_trip
    ) -> None:
        trip = await store.create(make_trip(status=TripStatus.COMPLETED, driver_id="driver-1"))

        outcome = await payments.process(passenger, PaymentRequestDTO(trip_id=trip.id, payment_method="nequi"))

        assert outcome.transaction.status == PaymentStatus.PENDING
        assert outcome.transaction.provider == "wompi"
        assert outcome.transaction.provider_transaction_id == "wompi-1"
        assert outcome.payment_url == "https://pay.test/wompi-1"
        mock_ledger.settle_trip_payment.assert_not_called()

        intent = mock_provider.create_payment.call_args[0][0]
        assert intent.reference == outcome.transaction.id
        assert intent.customer_email == "pasajero@example.com"
        assert intent.payment_method == PaymentMethod.NEQUI

    @pytest.mark.asyncio
    async def test_electronic_approved_settles(
        self, payments, store, mock_ledger, mock_provider, passenger, make_trip
    ) -> None:
        mock_provider.create_payment.return_value = ProviderResult(
            success=True, status=PaymentStatus.APPROVED, transaction_id="wompi-2",
        )
        trip = await store.create(make_trip(status=TripStatus.COMPLETED, driver_id="driver-1"))

        outcome = await payments.process(passenger, PaymentRequestDTO(trip_id=trip.id, payment_method="card"))

        assert outcome.transaction.approved_at is not None
        mock_ledger.settle_trip_payment.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_provider_failure_records_error(
        self, payments, store, mock_payment_repo, mock_provider, passenger, make_trip
    ) -> None:
        mock_provider.create_payment.return_value = ProviderResult(
            success=False, status=PaymentStatus.ERROR, message="Failed to connect to payment processor",
        )
        trip = await store.create(make_trip(status=TripStatus.COMPLETED, driver_id="driver-1"))

        with pytest.raises(UpstreamError) as exc_info:
            await payments.process(passenger, PaymentRequestDTO(trip_id=trip.id, payment_method="pse"))

        assert exc_info.value.message == "Failed to connect to payment processor"
        recorded: PaymentTransaction = mock_payment_repo.insert.call_args[0][0]
        assert recorded.status == PaymentStatus.ERROR

    @pytest.mark.asyncio
    async def test_already_paid(self, payments, store, mock_payment_repo, passenger, make_trip) -> None:
        trip = await store.create(make_trip(status=TripStatus.COMPLETED, driver_id="driver-1"))
        mock_payment_repo.find_approved.return_value = PaymentTransaction(
            trip_id=trip.id, user_id="passenger-1", amount=15000,
            status=PaymentStatus.APPROVED, payment_type=PaymentMethod.CASH,
        )

        with pytest.raises(ConflictError) as exc_info:
            await payments.process(passenger, PaymentRequestDTO(trip_id=trip.id, payment_method="cash"))
        assert exc_info.value.message == ALREADY_PAID_MESSAGE

    @pytest.mark.asyncio
    async def test_concurrent_payment_unique_violation(
        self, payments, store, mock_payment_repo, mock_ledger, passenger, make_trip
    ) -> None:
        mock_payment_repo.insert.side_effect = asyncpg.UniqueViolationError("duplicate")
        trip = await store.create(make_trip(status=TripStatus.COMPLETED, driver_id="driver-1"))

        with pytest.raises(ConflictError):
            await payments.process(passenger, PaymentRequestDTO(trip_id=trip.id, payment_method="cash"))
        mock_ledger.settle_trip_payment.assert_not_called()

    @pytest.mark.asyncio
    async def test_trip_not_completed(self, payments, store, passenger, make_trip) -> None:
        trip = await store.create(make_trip(status=TripStatus.IN_PROGRESS, driver_id="driver-1"))

        with pytest.raises(ValidationError):
            await payments.process(passenger, PaymentRequestDTO(trip_id=trip.id, payment_method="cash"))

    @pytest.mark.asyncio
    async def test_foreign_trip(self, payments, store, make_trip) -> None:
        trip = await store.create(make_trip(status=TripStatus.COMPLETED, driver_id="driver-1"))
        stranger = Identity(user_id="passenger-2", role=UserRole.PASSENGER)

        with pytest.raises(NotFoundError):
            await payments.process(stranger, PaymentRequestDTO(trip_id=trip.id, payment_method="cash"))

    @pytest.mark.asyncio
    async def test_driver_cannot_pay(self, payments, driver) -> None:
        with pytest.raises(AuthorizationError):
            await payments.process(driver, PaymentRequestDTO(trip_id="trip-1", payment_method="cash"))


class TestWebhook:
    """Обработка событий провайдера."""

    @pytest.mark.asyncio
    async def test_approved_event_settles(
        self, payments, store, mock_payment_repo, mock_ledger, make_trip
    ) -> None:
        trip = await store.create(make_trip(status=TripStatus.COMPLETED, driver_id="driver-1"))
        mock_payment_repo.update_from_provider.return_value = PaymentTransaction(
            id="ref-1", trip_id=trip.id, user_id="passenger-1", amount=15000,
            status=PaymentStatus.APPROVED, payment_type=PaymentMethod.CARD,
        )

        tx = await payments.handle_webhook(_signed_event())

        assert tx.id == "ref-1"
        provider_id, reference, status, approved_at = mock_payment_repo.update_from_provider.call_args[0]
        assert (provider_id, reference, status) == ("wompi-1", "ref-1", PaymentStatus.APPROVED)
        assert approved_at is not None
        mock_ledger.settle_trip_payment.assert_awaited_once_with(trip.id, "driver-1", 15000)

    @pytest.mark.asyncio
    async def test_declined_event_does_not_settle(self, payments, mock_payment_repo, mock_ledger) -> None:
        mock_payment_repo.update_from_provider.return_value = PaymentTransaction(
            trip_id="trip-1", user_id="passenger-1", amount=15000,
            status=PaymentStatus.DECLINED, payment_type=PaymentMethod.CARD,
        )

        await payments.handle_webhook(_signed_event(status="DECLINED"))

        assert mock_payment_repo.update_from_provider.call_args[0][3] is None
        mock_ledger.settle_trip_payment.assert_not_called()

    @pytest.mark.asyncio
    async def test_unknown_or_already_approved(self, payments, mock_ledger) -> None:
        assert await payments.handle_webhook(_signed_event()) is None
        mock_ledger.settle_trip_payment.assert_not_called()

    @pytest.mark.asyncio
    async def test_double_approval_is_ignored(self, payments, mock_payment_repo, mock_ledger) -> None:
        mock_payment_repo.update_from_provider.side_effect = asyncpg.UniqueViolationError("duplicate")

        assert await payments.handle_webhook(_signed_event()) is None
        mock_ledger.settle_trip_payment.assert_not_called()

    @pytest.mark.asyncio
    async def test_other_events_ignored(self, payments, mock_payment_repo) -> None:
        assert await payments.handle_webhook({"event": "nequi_token.updated", "data": {}}) is None
        mock_payment_repo.update_from_provider.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_transaction_id(self, payments) -> None:
        with pytest.raises(ValidationError):
            await payments.handle_webhook({"event": "transaction.updated", "data": {"transaction": {}}})

    @pytest.mark.asyncio
    async def test_bad_signature(self, payments, mock_provider) -> None:
        mock_provider.verify_event = lambda body: False

        with pytest.raises(AuthorizationError):
            await payments.handle_webhook(_signed_event())
