# tests/services/test_combined_app.py
"""
HTTP тесты общего приложения: три роутера под одним lifespan.
"""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from ridehail.common.exceptions import NotFoundError
from ridehail.core.wallet import Wallet, WalletView
from ridehail.services.combined.app import app
from ridehail.services.common.dependencies import get_driver_service, get_trip_service, get_wallet_ledger


PASSENGER = {"X-User-Id": "passenger-1", "X-User-Role": "passenger"}
DRIVER = {"X-User-Id": "driver-1", "X-User-Role": "driver"}


@pytest.fixture
def trip_service() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def driver_service() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def ledger() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def client(trip_service, driver_service, ledger) -> TestClient:
    app.dependency_overrides[get_trip_service] = lambda: trip_service
    app.dependency_overrides[get_driver_service] = lambda: driver_service
    app.dependency_overrides[get_wallet_ledger] = lambda: ledger
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestCombinedApp:
    def test_health(self, client: TestClient) -> None:
        assert client.get("/health").json() == {"status": "ok", "service": "combined"}

    def test_trip_routes_mounted(self, client: TestClient, trip_service) -> None:
        trip_service.get_trip.side_effect = NotFoundError("Trip not found")

        response = client.get("/api/v1/trips/trip-404", headers=PASSENGER)

        assert response.status_code == 404
        assert response.json() == {"error": "Trip not found"}

    def test_driver_routes_mounted(self, client: TestClient, driver_service) -> None:
        driver_service.nearby.return_value = []

        response = client.get("/api/v1/drivers/nearby", params={"lat": 4.71, "lng": -74.07}, headers=PASSENGER)

        assert response.status_code == 200
        assert response.json() == []
        driver_service.nearby.assert_awaited_once_with(4.71, -74.07)

    def test_payments_routes_mounted(self, client: TestClient, ledger) -> None:
        ledger.get_wallet.return_value = WalletView(
            wallet=Wallet(id="wallet-1", driver_id="driver-1", balance=8500), recent_transactions=[],
        )

        response = client.get("/api/v1/payments/wallet", headers=DRIVER)

        assert response.status_code == 200
        assert response.json()["wallet"]["balance"] == 8500

    def test_missing_identity_uses_error_body(self, client: TestClient) -> None:
        response = client.get("/api/v1/drivers/nearby", params={"lat": 4.71, "lng": -74.07})

        assert response.status_code == 401
        assert response.json() == {"error": "Missing identity"}
