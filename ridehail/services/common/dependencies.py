# ridehail/services/common/dependencies.py
"""
Dependency Injection для HTTP сервисов.

Инфраструктура передаётся в init_dependencies() при старте приложения,
сервисы ядра создаются лениво и живут до cleanup_dependencies().
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from ridehail.core.drivers import DriverRepository, DriverService
    from ridehail.core.notifications import ExpoPushSink, NotificationFanout
    from ridehail.core.offers import OfferBook
    from ridehail.core.payments import PaymentService, WompiClient
    from ridehail.core.ratings import RatingAggregator
    from ridehail.core.trips import AcceptanceArbiter, DispatchEngine, TripService, TripStore
    from ridehail.core.wallet import WalletLedger
    from ridehail.infra.database import DatabaseManager
    from ridehail.infra.event_bus import EventBus
    from ridehail.infra.redis_client import RedisClient


# Синглтоны для инфраструктуры
_db: Optional[DatabaseManager] = None
_redis: Optional[RedisClient] = None
_event_bus: Optional[EventBus] = None

# Синглтоны ядра
_store: Optional[TripStore] = None
_driver_repository: Optional[DriverRepository] = None
_push_sink: Optional[ExpoPushSink] = None
_fanout: Optional[NotificationFanout] = None
_dispatch: Optional[DispatchEngine] = None
_arbiter: Optional[AcceptanceArbiter] = None
_trip_service: Optional[TripService] = None
_offer_book: Optional[OfferBook] = None
_rating_aggregator: Optional[RatingAggregator] = None
_driver_service: Optional[DriverService] = None
_wallet_ledger: Optional[WalletLedger] = None
_payment_provider: Optional[WompiClient] = None
_payment_service: Optional[PaymentService] = None


async def init_dependencies(
    db: DatabaseManager,
    redis: Optional[RedisClient],
    event_bus: Optional[EventBus],
) -> None:
    """Инициализировать зависимости при старте приложения."""
    global _db, _redis, _event_bus
    _db = db
    _redis = redis
    _event_bus = event_bus


def get_database() -> DatabaseManager:
    """Получить менеджер базы данных."""
    if _db is None:
        raise RuntimeError("База данных не инициализирована. Вызовите init_dependencies()")
    return _db


def _connected_redis() -> Optional[RedisClient]:
    if _redis is not None and _redis.is_connected:
        return _redis
    return None


# =============================================================================
# ПОЕЗДКИ
# =============================================================================

def get_trip_store() -> TripStore:
    global _store
    if _store is None:
        from ridehail.core.trips import PostgresTripStore
        _store = PostgresTripStore(get_database())
    return _store


def get_driver_repository() -> DriverRepository:
    global _driver_repository
    if _driver_repository is None:
        from ridehail.core.drivers import DriverRepository
        _driver_repository = DriverRepository(get_database())
    return _driver_repository


def get_fanout() -> NotificationFanout:
    """Рассылка уведомлений: Expo push + лента в БД + дедупликация в Redis."""
    global _fanout, _push_sink
    if _fanout is None:
        from ridehail.core.notifications import ExpoPushSink, NotificationFanout, NotificationRepository
        _push_sink = ExpoPushSink()
        _fanout = NotificationFanout(
            sink=_push_sink,
            repository=NotificationRepository(get_database()),
            redis=_connected_redis(),
        )
    return _fanout


def get_dispatch_engine() -> DispatchEngine:
    global _dispatch
    if _dispatch is None:
        from ridehail.core.trips import DispatchEngine
        _dispatch = DispatchEngine(
            store=get_trip_store(),
            drivers=get_driver_repository(),
            fanout=get_fanout(),
            event_bus=_event_bus,
        )
    return _dispatch


def get_arbiter() -> AcceptanceArbiter:
    global _arbiter
    if _arbiter is None:
        from ridehail.core.trips import AcceptanceArbiter
        _arbiter = AcceptanceArbiter(
            store=get_trip_store(),
            drivers=get_driver_repository(),
            fanout=get_fanout(),
            event_bus=_event_bus,
        )
    return _arbiter


def get_trip_service() -> TripService:
    global _trip_service
    if _trip_service is None:
        from ridehail.core.trips import TripService
        _trip_service = TripService(
            store=get_trip_store(),
            drivers=get_driver_repository(),
            fanout=get_fanout(),
            event_bus=_event_bus,
        )
    return _trip_service


def get_offer_book() -> OfferBook:
    global _offer_book
    if _offer_book is None:
        from ridehail.core.offers import OfferBook, OfferRepository
        _offer_book = OfferBook(
            store=get_trip_store(),
            offers=OfferRepository(get_database()),
            drivers=get_driver_repository(),
            arbiter=get_arbiter(),
            fanout=get_fanout(),
            event_bus=_event_bus,
        )
    return _offer_book


def get_rating_aggregator() -> RatingAggregator:
    global _rating_aggregator
    if _rating_aggregator is None:
        from ridehail.core.ratings import RatingAggregator, RatingRepository
        _rating_aggregator = RatingAggregator(
            store=get_trip_store(),
            repository=RatingRepository(get_database()),
            fanout=get_fanout(),
            event_bus=_event_bus,
        )
    return _rating_aggregator


# =============================================================================
# ВОДИТЕЛИ
# =============================================================================

def get_driver_service() -> DriverService:
    global _driver_service
    if _driver_service is None:
        from ridehail.core.drivers import DriverService
        _driver_service = DriverService(
            repository=get_driver_repository(),
            store=get_trip_store(),
        )
    return _driver_service


# =============================================================================
# ПЛАТЕЖИ И КОШЕЛЁК
# =============================================================================

def get_wallet_ledger() -> WalletLedger:
    global _wallet_ledger
    if _wallet_ledger is None:
        from ridehail.core.wallet import WalletLedger, WalletRepository
        db = get_database()
        _wallet_ledger = WalletLedger(
            db=db,
            repository=WalletRepository(db),
            event_bus=_event_bus,
        )
    return _wallet_ledger


def get_payment_provider() -> WompiClient:
    global _payment_provider
    if _payment_provider is None:
        from ridehail.core.payments import WompiClient
        _payment_provider = WompiClient()
    return _payment_provider


def get_payment_service() -> PaymentService:
    global _payment_service
    if _payment_service is None:
        from ridehail.core.payments import PaymentRepository, PaymentService
        _payment_service = PaymentService(
            store=get_trip_store(),
            repository=PaymentRepository(get_database()),
            provider=get_payment_provider(),
            ledger=get_wallet_ledger(),
            event_bus=_event_bus,
        )
    return _payment_service


async def cleanup_dependencies() -> None:
    """Дожидается фоновых уведомлений, закрывает HTTP клиенты и сбрасывает синглтоны."""
    global _db, _redis, _event_bus
    global _store, _driver_repository, _push_sink, _fanout, _dispatch, _arbiter
    global _trip_service, _offer_book, _rating_aggregator, _driver_service
    global _wallet_ledger, _payment_provider, _payment_service

    if _fanout is not None:
        await _fanout.drain()
    if _push_sink is not None:
        await _push_sink.close()
    if _payment_provider is not None:
        await _payment_provider.close()

    _store = _driver_repository = _push_sink = _fanout = None
    _dispatch = _arbiter = _trip_service = _offer_book = _rating_aggregator = None
    _driver_service = _wallet_ledger = _payment_provider = _payment_service = None
    _db = _redis = _event_bus = None
