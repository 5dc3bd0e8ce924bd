# ridehail/common/constants.py
"""
Общие константы и перечисления.
"""

from enum import Enum


class TypeMsg(str, Enum):
    """Типы сообщений для логирования."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class UserRole(str, Enum):
    """Роли пользователей."""
    PASSENGER = "passenger"
    DRIVER = "driver"
    ADMIN = "admin"

    def __str__(self) -> str:
        return self.value


class TripStatus(str, Enum):
    """Статусы поездки."""
    REQUESTED = "requested"
    ACCEPTED = "accepted"
    DRIVER_ARRIVING = "driver_arriving"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    def __str__(self) -> str:
        return self.value


# Статусы, в которых поездка ещё не завершена
ACTIVE_PASSENGER_STATUSES = (
    TripStatus.REQUESTED,
    TripStatus.ACCEPTED,
    TripStatus.DRIVER_ARRIVING,
    TripStatus.IN_PROGRESS,
)
ACTIVE_DRIVER_STATUSES = (
    TripStatus.ACCEPTED,
    TripStatus.DRIVER_ARRIVING,
    TripStatus.IN_PROGRESS,
)


class VerificationStatus(str, Enum):
    """Статусы верификации водителя."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

    def __str__(self) -> str:
        return self.value


class RatingDirection(str, Enum):
    """Кого оценивают: водителя (оценка пассажира) или пассажира (оценка водителя)."""
    DRIVER = "driver"
    PASSENGER = "passenger"

    def __str__(self) -> str:
        return self.value


class TransactionType(str, Enum):
    """Тип проводки в кошельке."""
    CREDIT = "credit"
    DEBIT = "debit"

    def __str__(self) -> str:
        return self.value


class TransactionCategory(str, Enum):
    """Категория проводки в кошельке."""
    TRIP_EARNING = "trip_earning"
    WITHDRAWAL = "withdrawal"
    ADJUSTMENT = "adjustment"

    def __str__(self) -> str:
        return self.value


class PayoutStatus(str, Enum):
    """Статусы заявки на вывод."""
    PENDING = "pending"
    PROCESSING = "processing"
    PAID = "paid"
    REJECTED = "rejected"

    def __str__(self) -> str:
        return self.value


class PaymentMethod(str, Enum):
    """Способы оплаты."""
    CASH = "cash"
    CARD = "card"
    PSE = "pse"
    NEQUI = "nequi"

    def __str__(self) -> str:
        return self.value


class PaymentStatus(str, Enum):
    """Статусы платёжной транзакции."""
    PENDING = "pending"
    APPROVED = "approved"
    DECLINED = "declined"
    ERROR = "error"

    def __str__(self) -> str:
        return self.value

