# ridehail/config/loader.py
"""
Загрузчик конфигурации проекта.
Единственный источник истины: config/config.json.
Хосты и секреты переопределяются из переменных окружения (и .env).
"""

from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# =============================================================================
# ОПРЕДЕЛЕНИЕ ПУТЕЙ
# =============================================================================

def get_project_root() -> Path:
    """Возвращает корневую директорию проекта."""
    return Path(__file__).parent.parent.parent


def get_config_path() -> Path:
    """Возвращает путь к файлу конфигурации."""
    return get_project_root() / "config" / "config.json"


def load_config_json(path: Path | None = None) -> dict[str, Any]:
    """Загружает config.json и отбрасывает ключи-комментарии (`_comment_*`)."""
    config_path = path or get_config_path()
    if not config_path.exists():
        raise FileNotFoundError(f"Файл конфигурации не найден: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        data = json.load(f)

    return {k: v for k, v in data.items() if not k.startswith("_comment_")}


# =============================================================================
# СЕКЦИИ КОНФИГУРАЦИИ
# =============================================================================

class SystemSettings(BaseModel):
    """Системные настройки."""
    PROJECT_NAME: str = "ridehail"
    VERSION: str = "1.0.0"
    DEBUG: bool = True
    ENVIRONMENT: str = "development"


class DeploymentSettings(BaseModel):
    """Хосты и порты HTTP сервисов."""
    TRIP_SERVICE_HOST: str = "0.0.0.0"
    TRIP_SERVICE_PORT: int = 8085
    DRIVER_SERVICE_HOST: str = "0.0.0.0"
    DRIVER_SERVICE_PORT: int = 8086
    PAYMENTS_SERVICE_HOST: str = "0.0.0.0"
    PAYMENTS_SERVICE_PORT: int = 8087


class LoggingSettings(BaseModel):
    """Настройки логирования."""
    LOG_LEVEL: str = "DEBUG"
    LOG_FORMAT: str = "colored"
    LOG_TO_FILE: bool = False
    LOG_FILE_PATH: str = "logs/app.log"
    LOG_MAX_BYTES: int = 10485760


class DatabaseSettings(BaseModel):
    """Настройки PostgreSQL."""
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_NAME: str = "ridehail"
    DB_USER: str = "postgres"
    DB_PASSWORD: str = ""
    DB_MIN_POOL_SIZE: int = 5
    DB_MAX_POOL_SIZE: int = 20
    DB_COMMAND_TIMEOUT: int = 60

    @property
    def dsn(self) -> str:
        """Возвращает DSN для подключения к PostgreSQL."""
        return (
            f"postgresql://{self.DB_USER}:{self.DB_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        )


class RedisSettings(BaseModel):
    """Настройки Redis."""
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0
    REDIS_PASSWORD: str = ""
    REDIS_NAMESPACE: str = "ridehail"
    REDIS_MAX_CONNECTIONS: int = 50

    @property
    def url(self) -> str:
        """Возвращает URL для подключения к Redis."""
        auth = f":{self.REDIS_PASSWORD}@" if self.REDIS_PASSWORD else ""
        return f"redis://{auth}{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"


class RedisTTLSettings(BaseModel):
    """TTL ключей Redis (секунды)."""
    NOTIFIED_DRIVERS_TTL: int = 86400


class RabbitMQSettings(BaseModel):
    """Настройки RabbitMQ."""
    RABBITMQ_HOST: str = "localhost"
    RABBITMQ_PORT: int = 5672
    RABBITMQ_USER: str = "guest"
    RABBITMQ_PASSWORD: str = "guest"
    RABBITMQ_VHOST: str = "/"
    RABBITMQ_EXCHANGE: str = "ridehail.events"

    @property
    def url(self) -> str:
        """Возвращает URL для подключения к RabbitMQ."""
        return (
            f"amqp://{self.RABBITMQ_USER}:{self.RABBITMQ_PASSWORD}"
            f"@{self.RABBITMQ_HOST}:{self.RABBITMQ_PORT}{self.RABBITMQ_VHOST}"
        )


class SearchSettings(BaseModel):
    """Поиск водителей и лимиты выборок."""
    DRIVER_SEARCH_RADIUS_KM: float = 10.0
    ACTIVE_TRIPS_LIMIT: int = 50
    HISTORY_LIMIT: int = 50
    NEARBY_DRIVERS_LIMIT: int = 20


class OfferSettings(BaseModel):
    """Встречные предложения цены."""
    MIN_OFFER_PRICE: int = 1000


class CommissionSettings(BaseModel):
    """Комиссия платформы по умолчанию (если в БД нет активной записи)."""
    PLATFORM_PERCENTAGE: float = 15.0
    MIN_COMMISSION: int = 500
    MAX_COMMISSION: int = 5000


class WalletSettings(BaseModel):
    """Кошельки водителей и выводы."""
    MIN_WITHDRAWAL: int = 10000
    RECENT_TRANSACTIONS_LIMIT: int = 20
    PAYOUT_PERIOD_DAYS: int = 30
    CURRENCY: str = "COP"


class PushSettings(BaseModel):
    """Push-уведомления через Expo."""
    PUSH_ENABLED: bool = True
    EXPO_PUSH_URL: str = "https://exp.host/--/api/v2/push/send"
    PUSH_TIMEOUT: float = 10.0


class PaymentProviderSettings(BaseModel):
    """Платёжный провайдер (Wompi)."""
    WOMPI_ENVIRONMENT: str = "test"
    WOMPI_PUBLIC_KEY: str = ""
    WOMPI_PRIVATE_KEY: str = ""
    WOMPI_EVENTS_SECRET: str = ""
    WOMPI_REDIRECT_URL: str = "https://ridehail.app/payment/callback"
    WOMPI_TIMEOUT: float = 15.0

    @field_validator("WOMPI_ENVIRONMENT")
    @classmethod
    def check_environment(cls, v: str) -> str:
        """Допустимы только test и production."""
        if v not in ("test", "production"):
            raise ValueError(f"Неизвестное окружение Wompi: {v}")
        return v

    @property
    def api_url(self) -> str:
        """Базовый URL API в зависимости от окружения."""
        if self.WOMPI_ENVIRONMENT == "production":
            return "https://production.wompi.co/v1"
        return "https://sandbox.wompi.co/v1"


# =============================================================================
# ГЛАВНЫЙ КЛАСС НАСТРОЕК
# =============================================================================

class Settings(BaseSettings):
    """
    Главный класс настроек приложения.
    Агрегирует все секции конфигурации.
    """
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    system: SystemSettings = Field(default_factory=SystemSettings)
    deployment: DeploymentSettings = Field(default_factory=DeploymentSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    redis: RedisSettings = Field(default_factory=RedisSettings)
    redis_ttl: RedisTTLSettings = Field(default_factory=RedisTTLSettings)
    rabbitmq: RabbitMQSettings = Field(default_factory=RabbitMQSettings)
    search: SearchSettings = Field(default_factory=SearchSettings)
    offers: OfferSettings = Field(default_factory=OfferSettings)
    commission: CommissionSettings = Field(default_factory=CommissionSettings)
    wallet: WalletSettings = Field(default_factory=WalletSettings)
    push: PushSettings = Field(default_factory=PushSettings)
    payment_provider: PaymentProviderSettings = Field(default_factory=PaymentProviderSettings)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Settings":
        """
        Раскладывает плоский словарь config.json по секциям.
        Переменные окружения имеют приоритет для хостов и секретов.
        """
        def pick(section: type[BaseModel], env_keys: tuple[str, ...] = ()) -> dict[str, Any]:
            values = {name: data[name] for name in section.model_fields if name in data}
            for key in env_keys:
                env_value = os.getenv(key)
                if env_value:
                    values[key] = env_value
            return values

        return cls(
            system=SystemSettings(**pick(SystemSettings, ("ENVIRONMENT",))),
            deployment=DeploymentSettings(**pick(DeploymentSettings)),
            logging=LoggingSettings(**pick(LoggingSettings, ("LOG_LEVEL",))),
            database=DatabaseSettings(
                **pick(DatabaseSettings, ("DB_HOST", "DB_PORT", "DB_NAME", "DB_USER", "DB_PASSWORD"))
            ),
            redis=RedisSettings(**pick(RedisSettings, ("REDIS_HOST", "REDIS_PORT", "REDIS_PASSWORD"))),
            redis_ttl=RedisTTLSettings(**pick(RedisTTLSettings)),
            rabbitmq=RabbitMQSettings(
                **pick(RabbitMQSettings, ("RABBITMQ_HOST", "RABBITMQ_PORT", "RABBITMQ_USER", "RABBITMQ_PASSWORD"))
            ),
            search=SearchSettings(**pick(SearchSettings)),
            offers=OfferSettings(**pick(OfferSettings)),
            commission=CommissionSettings(**pick(CommissionSettings)),
            wallet=WalletSettings(**pick(WalletSettings)),
            push=PushSettings(**pick(PushSettings)),
            payment_provider=PaymentProviderSettings(
                **pick(
                    PaymentProviderSettings,
                    ("WOMPI_PUBLIC_KEY", "WOMPI_PRIVATE_KEY", "WOMPI_EVENTS_SECRET", "WOMPI_ENVIRONMENT"),
                )
            ),
        )

    @classmethod
    def from_config_json(cls) -> "Settings":
        """Создаёт объект Settings из config/config.json."""
        return cls.from_dict(load_config_json())


@lru_cache()
def get_settings() -> Settings:
    """
    Возвращает синглтон настроек приложения.
    Перед чтением конфига подгружает .env из корня проекта.
    """
    from dotenv import load_dotenv

    env_path = get_project_root() / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    return Settings.from_config_json()


# Экспорт синглтона для удобного импорта
settings = get_settings()
