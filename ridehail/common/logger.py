# ridehail/common/logger.py
"""
Модуль структурированного логирования.
Консоль (цветной или JSON формат), файл с ротацией по размеру и отдельный error.log.
"""

from __future__ import annotations

import inspect
import json
import logging
import os
import sys
from dataclasses import dataclass
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

from ridehail.common.constants import TypeMsg


DEFAULT_LOGGER = "ridehail"

_loggers: dict[str, logging.Logger] = {}
_shared_handlers: dict[str, logging.Handler] = {}
_LOGGING_INITIALIZED: bool = False


# =============================================================================
# ФОРМАТТЕРЫ
# =============================================================================

class JsonFormatter(logging.Formatter):
    """Одна запись лога на одну JSON строку."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        extra_data = getattr(record, "extra_data", None)
        if extra_data:
            payload["extra"] = extra_data

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)


class ColoredFormatter(logging.Formatter):
    """Цветной форматтер для консоли (разработка)."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    GRAY = "\033[90m"
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, self.GRAY)
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")

        origin = ""
        extra_data = getattr(record, "extra_data", None) or {}
        if extra_data.get("caller_function"):
            origin = (
                f" {self.GRAY}[{extra_data.get('caller_module')}."
                f"{extra_data['caller_function']}() "
                f"{extra_data.get('caller_file')}:{extra_data.get('caller_line')}]{self.RESET}"
            )

        line = f"{timestamp} {color}[{record.levelname}]{self.RESET}{origin} {record.getMessage()}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


class TimestampRotatingFileHandler(RotatingFileHandler):
    """
    Пишет в фиксированный файл `<name>.log`.
    При превышении размера файл переименовывается в `<name>_<дата-время>.log`.
    """

    def __init__(self, log_dir: str, max_bytes: int, name: str = "app") -> None:
        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.base_name = name
        super().__init__(
            filename=str(self.log_dir / f"{name}.log"),
            maxBytes=max_bytes,
            backupCount=0,
            encoding="utf-8",
        )

    def doRollover(self) -> None:
        if self.stream:
            self.stream.close()
            self.stream = None

        suffix = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
        archive = self.log_dir / f"{self.base_name}_{suffix}.log"
        if os.path.exists(self.baseFilename):
            try:
                os.rename(self.baseFilename, archive)
            except OSError:
                # Файл занят другим процессом: продолжаем писать в текущий
                pass

        self.stream = self._open()


# =============================================================================
# НАСТРОЙКА
# =============================================================================

@dataclass
class LoggingOptions:
    """Параметры логирования, прочитанные из конфигурации."""
    level: str = "DEBUG"
    fmt: str = "colored"
    to_file: bool = False
    file_path: str = "logs/app.log"
    max_bytes: int = 10485760


def _load_options() -> LoggingOptions:
    """Читает секцию logging; при любой проблеме с конфигом берёт значения по умолчанию."""
    try:
        from ridehail.config import settings
        section = settings.logging
        options = LoggingOptions(
            level=section.LOG_LEVEL,
            fmt=section.LOG_FORMAT,
            to_file=section.LOG_TO_FILE,
            file_path=section.LOG_FILE_PATH,
            max_bytes=section.LOG_MAX_BYTES,
        )
    except Exception:
        return LoggingOptions()

    # В тестах settings может оказаться MagicMock
    if not isinstance(options.level, str):
        options.level = "DEBUG"
    if not isinstance(options.fmt, str):
        options.fmt = "colored"
    if not isinstance(options.file_path, str):
        options.file_path = "logs/app.log"
    if not isinstance(options.to_file, bool):
        options.to_file = False
    if not isinstance(options.max_bytes, int):
        options.max_bytes = 10485760
    return options


def _make_formatter(fmt: str) -> logging.Formatter:
    return JsonFormatter() if fmt == "json" else ColoredFormatter()


def _file_handlers(options: LoggingOptions) -> list[logging.Handler]:
    """Общие для всех логгеров файловые хендлеры (основной и error.log)."""
    if not _shared_handlers:
        path = Path(options.file_path)
        name = path.stem
        service_name = os.getenv("SERVICE_NAME")
        if service_name:
            name = f"{name}_{service_name}"

        main_handler = TimestampRotatingFileHandler(str(path.parent), options.max_bytes, name)
        main_handler.setFormatter(_make_formatter(options.fmt))

        error_handler = TimestampRotatingFileHandler(str(path.parent), options.max_bytes, "error")
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(_make_formatter(options.fmt))

        _shared_handlers["main"] = main_handler
        _shared_handlers["error"] = error_handler

    return [_shared_handlers["main"], _shared_handlers["error"]]


def get_logger(name: str = DEFAULT_LOGGER) -> logging.Logger:
    """
    Возвращает настроенный логгер (кэшируется по имени).

    Args:
        name: Имя логгера

    Returns:
        Логгер с консольным и, если включено, файловыми хендлерами
    """
    if name in _loggers:
        return _loggers[name]

    options = _load_options()
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, options.level.upper(), logging.DEBUG))

    if not logger.handlers:
        console = logging.StreamHandler(sys.stdout)
        console.setFormatter(_make_formatter(options.fmt))
        logger.addHandler(console)

        if options.to_file:
            for handler in _file_handlers(options):
                logger.addHandler(handler)

    logger.propagate = False
    _loggers[name] = logger
    return logger


def setup_logging() -> None:
    """
    Инициализирует логирование при старте сервиса.
    Повторные вызовы ничего не делают.
    """
    global _LOGGING_INITIALIZED
    if _LOGGING_INITIALIZED:
        return
    _LOGGING_INITIALIZED = True

    get_logger(DEFAULT_LOGGER)

    for noisy in ("asyncpg", "redis", "aio_pika", "aiormq", "httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


# =============================================================================
# АСИНХРОННЫЕ ХЕЛПЕРЫ
# =============================================================================

def _get_caller_info() -> dict[str, Any]:
    """Описание кода, вызвавшего log_* (на два кадра выше текущего)."""
    frame = inspect.currentframe()
    try:
        caller = frame.f_back.f_back if frame and frame.f_back else None
        if caller is None:
            return {}
        module = inspect.getmodule(caller)
        return {
            "caller_function": caller.f_code.co_name,
            "caller_module": module.__name__ if module else "unknown",
            "caller_file": os.path.basename(caller.f_code.co_filename),
            "caller_line": caller.f_lineno,
        }
    except Exception:
        return {}
    finally:
        del frame


def _emit(
    logger_name: str,
    level: int,
    message: str,
    extra: dict[str, Any] | None,
    caller: dict[str, Any],
    exc_info: bool = False,
) -> None:
    logger = get_logger(logger_name)
    logger.log(level, message, extra={"extra_data": {**caller, **(extra or {})}}, exc_info=exc_info)


_LEVELS: dict[TypeMsg, int] = {
    TypeMsg.DEBUG: logging.DEBUG,
    TypeMsg.INFO: logging.INFO,
    TypeMsg.WARNING: logging.WARNING,
    TypeMsg.ERROR: logging.ERROR,
    TypeMsg.CRITICAL: logging.CRITICAL,
}


async def log_info(
    message: str,
    *,
    type_msg: TypeMsg = TypeMsg.INFO,
    logger_name: str = DEFAULT_LOGGER,
    extra: dict[str, Any] | None = None,
) -> None:
    """
    Асинхронное логирование; уровень задаётся через type_msg.

    Args:
        message: Сообщение
        type_msg: Уровень (TypeMsg)
        logger_name: Имя логгера
        extra: Дополнительные поля записи
    """
    level = _LEVELS.get(type_msg, logging.INFO)
    _emit(logger_name, level, message, extra, _get_caller_info())


async def log_debug(
    message: str,
    logger_name: str = DEFAULT_LOGGER,
    extra: dict[str, Any] | None = None,
) -> None:
    """Логирование DEBUG уровня."""
    _emit(logger_name, logging.DEBUG, message, extra, _get_caller_info())


async def log_warning(
    message: str,
    logger_name: str = DEFAULT_LOGGER,
    extra: dict[str, Any] | None = None,
) -> None:
    """Логирование WARNING уровня."""
    _emit(logger_name, logging.WARNING, message, extra, _get_caller_info())


async def log_error(
    message: str,
    logger_name: str = DEFAULT_LOGGER,
    extra: dict[str, Any] | None = None,
    exc_info: bool = False,
) -> None:
    """
    Логирование ERROR уровня.

    Args:
        message: Сообщение об ошибке
        logger_name: Имя логгера
        extra: Дополнительные поля записи
        exc_info: Добавить трейсбек текущего исключения
    """
    _emit(logger_name, logging.ERROR, message, extra, _get_caller_info(), exc_info=exc_info)
