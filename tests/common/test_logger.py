# tests/common/test_logger.py
"""
Unit тесты для модуля логирования (ridehail/common/logger.py).
"""

import json
import logging
from unittest.mock import patch

import pytest

from ridehail.common.constants import TypeMsg
from ridehail.common.logger import (
    ColoredFormatter,
    JsonFormatter,
    TimestampRotatingFileHandler,
    get_logger,
    log_error,
    log_info,
    log_warning,
)


def _record(level: int = logging.INFO, msg: str = "Test message") -> logging.LogRecord:
    return logging.LogRecord(
        name="test_logger",
        level=level,
        pathname="test.py",
        lineno=10,
        msg=msg,
        args=(),
        exc_info=None,
    )


class TestJsonFormatter:
    """Тесты для JsonFormatter."""

    def test_format_basic_record(self) -> None:
        result = json.loads(JsonFormatter().format(_record()))

        assert result["level"] == "INFO"
        assert result["message"] == "Test message"
        assert result["logger"] == "test_logger"
        assert result["timestamp"].endswith("Z")

    def test_format_with_extra_data(self) -> None:
        record = _record(logging.WARNING, "Warning message")
        record.extra_data = {"trip_id": "t1"}

        result = json.loads(JsonFormatter().format(record))

        assert result["extra"] == {"trip_id": "t1"}

    def test_non_ascii(self) -> None:
        """Кириллица и испанский текст не экранируются."""
        result = JsonFormatter().format(_record(msg="Поездка ¡Nuevo viaje!"))
        assert "Поездка ¡Nuevo viaje!" in result


class TestColoredFormatter:
    def test_contains_level_and_caller(self) -> None:
        record = _record(logging.ERROR, "boom")
        record.extra_data = {
            "caller_function": "accept",
            "caller_module": "ridehail.core.trips.arbiter",
            "caller_file": "arbiter.py",
            "caller_line": 42,
        }

        result = ColoredFormatter().format(record)

        assert "[ERROR]" in result
        assert "accept()" in result
        assert "arbiter.py:42" in result
        assert result.endswith("boom")


class TestGetLogger:
    def test_cached(self) -> None:
        assert get_logger("ridehail.test") is get_logger("ridehail.test")

    def test_no_propagation(self) -> None:
        assert get_logger("ridehail.test").propagate is False


class TestAsyncHelpers:
    """Тесты асинхронных хелперов."""

    @pytest.mark.asyncio
    async def test_log_info_level_from_type_msg(self) -> None:
        with patch("ridehail.common.logger._emit") as emit:
            await log_info("msg", type_msg=TypeMsg.DEBUG)

        assert emit.call_args[0][1] == logging.DEBUG
        assert emit.call_args[0][2] == "msg"

    @pytest.mark.asyncio
    async def test_caller_info(self) -> None:
        with patch("ridehail.common.logger._emit") as emit:
            await log_warning("msg")

        caller = emit.call_args[0][4]
        assert caller["caller_function"] == "test_caller_info"
        assert caller["caller_file"] == "test_logger.py"

    @pytest.mark.asyncio
    async def test_log_error_exc_info(self) -> None:
        with patch("ridehail.common.logger._emit") as emit:
            await log_error("failed", exc_info=True)

        assert emit.call_args[0][1] == logging.ERROR
        assert emit.call_args.kwargs["exc_info"] is True


class TestTimestampRotatingFileHandler:
    def test_rollover_archives_file(self, tmp_path) -> None:
        handler = TimestampRotatingFileHandler(str(tmp_path), max_bytes=1024, name="app")
        handler.emit(_record(msg="first"))

        handler.doRollover()
        handler.close()

        names = sorted(p.name for p in tmp_path.iterdir())
        assert "app.log" in names
        assert any(n.startswith("app_") for n in names)
