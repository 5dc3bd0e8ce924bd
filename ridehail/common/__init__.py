# ridehail/common/__init__.py
"""
Общие утилиты: константы, ошибки, логирование.
"""

from ridehail.common.constants import TypeMsg
from ridehail.common.logger import log_debug, log_error, log_info, log_warning, setup_logging

__all__ = [
    "TypeMsg",
    "log_info",
    "log_debug",
    "log_warning",
    "log_error",
    "setup_logging",
]
