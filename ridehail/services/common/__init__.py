# ridehail/services/common/__init__.py
"""
Общее для HTTP сервисов: идентификация, обработка ошибок, DI, lifespan.
"""

from ridehail.services.common.errors import register_exception_handlers
from ridehail.services.common.identity import get_identity
from ridehail.services.common.lifespan import service_lifespan

__all__ = ["register_exception_handlers", "get_identity", "service_lifespan"]
