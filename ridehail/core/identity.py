# ridehail/core/identity.py
"""
Идентичность вызывающего пользователя.
Аутентификация выполняется снаружи; ядро получает уже проверенные user_id и роль.
"""

from __future__ import annotations

from dataclasses import dataclass

from ridehail.common.constants import UserRole


@dataclass(frozen=True)
class Identity:
    """Пользователь, от имени которого выполняется операция."""
    user_id: str
    role: UserRole

    @property
    def is_driver(self) -> bool:
        return self.role == UserRole.DRIVER

    @property
    def is_passenger(self) -> bool:
        return self.role == UserRole.PASSENGER
