# ridehail/services/common/identity.py
"""
Идентификация вызывающего по заголовкам, которые проставляет внешний шлюз авторизации.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Header

from ridehail.common.constants import UserRole
from ridehail.common.exceptions import AuthenticationError
from ridehail.core.identity import Identity


async def get_identity(
    x_user_id: Optional[str] = Header(None),
    x_user_role: Optional[str] = Header(None),
) -> Identity:
    """
    Identity из заголовков X-User-Id и X-User-Role.

    Raises:
        AuthenticationError: 401 если заголовков нет или роль неизвестна
    """
    if not x_user_id or not x_user_role:
        raise AuthenticationError("Missing identity")

    try:
        role = UserRole(x_user_role.strip().lower())
    except ValueError:
        raise AuthenticationError("Unknown role")

    return Identity(user_id=x_user_id.strip(), role=role)
