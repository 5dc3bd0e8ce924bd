# ridehail/core/notifications/repository.py
"""
Репозиторий уведомлений: push-токены и лента уведомлений в приложении.
"""

from __future__ import annotations

import json
from typing import Optional
from uuid import uuid4

from ridehail.core.notifications.models import Notification
from ridehail.infra.database import DatabaseManager


class NotificationRepository:
    """Репозиторий уведомлений."""

    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    async def get_push_token(self, user_id: str) -> Optional[str]:
        """Push-токен пользователя или None, если устройство не зарегистрировано."""
        return await self._db.fetchval(
            "SELECT push_token FROM users WHERE id = $1",
            user_id,
        )

    async def save(self, notification: Notification) -> str:
        """
        Сохраняет уведомление в ленту пользователя.

        Returns:
            ID записи
        """
        notification_id = str(uuid4())
        await self._db.execute(
            """
            INSERT INTO notifications (id, user_id, title, message, type, data)
            VALUES ($1, $2, $3, $4, $5, $6::jsonb)
            """,
            notification_id,
            notification.user_id,
            notification.title,
            notification.body,
            notification.type.value,
            json.dumps(notification.data),
        )
        return notification_id
