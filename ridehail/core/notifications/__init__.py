# ridehail/core/notifications/__init__.py
"""
Домен уведомлений: push через Expo и лента уведомлений.
"""

from ridehail.core.notifications.models import Notification, NotificationType, PushMessage
from ridehail.core.notifications.repository import NotificationRepository
from ridehail.core.notifications.service import NotificationFanout
from ridehail.core.notifications.sink import ExpoPushSink, NotificationSink

__all__ = [
    "Notification",
    "NotificationType",
    "PushMessage",
    "NotificationRepository",
    "NotificationFanout",
    "NotificationSink",
    "ExpoPushSink",
]
