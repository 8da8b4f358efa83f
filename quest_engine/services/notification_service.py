"""
Notification Service - уведомления пользователю.
"""

import logging
from datetime import datetime
from typing import Callable, List, Dict, Any

from db_service import NotificationRepository, to_db_time, utc_now
from ..interfaces import Notifier

logger = logging.getLogger("notification_service")


class NotificationService(Notifier):
    """Stores notifications for later delivery to the client."""

    def __init__(self, notifications: NotificationRepository, clock: Callable[[], datetime] = utc_now):
        self.notifications = notifications
        self.clock = clock

    def notify(self, user_id: str, title: str, message: str) -> None:
        self.notifications.create(
            user_id=user_id,
            title=title,
            message=message,
            is_read=0,
            created_at=to_db_time(self.clock()),
        )
        logger.info(f"🔔 Notification for user {user_id}: {title}")

    def get_notifications(self, user_id: str) -> List[Dict[str, Any]]:
        return self.notifications.list_for_user(user_id)
