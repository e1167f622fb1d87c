"""Dashboard notifications produced by the automation jobs."""
import logging
from typing import Optional

from app.dao.redis_automation_dao import RedisAutomationDAO, MAX_NOTIFICATIONS
from app.models import Notification

logger = logging.getLogger(__name__)


class NotificationService:
    def __init__(self, dao: RedisAutomationDAO):
        self.dao = dao

    def notify(
        self,
        type: str,
        title: str,
        message: str,
        action_url: Optional[str] = None,
    ) -> Notification:
        notification = Notification(type=type, title=title, message=message, action_url=action_url)
        self.dao.add_notification(notification)
        logger.info(f"[Notifications] {title} {message}")
        return notification

    def list_recent(self, limit: int = MAX_NOTIFICATIONS) -> list[Notification]:
        return self.dao.list_notifications(min(max(limit, 1), MAX_NOTIFICATIONS))

    def mark_read(self, ids: Optional[list[str]] = None) -> int:
        return self.dao.mark_notifications_read(ids)
