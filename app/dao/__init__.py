"""Data access objects package."""
from app.dao.redis_automation_dao import RedisAutomationDAO

__all__ = ["RedisAutomationDAO"]
