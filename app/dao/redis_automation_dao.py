"""Redis-based Data Access Object for tokens, automation state and notifications."""
import logging
import uuid
from datetime import date
from typing import Optional

import redis
from pydantic import ValidationError

from app.db.redis_client import RedisClient
from app.models import (
    AutoPostingConfig,
    Notification,
    ProcessedReview,
    ReviewReplyConfig,
    StoredTokenData,
)

logger = logging.getLogger(__name__)

GOOGLE_TOKENS_KEY_FORMAT = "google_tokens_v1:{}"
GOOGLE_ACTIVE_USER_KEY = "google_active_user_v1"
AUTO_POSTING_CONFIG_KEY_FORMAT = "auto_posting_config_v1:{}"
REVIEW_REPLY_CONFIG_KEY_FORMAT = "review_reply_config_v1:{}"
PROCESSED_REVIEW_KEY_FORMAT = "processed_review_v1:{}_{}"
AUTO_POSTING_STATS_KEY_FORMAT = "auto_posting_stats_v1:{}"
NOTIFICATIONS_KEY = "notifications_v1"
AUTOMATION_LOCK_KEY_FORMAT = "automation_lock_v1:{}"

DAILY_STATS_TTL_SECONDS = 2 * 24 * 60 * 60
MAX_NOTIFICATIONS = 50


class RedisAutomationDAO:
    """Data Access Object for all persisted dashboard state."""

    def __init__(self, client: RedisClient):
        self.client = client

    # ------------------------------------------------------------------
    # OAuth tokens
    # ------------------------------------------------------------------

    def set_tokens(self, user_id: str, data: StoredTokenData) -> None:
        key = GOOGLE_TOKENS_KEY_FORMAT.format(user_id)
        self.client.set(key, data.model_dump_json())

    def get_tokens(self, user_id: str) -> Optional[StoredTokenData]:
        key = GOOGLE_TOKENS_KEY_FORMAT.format(user_id)
        try:
            json_str = self.client.get(key)
            if json_str is None:
                return None
            return StoredTokenData.model_validate_json(json_str)
        except (redis.RedisError, ValidationError) as e:
            logger.error(f"[RedisAutomationDAO] Failed to read tokens for {user_id}: {e}")
            return None

    def delete_tokens(self, user_id: str) -> None:
        self.client.del_(GOOGLE_TOKENS_KEY_FORMAT.format(user_id))
        logger.info(f"[RedisAutomationDAO] Deleted stored tokens for user {user_id}")

    def set_active_user(self, user_id: str) -> None:
        self.client.set(GOOGLE_ACTIVE_USER_KEY, user_id)

    def get_active_user(self) -> Optional[str]:
        return self.client.get(GOOGLE_ACTIVE_USER_KEY)

    def clear_active_user(self) -> None:
        self.client.del_(GOOGLE_ACTIVE_USER_KEY)

    # ------------------------------------------------------------------
    # Auto-posting configurations
    # ------------------------------------------------------------------

    def set_auto_posting_config(self, config: AutoPostingConfig) -> None:
        key = AUTO_POSTING_CONFIG_KEY_FORMAT.format(config.location_id)
        self.client.set(key, config.model_dump_json())

    def get_auto_posting_config(self, location_id: str) -> Optional[AutoPostingConfig]:
        key = AUTO_POSTING_CONFIG_KEY_FORMAT.format(location_id)
        try:
            json_str = self.client.get(key)
            if json_str is None:
                return None
            return AutoPostingConfig.model_validate_json(json_str)
        except (redis.RedisError, ValidationError) as e:
            logger.error(
                f"[RedisAutomationDAO] Failed to read auto-posting config {location_id}: {e}"
            )
            return None

    def list_auto_posting_configs(self) -> list[AutoPostingConfig]:
        """Return all auto-posting configs, oldest first."""
        configs = self._load_all(AUTO_POSTING_CONFIG_KEY_FORMAT.format("*"), AutoPostingConfig)
        return sorted(configs, key=lambda c: c.created_at)

    # ------------------------------------------------------------------
    # Review reply configurations
    # ------------------------------------------------------------------

    def set_review_reply_config(self, config: ReviewReplyConfig) -> None:
        key = REVIEW_REPLY_CONFIG_KEY_FORMAT.format(config.location_id)
        self.client.set(key, config.model_dump_json())

    def get_review_reply_config(self, location_id: str) -> Optional[ReviewReplyConfig]:
        key = REVIEW_REPLY_CONFIG_KEY_FORMAT.format(location_id)
        try:
            json_str = self.client.get(key)
            if json_str is None:
                return None
            return ReviewReplyConfig.model_validate_json(json_str)
        except (redis.RedisError, ValidationError) as e:
            logger.error(
                f"[RedisAutomationDAO] Failed to read review reply config {location_id}: {e}"
            )
            return None

    def list_review_reply_configs(self) -> list[ReviewReplyConfig]:
        """Return all review reply configs, oldest first."""
        configs = self._load_all(REVIEW_REPLY_CONFIG_KEY_FORMAT.format("*"), ReviewReplyConfig)
        return sorted(configs, key=lambda c: c.created_at)

    # ------------------------------------------------------------------
    # Processed reviews
    # ------------------------------------------------------------------

    def is_review_processed(self, location_id: str, review_id: str) -> bool:
        return self.client.exists(PROCESSED_REVIEW_KEY_FORMAT.format(location_id, review_id))

    def mark_review_processed(self, marker: ProcessedReview) -> None:
        # No TTL: markers are kept forever
        key = PROCESSED_REVIEW_KEY_FORMAT.format(marker.location_id, marker.review_id)
        self.client.set(key, marker.model_dump_json())

    # ------------------------------------------------------------------
    # Daily auto-posting stats
    # ------------------------------------------------------------------

    def record_post_result(self, day: date, success: bool) -> None:
        """Increment today's post counters; the hash expires after two days."""
        key = AUTO_POSTING_STATS_KEY_FORMAT.format(day.isoformat())
        self.client.hincrby(key, "total", 1)
        self.client.hincrby(key, "successful" if success else "failed", 1)
        self.client.expire(key, DAILY_STATS_TTL_SECONDS)

    def get_post_stats(self, day: date) -> dict[str, int]:
        key = AUTO_POSTING_STATS_KEY_FORMAT.format(day.isoformat())
        raw = self.client.hgetall(key) or {}
        return {
            "total": int(raw.get("total", 0)),
            "successful": int(raw.get("successful", 0)),
            "failed": int(raw.get("failed", 0)),
        }

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    def add_notification(self, notification: Notification) -> None:
        self.client.push_capped(
            NOTIFICATIONS_KEY, notification.model_dump_json(), MAX_NOTIFICATIONS
        )

    def list_notifications(self, limit: int = MAX_NOTIFICATIONS) -> list[Notification]:
        """Newest first."""
        notifications = []
        for raw in self.client.lrange(NOTIFICATIONS_KEY, 0, limit - 1):
            try:
                notifications.append(Notification.model_validate_json(raw))
            except ValidationError as e:
                logger.error(f"[RedisAutomationDAO] Skipping malformed notification: {e}")
        return notifications

    def mark_notifications_read(self, ids: Optional[list[str]] = None) -> int:
        """Mark the given notifications (all when ids is None) as read.

        Returns:
            Number of notifications changed
        """
        notifications = self.list_notifications(MAX_NOTIFICATIONS)
        changed = 0
        for notification in notifications:
            if notification.read:
                continue
            if ids is None or notification.id in ids:
                notification.read = True
                changed += 1

        if changed:
            self.client.replace_list(
                NOTIFICATIONS_KEY, [n.model_dump_json() for n in notifications]
            )
        return changed

    # ------------------------------------------------------------------
    # Cross-replica job locks
    # ------------------------------------------------------------------

    def acquire_lock(self, job_name: str, ttl_seconds: int) -> Optional[str]:
        """Try to take the named lock.

        Returns:
            The lock token when acquired, else None
        """
        token = uuid.uuid4().hex
        key = AUTOMATION_LOCK_KEY_FORMAT.format(job_name)
        if self.client.set_nx(key, token, ttl_seconds):
            return token
        return None

    def release_lock(self, job_name: str, token: str) -> None:
        """Release the lock if it is still held by token."""
        key = AUTOMATION_LOCK_KEY_FORMAT.format(job_name)
        if self.client.get(key) == token:
            self.client.del_(key)

    # ------------------------------------------------------------------

    def _load_all(self, pattern: str, model):
        keys = self.client.keys(pattern)
        items = []
        for key, json_str in zip(keys, self.client.mget(keys)):
            if not json_str:
                continue
            try:
                items.append(model.model_validate_json(json_str))
            except ValidationError as e:
                logger.error(f"[RedisAutomationDAO] Failed to parse {key}: {e}")
        return items
