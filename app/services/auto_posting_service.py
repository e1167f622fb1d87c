"""Scheduled auto-posting: configuration lifecycle, due checks and post execution."""
import asyncio
import logging
from datetime import datetime
from typing import Callable, Optional

import httpx
import pytz
from pydantic import ValidationError

from app.dao.redis_automation_dao import RedisAutomationDAO
from app.errors import ProxyError
from app.metrics import AUTO_POST_RESULTS, AUTOMATION_ACTIVE_CONFIGURATIONS
from app.models import (
    AutoPostingConfig,
    AutoPostingConfigUpdate,
    AutoPostingGlobalStats,
    CallToAction,
    CreatePostRequest,
    LocationProfile,
)
from app.services.business_profile_service import BusinessProfileService
from app.services.content_generator_service import ContentGeneratorService
from app.services.keyword_service import clean_generic_keywords, generate_default_keywords
from app.services.notification_service import NotificationService
from app.services.schedule_calculator import calculate_next_post, is_post_due
from app.services.token_service import TokenError, TokenService

logger = logging.getLogger(__name__)

# Category substrings mapped to the call-to-action "auto" buttons pick
AUTO_BUTTON_RULES = [
    (("restaurant", "food", "cafe", "bakery", "pizza", "meal"), "ORDER"),
    (
        (
            "hotel", "lodging", "resort", "guest house", "bed & breakfast",
            "hostel", "beauty", "salon", "spa", "health", "clinic", "dental",
            "medical", "doctor",
        ),
        "BOOK",
    ),
    (("retail", "store", "shop", "boutique"), "SHOP"),
    (("school", "education", "academy", "training", "gym", "fitness", "yoga"), "SIGN_UP"),
]

BUTTON_ACTION_TYPES = {
    "learn_more": "LEARN_MORE",
    "book": "BOOK",
    "order": "ORDER",
    "shop": "SHOP",
    "buy": "SHOP",
    "sign_up": "SIGN_UP",
    "call": "CALL",
}


def auto_action_type(categories: list[str]) -> str:
    """Pick a call-to-action type from the location's primary category."""
    primary = categories[0].lower() if categories else ""
    for needles, action_type in AUTO_BUTTON_RULES:
        if any(n in primary for n in needles):
            return action_type
    return "LEARN_MORE"


def _utc_now() -> datetime:
    return datetime.now(pytz.utc)


class AutoPostingService:
    """Creates posts for locations whose schedule is due.

    A failed post is retried up to max_attempts times with a fixed delay and
    then counted as failed; the schedule still advances so a broken location
    does not post on every check.
    """

    def __init__(
        self,
        dao: RedisAutomationDAO,
        token_service: TokenService,
        business_service: BusinessProfileService,
        content_generator: ContentGeneratorService,
        notifications: NotificationService,
        timezone: str = "UTC",
        max_attempts: int = 2,
        retry_delay_seconds: float = 5.0,
        clock: Callable[[], datetime] = _utc_now,
    ):
        self.dao = dao
        self.token_service = token_service
        self.business_service = business_service
        self.content_generator = content_generator
        self.notifications = notifications
        self.tz = pytz.timezone(timezone)
        self.max_attempts = max(1, max_attempts)
        self.retry_delay_seconds = retry_delay_seconds
        self.clock = clock
        self._running = False

    def start(self) -> None:
        if not self._running:
            logger.info("[AutoPosting] Starting auto-posting service")
        self._running = True

    def stop(self) -> None:
        if self._running:
            logger.info("[AutoPosting] Stopping auto-posting service")
        self._running = False

    def is_running(self) -> bool:
        return self._running

    # ------------------------------------------------------------------
    # Configuration management
    # ------------------------------------------------------------------

    def next_post_for(self, config: AutoPostingConfig, now: Optional[datetime] = None) -> datetime:
        return calculate_next_post(
            config.schedule.frequency,
            config.schedule.time,
            config.schedule.custom_times,
            now=now or self.clock(),
            tz=self.tz,
        )

    def get_configuration(self, location_id: str) -> Optional[AutoPostingConfig]:
        return self.dao.get_auto_posting_config(location_id)

    def list_configurations(self) -> list[AutoPostingConfig]:
        return self.dao.list_auto_posting_configs()

    def get_or_create_configuration(self, profile: LocationProfile) -> AutoPostingConfig:
        """Load a location's configuration, creating a disabled default on first use.

        Configurations with an empty keyword list get default keywords.
        """
        config = self.dao.get_auto_posting_config(profile.location_id)

        if config is None:
            config = AutoPostingConfig(
                location_id=profile.location_id,
                business_name=profile.name,
                location_name=profile.name,
                account_id=profile.account_id,
                categories=profile.categories,
                website_url=profile.website_uri,
                phone_number=profile.phone_number,
                locality=profile.address.locality,
                keywords=generate_default_keywords(
                    profile.name, profile.address.locality, profile.categories
                ),
            )
            config.next_post = self.next_post_for(config)
            self.dao.set_auto_posting_config(config)
            logger.info(f"[AutoPosting] Created default configuration for {profile.name}")
            return config

        if not config.keywords:
            config.keywords = generate_default_keywords(
                config.business_name, config.locality or profile.address.locality, config.categories
            )
            self.dao.set_auto_posting_config(config)
            logger.info(f"[AutoPosting] Populated default keywords for {config.business_name}")

        return config

    def update_configuration(
        self, location_id: str, changes: AutoPostingConfigUpdate
    ) -> Optional[AutoPostingConfig]:
        """Apply a partial update. Returns None when the location has no configuration.

        next_post is recomputed when the config is enabled or its schedule changes.
        """
        config = self.dao.get_auto_posting_config(location_id)
        if config is None:
            return None

        update = changes.model_dump(exclude_unset=True)
        was_enabled = config.enabled
        try:
            updated = AutoPostingConfig.model_validate({**config.model_dump(), **update})
        except ValidationError as e:
            raise ProxyError(400, "Invalid request", message=str(e))

        schedule_changed = "schedule" in update and updated.schedule != config.schedule
        if (updated.enabled and not was_enabled) or schedule_changed or updated.next_post is None:
            updated.next_post = self.next_post_for(updated)

        self.dao.set_auto_posting_config(updated)
        logger.info(
            f"[AutoPosting] Updated configuration for {updated.business_name}: "
            f"{sorted(update.keys())}"
        )
        return updated

    def regenerate_keywords(self, location_id: str) -> Optional[AutoPostingConfig]:
        config = self.dao.get_auto_posting_config(location_id)
        if config is None:
            return None
        config.keywords = generate_default_keywords(
            config.business_name, config.locality, config.categories
        )
        self.dao.set_auto_posting_config(config)
        return config

    def clean_keywords(self, location_id: str) -> Optional[tuple[AutoPostingConfig, int]]:
        """Remove generic keywords. Returns the config and how many were removed."""
        config = self.dao.get_auto_posting_config(location_id)
        if config is None:
            return None
        cleaned = clean_generic_keywords(config.keywords)
        removed = len(config.keywords) - len(cleaned)
        if removed:
            config.keywords = cleaned
            self.dao.set_auto_posting_config(config)
        return config, removed

    def get_global_stats(self) -> AutoPostingGlobalStats:
        today = self.clock().astimezone(self.tz).date()
        daily = self.dao.get_post_stats(today)
        active = sum(1 for c in self.list_configurations() if c.enabled)
        return AutoPostingGlobalStats(
            total_posts_today=daily["total"],
            successful_posts_today=daily["successful"],
            failed_posts_today=daily["failed"],
            active_configurations=active,
        )

    # ------------------------------------------------------------------
    # Polling and execution
    # ------------------------------------------------------------------

    async def check_and_execute_posts(self) -> int:
        """Post for every enabled configuration that is due. Returns posts attempted."""
        if not self._running:
            return 0

        now = self.clock()
        enabled = [c for c in self.list_configurations() if c.enabled]
        AUTOMATION_ACTIVE_CONFIGURATIONS.labels(kind="auto_posting").set(len(enabled))

        due = [c for c in enabled if is_post_due(c, now)]
        if not due:
            return 0

        logger.info(f"[AutoPosting] {len(due)} of {len(enabled)} configurations due for posting")
        for config in due:
            await self.execute_post(config, trigger="scheduled")
        return len(due)

    async def execute_manual_post(self, location_id: str) -> dict:
        config = self.dao.get_auto_posting_config(location_id)
        if config is None:
            return {"success": False, "error": "Auto-posting is not configured for this location"}
        return await self.execute_post(config, trigger="manual")

    def build_call_to_action(self, config: AutoPostingConfig) -> Optional[CallToAction]:
        """Call-to-action from the button settings, or None when no button applies."""
        button = config.button
        if not button.enabled:
            return None

        if button.type == "auto":
            action_type = auto_action_type(config.categories)
        else:
            action_type = BUTTON_ACTION_TYPES[button.type]

        # CALL uses the listing's phone number and needs no URL
        if action_type == "CALL":
            return CallToAction(action_type="CALL")

        url = button.custom_url or config.website_url
        if not url:
            return None
        return CallToAction(action_type=action_type, url=url)

    async def execute_post(self, config: AutoPostingConfig, trigger: str = "scheduled") -> dict:
        """Generate, publish and record one post for a configuration.

        Returns:
            {"success": True, "post": {...}} or {"success": False, "error": "..."}
        """
        logger.info(f"[AutoPosting] Creating {trigger} post for {config.business_name}")

        result = await self._publish_with_retries(config)
        success = result["success"]

        # Reload so user edits made while publishing are not lost
        latest = self.dao.get_auto_posting_config(config.location_id) or config
        now = self.clock()
        latest.stats.total_posts += 1
        if success:
            latest.stats.successful_posts += 1
            latest.stats.last_error = None
            latest.last_post = now
        else:
            latest.stats.failed_posts += 1
            latest.stats.last_error = result["error"]
        if trigger == "scheduled" or latest.enabled:
            latest.next_post = self.next_post_for(latest, now)
        self.dao.set_auto_posting_config(latest)

        self.dao.record_post_result(now.astimezone(self.tz).date(), success)
        AUTO_POST_RESULTS.labels(result="success" if success else "error", trigger=trigger).inc()

        if success:
            self.notifications.notify(
                "post",
                "Post Published!",
                f"New post published for {config.business_name}",
                action_url="/posts",
            )
        else:
            self.notifications.notify(
                "system",
                "Auto-post Failed",
                f"Could not publish post for {config.business_name}: {result['error']}",
            )

        return result

    async def _publish_with_retries(self, config: AutoPostingConfig) -> dict:
        last_error = "Unknown error"
        for attempt in range(1, self.max_attempts + 1):
            try:
                response = await self._publish(config)
                logger.info(
                    f"[AutoPosting] Post for {config.business_name} published "
                    f"(attempt {attempt}, status {response['status']})"
                )
                return {"success": True, "post": response["post"], "status": response["status"]}
            except (ProxyError, TokenError, httpx.HTTPError) as e:
                last_error = str(e)
                logger.error(
                    f"[AutoPosting] Attempt {attempt}/{self.max_attempts} failed for "
                    f"{config.business_name}: {last_error}"
                )
                if attempt < self.max_attempts:
                    await asyncio.sleep(self.retry_delay_seconds)

        return {"success": False, "error": last_error}

    async def _publish(self, config: AutoPostingConfig) -> dict:
        access_token = await self.token_service.get_valid_access_token()
        if not access_token:
            raise TokenError("No Google account connected")

        content = await self.content_generator.generate_post_content(
            config.business_name,
            config.categories[0] if config.categories else "business",
            config.keywords,
            config.location_name or None,
        )
        request = CreatePostRequest(
            summary=content.content[:1500],
            call_to_action=self.build_call_to_action(config),
        )

        location = (
            f"accounts/{config.account_id}/locations/{config.location_id}"
            if config.account_id
            else config.location_id
        )
        return await self.business_service.create_post(access_token, location, request)
