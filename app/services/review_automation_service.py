"""Review auto-reply poller and review reply configuration management."""
import logging
from datetime import datetime, timezone
from typing import Optional

import httpx

from app.dao.redis_automation_dao import RedisAutomationDAO
from app.metrics import AUTOMATION_ACTIVE_CONFIGURATIONS, REVIEW_AUTO_REPLY_RESULTS
from app.models import ProcessedReview, Review, ReviewReplyConfig
from app.services.business_profile_service import BusinessProfileService
from app.services.content_generator_service import ContentGeneratorService
from app.services.notification_service import NotificationService
from app.services.token_service import TokenError, TokenService

logger = logging.getLogger(__name__)


class ReviewAutomationService:
    """Replies automatically to new reviews of locations with auto-reply enabled.

    Each check walks the enabled configurations in creation order, fetches the
    location's reviews and handles every review not yet marked as processed.
    A review is marked processed once it is replied to, already has a reply, or
    does not meet the configuration's criteria. Failed replies stay unprocessed
    and are retried on the next check.
    """

    def __init__(
        self,
        dao: RedisAutomationDAO,
        token_service: TokenService,
        business_service: BusinessProfileService,
        content_generator: ContentGeneratorService,
        notifications: NotificationService,
    ):
        self.dao = dao
        self.token_service = token_service
        self.business_service = business_service
        self.content_generator = content_generator
        self.notifications = notifications
        self._running = False

    def start(self) -> None:
        if not self._running:
            logger.info("[ReviewAutomation] Starting review automation")
        self._running = True

    def stop(self) -> None:
        if self._running:
            logger.info("[ReviewAutomation] Stopping review automation")
        self._running = False

    def is_running(self) -> bool:
        return self._running

    # ------------------------------------------------------------------
    # Configuration management
    # ------------------------------------------------------------------

    def get_configuration(self, location_id: str) -> Optional[ReviewReplyConfig]:
        return self.dao.get_review_reply_config(location_id)

    def save_configuration(self, config: ReviewReplyConfig) -> ReviewReplyConfig:
        """Insert or replace a configuration, keeping its original creation time."""
        existing = self.dao.get_review_reply_config(config.location_id)
        if existing is not None:
            config = config.model_copy(
                update={"created_at": existing.created_at, "last_checked": existing.last_checked}
            )
        self.dao.set_review_reply_config(config)
        logger.info(
            f"[ReviewAutomation] Saved configuration for {config.business_name} "
            f"(enabled={config.enabled}, auto_reply={config.auto_reply_enabled})"
        )
        return config

    def list_configurations(self) -> list[ReviewReplyConfig]:
        return self.dao.list_review_reply_configs()

    def get_enabled_configurations(self) -> list[ReviewReplyConfig]:
        return [c for c in self.list_configurations() if c.enabled and c.auto_reply_enabled]

    # ------------------------------------------------------------------
    # Polling
    # ------------------------------------------------------------------

    async def check_and_process_reviews(self) -> dict:
        """Run one polling pass over all enabled configurations.

        Returns:
            Counts of locations checked and reviews replied to
        """
        summary = {"locations": 0, "replied": 0}
        if not self._running:
            return summary

        configs = self.get_enabled_configurations()
        AUTOMATION_ACTIVE_CONFIGURATIONS.labels(kind="review_reply").set(len(configs))
        logger.info(f"[ReviewAutomation] Checking {len(configs)} enabled review configurations")
        if not configs:
            return summary

        access_token = await self.token_service.get_valid_access_token()
        if not access_token:
            logger.warning("[ReviewAutomation] No access token available, skipping check")
            return summary

        for config in configs:
            summary["locations"] += 1
            summary["replied"] += await self.process_location_reviews(config, access_token)

        return summary

    async def process_location_reviews(self, config: ReviewReplyConfig, access_token: str) -> int:
        """Handle all unprocessed reviews of one location. Returns replies sent."""
        logger.info(f"[ReviewAutomation] Processing reviews for {config.business_name}")

        try:
            result = await self.business_service.list_reviews(
                access_token, config.location_id, config.account_id, allow_mock=False
            )
        except httpx.HTTPStatusError as e:
            if e.response.status_code >= 500:
                logger.warning(
                    f"[ReviewAutomation] Google API temporarily unavailable "
                    f"({e.response.status_code}), will retry on next check"
                )
            else:
                logger.error(
                    f"[ReviewAutomation] Failed to fetch reviews for {config.business_name}: "
                    f"HTTP {e.response.status_code}"
                )
            return 0
        except httpx.RequestError as e:
            logger.error(
                f"[ReviewAutomation] Failed to fetch reviews for {config.business_name}: {e}"
            )
            return 0

        reviews: list[Review] = result["reviews"]
        new_reviews = [
            r for r in reviews if not self.dao.is_review_processed(config.location_id, r.review_id)
        ]

        for review in new_reviews:
            self.notifications.notify(
                "review",
                "New Review Received!",
                f"{review.star_rating}⭐ review from {review.reviewer.display_name or 'Customer'} "
                f"for {config.business_name}",
                action_url="/reviews",
            )

        replied = 0
        for review in new_reviews:
            if await self.process_review(config, review, access_token):
                replied += 1

        latest = self.dao.get_review_reply_config(config.location_id) or config
        latest.last_checked = datetime.now(timezone.utc)
        self.dao.set_review_reply_config(latest)

        return replied

    async def process_review(
        self, config: ReviewReplyConfig, review: Review, access_token: str
    ) -> bool:
        """Reply to a single review if it qualifies. Returns True when a reply was sent."""
        if not self.should_reply(config, review):
            logger.info(f"[ReviewAutomation] Skipping review {review.review_id}, criteria not met")
            self._mark_processed(config.location_id, review.review_id)
            REVIEW_AUTO_REPLY_RESULTS.labels(result="skipped_criteria").inc()
            return False

        if review.has_reply:
            logger.info(f"[ReviewAutomation] Review {review.review_id} already has a reply")
            self._mark_processed(config.location_id, review.review_id)
            REVIEW_AUTO_REPLY_RESULTS.labels(result="skipped_has_reply").inc()
            return False

        logger.info(
            f"[ReviewAutomation] Generating auto-reply for review {review.review_id} "
            f"({review.star_rating} stars)"
        )

        try:
            reply_text = await self.generate_reply_text(config, review)
            await self.business_service.reply_to_review(
                access_token,
                config.location_id,
                review.review_id,
                reply_text,
                config.account_id,
            )
        except httpx.HTTPError as e:
            logger.error(f"[ReviewAutomation] Failed to reply to review {review.review_id}: {e}")
            REVIEW_AUTO_REPLY_RESULTS.labels(result="error").inc()
            return False

        self._mark_processed(config.location_id, review.review_id)
        REVIEW_AUTO_REPLY_RESULTS.labels(result="replied").inc()
        logger.info(f"[ReviewAutomation] Replied to review {review.review_id}")

        self.notifications.notify(
            "reply",
            "AI Reply Sent!",
            f"Auto-replied to {review.star_rating}⭐ review from "
            f"{review.reviewer.display_name or 'Customer'} for {config.business_name}",
            action_url="/reviews",
        )
        return True

    @staticmethod
    def should_reply(config: ReviewReplyConfig, review: Review) -> bool:
        if not config.auto_reply_enabled:
            return False
        if config.min_rating is not None and review.star_rating < config.min_rating:
            return False
        if config.max_rating is not None and review.star_rating > config.max_rating:
            return False
        return bool(review.comment.strip())

    async def generate_reply_text(self, config: ReviewReplyConfig, review: Review) -> str:
        """Custom template when configured, else a generated reply, else a generic one."""
        if config.reply_template and config.reply_template.strip():
            return self.content_generator.render_reply_template(
                config.reply_template,
                config.business_name,
                review.reviewer.display_name,
                review.star_rating,
                review.comment,
            )

        reply = await self.content_generator.generate_review_reply(
            config.business_name, review.comment, review.star_rating
        )
        return reply.strip() or self.content_generator.generic_reply(review.star_rating)

    def _mark_processed(self, location_id: str, review_id: str) -> None:
        self.dao.mark_review_processed(
            ProcessedReview(review_id=review_id, location_id=location_id)
        )

    # ------------------------------------------------------------------
    # Manual operations
    # ------------------------------------------------------------------

    async def execute_manual_reply(
        self,
        location_id: str,
        review_id: str,
        reply_text: str,
        account_id: Optional[str] = None,
        access_token: Optional[str] = None,
    ) -> dict:
        """Post a reply written by the owner and mark the review processed.

        Raises:
            TokenError: If no access token is available
            httpx.HTTPError: If the reply cannot be posted
        """
        access_token = access_token or await self.token_service.get_valid_access_token()
        if not access_token:
            raise TokenError("No Google account connected")

        result = await self.business_service.reply_to_review(
            access_token, location_id, review_id, reply_text, account_id
        )
        self._mark_processed(location_id, review_id)
        return result

    async def generate_ai_reply(
        self,
        review_text: str,
        reviewer_name: Optional[str],
        rating: int,
        business_name: str,
    ) -> str:
        logger.info(
            f"[ReviewAutomation] Generating reply for {reviewer_name or 'Customer'} "
            f"({rating} stars) at {business_name}"
        )
        reply = await self.content_generator.generate_review_reply(
            business_name, review_text, rating
        )
        return reply.strip() or self.content_generator.generic_reply(rating)
