"""Dependency injection container for application components."""
import logging

import redis

from app.config import Settings
from app.db import RedisClient
from app.dao import RedisAutomationDAO
from app.api import GoogleBusinessAPIClient, GoogleOAuthClient, OpenAIContentClient
from app.services import (
    AutoPostingService,
    BusinessProfileService,
    ContentGeneratorService,
    NotificationService,
    ReviewAutomationService,
    TokenService,
)
from app.handlers import BusinessHandler

logger = logging.getLogger(__name__)


class Container:
    """Dependency injection container.

    Initializes and wires up all application dependencies.
    """

    def __init__(self, settings: Settings):
        """Initialize container with all dependencies.

        Args:
            settings: Application settings
        """
        logger.info("[Container] Initializing container")
        self.settings = settings

        # Initialize Redis client
        logger.info(f"[Container] Connecting to Redis at {settings.redis_address}")
        redis_internal_client = redis.Redis(
            host=settings.redis_host,
            port=settings.redis_port,
            password=settings.redis_password or None,
            db=settings.redis_db,
            decode_responses=True,
        )
        self.redis_client = RedisClient(redis_internal_client)
        self.automation_dao = RedisAutomationDAO(self.redis_client)

        # Google clients
        self.google_business_api = GoogleBusinessAPIClient(
            timeout=settings.google_api_timeout_seconds,
        )
        self.google_oauth_client = GoogleOAuthClient(
            client_id=settings.google_client_id,
            client_secret=settings.google_client_secret,
            redirect_uri=settings.google_redirect_uri_resolved,
            scopes=settings.google_oauth_scopes,
        )

        # Content generation (Azure OpenAI or OpenAI; templates when neither is set)
        self.openai_content_client = OpenAIContentClient.from_settings(settings)
        if self.openai_content_client is None:
            logger.warning(
                "[Container] No OpenAI credentials configured. "
                "Post content and review replies will use templates."
            )

        # Initialize services
        self.token_service = TokenService(self.google_oauth_client, self.automation_dao)
        self.business_profile_service = BusinessProfileService(
            self.google_business_api,
            simulate_on_api_failure=settings.simulate_on_api_failure,
        )
        self.content_generator_service = ContentGeneratorService(self.openai_content_client)
        self.notification_service = NotificationService(self.automation_dao)

        self.review_automation_service = ReviewAutomationService(
            self.automation_dao,
            self.token_service,
            self.business_profile_service,
            self.content_generator_service,
            self.notification_service,
        )
        self.auto_posting_service = AutoPostingService(
            self.automation_dao,
            self.token_service,
            self.business_profile_service,
            self.content_generator_service,
            self.notification_service,
            timezone=settings.scheduler_timezone,
            max_attempts=settings.auto_post_max_attempts,
            retry_delay_seconds=settings.auto_post_retry_delay_seconds,
        )

        # Initialize handlers
        self.business_handler = BusinessHandler(self.business_profile_service)

        logger.info("[Container] Container initialized successfully")

    async def shutdown(self):
        """Clean up resources on shutdown."""
        logger.info("[Container] Shutting down container")
        self.review_automation_service.stop()
        self.auto_posting_service.stop()

        try:
            await self.google_business_api.close()
            logger.info("[Container] Google Business API client closed")
        except Exception as e:
            logger.error(f"[Container] Error closing Google Business API client: {e}")

        try:
            await self.google_oauth_client.close()
            logger.info("[Container] Google OAuth client closed")
        except Exception as e:
            logger.error(f"[Container] Error closing Google OAuth client: {e}")

        if self.openai_content_client:
            try:
                await self.openai_content_client.close()
                logger.info("[Container] OpenAI content client closed")
            except Exception as e:
                logger.error(f"[Container] Error closing OpenAI content client: {e}")
