"""Services package."""
from app.services.business_profile_service import BusinessProfileService
from app.services.content_generator_service import ContentGeneratorService
from app.services.token_service import TokenService, TokenError
from app.services.notification_service import NotificationService
from app.services.review_automation_service import ReviewAutomationService
from app.services.auto_posting_service import AutoPostingService

__all__ = [
    "BusinessProfileService",
    "ContentGeneratorService",
    "TokenService",
    "TokenError",
    "NotificationService",
    "ReviewAutomationService",
    "AutoPostingService",
]
