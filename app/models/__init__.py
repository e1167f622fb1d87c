"""Data models package for gbp-dashboard."""
from app.models.business import (
    BusinessAccount,
    LocationProfile,
    LocationAddress,
    LocationMetadata,
)
from app.models.post import (
    LocalPost,
    CreatePostRequest,
    CallToAction,
    MediaItem,
)
from app.models.review import (
    Review,
    Reviewer,
    ReviewReply,
    ReviewReplyRequest,
)
from app.models.tokens import (
    GoogleTokens,
    UserInfo,
    StoredTokenData,
)
from app.models.automation import (
    AutoPostingConfig,
    AutoPostingConfigUpdate,
    AutoPostingGlobalStats,
    AutoPostingStats,
    PostSchedule,
    PostButton,
    ReviewReplyConfig,
    ReviewReplySettings,
    ProcessedReview,
)
from app.models.content import PostContent, PostCallToAction
from app.models.notification import Notification

__all__ = [
    # Business profile models
    "BusinessAccount",
    "LocationProfile",
    "LocationAddress",
    "LocationMetadata",
    # Post models
    "LocalPost",
    "CreatePostRequest",
    "CallToAction",
    "MediaItem",
    # Review models
    "Review",
    "Reviewer",
    "ReviewReply",
    "ReviewReplyRequest",
    # Token models
    "GoogleTokens",
    "UserInfo",
    "StoredTokenData",
    # Automation models
    "AutoPostingConfig",
    "AutoPostingConfigUpdate",
    "AutoPostingGlobalStats",
    "AutoPostingStats",
    "PostSchedule",
    "PostButton",
    "ReviewReplyConfig",
    "ReviewReplySettings",
    "ProcessedReview",
    # Content and notification models
    "PostContent",
    "PostCallToAction",
    "Notification",
]
