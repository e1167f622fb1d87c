"""Routes for auto-posting, review auto-reply, content drafting and notifications."""
import logging
from typing import Optional, Union

import httpx

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel, Field

from app.errors import ProxyError
from app.models import (
    AutoPostingConfig,
    AutoPostingConfigUpdate,
    AutoPostingGlobalStats,
    LocationProfile,
    PostContent,
    ReviewReplyConfig,
    ReviewReplyRequest,
    ReviewReplySettings,
)
from app.services.token_service import TokenError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["automation"])

# Global references - set during startup
_review_service = None
_posting_service = None
_content_generator = None
_notifications = None
_token_service = None


def set_automation_dependencies(
    review_service, posting_service, content_generator, notifications, token_service
):
    """Set the dependencies for automation routes (called during startup)."""
    global _review_service, _posting_service, _content_generator, _notifications, _token_service
    _review_service = review_service
    _posting_service = posting_service
    _content_generator = content_generator
    _notifications = notifications
    _token_service = token_service
    logger.info("[AutomationRouter] Dependencies injected")


def _require(dependency):
    if dependency is None:
        raise HTTPException(status_code=503, detail="Service not ready")
    return dependency


class GenerateReplyRequest(BaseModel):
    review_text: str = ""
    reviewer_name: Optional[str] = None
    rating: int = Field(ge=1, le=5)
    business_name: str


class GeneratePostRequest(BaseModel):
    business_name: str
    category: str = "business"
    keywords: Union[str, list[str]] = Field(default_factory=list)
    location_name: Optional[str] = None


class MarkReadRequest(BaseModel):
    ids: Optional[list[str]] = None


def _posting_config_or_404(location_id: str) -> AutoPostingConfig:
    config = _require(_posting_service).get_configuration(location_id)
    if config is None:
        raise ProxyError(404, "Auto-posting configuration not found")
    return config


@router.get("/api/automation/status", summary="Automation and integration status")
def get_status() -> dict:
    review_service = _require(_review_service)
    posting_service = _require(_posting_service)
    return {
        "reviewAutomation": {
            "running": review_service.is_running(),
            "enabledConfigurations": len(review_service.get_enabled_configurations()),
        },
        "autoPosting": {
            "running": posting_service.is_running(),
            "activeConfigurations": posting_service.get_global_stats().active_configurations,
        },
        "google": _require(_token_service).status(),
        "contentGenerator": _require(_content_generator).status(),
    }


# ----------------------------------------------------------------------
# Auto-posting
# ----------------------------------------------------------------------

@router.get("/api/automation/posting", response_model=list[AutoPostingConfig])
def list_posting_configurations() -> list[AutoPostingConfig]:
    return _require(_posting_service).list_configurations()


@router.get("/api/automation/posting/stats", response_model=AutoPostingGlobalStats)
def get_posting_stats() -> AutoPostingGlobalStats:
    return _require(_posting_service).get_global_stats()


@router.post(
    "/api/automation/posting/{location_id}/load",
    response_model=AutoPostingConfig,
    summary="Load a location's configuration, creating a default one",
)
def load_posting_configuration(location_id: str, profile: LocationProfile) -> AutoPostingConfig:
    posting_service = _require(_posting_service)
    if profile.location_id != location_id:
        profile = profile.model_copy(update={"location_id": location_id})
    return posting_service.get_or_create_configuration(profile)


@router.patch("/api/automation/posting/{location_id}", response_model=AutoPostingConfig)
def update_posting_configuration(
    location_id: str, changes: AutoPostingConfigUpdate
) -> AutoPostingConfig:
    config = _require(_posting_service).update_configuration(location_id, changes)
    if config is None:
        raise ProxyError(404, "Auto-posting configuration not found")
    return config


@router.post(
    "/api/automation/posting/{location_id}/keywords/generate",
    response_model=AutoPostingConfig,
)
def regenerate_keywords(location_id: str) -> AutoPostingConfig:
    config = _require(_posting_service).regenerate_keywords(location_id)
    if config is None:
        raise ProxyError(404, "Auto-posting configuration not found")
    return config


@router.post("/api/automation/posting/{location_id}/keywords/clean")
def clean_keywords(location_id: str) -> dict:
    result = _require(_posting_service).clean_keywords(location_id)
    if result is None:
        raise ProxyError(404, "Auto-posting configuration not found")
    config, removed = result
    return {"config": config.model_dump(mode="json"), "removed": removed}


@router.post("/api/automation/posting/{location_id}/run", summary="Post now")
async def run_post(location_id: str) -> dict:
    posting_service = _require(_posting_service)
    _posting_config_or_404(location_id)
    return await posting_service.execute_manual_post(location_id)


# ----------------------------------------------------------------------
# Review auto-reply
# ----------------------------------------------------------------------

@router.get("/api/automation/reviews", response_model=list[ReviewReplyConfig])
def list_review_configurations() -> list[ReviewReplyConfig]:
    return _require(_review_service).list_configurations()


@router.post("/api/automation/reviews/generate-reply", summary="Draft a reply to a review")
async def generate_reply(body: GenerateReplyRequest) -> dict:
    reply = await _require(_review_service).generate_ai_reply(
        body.review_text, body.reviewer_name, body.rating, body.business_name
    )
    return {"reply": reply}


@router.get("/api/automation/reviews/{location_id}", response_model=ReviewReplyConfig)
def get_review_configuration(location_id: str) -> ReviewReplyConfig:
    config = _require(_review_service).get_configuration(location_id)
    if config is None:
        raise ProxyError(404, "Review reply configuration not found")
    return config


@router.post(
    "/api/automation/reviews/{location_id}/{review_id}/reply",
    summary="Post an owner reply and stop auto-replying to the review",
)
async def post_manual_reply(
    location_id: str,
    review_id: str,
    body: ReviewReplyRequest,
    account_id: Optional[str] = Query(None, alias="accountId"),
) -> dict:
    review_service = _require(_review_service)
    error = body.validation_error()
    if error:
        raise ProxyError(400, error)

    try:
        result = await review_service.execute_manual_reply(
            location_id, review_id, body.comment, account_id
        )
    except TokenError as e:
        raise ProxyError(401, "Google account not connected", message=str(e))
    except httpx.HTTPError as e:
        logger.error(f"[AutomationRouter] Manual reply to review {review_id} failed: {e}")
        raise ProxyError(500, "Failed to reply to review", message=str(e))

    return {"success": True, "reply": result["reply"], "apiUsed": result["api_used"]}


@router.put("/api/automation/reviews/{location_id}", response_model=ReviewReplyConfig)
def save_review_configuration(
    location_id: str, settings: ReviewReplySettings
) -> ReviewReplyConfig:
    config = ReviewReplyConfig(location_id=location_id, **settings.model_dump())
    return _require(_review_service).save_configuration(config)


# ----------------------------------------------------------------------
# Content and notifications
# ----------------------------------------------------------------------

@router.post("/api/content/post", response_model=PostContent, summary="Draft post text")
async def generate_post_content(body: GeneratePostRequest) -> PostContent:
    return await _require(_content_generator).generate_post_content(
        body.business_name, body.category, body.keywords, body.location_name
    )


@router.get("/api/content/status")
def get_content_status() -> dict:
    return _require(_content_generator).status()


@router.get("/api/notifications")
def list_notifications(limit: int = Query(50, ge=1, le=50)) -> dict:
    notifications = _require(_notifications).list_recent(limit)
    return {"notifications": [n.model_dump(mode="json") for n in notifications]}


@router.post("/api/notifications/read")
def mark_notifications_read(body: Optional[MarkReadRequest] = None) -> dict:
    updated = _require(_notifications).mark_read(body.ids if body else None)
    return {"updated": updated}
