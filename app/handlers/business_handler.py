"""Business Profile proxy handler for HTTP requests."""
import logging
from typing import Optional

import httpx

from app.errors import ProxyError
from app.models import CreatePostRequest, ReviewReplyRequest
from app.services.business_profile_service import BusinessProfileService

logger = logging.getLogger(__name__)

SERVER_LOGS_HINT = "Check server logs for more information"


def _upstream_details(error: httpx.HTTPError):
    """Google's error body when there is one."""
    if isinstance(error, httpx.HTTPStatusError):
        try:
            return error.response.json()
        except ValueError:
            return error.response.text or None
    return None


class BusinessHandler:
    """Turns Business Profile service results into the JSON bodies the dashboard expects."""

    def __init__(self, business_service: BusinessProfileService):
        self.business_service = business_service

    async def get_accounts(self, access_token: str) -> dict:
        try:
            accounts = await self.business_service.list_accounts(access_token)
        except httpx.HTTPError as e:
            logger.error(f"[BusinessHandler] Error fetching accounts: {e}")
            raise ProxyError(500, "Failed to fetch accounts", message=str(e))
        return {"accounts": accounts}

    async def get_locations(self, access_token: str, account_id: str) -> dict:
        try:
            locations = await self.business_service.list_locations(access_token, account_id)
        except httpx.HTTPError as e:
            logger.error(f"[BusinessHandler] Error fetching locations for {account_id}: {e}")
            raise ProxyError(
                500,
                "Failed to fetch locations",
                message=str(e),
                details=_upstream_details(e),
            )
        return {"locations": locations}

    async def create_post(
        self, access_token: str, location_name: str, request: CreatePostRequest
    ) -> dict:
        return await self.business_service.create_post(access_token, location_name, request)

    async def get_posts(
        self, access_token: str, location_id: str, account_id: Optional[str] = None
    ) -> dict:
        posts = await self.business_service.list_posts(access_token, location_id, account_id)
        return {"posts": posts}

    async def get_reviews(
        self,
        access_token: str,
        location_id: str,
        page_size: int = 50,
        page_token: Optional[str] = None,
        account_id: Optional[str] = None,
    ) -> dict:
        logger.info(f"[BusinessHandler] Fetching reviews for location {location_id}")
        try:
            result = await self.business_service.list_reviews(
                access_token, location_id, account_id, page_size, page_token
            )
        except httpx.HTTPError as e:
            logger.error(f"[BusinessHandler] Error fetching reviews: {e}")
            raise ProxyError(
                500, "Failed to fetch reviews", message=str(e), details=SERVER_LOGS_HINT
            )

        reviews = [r.model_dump(by_alias=True) for r in result["reviews"]]
        return {
            "reviews": reviews,
            "nextPageToken": result["next_page_token"],
            "apiUsed": result["api_used"],
            "totalCount": len(reviews),
        }

    async def reply_to_review(
        self,
        access_token: str,
        location_id: str,
        review_id: str,
        request: ReviewReplyRequest,
        account_id: Optional[str] = None,
    ) -> dict:
        error = request.validation_error()
        if error:
            raise ProxyError(400, error)

        logger.info(f"[BusinessHandler] Replying to review {review_id} for location {location_id}")
        try:
            result = await self.business_service.reply_to_review(
                access_token, location_id, review_id, request.comment, account_id
            )
        except httpx.HTTPError as e:
            logger.error(f"[BusinessHandler] Error replying to review: {e}")
            raise ProxyError(
                500, "Failed to reply to review", message=str(e), details=SERVER_LOGS_HINT
            )

        return {
            "success": True,
            "reply": result["reply"],
            "apiUsed": result["api_used"],
            "message": "Reply posted successfully",
        }
