"""Business Profile proxy operations with mock and simulated fallbacks."""
import logging
import random
from datetime import datetime, timezone
from typing import Optional

import httpx

from app.api.google_business_client import GoogleBusinessAPIClient
from app.errors import ProxyError
from app.metrics import FALLBACK_RESPONSES_TOTAL
from app.models import BusinessAccount, CreatePostRequest, LocalPost, Review
from app.services.mock_data import generate_mock_reviews

logger = logging.getLogger(__name__)

API_USED_V4 = "My Business v4"
API_USED_MOCK = "Mock Data (Demo Mode)"
API_USED_SIMULATED = "Simulated (Demo Mode)"

POSTS_API_HELP = (
    "IMPORTANT: Google has restricted access to the Posts API (localPosts). This API "
    "may not be available for all developers and might require special approval from "
    "Google. The Posts API is currently limited or deprecated."
)
POSTS_API_STATUS = "Google Posts API access may be restricted"
POSTS_API_RECOMMENDATION = (
    "Consider using Google Business Profile manager directly or contact Google for "
    "API access approval."
)
POST_SUCCESS_MESSAGE = (
    "Post successfully submitted to Google Business Profile! It may take some time to "
    "appear as it goes through Google's review process."
)
POST_SIMULATED_MESSAGE = (
    "Post creation simulated due to Google API restrictions. This post was not "
    "actually submitted to Google Business Profile."
)
POST_SIMULATED_WARNING = (
    "Google has restricted access to the Posts API. Real posting is not currently available."
)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class BusinessProfileService:
    """Wraps the Google client and applies the dashboard's degradation rules.

    With simulate_on_api_failure enabled, failures on posts, reviews and
    replies are replaced by empty, mock or simulated data so the dashboard
    keeps working while Google restricts these APIs. Account and location
    failures always propagate.
    """

    def __init__(
        self,
        google_client: GoogleBusinessAPIClient,
        simulate_on_api_failure: bool = True,
        rng: Optional[random.Random] = None,
    ):
        self.google_client = google_client
        self.simulate_on_api_failure = simulate_on_api_failure
        self.rng = rng or random.Random()

    async def list_accounts(self, access_token: str) -> list[dict]:
        return await self.google_client.list_accounts(access_token)

    async def list_locations(self, access_token: str, account: str) -> list[dict]:
        return await self.google_client.list_locations(access_token, account)

    async def resolve_location_resource(self, access_token: str, location: str) -> str:
        """Expand a bare location id to accounts/{first account}/locations/{id}."""
        if location.startswith("accounts/"):
            return location

        location_id = location.rsplit("/", 1)[-1]
        account_id = None
        try:
            accounts = await self.google_client.list_accounts(access_token)
            if accounts:
                account_id = BusinessAccount.model_validate(accounts[0]).account_id
        except httpx.HTTPError as e:
            logger.warning(f"[BusinessProfileService] Could not look up account id: {e}")

        if not account_id:
            logger.info("[BusinessProfileService] No account id found, using location id")
            account_id = location_id

        return f"accounts/{account_id}/locations/{location_id}"

    async def create_post(
        self, access_token: str, location: str, request: CreatePostRequest
    ) -> dict:
        """Create a local post, degrading as the Posts API allows.

        Raises:
            ProxyError: 400 when Google rejects the post with a JSON error body,
                500 when the call fails and simulation is disabled
        """
        location_name = await self.resolve_location_resource(access_token, location)
        body = request.to_google_body()

        logger.info(f"[BusinessProfileService] Creating post for {location_name}")

        try:
            data = await self.google_client.create_local_post(access_token, location_name, body)
        except httpx.HTTPStatusError as e:
            error_body = self._json_error_body(e.response)
            if error_body is not None:
                error = error_body.get("error") or {}
                raise ProxyError(
                    400,
                    "Google Business Profile API Error",
                    message=error.get("message") or "Unknown API error",
                    details=error.get("details") or [],
                    help=POSTS_API_HELP,
                    apiStatus=POSTS_API_STATUS,
                    recommendation=POSTS_API_RECOMMENDATION,
                )
            return self._simulated_post_or_raise(location_name, request, e)
        except httpx.RequestError as e:
            return self._simulated_post_or_raise(location_name, request, e)

        post = LocalPost.model_validate(data)
        logger.info(
            f"[BusinessProfileService] Post created: {post.name} (state: {post.state or 'UNKNOWN'})"
        )
        return {
            "success": True,
            "post": data,
            "status": post.state or "PENDING",
            "message": POST_SUCCESS_MESSAGE,
            "realTime": True,
        }

    def _simulated_post_or_raise(
        self, location_name: str, request: CreatePostRequest, error: Exception
    ) -> dict:
        if not self.simulate_on_api_failure:
            raise ProxyError(500, "Failed to create post", message=str(error))

        logger.warning(
            "[BusinessProfileService] Posts API not accessible, returning simulated post"
        )
        FALLBACK_RESPONSES_TOTAL.labels(endpoint="create_post", kind="simulated").inc()

        now = datetime.now(timezone.utc)
        timestamp = _now_iso()
        post = LocalPost(
            name=f"{location_name}/localPosts/{int(now.timestamp() * 1000)}",
            summary=request.summary,
            topic_type=request.topic_type,
            create_time=timestamp,
            update_time=timestamp,
            state="SIMULATED",
        )
        return {
            "success": True,
            "post": post.model_dump(by_alias=True, exclude_none=True),
            "status": "SIMULATED",
            "message": POST_SIMULATED_MESSAGE,
            "realTime": False,
            "warning": POST_SIMULATED_WARNING,
        }

    @staticmethod
    def _json_error_body(response: httpx.Response) -> Optional[dict]:
        try:
            body = response.json()
        except ValueError:
            return None
        return body if isinstance(body, dict) else None

    async def list_posts(
        self, access_token: str, location_id: str, account_id: Optional[str] = None
    ) -> list[dict]:
        """A location's posts; any failure yields an empty list."""
        try:
            posts = await self.google_client.list_local_posts(access_token, location_id, account_id)
        except httpx.HTTPError as e:
            logger.warning(
                f"[BusinessProfileService] Posts fetch failed for {location_id}, "
                f"returning empty list: {e}"
            )
            FALLBACK_RESPONSES_TOTAL.labels(endpoint="list_posts", kind="empty").inc()
            return []

        logger.info(f"[BusinessProfileService] Found {len(posts)} posts for {location_id}")
        return posts

    async def list_reviews(
        self,
        access_token: str,
        location_id: str,
        account_id: Optional[str] = None,
        page_size: int = 50,
        page_token: Optional[str] = None,
        allow_mock: bool = True,
    ) -> dict:
        """One page of reviews, or demo reviews when the API is unavailable.

        Returns:
            {"reviews": list[Review], "next_page_token": str | None, "api_used": str}

        Raises:
            httpx.HTTPError: When the fetch fails and mock data is not allowed
        """
        try:
            data = await self.google_client.list_reviews(
                access_token, location_id, account_id, page_size, page_token
            )
        except httpx.HTTPError as e:
            if not (allow_mock and self.simulate_on_api_failure):
                raise
            logger.warning(
                f"[BusinessProfileService] Reviews API failed for {location_id}, "
                f"using mock data: {e}"
            )
            FALLBACK_RESPONSES_TOTAL.labels(endpoint="list_reviews", kind="mock").inc()
            return {
                "reviews": generate_mock_reviews(location_id, rng=self.rng),
                "next_page_token": None,
                "api_used": API_USED_MOCK,
            }

        reviews = [Review.model_validate(r) for r in data.get("reviews", [])]
        logger.info(f"[BusinessProfileService] Found {len(reviews)} reviews for {location_id}")
        return {
            "reviews": reviews,
            "next_page_token": data.get("nextPageToken"),
            "api_used": API_USED_V4,
        }

    async def reply_to_review(
        self,
        access_token: str,
        location_id: str,
        review_id: str,
        comment: str,
        account_id: Optional[str] = None,
    ) -> dict:
        """Post an owner reply; simulates success when the API is unavailable.

        Returns:
            {"reply": {"comment", "updateTime"}, "api_used": str}

        Raises:
            httpx.HTTPError: When the call fails and simulation is disabled
        """
        comment = comment.strip()
        try:
            data = await self.google_client.reply_to_review(
                access_token, location_id, review_id, comment, account_id
            )
            logger.info(f"[BusinessProfileService] Reply posted to review {review_id}")
            return {"reply": data, "api_used": API_USED_V4}
        except httpx.HTTPError as e:
            if not self.simulate_on_api_failure:
                raise
            logger.warning(
                f"[BusinessProfileService] Reply API failed for review {review_id}, "
                f"simulating success: {e}"
            )
            FALLBACK_RESPONSES_TOTAL.labels(endpoint="review_reply", kind="simulated").inc()
            return {
                "reply": {"comment": comment, "updateTime": _now_iso()},
                "api_used": API_USED_SIMULATED,
            }
