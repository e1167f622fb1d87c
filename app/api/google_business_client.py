"""Google Business Profile REST client with async HTTP support."""
import logging
import time
from typing import Optional

import httpx

from app.metrics import (
    GOOGLE_API_CALLS_TOTAL,
    GOOGLE_API_CALL_DURATION_SECONDS,
    GOOGLE_API_ERRORS_TOTAL,
)

logger = logging.getLogger(__name__)

ACCOUNT_MANAGEMENT_URL = "https://mybusinessaccountmanagement.googleapis.com/v1"
BUSINESS_INFORMATION_URL = "https://mybusinessbusinessinformation.googleapis.com/v1"
BUSINESS_PROFILE_URL = "https://businessprofile.googleapis.com/v1"
BUSINESS_PERFORMANCE_URL = "https://businessprofileperformance.googleapis.com/v1"
MY_BUSINESS_V4_URL = "https://mybusiness.googleapis.com/v4"

LOCATION_READ_MASK = (
    "name,title,storefrontAddress,websiteUri,phoneNumbers,categories,latlng,metadata"
)
LOCATIONS_PAGE_SIZE = 100


def account_parent(account: str) -> str:
    """Accept "123" or "accounts/123" and return "accounts/123"."""
    return account if account.startswith("accounts/") else f"accounts/{account}"


class GoogleBusinessAPIClient:
    """Async HTTP client for the Google Business Profile family of APIs.

    Every method takes the caller's OAuth access token; the client itself
    holds no credentials.
    """

    def __init__(self, timeout: float = 15.0):
        self.timeout = timeout
        self.client = httpx.AsyncClient(
            timeout=timeout,
            limits=httpx.Limits(max_keepalive_connections=10, max_connections=20),
        )

    async def close(self):
        """Close the HTTP client and clean up resources."""
        await self.client.aclose()

    async def _request(
        self,
        method: str,
        url: str,
        access_token: str,
        endpoint: str,
        params: Optional[dict] = None,
        json_body: Optional[dict] = None,
    ) -> dict:
        """Make an authenticated request against a Google API.

        Args:
            method: HTTP method
            url: Full request URL
            access_token: OAuth bearer token
            endpoint: Logical endpoint name used as the metrics label
            params: Query parameters
            json_body: JSON request body

        Returns:
            JSON response as dict (empty dict for empty bodies)

        Raises:
            httpx.HTTPStatusError: If response status is not 2xx
            httpx.RequestError: If request fails
        """
        logger.debug(f"[GoogleBusinessAPIClient] {method} {url} params={params}")

        start_time = time.perf_counter()

        try:
            response = await self.client.request(
                method=method,
                url=url,
                params=params,
                json=json_body,
                headers={
                    "Authorization": f"Bearer {access_token}",
                    "Content-Type": "application/json",
                },
            )

            logger.debug(f"[GoogleBusinessAPIClient] Response status: {response.status_code}")

            response.raise_for_status()

            response_json = response.json() if response.content else {}

            duration = time.perf_counter() - start_time
            GOOGLE_API_CALL_DURATION_SECONDS.labels(endpoint=endpoint).observe(duration)
            GOOGLE_API_CALLS_TOTAL.labels(endpoint=endpoint, status="success").inc()

            return response_json

        except httpx.HTTPStatusError as e:
            duration = time.perf_counter() - start_time
            GOOGLE_API_CALL_DURATION_SECONDS.labels(endpoint=endpoint).observe(duration)
            GOOGLE_API_CALLS_TOTAL.labels(endpoint=endpoint, status="error").inc()
            GOOGLE_API_ERRORS_TOTAL.labels(endpoint=endpoint, error_type="http_error").inc()
            logger.error(
                f"[GoogleBusinessAPIClient] HTTP {e.response.status_code} on {method} {endpoint}"
            )
            raise
        except httpx.TimeoutException as e:
            duration = time.perf_counter() - start_time
            GOOGLE_API_CALL_DURATION_SECONDS.labels(endpoint=endpoint).observe(duration)
            GOOGLE_API_CALLS_TOTAL.labels(endpoint=endpoint, status="error").inc()
            GOOGLE_API_ERRORS_TOTAL.labels(endpoint=endpoint, error_type="timeout").inc()
            logger.error(f"[GoogleBusinessAPIClient] Timeout on {method} {endpoint}: {e}")
            raise
        except httpx.RequestError as e:
            duration = time.perf_counter() - start_time
            GOOGLE_API_CALL_DURATION_SECONDS.labels(endpoint=endpoint).observe(duration)
            GOOGLE_API_CALLS_TOTAL.labels(endpoint=endpoint, status="error").inc()
            GOOGLE_API_ERRORS_TOTAL.labels(endpoint=endpoint, error_type="connection_error").inc()
            logger.error(f"[GoogleBusinessAPIClient] Request error on {method} {endpoint}: {e}")
            raise

    async def list_accounts(self, access_token: str) -> list[dict]:
        """List the business accounts the token's user can manage."""
        data = await self._request(
            "GET", f"{ACCOUNT_MANAGEMENT_URL}/accounts", access_token, endpoint="accounts"
        )
        accounts = data.get("accounts", [])
        logger.info(f"[GoogleBusinessAPIClient] Found {len(accounts)} business accounts")
        return accounts

    async def list_locations(self, access_token: str, account: str) -> list[dict]:
        """List all locations of an account, following nextPageToken pages.

        Args:
            access_token: OAuth bearer token
            account: "123" or "accounts/123"
        """
        parent = account_parent(account)
        locations: list[dict] = []
        page_token: Optional[str] = None

        while True:
            params = {"readMask": LOCATION_READ_MASK, "pageSize": LOCATIONS_PAGE_SIZE}
            if page_token:
                params["pageToken"] = page_token

            data = await self._request(
                "GET",
                f"{BUSINESS_INFORMATION_URL}/{parent}/locations",
                access_token,
                endpoint="locations",
                params=params,
            )
            locations.extend(data.get("locations", []))

            page_token = data.get("nextPageToken")
            if not page_token:
                break

        logger.info(f"[GoogleBusinessAPIClient] Found {len(locations)} locations for {parent}")
        return locations

    async def create_local_post(self, access_token: str, location_name: str, body: dict) -> dict:
        """Create a local post.

        Tries the Business Profile API first; if it cannot be reached, retries
        once against the Business Information API with the same path.

        Args:
            location_name: accounts/{a}/locations/{l}
            body: camelCase localPost body
        """
        try:
            return await self._request(
                "POST",
                f"{BUSINESS_PROFILE_URL}/{location_name}/localPosts",
                access_token,
                endpoint="local_posts_create",
                json_body=body,
            )
        except httpx.RequestError:
            logger.warning(
                "[GoogleBusinessAPIClient] Business Profile API unreachable, "
                "trying Business Information API"
            )
            return await self._request(
                "POST",
                f"{BUSINESS_INFORMATION_URL}/{location_name}/localPosts",
                access_token,
                endpoint="local_posts_create_fallback",
                json_body=body,
            )

    async def list_local_posts(
        self, access_token: str, location_id: str, account_id: Optional[str] = None
    ) -> list[dict]:
        """List a location's posts, falling back to My Business v4 on 404."""
        try:
            data = await self._request(
                "GET",
                f"{BUSINESS_PERFORMANCE_URL}/locations/{location_id}/localPosts",
                access_token,
                endpoint="local_posts_list",
            )
        except httpx.HTTPStatusError as e:
            if e.response.status_code != 404:
                raise
            account = account_id or location_id
            data = await self._request(
                "GET",
                f"{MY_BUSINESS_V4_URL}/accounts/{account}/locations/{location_id}/localPosts",
                access_token,
                endpoint="local_posts_list_v4",
            )

        return data.get("localPosts", [])

    async def list_reviews(
        self,
        access_token: str,
        location_id: str,
        account_id: Optional[str] = None,
        page_size: int = 50,
        page_token: Optional[str] = None,
    ) -> dict:
        """Fetch one page of reviews from My Business v4.

        Returns:
            Raw response dict with "reviews" and optional "nextPageToken"
        """
        account = account_id or location_id
        params = {"pageSize": page_size}
        if page_token:
            params["pageToken"] = page_token

        return await self._request(
            "GET",
            f"{MY_BUSINESS_V4_URL}/accounts/{account}/locations/{location_id}/reviews",
            access_token,
            endpoint="reviews_list",
            params=params,
        )

    async def reply_to_review(
        self,
        access_token: str,
        location_id: str,
        review_id: str,
        comment: str,
        account_id: Optional[str] = None,
    ) -> dict:
        """Create or update the owner reply on a review."""
        account = account_id or location_id
        return await self._request(
            "PUT",
            f"{MY_BUSINESS_V4_URL}/accounts/{account}/locations/{location_id}"
            f"/reviews/{review_id}/reply",
            access_token,
            endpoint="review_reply",
            json_body={"comment": comment},
        )
