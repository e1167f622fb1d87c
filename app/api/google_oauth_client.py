"""Google OAuth 2.0 client: authorization URL, code exchange, refresh and userinfo."""
import logging
import time
from typing import Optional
from urllib.parse import urlencode

import httpx

from app.metrics import (
    GOOGLE_API_CALLS_TOTAL,
    GOOGLE_API_CALL_DURATION_SECONDS,
    GOOGLE_API_ERRORS_TOTAL,
)

logger = logging.getLogger(__name__)

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://www.googleapis.com/oauth2/v2/userinfo"


class GoogleOAuthClient:
    """Async client for Google's OAuth endpoints."""

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        scopes: list[str],
        timeout: float = 20.0,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.scopes = scopes
        self.client = httpx.AsyncClient(timeout=timeout)

    async def close(self):
        await self.client.aclose()

    def build_authorization_url(self, state: Optional[str] = None) -> str:
        """Consent URL requesting offline access so Google issues a refresh token."""
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": " ".join(self.scopes),
            "access_type": "offline",
            "include_granted_scopes": "true",
            "prompt": "consent",
        }
        if state:
            params["state"] = state
        return f"{GOOGLE_AUTH_URL}?{urlencode(params)}"

    async def exchange_code(self, code: str) -> dict:
        """Exchange an authorization code for access and refresh tokens.

        Raises:
            httpx.HTTPError: If the token exchange fails
        """
        payload = {
            "code": code,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "redirect_uri": self.redirect_uri,
            "grant_type": "authorization_code",
        }
        logger.info(
            f"[GoogleOAuthClient] Exchanging authorization code (client_id: {self.client_id[:20]}...)"
        )
        return await self._call("POST", GOOGLE_TOKEN_URL, "oauth_token", data=payload)

    async def refresh_access_token(self, refresh_token: str) -> dict:
        """Get a new access token from a refresh token.

        Raises:
            httpx.HTTPError: If the refresh fails
        """
        payload = {
            "refresh_token": refresh_token,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "grant_type": "refresh_token",
        }
        logger.info("[GoogleOAuthClient] Refreshing access token")
        return await self._call("POST", GOOGLE_TOKEN_URL, "oauth_refresh", data=payload)

    async def get_user_info(self, access_token: str) -> dict:
        return await self._call(
            "GET",
            GOOGLE_USERINFO_URL,
            "oauth_userinfo",
            headers={"Authorization": f"Bearer {access_token}"},
        )

    async def _call(
        self,
        method: str,
        url: str,
        endpoint: str,
        data: Optional[dict] = None,
        headers: Optional[dict] = None,
    ) -> dict:
        start_time = time.perf_counter()
        try:
            response = await self.client.request(method, url, data=data, headers=headers)
            response.raise_for_status()
            GOOGLE_API_CALLS_TOTAL.labels(endpoint=endpoint, status="success").inc()
            return response.json()
        except httpx.HTTPStatusError as e:
            GOOGLE_API_CALLS_TOTAL.labels(endpoint=endpoint, status="error").inc()
            GOOGLE_API_ERRORS_TOTAL.labels(endpoint=endpoint, error_type="http_error").inc()
            logger.error(
                f"[GoogleOAuthClient] {endpoint} failed with HTTP {e.response.status_code}: "
                f"{e.response.text[:200]}"
            )
            raise
        except httpx.RequestError as e:
            GOOGLE_API_CALLS_TOTAL.labels(endpoint=endpoint, status="error").inc()
            GOOGLE_API_ERRORS_TOTAL.labels(endpoint=endpoint, error_type="connection_error").inc()
            logger.error(f"[GoogleOAuthClient] {endpoint} request error: {e}")
            raise
        finally:
            GOOGLE_API_CALL_DURATION_SECONDS.labels(endpoint=endpoint).observe(
                time.perf_counter() - start_time
            )
