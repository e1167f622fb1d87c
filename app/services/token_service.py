"""OAuth token lifecycle: callback handling, storage, expiry checks and refresh."""
import logging
from typing import Optional

import httpx

from app.api.google_oauth_client import GoogleOAuthClient
from app.dao.redis_automation_dao import RedisAutomationDAO
from app.models import GoogleTokens, StoredTokenData, UserInfo
from app.models.tokens import now_ms

logger = logging.getLogger(__name__)


class TokenError(Exception):
    """Raised when tokens cannot be obtained or refreshed."""


class TokenService:
    """Manages Google tokens for connected users.

    Tokens are stored per Google user id; the most recently connected user is
    the "active" user whose tokens background automation uses.
    """

    def __init__(self, oauth_client: GoogleOAuthClient, dao: RedisAutomationDAO):
        self.oauth_client = oauth_client
        self.dao = dao

    def build_authorization_url(self, state: Optional[str] = None) -> str:
        return self.oauth_client.build_authorization_url(state)

    async def handle_callback(self, code: str) -> tuple[GoogleTokens, UserInfo]:
        """Exchange an authorization code, fetch the profile and store both.

        Raises:
            TokenError: If Google returns no access token
            httpx.HTTPError: If a Google call fails
        """
        token_response = await self.oauth_client.exchange_code(code)
        if not token_response.get("access_token"):
            raise TokenError("Failed to obtain tokens from Google")

        tokens = GoogleTokens.model_validate(token_response)
        logger.info(
            f"[TokenService] Received tokens (refresh token: {bool(tokens.refresh_token)}, "
            f"expires_at: {tokens.expires_at})"
        )

        user_info = UserInfo.model_validate(
            await self.oauth_client.get_user_info(tokens.access_token)
        )
        logger.info(f"[TokenService] User authenticated: {user_info.email}")

        self.dao.set_tokens(
            user_info.id, StoredTokenData(google_tokens=tokens, user_info=user_info)
        )
        self.dao.set_active_user(user_info.id)
        return tokens, user_info

    def get_tokens(self, user_id: Optional[str] = None) -> Optional[StoredTokenData]:
        """Stored tokens for a user (active user by default).

        Expired tokens without a refresh token are deleted and None is returned.
        """
        user_id = user_id or self.dao.get_active_user()
        if not user_id:
            return None

        stored = self.dao.get_tokens(user_id)
        if stored is None:
            return None

        if stored.google_tokens.is_expired() and not stored.google_tokens.refresh_token:
            logger.info(f"[TokenService] Tokens for {user_id} expired, clearing")
            self.dao.delete_tokens(user_id)
            return None

        return stored

    async def refresh(
        self, refresh_token: Optional[str] = None, user_id: Optional[str] = None
    ) -> GoogleTokens:
        """Refresh an access token.

        Uses the given refresh token, or the stored one of user_id / the active
        user. When a stored user is refreshed the new tokens are saved.

        Raises:
            TokenError: If no refresh token is available
            httpx.HTTPError: If Google rejects the refresh
        """
        stored = None
        if not refresh_token:
            user_id = user_id or self.dao.get_active_user()
            stored = self.dao.get_tokens(user_id) if user_id else None
            refresh_token = stored.google_tokens.refresh_token if stored else None

        if not refresh_token:
            raise TokenError("Refresh token is required")

        response = await self.oauth_client.refresh_access_token(refresh_token)
        # Google omits the refresh token on refresh responses
        response.setdefault("refresh_token", refresh_token)
        tokens = GoogleTokens.model_validate(response)

        if stored is not None and user_id:
            stored.google_tokens = tokens
            stored.last_updated = now_ms()
            self.dao.set_tokens(user_id, stored)
            logger.info(f"[TokenService] Refreshed and stored tokens for {user_id}")

        return tokens

    async def get_valid_access_token(self, user_id: Optional[str] = None) -> Optional[str]:
        """Access token usable right now, refreshing it if needed; None if unavailable."""
        user_id = user_id or self.dao.get_active_user()
        if not user_id:
            return None

        stored = self.get_tokens(user_id)
        if stored is None:
            return None

        if not stored.google_tokens.is_expired():
            return stored.google_tokens.access_token

        try:
            tokens = await self.refresh(user_id=user_id)
        except (TokenError, httpx.HTTPError) as e:
            logger.error(f"[TokenService] Could not refresh tokens for {user_id}: {e}")
            return None
        return tokens.access_token

    def disconnect(self, user_id: Optional[str] = None) -> bool:
        """Delete stored tokens. Returns False when there was nothing to delete."""
        active = self.dao.get_active_user()
        user_id = user_id or active
        if not user_id:
            return False

        self.dao.delete_tokens(user_id)
        if user_id == active:
            self.dao.clear_active_user()
        return True

    def status(self) -> dict:
        stored = self.get_tokens()
        if stored is None:
            return {"connected": False}
        return {
            "connected": True,
            "user": stored.user_info.model_dump() if stored.user_info else None,
            "expiry_date": stored.google_tokens.expiry_date,
            "has_refresh_token": bool(stored.google_tokens.refresh_token),
        }
