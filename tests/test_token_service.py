"""Unit tests for OAuth token storage and refresh."""
import pytest
from unittest.mock import AsyncMock, Mock

import httpx

from app.models import GoogleTokens, StoredTokenData, UserInfo
from app.services import TokenError, TokenService


@pytest.fixture
def mock_oauth_client():
    client = Mock()
    client.build_authorization_url.return_value = "https://accounts.google.com/o/oauth2/v2/auth?x=1"
    client.exchange_code = AsyncMock(
        return_value={
            "access_token": "access-1",
            "refresh_token": "refresh-1",
            "expires_in": 3599,
            "token_type": "Bearer",
        }
    )
    client.get_user_info = AsyncMock(
        return_value={"id": "user-1", "email": "owner@example.com", "name": "Owner"}
    )
    client.refresh_access_token = AsyncMock(
        return_value={"access_token": "access-2", "expires_in": 3599}
    )
    return client


@pytest.fixture
def token_service(mock_oauth_client, dao):
    return TokenService(mock_oauth_client, dao)


def store_expired(dao, refresh_token=None):
    dao.set_tokens(
        "user-1",
        StoredTokenData(
            google_tokens=GoogleTokens(
                access_token="old", refresh_token=refresh_token, stored_at=0, expires_in=3600
            ),
            user_info=UserInfo(id="user-1"),
        ),
    )
    dao.set_active_user("user-1")


class TestTokenService:
    @pytest.mark.asyncio
    async def test_handle_callback_stores_tokens(self, token_service, dao, mock_oauth_client):
        tokens, user_info = await token_service.handle_callback("auth-code")

        mock_oauth_client.exchange_code.assert_awaited_once_with("auth-code")
        mock_oauth_client.get_user_info.assert_awaited_once_with("access-1")
        assert tokens.refresh_token == "refresh-1"
        assert user_info.email == "owner@example.com"
        assert dao.get_active_user() == "user-1"
        assert dao.get_tokens("user-1").google_tokens.access_token == "access-1"

    @pytest.mark.asyncio
    async def test_handle_callback_without_access_token(self, token_service, mock_oauth_client):
        mock_oauth_client.exchange_code.return_value = {"error": "invalid_grant"}

        with pytest.raises(TokenError):
            await token_service.handle_callback("bad-code")

    def test_expired_tokens_without_refresh_are_deleted(self, token_service, dao):
        store_expired(dao)

        assert token_service.get_tokens() is None
        assert dao.get_tokens("user-1") is None

    def test_expired_tokens_with_refresh_are_kept(self, token_service, dao):
        store_expired(dao, refresh_token="refresh-1")
        assert token_service.get_tokens() is not None

    @pytest.mark.asyncio
    async def test_valid_token_is_returned_without_refresh(
        self, token_service, mock_oauth_client
    ):
        await token_service.handle_callback("auth-code")

        assert await token_service.get_valid_access_token() == "access-1"
        mock_oauth_client.refresh_access_token.assert_not_called()

    @pytest.mark.asyncio
    async def test_expired_token_is_refreshed(self, token_service, dao, mock_oauth_client):
        store_expired(dao, refresh_token="refresh-1")

        assert await token_service.get_valid_access_token() == "access-2"
        mock_oauth_client.refresh_access_token.assert_awaited_once_with("refresh-1")
        stored = dao.get_tokens("user-1").google_tokens
        assert stored.access_token == "access-2"
        assert stored.refresh_token == "refresh-1"

    @pytest.mark.asyncio
    async def test_refresh_failure_returns_none(self, token_service, dao, mock_oauth_client):
        store_expired(dao, refresh_token="refresh-1")
        request = httpx.Request("POST", "https://oauth2.googleapis.com/token")
        mock_oauth_client.refresh_access_token.side_effect = httpx.HTTPStatusError(
            "invalid_grant", request=request, response=httpx.Response(400, request=request)
        )

        assert await token_service.get_valid_access_token() is None

    @pytest.mark.asyncio
    async def test_no_active_user(self, token_service):
        assert await token_service.get_valid_access_token() is None

    @pytest.mark.asyncio
    async def test_refresh_with_explicit_token(self, token_service, mock_oauth_client):
        tokens = await token_service.refresh("given-refresh")

        mock_oauth_client.refresh_access_token.assert_awaited_once_with("given-refresh")
        assert tokens.access_token == "access-2"
        assert tokens.refresh_token == "given-refresh"

    @pytest.mark.asyncio
    async def test_refresh_without_any_token(self, token_service):
        with pytest.raises(TokenError, match="Refresh token is required"):
            await token_service.refresh()

    @pytest.mark.asyncio
    async def test_disconnect(self, token_service, dao):
        await token_service.handle_callback("auth-code")

        assert token_service.disconnect() is True
        assert dao.get_active_user() is None
        assert dao.get_tokens("user-1") is None
        assert token_service.disconnect() is False

    @pytest.mark.asyncio
    async def test_status(self, token_service):
        assert token_service.status() == {"connected": False}

        await token_service.handle_callback("auth-code")
        status = token_service.status()

        assert status["connected"] is True
        assert status["user"]["email"] == "owner@example.com"
        assert status["has_refresh_token"] is True
