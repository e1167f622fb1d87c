"""Unit tests for Business Profile proxy operations and their fallbacks."""
import random

import pytest
from unittest.mock import AsyncMock, Mock

import httpx

from app.errors import ProxyError
from app.models import CreatePostRequest
from app.services import BusinessProfileService
from app.services.business_profile_service import (
    API_USED_MOCK,
    API_USED_SIMULATED,
    API_USED_V4,
    POSTS_API_HELP,
)
from app.services.mock_data import generate_mock_reviews


def status_error(status_code: int, **kwargs) -> httpx.HTTPStatusError:
    request = httpx.Request("GET", "https://mybusiness.googleapis.com/v4")
    response = httpx.Response(status_code, request=request, **kwargs)
    return httpx.HTTPStatusError("error", request=request, response=response)


@pytest.fixture
def mock_google_client():
    client = Mock()
    client.list_accounts = AsyncMock(return_value=[{"name": "accounts/777"}])
    client.list_locations = AsyncMock(return_value=[])
    client.create_local_post = AsyncMock(
        return_value={"name": "accounts/777/locations/loc1/localPosts/p1", "state": "LIVE"}
    )
    client.list_local_posts = AsyncMock(return_value=[])
    client.list_reviews = AsyncMock(return_value={"reviews": []})
    client.reply_to_review = AsyncMock(return_value={"comment": "Thanks!"})
    return client


@pytest.fixture
def service(mock_google_client):
    return BusinessProfileService(mock_google_client, rng=random.Random(7))


class TestCreatePost:
    @pytest.mark.asyncio
    async def test_bare_location_id_is_expanded(self, service, mock_google_client):
        result = await service.create_post("token", "loc1", CreatePostRequest(summary="Hello"))

        args = mock_google_client.create_local_post.call_args.args
        assert args[1] == "accounts/777/locations/loc1"
        assert args[2]["languageCode"] == "en-US"
        assert result["success"] is True
        assert result["status"] == "LIVE"
        assert result["realTime"] is True

    @pytest.mark.asyncio
    async def test_account_lookup_failure_uses_location_id(self, service, mock_google_client):
        mock_google_client.list_accounts.side_effect = httpx.ConnectError("down")

        await service.create_post("token", "loc1", CreatePostRequest(summary="Hello"))

        assert mock_google_client.create_local_post.call_args.args[1] == (
            "accounts/loc1/locations/loc1"
        )

    @pytest.mark.asyncio
    async def test_full_resource_name_is_kept(self, service, mock_google_client):
        await service.create_post(
            "token", "accounts/5/locations/loc1", CreatePostRequest(summary="Hello")
        )

        mock_google_client.list_accounts.assert_not_called()
        assert mock_google_client.create_local_post.call_args.args[1] == (
            "accounts/5/locations/loc1"
        )

    @pytest.mark.asyncio
    async def test_google_json_error_becomes_400(self, service, mock_google_client):
        mock_google_client.create_local_post.side_effect = status_error(
            403, json={"error": {"message": "Permission denied", "details": [{"x": 1}]}}
        )

        with pytest.raises(ProxyError) as exc_info:
            await service.create_post("token", "accounts/5/locations/1", CreatePostRequest(summary="Hi"))

        body = exc_info.value.to_dict()
        assert exc_info.value.status_code == 400
        assert body["error"] == "Google Business Profile API Error"
        assert body["message"] == "Permission denied"
        assert body["details"] == [{"x": 1}]
        assert body["help"] == POSTS_API_HELP

    @pytest.mark.asyncio
    async def test_unreadable_error_is_simulated(self, service, mock_google_client):
        mock_google_client.create_local_post.side_effect = status_error(502, text="Bad gateway")

        result = await service.create_post(
            "token", "accounts/5/locations/1", CreatePostRequest(summary="Hi")
        )

        assert result["status"] == "SIMULATED"
        assert result["realTime"] is False
        assert result["post"]["summary"] == "Hi"
        assert result["post"]["name"].startswith("accounts/5/locations/1/localPosts/")
        assert "warning" in result

    @pytest.mark.asyncio
    async def test_simulation_disabled(self, mock_google_client):
        service = BusinessProfileService(mock_google_client, simulate_on_api_failure=False)
        mock_google_client.create_local_post.side_effect = httpx.ConnectError("down")

        with pytest.raises(ProxyError) as exc_info:
            await service.create_post(
                "token", "accounts/5/locations/1", CreatePostRequest(summary="Hi")
            )

        assert exc_info.value.status_code == 500
        assert exc_info.value.error == "Failed to create post"


class TestReviews:
    @pytest.mark.asyncio
    async def test_reviews_are_parsed(self, service, mock_google_client):
        mock_google_client.list_reviews.return_value = {
            "reviews": [{"name": "a/reviews/r1", "starRating": "FIVE", "comment": "Great"}],
            "nextPageToken": "next",
        }

        result = await service.list_reviews("token", "loc1", "acc", 10, "tok")

        mock_google_client.list_reviews.assert_awaited_once_with("token", "loc1", "acc", 10, "tok")
        assert result["api_used"] == API_USED_V4
        assert result["next_page_token"] == "next"
        assert result["reviews"][0].star_rating == 5

    @pytest.mark.asyncio
    async def test_failure_falls_back_to_mock_reviews(self, service, mock_google_client):
        mock_google_client.list_reviews.side_effect = status_error(403)

        result = await service.list_reviews("token", "17697790081864925086")

        assert result["api_used"] == API_USED_MOCK
        assert result["next_page_token"] is None
        assert 3 <= len(result["reviews"]) <= 6
        assert all(r.review_id.startswith("review") for r in result["reviews"])

    @pytest.mark.asyncio
    async def test_mock_not_allowed_raises(self, service, mock_google_client):
        mock_google_client.list_reviews.side_effect = status_error(503)

        with pytest.raises(httpx.HTTPStatusError):
            await service.list_reviews("token", "loc1", allow_mock=False)

    @pytest.mark.asyncio
    async def test_reply(self, service, mock_google_client):
        result = await service.reply_to_review("token", "loc1", "r1", "  Thanks!  ", "acc")

        mock_google_client.reply_to_review.assert_awaited_once_with(
            "token", "loc1", "r1", "Thanks!", "acc"
        )
        assert result == {"reply": {"comment": "Thanks!"}, "api_used": API_USED_V4}

    @pytest.mark.asyncio
    async def test_reply_failure_is_simulated(self, service, mock_google_client):
        mock_google_client.reply_to_review.side_effect = status_error(404)

        result = await service.reply_to_review("token", "loc1", "r1", "Thanks!")

        assert result["api_used"] == API_USED_SIMULATED
        assert result["reply"]["comment"] == "Thanks!"
        assert result["reply"]["updateTime"]


class TestPosts:
    @pytest.mark.asyncio
    async def test_failure_returns_empty_list(self, service, mock_google_client):
        mock_google_client.list_local_posts.side_effect = status_error(500)
        assert await service.list_posts("token", "loc1") == []


class TestMockData:
    def test_reviews_follow_location_type(self):
        reviews = generate_mock_reviews("17697790081864925086", rng=random.Random(1))

        assert 3 <= len(reviews) <= 6
        assert reviews[0].reviewer.display_name == "Priya Sharma"
        assert reviews[0].star_rating == 5

    def test_replies_only_on_high_ratings(self):
        for seed in range(20):
            for review in generate_mock_reviews("unknown-location", rng=random.Random(seed)):
                if review.has_reply:
                    assert review.star_rating >= 4

    def test_deterministic_with_seeded_rng(self):
        first = generate_mock_reviews("loc", rng=random.Random(3))
        second = generate_mock_reviews("loc", rng=random.Random(3))
        assert [r.comment for r in first] == [r.comment for r in second]
