"""HTTP-level tests for the routers, using the application with mocked services."""
import pytest
from unittest.mock import AsyncMock, Mock

import httpx
from fastapi.testclient import TestClient

from main import app
from app.handlers import BusinessHandler
from app.models import AutoPostingGlobalStats, GoogleTokens, UserInfo
from app.routers import set_auth_dependencies, set_automation_dependencies, set_business_handler
from app.services import BusinessProfileService, TokenError
from app.services.business_profile_service import API_USED_MOCK

AUTH = {"Authorization": "Bearer token-123"}


@pytest.fixture
def mock_google_client():
    client = Mock()
    client.list_accounts = AsyncMock(return_value=[{"name": "accounts/1"}])
    client.list_locations = AsyncMock(return_value=[{"name": "locations/9", "title": "Cafe"}])
    client.list_local_posts = AsyncMock(return_value=[{"name": "p1"}])
    client.list_reviews = AsyncMock(return_value={"reviews": []})
    client.reply_to_review = AsyncMock(return_value={"comment": "Thanks!"})
    return client


@pytest.fixture
def mock_token_service():
    token_service = Mock()
    token_service.build_authorization_url.return_value = "https://accounts.google.com/auth?x"
    token_service.handle_callback = AsyncMock(
        return_value=(
            GoogleTokens(access_token="a", refresh_token="r", stored_at=0, expires_in=3600),
            UserInfo(id="u1", email="owner@example.com"),
        )
    )
    token_service.refresh = AsyncMock(side_effect=TokenError("Refresh token is required"))
    token_service.status.return_value = {"connected": False}
    return token_service


@pytest.fixture
def mock_automation():
    review_service = Mock()
    review_service.is_running.return_value = True
    review_service.get_enabled_configurations.return_value = []
    review_service.generate_ai_reply = AsyncMock(return_value="Thank you!")
    review_service.get_configuration.return_value = None
    review_service.execute_manual_reply = AsyncMock(
        return_value={"reply": {"comment": "Thanks for visiting!"}, "api_used": "My Business v4"}
    )

    posting_service = Mock()
    posting_service.is_running.return_value = True
    posting_service.update_configuration.return_value = None
    posting_service.get_configuration.return_value = None
    posting_service.get_global_stats.return_value = AutoPostingGlobalStats(active_configurations=2)

    content_generator = Mock()
    content_generator.status.return_value = {"configured": False}

    notifications = Mock()
    notifications.list_recent.return_value = []
    notifications.mark_read.return_value = 0

    return review_service, posting_service, content_generator, notifications


@pytest.fixture
def client(mock_google_client, mock_token_service, mock_automation):
    set_business_handler(BusinessHandler(BusinessProfileService(mock_google_client)))
    set_auth_dependencies(mock_token_service, "http://localhost:3000")
    set_automation_dependencies(*mock_automation, mock_token_service)
    yield TestClient(app)
    set_business_handler(None)
    set_auth_dependencies(None, "http://localhost:3000")
    set_automation_dependencies(None, None, None, None, None)


class TestBusinessRoutes:
    def test_missing_token(self, client):
        response = client.get("/api/accounts")

        assert response.status_code == 401
        assert response.json() == {"error": "Access token required"}

    def test_malformed_authorization_header(self, client):
        response = client.get("/api/accounts", headers={"Authorization": "token-123"})
        assert response.status_code == 401

    def test_accounts(self, client, mock_google_client):
        response = client.get("/api/accounts", headers=AUTH)

        assert response.status_code == 200
        assert response.json() == {"accounts": [{"name": "accounts/1"}]}
        mock_google_client.list_accounts.assert_awaited_once_with("token-123")

    def test_accounts_failure(self, client, mock_google_client):
        mock_google_client.list_accounts.side_effect = httpx.ConnectError("down")

        response = client.get("/api/accounts", headers=AUTH)

        assert response.status_code == 500
        assert response.json()["error"] == "Failed to fetch accounts"

    def test_locations(self, client):
        response = client.get("/api/accounts/1/locations", headers=AUTH)

        assert response.status_code == 200
        assert response.json()["locations"][0]["title"] == "Cafe"

    def test_posts(self, client, mock_google_client):
        response = client.get("/api/locations/loc1/posts?accountId=acc", headers=AUTH)

        assert response.json() == {"posts": [{"name": "p1"}]}
        mock_google_client.list_local_posts.assert_awaited_once_with("token-123", "loc1", "acc")

    def test_reviews_fall_back_to_mock_data(self, client, mock_google_client):
        request = httpx.Request("GET", "https://mybusiness.googleapis.com/v4")
        mock_google_client.list_reviews.side_effect = httpx.HTTPStatusError(
            "forbidden", request=request, response=httpx.Response(403, request=request)
        )

        response = client.get("/api/locations/17697790081864925086/reviews", headers=AUTH)

        body = response.json()
        assert response.status_code == 200
        assert body["apiUsed"] == API_USED_MOCK
        assert body["totalCount"] == len(body["reviews"])
        assert body["nextPageToken"] is None
        assert "starRating" in body["reviews"][0]

    def test_reply_requires_comment(self, client, mock_google_client):
        response = client.put(
            "/api/locations/loc1/reviews/r1/reply", json={"comment": "  "}, headers=AUTH
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Reply comment is required"}
        mock_google_client.reply_to_review.assert_not_called()

    def test_reply_too_long(self, client):
        response = client.put(
            "/api/locations/loc1/reviews/r1/reply", json={"comment": "x" * 4001}, headers=AUTH
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Reply comment must be less than 4000 characters"

    def test_reply(self, client):
        response = client.put(
            "/api/locations/loc1/reviews/r1/reply", json={"comment": "Thanks!"}, headers=AUTH
        )

        body = response.json()
        assert response.status_code == 200
        assert body["success"] is True
        assert body["reply"] == {"comment": "Thanks!"}
        assert body["apiUsed"] == "My Business v4"

    def test_create_post_validation(self, client):
        response = client.post(
            "/api/locations/accounts/1/locations/9/posts", json={"summary": ""}, headers=AUTH
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid request"


class TestAuthRoutes:
    def test_auth_url(self, client):
        response = client.get("/auth/google/url")
        assert response.json() == {"authUrl": "https://accounts.google.com/auth?x"}

    def test_callback_requires_code(self, client):
        response = client.post("/auth/google/callback", json={})

        assert response.status_code == 400
        assert response.json() == {"error": "Authorization code is required"}

    def test_callback(self, client, mock_token_service):
        response = client.post("/auth/google/callback", json={"code": "c1"})

        body = response.json()
        assert response.status_code == 200
        assert body["success"] is True
        assert body["tokens"]["expiry_date"] == 3_600_000
        assert body["user"]["email"] == "owner@example.com"
        mock_token_service.handle_callback.assert_awaited_once_with("c1")

    def test_callback_failure(self, client, mock_token_service):
        mock_token_service.handle_callback.side_effect = TokenError("no tokens")

        response = client.post("/auth/google/callback", json={"code": "c1"})

        assert response.status_code == 500
        assert response.json() == {"error": "Authentication failed", "message": "no tokens"}

    def test_redirect_callback_error(self, client):
        response = client.get(
            "/auth/google/callback?error=access_denied", follow_redirects=False
        )

        assert response.status_code == 307
        assert response.headers["location"] == "http://localhost:3000?error=access_denied"

    def test_redirect_callback_success(self, client):
        response = client.get("/auth/google/callback?code=c1", follow_redirects=False)
        assert response.headers["location"] == "http://localhost:3000?auth=success"

    def test_refresh_without_token(self, client):
        response = client.post("/auth/google/refresh", json={})

        assert response.status_code == 400
        assert response.json() == {"error": "Refresh token is required"}


class TestAutomationRoutes:
    def test_status(self, client):
        body = client.get("/api/automation/status").json()

        assert body["reviewAutomation"]["running"] is True
        assert body["autoPosting"]["activeConfigurations"] == 2
        assert body["google"] == {"connected": False}

    def test_update_unknown_posting_configuration(self, client):
        response = client.patch("/api/automation/posting/nope", json={"enabled": True})

        assert response.status_code == 404
        assert response.json() == {"error": "Auto-posting configuration not found"}

    @pytest.mark.parametrize("field", ["enabled", "business_name", "schedule"])
    def test_update_posting_configuration_rejects_null(self, client, mock_automation, field):
        posting_service = mock_automation[1]

        response = client.patch("/api/automation/posting/9", json={field: None})

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid request"
        assert "cannot be null" in response.json()["message"]
        posting_service.update_configuration.assert_not_called()

    def test_update_posting_configuration_allows_clearing_website(self, client, mock_automation):
        posting_service = mock_automation[1]

        client.patch("/api/automation/posting/9", json={"website_url": None})

        changes = posting_service.update_configuration.call_args[0][1]
        assert changes.model_dump(exclude_unset=True) == {"website_url": None}

    def test_unknown_review_configuration(self, client):
        assert client.get("/api/automation/reviews/nope").status_code == 404

    def test_save_review_configuration_rejects_inverted_rating_range(
        self, client, mock_automation
    ):
        review_service = mock_automation[0]

        response = client.put(
            "/api/automation/reviews/loc1",
            json={"business_name": "Sunrise Cafe", "min_rating": 5, "max_rating": 2},
        )

        assert response.status_code == 400
        assert "min_rating cannot be greater than max_rating" in response.json()["message"]
        review_service.save_configuration.assert_not_called()

    def test_manual_reply(self, client, mock_automation):
        review_service = mock_automation[0]

        response = client.post(
            "/api/automation/reviews/loc1/r1/reply?accountId=acc",
            json={"comment": " Thanks for visiting! "},
        )

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "reply": {"comment": "Thanks for visiting!"},
            "apiUsed": "My Business v4",
        }
        review_service.execute_manual_reply.assert_awaited_once_with(
            "loc1", "r1", "Thanks for visiting!", "acc"
        )

    def test_manual_reply_requires_comment(self, client, mock_automation):
        response = client.post("/api/automation/reviews/loc1/r1/reply", json={"comment": ""})

        assert response.status_code == 400
        assert response.json() == {"error": "Reply comment is required"}
        mock_automation[0].execute_manual_reply.assert_not_called()

    def test_manual_reply_without_google_account(self, client, mock_automation):
        mock_automation[0].execute_manual_reply.side_effect = TokenError(
            "No Google account connected"
        )

        response = client.post("/api/automation/reviews/loc1/r1/reply", json={"comment": "Thanks"})

        assert response.status_code == 401
        assert response.json()["error"] == "Google account not connected"

    def test_generate_reply(self, client, mock_automation):
        review_service = mock_automation[0]

        response = client.post(
            "/api/automation/reviews/generate-reply",
            json={"review_text": "Great", "rating": 5, "business_name": "Sunrise Cafe"},
        )

        assert response.json() == {"reply": "Thank you!"}
        review_service.generate_ai_reply.assert_awaited_once_with("Great", None, 5, "Sunrise Cafe")

    def test_generate_reply_rejects_bad_rating(self, client):
        response = client.post(
            "/api/automation/reviews/generate-reply",
            json={"review_text": "Great", "rating": 7, "business_name": "Sunrise Cafe"},
        )
        assert response.status_code == 400

    def test_notifications(self, client, mock_automation):
        notifications = mock_automation[3]

        assert client.get("/api/notifications?limit=10").json() == {"notifications": []}
        notifications.list_recent.assert_called_once_with(10)

        assert client.post("/api/notifications/read", json={"ids": ["n1"]}).json() == {
            "updated": 0
        }
        notifications.mark_read.assert_called_once_with(["n1"])


class TestAppRoutes:
    def test_health(self, client):
        body = client.get("/health").json()

        assert body["status"] == "OK"
        assert body["message"] == "Google Business Profile Backend Server is running"
        assert "timestamp" in body

    def test_metrics(self, client):
        response = client.get("/metrics")
        assert response.status_code == 200
        assert "http_requests_total" in response.text

    def test_unknown_endpoint(self, client):
        response = client.get("/api/does-not-exist")

        assert response.status_code == 404
        assert response.json() == {"error": "Endpoint not found"}

    def test_service_not_ready(self):
        set_business_handler(None)
        response = TestClient(app).get("/api/accounts", headers=AUTH)
        assert response.status_code == 503
