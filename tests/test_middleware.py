"""Unit tests for metrics path normalization."""
import pytest

from app.middleware import PrometheusMiddleware


@pytest.fixture
def middleware():
    return PrometheusMiddleware(app=None)


@pytest.mark.parametrize(
    "path,expected",
    [
        ("/api/accounts", "/api/accounts"),
        ("/api/accounts/123/locations", "/api/accounts/{id}/locations"),
        (
            "/api/locations/17697790081864925086/reviews/abc/reply",
            "/api/locations/{id}/reviews/{id}/reply",
        ),
        (
            "/api/locations/accounts/1/locations/2/posts",
            "/api/locations/accounts/{id}/locations/{id}/posts",
        ),
        ("/api/automation/posting/stats", "/api/automation/posting/stats"),
        ("/api/automation/posting/loc1/run", "/api/automation/posting/{id}/run"),
        ("/api/automation/reviews/generate-reply", "/api/automation/reviews/generate-reply"),
        ("/", "/"),
    ],
)
def test_normalize_endpoint(middleware, path, expected):
    assert middleware._normalize_endpoint(path) == expected


def test_static_segments_are_not_treated_as_ids(middleware):
    assert middleware._is_id_segment("generate-reply-endpoint")
    assert (
        middleware._normalize_endpoint("/api/automation/reviews/generate-reply")
        == "/api/automation/reviews/generate-reply"
    )
