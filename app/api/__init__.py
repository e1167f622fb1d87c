"""External API clients package."""
from app.api.google_business_client import GoogleBusinessAPIClient
from app.api.google_oauth_client import GoogleOAuthClient
from app.api.openai_content_client import OpenAIContentClient

__all__ = [
    "GoogleBusinessAPIClient",
    "GoogleOAuthClient",
    "OpenAIContentClient",
]
