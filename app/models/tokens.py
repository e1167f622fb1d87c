"""OAuth token models."""
import time
from typing import Optional

from pydantic import BaseModel, Field

# Refresh a little before Google's stated expiry
EXPIRY_MARGIN_MS = 60_000


def now_ms() -> int:
    return int(time.time() * 1000)


class GoogleTokens(BaseModel):
    """Tokens from Google's token endpoint plus local bookkeeping timestamps (ms)."""
    access_token: str
    refresh_token: Optional[str] = None
    token_type: str = "Bearer"
    expires_in: int = 3600
    scope: str = ""
    id_token: Optional[str] = None
    stored_at: int = Field(default_factory=now_ms)
    expires_at: int = 0

    def model_post_init(self, __context) -> None:
        if not self.expires_at:
            self.expires_at = self.stored_at + self.expires_in * 1000

    @property
    def expiry_date(self) -> int:
        return self.expires_at

    def is_expired(self, now: Optional[int] = None) -> bool:
        current = now if now is not None else now_ms()
        return current >= self.expires_at - EXPIRY_MARGIN_MS

    def public_dict(self) -> dict:
        """Shape returned to the browser."""
        return {
            "access_token": self.access_token,
            "refresh_token": self.refresh_token,
            "token_type": self.token_type,
            "expiry_date": self.expiry_date,
        }


class UserInfo(BaseModel):
    id: str
    email: Optional[str] = None
    name: Optional[str] = None
    picture: Optional[str] = None


class StoredTokenData(BaseModel):
    """Stored in Redis at key: google_tokens_v1:{user_id}"""
    google_tokens: GoogleTokens
    user_info: Optional[UserInfo] = None
    last_updated: int = Field(default_factory=now_ms)
