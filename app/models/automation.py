"""Automation configuration models for auto-posting and review auto-reply."""
from datetime import datetime, timezone
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

Frequency = Literal["daily", "alternative", "weekly", "custom", "test30s"]
ButtonType = Literal["auto", "learn_more", "book", "order", "shop", "buy", "sign_up", "call"]

# Fields a partial update may not clear with null
NON_NULLABLE_UPDATE_FIELDS = ("enabled", "business_name", "categories", "schedule", "keywords", "button")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def split_keywords(value: str) -> list[str]:
    """Split a comma-separated keyword string into a clean list."""
    return [k.strip() for k in value.split(",") if k.strip()]


class PostSchedule(BaseModel):
    frequency: Frequency = "daily"
    time: str = "09:00"  # HH:MM in the scheduler timezone
    custom_times: list[str] = Field(default_factory=list)

    @field_validator("time")
    @classmethod
    def validate_time(cls, v: str) -> str:
        parse_hhmm(v)
        return v

    @field_validator("custom_times")
    @classmethod
    def validate_custom_times(cls, v: list[str]) -> list[str]:
        for t in v:
            parse_hhmm(t)
        return v


class PostButton(BaseModel):
    enabled: bool = True
    type: ButtonType = "auto"
    custom_url: Optional[str] = None


class AutoPostingStats(BaseModel):
    total_posts: int = 0
    successful_posts: int = 0
    failed_posts: int = 0
    last_error: Optional[str] = None


class AutoPostingConfig(BaseModel):
    """Per-location auto-posting configuration.

    Stored in Redis at key: auto_posting_config_v1:{location_id}
    """
    location_id: str
    business_name: str
    location_name: str = ""
    account_id: Optional[str] = None
    categories: list[str] = Field(default_factory=list)
    website_url: Optional[str] = None
    phone_number: Optional[str] = None
    locality: Optional[str] = None
    enabled: bool = False
    schedule: PostSchedule = Field(default_factory=PostSchedule)
    keywords: list[str] = Field(default_factory=list)
    button: PostButton = Field(default_factory=PostButton)
    next_post: Optional[datetime] = None
    last_post: Optional[datetime] = None
    stats: AutoPostingStats = Field(default_factory=AutoPostingStats)
    created_at: datetime = Field(default_factory=utc_now)

    @field_validator("keywords", mode="before")
    @classmethod
    def migrate_keyword_string(cls, v: Any) -> Any:
        """Older records stored keywords as one comma-separated string."""
        if isinstance(v, str):
            return split_keywords(v)
        if v is None:
            return []
        return v


class AutoPostingGlobalStats(BaseModel):
    total_posts_today: int = 0
    successful_posts_today: int = 0
    failed_posts_today: int = 0
    active_configurations: int = 0


class ReviewReplyConfig(BaseModel):
    """Per-location review auto-reply configuration.

    Stored in Redis at key: review_reply_config_v1:{location_id}
    """
    location_id: str
    business_name: str
    account_id: Optional[str] = None
    enabled: bool = False
    auto_reply_enabled: bool = False
    reply_template: Optional[str] = None
    min_rating: Optional[int] = Field(default=None, ge=1, le=5)
    max_rating: Optional[int] = Field(default=None, ge=1, le=5)
    last_checked: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utc_now)


class ProcessedReview(BaseModel):
    """Marks a review as handled so it is never replied to twice.

    Stored in Redis at key: processed_review_v1:{location_id}_{review_id}
    """
    review_id: str
    location_id: str
    processed: bool = True
    processed_at: datetime = Field(default_factory=utc_now)

    @property
    def key(self) -> str:
        return f"{self.location_id}_{self.review_id}"


def parse_hhmm(value: str) -> tuple[int, int]:
    """Parse "HH:MM" into (hour, minute)."""
    try:
        hours, minutes = value.split(":")
        hour, minute = int(hours), int(minutes)
    except ValueError:
        raise ValueError(f"Invalid time '{value}', expected HH:MM")
    if not (0 <= hour < 24 and 0 <= minute < 60):
        raise ValueError(f"Invalid time '{value}', expected HH:MM")
    return hour, minute


class AutoPostingConfigUpdate(BaseModel):
    """Partial update of an auto-posting configuration; unset fields are kept.

    Only account_id, website_url and phone_number may be cleared with null.
    """
    enabled: Optional[bool] = None
    business_name: Optional[str] = None
    account_id: Optional[str] = None
    categories: Optional[list[str]] = None
    website_url: Optional[str] = None
    phone_number: Optional[str] = None
    schedule: Optional[PostSchedule] = None
    keywords: Optional[list[str]] = None
    button: Optional[PostButton] = None

    @field_validator("keywords", mode="before")
    @classmethod
    def migrate_keyword_string(cls, v: Any) -> Any:
        if isinstance(v, str):
            return split_keywords(v)
        return v

    @model_validator(mode="before")
    @classmethod
    def reject_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            nulls = [f for f in NON_NULLABLE_UPDATE_FIELDS if f in data and data[f] is None]
            if nulls:
                raise ValueError(f"{', '.join(nulls)} cannot be null")
        return data


class ReviewReplySettings(BaseModel):
    """Body of PUT /api/automation/reviews/{location_id}."""
    business_name: str
    account_id: Optional[str] = None
    enabled: bool = False
    auto_reply_enabled: bool = False
    reply_template: Optional[str] = None
    min_rating: Optional[int] = Field(default=None, ge=1, le=5)
    max_rating: Optional[int] = Field(default=None, ge=1, le=5)

    @model_validator(mode="after")
    def check_rating_range(self) -> "ReviewReplySettings":
        if (
            self.min_rating is not None
            and self.max_rating is not None
            and self.min_rating > self.max_rating
        ):
            raise ValueError("min_rating cannot be greater than max_rating")
        return self
