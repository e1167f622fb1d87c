"""Local post models mirroring the Business Profile Posts API."""
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

MAX_POST_SUMMARY_LENGTH = 1500


class CallToAction(BaseModel):
    action_type: str  # LEARN_MORE, BOOK, ORDER, SHOP, SIGN_UP, CALL
    url: Optional[str] = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MediaItem(BaseModel):
    media_format: str = "PHOTO"
    source_url: str

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LocalPost(BaseModel):
    """A post attached to a location. Unknown Google fields are kept as-is."""
    name: Optional[str] = None
    summary: str = ""
    topic_type: str = "STANDARD"
    call_to_action: Optional[CallToAction] = None
    media: list[MediaItem] = Field(default_factory=list)
    state: Optional[str] = None
    create_time: Optional[str] = None
    update_time: Optional[str] = None
    search_url: Optional[str] = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")


class CreatePostRequest(BaseModel):
    """Body accepted by POST /api/locations/{location}/posts."""
    summary: str = Field(max_length=MAX_POST_SUMMARY_LENGTH)
    topic_type: str = "STANDARD"
    call_to_action: Optional[CallToAction] = None
    media: Optional[list[MediaItem]] = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    @field_validator("summary")
    @classmethod
    def summary_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Post summary is required")
        return v

    def to_google_body(self) -> dict:
        """Request body for the localPosts create call (camelCase, no nulls)."""
        body = {
            "languageCode": "en-US",
            "summary": self.summary,
            "topicType": self.topic_type,
        }
        if self.call_to_action:
            body["callToAction"] = self.call_to_action.model_dump(by_alias=True, exclude_none=True)
        if self.media:
            body["media"] = [m.model_dump(by_alias=True) for m in self.media]
        return body
