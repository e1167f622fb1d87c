"""Review models mirroring the My Business v4 reviews API."""
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

MAX_REPLY_LENGTH = 4000

# Google reports ratings as enum strings
STAR_RATINGS = {
    "STAR_RATING_UNSPECIFIED": 0,
    "ONE": 1,
    "TWO": 2,
    "THREE": 3,
    "FOUR": 4,
    "FIVE": 5,
}


class Reviewer(BaseModel):
    display_name: str = "Anonymous"
    profile_photo_url: Optional[str] = None
    is_anonymous: bool = False

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ReviewReply(BaseModel):
    comment: str
    update_time: Optional[str] = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Review(BaseModel):
    """A customer review.

    star_rating accepts either an int or Google's enum string (ONE..FIVE);
    0 means the rating was unspecified.
    """
    name: str = ""  # accounts/{a}/locations/{l}/reviews/{r}
    review_id: str = ""
    reviewer: Reviewer = Field(default_factory=Reviewer)
    star_rating: int = 0
    comment: str = ""
    create_time: Optional[str] = None
    update_time: Optional[str] = None
    # Google names this reviewReply; the dashboard calls it reply
    reply: Optional[ReviewReply] = Field(
        default=None, validation_alias=AliasChoices("reply", "reviewReply")
    )

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    @field_validator("star_rating", mode="before")
    @classmethod
    def convert_star_rating(cls, v: Any) -> int:
        if isinstance(v, str):
            if v.isdigit():
                return int(v)
            return STAR_RATINGS.get(v.upper(), 0)
        if v is None:
            return 0
        return v

    @field_validator("comment", mode="before")
    @classmethod
    def none_comment_to_empty(cls, v: Any) -> str:
        return v or ""

    @model_validator(mode="after")
    def derive_review_id(self) -> "Review":
        if not self.review_id and self.name:
            self.review_id = self.name.rsplit("/", 1)[-1]
        return self

    @property
    def has_reply(self) -> bool:
        return self.reply is not None and bool(self.reply.comment)


class ReviewReplyRequest(BaseModel):
    comment: str = ""

    @field_validator("comment", mode="before")
    @classmethod
    def strip_comment(cls, v: Any) -> str:
        return (v or "").strip()

    def validation_error(self) -> Optional[str]:
        """Message for an unacceptable reply, or None when it can be sent."""
        if not self.comment:
            return "Reply comment is required"
        if len(self.comment) > MAX_REPLY_LENGTH:
            return f"Reply comment must be less than {MAX_REPLY_LENGTH} characters"
        return None
