"""Dashboard notification model."""
import uuid
from datetime import datetime, timezone
from typing import Literal, Optional

from pydantic import BaseModel, Field

NotificationType = Literal["review", "post", "system", "reply"]


class Notification(BaseModel):
    """Stored newest-first in the Redis list notifications_v1."""
    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    type: NotificationType
    title: str
    message: str
    action_url: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    read: bool = False
