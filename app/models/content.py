"""Generated content models."""
from typing import Optional

from pydantic import BaseModel


class PostCallToAction(BaseModel):
    action_type: str = "LEARN_MORE"
    url: Optional[str] = None


class PostContent(BaseModel):
    content: str
    call_to_action: PostCallToAction = PostCallToAction()
