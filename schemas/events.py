from typing import Any, Optional

from pydantic import BaseModel, Field

from schemas.base import WireModel
from schemas.users import UserOut


class InboundEvent(BaseModel):
    """Envelope of every client frame: {"event": "...", "data": ...}."""

    event: str = Field(min_length=1)
    data: Optional[Any] = None


class SendMessageRequest(WireModel):
    text: str = Field(min_length=1)


class ChatMessageOut(WireModel):
    user: UserOut
    text: str
    time: str
