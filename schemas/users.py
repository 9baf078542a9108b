from typing import Optional

from pydantic import AliasChoices, Field

from schemas.base import StrippedStr, WireModel

# "pfp" is what older browser clients send
AVATAR_ALIASES = AliasChoices("avatarRef", "avatar_ref", "pfp")


class LoginRequest(WireModel):
    name: Optional[StrippedStr] = None
    avatar_ref: Optional[str] = Field(default=None, validation_alias=AVATAR_ALIASES)


class UpdateProfileRequest(WireModel):
    name: StrippedStr = Field(min_length=1)
    avatar_ref: Optional[str] = Field(default=None, validation_alias=AVATAR_ALIASES)


class TargetRequest(WireModel):
    """Payload of start_pm and kick_user: a bare id or {"targetId": ...}."""

    target_id: str = Field(min_length=1)


class UserOut(WireModel):
    id: str
    name: str
    avatar_ref: str
    current_room: Optional[str] = None


class RoomMember(WireModel):
    id: str
    name: str
    avatar_ref: str
    is_creator: bool
