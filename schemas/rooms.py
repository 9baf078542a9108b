from typing import Optional

from pydantic import Field

from schemas.base import StrippedStr, WireModel


class CreateRoomRequest(WireModel):
    name: StrippedStr = Field(min_length=1)
    password: Optional[str] = None


class JoinRoomRequest(WireModel):
    room_id: str = Field(min_length=1)
    password: Optional[str] = None


class PublicRoom(WireModel):
    id: str
    name: str
    has_password: bool


class RoomDetails(WireModel):
    id: str
    name: str
    has_password: bool
    member_count: int


class JoinedRoom(WireModel):
    id: str
    name: str
    is_private: bool
    am_i_creator: bool
