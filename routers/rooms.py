from typing import List

from fastapi import APIRouter, HTTPException, Request

from logging_config import get_logger
from schemas.rooms import PublicRoom, RoomDetails

logger = get_logger(__name__)

rooms_router = APIRouter(prefix="/rooms", tags=["rooms"])


@rooms_router.get("/", response_model=List[PublicRoom], response_model_by_alias=True)
async def list_rooms(request: Request):
    """Public group rooms; the same snapshot clients receive as update_room_list."""
    chat = request.app.state.chat
    return chat.rooms.list_public()


@rooms_router.get("/{room_id}", response_model=RoomDetails, response_model_by_alias=True)
async def get_room_details(room_id: str, request: Request):
    """
    Get details of a public group room.

    Returns:
    - id: Room identifier
    - name: Room name
    - hasPassword: Whether joining requires a password
    - memberCount: Current number of members

    Private rooms are reported as not found.
    """
    client_host = request.client.host if request.client else "unknown"
    logger.info(f"Room details request for {room_id} from {client_host}")

    chat = request.app.state.chat
    room = chat.rooms.get(room_id)
    if room is None or room.is_private:
        logger.warning(f"Room details failed: Room {room_id} not found")
        raise HTTPException(status_code=404, detail="Room not found")

    return RoomDetails(
        id=room.id,
        name=room.name,
        has_password=room.has_password,
        member_count=len(room.members),
    )
