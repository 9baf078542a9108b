import uuid
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from gateway import BroadcastGateway
from identity import canonical_pair_id, default_avatar, default_name
from logging_config import get_logger
from room_keys import GROUP_ROOM_ID, PRIVATE_ROOM_NAME
from schemas.rooms import PublicRoom
from schemas.users import UserOut

logger = get_logger(__name__)


@dataclass
class User:
    id: str
    name: str
    avatar_ref: str
    current_room: Optional[str] = None

    def to_wire(self) -> dict:
        return UserOut(id=self.id, name=self.name, avatar_ref=self.avatar_ref, current_room=self.current_room).to_wire()


@dataclass
class Room:
    id: str
    name: str
    is_private: bool = False
    password: Optional[str] = None
    creator_id: Optional[str] = None
    members: List[str] = field(default_factory=list)

    @property
    def has_password(self) -> bool:
        return bool(self.password)

    def check_password(self, password: Optional[str]) -> bool:
        """Exact-match gate for passworded group rooms; private rooms are never gated."""
        if self.is_private or not self.password:
            return True
        return self.password == password

    def is_creator(self, connection_id: str) -> bool:
        return not self.is_private and self.creator_id is not None and self.creator_id == connection_id


class ConnectionRegistry:
    """Profiles of connected users, keyed by connection id."""

    def __init__(self, gateway: BroadcastGateway, avatar_template: Optional[str] = None):
        self.gateway = gateway
        self.avatar_template = avatar_template
        # Format: {connection_id: User}
        self.users: Dict[str, User] = {}

    def __contains__(self, connection_id: str) -> bool:
        return connection_id in self.users

    def __len__(self) -> int:
        return len(self.users)

    def get(self, connection_id: str) -> Optional[User]:
        return self.users.get(connection_id)

    def register(self, connection_id: str, name: Optional[str] = None, avatar_ref: Optional[str] = None,
                 notify: bool = True) -> User:
        """Create or overwrite the profile for a connection and broadcast presence.

        With notify=False the caller sends update_user_list itself, after its own ack.
        """
        final_name = name if name else default_name(connection_id)
        final_avatar = avatar_ref if avatar_ref else default_avatar(final_name, self.avatar_template)
        user = User(id=connection_id, name=final_name, avatar_ref=final_avatar)
        replaced = connection_id in self.users
        self.users[connection_id] = user
        logger.info(f"User {connection_id} registered as '{final_name}'{' (replaced profile)' if replaced else ''}")
        if notify:
            self.broadcast_user_list()
        return user

    def update(self, connection_id: str, name: str, avatar_ref: Optional[str] = None) -> Optional[User]:
        user = self.users.get(connection_id)
        if user is None:
            logger.debug(f"Ignoring profile update for unregistered connection {connection_id}")
            return None
        user.name = name
        if avatar_ref:
            user.avatar_ref = avatar_ref
        logger.info(f"User {connection_id} updated profile: name='{name}'")
        self.broadcast_user_list()
        return user

    def remove(self, connection_id: str) -> Optional[User]:
        """Delete a profile. The caller must have already taken the user out of its room."""
        user = self.users.pop(connection_id, None)
        if user is None:
            return None
        logger.info(f"User {connection_id} ('{user.name}') removed")
        self.broadcast_user_list()
        return user

    def snapshot(self) -> List[dict]:
        return [user.to_wire() for user in self.users.values()]

    def broadcast_user_list(self):
        self.gateway.emit_all("update_user_list", self.snapshot())


class RoomRegistry:
    """Group and private rooms, keyed by room id."""

    def __init__(self, gateway: BroadcastGateway):
        self.gateway = gateway
        # Format: {room_id: Room}
        self.rooms: Dict[str, Room] = {}

    def __contains__(self, room_id: str) -> bool:
        return room_id in self.rooms

    def __len__(self) -> int:
        return len(self.rooms)

    def get(self, room_id: str) -> Optional[Room]:
        return self.rooms.get(room_id)

    def create_group(self, creator_id: str, name: str, password: Optional[str] = None) -> str:
        room_id = GROUP_ROOM_ID.format(slug=uuid.uuid4().hex[:12])
        while room_id in self.rooms:
            room_id = GROUP_ROOM_ID.format(slug=uuid.uuid4().hex[:12])
        self.rooms[room_id] = Room(
            id=room_id,
            name=name,
            password=password if password else None,
            creator_id=creator_id,
        )
        logger.info(f"Group room {room_id} created by {creator_id}: name='{name}', has_password={bool(password)}")
        self.broadcast_room_list()
        return room_id

    def get_or_create_private(self, id_a: str, id_b: str) -> str:
        room_id = canonical_pair_id(id_a, id_b)
        if room_id not in self.rooms:
            self.rooms[room_id] = Room(id=room_id, name=PRIVATE_ROOM_NAME, is_private=True)
            logger.info(f"Private room {room_id} created")
        else:
            logger.debug(f"Private room {room_id} reused")
        return room_id

    def list_public(self) -> List[dict]:
        return [
            PublicRoom(id=room.id, name=room.name, has_password=room.has_password).to_wire()
            for room in self.rooms.values()
            if not room.is_private
        ]

    def delete_if_empty(self, room_id: str) -> bool:
        """Delete a group room with no members. Private rooms are kept for the pair to reuse."""
        room = self.rooms.get(room_id)
        if room is None or room.is_private or room.members:
            return False
        del self.rooms[room_id]
        logger.info(f"Group room {room_id} ('{room.name}') deleted: no members left")
        self.broadcast_room_list()
        return True

    def broadcast_room_list(self):
        self.gateway.emit_all("update_room_list", self.list_public())
