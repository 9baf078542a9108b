from datetime import datetime
from typing import List, Optional

from backend import ConnectionRegistry, Room, RoomRegistry, User
from errors import IncorrectPassword, NotAuthorized, NotRegistered, RoomNotFound, TargetNotConnected
from gateway import BroadcastGateway
from logging_config import get_logger
from room_keys import PRIVATE_ROOM_NAME
from schemas.events import ChatMessageOut
from schemas.rooms import JoinedRoom
from schemas.users import RoomMember, UserOut

logger = get_logger(__name__)

KICKED_REASON = "You were kicked from the group."


class MembershipCoordinator:
    """Join/leave/kick transitions across the connection and room registries.

    Every method runs to completion without awaiting: outbound events are
    queued on the gateway, so under a single asyncio loop no other event can
    observe a half-applied transition.
    """

    def __init__(self, users: ConnectionRegistry, rooms: RoomRegistry, gateway: BroadcastGateway):
        self.users = users
        self.rooms = rooms
        self.gateway = gateway

    def _require_user(self, connection_id: str) -> User:
        user = self.users.get(connection_id)
        if user is None:
            raise NotRegistered()
        return user

    def room_users(self, room: Room) -> List[dict]:
        """Membership snapshot of a room in join order."""
        snapshot = []
        for member_id in room.members:
            member = self.users.get(member_id)
            snapshot.append(RoomMember(
                id=member_id,
                name=member.name if member else "Unknown",
                avatar_ref=member.avatar_ref if member else "",
                is_creator=room.is_creator(member_id),
            ).to_wire())
        return snapshot

    def _joined_room(self, room: Room, connection_id: str) -> dict:
        return JoinedRoom(
            id=room.id,
            name=PRIVATE_ROOM_NAME if room.is_private else room.name,
            is_private=room.is_private,
            am_i_creator=room.is_creator(connection_id),
        ).to_wire()

    # Profiles

    def login(self, connection_id: str, name: Optional[str] = None, avatar_ref: Optional[str] = None) -> User:
        if connection_id in self.users:
            # A fresh profile starts outside any room
            self.leave(connection_id)
        user = self.users.register(connection_id, name, avatar_ref, notify=False)
        self.gateway.emit(connection_id, "login_success", user.to_wire())
        self.users.broadcast_user_list()
        self.rooms.broadcast_room_list()
        return user

    def update_profile(self, connection_id: str, name: str, avatar_ref: Optional[str] = None) -> User:
        user = self.users.update(connection_id, name, avatar_ref)
        if user is None:
            raise NotRegistered()
        room = self.rooms.get(user.current_room) if user.current_room else None
        if room is not None:
            self.gateway.emit_room(room.id, "room_users", self.room_users(room))
        return user

    # Rooms

    def create_room(self, connection_id: str, name: str, password: Optional[str] = None) -> str:
        self._require_user(connection_id)
        room_id = self.rooms.create_group(connection_id, name, password)
        self.gateway.emit(connection_id, "room_created", room_id)
        return room_id

    def start_private_chat(self, requester_id: str, target_id: str) -> str:
        self._require_user(requester_id)
        if target_id not in self.users:
            raise TargetNotConnected()
        room_id = self.rooms.get_or_create_private(requester_id, target_id)
        logger.info(f"Private chat {room_id} requested by {requester_id} with {target_id}")
        self.gateway.emit(requester_id, "join_pm_success", room_id)
        self.gateway.emit(target_id, "request_pm_join", room_id)
        return room_id

    def join(self, connection_id: str, room_id: str, password: Optional[str] = None) -> Room:
        user = self._require_user(connection_id)
        room = self.rooms.get(room_id)
        if room is None:
            logger.info(f"Join rejected: room {room_id} not found (user {connection_id})")
            raise RoomNotFound()
        if not room.check_password(password):
            logger.warning(f"Join rejected: invalid password for room {room_id} (user {connection_id})")
            raise IncorrectPassword()

        if user.current_room == room_id:
            # Already a member: acknowledge again without touching membership
            self.gateway.emit(connection_id, "joined_room", self._joined_room(room, connection_id))
            self.gateway.emit(connection_id, "room_users", self.room_users(room))
            return room

        self.leave(connection_id)

        room.members.append(connection_id)
        user.current_room = room_id
        self.gateway.subscribe(connection_id, room_id)
        logger.info(f"User {connection_id} ('{user.name}') joined room {room_id} (members: {len(room.members)})")

        self.gateway.emit(connection_id, "joined_room", self._joined_room(room, connection_id))
        self.gateway.emit_room(room_id, "system_message", f"{user.name} joined.")
        self.gateway.emit_room(room_id, "room_users", self.room_users(room))
        return room

    def leave(self, connection_id: str) -> bool:
        """Take a user out of its current room. Returns False when there was nothing to leave."""
        user = self.users.get(connection_id)
        if user is None or user.current_room is None:
            return False

        room_id = user.current_room
        room = self.rooms.get(room_id)
        user.current_room = None
        self.gateway.unsubscribe(connection_id, room_id)
        if room is None:
            logger.warning(f"User {connection_id} pointed at missing room {room_id}")
            return True

        if connection_id in room.members:
            room.members.remove(connection_id)
        logger.info(f"User {connection_id} ('{user.name}') left room {room_id} (members: {len(room.members)})")

        self.gateway.emit_room(room_id, "system_message", f"{user.name} left.")
        self.gateway.emit_room(room_id, "room_users", self.room_users(room))

        # Only an empty group room is deleted; a single remaining member keeps it open
        self.rooms.delete_if_empty(room_id)
        return True

    def kick(self, acting_id: str, target_id: str):
        actor = self._require_user(acting_id)
        room = self.rooms.get(actor.current_room) if actor.current_room else None
        if room is None or room.is_private or not room.is_creator(acting_id):
            logger.warning(f"Kick by {acting_id} ignored: not the creator of a group room")
            raise NotAuthorized()
        if target_id == acting_id:
            logger.warning(f"Kick by {acting_id} ignored: self-kick")
            raise NotAuthorized("You cannot kick yourself.")
        if target_id not in self.users:
            raise TargetNotConnected()
        if target_id not in room.members:
            logger.warning(f"Kick by {acting_id} ignored: {target_id} is not in room {room.id}")
            raise NotAuthorized("That user is not in your group.")

        self.leave(target_id)
        logger.info(f"User {target_id} kicked from room {room.id} by {acting_id}")
        self.gateway.emit(target_id, "kicked", None)
        self.gateway.emit(target_id, "error_msg", KICKED_REASON)

    # Messages

    def send_message(self, connection_id: str, text: str) -> bool:
        user = self._require_user(connection_id)
        if user.current_room is None:
            logger.debug(f"Dropping message from {connection_id}: not in a room")
            return False
        message = ChatMessageOut(
            user=UserOut(id=user.id, name=user.name, avatar_ref=user.avatar_ref, current_room=user.current_room),
            text=text,
            time=datetime.now().strftime("%H:%M:%S"),
        )
        self.gateway.emit_room(user.current_room, "chat_message", message.to_wire())
        return True

    # Connections

    def connect(self, connection_id: str, sink):
        self.gateway.attach(connection_id, sink)
        logger.info(f"Connection {connection_id} opened")

    def disconnect(self, connection_id: str):
        # Membership first so the registry never holds a user that a room still lists
        self.leave(connection_id)
        self.gateway.detach(connection_id)
        self.users.remove(connection_id)
        logger.info(f"Connection {connection_id} closed")


def build_coordinator(avatar_template: Optional[str] = None) -> MembershipCoordinator:
    """Wire a fresh gateway and registries into a coordinator."""
    gateway = BroadcastGateway()
    users = ConnectionRegistry(gateway, avatar_template=avatar_template)
    rooms = RoomRegistry(gateway)
    return MembershipCoordinator(users, rooms, gateway)
