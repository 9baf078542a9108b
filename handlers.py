import json
from typing import Any, Callable, Dict

from pydantic import ValidationError

from constants import REPORT_IGNORED_ACTIONS
from errors import ChatError, InvalidPayload, UnknownEvent
from logging_config import get_logger
from membership import MembershipCoordinator
from schemas.events import InboundEvent, SendMessageRequest
from schemas.rooms import CreateRoomRequest, JoinRoomRequest
from schemas.users import LoginRequest, TargetRequest, UpdateProfileRequest

logger = get_logger(__name__)


def _validate(event: str, model, data: Any, bare_field: str = None):
    # start_pm, kick_user and send_message carry a bare string on the wire
    if bare_field is not None and isinstance(data, str):
        data = {bare_field: data}
    if data is None:
        data = {}
    try:
        return model.model_validate(data)
    except ValidationError as e:
        logger.warning(f"Rejected {event} payload: {e.error_count()} validation error(s)")
        raise InvalidPayload(event) from e


def on_login(chat: MembershipCoordinator, connection_id: str, data: Any):
    request = _validate("login", LoginRequest, data)
    chat.login(connection_id, request.name, request.avatar_ref)


def on_update_profile(chat: MembershipCoordinator, connection_id: str, data: Any):
    request = _validate("update_profile", UpdateProfileRequest, data)
    chat.update_profile(connection_id, request.name, request.avatar_ref)


def on_create_room(chat: MembershipCoordinator, connection_id: str, data: Any):
    request = _validate("create_room", CreateRoomRequest, data)
    chat.create_room(connection_id, request.name, request.password)


def on_start_pm(chat: MembershipCoordinator, connection_id: str, data: Any):
    request = _validate("start_pm", TargetRequest, data, bare_field="target_id")
    chat.start_private_chat(connection_id, request.target_id)


def on_join_room(chat: MembershipCoordinator, connection_id: str, data: Any):
    request = _validate("join_room", JoinRoomRequest, data)
    chat.join(connection_id, request.room_id, request.password)


def on_send_message(chat: MembershipCoordinator, connection_id: str, data: Any):
    request = _validate("send_message", SendMessageRequest, data, bare_field="text")
    chat.send_message(connection_id, request.text)


def on_kick_user(chat: MembershipCoordinator, connection_id: str, data: Any):
    request = _validate("kick_user", TargetRequest, data, bare_field="target_id")
    chat.kick(connection_id, request.target_id)


def on_leave_room(chat: MembershipCoordinator, connection_id: str, data: Any):
    chat.leave(connection_id)


EVENT_HANDLERS: Dict[str, Callable[[MembershipCoordinator, str, Any], None]] = {
    "login": on_login,
    "update_profile": on_update_profile,
    "create_room": on_create_room,
    "start_pm": on_start_pm,
    "join_room": on_join_room,
    "send_message": on_send_message,
    "kick_user": on_kick_user,
    "leave_room": on_leave_room,
}


def handle_event(chat: MembershipCoordinator, connection_id: str, raw: str, report_ignored: bool = None):
    """Decode one client frame and apply it.

    Failures never escape: user-visible ones go back to the sender as
    error_msg, silent ones are only logged.
    """
    if report_ignored is None:
        report_ignored = REPORT_IGNORED_ACTIONS

    event = "unknown"
    try:
        try:
            envelope = InboundEvent.model_validate(json.loads(raw))
        except (json.JSONDecodeError, ValidationError):
            logger.warning(f"Malformed frame from connection {connection_id}")
            chat.gateway.emit(connection_id, "error_msg", "Malformed event.")
            return

        event = envelope.event
        handler = EVENT_HANDLERS.get(event)
        if handler is None:
            raise UnknownEvent(event)
        logger.debug(f"Handling {event} from connection {connection_id}")
        handler(chat, connection_id, envelope.data)

    except ChatError as e:
        if e.silent and not report_ignored:
            logger.warning(f"Ignored {event} from connection {connection_id}: {type(e).__name__}")
            return
        logger.info(f"{event} from connection {connection_id} failed: {e.message}")
        chat.gateway.emit(connection_id, "error_msg", e.message)
    except Exception as e:
        logger.error(f"Error handling {event} from connection {connection_id}: {e}", exc_info=True)
