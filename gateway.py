from typing import Any, Callable, Dict, Iterable, Set

from logging_config import get_logger

logger = get_logger(__name__)

# A sink accepts one outbound frame without blocking (e.g. asyncio.Queue.put_nowait)
Sink = Callable[[dict], None]


class BroadcastGateway:
    """Fan-out of events to one connection, one room, or every connection.

    Room subscriptions are tracked here and changed by the membership
    coordinator in the same synchronous step as the room's member list, so a
    connection stops receiving a room's events the moment it leaves.
    """

    def __init__(self):
        # Format: {connection_id: sink}
        self.sinks: Dict[str, Sink] = {}
        # Format: {room_id: {connection_id, ...}}
        self.room_subscribers: Dict[str, Set[str]] = {}

    def attach(self, connection_id: str, sink: Sink):
        self.sinks[connection_id] = sink
        logger.debug(f"Attached connection {connection_id} (connections: {len(self.sinks)})")

    def detach(self, connection_id: str):
        self.sinks.pop(connection_id, None)
        for room_id in list(self.room_subscribers):
            self.unsubscribe(connection_id, room_id)
        logger.debug(f"Detached connection {connection_id} (connections: {len(self.sinks)})")

    def subscribe(self, connection_id: str, room_id: str):
        self.room_subscribers.setdefault(room_id, set()).add(connection_id)

    def unsubscribe(self, connection_id: str, room_id: str):
        subscribers = self.room_subscribers.get(room_id)
        if subscribers is None:
            return
        subscribers.discard(connection_id)
        if not subscribers:
            del self.room_subscribers[room_id]

    def subscribers(self, room_id: str) -> Set[str]:
        return set(self.room_subscribers.get(room_id, ()))

    def emit(self, connection_id: str, event: str, data: Any = None):
        """Send one event to a single connection; unknown connections are ignored."""
        sink = self.sinks.get(connection_id)
        if sink is None:
            logger.debug(f"Dropping {event} for unattached connection {connection_id}")
            return
        try:
            sink({"event": event, "data": data})
        except Exception as e:
            logger.warning(f"Error queueing {event} for connection {connection_id}: {e}")

    def emit_room(self, room_id: str, event: str, data: Any = None):
        recipients = self.subscribers(room_id)
        logger.debug(f"Broadcasting {event} to {len(recipients)} connections in room {room_id}")
        self._emit_many(recipients, event, data)

    def emit_all(self, event: str, data: Any = None):
        logger.debug(f"Broadcasting {event} to {len(self.sinks)} connections")
        self._emit_many(list(self.sinks), event, data)

    def _emit_many(self, connection_ids: Iterable[str], event: str, data: Any):
        for connection_id in connection_ids:
            self.emit(connection_id, event, data)
