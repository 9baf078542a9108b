import asyncio
import threading
import uuid
from typing import Optional

from fastapi import FastAPI, Request, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware

from constants import AVATAR_URL_TEMPLATE, CORS_ORIGINS, LOG_FILE, LOG_LEVEL, OUTBOX_MAX_SIZE
from handlers import handle_event
from logging_config import get_logger, setup_logging
from membership import MembershipCoordinator, build_coordinator
from routers.rooms import rooms_router
from routers.users import users_router

# Setup logging
setup_logging(log_level=LOG_LEVEL, log_file=LOG_FILE)
logger = get_logger(__name__)


def make_sink(loop: asyncio.AbstractEventLoop, outbox: asyncio.Queue, connection_id: str):
    """Sink that hands frames to the loop owning the outbox, from any thread."""

    def deliver(message: dict):
        try:
            outbox.put_nowait(message)
        except asyncio.QueueFull:
            logger.warning(f"Outbox full for connection {connection_id}, dropping {message.get('event')}")

    def sink(message: dict):
        loop.call_soon_threadsafe(deliver, message)

    return sink


async def drain_outbox(websocket: WebSocket, outbox: asyncio.Queue, connection_id: str):
    """Write queued events to the socket in order until cancelled or the socket fails."""
    sent = 0
    try:
        while True:
            message = await outbox.get()
            await websocket.send_json(message)
            sent += 1
    except asyncio.CancelledError:
        logger.debug(f"Outbox writer for connection {connection_id} stopped after {sent} messages")
        raise
    except Exception as e:
        logger.warning(f"Error sending to connection {connection_id}: {e}")


def create_app(chat: Optional[MembershipCoordinator] = None) -> FastAPI:
    """Build the application around its own in-memory chat state."""
    app = FastAPI(title="Room Relay")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.chat = chat or build_coordinator(avatar_template=AVATAR_URL_TEMPLATE)
    # Held around every state transition; connections may run on different threads
    app.state.chat_lock = threading.Lock()

    app.include_router(rooms_router)
    app.include_router(users_router)

    @app.get("/health")
    async def health(request: Request):
        state = request.app.state.chat
        return {"status": "ok", "users": len(state.users), "rooms": len(state.rooms)}

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket):
        """One chat session per WebSocket connection.

        Frames are JSON objects {"event": ..., "data": ...} in both directions.
        """
        state: MembershipCoordinator = websocket.app.state.chat
        lock: threading.Lock = websocket.app.state.chat_lock
        connection_id = str(uuid.uuid4())

        await websocket.accept()
        outbox: asyncio.Queue = asyncio.Queue(maxsize=OUTBOX_MAX_SIZE)
        with lock:
            state.connect(connection_id, make_sink(asyncio.get_running_loop(), outbox, connection_id))
        writer = asyncio.create_task(drain_outbox(websocket, outbox, connection_id))

        message_count = 0
        try:
            while True:
                data = await websocket.receive_text()
                message_count += 1
                logger.debug(f"Received frame #{message_count} from connection {connection_id}")
                with lock:
                    handle_event(state, connection_id, data)
        except WebSocketDisconnect:
            logger.info(f"WebSocket disconnected normally for connection {connection_id}")
        except Exception as e:
            logger.error(f"WebSocket error for connection {connection_id}: {e}", exc_info=True)
        finally:
            with lock:
                state.disconnect(connection_id)
            writer.cancel()
            try:
                await writer
            except asyncio.CancelledError:
                pass

    logger.info("FastAPI application initialized")
    return app


app = create_app()
