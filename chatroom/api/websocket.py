# chatroom/api/websocket.py

from __future__ import annotations

import json
import logging
from typing import Any

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from chatroom.core.exceptions import ChatError, InvalidMessagePayload
from chatroom.core.state import ChatState
from chatroom.models.models import ClientEvent, SendMessageRequest, SessionState
from chatroom.services.connection_manager import Session

logger = logging.getLogger(__name__)

router = APIRouter()

# ============================================================================
# WEBSOCKET ENDPOINT
# ============================================================================

@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """
    WebSocket endpoint for real-time chat.

    Protocol:
    =========
    Every frame is a JSON object. Client frames carry an "action" and
    server frames a "type"; both put the payload under "data".

    Client -> Server Actions:
    -------------------------
    Create Room:
        {"action": "createRoom", "data": "general"}
        Response: {"type": "roomCreated", "data": "general"}
        Everyone: {"type": "roomList", "data": ["general", ...]}

    Join Room:
        {"action": "joinRoom", "data": "general"}
        Response: {"type": "roomJoined", "data": "general"}
                  {"type": "previousMessages", "data": [{"user": ..., "text": ..., "time": ...}]}
        Others in room: {"type": "userJoined", "data": "<session id>"}

    Send Message:
        {"action": "sendMessage", "data": {"room": "general", "message": "hi", "username": "alice"}}
        Everyone in room (sender included):
            {"type": "message", "data": {"user": "alice", "text": "hi", "time": "14:03:27"}}

    Server -> Client Only:
    ----------------------
    On connect: {"type": "connected", "data": "<session id>"}
                {"type": "roomList", "data": [...]}
    Error:      {"type": "error", "data": "Room already exists"}

    Lifecycle:
    ==========
    1. Connection accepted, session id assigned, room list pushed
    2. Client creates or joins rooms (membership accumulates)
    3. On disconnect the session leaves every room, each of those rooms
       gets "userLeft" and everyone gets a fresh "roomList"

    Error Handling:
        - Invalid JSON: error event
        - Unknown actions: error event
        - Bad sendMessage payload: dropped and logged, no reply
    """
    chat: ChatState = websocket.app.state.chat
    session = await chat.connection_manager.connect(websocket)

    await chat.connection_manager.send(session.id, "connected", session.id)
    await chat.connection_manager.send(session.id, "roomList", chat.room_manager.list_room_names())

    try:
        while True:
            data = await websocket.receive_text()

            try:
                event = ClientEvent.model_validate(json.loads(data))
            except (json.JSONDecodeError, ValidationError):
                await chat.connection_manager.send(session.id, "error", "Invalid JSON")
                continue

            logger.info("Websocket input: Action: %s, Data: %s", event.action, event.data)

            if event.action == "createRoom":
                await create_room(chat, session, event.data)

            elif event.action == "joinRoom":
                await join_room(chat, session, event.data)

            elif event.action == "sendMessage":
                await send_message(chat, event.data)

            else:
                await chat.connection_manager.send(
                    session.id, "error", f"Unknown action: {event.action}"
                )

    except WebSocketDisconnect:
        pass
    except Exception as e:
        logger.error("WebSocket error: %s", e)
    finally:
        await disconnect(chat, session)

# ============================================================================
# EVENT HANDLERS
# ============================================================================

async def create_room(chat: ChatState, session: Session, room_name: Any) -> None:
    """Create a room, put its creator in it and refresh everyone's room list."""
    logger.info("Creating room: %s", room_name)
    name = room_name if isinstance(room_name, str) else ""
    try:
        chat.room_manager.create_room(name)
        chat.room_manager.join_room(session.id, name)
    except ChatError as e:
        await chat.connection_manager.send(session.id, "error", str(e))
        return

    session.state = SessionState.IN_ROOM
    await chat.connection_manager.send(session.id, "roomCreated", name)
    await chat.connection_manager.broadcast_all("roomList", chat.room_manager.list_room_names())


async def join_room(chat: ChatState, session: Session, room_name: Any) -> None:
    """Join a room and replay its history to the joiner."""
    logger.info("Joining room: %s", room_name)
    name = room_name if isinstance(room_name, str) else ""
    try:
        history = chat.room_manager.join_room(session.id, name)
    except ChatError as e:
        await chat.connection_manager.send(session.id, "error", str(e))
        return

    session.state = SessionState.IN_ROOM
    await chat.connection_manager.send(session.id, "roomJoined", name)
    await chat.connection_manager.send(
        session.id, "previousMessages", [m.model_dump() for m in history]
    )
    await chat.connection_manager.broadcast_to_room(name, "userJoined", session.id, exclude=session.id)


def parse_send_message(data: Any) -> SendMessageRequest:
    """
    Validate a sendMessage payload.

    Raises:
        InvalidMessagePayload: not an object, or room/message/username missing
    """
    try:
        request = SendMessageRequest.model_validate(data)
    except ValidationError as e:
        raise InvalidMessagePayload(f"Invalid message data: {data!r}") from e
    if not request.room or not request.message or not request.username:
        raise InvalidMessagePayload(f"Invalid message data: {data!r}")
    return request


async def send_message(chat: ChatState, data: Any) -> None:
    """Store a message and deliver it to the whole room, sender included."""
    try:
        request = parse_send_message(data)
    except InvalidMessagePayload as e:
        logger.warning("%s", e)
        return

    message = chat.room_manager.append_message(request.room, request.username, request.message)
    if message is None:
        return

    logger.info("Broadcasting message to room: %s %s", request.room, message)
    await chat.connection_manager.broadcast_to_room(request.room, "message", message.model_dump())


async def disconnect(chat: ChatState, session: Session) -> None:
    """Drop the session, tell its rooms, refresh everyone's room list."""
    chat.connection_manager.disconnect(session.id)
    left = chat.room_manager.remove_session(session.id)

    for room_name in left:
        await chat.connection_manager.broadcast_to_room(room_name, "userLeft", session.id)

    await chat.connection_manager.broadcast_all("roomList", chat.room_manager.list_room_names())
