# chatroom/services/connection_manager.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional
from uuid import uuid4
import logging

from fastapi import WebSocket

from chatroom.models.models import ServerEvent, SessionState
from chatroom.services.room_manager import RoomManager

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class Session:
    """One live WebSocket connection."""

    websocket: WebSocket
    id: str = field(default_factory=lambda: uuid4().hex)
    state: SessionState = SessionState.ROOMLESS

# ============================================================================
# WEBSOCKET CONNECTION MANAGER
# ============================================================================

class ConnectionManager:
    """
    Tracks connected sessions and fans events out to them.

    Room membership itself lives in the RoomManager; this class only maps
    session ids to their WebSockets and delivers events.

    Data Structures:
        sessions: Maps session_id -> Session
                  Example: {"3f2a...": Session(websocket1, "3f2a...", IN_ROOM)}

    Delivery:
        Fire and forget. A send that fails is logged; the failing
        connection's own handler notices the disconnect and cleans up.
    """

    def __init__(self, room_manager: RoomManager) -> None:
        self.sessions: Dict[str, Session] = {}
        self.room_manager = room_manager

    async def connect(self, websocket: WebSocket) -> Session:
        """Accept a new WebSocket connection and register its session."""
        await websocket.accept()

        session = Session(websocket=websocket)
        self.sessions[session.id] = session

        logger.info("✓ Session %s connected. Total: %d", session.id, len(self.sessions))
        return session

    def disconnect(self, session_id: str) -> Optional[Session]:
        """Forget a session. Room membership is pruned by the caller."""
        session = self.sessions.pop(session_id, None)
        if session is not None:
            session.state = SessionState.TERMINATED
            logger.info("✗ Session %s disconnected. Total: %d", session_id, len(self.sessions))
        return session

    async def send(self, session_id: str, event_type: str, data: Any = None) -> None:
        """Send one event to one session."""
        session = self.sessions.get(session_id)
        if session is None:
            return
        await self._deliver(session, ServerEvent(type=event_type, data=data).model_dump(mode="json"))

    async def broadcast_to_room(
        self,
        room_name: str,
        event_type: str,
        data: Any = None,
        exclude: Optional[str] = None,
    ) -> None:
        """
        Send an event to every connected session in a room.

        Args:
            room_name: Target room
            event_type: Outbound event name, e.g. "message"
            data: Event payload
            exclude: Optional session id to skip (e.g. the joiner)
        """
        members = self.room_manager.members(room_name)
        if not members:
            logger.info("[routing] Skipped broadcast: room=%s has 0 members", room_name)
            return

        payload = ServerEvent(type=event_type, data=data).model_dump(mode="json")
        logger.info("📨 Broadcasting %s to room %s: %d clients", event_type, room_name, len(members))

        for session_id in members:
            if session_id == exclude:
                continue
            session = self.sessions.get(session_id)
            if session is not None:
                await self._deliver(session, payload)

    async def broadcast_all(self, event_type: str, data: Any = None) -> None:
        """Send an event to every connected session."""
        payload = ServerEvent(type=event_type, data=data).model_dump(mode="json")
        for session in list(self.sessions.values()):
            await self._deliver(session, payload)

    async def _deliver(self, session: Session, payload: dict) -> None:
        try:
            await session.websocket.send_json(payload)
        except Exception as e:
            logger.error("Send error to %s: %s", session.id, e)
