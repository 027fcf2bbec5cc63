# chatroom/services/room_manager.py

from __future__ import annotations

from typing import Dict, FrozenSet, List, Optional, Set
import logging

from chatroom.core.exceptions import InvalidRoomName, RoomAlreadyExists, RoomNotFound
from chatroom.models.models import Message, now_time
from chatroom.services.storage import RoomStorage

logger = logging.getLogger(__name__)

# ============================================================================
# ROOM REGISTRY
# ============================================================================

class RoomManager:
    """
    Owns every room, its live membership and its message log.

    Rooms are keyed by name and never deleted. Membership (session ids) is
    in-memory only; names and message logs are written through to
    ``RoomStorage`` after each mutation.

    Attributes:
        rooms: room name -> set of session ids currently in that room
        messages: room name -> ordered message log

    All methods are synchronous and run to completion, so callers on the
    event loop never observe a half-applied mutation.

    Usage:
        room_manager = RoomManager(RoomStorage("storage"))
        room_manager.create_room("general")
        history = room_manager.join_room(session_id, "general")
    """

    def __init__(self, storage: RoomStorage) -> None:
        """Initialize the registry and load existing rooms from storage."""
        self.storage = storage
        self.rooms: Dict[str, Set[str]] = {}
        self.messages: Dict[str, List[Message]] = {}
        self.load_rooms()

    def load_rooms(self) -> None:
        """Restore room names and message logs saved by a previous run."""
        for name in self.storage.load_room_names():
            self.rooms[name] = set()
            self.messages[name] = self.storage.load_room_messages(name)
            logger.info("✓ Loaded room %s (%d messages)", name, len(self.messages[name]))

    def create_room(self, name: str) -> None:
        """
        Create an empty room and persist the room list.

        Raises:
            InvalidRoomName: name is empty or whitespace
            RoomAlreadyExists: a room with this exact name exists
        """
        if not name or not name.strip():
            raise InvalidRoomName()
        if name in self.rooms:
            raise RoomAlreadyExists()

        self.rooms[name] = set()
        self.messages[name] = []
        self.storage.save_room_names(self.list_room_names())
        logger.info("✓ Created room: %s", name)

    def join_room(self, session_id: str, name: str) -> List[Message]:
        """
        Add a session to a room's membership.

        Joining a room twice is harmless. Joining another room does not
        leave the previous one.

        Returns:
            A copy of the room's full message log, oldest first.

        Raises:
            RoomNotFound: no room with this name
        """
        if name not in self.rooms:
            raise RoomNotFound()

        self.rooms[name].add(session_id)
        logger.info("→ %s joined '%s' (%d members)", session_id, name, len(self.rooms[name]))
        return list(self.messages[name])

    def append_message(self, name: str, user: str, text: str) -> Optional[Message]:
        """
        Append a message to a room's log and persist the log.

        Returns None (and logs) when room, text or user is empty or the
        room does not exist. Nothing is raised to the caller.
        """
        if not name or not text or not user:
            logger.error("Invalid message data: room=%r user=%r text=%r", name, user, text)
            return None
        if name not in self.messages:
            logger.error("Message for unknown room %r dropped", name)
            return None

        message = Message(user=user, text=text, time=now_time())
        self.messages[name].append(message)
        self.storage.save_room_messages(name, self.messages[name])
        return message

    def remove_session(self, session_id: str) -> Set[str]:
        """
        Remove a session from every room it belongs to.

        Returns:
            Names of the rooms whose membership changed.
        """
        changed: Set[str] = set()
        for name, members in self.rooms.items():
            if session_id in members:
                members.discard(session_id)
                changed.add(name)
        return changed

    def list_room_names(self) -> List[str]:
        return list(self.rooms.keys())

    def members(self, name: str) -> FrozenSet[str]:
        return frozenset(self.rooms.get(name, ()))

    def rooms_of(self, session_id: str) -> Set[str]:
        return {name for name, members in self.rooms.items() if session_id in members}

    def get_messages(self, name: str) -> List[Message]:
        if name not in self.messages:
            raise RoomNotFound()
        return list(self.messages[name])
