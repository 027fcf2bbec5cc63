# chatroom/core/state.py
from __future__ import annotations

from dataclasses import dataclass

from chatroom.services.connection_manager import ConnectionManager
from chatroom.services.room_manager import RoomManager
from chatroom.services.storage import RoomStorage


@dataclass
class ChatState:
    """Application state, built once per app and kept on ``app.state.chat``."""

    room_manager: RoomManager
    connection_manager: ConnectionManager


def build_state(storage_dir: str) -> ChatState:
    room_manager = RoomManager(RoomStorage(storage_dir))
    connection_manager = ConnectionManager(room_manager=room_manager)
    return ChatState(room_manager=room_manager, connection_manager=connection_manager)
