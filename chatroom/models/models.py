# chatroom/models/models.py
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict


def now_time() -> str:
    """Wall-clock time of receipt, e.g. ``14:03:27``."""
    return datetime.now().strftime("%H:%M:%S")


class Message(BaseModel):
    model_config = ConfigDict(frozen=True)

    user: str
    text: str
    time: str


class SendMessageRequest(BaseModel):
    room: Optional[str] = None
    message: Optional[str] = None
    username: Optional[str] = None


class ClientEvent(BaseModel):
    action: Optional[str] = None
    data: Any = None


class ServerEvent(BaseModel):
    type: str
    data: Any = None


class SessionState(str, Enum):
    ROOMLESS = "roomless"
    IN_ROOM = "in_room"
    TERMINATED = "terminated"
