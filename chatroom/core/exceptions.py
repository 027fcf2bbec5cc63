# chatroom/core/exceptions.py

from __future__ import annotations


class ChatError(Exception):
    """Base error. ``str(err)`` is the text sent on the ``error`` event."""

    message = "Something went wrong"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)


class RoomAlreadyExists(ChatError):
    message = "Room already exists"


class RoomNotFound(ChatError):
    message = "Room does not exist"


class InvalidRoomName(ChatError):
    message = "Room name required"


class InvalidMessagePayload(ChatError):
    """A sendMessage payload missing its room, text or author. Never shown to clients."""

    message = "Invalid message data"


class PersistenceFailure(ChatError):
    """Reading or writing a storage file failed. Logged and swallowed by RoomStorage."""

    def __init__(self, path: str, cause: Exception) -> None:
        super().__init__(f"{path}: {cause}")
        self.path = path
        self.cause = cause
