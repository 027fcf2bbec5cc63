# chatroom/services/storage.py

from __future__ import annotations

import json
import logging
import os
from typing import Any, List, Sequence
from urllib.parse import quote

from pydantic import TypeAdapter

from chatroom.core.exceptions import PersistenceFailure
from chatroom.models.models import Message

logger = logging.getLogger(__name__)

ROOMS_FILE = "rooms.json"  # JSON array of room names, in creation order
MESSAGES_DIR = "messages"  # One JSON array file per room

_room_names = TypeAdapter(List[str])
_message_log = TypeAdapter(List[Message])

# ============================================================================
# FLAT-FILE PERSISTENCE
# ============================================================================

class RoomStorage:
    """
    Best-effort flat-file persistence for rooms and their message logs.

    Every save rewrites the whole file. Every failure (I/O, bad JSON, bad
    shape) is logged and ignored so the service keeps running in memory.

    Layout:
        <root>/rooms.json                 ["general", "random"]
        <root>/messages/general.json      [{"user": "alice", "text": "hi", "time": "14:03:27"}]

    Room names are percent-escaped before being used as file names, so
    "a/b" is stored as "a%2Fb.json".
    """

    def __init__(self, root: str) -> None:
        self.root = root
        self.rooms_file = os.path.join(root, ROOMS_FILE)
        self.messages_dir = os.path.join(root, MESSAGES_DIR)
        try:
            os.makedirs(self.messages_dir, exist_ok=True)
        except OSError as e:
            logger.error("Could not create storage directory %s: %s", self.messages_dir, e)

    def messages_file(self, room_name: str) -> str:
        return os.path.join(self.messages_dir, f"{quote(room_name, safe='')}.json")

    # ------------------------------------------------------------------
    # Loading (startup only)
    # ------------------------------------------------------------------

    def load_room_names(self) -> List[str]:
        try:
            names = self._read_json(self.rooms_file, _room_names)
        except PersistenceFailure as e:
            logger.error("Error loading saved rooms: %s", e)
            return []
        logger.info("✓ Loaded %d rooms from %s", len(names), self.rooms_file)
        return names

    def load_room_messages(self, room_name: str) -> List[Message]:
        try:
            return self._read_json(self.messages_file(room_name), _message_log)
        except PersistenceFailure as e:
            logger.error("Error loading messages for room %s: %s", room_name, e)
            return []

    # ------------------------------------------------------------------
    # Saving (after every mutation)
    # ------------------------------------------------------------------

    def save_room_names(self, names: Sequence[str]) -> None:
        try:
            self._write_json(self.rooms_file, list(names))
        except PersistenceFailure as e:
            logger.error("Error saving rooms: %s", e)
            return
        logger.debug("Saved %d rooms", len(names))

    def save_room_messages(self, room_name: str, messages: Sequence[Message]) -> None:
        try:
            self._write_json(
                self.messages_file(room_name),
                [m.model_dump() for m in messages],
            )
        except PersistenceFailure as e:
            logger.error("Error saving messages for room %s: %s", room_name, e)
            return
        logger.debug("Saved %d messages for room %s", len(messages), room_name)

    # ------------------------------------------------------------------

    def _read_json(self, path: str, adapter: TypeAdapter) -> Any:
        """Parse and validate ``path``; a missing file is an empty list."""
        if not os.path.exists(path):
            return []
        try:
            with open(path, "r", encoding="utf-8") as f:
                return adapter.validate_python(json.load(f))
        except (OSError, ValueError) as e:  # ValidationError is a ValueError
            raise PersistenceFailure(path, e) from e

    def _write_json(self, path: str, data: Any) -> None:
        try:
            with open(path, "w", encoding="utf-8") as f:
                json.dump(data, f)
        except (OSError, TypeError, ValueError) as e:
            raise PersistenceFailure(path, e) from e
