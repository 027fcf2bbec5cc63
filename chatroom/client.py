# chatroom/client.py
"""Headless chat client.

Talks to the /ws endpoint of a chatroom server at ``BACKEND_URL``.
Reconnects with a fixed delay, a capped number of times, and re-joins the
room it was in.

Usage:
    client = ChatClient(username="alice")
    await client.connect()
    await client.create_room("general")
    await client.send_message("hi")
    event = await client.receive()   # {"type": "message", "data": {...}}

Or from a terminal:
    python -m chatroom.client alice
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
from typing import Any, Dict, List, Optional

import httpx
import websockets
from websockets.exceptions import ConnectionClosed, WebSocketException

from chatroom.core.config import settings
from chatroom.core.logging import setup_logging

logger = logging.getLogger(__name__)


def ws_url_for(base_url: str) -> str:
    """http://host:5000 -> ws://host:5000/ws, https -> wss."""
    base = base_url.rstrip("/")
    if base.startswith("https://"):
        base = "wss://" + base[len("https://"):]
    elif base.startswith("http://"):
        base = "ws://" + base[len("http://"):]
    return f"{base}/ws"


class ChatClient:
    def __init__(
        self,
        username: str,
        base_url: Optional[str] = None,
        reconnect_attempts: Optional[int] = None,
        reconnect_delay: Optional[float] = None,
    ) -> None:
        self.username = username
        self.base_url = base_url or settings.BACKEND_URL
        self.reconnect_attempts = settings.RECONNECT_ATTEMPTS if reconnect_attempts is None else reconnect_attempts
        self.reconnect_delay = settings.RECONNECT_DELAY if reconnect_delay is None else reconnect_delay

        self.session_id: Optional[str] = None
        self.rooms: List[str] = []
        self.current_room: Optional[str] = None
        self.messages: List[Dict[str, Any]] = []
        self.last_error: Optional[str] = None

        self._ws = None
        self._reader: Optional[asyncio.Task] = None
        self._reconnect_task: Optional[asyncio.Task] = None
        self._events: asyncio.Queue = asyncio.Queue()
        self._closing = False

    @property
    def ws_url(self) -> str:
        return ws_url_for(self.base_url)

    async def check_health(self) -> bool:
        """True when GET /health answers 200 "OK"."""
        try:
            async with httpx.AsyncClient(timeout=5.0) as http:
                response = await http.get(f"{self.base_url.rstrip('/')}/health")
        except httpx.HTTPError as e:
            logger.error("Health check failed: %s", e)
            return False
        return response.status_code == 200 and response.text == "OK"

    async def connect(self) -> None:
        """
        Open the WebSocket, retrying up to ``reconnect_attempts`` times.

        Raises:
            ConnectionError: every attempt failed
        """
        self._closing = False
        await self._open()

    async def _open(self) -> None:
        """Connection attempts; stops early, without raising, once close() is called."""
        last_exc: Optional[Exception] = None
        for attempt in range(1, self.reconnect_attempts + 1):
            if self._closing:
                return
            try:
                ws = await websockets.connect(self.ws_url)
            except (OSError, WebSocketException) as e:
                last_exc = e
                logger.warning("Connect attempt %d/%d to %s failed: %s",
                               attempt, self.reconnect_attempts, self.ws_url, e)
                await asyncio.sleep(self.reconnect_delay)
                continue

            if self._closing:
                await ws.close()
                return

            self._ws = ws
            logger.info("✓ Connected to %s", self.ws_url)
            self._reader = asyncio.create_task(self._read_loop(ws))
            if self.current_room:
                await self.join_room(self.current_room)
            return

        raise ConnectionError(f"Could not connect to {self.ws_url}: {last_exc}")

    async def close(self) -> None:
        self._closing = True
        if self._reconnect_task is not None and self._reconnect_task is not asyncio.current_task():
            self._reconnect_task.cancel()
            try:
                await self._reconnect_task
            except asyncio.CancelledError:
                pass
        if self._ws is not None:
            await self._ws.close()
        if self._reader is not None:
            await self._reader

    async def create_room(self, name: str) -> None:
        await self._emit("createRoom", name)

    async def join_room(self, name: str) -> None:
        await self._emit("joinRoom", name)

    async def send_message(self, text: str, room: Optional[str] = None) -> None:
        await self._emit(
            "sendMessage",
            {"room": room or self.current_room, "message": text, "username": self.username},
        )

    async def receive(self, timeout: Optional[float] = None) -> Dict[str, Any]:
        """Next server event, in arrival order."""
        return await asyncio.wait_for(self._events.get(), timeout)

    def handle_event(self, event: Dict[str, Any]) -> None:
        """Fold one server event into the client's view of the world."""
        kind = event.get("type")
        data = event.get("data")

        if kind == "connected":
            self.session_id = data
        elif kind == "roomList":
            self.rooms = list(data or [])
        elif kind in ("roomCreated", "roomJoined"):
            if data != self.current_room:
                self.messages = []
            self.current_room = data
        elif kind == "previousMessages":
            self.messages = list(data or [])
        elif kind == "message":
            self.messages.append(data)
        elif kind == "error":
            self.last_error = data
            logger.warning("Server error: %s", data)

    async def _emit(self, action: str, data: Any) -> None:
        if self._ws is None:
            raise ConnectionError("Not connected")
        await self._ws.send(json.dumps({"action": action, "data": data}))

    async def _read_loop(self, ws) -> None:
        try:
            async for raw in ws:
                try:
                    event = json.loads(raw)
                except ValueError:
                    logger.error("Ignoring malformed frame: %r", raw)
                    continue
                self.handle_event(event)
                await self._events.put(event)
        except ConnectionClosed as e:
            logger.warning("Connection closed: %s", e)

        if not self._closing:
            self._reconnect_task = asyncio.create_task(self._reconnect())

    async def _reconnect(self) -> None:
        logger.info("Reconnecting to %s", self.ws_url)
        try:
            await self._open()
        except ConnectionError as e:
            logger.error("Giving up: %s", e)
            await self._events.put({"type": "error", "data": str(e)})


# ============================================================================
# TERMINAL CHAT
# ============================================================================

def format_event(event: Dict[str, Any]) -> Optional[str]:
    kind, data = event.get("type"), event.get("data")
    if kind == "message":
        return f"[{data['time']}] {data['user']}: {data['text']}"
    if kind == "previousMessages":
        return "\n".join(f"[{m['time']}] {m['user']}: {m['text']}" for m in data) or "(no messages yet)"
    if kind == "roomList":
        return "Rooms: " + (", ".join(data) or "(none)")
    if kind in ("roomCreated", "roomJoined"):
        return f"* now in #{data}"
    if kind == "userJoined":
        return f"* {data} joined"
    if kind == "userLeft":
        return f"* {data} left"
    if kind == "error":
        return f"! {data}"
    return None


async def _print_events(client: ChatClient) -> None:
    while True:
        line = format_event(await client.receive())
        if line:
            print(line)


async def run_terminal(username: str, base_url: Optional[str] = None) -> None:
    client = ChatClient(username, base_url=base_url)
    if not await client.check_health():
        logger.warning("%s did not answer /health", client.base_url)
    await client.connect()
    printer = asyncio.create_task(_print_events(client))

    loop = asyncio.get_running_loop()
    try:
        while True:
            line = (await loop.run_in_executor(None, input)).strip()
            if not line:
                continue
            if line in ("/quit", "/exit"):
                break
            if line.startswith("/create "):
                await client.create_room(line[len("/create "):].strip())
            elif line.startswith("/join "):
                await client.join_room(line[len("/join "):].strip())
            elif client.current_room is None:
                print("! join or create a room first (/join NAME, /create NAME)")
            else:
                await client.send_message(line)
    except EOFError:
        pass
    finally:
        printer.cancel()
        await client.close()


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Terminal chat client")
    parser.add_argument("username")
    parser.add_argument("--url", default=None, help="Server base URL (default: BACKEND_URL)")
    args = parser.parse_args(argv)

    setup_logging()
    asyncio.run(run_terminal(args.username, args.url))


if __name__ == "__main__":
    main()
