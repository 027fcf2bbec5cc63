#!/usr/bin/env python3
"""
Unit tests for the headless ChatClient.

The WebSocket layer is replaced by a fake so no server is needed.
"""

import asyncio
import json
import unittest
from unittest.mock import AsyncMock, patch

from chatroom import client as client_module
from chatroom.client import ChatClient, format_event, ws_url_for


class FakeWebSocket:
    """Collects sent frames; iteration blocks until close()."""

    def __init__(self, incoming=()):
        self.sent = []
        self.incoming = list(incoming)
        self.closed = asyncio.Event()

    async def send(self, raw):
        self.sent.append(json.loads(raw))

    async def close(self):
        self.closed.set()

    def __aiter__(self):
        return self._frames()

    async def _frames(self):
        for frame in self.incoming:
            yield frame if isinstance(frame, str) else json.dumps(frame)
        await self.closed.wait()


class TestUrls(unittest.TestCase):

    def test_http_to_ws(self):
        self.assertEqual(ws_url_for("http://localhost:5000"), "ws://localhost:5000/ws")

    def test_https_to_wss_and_trailing_slash(self):
        self.assertEqual(ws_url_for("https://chat.example.com/"), "wss://chat.example.com/ws")


class TestHandleEvent(unittest.TestCase):

    def setUp(self):
        self.client = ChatClient("alice", base_url="http://localhost:5000")

    def test_tracks_rooms_and_messages(self):
        hi = {"user": "bob", "text": "hi", "time": "10:00:00"}
        for e in (
            {"type": "connected", "data": "abc"},
            {"type": "roomList", "data": ["general"]},
            {"type": "roomJoined", "data": "general"},
            {"type": "previousMessages", "data": [hi]},
            {"type": "message", "data": {"user": "alice", "text": "yo", "time": "10:00:01"}},
        ):
            self.client.handle_event(e)

        self.assertEqual(self.client.session_id, "abc")
        self.assertEqual(self.client.rooms, ["general"])
        self.assertEqual(self.client.current_room, "general")
        self.assertEqual([m["text"] for m in self.client.messages], ["hi", "yo"])

    def test_switching_rooms_clears_messages(self):
        self.client.handle_event({"type": "roomJoined", "data": "a"})
        self.client.handle_event({"type": "message", "data": {"user": "x", "text": "1", "time": "t"}})
        self.client.handle_event({"type": "roomCreated", "data": "b"})
        self.assertEqual(self.client.messages, [])

    def test_error_recorded(self):
        with self.assertLogs("chatroom.client", level="WARNING"):
            self.client.handle_event({"type": "error", "data": "Room does not exist"})
        self.assertEqual(self.client.last_error, "Room does not exist")


class TestFormatEvent(unittest.TestCase):

    def test_message_line(self):
        line = format_event({"type": "message", "data": {"user": "alice", "text": "hi", "time": "10:00:00"}})
        self.assertEqual(line, "[10:00:00] alice: hi")

    def test_empty_history(self):
        self.assertEqual(format_event({"type": "previousMessages", "data": []}), "(no messages yet)")

    def test_unknown_event_ignored(self):
        self.assertIsNone(format_event({"type": "connected", "data": "abc"}))


class TestConnect(unittest.TestCase):

    def test_gives_up_after_capped_attempts(self):
        async def scenario():
            chat = ChatClient("alice", base_url="http://localhost:1", reconnect_attempts=3, reconnect_delay=0)
            with patch.object(client_module.websockets, "connect",
                              AsyncMock(side_effect=OSError("refused"))) as connect:
                with self.assertRaises(ConnectionError):
                    await chat.connect()
            return connect.await_count

        with self.assertLogs("chatroom.client", level="WARNING"):
            self.assertEqual(asyncio.run(scenario()), 3)

    def test_retries_then_rejoins_current_room(self):
        async def scenario():
            fake = FakeWebSocket(incoming=[{"type": "roomJoined", "data": "general"}])
            chat = ChatClient("alice", base_url="http://localhost:5000", reconnect_attempts=3, reconnect_delay=0)
            chat.current_room = "general"
            with patch.object(client_module.websockets, "connect",
                              AsyncMock(side_effect=[OSError("refused"), fake])):
                await chat.connect()
            received = await chat.receive(timeout=1)
            await chat.send_message("hi")
            await chat.close()
            return fake.sent, received

        with self.assertLogs("chatroom.client", level="WARNING"):
            sent, received = asyncio.run(scenario())

        self.assertEqual(received, {"type": "roomJoined", "data": "general"})
        self.assertEqual(sent, [
            {"action": "joinRoom", "data": "general"},
            {"action": "sendMessage", "data": {"room": "general", "message": "hi", "username": "alice"}},
        ])

    def test_reconnects_and_rejoins_after_drop(self):
        async def scenario():
            first = FakeWebSocket(incoming=[{"type": "roomJoined", "data": "general"}])
            second = FakeWebSocket()
            chat = ChatClient("alice", base_url="http://localhost:5000", reconnect_attempts=3, reconnect_delay=0)
            with patch.object(client_module.websockets, "connect",
                              AsyncMock(side_effect=[first, second])):
                await chat.connect()
                await chat.receive(timeout=1)
                await first.close()  # server went away
                while not second.sent:
                    await asyncio.sleep(0.01)
            await chat.close()
            return second.sent

        with self.assertLogs("chatroom.client", level="INFO"):
            sent = asyncio.run(asyncio.wait_for(scenario(), 5))
        self.assertEqual(sent, [{"action": "joinRoom", "data": "general"}])

    def test_close_during_backoff_stays_closed(self):
        async def scenario():
            first = FakeWebSocket()
            later = FakeWebSocket()
            chat = ChatClient("alice", base_url="http://localhost:5000", reconnect_attempts=3, reconnect_delay=0.2)
            connect = AsyncMock(side_effect=[first, OSError("refused"), later])
            with patch.object(client_module.websockets, "connect", connect):
                await chat.connect()
                await first.close()  # server went away
                while connect.await_count < 2:
                    await asyncio.sleep(0.01)
                await chat.close()  # reconnect task is sleeping between attempts
                await asyncio.sleep(0.4)
            return connect.await_count, chat._ws

        with self.assertLogs("chatroom.client", level="WARNING"):
            calls, ws = asyncio.run(asyncio.wait_for(scenario(), 5))
        self.assertEqual(calls, 2)
        self.assertIsNot(ws, None)
        self.assertTrue(ws.closed.is_set())

    def test_malformed_frame_skipped(self):
        async def scenario():
            fake = FakeWebSocket(incoming=["not json", {"type": "roomList", "data": ["general"]}])
            chat = ChatClient("alice", base_url="http://localhost:5000", reconnect_attempts=1, reconnect_delay=0)
            with patch.object(client_module.websockets, "connect", AsyncMock(return_value=fake)):
                await chat.connect()
            received = await chat.receive(timeout=1)
            await chat.close()
            return received, chat.rooms

        with self.assertLogs("chatroom.client", level="ERROR") as logs:
            received, rooms = asyncio.run(scenario())
        self.assertIn("not json", logs.output[0])
        self.assertEqual(received, {"type": "roomList", "data": ["general"]})
        self.assertEqual(rooms, ["general"])

    def test_emit_without_connection(self):
        async def scenario():
            await ChatClient("alice").create_room("general")

        with self.assertRaises(ConnectionError):
            asyncio.run(scenario())


if __name__ == "__main__":
    unittest.main()
