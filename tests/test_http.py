#!/usr/bin/env python3
"""
Tests for the plain HTTP endpoints and error responders.
"""

import tempfile
import unittest

from fastapi.testclient import TestClient

from chatroom.main import create_app


class TestHttpEndpoints(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)
        self.app = create_app(storage_dir=self.tmp.name)

        @self.app.get("/boom")
        async def boom():
            raise RuntimeError("kaboom")

        self.client = TestClient(self.app, raise_server_exceptions=False)
        self.addCleanup(self.client.close)

    def test_root_banner(self):
        response = self.client.get("/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.text, "Server is running")

    def test_health(self):
        response = self.client.get("/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.text, "OK")

    def test_unknown_route(self):
        response = self.client.get("/nope")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.text, "Not Found")

    def test_wrong_method_keeps_allow_header(self):
        response = self.client.post("/health")
        self.assertEqual(response.status_code, 405)
        self.assertEqual(response.text, "Method Not Allowed")
        self.assertIn("GET", response.headers["allow"])

    def test_unhandled_error(self):
        with self.assertLogs("chatroom.main", level="ERROR"):
            response = self.client.get("/boom")
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.text, "Something broke!")

    def test_cors_allows_configured_origin(self):
        response = self.client.get("/health", headers={"Origin": "http://localhost:5173"})
        self.assertEqual(response.headers["access-control-allow-origin"], "http://localhost:5173")


if __name__ == "__main__":
    unittest.main()
