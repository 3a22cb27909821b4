# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""Shared ASGI fixtures."""

from __future__ import annotations

from typing import Any, Callable

import pytest


class MockSend:
    """Capture ASGI send messages for testing."""

    def __init__(self) -> None:
        self.messages: list[dict[str, Any]] = []

    async def __call__(self, message: dict[str, Any]) -> None:
        self.messages.append(message)

    @property
    def start_message(self) -> dict[str, Any]:
        """Get the http.response.start message."""
        return self.messages[0]

    @property
    def body_messages(self) -> list[dict[str, Any]]:
        """Get all http.response.body messages."""
        return [m for m in self.messages if m["type"] == "http.response.body"]

    @property
    def status(self) -> int:
        """Get response status code."""
        return self.start_message["status"]

    @property
    def headers(self) -> dict[bytes, bytes]:
        """Get headers as dict."""
        return dict(self.start_message["headers"])

    @property
    def body(self) -> bytes:
        """Get complete body (concatenated from all body messages)."""
        return b"".join(m.get("body", b"") for m in self.body_messages)


class NextApp:
    """Innermost ASGI app recording the calls it receives."""

    def __init__(self) -> None:
        self.calls: list[tuple[Any, Any, Any]] = []

    async def __call__(self, scope: Any, receive: Any, send: Any) -> None:
        self.calls.append((scope, receive, send))
        if scope["type"] == "http":
            await send({"type": "http.response.start", "status": 200, "headers": []})
            await send({"type": "http.response.body", "body": b"next"})


async def mock_receive() -> dict[str, Any]:
    """Mock receive callable (file serving never reads the body)."""
    return {"type": "http.request", "body": b"", "more_body": False}


@pytest.fixture
def send() -> MockSend:
    """Create a mock send callable."""
    return MockSend()


@pytest.fixture
def receive() -> Callable[[], Any]:
    """ASGI receive callable."""
    return mock_receive


@pytest.fixture
def next_app() -> NextApp:
    """Recording next application."""
    return NextApp()


@pytest.fixture
def make_scope() -> Callable[..., dict[str, Any]]:
    """Factory for HTTP scopes."""

    def factory(
        path: str,
        method: str = "GET",
        headers: dict[str, str] | None = None,
        query_string: bytes = b"",
    ) -> dict[str, Any]:
        return {
            "type": "http",
            "method": method,
            "path": path,
            "raw_path": path.encode(),
            "root_path": "",
            "query_string": query_string,
            "headers": [
                (name.lower().encode("latin-1"), value.encode("latin-1"))
                for name, value in (headers or {}).items()
            ],
        }

    return factory


@pytest.fixture
def new_send() -> Callable[[], MockSend]:
    """Factory for extra send recorders within one test."""
    return MockSend
