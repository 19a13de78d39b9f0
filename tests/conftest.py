"""Shared test fixtures for the ccbridge test suite.

Provides an in-memory computer connection and the bridge components
wired together around it.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Callable

import pytest

from ccbridge.bridge.base import DeviceConnection
from ccbridge.bridge.correlator import ResponseCorrelator
from ccbridge.bridge.dispatcher import CommandDispatcher
from ccbridge.bridge.errors import ConnectionClosedError
from ccbridge.bridge.ingestor import UpdateIngestor
from ccbridge.bridge.registry import ConnectionManager
from ccbridge.bridge.router import FrameRouter
from ccbridge.storage.json_store import JsonFileStore


class FakeConnection(DeviceConnection):
    """In-memory connection that records sent frames.

    ``responder``, if set, is called with each sent frame and returns the
    frames the "computer" sends back. They are fed into the router on the
    next loop iteration, as a real reply would arrive.
    """

    def __init__(self, router: FrameRouter | None = None, peer: str = "fake:1") -> None:
        super().__init__(router)
        self.sent: list[str] = []
        self.open = True
        self.responder: Callable[[str], list[str]] | None = None
        self._peer = peer

    @property
    def is_open(self) -> bool:
        return self.open

    @property
    def peer(self) -> str:
        return self._peer

    async def send_text(self, text: str) -> None:
        if not self.open:
            raise ConnectionClosedError("fake connection closed")
        self.sent.append(text)
        if self.responder is not None:
            loop = asyncio.get_running_loop()
            for frame in self.responder(text):
                loop.call_soon(self.router.feed, frame)

    def sent_json(self) -> list[dict]:
        return [json.loads(frame) for frame in self.sent]


# ---------------------------------------------------------------------------
# Sample frames
# ---------------------------------------------------------------------------


@pytest.fixture
def update_frame() -> str:
    """An update push from a turtle."""
    return json.dumps(
        {"type": "update", "computerName": "Turtle", "computerId": "7", "fuel": 12}
    )


# ---------------------------------------------------------------------------
# Components
# ---------------------------------------------------------------------------


@pytest.fixture
def store(tmp_path: Path) -> JsonFileStore:
    return JsonFileStore(tmp_path / "db.json")


@pytest.fixture
def manager() -> ConnectionManager:
    return ConnectionManager()


@pytest.fixture
def dispatcher(manager: ConnectionManager) -> CommandDispatcher:
    return CommandDispatcher(manager)


@pytest.fixture
def ingestor(store: JsonFileStore, dispatcher: CommandDispatcher) -> UpdateIngestor:
    return UpdateIngestor(store, dispatcher)


@pytest.fixture
def correlator(dispatcher: CommandDispatcher) -> ResponseCorrelator:
    return ResponseCorrelator(dispatcher, default_timeout=1.0)


@pytest.fixture
def connection(manager: ConnectionManager, ingestor: UpdateIngestor) -> FakeConnection:
    """A FakeConnection registered as the active connection."""
    conn = FakeConnection(FrameRouter(on_update=ingestor.ingest))
    manager.set_active(conn)
    return conn


@pytest.fixture
def make_connection() -> Callable[..., FakeConnection]:
    """Factory for unregistered FakeConnections."""
    return FakeConnection
