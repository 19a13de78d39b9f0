"""Tests for the bridge FastAPI application, including the computer WebSocket."""

from __future__ import annotations

import json
import time
from pathlib import Path
from typing import Callable

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from ccbridge.config.settings import ProtocolConfig, Settings
from ccbridge.server.app import LIVENESS_TEXT, create_app
from ccbridge.storage.json_store import JsonFileStore


def wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> bool:
    """Poll until the app has processed a frame sent from the test thread."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return False


def computer_connected(client: TestClient) -> bool:
    return client.get("/health").json()["device_connected"] is True


@pytest.fixture
def app(tmp_path: Path) -> FastAPI:
    settings = Settings(protocol=ProtocolConfig(response_timeout=0.2))
    return create_app(settings=settings, store=JsonFileStore(tmp_path / "db.json"))


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    with TestClient(app) as c:
        yield c


class TestHttpSurface:
    def test_liveness(self, client: TestClient) -> None:
        resp = client.get("/")
        assert resp.status_code == 200
        assert resp.text == LIVENESS_TEXT

    def test_health_without_computer(self, client: TestClient) -> None:
        data = client.get("/health").json()
        assert data["status"] == "ok"
        assert data["device_connected"] is False
        assert data["device_peer"] is None

    def test_command_without_computer(self, client: TestClient) -> None:
        resp = client.post("/command", json={"line": "move forward 3"})
        assert resp.status_code == 409
        assert "Not connected" in resp.json()["detail"]

    def test_command_requires_line(self, client: TestClient) -> None:
        assert client.post("/command", json={"line": ""}).status_code == 422
        assert client.post("/command", json={}).status_code == 422

    def test_label_without_computer(self, client: TestClient) -> None:
        assert client.post("/label", json={"label": "kitchen"}).status_code == 409

    def test_update_without_computer(self, client: TestClient) -> None:
        assert client.post("/update", json={}).status_code == 409

    def test_store_missing(self, client: TestClient) -> None:
        assert client.get("/store/Nobody1").status_code == 404

    def test_store_read(self, client: TestClient, app: FastAPI) -> None:
        app.state.store.put("/Turtle7", {"fuel": 12})
        resp = client.get("/store/Turtle7")
        assert resp.status_code == 200
        assert resp.json() == {"fuel": 12}


class TestComputerSocket:
    def test_connect_registers_computer(self, client: TestClient) -> None:
        with client.websocket_connect("/"):
            assert wait_until(lambda: computer_connected(client))
            data = client.get("/health").json()
            assert data["device_peer"] is not None

    def test_set_label_end_to_end(self, client: TestClient) -> None:
        with client.websocket_connect("/") as ws:
            assert wait_until(lambda: computer_connected(client))
            resp = client.post("/command", json={"line": "setLabel kitchen"})
            assert resp.status_code == 200
            frame = ws.receive_json()
            assert isinstance(frame.pop("timestamp"), int)
            assert frame == {"type": "command", "command": "setLabel", "args": ["kitchen"]}
            assert client.get("/health").json()["pending_waiters"] == 0

    def test_label_endpoint_is_unverified_by_default(self, client: TestClient) -> None:
        with client.websocket_connect("/") as ws:
            assert wait_until(lambda: computer_connected(client))
            resp = client.post("/label", json={"label": "kitchen"})
            assert resp.json() == {"status": "ok", "label": "kitchen", "confirmed": None}
            assert ws.receive_json()["args"] == ["kitchen"]

    def test_verified_command_times_out(self, client: TestClient) -> None:
        with client.websocket_connect("/") as ws:
            assert wait_until(lambda: computer_connected(client))
            resp = client.post("/command", json={"line": "refuel", "verify": True, "timeout": 0.05})
            assert resp.status_code == 504
            assert ws.receive_json()["command"] == "refuel"
            assert client.get("/health").json()["pending_waiters"] == 0

    def test_update_push_is_stored(self, client: TestClient) -> None:
        update = {"type": "update", "computerName": "Turtle", "computerId": 7, "fuel": 12}
        with client.websocket_connect("/") as ws:
            ws.send_text("true")
            ws.send_text("not json at all")
            ws.send_text(json.dumps(update))
            assert wait_until(lambda: client.get("/store/Turtle7").status_code == 200)
        assert client.get("/store/Turtle7").json() == update

    def test_binary_update_push_is_stored(self, client: TestClient) -> None:
        update = {"type": "update", "computerName": "Pocket", "computerId": 2}
        with client.websocket_connect("/") as ws:
            ws.send_bytes(json.dumps(update).encode())
            assert wait_until(lambda: client.get("/store/Pocket2").status_code == 200)

    def test_disconnect_clears_registry(self, client: TestClient) -> None:
        with client.websocket_connect("/"):
            pass
        assert wait_until(lambda: not computer_connected(client))
        assert client.post("/command", json={"line": "refuel"}).status_code == 409

    def test_close_of_superseded_socket_does_not_disconnect(self, client: TestClient) -> None:
        first = client.websocket_connect("/")
        first.__enter__()
        with client.websocket_connect("/") as second:
            time.sleep(0.05)
            first.__exit__(None, None, None)
            time.sleep(0.05)
            assert computer_connected(client)
            resp = client.post("/command", json={"line": "turnLeft"})
            assert resp.status_code == 200
            assert second.receive_json()["command"] == "turnLeft"


class TestCustomPath:
    def test_websocket_path_from_settings(self, tmp_path: Path) -> None:
        settings = Settings()
        settings.server.websocket_path = "/computer"
        app = create_app(settings=settings, store=JsonFileStore(tmp_path / "db.json"))
        with TestClient(app) as client:
            with client.websocket_connect("/computer"):
                assert wait_until(lambda: computer_connected(client))
