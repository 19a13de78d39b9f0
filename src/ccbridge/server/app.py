"""FastAPI application hosting the computer WebSocket and operator endpoints.

Endpoints:

    GET  /                -> liveness text
    GET  /health          -> {"status": "ok", "device_connected": ...}
    WS   /                <- computer connection (path configurable)
    POST /command         <- {"line": "move forward 3", "verify": false}
    POST /label           <- {"label": "kitchen", "verify": false}
    POST /update          <- {"timeout": 5.0}
    GET  /store/{path}    -> value stored at /{path}
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

import uvicorn
from fastapi import FastAPI, HTTPException, WebSocket
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, Field

from ccbridge.bridge.correlator import ResponseCorrelator
from ccbridge.bridge.dispatcher import CommandDispatcher
from ccbridge.bridge.errors import (
    BridgeError,
    ConnectionClosedError,
    NotConnectedError,
    ResponseTimeoutError,
)
from ccbridge.bridge.ingestor import UpdateIngestor
from ccbridge.bridge.registry import ConnectionManager
from ccbridge.bridge.router import FrameRouter
from ccbridge.bridge.websocket import WebSocketConnection
from ccbridge.config.settings import Settings
from ccbridge.storage.base import KeyValueStore
from ccbridge.storage.json_store import JsonFileStore

logger = logging.getLogger(__name__)

LIVENESS_TEXT = "ccbridge is running. ComputerCraft computers connect over WebSocket."


# ---------------------------------------------------------------------------
# Request / response models
# ---------------------------------------------------------------------------

class CommandRequest(BaseModel):
    line: str = Field(min_length=1, description="Operator line, e.g. 'move forward 3'")
    verify: bool = Field(default=False, description="Wait for the confirmation token")
    timeout: float | None = Field(default=None, gt=0)


class LabelRequest(BaseModel):
    label: str = Field(min_length=1, description="New computer label")
    verify: bool | None = Field(default=None, description="Override protocol.verify_label")
    timeout: float | None = Field(default=None, gt=0)


class UpdateRequest(BaseModel):
    timeout: float | None = Field(default=None, gt=0)


class HealthResponse(BaseModel):
    status: str = "ok"
    device_connected: bool = False
    device_peer: str | None = None
    pending_waiters: int = 0


# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------

def create_app(
    settings: Settings | None = None,
    manager: ConnectionManager | None = None,
    store: KeyValueStore | None = None,
) -> FastAPI:
    """Create the bridge application.

    Args:
        settings: Configuration; defaults are used if None.
        manager: Optional pre-built ConnectionManager (for testing).
        store: Optional pre-built store (for testing). Defaults to a
            JsonFileStore at ``settings.storage.path``.
    """
    if settings is None:
        settings = Settings()
    if manager is None:
        manager = ConnectionManager()
    if store is None:
        store = JsonFileStore(settings.storage.path)

    proto = settings.protocol
    dispatcher = CommandDispatcher(manager)
    correlator = ResponseCorrelator(
        dispatcher,
        confirmation_token=proto.confirmation_token,
        default_timeout=proto.response_timeout,
        verify_label=proto.verify_label,
    )
    ingestor = UpdateIngestor(store, dispatcher, update_command=proto.update_command)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info(
            "Bridge started (websocket path=%s, store=%s)",
            settings.server.websocket_path,
            settings.storage.path,
        )
        yield
        conn = manager.get_active()
        if conn is not None:
            conn.router.close()
            manager.clear_if_matches(conn)
        logger.info("Bridge stopped")

    app = FastAPI(
        title="ccbridge",
        description="WebSocket bridge between ComputerCraft computers and an operator",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.manager = manager
    app.state.store = store
    app.state.dispatcher = dispatcher
    app.state.correlator = correlator
    app.state.ingestor = ingestor

    @app.get("/", response_class=PlainTextResponse)
    async def liveness() -> str:
        return LIVENESS_TEXT

    @app.get("/health")
    async def health_check() -> HealthResponse:
        conn = manager.get_active()
        return HealthResponse(
            status="ok",
            device_connected=manager.is_connected,
            device_peer=conn.peer if conn else None,
            pending_waiters=conn.router.pending_count if conn else 0,
        )

    @app.websocket(settings.server.websocket_path)
    async def computer_socket(websocket: WebSocket) -> None:
        await websocket.accept()
        conn = WebSocketConnection(websocket, FrameRouter(on_update=ingestor.ingest))
        manager.set_active(conn)
        try:
            await conn.receive_frames()
        finally:
            conn.router.close()
            manager.clear_if_matches(conn)

    # -------------------------------------------------------------------
    # Operator endpoints
    # -------------------------------------------------------------------

    @app.post("/command")
    async def send_command(request: CommandRequest) -> dict[str, Any]:
        try:
            if request.verify:
                confirmed = await correlator.execute(request.line, request.timeout)
                return {"status": "ok", "line": request.line, "confirmed": confirmed}
            command = await dispatcher.dispatch(request.line)
        except BridgeError as e:
            raise _http_error(e) from e
        return {
            "status": "ok",
            "line": request.line,
            "command": command.model_dump(by_alias=True, exclude_none=True),
        }

    @app.post("/label")
    async def set_label(request: LabelRequest) -> dict[str, Any]:
        try:
            confirmed = await correlator.set_label(request.label, request.verify, request.timeout)
        except BridgeError as e:
            raise _http_error(e) from e
        return {"status": "ok", "label": request.label, "confirmed": confirmed}

    @app.post("/update")
    async def request_update(request: UpdateRequest) -> dict[str, Any]:
        timeout = request.timeout if request.timeout is not None else proto.response_timeout
        try:
            message = await ingestor.request_update(timeout)
        except BridgeError as e:
            raise _http_error(e) from e
        return {"status": "ok", "key": message.identity_key, "update": message.payload}

    @app.get("/store/{path:path}")
    async def read_store(path: str) -> Any:
        value = store.get(f"/{path}")
        if value is None:
            raise HTTPException(status_code=404, detail=f"Nothing stored at /{path}")
        return value

    return app


def _http_error(error: BridgeError) -> HTTPException:
    if isinstance(error, (NotConnectedError, ConnectionClosedError)):
        return HTTPException(status_code=409, detail=str(error))
    if isinstance(error, ResponseTimeoutError):
        return HTTPException(status_code=504, detail=str(error))
    return HTTPException(status_code=500, detail=str(error))


# ---------------------------------------------------------------------------
# Standalone entry point
# ---------------------------------------------------------------------------

def main(settings: Settings | None = None) -> None:
    """Run the bridge server without the operator console."""
    settings = settings or Settings()
    app = create_app(settings)
    uvicorn.run(app, host=settings.server.host, port=settings.server.port)


if __name__ == "__main__":
    main()
