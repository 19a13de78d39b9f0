"""HTTP client for a running bridge.

Sends operator commands and reads stored updates through the bridge's
REST endpoints, for use from another shell or script.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

logger = logging.getLogger(__name__)


class BridgeClient:
    """Talks to the operator endpoints of a running bridge."""

    def __init__(
        self,
        base_url: str = "http://localhost:3000",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def connect(self) -> None:
        """Create the HTTP client and verify the bridge is up."""
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout,
            transport=self._transport,
        )
        try:
            resp = await self._client.get("/health")
            resp.raise_for_status()
            logger.info("Connected to bridge at %s", self._base_url)
        except Exception as e:
            await self._client.aclose()
            self._client = None
            raise BridgeClientError(f"Failed to connect to bridge: {e}") from e

    async def disconnect(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def health(self) -> dict[str, Any]:
        resp = await self._request("GET", "/health")
        return resp.json()

    async def send_command(self, line: str, verify: bool = False) -> dict[str, Any]:
        resp = await self._request("POST", "/command", json={"line": line, "verify": verify})
        return resp.json()

    async def set_label(self, label: str, verify: bool | None = None) -> dict[str, Any]:
        resp = await self._request("POST", "/label", json={"label": label, "verify": verify})
        return resp.json()

    async def request_update(self) -> dict[str, Any]:
        resp = await self._request("POST", "/update", json={})
        return resp.json()

    async def get_stored(self, path: str) -> Any | None:
        """Return the value stored at ``path``, or None if there is none."""
        resp = await self._request("GET", f"/store/{path.lstrip('/')}", allow_404=True)
        if resp.status_code == 404:
            return None
        return resp.json()

    async def _request(
        self, method: str, path: str, allow_404: bool = False, **kwargs: Any
    ) -> httpx.Response:
        if self._client is None:
            raise BridgeClientError("Not connected to bridge")
        try:
            resp = await self._client.request(method, path, **kwargs)
            if allow_404 and resp.status_code == 404:
                return resp
            resp.raise_for_status()
            return resp
        except httpx.HTTPStatusError as e:
            detail = _detail(e.response)
            raise BridgeClientError(
                f"{method} {path} failed: {detail}", status_code=e.response.status_code
            ) from e
        except httpx.HTTPError as e:
            raise BridgeClientError(f"{method} {path} failed: {e}") from e

    async def __aenter__(self) -> BridgeClient:
        await self.connect()
        return self

    async def __aexit__(self, exc_type: type | None, exc_val: Exception | None, exc_tb: object) -> None:
        await self.disconnect()


class BridgeClientError(Exception):
    """Raised when a request to the bridge fails."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def _detail(resp: httpx.Response) -> str:
    try:
        data = resp.json()
    except ValueError:
        return resp.text
    if isinstance(data, dict) and "detail" in data:
        return str(data["detail"])
    return resp.text
