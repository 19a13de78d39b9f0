"""Interactive operator prompt attached to the running bridge.

Each line typed at ``Command> `` is sent to the connected computer as a
command. Reading stdin blocks, so each line is read on a daemon thread
while the event loop keeps serving the WebSocket. A read still blocked
at shutdown does not keep the process alive.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Callable

from ccbridge.bridge.dispatcher import CommandDispatcher
from ccbridge.bridge.errors import BridgeError, NotConnectedError

logger = logging.getLogger(__name__)

EXIT_WORDS = ("exit", "quit")
NOT_CONNECTED_TEXT = "Not connected to computercraft client"


class OperatorConsole:
    """Line-oriented prompt forwarding input to the dispatcher."""

    def __init__(
        self,
        dispatcher: CommandDispatcher,
        prompt: str = "Command> ",
        input_func: Callable[[str], str] = input,
        output: Callable[[str], None] = print,
    ) -> None:
        self._dispatcher = dispatcher
        self._prompt = prompt
        self._input = input_func
        self._output = output
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    async def handle_line(self, line: str) -> str | None:
        """Send one operator line and return the text to show, if any."""
        line = line.strip()
        if not line:
            return None
        try:
            await self._dispatcher.dispatch(line)
        except NotConnectedError:
            return NOT_CONNECTED_TEXT
        except BridgeError as e:
            logger.warning("Send failed: %s", e)
            return f"Send failed: {e}"
        return f"Message sent: {line}"

    async def run(self) -> None:
        """Prompt until EOF or an exit word."""
        self._running = True
        try:
            while self._running:
                try:
                    line = await self._read_line()
                except EOFError:
                    break
                if line.strip().lower() in EXIT_WORDS:
                    break
                reply = await self.handle_line(line)
                if reply:
                    self._output(reply)
        finally:
            self._running = False
            logger.info("Operator console closed")

    async def _read_line(self) -> str:
        loop = asyncio.get_running_loop()
        future: asyncio.Future[str] = loop.create_future()

        def deliver(line: str | None, error: Exception | None) -> None:
            if future.done():
                return
            if error is not None:
                future.set_exception(error)
            else:
                future.set_result(line)

        def read() -> None:
            try:
                line, error = self._input(self._prompt), None
            except Exception as e:
                line, error = None, e
            if not loop.is_closed():
                loop.call_soon_threadsafe(deliver, line, error)

        threading.Thread(target=read, name="ccbridge-console", daemon=True).start()
        return await future

    def stop(self) -> None:
        """Stop after the current line."""
        self._running = False
