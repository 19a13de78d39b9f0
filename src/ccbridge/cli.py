"""Command-line interface for ccbridge.

Provides the main entry point for running the bridge server with its
operator prompt, and client commands that talk to a running bridge.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="ccbridge",
        description="WebSocket bridge for ComputerCraft computers",
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=None,
        help="Path to YAML configuration file (default: config/ccbridge.yaml)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--url", type=str, default=None,
        help="Bridge URL for client commands (default: http://localhost:<server.port>)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    serve_parser = subparsers.add_parser("serve", help="Run the bridge server")
    serve_parser.add_argument(
        "--no-console", action="store_true",
        help="Do not attach the interactive Command> prompt",
    )

    send_parser = subparsers.add_parser("send", help="Send a command to the connected computer")
    send_parser.add_argument("line", nargs="+", help="Command and arguments")
    send_parser.add_argument(
        "--verify", action="store_true",
        help="Wait for the computer's confirmation",
    )

    label_parser = subparsers.add_parser("label", help="Set the connected computer's label")
    label_parser.add_argument("label", type=str)
    label_parser.add_argument("--verify", action="store_true", default=None)

    subparsers.add_parser("update", help="Request an update from the connected computer")

    show_parser = subparsers.add_parser("show", help="Print a stored value")
    show_parser.add_argument("path", nargs="?", default="/", help="Store path (default: /)")

    return parser.parse_args(argv)


async def _serve(settings, console_enabled: bool) -> None:
    """Run uvicorn and, optionally, the operator prompt on one event loop."""
    import uvicorn

    from ccbridge.console import OperatorConsole
    from ccbridge.server.app import create_app

    app = create_app(settings)
    server = uvicorn.Server(
        uvicorn.Config(
            app,
            host=settings.server.host,
            port=settings.server.port,
            log_config=None,
        )
    )
    print(f"Server running on http://localhost:{settings.server.port}")

    if not console_enabled:
        await server.serve()
        return

    console = OperatorConsole(app.state.dispatcher, prompt=settings.console.prompt)
    server_task = asyncio.create_task(server.serve())
    console_task = asyncio.create_task(console.run())
    done, _ = await asyncio.wait(
        {server_task, console_task}, return_when=asyncio.FIRST_COMPLETED
    )
    if console_task in done:
        server.should_exit = True
        await server_task
    else:
        console.stop()
        console_task.cancel()


async def _client_command(settings, args) -> int:
    """Run one client subcommand against a running bridge."""
    from ccbridge.client import BridgeClient, BridgeClientError

    url = args.url or f"http://localhost:{settings.server.port}"
    try:
        async with BridgeClient(base_url=url) as client:
            if args.command == "send":
                result = await client.send_command(" ".join(args.line), verify=args.verify)
            elif args.command == "label":
                result = await client.set_label(args.label, verify=args.verify)
            elif args.command == "update":
                result = await client.request_update()
            else:
                result = await client.get_stored(args.path)
                if result is None:
                    print(f"Nothing stored at {args.path}")
                    return 1
    except BridgeClientError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    print(json.dumps(result, indent=2))
    return 0


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the ccbridge CLI."""
    args = parse_args(argv)

    if args.command is None:
        parse_args(["--help"])
        return

    from ccbridge.config.settings import load_settings
    from ccbridge.utils.logging import setup_logging

    settings = load_settings(args.config)

    if args.verbose:
        settings.logging.level = "DEBUG"

    setup_logging(settings.logging)

    if args.command == "serve":
        logger.info("Starting bridge server on port %d", settings.server.port)
        console_enabled = settings.console.enabled and not args.no_console
        try:
            asyncio.run(_serve(settings, console_enabled))
        except KeyboardInterrupt:
            logger.info("Interrupted")
        return

    sys.exit(asyncio.run(_client_command(settings, args)))


if __name__ == "__main__":
    main()
