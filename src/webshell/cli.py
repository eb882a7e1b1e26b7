"""Command-line interface for webshell.

Provides the main entry point for connecting the local terminal to a
remote shell, serving shells over WebSocket, and running the demos.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

logger = logging.getLogger(__name__)

# Commands that own the terminal in raw mode; INFO logs would garble it
INTERACTIVE_COMMANDS = ("connect", "inspect-keys")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="webshell",
        description="Relay a terminal to a remote shell over WebSocket",
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=None,
        help="Path to YAML configuration file (default: config/webshell.yaml)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    connect_parser = subparsers.add_parser("connect", help="Attach this terminal to a remote shell")
    connect_parser.add_argument(
        "--url", type=str, default=None,
        help="WebSocket URL of the remote bridge (default from config)",
    )

    subparsers.add_parser("serve", help="Start the WebSocket shell endpoint")

    demo_parser = subparsers.add_parser(
        "escape-demo", help="Play the escape-sequence showcase character by character",
    )
    demo_parser.add_argument(
        "--delay", type=float, default=None,
        help="Seconds between characters (default from config)",
    )

    subparsers.add_parser("inspect-keys", help="Show the bytes produced by each key press")

    status_parser = subparsers.add_parser("status", help="Query the health of a running endpoint")
    status_parser.add_argument(
        "--url", type=str, default=None,
        help="HTTP base URL of the endpoint (default: derived from the client URL)",
    )

    return parser.parse_args(argv)


def http_base_url(ws_url: str) -> str:
    """Turn a ws:// or wss:// bridge URL into the endpoint's http(s) base URL."""
    scheme, sep, rest = ws_url.partition("://")
    if not sep:
        return ws_url.rstrip("/")
    host = rest.split("/", 1)[0]
    http_scheme = {"ws": "http", "wss": "https"}.get(scheme, scheme)
    return f"{http_scheme}://{host}"


async def _connect(settings, args) -> int:
    """Relay the local terminal to the remote bridge until the session ends."""
    from webshell.bridge.session import Session
    from webshell.domain.models import SessionState
    from webshell.emulator.stdio import LocalTerminal
    from webshell.transport.websocket import WebSocketTransport

    cfg = settings.client
    transport = WebSocketTransport(
        url=args.url or cfg.url,
        open_timeout=cfg.open_timeout,
        close_timeout=cfg.close_timeout,
        max_message_size=cfg.max_message_size,
    )
    terminal = LocalTerminal()
    session = Session(
        terminal,
        transport,
        input_policy=cfg.input_policy,
        max_pending_chunks=cfg.max_pending_chunks,
        trace=cfg.trace_chunks,
    )

    def report(s: Session, state: SessionState) -> None:
        if state is SessionState.FAILED:
            terminal.write(f"\r\n\x1b[31mConnection failed: {s.failure}\x1b[0m\r\n".encode())
        elif state is SessionState.CLOSED:
            terminal.write(b"\r\n\x1b[33mConnection closed\x1b[0m\r\n")

    session.add_listener(report)

    with terminal:
        snapshot = await session.run()

    stats = snapshot.stats
    print(
        f"Session {snapshot.session_id} {snapshot.state.value}: "
        f"sent {stats.bytes_sent} bytes, received {stats.bytes_received} bytes"
    )
    return 1 if snapshot.state is SessionState.FAILED else 0


async def _escape_demo(settings, args) -> None:
    """Play the escape-sequence showcase on this terminal."""
    from webshell.demo.escape import fixed_delay, play
    from webshell.emulator.stdio import LocalTerminal

    delay = settings.demo.char_delay if args.delay is None else args.delay
    pacer = fixed_delay(delay) if delay > 0 else None
    await play(LocalTerminal(), pacer=pacer)


async def _inspect_keys() -> None:
    """Print the bytes produced by each key press until Ctrl+C."""
    from webshell.demo.keys import KeyInspector
    from webshell.emulator.stdio import LocalTerminal

    terminal = LocalTerminal()
    with terminal:
        await KeyInspector(terminal).run()


async def _status(settings, args) -> int:
    """Print the endpoint's health report."""
    import httpx

    base_url = args.url or http_base_url(settings.client.url)
    try:
        async with httpx.AsyncClient(base_url=base_url, timeout=settings.client.open_timeout) as client:
            resp = await client.get("/health")
            resp.raise_for_status()
    except httpx.HTTPError as e:
        print(f"Endpoint at {base_url} is not reachable: {e}")
        return 1
    data = resp.json()
    print(f"Endpoint:        {base_url}")
    print(f"Status:          {data.get('status')}")
    print(f"Active sessions: {data.get('active_sessions')}")
    print(f"Shell:           {data.get('shell_command')}")
    return 0


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the webshell CLI."""
    args = parse_args(argv)

    if args.command is None:
        parse_args(["--help"])
        return

    from webshell.config.settings import load_settings
    from webshell.utils.logging import setup_logging

    settings = load_settings(args.config)

    if args.verbose:
        settings.logging.level = "DEBUG"
    elif args.command in INTERACTIVE_COMMANDS and not settings.logging.file:
        settings.logging.level = "WARNING"

    setup_logging(settings.logging)

    if args.command == "connect":
        logger.info("Connecting to %s", args.url or settings.client.url)
        sys.exit(asyncio.run(_connect(settings, args)))

    elif args.command == "serve":
        logger.info("Starting endpoint server")
        from webshell.endpoint.server import serve
        serve(settings.endpoint)

    elif args.command == "escape-demo":
        asyncio.run(_escape_demo(settings, args))

    elif args.command == "inspect-keys":
        asyncio.run(_inspect_keys())

    elif args.command == "status":
        sys.exit(asyncio.run(_status(settings, args)))


if __name__ == "__main__":
    main()
