#!/usr/bin/env python3
"""
toastctl - toastline command-line tool

- Terminal demo of the notification lifecycle (toastctl demo)
- Stored history (toastctl history)
- Send a notification to a running server (toastctl send)
- Run the HTTP API (toastctl serve)
- Version info (toastctl version)
"""

import argparse
import asyncio
import logging
import os
import sys
from typing import List, Optional

import httpx

from toastline import __version__
from toastline.core.config import NotificationConfig, get_config, reload_config
from toastline.notifications.engine import NotificationEngine
from toastline.notifications.feedback import FeedbackController, TerminalBell
from toastline.notifications.formatters import format_summary
from toastline.notifications.persistence import PersistenceStore, create_backend
from toastline.notifications.presentation import ConsolePresentationAdapter


class Colors:
    """ANSI color codes for terminal output."""

    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    RED = "\033[91m"
    RESET = "\033[0m"
    BOLD = "\033[1m"


def colorize(text: str, color: str) -> str:
    """Colorize text if stdout is a TTY."""
    if sys.stdout.isatty():
        return f"{color}{text}{Colors.RESET}"
    return text


async def cmd_demo(args) -> int:
    """
    Walk through show, update, eviction and auto-close in the terminal.

    Returns:
        Exit code (always 0)
    """
    config = NotificationConfig(
        duration=args.duration,
        max_notifications=args.max,
        enable_sound=args.bell,
    )
    feedback = FeedbackController(sound_player=TerminalBell()) if args.bell else None
    engine = NotificationEngine(
        config=config,
        presentation=ConsolePresentationAdapter(show_progress=args.progress),
        feedback=feedback,
    )
    engine.start()

    print(colorize("\nToastline demo", Colors.BOLD))
    print(colorize("=" * 60, Colors.BOLD))

    engine.success("Factory record saved")
    engine.info("Sync started", duration=0)
    export = engine.show({"title": "Export", "message": "Building PDF", "duration": 0})
    engine.warning("Certificate expires in 7 days")
    engine.error("Upload failed", actions=[{"id": "retry", "label": "Retry", "is_primary": True}])

    # One more than fits: the oldest is evicted
    engine.info("Audit AUD-2025-014 assigned to you")

    if export is not None:
        await asyncio.sleep(0.5)
        engine.update(export.id, {"message": "PDF ready", "kind": "success", "duration": args.duration})

    await asyncio.sleep(args.duration / 1000 + 0.5)
    engine.clear()
    engine.shutdown()

    print()
    print(colorize("✓ Demo finished", Colors.GREEN))
    return 0


def cmd_history(args) -> int:
    """
    Print stored notification history.

    Returns:
        Exit code (0 on success, 1 if the store cannot be opened)
    """
    config = get_config()
    try:
        backend = create_backend(config.storage.backend, args.db or config.storage.path,
                                 config.storage.max_bytes)
    except Exception as e:
        print(colorize(f"✗ Cannot open history store: {e}", Colors.RED), file=sys.stderr)
        return 1

    notification_config = config.notification_config()
    store = PersistenceStore(backend, lambda: notification_config)
    summaries = store.load_all()
    if args.limit:
        summaries = summaries[-args.limit:]

    if not summaries:
        print("No stored notifications")
        return 0
    for summary in summaries:
        print(format_summary(summary))
    return 0


async def cmd_send(args) -> int:
    """
    Show a notification on a running toastline server.

    Returns:
        Exit code (0 on success, 1 on failure)
    """
    payload = {"kind": args.kind, "message": args.message}
    if args.title:
        payload["title"] = args.title
    if args.duration is not None:
        payload["duration"] = args.duration

    try:
        async with httpx.AsyncClient(timeout=args.timeout) as client:
            response = await client.post(f"{args.url}/notifications", json=payload)
            response.raise_for_status()
    except httpx.ConnectError:
        print(colorize(f"✗ Cannot connect to {args.url}", Colors.RED), file=sys.stderr)
        return 1
    except httpx.HTTPStatusError as e:
        print(colorize(f"✗ Server returned {e.response.status_code}", Colors.RED), file=sys.stderr)
        return 1
    except httpx.HTTPError as e:
        print(colorize(f"✗ Request failed: {e}", Colors.RED), file=sys.stderr)
        return 1

    notification = response.json()
    print(colorize(f"✓ Sent {notification['id']}", Colors.GREEN))
    for error in notification.get("validation_errors", []):
        print(colorize(f"  substituted: {error}", Colors.YELLOW))
    return 0


def cmd_serve(args) -> int:
    """Run the HTTP API server."""
    if args.config:
        reload_config(args.config)
    from toastline.ui.http_server import main as serve

    serve(host=args.host, port=args.port)
    return 0


def cmd_version(args) -> int:
    """
    Print version information.

    Returns:
        Exit code (always 0)
    """
    print(f"toastctl version {__version__}")
    print("Toastline - notification lifecycle and eviction engine")
    return 0


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for toastctl."""
    parser = argparse.ArgumentParser(
        description="toastline command-line tool",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  toastctl demo                        # Terminal demo of the lifecycle
  toastctl history --limit 20          # Show the 20 most recent stored notifications
  toastctl send "Report ready" --kind success
  toastctl serve --port 8080           # Run the HTTP API
  toastctl version                     # Show version information

Environment variables:
  TOASTLINE_*                          # Notification defaults (e.g. TOASTLINE_DURATION)
  TOASTLINE_STORAGE_BACKEND / _PATH    # History store (memory or sqlite)
  TOASTLINE_API_HOST / _PORT           # HTTP API address
        """
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    demo_parser = subparsers.add_parser("demo", help="Run a terminal demo")
    demo_parser.add_argument(
        "--duration", type=int, default=2000,
        help="Auto-close delay in ms (default: 2000)"
    )
    demo_parser.add_argument(
        "--max", type=int, default=3,
        help="Active notification limit (default: 3)"
    )
    demo_parser.add_argument("--progress", action="store_true", help="Print countdown progress")
    demo_parser.add_argument("--bell", action="store_true", help="Ring the terminal bell")

    history_parser = subparsers.add_parser("history", help="Show stored notification history")
    history_parser.add_argument("--db", help="SQLite database path (default: from config)")
    history_parser.add_argument("--limit", type=int, default=0, help="Show only the N most recent")

    send_parser = subparsers.add_parser("send", help="Send a notification to a running server")
    send_parser.add_argument("message", help="Notification message")
    send_parser.add_argument(
        "--kind", default="info",
        choices=["success", "info", "warning", "error", "default"],
    )
    send_parser.add_argument("--title", help="Notification title")
    send_parser.add_argument("--duration", type=int, help="Auto-close delay in ms (0 = never)")
    send_parser.add_argument(
        "--url", default="http://localhost:8080",
        help="Server URL (default: http://localhost:8080)"
    )
    send_parser.add_argument(
        "--timeout", type=float, default=5.0,
        help="Request timeout in seconds (default: 5.0)"
    )

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API server")
    serve_parser.add_argument("--host", help="Bind address (default: from config)")
    serve_parser.add_argument("--port", type=int, help="Port (default: from config)")
    serve_parser.add_argument("--config", help="YAML configuration overrides")

    subparsers.add_parser("version", help="Show version information")

    return parser


def main(argv: Optional[List[str]] = None):
    """Main entry point for toastctl CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    # Engine logs stay quiet unless asked for; demo output goes to stdout
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "WARNING"),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if not args.command:
        parser.print_help()
        return 0

    if args.command == "demo":
        return asyncio.run(cmd_demo(args))
    elif args.command == "history":
        return cmd_history(args)
    elif args.command == "send":
        return asyncio.run(cmd_send(args))
    elif args.command == "serve":
        return cmd_serve(args)
    elif args.command == "version":
        return cmd_version(args)
    else:
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
