"""CLI for running a Routemaster event listener locally.

Usage:
    python -m routemaster.cli serve --uuid my-subscription-uuid --port 8080
    ROUTEMASTER_UUID=my-subscription-uuid python -m routemaster.cli serve

Every received event is written to stdout as an info-level log message.
"""

from __future__ import annotations

import argparse
import logging
import sys

from pydantic import ValidationError

from routemaster import logmsg
from routemaster.app import create_app
from routemaster.config import ListenerSettings
from routemaster.models import EventBatch


def configure_logging(level: str) -> None:
    """Send stdlib logging to stderr at ``level``."""
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(level)


def echo_handler(sink: logmsg.LogSink):
    """Build a handler that logs each event it receives."""

    def handle(events: EventBatch) -> None:
        ctx = logmsg.Context({"batch_size": len(events)}, sink=sink)
        for event in events:
            (
                ctx.info("event received")
                .set("topic", event.topic)
                .set("type", event.type)
                .set("url", event.url)
                .set("timestamp", event.timestamp)
                .set("data", event.data)
                .print()
            )

    return handle


def cmd_serve(args: argparse.Namespace) -> None:
    """Run the listener under uvicorn."""
    import uvicorn

    overrides = {
        key: value
        for key, value in (
            ("uuid", args.uuid),
            ("host", args.host),
            ("port", args.port),
            ("path", args.path),
            ("log_level", args.log_level),
            ("log_file", args.log_file),
        )
        if value is not None
    }
    try:
        settings = ListenerSettings(**overrides)
    except ValidationError as exc:
        print(f"ERROR: invalid configuration:\n{exc}", file=sys.stderr)
        sys.exit(1)

    configure_logging(settings.log_level)
    app = create_app(settings, echo_handler(logmsg.StreamSink(sys.stdout)))
    print(f"Listening on http://{settings.host}:{settings.port}{settings.path}")
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="routemaster",
        description="Receive event batches pushed by a Routemaster bus",
    )
    sub = parser.add_subparsers(dest="command")

    p_serve = sub.add_parser("serve", help="Run an event listener")
    p_serve.add_argument("--uuid", help="Subscription UUID (env: ROUTEMASTER_UUID)")
    p_serve.add_argument("--host", help="Bind address (default: 127.0.0.1)")
    p_serve.add_argument("--port", type=int, help="Bind port (default: 8080)")
    p_serve.add_argument("--path", help="Listener path (default: /events)")
    p_serve.add_argument("--log-level", dest="log_level", help="Log level (default: INFO)")
    p_serve.add_argument("--log-file", dest="log_file", help="Append diagnostics to this file")
    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "serve":
        cmd_serve(args)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
