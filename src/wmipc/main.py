"""
wmipc - command-line entry point.

This module handles:
- Argument parsing
- Configuration and logging setup
- Running commands, sending queries and printing events
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from wmipc import __version__
from wmipc.core.config import ClientConfig, ConfigurationError, find_config_file, load_config
from wmipc.ipc import (
    CapabilityLevel,
    EventListener,
    IPCError,
    MessageType,
    Request,
    Subscription,
    UnknownEvent,
    UnknownReply,
    WMConnection,
)

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="wmipc",
        description="Send messages to i3/sway and print their replies or events",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"wmipc {__version__}",
    )

    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file (default: auto-detect)",
    )

    parser.add_argument(
        "-s",
        "--socket",
        type=Path,
        default=None,
        help="Path to IPC socket (default: $I3SOCK, $SWAYSOCK or i3 --get-socketpath)",
    )

    parser.add_argument(
        "--capability",
        choices=[level.value for level in CapabilityLevel],
        default=None,
        help="Protocol level to decode replies and events with",
    )

    parser.add_argument(
        "-t",
        "--type",
        choices=[message_type.name.lower() for message_type in MessageType],
        default="run_command",
        help="Message type (default: run_command)",
    )

    parser.add_argument(
        "-m",
        "--monitor",
        action="store_true",
        help="With -t subscribe, print events until the connection ends",
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    parser.add_argument(
        "payload",
        nargs="*",
        help="Message payload (command text, bar id, tick payload or JSON)",
    )

    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> ClientConfig:
    """Load the configuration file if any and apply command-line overrides."""
    config_path = find_config_file(args.config)
    config = load_config(config_path) if config_path else ClientConfig()

    overrides: dict[str, Any] = {}
    if args.socket is not None:
        overrides["socket_path"] = str(args.socket)
    if args.capability is not None:
        overrides["capability"] = CapabilityLevel(args.capability)
    if args.debug:
        overrides["log_level"] = "debug"

    return config.model_copy(update=overrides)


def build_request(message_type: MessageType, payload: str) -> Request:
    """
    Build the request for a message type from the command-line payload.

    Raises:
        ValueError: If a JSON payload is malformed or has the wrong shape
    """
    if message_type == MessageType.SUBSCRIBE:
        names = json.loads(payload) if payload else []
        if not isinstance(names, list):
            raise ValueError("expected a JSON list of event names")
        return Request.subscribe([Subscription(name) for name in names])
    if message_type == MessageType.SYNC:
        data = json.loads(payload)
        if not isinstance(data, dict) or not {"random", "window"} <= data.keys():
            raise ValueError('expected a JSON object with "random" and "window"')
        return Request.sync(data["random"], data["window"])
    if message_type in (MessageType.RUN_COMMAND, MessageType.GET_BAR_CONFIG, MessageType.SEND_TICK):
        return Request(message_type, payload or None)
    return Request(message_type)


def to_jsonable(value: Any) -> Any:
    """Convert a decoded reply or event into JSON-compatible data."""
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True)
    if isinstance(value, (UnknownReply, UnknownEvent)):
        return {"type_code": value.type_code, "payload": value.payload.decode("utf-8", "replace")}
    if isinstance(value, list):
        return [to_jsonable(item) for item in value]
    return value


def print_json(value: Any) -> None:
    print(json.dumps(to_jsonable(value), indent=2))


def run_request(config: ClientConfig, request: Request) -> int:
    """Send one request and print its reply."""
    with WMConnection.from_config(config) as connection:
        reply = connection.send(request)

    print_json(reply)

    if request.type == MessageType.RUN_COMMAND:
        failed = [outcome for outcome in reply if not outcome.success]
        return 1 if failed else 0
    return 0


def run_monitor(config: ClientConfig, subscriptions: list[Subscription]) -> int:
    """Subscribe and print every event until the stream ends."""
    with EventListener.from_config(config) as listener:
        listener.subscribe(subscriptions)
        try:
            for event in listener.listen():
                print(f"{type(event).__name__}:")
                print_json(event)
        except KeyboardInterrupt:
            return 0
        except IPCError as e:
            logger.info(f"Event stream ended: {e.message}")
    return 0


def main(argv: list[str] | None = None) -> int:
    """
    Application entry point.

    Returns:
        Exit code (0 = success)
    """
    args = parse_args(argv)

    try:
        config = build_config(args)
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    # Configure logging
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper()),
        format="%(asctime)s %(levelname)s [%(name)s]: %(message)s",
    )

    message_type = MessageType[args.type.upper()]
    payload = " ".join(args.payload)

    try:
        request = build_request(message_type, payload)
    except (ValueError, KeyError) as e:
        print(f"Error: invalid payload for {args.type}: {e}", file=sys.stderr)
        return 2

    try:
        if args.monitor:
            if message_type != MessageType.SUBSCRIBE:
                print("Error: --monitor requires -t subscribe", file=sys.stderr)
                return 2
            return run_monitor(config, [Subscription(name) for name in request.payload or []])
        return run_request(config, request)
    except IPCError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
