"""Command-line interface for aio-proxy."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Any, Optional

from . import constants
from .config import ProxyConfig, load_config
from .errors import ProxyError
from .logging import configure_logging
from .publisher import publish_command
from .server import ProxyServer
from .status import fetch_status

LOGGER = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="aio-proxy", description="HTTP to Adafruit IO MQTT proxy"
    )
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=constants.DEFAULT_CONFIG_PATH,
        help=f"Path to configuration file (default: {constants.DEFAULT_CONFIG_PATH})",
    )
    parser.add_argument("--log-level", help="Override the configured log level")

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("serve", help="Run the HTTP proxy")

    publish_parser = subparsers.add_parser(
        "publish", help="Publish one motor command and exit"
    )
    publish_parser.add_argument(
        "payload", help="Command payload, parsed as JSON when possible"
    )

    subparsers.add_parser("status", help="Print the device's last reported status")

    subparsers.add_parser(
        "show-config", help="Print the resolved configuration and exit"
    )

    return parser


def _parse_payload(value: str) -> Any:
    try:
        return json.loads(value)
    except ValueError:
        return value


def _redacted(config: ProxyConfig) -> dict:
    resolved = asdict(config)
    if resolved["adafruit"].get("key"):
        resolved["adafruit"]["key"] = "***"
    return resolved


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    config = load_config(args.config)
    configure_logging(config.logging, level=args.log_level)

    if args.command == "show-config":
        print(json.dumps(_redacted(config), indent=2, default=str))
        return 0

    if args.command == "serve":
        if not config.adafruit.has_credentials:
            # The router answers every POST with a 500 until credentials are set.
            LOGGER.warning(
                "%s or %s is not set; requests will be rejected",
                constants.ENV_USERNAME,
                constants.ENV_KEY,
            )
        try:
            asyncio.run(ProxyServer(config).serve_forever())
        except KeyboardInterrupt:
            LOGGER.info("Shutting down")
        return 0

    if not config.adafruit.has_credentials:
        LOGGER.error(
            "Set %s and %s before running %s",
            constants.ENV_USERNAME,
            constants.ENV_KEY,
            args.command,
        )
        return 1

    if args.command == "publish":
        try:
            asyncio.run(
                publish_command(
                    config, config.adafruit.control_topic, _parse_payload(args.payload)
                )
            )
        except ProxyError as exc:
            LOGGER.error("Publish failed: %s", exc)
            return 1
        return 0

    if args.command == "status":
        try:
            record = asyncio.run(
                fetch_status(config.adafruit, config.adafruit.status_topic)
            )
        except ProxyError as exc:
            LOGGER.error("Status lookup failed: %s", exc)
            return 1
        if record is None:
            LOGGER.warning("No status reported yet")
            return 2
        print(json.dumps(record, indent=2))
        return 0

    LOGGER.error("Unknown command: %s", args.command)
    return 1


if __name__ == "__main__":
    sys.exit(main())
