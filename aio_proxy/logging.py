"""Process-wide logging setup for the proxy."""

from __future__ import annotations

import logging
from typing import Optional

from .config import LoggingConfig

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

# paho logs through the adapter's "paho.mqtt" logger; aiohttp serves both the
# REST client and the inbound endpoint.
NETWORK_LOGGERS = (
    "paho.mqtt",
    "aiohttp.client",
    "aiohttp.access",
    "aiohttp.server",
    "aiohttp.web",
)


def configure_logging(config: LoggingConfig, *, level: Optional[str] = None) -> None:
    """Install console (and optional file) handlers on the root logger.

    ``level`` overrides ``config.level``. Transport loggers stay at WARNING
    unless ``config.log_network`` asks for their DEBUG output.
    """

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)

    formatter = logging.Formatter(LOG_FORMAT)
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if config.path is not None:
        config.path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(config.path, encoding="utf-8"))

    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)

    root.setLevel(resolve_level(level or config.level))
    logging.captureWarnings(True)

    network_level = logging.DEBUG if config.log_network else logging.WARNING
    for name in NETWORK_LOGGERS:
        logging.getLogger(name).setLevel(network_level)


def resolve_level(name: str) -> int:
    value = logging.getLevelName(name.strip().upper())
    return value if isinstance(value, int) else logging.INFO
