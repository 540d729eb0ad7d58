"""Configuration loader for aio-proxy."""

from __future__ import annotations

import os
from configparser import ConfigParser
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from . import constants


@dataclass(frozen=True, slots=True)
class AdafruitConfig:
    username: Optional[str] = None
    key: Optional[str] = None
    broker_host: str = constants.DEFAULT_BROKER_HOST
    broker_port: int = constants.DEFAULT_BROKER_PORT
    api_base_url: str = constants.DEFAULT_API_BASE_URL
    control_feed: str = constants.DEFAULT_CONTROL_FEED
    status_feed: str = constants.DEFAULT_STATUS_FEED

    @property
    def has_credentials(self) -> bool:
        return bool(self.username) and bool(self.key)

    @property
    def control_topic(self) -> str:
        return f"{self.username}/feeds/{self.control_feed}"

    @property
    def status_topic(self) -> str:
        return f"{self.username}/feeds/{self.status_feed}"


@dataclass(frozen=True, slots=True)
class MQTTConfig:
    keepalive: int = 60
    qos: int = 0
    connect_timeout_seconds: float = 30.0
    use_tls: bool = True


@dataclass(frozen=True, slots=True)
class ServerConfig:
    host: str = constants.DEFAULT_SERVER_HOST
    port: int = constants.DEFAULT_SERVER_PORT
    path: str = constants.DEFAULT_SERVER_PATH


@dataclass(frozen=True, slots=True)
class LoggingConfig:
    level: str = "INFO"
    path: Optional[Path] = None
    log_network: bool = False


@dataclass(frozen=True, slots=True)
class ProxyConfig:
    adafruit: AdafruitConfig
    mqtt: MQTTConfig
    server: ServerConfig
    logging: LoggingConfig
    path: Optional[Path] = None


def _split_host_port(host: str, port: int) -> tuple[str, int]:
    if ":" not in host:
        return host, port

    host_part, port_part = host.rsplit(":", 1)
    try:
        return host_part, int(port_part)
    except ValueError:
        return host, port


def _apply_environment(parser: ConfigParser, environ: Mapping[str, str]) -> None:
    overrides = {
        constants.ENV_USERNAME: ("adafruit", "username"),
        constants.ENV_KEY: ("adafruit", "key"),
        constants.ENV_BROKER_HOST: ("adafruit", "broker_host"),
        constants.ENV_BROKER_PORT: ("adafruit", "broker_port"),
        constants.ENV_LOG_LEVEL: ("logging", "level"),
        constants.ENV_SERVER_HOST: ("server", "host"),
        constants.ENV_SERVER_PORT: ("server", "port"),
    }
    for variable, (section, option) in overrides.items():
        value = environ.get(variable)
        if value:
            parser.set(section, option, value)


def load_config(
    path: Optional[Path] = None, *, environ: Optional[Mapping[str, str]] = None
) -> ProxyConfig:
    """Load configuration from defaults, an optional file and the environment.

    Environment variables win over the file so a deployment platform can
    inject credentials without touching disk. Missing credentials are not an
    error here; requests report them individually.
    """

    config_path = path or constants.DEFAULT_CONFIG_PATH
    env = os.environ if environ is None else environ

    parser = ConfigParser(interpolation=None)
    parser.read_dict(
        {
            "adafruit": {
                "broker_host": constants.DEFAULT_BROKER_HOST,
                "broker_port": str(constants.DEFAULT_BROKER_PORT),
                "api_base_url": constants.DEFAULT_API_BASE_URL,
                "control_feed": constants.DEFAULT_CONTROL_FEED,
                "status_feed": constants.DEFAULT_STATUS_FEED,
            },
            "mqtt": {
                "keepalive": "60",
                "qos": "0",
                "connect_timeout_seconds": "30.0",
                "use_tls": "true",
            },
            "server": {
                "host": constants.DEFAULT_SERVER_HOST,
                "port": str(constants.DEFAULT_SERVER_PORT),
                "path": constants.DEFAULT_SERVER_PATH,
            },
            "logging": {
                "level": "INFO",
                "log_network": "false",
            },
        }
    )

    if config_path.exists():
        parser.read(config_path)

    _apply_environment(parser, env)

    broker_host, broker_port = _split_host_port(
        parser.get("adafruit", "broker_host"),
        parser.getint(
            "adafruit", "broker_port", fallback=constants.DEFAULT_BROKER_PORT
        ),
    )

    adafruit = AdafruitConfig(
        username=parser.get("adafruit", "username", fallback=None) or None,
        key=parser.get("adafruit", "key", fallback=None) or None,
        broker_host=broker_host,
        broker_port=broker_port,
        api_base_url=parser.get("adafruit", "api_base_url").rstrip("/"),
        control_feed=parser.get("adafruit", "control_feed"),
        status_feed=parser.get("adafruit", "status_feed"),
    )

    mqtt = MQTTConfig(
        keepalive=max(1, parser.getint("mqtt", "keepalive", fallback=60)),
        qos=max(0, min(1, parser.getint("mqtt", "qos", fallback=0))),
        connect_timeout_seconds=max(
            0.1,
            parser.getfloat("mqtt", "connect_timeout_seconds", fallback=30.0),
        ),
        use_tls=parser.getboolean("mqtt", "use_tls", fallback=True),
    )

    server = ServerConfig(
        host=parser.get("server", "host"),
        port=parser.getint("server", "port", fallback=constants.DEFAULT_SERVER_PORT),
        path=parser.get("server", "path"),
    )

    log_path_value = parser.get("logging", "path", fallback=None)
    logging_config = LoggingConfig(
        level=parser.get("logging", "level", fallback="INFO"),
        path=Path(log_path_value).expanduser() if log_path_value else None,
        log_network=parser.getboolean("logging", "log_network", fallback=False),
    )

    return ProxyConfig(
        adafruit=adafruit,
        mqtt=mqtt,
        server=server,
        logging=logging_config,
        path=config_path,
    )
