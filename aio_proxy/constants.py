"""Constants used across the aio-proxy package."""

from __future__ import annotations

from pathlib import Path

APP_NAME = "aio-proxy"
DEFAULT_CONFIG_FILENAME = f"{APP_NAME}.cfg"
DEFAULT_CONFIG_PATH = Path.cwd() / DEFAULT_CONFIG_FILENAME

DEFAULT_BROKER_HOST = "io.adafruit.com"
DEFAULT_BROKER_PORT = 8883
DEFAULT_API_BASE_URL = "https://io.adafruit.com/api/v2"

DEFAULT_CONTROL_FEED = "motor_control"
DEFAULT_STATUS_FEED = "esp32_status"

DEFAULT_SERVER_HOST = "0.0.0.0"
DEFAULT_SERVER_PORT = 3000
DEFAULT_SERVER_PATH = "/api/mqtt-proxy"

CLIENT_ID_PREFIX = "aio_proxy_pub"

# Environment variables take precedence over the configuration file.
ENV_USERNAME = "ADAFRUIT_IO_USERNAME"
ENV_KEY = "ADAFRUIT_IO_KEY"
ENV_BROKER_HOST = "MQTT_BROKER_HOST"
ENV_BROKER_PORT = "MQTT_BROKER_PORT"
ENV_LOG_LEVEL = "AIO_PROXY_LOG_LEVEL"
ENV_SERVER_HOST = "AIO_PROXY_HOST"
ENV_SERVER_PORT = "AIO_PROXY_PORT"
