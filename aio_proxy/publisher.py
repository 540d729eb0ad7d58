"""Publish dashboard commands to the device over MQTT."""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

from .adapters.mqtt import new_client_id, open_connection
from .config import ProxyConfig
from .models import build_command_message

LOGGER = logging.getLogger(__name__)


async def publish_command(
    config: ProxyConfig, topic: str, payload: Any, *, client_id: Optional[str] = None
) -> None:
    """Open a one-shot MQTT connection, publish ``payload`` and disconnect.

    Raises ``MQTTConnectionError`` when the broker cannot be reached or refuses
    the connection, and ``PublishError`` when the message is not delivered.
    """

    message = json.dumps(build_command_message(payload)).encode("utf-8")
    client_id = client_id or new_client_id()

    async with open_connection(
        config.adafruit, config.mqtt, client_id=client_id
    ) as client:
        await client.publish(topic, message, qos=config.mqtt.qos, retain=False)

    LOGGER.info("Published command to %s (%d bytes)", topic, len(message))
