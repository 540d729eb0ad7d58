"""Fetch the device's last reported status."""

from __future__ import annotations

import json
import logging
from typing import Optional

import aiohttp

from .adapters.feeds import FeedsClient
from .config import AdafruitConfig
from .errors import MalformedDataError
from .models import StatusRecord

LOGGER = logging.getLogger(__name__)


def feed_key_from_topic(topic: str) -> str:
    """``user/feeds/esp32_status`` -> ``esp32_status``."""

    return topic.rstrip("/").rsplit("/", 1)[-1]


async def fetch_status(
    config: AdafruitConfig,
    topic: str,
    *,
    session: Optional[aiohttp.ClientSession] = None,
) -> Optional[StatusRecord]:
    """Return the parsed status merged with ``created_at``, or ``None``.

    The device publishes its status as a JSON string, which Adafruit IO stores
    verbatim in the datum's ``value`` field.
    """

    client = FeedsClient(config, session=session)
    datum = await client.last_datum(feed_key_from_topic(topic))
    if not datum:
        return None

    raw_value = datum.get("value")
    if not raw_value:
        return None

    # Adafruit IO stores values as strings; anything else is not a device payload.
    try:
        parsed = json.loads(raw_value)
    except (TypeError, ValueError) as exc:
        LOGGER.error(
            "[JSON_PARSE_ERROR] Failed to parse device status: %r", raw_value
        )
        raise MalformedDataError(
            "Received malformed status data from the device.", raw_value=raw_value
        ) from exc

    record: StatusRecord = dict(parsed) if isinstance(parsed, dict) else {"value": parsed}
    created_at = datum.get("created_at")
    if created_at is not None:
        record["created_at"] = created_at
    return record
