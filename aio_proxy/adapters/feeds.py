"""Adafruit IO REST adapter for reading feed data."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import aiohttp

from ..config import AdafruitConfig
from ..errors import RemoteAPIError

LOGGER = logging.getLogger(__name__)


class FeedsClient:
    """Reads the most recent datum of an Adafruit IO feed."""

    def __init__(
        self,
        config: AdafruitConfig,
        *,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self.config = config
        self._base_url = config.api_base_url.rstrip("/")
        self._headers = {}
        if config.key:
            self._headers["X-AIO-Key"] = config.key
        self._session = session

    def last_datum_url(self, feed_key: str) -> str:
        return f"{self._base_url}/{self.config.username}/feeds/{feed_key}/data/last"

    async def last_datum(self, feed_key: str) -> Optional[Dict[str, Any]]:
        """Return the last datum of ``feed_key`` or ``None`` if it has none.

        A 404 means the feed never received data and is not an error.
        """

        url = self.last_datum_url(feed_key)
        owns_session = self._session is None
        session = self._session or aiohttp.ClientSession()

        try:
            async with session.get(url, headers=self._headers) as response:
                if response.status == 404:
                    LOGGER.info("Feed %s has no data yet", feed_key)
                    return None

                if not 200 <= response.status < 300:
                    raise RemoteAPIError(
                        f"Adafruit API request failed with status {response.status}",
                        status=response.status,
                    )

                try:
                    payload = await response.json(content_type=None)
                except ValueError as exc:
                    raise RemoteAPIError(
                        "Adafruit API returned an invalid JSON body",
                        status=response.status,
                    ) from exc
        except aiohttp.ClientError as exc:
            raise RemoteAPIError(f"Adafruit API request failed: {exc}") from exc
        finally:
            if owns_session:
                await session.close()

        if not isinstance(payload, dict):
            return None
        return payload
