"""Request validation and dispatch for the proxy endpoint."""

from __future__ import annotations

import json
import logging
from typing import Any, Awaitable, Callable, Optional, Tuple

from aiohttp import web

from .config import ProxyConfig
from .errors import ProxyError, ValidationError
from .models import Action, CommandRequest, ResponseEnvelope, StatusRecord
from .publisher import publish_command
from .status import fetch_status

LOGGER = logging.getLogger(__name__)

Publisher = Callable[[str, Any], Awaitable[None]]
StatusFetcher = Callable[[str], Awaitable[Optional[StatusRecord]]]

COMMAND_PUBLISHED = "Command published."
STATUS_NOT_FOUND = "Status not found. Device may be offline or has not sent data."
METHOD_NOT_ALLOWED = "Method Not Allowed"
MISSING_CREDENTIALS = "MQTT credentials are not configured on the server."
INVALID_BODY = "Request body must be a JSON object."
INVALID_ACTION = "Invalid action specified."


class RequestRouter:
    """Validates requests and routes them to publish or status lookups.

    The publisher and status fetcher default to the real MQTT and REST
    implementations and can be replaced for tests or alternative transports.
    """

    def __init__(
        self,
        config: ProxyConfig,
        *,
        publisher: Optional[Publisher] = None,
        status_fetcher: Optional[StatusFetcher] = None,
    ) -> None:
        self.config = config
        self._publisher = publisher or self._publish
        self._status_fetcher = status_fetcher or self._fetch_status

    async def handle(self, request: web.Request) -> web.Response:
        """aiohttp handler for the proxy endpoint."""

        body = await request.read() if request.method == "POST" else b""
        status, envelope = await self.dispatch(request.method, body)
        return web.json_response(envelope.as_dict(), status=status)

    async def dispatch(
        self, method: str, body: bytes
    ) -> Tuple[int, ResponseEnvelope]:
        """Serve one request and return the HTTP status with its envelope."""

        try:
            command = self._validate(method, body)
        except ValidationError as exc:
            LOGGER.warning("[PROXY_ERROR] Rejected request: %s", exc)
            return exc.status, ResponseEnvelope.error(str(exc))

        try:
            if command.action is Action.SEND_MOTOR_COMMAND:
                await self._publisher(self.config.adafruit.control_topic, command.payload)
                return 200, ResponseEnvelope.success(details=COMMAND_PUBLISHED)

            data = await self._status_fetcher(self.config.adafruit.status_topic)
        except ProxyError as exc:
            LOGGER.error("[PROXY_ERROR] %s", exc)
            return 500, ResponseEnvelope.error(str(exc))
        except Exception as exc:
            LOGGER.exception("[PROXY_ERROR] Unexpected failure handling %s", command.raw_action)
            return 500, ResponseEnvelope.error(str(exc) or exc.__class__.__name__)

        if data is None:
            LOGGER.info("No status available for %s", self.config.adafruit.status_topic)
            return 404, ResponseEnvelope.error(STATUS_NOT_FOUND)
        return 200, ResponseEnvelope.success(data=data)

    def _validate(self, method: str, body: bytes) -> CommandRequest:
        if method.upper() != "POST":
            raise ValidationError(METHOD_NOT_ALLOWED, status=405)

        if not self.config.adafruit.has_credentials:
            raise ValidationError(MISSING_CREDENTIALS, status=500)

        try:
            decoded = json.loads(body) if body else None
        except ValueError as exc:
            raise ValidationError(INVALID_BODY) from exc

        command = CommandRequest.from_body(decoded)
        if command.action is None:
            raise ValidationError(INVALID_ACTION)
        return command

    async def _publish(self, topic: str, payload: Any) -> None:
        await publish_command(self.config, topic, payload)

    async def _fetch_status(self, topic: str) -> Optional[StatusRecord]:
        return await fetch_status(self.config.adafruit, topic)
