"""MQTT adapter encapsulating paho-mqtt client usage."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import secrets
import time
from typing import AsyncIterator, Dict, Optional

import paho.mqtt.client as mqtt

from .. import constants
from ..config import AdafruitConfig, MQTTConfig
from ..errors import MQTTConnectionError, PublishError

LOGGER = logging.getLogger(__name__)
PAHO_LOGGER = logging.getLogger("paho.mqtt")


def new_client_id(prefix: str = constants.CLIENT_ID_PREFIX) -> str:
    """Return a client identifier unique to one invocation."""

    return f"{prefix}_{int(time.time() * 1000)}_{secrets.token_hex(3)}"


class MQTTClient:
    """Single-use async wrapper over the threaded paho-mqtt client.

    The client never reconnects on its own. Callbacks arrive on paho's network
    thread and are handed to the event loop, where each future is resolved at
    most once.
    """

    def __init__(
        self,
        config: AdafruitConfig,
        settings: Optional[MQTTConfig] = None,
        *,
        client_id: str,
    ) -> None:
        self.config = config
        self.settings = settings or MQTTConfig()
        self.client_id = client_id

        self._client: Optional[mqtt.Client] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._connected_future: Optional[asyncio.Future[None]] = None
        self._disconnected_future: Optional[asyncio.Future[None]] = None
        self._pending: Dict[int, asyncio.Future[None]] = {}
        self._connected = False
        self._closed = False

    async def connect(self) -> None:
        """Connect to the broker and wait for the CONNACK."""

        if self._client is not None:
            raise RuntimeError("MQTT client already used")

        loop = asyncio.get_running_loop()
        self._loop = loop
        self._connected_future = loop.create_future()
        self._disconnected_future = loop.create_future()

        client = mqtt.Client(
            mqtt.CallbackAPIVersion.VERSION2,
            client_id=self.client_id,
            reconnect_on_failure=False,
        )
        client.enable_logger(PAHO_LOGGER)
        client.username_pw_set(self.config.username, self.config.key)

        client.on_connect = self._on_connect
        client.on_connect_fail = self._on_connect_fail
        client.on_disconnect = self._on_disconnect
        client.on_publish = self._on_publish

        self._client = client

        LOGGER.debug(
            "Connecting to MQTT broker %s:%s as %s",
            self.config.broker_host,
            self.config.broker_port,
            self.client_id,
        )

        try:
            if self.settings.use_tls:
                client.tls_set()
            client.connect_async(
                self.config.broker_host,
                self.config.broker_port,
                self.settings.keepalive,
            )
            client.loop_start()
            await asyncio.wait_for(
                self._connected_future, timeout=self.settings.connect_timeout_seconds
            )
        except asyncio.TimeoutError as exc:
            raise MQTTConnectionError(
                "MQTT connection failed: timed out waiting for broker"
            ) from exc
        except (OSError, ValueError) as exc:
            raise MQTTConnectionError(f"MQTT connection failed: {exc}") from exc

    async def publish(
        self, topic: str, payload: bytes, *, qos: int = 0, retain: bool = False
    ) -> None:
        """Publish ``payload`` and wait until paho reports it as delivered."""

        if self._client is None or self._loop is None or not self._connected:
            raise PublishError("MQTT client not connected")

        info = self._client.publish(topic, payload, qos=qos, retain=retain)
        if info.rc != mqtt.MQTT_ERR_SUCCESS:
            LOGGER.error("[MQTT_PUBLISH_ERROR] publish returned rc=%s", info.rc)
            raise PublishError("Failed to publish message.")

        future = self._loop.create_future()
        self._pending[info.mid] = future
        try:
            await future
        finally:
            self._pending.pop(info.mid, None)

    async def close(self, timeout: float = 5.0) -> None:
        """Disconnect and stop the network loop. Safe to call repeatedly."""

        if self._closed or self._client is None:
            return
        self._closed = True

        client = self._client
        was_connected = self._connected
        try:
            client.disconnect()
            if was_connected and self._disconnected_future is not None:
                with contextlib.suppress(asyncio.TimeoutError):
                    await asyncio.wait_for(
                        asyncio.shield(self._disconnected_future), timeout=timeout
                    )
        finally:
            client.loop_stop()
            self._connected = False
            self._fail_pending(PublishError("Failed to publish message."))

    # ------------------------------------------------------------------
    # Internal callbacks bridging the threaded paho callbacks into asyncio
    # ------------------------------------------------------------------
    def _call_in_loop(self, callback, *args) -> None:
        if self._loop is None or self._loop.is_closed():
            return
        self._loop.call_soon_threadsafe(callback, *args)

    def _on_connect(self, client, userdata, flags, reason_code, properties=None) -> None:
        self._call_in_loop(self._handle_connect, reason_code)

    def _on_connect_fail(self, client, userdata) -> None:
        self._call_in_loop(self._handle_connect_fail)

    def _on_disconnect(
        self, client, userdata, flags, reason_code=None, properties=None
    ) -> None:
        self._call_in_loop(self._handle_disconnect, reason_code)

    def _on_publish(self, client, userdata, mid, reason_code=None, properties=None) -> None:
        self._call_in_loop(self._handle_publish, mid, reason_code)

    def _handle_connect(self, reason_code) -> None:
        future = self._connected_future
        if reason_code == 0:
            LOGGER.debug("Connected to MQTT broker")
            self._connected = True
            _resolve(future)
        else:
            LOGGER.error("MQTT connection refused (rc=%s)", reason_code)
            _reject(
                future, MQTTConnectionError(f"MQTT connection failed: {reason_code}")
            )

    def _handle_connect_fail(self) -> None:
        LOGGER.error(
            "Unable to reach MQTT broker %s:%s",
            self.config.broker_host,
            self.config.broker_port,
        )
        _reject(
            self._connected_future,
            MQTTConnectionError(
                "MQTT connection failed: unable to reach "
                f"{self.config.broker_host}:{self.config.broker_port}"
            ),
        )

    def _handle_disconnect(self, reason_code) -> None:
        LOGGER.debug("Disconnected from MQTT broker (rc=%s)", reason_code)
        self._connected = False
        _resolve(self._disconnected_future)
        _reject(
            self._connected_future,
            MQTTConnectionError(f"MQTT connection failed: {reason_code}"),
        )
        self._fail_pending(PublishError("Failed to publish message."))

    def _handle_publish(self, mid: int, reason_code) -> None:
        future = self._pending.get(mid)
        if future is None:
            return
        if reason_code is not None and getattr(reason_code, "is_failure", False):
            LOGGER.error("[MQTT_PUBLISH_ERROR] broker rejected mid=%s: %s", mid, reason_code)
            _reject(future, PublishError("Failed to publish message."))
            return
        _resolve(future)

    def _fail_pending(self, error: Exception) -> None:
        for future in list(self._pending.values()):
            _reject(future, error)


def _resolve(future: Optional[asyncio.Future[None]]) -> None:
    if future is not None and not future.done():
        future.set_result(None)


def _reject(future: Optional[asyncio.Future[None]], error: Exception) -> None:
    if future is not None and not future.done():
        future.set_exception(error)


@contextlib.asynccontextmanager
async def open_connection(
    config: AdafruitConfig,
    settings: Optional[MQTTConfig] = None,
    *,
    client_id: Optional[str] = None,
) -> AsyncIterator[MQTTClient]:
    """Yield a connected client and close it on every exit path."""

    client = MQTTClient(config, settings, client_id=client_id or new_client_id())
    try:
        await client.connect()
        yield client
    finally:
        await client.close()
