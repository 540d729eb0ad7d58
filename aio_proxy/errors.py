"""Exception hierarchy for aio-proxy."""

from __future__ import annotations

from typing import Optional


class ProxyError(RuntimeError):
    """Base class for errors surfaced to proxy callers."""


class ValidationError(ProxyError):
    """Raised when a request cannot be served as submitted."""

    def __init__(self, message: str, *, status: int = 400) -> None:
        super().__init__(message)
        self.status = status


class MQTTConnectionError(ProxyError):
    """Raised when the MQTT client fails to establish a connection."""


class PublishError(ProxyError):
    """Raised when the broker or client rejects a publish."""


class RemoteAPIError(ProxyError):
    """Raised when the Adafruit IO REST API answers with a failure."""

    def __init__(self, message: str, *, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


class MalformedDataError(ProxyError):
    """Raised when the device status payload is not valid JSON."""

    def __init__(self, message: str, *, raw_value: object = None) -> None:
        super().__init__(message)
        self.raw_value = raw_value
