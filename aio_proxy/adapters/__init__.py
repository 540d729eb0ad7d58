"""Adapter modules for external integrations."""

from .feeds import FeedsClient
from .mqtt import MQTTClient, new_client_id, open_connection

__all__ = [
    "FeedsClient",
    "MQTTClient",
    "new_client_id",
    "open_connection",
]
