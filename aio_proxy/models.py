"""Request and response shapes exchanged with the dashboard."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from .errors import ValidationError

StatusRecord = Dict[str, Any]


class Action(str, Enum):
    SEND_MOTOR_COMMAND = "send_motor_command"
    GET_DEVICE_STATUS = "get_device_status"


@dataclass(slots=True)
class CommandRequest:
    action: Optional[Action]
    raw_action: Any
    payload: Any = None

    @classmethod
    def from_body(cls, body: Any) -> "CommandRequest":
        """Build a request from a decoded JSON body.

        An unknown action is kept as ``action=None`` so the caller decides how
        to reject it.
        """

        if not isinstance(body, dict):
            raise ValidationError("Request body must be a JSON object.")

        raw_action = body.get("action")
        try:
            action: Optional[Action] = Action(raw_action)
        except ValueError:
            action = None

        return cls(action=action, raw_action=raw_action, payload=body.get("payload"))


@dataclass(slots=True)
class ResponseEnvelope:
    status: str
    data: Optional[StatusRecord] = None
    details: Optional[str] = None

    @classmethod
    def success(
        cls, *, data: Optional[StatusRecord] = None, details: Optional[str] = None
    ) -> "ResponseEnvelope":
        return cls(status="success", data=data, details=details)

    @classmethod
    def error(cls, details: str) -> "ResponseEnvelope":
        return cls(status="error", details=details)

    def as_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"status": self.status}
        if self.data is not None:
            payload["data"] = self.data
        elif self.details is not None:
            payload["details"] = self.details
        return payload


def build_command_message(payload: Any) -> Dict[str, Any]:
    """Return the MQTT body sent to the device for ``payload``."""

    # esp_power_on tells the device a dashboard is actively driving it.
    return {"command": payload, "esp_power_on": True}
