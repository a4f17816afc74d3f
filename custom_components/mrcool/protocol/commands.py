"""Command builder for the MrCool ``devicesactionhub``.

A command is a single SignalR hub invocation carrying two records:

  A[0]  action record: what changed, plus timestamp / rule / firmware metadata
  A[1]  state record : the resulting full state with the metadata blanked

Both records hold the device's current values except for the changed field,
which carries the new value in both.  The invocation id ``I`` comes from a
per-connection counter that starts at 0 and only resets on ``reset()``.

Wire format:
  {"H": "devicesactionhub", "M": "broadcastActionAC", "A": [action, state], "I": n}
"""

from __future__ import annotations

import json
import threading
import time
from typing import TYPE_CHECKING, Any

from ..const import (
    ACTION_SOURCE,
    COMMAND_FIELDS,
    DEVICE_TYPE,
    FIELD_FAN_SPEED,
    FIELD_MODE,
    FIELD_POWER,
    FIELD_TEMPERATURE,
    HUB_NAME,
    METHOD_BROADCAST_ACTION,
    POWER_OFF,
    POWER_ON,
)

if TYPE_CHECKING:
    from ..models import Device


def build_record(
    device: Device,
    field: str,
    value: Any,
    *,
    is_action: bool,
    session_id: str = "",
    ts: int | None = None,
) -> dict[str, Any]:
    """Build one command record for *device* with *field* set to *value*.

    ``is_action`` selects the action record (metadata filled) or the state
    record (metadata blanked).
    """
    if field not in COMMAND_FIELDS:
        raise ValueError(f"Unsupported command field {field!r}")

    def _slot(name: str, current: Any) -> Any:
        return value if field == name else current

    if is_action:
        swing = (
            "Auto"
            if field in (FIELD_MODE, FIELD_TEMPERATURE)
            or (field == FIELD_POWER and value == POWER_OFF)
            else "auto"
        )
        fan_rule = "vanish" if field == FIELD_POWER and value == POWER_ON else "default"
    else:
        swing = "auto"
        fan_rule = ""

    return {
        "turbo": None,
        "mid": session_id if is_action else "",
        "mode": _slot(FIELD_MODE, device.mode),
        "modeValue": "",
        "temp": _slot(FIELD_TEMPERATURE, device.temperature),
        "tempValue": "",
        "power": _slot(FIELD_POWER, device.power),
        "swing": swing,
        "fanspeed": _slot(FIELD_FAN_SPEED, device.fan_speed),
        "scheduleID": "",
        "macAddress": device.mac_address,
        "applianceID": device.appliance_id,
        "performedAction": field if is_action else "",
        "performedActionValue": value if is_action else "",
        "actualPower": device.power,
        "modeRule": "",
        "tempRule": "default" if is_action else "",
        "swingRule": "default" if is_action else "",
        "fanRule": fan_rule,
        "isSchedule": False,
        "aSrc": ACTION_SOURCE,
        "ts": (ts if ts is not None else int(round(time.time()))) if is_action else "",
        "deviceTypeVersion": device.device_type_version if is_action else "",
        "deviceType": DEVICE_TYPE,
        "light": "",
        "rStatus": "",
        "fwVersion": device.fw_version if is_action else "",
    }


class CommandBuilder:
    """Construct ``broadcastActionAC`` hub invocations."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._command_id: int = 0

    @property
    def next_id(self) -> int:
        """Invocation id the next command will use."""
        return self._command_id

    def _next_id(self) -> int:
        with self._lock:
            cid = self._command_id
            self._command_id += 1
            return cid

    def reset(self) -> None:
        """Restart the invocation counter at 0 (new subscription)."""
        with self._lock:
            self._command_id = 0

    def build_payload(
        self,
        device: Device,
        field: str,
        value: Any,
        session_id: str,
        ts: int | None = None,
    ) -> dict[str, Any]:
        """Build the hub invocation as a dict and consume one invocation id."""
        if ts is None:
            ts = int(round(time.time()))
        action = build_record(
            device, field, value, is_action=True, session_id=session_id, ts=ts
        )
        state = build_record(device, field, value, is_action=False)
        return {
            "H": HUB_NAME,
            "M": METHOD_BROADCAST_ACTION,
            "A": [action, state],
            "I": self._next_id(),
        }

    def build_command(
        self,
        device: Device,
        field: str,
        value: Any,
        session_id: str,
        ts: int | None = None,
    ) -> str:
        """Build the hub invocation serialized as JSON text."""
        return json.dumps(self.build_payload(device, field, value, session_id, ts))
