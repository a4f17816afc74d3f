"""Parsers for inbound SignalR frames from the ``devicesactionhub``.

A frame is actionable only when its top-level ``M`` is a non-empty list of
hub invocations shaped ``{"M": method, "A": [payload, ...]}``.  Keep-alive
frames (``{}``), init frames (``{"S": 1, ...}``) and invocations of other
methods parse to nothing.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

from ..const import METHOD_ACTION_RECEIVED, METHOD_HEARTBEAT


# ── Dataclasses ───────────────────────────────────────────────────────────


@dataclass
class ActionReceived:
    """Confirmed device state change (``actionReceivedAC``)."""

    mac_address: str
    power: Any = None
    mode: Any = None
    fan_speed: Any = None
    temperature: Any = None
    raw: dict[str, Any] = field(default_factory=dict)


@dataclass
class HeartBeat:
    """Room temperature telemetry sample (``HeartBeatPerformed``)."""

    mac_address: str
    room_temperature: Any = None
    raw: dict[str, Any] = field(default_factory=dict)


# ── Parsers ───────────────────────────────────────────────────────────────


def _has_address(payload: Any) -> bool:
    return isinstance(payload, dict) and isinstance(payload.get("macAddress"), str)


def parse_action_received(payload: Any) -> ActionReceived | None:
    if not _has_address(payload):
        return None
    return ActionReceived(
        mac_address=payload["macAddress"],
        power=payload.get("power"),
        mode=payload.get("mode"),
        fan_speed=payload.get("fanspeed"),
        temperature=payload.get("temp"),
        raw=payload,
    )


def parse_heartbeat(payload: Any) -> HeartBeat | None:
    if not _has_address(payload):
        return None
    return HeartBeat(
        mac_address=payload["macAddress"],
        room_temperature=payload.get("roomTemperature"),
        raw=payload,
    )


_PARSERS = {
    METHOD_ACTION_RECEIVED: parse_action_received,
    METHOD_HEARTBEAT: parse_heartbeat,
}


def parse_invocation(invocation: Any) -> ActionReceived | HeartBeat | None:
    """Parse a single ``{"M": ..., "A": [...]}`` hub invocation."""
    if not isinstance(invocation, dict):
        return None
    method = invocation.get("M")
    args = invocation.get("A")
    if not isinstance(method, str) or not isinstance(args, list) or not args:
        return None
    parser = _PARSERS.get(method)
    if parser is None:
        return None
    return parser(args[0])


def parse_frame(message: str | bytes) -> list[ActionReceived | HeartBeat]:
    """Parse a raw text frame into the events it carries.

    Returns an empty list for invalid JSON and for frames with no
    recognised invocations.
    """
    try:
        data = json.loads(message)
    except ValueError:
        return []
    if not isinstance(data, dict):
        return []
    invocations = data.get("M")
    if not isinstance(invocations, list):
        return []

    events: list[ActionReceived | HeartBeat] = []
    for invocation in invocations:
        event = parse_invocation(invocation)
        if event is not None:
            events.append(event)
    return events
