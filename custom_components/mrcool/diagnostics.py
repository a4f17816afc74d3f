"""Diagnostics support for the MrCool cloud integration.

Dumps connection, channel and device state for troubleshooting.  The
password, cookies and tokens never leave the coordinator.
"""

from __future__ import annotations

from typing import Any

from homeassistant.components.diagnostics import async_redact_data
from homeassistant.config_entries import ConfigEntry
from homeassistant.const import CONF_PASSWORD, CONF_USERNAME
from homeassistant.core import HomeAssistant

from .const import CONF_IP_ADDRESS, DOMAIN
from .coordinator import MrCoolCoordinator

# Keys to redact from config entry data (PII / secrets)
TO_REDACT_CONFIG = {CONF_PASSWORD, CONF_USERNAME, CONF_IP_ADDRESS}


async def async_get_config_entry_diagnostics(
    hass: HomeAssistant, entry: ConfigEntry
) -> dict[str, Any]:
    """Return diagnostics for a config entry."""
    coordinator: MrCoolCoordinator = hass.data[DOMAIN][entry.entry_id]
    connection = coordinator.connection
    socket_info = connection.socket_info or {}

    return {
        "config_entry": async_redact_data(entry.as_dict(), TO_REDACT_CONFIG),
        "connection": {
            "connected": connection.connected,
            "channel_state": connection.channel_state.value,
            "keepalive_running": connection.channel.keepalive_running,
            "next_sequence": connection.next_sequence,
            "consecutive_reconnect_failures": coordinator._consecutive_failures,
            "keep_alive_timeout": socket_info.get("KeepAliveTimeout"),
            "disconnect_timeout": socket_info.get("DisconnectTimeout"),
            "protocol_version": socket_info.get("ProtocolVersion"),
        },
        "devices": {d.mac_address: d.as_dict() for d in connection.devices},
        "missing_addresses": connection.missing_addresses,
    }
