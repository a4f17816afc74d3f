"""Coordinator for the MrCool cloud connection.

Manages the connection lifecycle:
  1. Log in, resolve the session, negotiate socket parameters
  2. Subscribe to the configured MAC addresses (snapshot + channel open)
  3. Push confirmed commands and room temperatures to entities
  4. On a channel error, redo the whole handshake with exponential backoff
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable

from homeassistant.config_entries import ConfigEntry
from homeassistant.const import CONF_PASSWORD, CONF_USERNAME
from homeassistant.core import HomeAssistant, callback
from homeassistant.helpers.aiohttp_client import async_get_clientsession
from homeassistant.helpers.update_coordinator import DataUpdateCoordinator

from .connection import MrCoolConnection
from .const import (
    CONF_IP_ADDRESS,
    CONF_MAC_ADDRESSES,
    DOMAIN,
    RECONNECT_BACKOFF_BASE,
    RECONNECT_BACKOFF_CAP,
)
from .exceptions import MrCoolError
from .models import Device

_LOGGER = logging.getLogger(__name__)


class MrCoolCoordinator(DataUpdateCoordinator[dict[str, Any]]):
    """Coordinate the MrCool cloud session for one config entry."""

    def __init__(self, hass: HomeAssistant, entry: ConfigEntry) -> None:
        super().__init__(
            hass,
            _LOGGER,
            name=f"{DOMAIN}_{entry.unique_id}",
            update_interval=None,  # push-based, no polling
        )
        self.entry = entry
        self.username: str = entry.data[CONF_USERNAME]
        self.mac_addresses: list[str] = list(entry.data.get(CONF_MAC_ADDRESSES, []))

        self.connection = MrCoolConnection(async_get_clientsession(hass))
        self._connect_lock = asyncio.Lock()
        self._reconnect_task: asyncio.Task | None = None
        self._consecutive_failures: int = 0
        self._closing = False
        self._unsubs: list[Callable[[], None]] = [
            self.connection.add_command_listener(self._on_command),
            self.connection.add_temperature_listener(self._on_temperature),
            self.connection.add_error_listener(self._on_error),
        ]

    # ------------------------------------------------------------------
    # Public helpers
    # ------------------------------------------------------------------

    @property
    def connected(self) -> bool:
        return self.connection.connected

    @property
    def devices(self) -> list[Device]:
        return list(self.connection.devices)

    def device(self, mac_address: str) -> Device | None:
        return self.connection.devices.get(mac_address)

    # ------------------------------------------------------------------
    # Connection lifecycle
    # ------------------------------------------------------------------

    async def async_connect(self) -> None:
        """Run the handshake and subscribe to the configured devices."""
        async with self._connect_lock:
            self._closing = False
            _LOGGER.info("Connecting to MrCool cloud as %s", self.username)
            await self.connection.establish_connection(
                self.username,
                self.entry.data[CONF_PASSWORD],
                self.entry.data[CONF_IP_ADDRESS],
            )
            await self.connection.subscribe(self.mac_addresses)
            self._consecutive_failures = 0
            self.async_set_updated_data(self._build_data())

    async def async_disconnect(self) -> None:
        """Close the channel and stop any pending reconnect."""
        self._closing = True
        self._cancel_reconnect()
        for unsub in self._unsubs:
            unsub()
        self._unsubs.clear()
        await self.connection.close()

    def _build_data(self) -> dict[str, Any]:
        return {
            "connected": self.connection.connected,
            "devices": {d.mac_address: d.as_dict() for d in self.connection.devices},
        }

    # ------------------------------------------------------------------
    # Channel listeners
    # ------------------------------------------------------------------

    @callback
    def _on_command(self, payload: dict[str, Any]) -> None:
        _LOGGER.debug("Commanded state change: %s", payload)
        self.async_set_updated_data(self._build_data())

    @callback
    def _on_temperature(self, room_temperature: Any) -> None:
        _LOGGER.debug("Updated room temperature: %s", room_temperature)
        self.async_set_updated_data(self._build_data())

    @callback
    def _on_error(self, err: Exception) -> None:
        _LOGGER.warning("MrCool communication error: %s", err)
        if self.connection.connected or self._closing:
            return  # keep-alive failure on a live channel
        self.async_set_updated_data(self._build_data())
        self._schedule_reconnect()

    # ------------------------------------------------------------------
    # Automatic reconnection
    # ------------------------------------------------------------------

    def _schedule_reconnect(self) -> None:
        """Schedule a reconnect attempt with exponential backoff."""
        if self._reconnect_task and not self._reconnect_task.done():
            return  # Already scheduled

        delay = min(
            RECONNECT_BACKOFF_BASE * (2 ** self._consecutive_failures),
            RECONNECT_BACKOFF_CAP,
        )
        self._consecutive_failures += 1
        _LOGGER.info(
            "Scheduling reconnect in %.0fs (attempt %d)",
            delay, self._consecutive_failures,
        )
        self._reconnect_task = self.hass.async_create_task(
            self._reconnect_with_delay(delay)
        )

    async def _reconnect_with_delay(self, delay: float) -> None:
        try:
            await asyncio.sleep(delay)
            if self.connection.connected or self._closing:
                return
            await self.async_connect()
            _LOGGER.info("Reconnected to MrCool cloud")
        except asyncio.CancelledError:
            pass
        except MrCoolError as exc:
            _LOGGER.warning("Reconnect failed: %s", exc)
            self._reconnect_task = None
            self._schedule_reconnect()

    def _cancel_reconnect(self) -> None:
        if self._reconnect_task and not self._reconnect_task.done():
            self._reconnect_task.cancel()
        self._reconnect_task = None

    async def _async_update_data(self) -> dict[str, Any]:
        return self._build_data()
