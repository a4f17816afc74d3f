"""Climate platform for the MrCool cloud integration.

One climate entity per subscribed device.  Commands are sent without
touching local state; the entity refreshes when the service confirms the
change over the streaming channel.
"""

from __future__ import annotations

import logging
from typing import Any

from homeassistant.components.climate import (
    ClimateEntity,
    ClimateEntityFeature,
    HVACMode,
)
from homeassistant.config_entries import ConfigEntry
from homeassistant.const import ATTR_TEMPERATURE, UnitOfTemperature
from homeassistant.core import HomeAssistant
from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers.device_registry import DeviceInfo
from homeassistant.helpers.entity_platform import AddEntitiesCallback
from homeassistant.helpers.update_coordinator import CoordinatorEntity

from .const import DOMAIN
from .coordinator import MrCoolCoordinator
from .exceptions import MrCoolError
from .models import Device

_LOGGER = logging.getLogger(__name__)

# Map service mode → HA HVACMode
_MRCOOL_TO_HA_MODE = {
    "auto": HVACMode.AUTO,
    "heat": HVACMode.HEAT,
    "cool": HVACMode.COOL,
    "dry": HVACMode.DRY,
    "fan": HVACMode.FAN_ONLY,
}

# Reverse
_HA_TO_MRCOOL_MODE: dict[HVACMode, str] = {v: k for k, v in _MRCOOL_TO_HA_MODE.items()}

_FAN_MODES = ["auto", "low", "medium", "high"]


def _as_float(value: Any) -> float | None:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up MrCool climate entities from a config entry."""
    coordinator: MrCoolCoordinator = hass.data[DOMAIN][entry.entry_id]
    async_add_entities(
        MrCoolClimate(coordinator, device.mac_address, device.name)
        for device in coordinator.devices
    )


class MrCoolClimate(CoordinatorEntity[MrCoolCoordinator], ClimateEntity):
    """A MrCool air conditioner."""

    _attr_has_entity_name = True
    _attr_name = None
    _attr_temperature_unit = UnitOfTemperature.FAHRENHEIT
    _attr_hvac_modes = [HVACMode.OFF, *_HA_TO_MRCOOL_MODE]
    _attr_fan_modes = _FAN_MODES
    _attr_supported_features = (
        ClimateEntityFeature.TARGET_TEMPERATURE
        | ClimateEntityFeature.FAN_MODE
        | ClimateEntityFeature.TURN_ON
        | ClimateEntityFeature.TURN_OFF
    )
    _attr_target_temperature_step = 1
    _attr_min_temp = 62
    _attr_max_temp = 86

    def __init__(
        self, coordinator: MrCoolCoordinator, mac_address: str, name: str
    ) -> None:
        super().__init__(coordinator)
        self._mac = mac_address
        self._attr_unique_id = f"{mac_address.lower()}_climate"
        self._attr_device_info = DeviceInfo(
            identifiers={(DOMAIN, mac_address)},
            name=name or f"MrCool {mac_address}",
            manufacturer="MrCool",
            model="Cielo Breez",
        )

    @property
    def _device(self) -> Device | None:
        return self.coordinator.device(self._mac)

    @property
    def available(self) -> bool:
        return self.coordinator.connected and self._device is not None

    @property
    def hvac_mode(self) -> HVACMode:
        device = self._device
        if device is None or not device.is_on:
            return HVACMode.OFF
        return _MRCOOL_TO_HA_MODE.get(str(device.mode).lower(), HVACMode.AUTO)

    @property
    def fan_mode(self) -> str | None:
        device = self._device
        return str(device.fan_speed) if device else None

    @property
    def current_temperature(self) -> float | None:
        device = self._device
        return _as_float(device.room_temperature) if device else None

    @property
    def target_temperature(self) -> float | None:
        device = self._device
        return _as_float(device.temperature) if device else None

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        device = self._device
        if device is None:
            return {}
        return {
            "mac_address": device.mac_address,
            "appliance_id": device.appliance_id,
            "firmware_version": device.fw_version,
        }

    async def _run(self, action: str, coro) -> None:
        try:
            await coro
        except MrCoolError as err:
            raise HomeAssistantError(f"Failed to {action}: {err}") from err

    async def async_set_hvac_mode(self, hvac_mode: HVACMode) -> None:
        device = self._device
        if device is None:
            return
        _LOGGER.debug("Setting %s hvac mode to %s", self._mac, hvac_mode)
        if hvac_mode == HVACMode.OFF:
            await self._run("turn off", device.power_off())
            return
        if not device.is_on:
            await self._run("turn on", device.power_on())
        mode = _HA_TO_MRCOOL_MODE.get(hvac_mode)
        if mode is not None and mode != device.mode:
            await self._run("set mode", device.set_mode(mode))

    async def async_turn_on(self) -> None:
        device = self._device
        if device is not None:
            await self._run("turn on", device.power_on())

    async def async_turn_off(self) -> None:
        device = self._device
        if device is not None:
            await self._run("turn off", device.power_off())

    async def async_set_fan_mode(self, fan_mode: str) -> None:
        device = self._device
        if device is not None:
            await self._run("set fan speed", device.set_fan_speed(fan_mode))

    async def async_set_temperature(self, **kwargs: Any) -> None:
        device = self._device
        temperature = kwargs.get(ATTR_TEMPERATURE)
        if device is None or temperature is None:
            return
        await self._run("set temperature", device.set_temperature(str(int(temperature))))
