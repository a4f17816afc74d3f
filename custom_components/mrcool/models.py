"""Session and device state for a MrCool cloud connection."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from .const import (
    DEFAULT_DEVICE_TYPE_VERSION,
    DEFAULT_FAN,
    DEFAULT_FW_VERSION,
    DEFAULT_MODE,
    DEFAULT_POWER,
    DEFAULT_TEMPERATURE,
    FIELD_FAN_SPEED,
    FIELD_MODE,
    FIELD_POWER,
    FIELD_TEMPERATURE,
    POWER_OFF,
    POWER_ON,
)
from .exceptions import SendError
from .protocol.events import ActionReceived, HeartBeat

if TYPE_CHECKING:
    from .connection import MrCoolConnection


@dataclass
class Session:
    """Credentials established by the login handshake.

    Created fresh by every ``establish_connection``; the service expires it
    and there is no renewal, so reconnecting means a new handshake.
    """

    application_cookies: str
    session_id: str
    user_id: str
    access_token: str
    access_credentials: dict[str, Any] = field(default_factory=dict)
    socket_info: dict[str, Any] = field(default_factory=dict)

    @property
    def connection_token(self) -> str | None:
        return self.socket_info.get("ConnectionToken")


class Device:
    """A subscribed air conditioner, keyed by its hardware address.

    Identity fields are fixed at creation.  State fields only change when
    the service confirms them (snapshot or streaming event); sending a
    command does not touch them.
    """

    def __init__(
        self,
        mac_address: str,
        name: str = "",
        *,
        appliance_id: Any = None,
        fw_version: str = DEFAULT_FW_VERSION,
        device_type_version: str = DEFAULT_DEVICE_TYPE_VERSION,
        connection: MrCoolConnection | None = None,
    ) -> None:
        self._mac_address = mac_address
        self._name = name
        self._appliance_id = appliance_id
        self._fw_version = fw_version
        self._device_type_version = device_type_version
        self._connection = connection

        self.power: Any = DEFAULT_POWER
        self.mode: Any = DEFAULT_MODE
        self.fan_speed: Any = DEFAULT_FAN
        self.temperature: Any = DEFAULT_TEMPERATURE
        self.room_temperature: Any = DEFAULT_TEMPERATURE

    @classmethod
    def from_snapshot(
        cls, record: dict[str, Any], connection: MrCoolConnection | None = None
    ) -> Device:
        """Build a device from one ``listDevices`` entry."""
        device = cls(
            record["macAddress"],
            record.get("deviceName") or "",
            appliance_id=record.get("applianceID"),
            fw_version=record.get("fwVersion") or DEFAULT_FW_VERSION,
            device_type_version=(
                record.get("deviceTypeVersion") or DEFAULT_DEVICE_TYPE_VERSION
            ),
            connection=connection,
        )
        action = record.get("latestAction")
        env = record.get("latEnv")
        if not isinstance(action, dict):
            action = {}
        if not isinstance(env, dict):
            env = {}
        device.apply_update(
            action.get("power", DEFAULT_POWER),
            action.get("temp", DEFAULT_TEMPERATURE),
            action.get("mode", DEFAULT_MODE),
            action.get("fanspeed", DEFAULT_FAN),
            env.get("temp", DEFAULT_TEMPERATURE),
        )
        return device

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    @property
    def mac_address(self) -> str:
        return self._mac_address

    @property
    def name(self) -> str:
        return self._name

    @property
    def appliance_id(self) -> Any:
        return self._appliance_id

    @property
    def fw_version(self) -> str:
        return self._fw_version

    @property
    def device_type_version(self) -> str:
        return self._device_type_version

    @property
    def is_on(self) -> bool:
        return self.power == POWER_ON

    # ------------------------------------------------------------------
    # State updates
    # ------------------------------------------------------------------

    def apply_update(
        self, power: Any, temperature: Any, mode: Any, fan_speed: Any, room_temperature: Any
    ) -> None:
        """Overwrite the full mutable state."""
        self.power = power
        self.temperature = temperature
        self.mode = mode
        self.fan_speed = fan_speed
        self.room_temperature = room_temperature

    def apply_action(self, event: ActionReceived) -> None:
        """Apply a confirmed command; room temperature is left alone."""
        self.apply_update(
            event.power, event.temperature, event.mode, event.fan_speed,
            self.room_temperature,
        )

    def apply_heartbeat(self, event: HeartBeat) -> None:
        self.room_temperature = event.room_temperature

    def as_dict(self) -> dict[str, Any]:
        return {
            "mac_address": self.mac_address,
            "name": self.name,
            "appliance_id": self.appliance_id,
            "fw_version": self.fw_version,
            "power": self.power,
            "mode": self.mode,
            "fan_speed": self.fan_speed,
            "temperature": self.temperature,
            "room_temperature": self.room_temperature,
        }

    def __repr__(self) -> str:
        return (
            f"<Device {self.name} {self.mac_address}: {self.power}, {self.mode}, "
            f"{self.fan_speed}, {self.temperature}, {self.room_temperature}>"
        )

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def _send(self, field_name: str, value: Any) -> None:
        if self._connection is None:
            raise SendError(f"Device {self.mac_address} is not attached to a connection")
        await self._connection.async_send_command(self, field_name, value)

    async def set_power(self, power: str) -> None:
        await self._send(FIELD_POWER, power)

    async def power_on(self) -> None:
        await self.set_power(POWER_ON)

    async def power_off(self) -> None:
        await self.set_power(POWER_OFF)

    async def set_mode(self, mode: str) -> None:
        await self._send(FIELD_MODE, mode)

    async def set_fan_speed(self, fan_speed: str) -> None:
        await self._send(FIELD_FAN_SPEED, fan_speed)

    async def set_temperature(self, temperature: Any) -> None:
        await self._send(FIELD_TEMPERATURE, temperature)


class DeviceRegistry:
    """Subscribed devices keyed by hardware address.

    All mutation happens on the event loop that owns the connection.
    """

    def __init__(self) -> None:
        self._devices: dict[str, Device] = {}

    def clear(self) -> None:
        self._devices.clear()

    def add(self, device: Device) -> Device:
        """Insert *device*; an address already present keeps its first entry."""
        return self._devices.setdefault(device.mac_address, device)

    def get(self, mac_address: str) -> Device | None:
        return self._devices.get(mac_address)

    def apply_event(self, event: ActionReceived | HeartBeat) -> Device | None:
        """Apply a streaming event; returns the updated device or ``None``."""
        device = self._devices.get(event.mac_address)
        if device is None:
            return None
        if isinstance(event, ActionReceived):
            device.apply_action(event)
        elif isinstance(event, HeartBeat):
            device.apply_heartbeat(event)
        return device

    @property
    def addresses(self) -> list[str]:
        return list(self._devices)

    def __contains__(self, mac_address: object) -> bool:
        return mac_address in self._devices

    def __iter__(self) -> Iterator[Device]:
        return iter(list(self._devices.values()))

    def __len__(self) -> int:
        return len(self._devices)
