"""Caller-facing MrCool cloud connection.

Typical use::

    conn = MrCoolConnection(session)
    conn.add_command_listener(on_command)
    conn.add_error_listener(on_error)
    await conn.establish_connection(username, password, public_ip)
    await conn.subscribe(["AABBCCDDEEFF"])
    device = conn.devices.get("AABBCCDDEEFF")
    await device.set_temperature(72)

Handshake failures raise from ``establish_connection`` / ``subscribe``.
Once the channel is open, failures only reach the error listeners.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any, Callable

from aiohttp import ClientSession

from .api import MrCoolApiClient
from .channel import ChannelState, StreamingChannel
from .const import DEFAULT_REQUEST_TIMEOUT, PING_INTERVAL
from .exceptions import MrCoolError, SendError
from .models import Device, DeviceRegistry, Session
from .protocol.commands import CommandBuilder

_LOGGER = logging.getLogger(__name__)


class MrCoolConnection:
    """One account session: handshake, device registry, live channel."""

    def __init__(
        self,
        session: ClientSession,
        *,
        proxy: str | None = None,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
        ping_interval: float = PING_INTERVAL,
        api: MrCoolApiClient | None = None,
    ) -> None:
        self.api = api or MrCoolApiClient(
            session, proxy=proxy, request_timeout=request_timeout
        )
        self.devices = DeviceRegistry()
        self.channel = StreamingChannel(self.api, self.devices, ping_interval=ping_interval)
        self._cmd = CommandBuilder()
        self._session: Session | None = None
        self.missing_addresses: list[str] = []

    # ------------------------------------------------------------------
    # Public helpers
    # ------------------------------------------------------------------

    @property
    def session(self) -> Session | None:
        return self._session

    @property
    def socket_info(self) -> dict[str, Any] | None:
        return self._session.socket_info if self._session else None

    @property
    def connected(self) -> bool:
        return self.channel.is_open

    @property
    def channel_state(self) -> ChannelState:
        return self.channel.state

    @property
    def next_sequence(self) -> int:
        return self._cmd.next_id

    def add_command_listener(
        self, cb: Callable[[dict[str, Any]], None]
    ) -> Callable[[], None]:
        return self.channel.add_command_listener(cb)

    def add_temperature_listener(self, cb: Callable[[Any], None]) -> Callable[[], None]:
        return self.channel.add_temperature_listener(cb)

    def add_error_listener(self, cb: Callable[[Exception], None]) -> Callable[[], None]:
        return self.channel.add_error_listener(cb)

    # ------------------------------------------------------------------
    # Handshake
    # ------------------------------------------------------------------

    async def establish_connection(
        self, username: str, password: str, source_address: str
    ) -> Session:
        """Log in, resolve the session and negotiate socket parameters.

        Always builds a fresh ``Session``; any open channel is closed first.
        """
        await self.channel.close()
        self._session = None

        cookies = await self.api.login(username, password, source_address)
        session = await self.api.resolve_session(cookies)
        session.socket_info = await self.api.negotiate(cookies)
        self._session = session
        _LOGGER.info(
            "Negotiated streaming session (connection id %s)",
            session.socket_info.get("ConnectionId"),
        )
        return session

    async def subscribe(self, mac_addresses: Iterable[str]) -> None:
        """Load the requested devices from a fresh snapshot and open the channel.

        Requested addresses the account does not report are skipped and
        listed in ``missing_addresses``.
        """
        session = self._session
        if session is None:
            raise MrCoolError("establish_connection() must complete before subscribe()")

        wanted = list(dict.fromkeys(mac_addresses))
        self.devices.clear()
        self._cmd.reset()

        credentials = await self.api.get_access_credentials(
            session.application_cookies, session.user_id
        )
        session.access_credentials = credentials
        snapshot = await self.api.fetch_devices(session, credentials)

        for record in snapshot:
            if not isinstance(record, dict):
                _LOGGER.debug("Skipping malformed snapshot entry: %r", record)
                continue
            if record.get("macAddress") in wanted:
                self.devices.add(Device.from_snapshot(record, self))

        self.missing_addresses = [a for a in wanted if a not in self.devices]
        if self.missing_addresses:
            _LOGGER.warning(
                "Devices not found on account: %s", ", ".join(self.missing_addresses)
            )
        _LOGGER.info("Subscribed to %d device(s)", len(self.devices))

        await self.channel.open(session)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def async_send_command(self, device: Device, field: str, value: Any) -> None:
        """Encode a single-field change for *device* and send it.

        Local device state is left untouched; it follows the service's
        ``actionReceivedAC`` confirmation.
        """
        session = self._session
        if session is None or not self.channel.is_open:
            raise SendError("Not connected")
        frame = self._cmd.build_command(device, field, value, session.session_id)
        await self.channel.send(frame)

    async def close(self) -> None:
        await self.channel.close()
