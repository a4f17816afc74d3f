"""Streaming channel for the MrCool ``devicesactionhub``.

Lifecycle:
  DISCONNECTED → CONNECTING → OPEN → CLOSED | ERRORED

  1. Open the ``/signalr/connect`` WebSocket with the session cookies
  2. Start the reader task (inbound frames → device registry → listeners)
  3. GET ``/signalr/start`` to finalize the session server-side
  4. Ping ``/signalr/ping`` every ``ping_interval`` seconds until the
     channel leaves OPEN

The channel never reconnects by itself.  A transport close or error is
reported to the error listeners and the owner decides what to do next.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from typing import Any, Callable

from aiohttp import ClientError, ClientWebSocketResponse, WSMsgType

from .api import MrCoolApiClient
from .const import PING_INTERVAL
from .exceptions import MrCoolError, SendError, TransportError
from .models import DeviceRegistry, Session
from .protocol.events import ActionReceived, HeartBeat, parse_frame

_LOGGER = logging.getLogger(__name__)


class ChannelState(enum.Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"
    ERRORED = "errored"


class StreamingChannel:
    """Persistent SignalR WebSocket carrying commands and device updates."""

    def __init__(
        self,
        api: MrCoolApiClient,
        registry: DeviceRegistry,
        *,
        ping_interval: float = PING_INTERVAL,
    ) -> None:
        self._api = api
        self._registry = registry
        self._ping_interval = ping_interval

        self._state = ChannelState.DISCONNECTED
        self._session: Session | None = None
        self._ws: ClientWebSocketResponse | None = None
        self._reader_task: asyncio.Task | None = None
        self._keepalive_task: asyncio.Task | None = None
        self._closing = False

        self._command_listeners: list[Callable[[dict[str, Any]], None]] = []
        self._temperature_listeners: list[Callable[[Any], None]] = []
        self._error_listeners: list[Callable[[Exception], None]] = []

    # ------------------------------------------------------------------
    # Public helpers
    # ------------------------------------------------------------------

    @property
    def state(self) -> ChannelState:
        return self._state

    @property
    def is_open(self) -> bool:
        return self._state is ChannelState.OPEN

    @property
    def keepalive_running(self) -> bool:
        return self._keepalive_task is not None and not self._keepalive_task.done()

    @staticmethod
    def _add_listener(listeners: list, cb: Callable) -> Callable[[], None]:
        listeners.append(cb)

        def _unsub() -> None:
            if cb in listeners:
                listeners.remove(cb)

        return _unsub

    def add_command_listener(
        self, cb: Callable[[dict[str, Any]], None]
    ) -> Callable[[], None]:
        """Call *cb* with the raw payload of each confirmed command."""
        return self._add_listener(self._command_listeners, cb)

    def add_temperature_listener(self, cb: Callable[[Any], None]) -> Callable[[], None]:
        """Call *cb* with the raw room temperature of each heartbeat."""
        return self._add_listener(self._temperature_listeners, cb)

    def add_error_listener(self, cb: Callable[[Exception], None]) -> Callable[[], None]:
        """Call *cb* with transport and keep-alive failures."""
        return self._add_listener(self._error_listeners, cb)

    def _emit(self, listeners: list, value: Any) -> None:
        for cb in list(listeners):
            try:
                cb(value)
            except Exception:  # noqa: BLE001
                _LOGGER.exception("Error in channel listener")

    # ------------------------------------------------------------------
    # Open / close
    # ------------------------------------------------------------------

    async def open(self, session: Session) -> None:
        """Open the socket and bring the hub session up.

        Raises ``TransportError`` if the socket cannot be opened or the
        start call fails.
        """
        if self._state in (ChannelState.CONNECTING, ChannelState.OPEN):
            await self.close()

        token = session.connection_token
        if not token:
            raise TransportError("Session has no negotiated ConnectionToken")

        self._session = session
        self._closing = False
        self._state = ChannelState.CONNECTING
        _LOGGER.debug("Opening streaming channel")

        try:
            ws = await self._api.ws_connect(session.application_cookies, token)
        except TransportError:
            self._state = ChannelState.ERRORED
            raise

        self._ws = ws
        self._reader_task = asyncio.create_task(self._reader_loop(ws))

        try:
            await self._api.start(session.application_cookies, token)
        except MrCoolError as err:
            await self._teardown()
            self._state = ChannelState.ERRORED
            raise TransportError(f"SignalR start failed: {err}") from err

        # the socket may have dropped while start was in flight
        reader = self._reader_task
        if (
            self._state is not ChannelState.CONNECTING
            or self._ws is not ws
            or reader is None
            or reader.done()
        ):
            self._ws = ws
            await self._teardown()
            self._state = ChannelState.ERRORED
            raise TransportError("WebSocket closed before the channel opened")

        self._state = ChannelState.OPEN
        self._start_keepalive()
        _LOGGER.info("Streaming channel open")

    async def close(self) -> None:
        """Close the channel on request; listeners are not notified."""
        if self._state in (ChannelState.DISCONNECTED, ChannelState.CLOSED):
            self._stop_keepalive()
            return
        self._closing = True
        await self._teardown()
        self._state = ChannelState.CLOSED
        _LOGGER.info("Streaming channel closed")

    async def _teardown(self) -> None:
        self._closing = True
        self._stop_keepalive()
        if self._reader_task and not self._reader_task.done():
            self._reader_task.cancel()
        self._reader_task = None
        if self._ws is not None:
            try:
                await self._ws.close()
            except (ClientError, ConnectionError) as exc:
                _LOGGER.debug("Error closing WebSocket: %s", exc)
            self._ws = None

    # ------------------------------------------------------------------
    # Outbound
    # ------------------------------------------------------------------

    async def send(self, frame: str) -> None:
        """Hand *frame* to the socket.  Raises ``SendError`` on failure."""
        ws = self._ws
        if ws is None or ws.closed or self._state is not ChannelState.OPEN:
            raise SendError(f"Channel is not open (state={self._state.value})")
        _LOGGER.debug("TX frame: %s", frame)
        try:
            await ws.send_str(frame)
        except (ClientError, ConnectionError) as err:
            raise SendError(f"Failed to send frame: {err}") from err

    # ------------------------------------------------------------------
    # Inbound
    # ------------------------------------------------------------------

    def process_frame(self, message: str) -> None:
        """Apply a raw inbound frame to the registry and notify listeners."""
        for event in parse_frame(message):
            device = self._registry.apply_event(event)
            if device is None:
                _LOGGER.debug("Ignoring event for unknown device %s", event.mac_address)
                continue

            if isinstance(event, ActionReceived):
                _LOGGER.debug("Command confirmed for %s: %s", device.mac_address, event.raw)
                self._emit(self._command_listeners, event.raw)
            elif isinstance(event, HeartBeat):
                _LOGGER.debug(
                    "Room temperature for %s: %s", device.mac_address, event.room_temperature
                )
                self._emit(self._temperature_listeners, event.room_temperature)

    async def _reader_loop(self, ws: ClientWebSocketResponse) -> None:
        error: TransportError | None = None
        try:
            async for msg in ws:
                if msg.type == WSMsgType.TEXT:
                    try:
                        self.process_frame(msg.data)
                    except Exception:  # noqa: BLE001
                        _LOGGER.exception("Error handling frame: %s", msg.data)
                elif msg.type == WSMsgType.ERROR:
                    error = TransportError(f"WebSocket error: {ws.exception()}")
                    break
        except asyncio.CancelledError:
            return
        except (ClientError, ConnectionError) as exc:
            error = TransportError(f"WebSocket failed: {exc}")

        if self._closing:
            return
        self._on_transport_down(error)

    def _on_transport_down(self, error: TransportError | None) -> None:
        opening = self._state is ChannelState.CONNECTING
        self._stop_keepalive()
        self._ws = None
        if error is None:
            self._state = ChannelState.CLOSED
            error = TransportError("Connection closed")
            _LOGGER.warning("Streaming channel closed by the service")
        else:
            self._state = ChannelState.ERRORED
            _LOGGER.warning("Streaming channel error: %s", error)
        if opening:
            return  # open() raises to its caller instead
        self._emit(self._error_listeners, error)

    # ------------------------------------------------------------------
    # Keep-alive ping
    # ------------------------------------------------------------------

    def _start_keepalive(self) -> None:
        self._stop_keepalive()
        self._keepalive_task = asyncio.create_task(self._keepalive_loop())
        _LOGGER.debug("Keep-alive started (every %.0fs)", self._ping_interval)

    def _stop_keepalive(self) -> None:
        if self._keepalive_task and not self._keepalive_task.done():
            self._keepalive_task.cancel()
            _LOGGER.debug("Keep-alive stopped")
        self._keepalive_task = None

    async def _keepalive_loop(self) -> None:
        """Ping the hub until cancelled; a failed ping does not stop the loop."""
        try:
            while True:
                await asyncio.sleep(self._ping_interval)
                session = self._session
                if session is None:
                    break
                try:
                    await self._api.ping(session.application_cookies)
                    _LOGGER.debug("Keep-alive ping OK")
                except MrCoolError as exc:
                    _LOGGER.warning("Keep-alive ping failed: %s", exc)
                    self._emit(self._error_listeners, exc)
        except asyncio.CancelledError:
            pass
