"""HTTP client for the MrCool (Cielo) cloud web API.

Covers every plain-HTTPS step of a session:
  1. ``login``            : POST /auth/login → application cookies
  2. ``resolve_session``  : GET /home/index → decrypt app user, POST /cAcc
  3. ``negotiate``        : GET /signalr/negotiate → socket parameters
  4. ``fetch_devices``    : POST /api/device/initsubscription → device snapshot
  5. ``start`` / ``ping`` : SignalR transport lifecycle calls
plus ``ws_connect`` for the persistent ``/signalr/connect`` socket.

Each call carries its own timeout; nothing is retried here.
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from typing import Any

import aiohttp
from aiohttp import ClientError, ClientResponse, ClientSession, ClientTimeout
from yarl import URL

from .const import (
    API_BASE_URL,
    CLIENT_PROTOCOL,
    CONNECT_PATH,
    DEFAULT_REQUEST_TIMEOUT,
    HUB_NAME,
    INDEX_PATH,
    LOGIN_DEVICE_NAME,
    LOGIN_PATH,
    LOGIN_TIME_ZONE,
    NEGOTIATE_PATH,
    PING_PATH,
    START_PATH,
    SUBSCRIPTION_PATH,
    TOKEN_PASSWORD_PLACEHOLDER,
    TOKEN_PATH,
    TRANSPORT,
    WS_BASE_URL,
)
from .exceptions import (
    AuthenticationError,
    ParseError,
    RequestError,
    SubscriptionError,
    TransportError,
)
from .models import Session
from .protocol.crypto import decrypt_app_user
from .protocol.page import parse_session_page

_LOGGER = logging.getLogger(__name__)

CONNECTION_DATA = json.dumps([{"name": HUB_NAME}], separators=(",", ":"))


def _cache_buster() -> str:
    return str(int(time.time() * 1000))


def cookies_from_response(response: ClientResponse) -> str:
    """Join every ``Set-Cookie`` name=value pair into one Cookie header."""
    pairs = [
        raw.split(";", 1)[0].strip()
        for raw in response.headers.getall("Set-Cookie", [])
    ]
    return ";".join(p for p in pairs if p)


class MrCoolApiClient:
    """Perform the REST side of the MrCool session handshake."""

    def __init__(
        self,
        session: ClientSession,
        *,
        base_url: str = API_BASE_URL,
        ws_base_url: str = WS_BASE_URL,
        proxy: str | None = None,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ) -> None:
        self._session = session
        self._base_url = base_url.rstrip("/")
        self._ws_base_url = ws_base_url.rstrip("/")
        self._proxy = proxy
        self._request_timeout = request_timeout
        self._timeout = ClientTimeout(total=request_timeout)

    def _url(self, path: str) -> str:
        return f"{self._base_url}{path}"

    async def _read_json(self, resp: ClientResponse, what: str) -> Any:
        text = await resp.text()
        try:
            return json.loads(text)
        except ValueError as err:
            raise ParseError(f"{what} response is not JSON (HTTP {resp.status})") from err

    # ------------------------------------------------------------------
    # Credential exchange
    # ------------------------------------------------------------------

    async def login(self, username: str, password: str, source_address: str) -> str:
        """Log in and return the application cookies as a Cookie header value.

        The service answers with a redirect; it is not followed because the
        cookies ride on the redirect response itself.
        """
        form = {
            "mobileDeviceName": LOGIN_DEVICE_NAME,
            "deviceTokenId": source_address,
            "timeZone": LOGIN_TIME_ZONE,
            "state": "",
            "client_id": "",
            "response_type": "",
            "scope": "",
            "redirect_uri": "",
            "userId": username,
            "password": password,
            "rememberMe": "false",
        }
        _LOGGER.debug("POST %s (user=%s)", LOGIN_PATH, username)
        try:
            async with self._session.post(
                self._url(LOGIN_PATH),
                data=form,
                allow_redirects=False,
                proxy=self._proxy,
                timeout=self._timeout,
            ) as resp:
                cookies = cookies_from_response(resp)
                status = resp.status
        except (ClientError, asyncio.TimeoutError) as err:
            raise AuthenticationError(f"Login request failed: {err}") from err

        if not cookies:
            raise AuthenticationError(f"Login returned no cookies (HTTP {status})")
        _LOGGER.info("Logged in as %s", username)
        return cookies

    # ------------------------------------------------------------------
    # Session resolution
    # ------------------------------------------------------------------

    async def get_app_user_and_session_id(
        self, cookies: str
    ) -> tuple[dict[str, Any], str]:
        """Read and decrypt the hidden app-user blob and session id."""
        try:
            async with self._session.get(
                self._url(INDEX_PATH),
                headers={"Cookie": cookies},
                proxy=self._proxy,
                timeout=self._timeout,
            ) as resp:
                html = await resp.text()
        except (ClientError, asyncio.TimeoutError) as err:
            raise RequestError(f"GET {INDEX_PATH} failed: {err}") from err

        encrypted, session_id = parse_session_page(html)
        return decrypt_app_user(encrypted), session_id

    async def get_access_credentials(self, cookies: str, user_id: str) -> dict[str, Any]:
        """Run the password-grant token exchange for *user_id*.

        Returns the token response (``access_token``, ``token_type``,
        ``expires_in``, ...).
        """
        form = {
            "grant_type": "password",
            "username": user_id,
            "password": TOKEN_PASSWORD_PLACEHOLDER,
        }
        try:
            async with self._session.post(
                self._url(TOKEN_PATH),
                data=form,
                headers={"Cookie": cookies},
                proxy=self._proxy,
                timeout=self._timeout,
            ) as resp:
                credentials = await self._read_json(resp, "token")
        except (ClientError, asyncio.TimeoutError) as err:
            raise AuthenticationError(f"Token request failed: {err}") from err

        if not isinstance(credentials, dict) or not credentials.get("access_token"):
            raise AuthenticationError("Token response has no access_token")
        return credentials

    async def resolve_session(self, cookies: str) -> Session:
        """Resolve user id, access token and session id for *cookies*."""
        app_user, session_id = await self.get_app_user_and_session_id(cookies)
        user_id = app_user["userID"]
        credentials = await self.get_access_credentials(cookies, user_id)
        _LOGGER.debug("Resolved session for user id %s", user_id)
        return Session(
            application_cookies=cookies,
            session_id=session_id,
            user_id=user_id,
            access_token=app_user["accessToken"],
            access_credentials=credentials,
        )

    # ------------------------------------------------------------------
    # Device snapshot
    # ------------------------------------------------------------------

    async def fetch_devices(
        self, session: Session, credentials: dict[str, Any]
    ) -> list[dict[str, Any]]:
        """Return the account's ``listDevices`` snapshot."""
        headers = {
            "Authorization": (
                f"{credentials.get('token_type', 'bearer')} {credentials['access_token']}"
            ),
        }
        body = {
            "userID": session.user_id,
            "accessToken": session.access_token,
            "expiresIn": credentials.get("expires_in"),
            "sessionId": session.session_id,
        }
        try:
            async with self._session.post(
                self._url(SUBSCRIPTION_PATH),
                json=body,
                headers=headers,
                proxy=self._proxy,
                timeout=self._timeout,
            ) as resp:
                result = await self._read_json(resp, "subscription")
        except (ClientError, asyncio.TimeoutError) as err:
            raise RequestError(f"POST {SUBSCRIPTION_PATH} failed: {err}") from err

        if not isinstance(result, dict):
            raise ParseError("subscription response is not a JSON object")
        if result.get("error"):
            raise SubscriptionError(result["error"])
        try:
            devices = result["data"]["listDevices"]
        except (KeyError, TypeError) as err:
            raise ParseError("subscription response has no data.listDevices") from err
        return list(devices or [])

    # ------------------------------------------------------------------
    # SignalR transport
    # ------------------------------------------------------------------

    async def _signalr_get(self, path: str, cookies: str, params: dict[str, str]) -> Any:
        try:
            async with self._session.get(
                self._url(path),
                params=params,
                headers={"Cookie": cookies},
                proxy=self._proxy,
                timeout=self._timeout,
            ) as resp:
                if resp.status >= 400:
                    raise RequestError(f"GET {path} -> HTTP {resp.status}")
                return await self._read_json(resp, path)
        except (ClientError, asyncio.TimeoutError) as err:
            raise RequestError(f"GET {path} failed: {err}") from err

    async def negotiate(self, cookies: str) -> dict[str, Any]:
        """Negotiate socket parameters; the body is passed through untouched."""
        socket_info = await self._signalr_get(
            NEGOTIATE_PATH,
            cookies,
            {
                "connectionData": CONNECTION_DATA,
                "clientProtocol": CLIENT_PROTOCOL,
                "_": _cache_buster(),
            },
        )
        if not isinstance(socket_info, dict) or "ConnectionToken" not in socket_info:
            raise ParseError("negotiate response has no ConnectionToken")
        return socket_info

    async def start(self, cookies: str, connection_token: str) -> Any:
        """Finalize the streaming session server-side after the socket opens."""
        return await self._signalr_get(
            START_PATH,
            cookies,
            {
                "transport": TRANSPORT,
                "connectionToken": connection_token,
                "connectionData": CONNECTION_DATA,
                "clientProtocol": CLIENT_PROTOCOL,
                "_": _cache_buster(),
            },
        )

    async def ping(self, cookies: str) -> Any:
        return await self._signalr_get(PING_PATH, cookies, {"_": _cache_buster()})

    def connect_url(self, connection_token: str) -> URL:
        return URL(f"{self._ws_base_url}{CONNECT_PATH}").with_query(
            {
                "transport": TRANSPORT,
                "clientProtocol": CLIENT_PROTOCOL,
                "connectionToken": connection_token,
                "connectionData": CONNECTION_DATA,
                "tid": "0",
            }
        )

    async def ws_connect(
        self, cookies: str, connection_token: str
    ) -> aiohttp.ClientWebSocketResponse:
        """Open the persistent ``/signalr/connect`` socket."""
        try:
            return await asyncio.wait_for(
                self._session.ws_connect(
                    self.connect_url(connection_token),
                    headers={"Cookie": cookies},
                    proxy=self._proxy,
                ),
                self._request_timeout,
            )
        except (ClientError, asyncio.TimeoutError) as err:
            raise TransportError(f"WebSocket connect failed: {err}") from err
