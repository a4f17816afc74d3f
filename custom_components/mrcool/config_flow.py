"""Config flow for the MrCool cloud integration."""

from __future__ import annotations

import logging
import re
from typing import Any

import voluptuous as vol
from homeassistant.config_entries import ConfigFlow, ConfigFlowResult
from homeassistant.const import CONF_PASSWORD, CONF_USERNAME
from homeassistant.helpers.aiohttp_client import async_get_clientsession

from .connection import MrCoolConnection
from .const import CONF_IP_ADDRESS, CONF_MAC_ADDRESSES, DOMAIN
from .exceptions import AuthenticationError, MrCoolError

_LOGGER = logging.getLogger(__name__)

_MAC_RE = re.compile(r"^[0-9A-Fa-f]{12}$")


def parse_mac_addresses(raw: str) -> list[str]:
    """Split a comma/space separated list into bare 12-digit MAC addresses.

    Separators inside an address (``:`` / ``-``) are dropped; case is kept
    because the service matches addresses exactly.  Raises ``ValueError``
    on anything else.
    """
    macs: list[str] = []
    for part in re.split(r"[,\s]+", raw.strip()):
        if not part:
            continue
        mac = part.replace(":", "").replace("-", "")
        if not _MAC_RE.match(mac):
            raise ValueError(part)
        if mac not in macs:
            macs.append(mac)
    if not macs:
        raise ValueError(raw)
    return macs


class MrCoolConfigFlow(ConfigFlow, domain=DOMAIN):
    """Handle a config flow for MrCool."""

    VERSION = 1

    async def async_step_user(
        self, user_input: dict[str, Any] | None = None
    ) -> ConfigFlowResult:
        """Ask for account credentials and the devices to control."""
        errors: dict[str, str] = {}

        if user_input is not None:
            try:
                macs = parse_mac_addresses(user_input[CONF_MAC_ADDRESSES])
            except ValueError:
                errors[CONF_MAC_ADDRESSES] = "invalid_mac"
            else:
                await self.async_set_unique_id(user_input[CONF_USERNAME].lower())
                self._abort_if_unique_id_configured()

                errors = await self._async_validate(user_input)
                if not errors:
                    return self.async_create_entry(
                        title=user_input[CONF_USERNAME],
                        data={
                            CONF_USERNAME: user_input[CONF_USERNAME],
                            CONF_PASSWORD: user_input[CONF_PASSWORD],
                            CONF_IP_ADDRESS: user_input[CONF_IP_ADDRESS],
                            CONF_MAC_ADDRESSES: macs,
                        },
                    )

        defaults = user_input or {}
        return self.async_show_form(
            step_id="user",
            data_schema=vol.Schema(
                {
                    vol.Required(
                        CONF_USERNAME, default=defaults.get(CONF_USERNAME, "")
                    ): str,
                    vol.Required(CONF_PASSWORD): str,
                    vol.Required(
                        CONF_IP_ADDRESS, default=defaults.get(CONF_IP_ADDRESS, "")
                    ): str,
                    vol.Required(
                        CONF_MAC_ADDRESSES, default=defaults.get(CONF_MAC_ADDRESSES, "")
                    ): str,
                }
            ),
            errors=errors,
        )

    async def _async_validate(self, user_input: dict[str, Any]) -> dict[str, str]:
        """Run the login handshake once to check the credentials."""
        connection = MrCoolConnection(async_get_clientsession(self.hass))
        try:
            await connection.establish_connection(
                user_input[CONF_USERNAME],
                user_input[CONF_PASSWORD],
                user_input[CONF_IP_ADDRESS],
            )
        except AuthenticationError as exc:
            _LOGGER.debug("MrCool login rejected: %s", exc)
            return {"base": "invalid_auth"}
        except MrCoolError as exc:
            _LOGGER.warning("MrCool handshake failed: %s", exc)
            return {"base": "cannot_connect"}
        finally:
            await connection.close()
        return {}
