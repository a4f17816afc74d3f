"""Shared test fixtures.

Stubs out homeassistant so the client tests can import
``custom_components.mrcool.*`` without a full Home Assistant installation.
"""

import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

# ── Stub out homeassistant so __init__.py can be imported ────────────────


class _StubModule(MagicMock):
    """A MagicMock that acts as a module for `from X import Y` support."""

    def __repr__(self) -> str:
        return f"<StubModule {self._mock_name!r}>"


class _DataUpdateCoordinator:
    """Just enough of DataUpdateCoordinator to subclass and drive."""

    def __init__(self, hass, logger, *, name, update_interval=None, **kwargs):
        self.hass = hass
        self.logger = logger
        self.name = name
        self.update_interval = update_interval
        self.data = None

    def __class_getitem__(cls, item):
        return cls

    def async_set_updated_data(self, data):
        self.data = data


class _ConfigFlow:
    """Accepts the ``domain=`` class keyword real config flows use."""

    def __init_subclass__(cls, domain=None, **kwargs):
        super().__init_subclass__(**kwargs)
        cls.domain = domain


_STUBS = [
    "homeassistant",
    "homeassistant.config_entries",
    "homeassistant.core",
    "homeassistant.const",
    "homeassistant.exceptions",
    "homeassistant.helpers",
    "homeassistant.helpers.aiohttp_client",
    "homeassistant.helpers.update_coordinator",
    "homeassistant.helpers.device_registry",
    "homeassistant.helpers.entity_platform",
    "homeassistant.components",
    "homeassistant.components.climate",
    "homeassistant.components.diagnostics",
]

for _name in _STUBS:
    sys.modules.setdefault(_name, _StubModule(name=_name))

if isinstance(sys.modules["homeassistant.core"], _StubModule):
    sys.modules["homeassistant.core"].callback = lambda func: func
    sys.modules["homeassistant.const"].CONF_USERNAME = "username"
    sys.modules["homeassistant.const"].CONF_PASSWORD = "password"
    sys.modules[
        "homeassistant.helpers.update_coordinator"
    ].DataUpdateCoordinator = _DataUpdateCoordinator
    sys.modules["homeassistant.config_entries"].ConfigFlow = _ConfigFlow


# ── Shared fixtures ───────────────────────────────────────────────────────

MAC = "AABBCCDDEEFF"


@pytest.fixture
def device():
    from custom_components.mrcool.models import Device

    dev = Device(
        MAC,
        "Living Room",
        appliance_id=42,
        fw_version="2.4.2,2.4.1",
        device_type_version="BI03",
    )
    dev.apply_update("off", "72", "cool", "low", "70")
    return dev


@pytest.fixture
def session():
    from custom_components.mrcool.models import Session

    return Session(
        application_cookies="a=1;b=2",
        session_id="sess-1",
        user_id="user-1",
        access_token="tok-1",
        socket_info={"ConnectionToken": "ctok", "ConnectionId": "cid"},
    )
