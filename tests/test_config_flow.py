"""Tests for MAC address parsing in the config flow."""

import pytest

from custom_components.mrcool.config_flow import parse_mac_addresses


def test_comma_and_space_separated():
    assert parse_mac_addresses("AABBCCDDEEFF, 112233445566  778899aabbcc") == [
        "AABBCCDDEEFF", "112233445566", "778899aabbcc",
    ]


def test_separators_inside_address_dropped():
    assert parse_mac_addresses("AA:BB:CC:DD:EE:FF,11-22-33-44-55-66") == [
        "AABBCCDDEEFF", "112233445566",
    ]


def test_duplicates_removed():
    assert parse_mac_addresses("AABBCCDDEEFF,AA:BB:CC:DD:EE:FF") == ["AABBCCDDEEFF"]


@pytest.mark.parametrize("raw", ["", " , ", "AABBCCDDEE", "AABBCCDDEEGG", "AABBCCDDEEFF,nope"])
def test_invalid(raw):
    with pytest.raises(ValueError):
        parse_mac_addresses(raw)
