"""Tests for hidden-input extraction from the session page."""

import pytest

from custom_components.mrcool.exceptions import ParseError
from custom_components.mrcool.protocol.page import (
    extract_input_values,
    parse_session_page,
)

PAGE = """
<html><body>
  <form>
    <input type="text" id="search" value="ignored">
    <input type="hidden" id="hdnSessionID" value="sess-123" />
    <input type="hidden" id="hdnAppUser" value="q83vEjRWeJA=+/==">
  </form>
</body></html>
"""


def test_parse_session_page():
    encrypted, session_id = parse_session_page(PAGE)
    assert encrypted == "q83vEjRWeJA=+/=="
    assert session_id == "sess-123"


def test_first_matching_input_wins():
    html = '<input id="hdnSessionID" value="one"><input id="hdnSessionID" value="two">'
    assert extract_input_values(html, "hdnSessionID") == {"hdnSessionID": "one"}


def test_empty_value_is_returned():
    assert extract_input_values('<input id="x" value="">', "x") == {"x": ""}


def test_non_input_elements_ignored():
    with pytest.raises(ParseError):
        extract_input_values('<div id="hdnAppUser" value="nope"></div>', "hdnAppUser")


def test_missing_element():
    html = '<input type="hidden" id="hdnAppUser" value="abc">'
    with pytest.raises(ParseError, match="hdnSessionID"):
        parse_session_page(html)


def test_missing_value_attribute():
    html = '<input id="hdnAppUser"><input id="hdnSessionID" value="s">'
    with pytest.raises(ParseError, match="hdnAppUser"):
        parse_session_page(html)
