"""Hidden-input extraction from the ``/home/index`` page."""

from __future__ import annotations

from html.parser import HTMLParser

from ..const import APP_USER_INPUT_ID, SESSION_ID_INPUT_ID
from ..exceptions import ParseError


class _HiddenInputParser(HTMLParser):
    """Collect ``value`` attributes of ``<input>`` elements by id."""

    def __init__(self, wanted: set[str]) -> None:
        super().__init__(convert_charrefs=True)
        self._wanted = wanted
        self.values: dict[str, str | None] = {}

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        if tag != "input":
            return
        attr_map = dict(attrs)
        element_id = attr_map.get("id")
        if element_id in self._wanted and element_id not in self.values:
            self.values[element_id] = attr_map.get("value")


def extract_input_values(html: str, *element_ids: str) -> dict[str, str]:
    """Return ``{id: value}`` for each requested input.

    Raises ``ParseError`` if any element, or its ``value`` attribute, is absent.
    """
    parser = _HiddenInputParser(set(element_ids))
    parser.feed(html)
    parser.close()

    result: dict[str, str] = {}
    for element_id in element_ids:
        value = parser.values.get(element_id)
        if value is None:
            raise ParseError(f"#{element_id} not found on session page")
        result[element_id] = value
    return result


def parse_session_page(html: str) -> tuple[str, str]:
    """Return ``(encrypted_app_user, session_id)`` from the index page."""
    values = extract_input_values(html, APP_USER_INPUT_ID, SESSION_ID_INPUT_ID)
    return values[APP_USER_INPUT_ID], values[SESSION_ID_INPUT_ID]
