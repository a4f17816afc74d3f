"""Tests for inbound SignalR frame parsing."""

import json

from custom_components.mrcool.protocol.events import (
    ActionReceived,
    HeartBeat,
    parse_frame,
    parse_invocation,
)


def _frame(*invocations) -> str:
    return json.dumps({"C": "d-1", "M": list(invocations)})


def test_action_received():
    payload = {"macAddress": "AA:BB", "power": "on", "temp": "70", "mode": "cool",
               "fanspeed": "high"}
    events = parse_frame(_frame({"H": "devicesactionhub", "M": "actionReceivedAC",
                                 "A": [payload]}))
    assert events == [
        ActionReceived("AA:BB", power="on", mode="cool", fan_speed="high",
                       temperature="70", raw=payload)
    ]


def test_heartbeat():
    payload = {"macAddress": "AA:BB", "roomTemperature": 68}
    events = parse_frame(_frame({"M": "HeartBeatPerformed", "A": [payload]}))
    assert len(events) == 1
    assert isinstance(events[0], HeartBeat)
    assert events[0].room_temperature == 68


def test_multiple_invocations_in_one_frame():
    events = parse_frame(_frame(
        {"M": "HeartBeatPerformed", "A": [{"macAddress": "A1", "roomTemperature": 71}]},
        {"M": "somethingElse", "A": [{"macAddress": "A1"}]},
        {"M": "actionReceivedAC", "A": [{"macAddress": "A2", "power": "off"}]},
    ))
    assert [type(e) for e in events] == [HeartBeat, ActionReceived]
    assert [e.mac_address for e in events] == ["A1", "A2"]


class TestIgnoredFrames:
    def test_keepalive(self):
        assert parse_frame("{}") == []

    def test_init_frame(self):
        assert parse_frame('{"C":"s-0,1","S":1,"M":[]}') == []

    def test_invalid_json(self):
        assert parse_frame("not json") == []

    def test_not_an_object(self):
        assert parse_frame("[1,2,3]") == []

    def test_m_not_a_list(self):
        assert parse_frame('{"M": "actionReceivedAC"}') == []

    def test_invocation_without_args(self):
        assert parse_invocation({"M": "actionReceivedAC", "A": []}) is None

    def test_payload_without_address(self):
        assert parse_invocation({"M": "actionReceivedAC", "A": [{"power": "on"}]}) is None

    def test_non_string_method(self):
        assert parse_frame('{"M":[{"M":["x"],"A":[1]}]}') == []
        assert parse_frame('{"M":[{"M":{"a":1},"A":[1]}]}') == []

    def test_non_string_address(self):
        frame = _frame({"M": "HeartBeatPerformed",
                        "A": [{"macAddress": ["AA"], "roomTemperature": 70}]})
        assert parse_frame(frame) == []
        frame = _frame({"M": "actionReceivedAC", "A": [{"macAddress": {"a": 1}}]})
        assert parse_frame(frame) == []
