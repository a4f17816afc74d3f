"""Errors raised by the MrCool cloud client."""

from __future__ import annotations

from typing import Any


class MrCoolError(Exception):
    """Base exception for MrCool client failures."""


class AuthenticationError(MrCoolError):
    """Raised when login or token exchange is rejected."""


class ParseError(MrCoolError):
    """Raised when a response lacks the expected markup or JSON shape."""


class DecryptionError(MrCoolError):
    """Raised when the app-user blob does not decrypt to UTF-8 JSON."""


class SubscriptionError(MrCoolError):
    """Raised when the device snapshot call reports a failure."""

    def __init__(self, payload: Any) -> None:
        super().__init__(f"device subscription failed: {payload!r}")
        self.payload = payload


class TransportError(MrCoolError):
    """Raised (or reported) when the streaming socket closes or errors."""


class SendError(MrCoolError):
    """Raised when an outbound command frame could not be transmitted."""


class RequestError(MrCoolError):
    """Raised when an HTTP call fails at the network or status level."""
