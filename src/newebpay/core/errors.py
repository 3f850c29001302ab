"""
Exception hierarchy raised by the NewebPay helpers.
"""

from __future__ import annotations

__all__ = [
    "AmountExceedsAuthorization",
    "AmountExceedsCapture",
    "ChecksumMismatch",
    "ConfigError",
    "EnvelopeError",
    "GatewayError",
    "InvalidBlockAlignment",
    "InvalidCloseStatus",
    "InvalidEncoding",
    "InvalidKeyMaterial",
    "InvalidPadding",
    "MalformedRecord",
    "RemoteRejected",
    "ResultShapeMismatch",
    "TransportError",
]


class GatewayError(Exception):
    """Base class for every error raised by this package."""


class ConfigError(GatewayError):
    """Raised when the supplied configuration is invalid."""


class InvalidKeyMaterial(ConfigError):
    """HashKey or HashIV has a length the cipher cannot use."""


class EnvelopeError(GatewayError):
    """Ciphertext could not be turned back into plaintext."""


class InvalidEncoding(EnvelopeError):
    """Ciphertext is not valid hex."""


class InvalidBlockAlignment(EnvelopeError):
    """Decoded ciphertext is not a whole number of cipher blocks."""


class InvalidPadding(EnvelopeError):
    """Trailing pad bytes of a decrypted buffer are inconsistent."""


class MalformedRecord(GatewayError):
    """A request record holds a value that cannot be form-encoded."""


class ChecksumMismatch(GatewayError):
    """A CheckCode returned by the gateway does not match the local digest."""


class ResultShapeMismatch(GatewayError):
    """The ``Result`` payload does not fit the requested result type."""


class InvalidCloseStatus(GatewayError):
    """A trade snapshot carries a CloseStatus outside the known set."""


class AmountExceedsAuthorization(GatewayError):
    """The requested captured amount is larger than the authorized amount."""

    def __init__(self, target: int, authorized: int) -> None:
        super().__init__(
            f"Target amount {target} exceeds authorized amount {authorized}"
        )
        self.target = target
        self.authorized = authorized


class AmountExceedsCapture(GatewayError):
    """A settled trade cannot be raised to a larger captured amount."""

    def __init__(self, target: int, captured: int) -> None:
        super().__init__(
            f"Target amount {target} exceeds captured amount {captured}; "
            "a settled trade can only be refunded"
        )
        self.target = target
        self.captured = captured


class RemoteRejected(GatewayError):
    """The gateway answered with a status other than the expected one."""

    def __init__(self, status: str, message: str) -> None:
        super().__init__(f"{status}: {message}")
        self.status = status
        self.message = message


class TransportError(GatewayError):
    """The HTTP exchange itself failed or returned an unreadable body."""
