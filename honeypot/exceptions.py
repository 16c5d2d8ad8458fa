"""
Custom Exception Hierarchy for the Honeypot

Provides structured exceptions for protocol decoding, transport and startup
failures. All custom exceptions inherit from HoneypotError.
"""
from typing import Optional


class HoneypotError(Exception):
    """
    Base exception for all honeypot-specific errors.

    All custom exceptions should inherit from this class to allow
    catching all honeypot errors with a single except clause.
    """
    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


# Configuration and Startup Errors

class ConfigurationError(HoneypotError):
    """
    Invalid configuration or startup failure.

    Raised when settings are malformed, when the static responses cannot be
    built, or when the listening address cannot be bound. Fatal to the process.
    """
    pass


# Protocol Errors

class ProtocolError(HoneypotError):
    """
    Peer sent something the protocol slice does not accept.

    Local to one session: the connection is closed and nothing is retried.
    """
    pass


class TruncatedStreamError(ProtocolError):
    """Stream or buffer ended before the value was complete."""
    pass


class MalformedVarIntError(ProtocolError):
    """VarInt continued past its fifth byte."""
    pass


class FrameLengthError(ProtocolError):
    """Declared frame length is inconsistent with its contents or too large."""
    pass


class UnexpectedPacketIdError(ProtocolError):
    """Peer sent a different packet than the current state expects."""
    def __init__(self, expected_id: int, received_id: int):
        super().__init__(
            f"unexpected packet id: received {received_id} instead of {expected_id}",
            {"expected_id": expected_id, "received_id": received_id},
        )
        self.expected_id = expected_id
        self.received_id = received_id


class EmptyStringError(ProtocolError):
    """String field declared a length of zero."""
    pass


class StringDecodeError(ProtocolError):
    """String bytes are not valid UTF-8."""
    pass


class UnrecognizedNextStateError(ProtocolError):
    """Handshake asked for a next state other than status, login or transfer."""
    def __init__(self, next_state: int):
        super().__init__(
            f"unrecognized next state: {next_state}",
            {"next_state": next_state},
        )
        self.next_state = next_state


# Transport Errors

class TransportError(HoneypotError):
    """
    Network transport failures.

    Base class for failures of the underlying stream rather than the peer's
    protocol usage.
    """
    pass


class WriteError(TransportError):
    """Failed to write a response frame to the peer."""
    pass


# Notification Errors

class NotificationError(HoneypotError):
    """Webhook delivery failed. Logged, never raised into a session."""
    pass
