"""Exceptions raised by the ball machine control package."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models.enums import ConnectionState


class BallMachineError(Exception):
    """Base exception for all ball machine errors.

    Attributes:
        state: Connection state the core was in when the error occurred,
            or None for errors raised outside a connection (e.g. codec errors)
    """

    def __init__(self, message: str, state: ConnectionState | None = None):
        super().__init__(message)
        self.state = state

    def __str__(self) -> str:
        message = super().__str__()
        if self.state is None:
            return message
        return f"{message} (state={self.state.value})"


class ProtocolError(BallMachineError):
    """Command encoding error."""


class MalformedLiteralError(ProtocolError, ValueError):
    """Hex command literal has odd length or contains non-hex characters."""


class InvalidChunkSizeError(ProtocolError, ValueError):
    """Chunk size is not a positive integer."""


class CharacteristicNotFoundError(BallMachineError):
    """No characteristic registered for the requested role."""


class InvalidTransitionError(BallMachineError):
    """Event is not legal in the current connection state."""


class SequenceAbortedError(BallMachineError):
    """Initialization sequence was cancelled before it completed."""


class BLEConnectionError(BallMachineError):
    """Transport-originated failure; always ends the current connection."""


class LinkFailedError(BLEConnectionError):
    """Link to the device could not be established."""


class ServiceNotFoundError(BLEConnectionError):
    """Device does not expose the ball machine service."""


class IncompleteCharacteristicsError(BLEConnectionError):
    """Service discovery finished without both auth and command characteristics."""


class WriteFailedError(BLEConnectionError):
    """Transport reported a failed characteristic write."""
