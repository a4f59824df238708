"""Ball machine protocol constants and the startup command plan."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

from ..models.enums import Role
from .framing import CommandFrame, decode_hex

# GATT identifiers
SERVICE_UUID: Final = "FF10"
AUTH_CHARACTERISTIC_UUID: Final = "FF12"
COMMAND_CHARACTERISTIC_UUID: Final = "FFF3"

# Write pacing
CHUNK_SIZE: Final = 18  # Maximum bytes per characteristic write
STEP_DELAY: Final = 0.5  # Seconds between sequence steps
CHUNK_DELAY: Final = 0.1  # Seconds between chunks of a fragmented frame

# Command literals
AUTH_LITERAL: Final = "0100"
FIRST_COMMAND_LITERAL: Final = "7e3a0a0100c30d0a"
START_COMMAND_LITERAL: Final = (
    "7e3a0722"
    "0000000000000000000000000000000000000000"
    "0000000000000000000000000000000000000000"
    "000000000000000000000000000000"
    "282805100001470d0a"
)
FINAL_COMMAND_LITERAL: Final = "7e3a060100bf0d0a"


@dataclass(frozen=True)
class SequenceStep:
    """One entry of the startup plan.

    Attributes:
        frame: Command frame to write
        delay: Minimum seconds after the previous step's send
    """

    frame: CommandFrame
    delay: float = 0.0

    @property
    def role(self) -> Role:
        """Role of the characteristic this step writes to."""
        return self.frame.role


AUTH_COMMAND: Final = decode_hex(AUTH_LITERAL, Role.AUTH)
FIRST_COMMAND: Final = decode_hex(FIRST_COMMAND_LITERAL)
START_COMMAND: Final = decode_hex(START_COMMAND_LITERAL)
FINAL_COMMAND: Final = decode_hex(FINAL_COMMAND_LITERAL)

STARTUP_SEQUENCE: Final[tuple[SequenceStep, ...]] = (
    SequenceStep(AUTH_COMMAND, delay=0.0),
    SequenceStep(FIRST_COMMAND, delay=STEP_DELAY),
    SequenceStep(START_COMMAND, delay=STEP_DELAY),
    SequenceStep(FINAL_COMMAND, delay=STEP_DELAY),
)
