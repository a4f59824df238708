"""Test protocol constants and the startup plan."""

from ballmachine.models.enums import Role
from ballmachine.protocol.commands import (
    AUTH_CHARACTERISTIC_UUID,
    CHUNK_DELAY,
    CHUNK_SIZE,
    COMMAND_CHARACTERISTIC_UUID,
    SERVICE_UUID,
    START_COMMAND,
    STARTUP_SEQUENCE,
    STEP_DELAY,
)
from ballmachine.protocol.framing import chunk_frame, encode_hex

# Start command as captured from the vendor app
START_COMMAND_HEX = (
    "7e3a0722000000000000000000000000000000000000000000000000000000000000"
    "00000000000000000000000000000000000000000000000000282805100001470d0a"
)


class TestConstants:
    """Test protocol constants."""

    def test_pacing_constants(self):
        assert CHUNK_SIZE == 18
        assert STEP_DELAY == 0.5
        assert CHUNK_DELAY == 0.1

    def test_gatt_identifiers(self):
        assert SERVICE_UUID == "FF10"
        assert AUTH_CHARACTERISTIC_UUID == "FF12"
        assert COMMAND_CHARACTERISTIC_UUID == "FFF3"


class TestStartupSequence:
    """Test the fixed startup plan."""

    def test_sequence_literals(self):
        assert [encode_hex(step.frame) for step in STARTUP_SEQUENCE] == [
            "0100",
            "7e3a0a0100c30d0a",
            START_COMMAND_HEX,
            "7e3a060100bf0d0a",
        ]

    def test_sequence_roles(self):
        assert [step.role for step in STARTUP_SEQUENCE] == [
            Role.AUTH,
            Role.COMMAND,
            Role.COMMAND,
            Role.COMMAND,
        ]

    def test_sequence_delays(self):
        assert [step.delay for step in STARTUP_SEQUENCE] == [0.0, 0.5, 0.5, 0.5]

    def test_auth_bytes(self):
        assert STARTUP_SEQUENCE[0].frame.data == b"\x01\x00"

    def test_start_command_chunks(self):
        """The start command needs four data chunks plus the terminal chunk."""
        assert len(START_COMMAND) == 68

        chunks = list(chunk_frame(START_COMMAND, CHUNK_SIZE))

        assert [len(chunk) for chunk in chunks] == [18, 18, 18, 14, 0]
        assert chunks[0].data[:4] == b"\x7e\x3a\x07\x22"
        assert chunks[3].data.endswith(b"\x28\x28\x05\x10\x00\x01\x47\x0d\x0a")

    def test_short_commands_fit_single_write(self):
        short = [step for step in STARTUP_SEQUENCE if step.frame is not START_COMMAND]
        assert all(len(step.frame) <= CHUNK_SIZE for step in short)
