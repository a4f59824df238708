"""Ball machine BLE protocol implementation."""

from .commands import (
    AUTH_CHARACTERISTIC_UUID,
    CHUNK_DELAY,
    CHUNK_SIZE,
    COMMAND_CHARACTERISTIC_UUID,
    SERVICE_UUID,
    STARTUP_SEQUENCE,
    STEP_DELAY,
    SequenceStep,
)
from .framing import Chunk, ChunkPlan, CommandFrame, chunk_frame, decode_hex, encode_hex

__all__ = [
    "SERVICE_UUID",
    "AUTH_CHARACTERISTIC_UUID",
    "COMMAND_CHARACTERISTIC_UUID",
    "CHUNK_SIZE",
    "STEP_DELAY",
    "CHUNK_DELAY",
    "STARTUP_SEQUENCE",
    "SequenceStep",
    "CommandFrame",
    "Chunk",
    "ChunkPlan",
    "decode_hex",
    "encode_hex",
    "chunk_frame",
]
