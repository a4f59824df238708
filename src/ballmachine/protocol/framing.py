"""Command frame encoding and write chunking."""

from __future__ import annotations

import string
from collections.abc import Iterator
from dataclasses import dataclass

from ..exceptions import InvalidChunkSizeError, MalformedLiteralError
from ..models.enums import Role

_HEX_DIGITS = frozenset(string.hexdigits)


@dataclass(frozen=True)
class CommandFrame:
    """A complete command payload.

    Attributes:
        data: Frame bytes
        role: Characteristic role the frame is written to
        literal: Hex literal the frame was decoded from
    """

    data: bytes
    role: Role
    literal: str

    def __len__(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class Chunk:
    """One write of a fragmented frame.

    The terminal chunk is always empty and marks the end of the frame.
    """

    index: int
    data: bytes
    terminal: bool = False

    def __len__(self) -> int:
        return len(self.data)


class ChunkPlan:
    """Restartable write plan for a frame split into bounded chunks.

    Chunks are computed on iteration; iterating twice yields the same chunks.
    """

    def __init__(self, frame: CommandFrame, chunk_size: int):
        self.frame = frame
        self.chunk_size = chunk_size

    def __iter__(self) -> Iterator[Chunk]:
        data = self.frame.data
        index = 0
        for offset in range(0, len(data), self.chunk_size):
            yield Chunk(index=index, data=data[offset:offset + self.chunk_size])
            index += 1
        yield Chunk(index=index, data=b"", terminal=True)

    def __len__(self) -> int:
        # Ceiling division plus the terminal chunk
        return -(-len(self.frame.data) // self.chunk_size) + 1

    def __repr__(self) -> str:
        return (
            f"ChunkPlan(frame={self.frame.literal!r}, "
            f"chunk_size={self.chunk_size}, chunks={len(self)})"
        )


def decode_hex(literal: str, role: Role = Role.COMMAND) -> CommandFrame:
    """Decode a hex literal into a command frame.

    Args:
        literal: Even-length string of hex digit pairs (e.g. "7e3a0a0100c30d0a")
        role: Characteristic role the frame targets (default: COMMAND)

    Returns:
        CommandFrame carrying the decoded bytes and the original literal

    Raises:
        MalformedLiteralError: If literal has odd length or non-hex characters
    """
    if len(literal) % 2:
        raise MalformedLiteralError(
            f"Hex literal has odd length {len(literal)}: {literal!r}"
        )

    invalid = sorted({char for char in literal if char not in _HEX_DIGITS})
    if invalid:
        raise MalformedLiteralError(
            f"Hex literal contains non-hex characters {invalid!r}: {literal!r}"
        )

    return CommandFrame(data=bytes.fromhex(literal), role=role, literal=literal)


def encode_hex(frame: CommandFrame) -> str:
    """Render frame bytes as a lowercase hex string."""
    return frame.data.hex()


def chunk_frame(frame: CommandFrame, chunk_size: int) -> ChunkPlan:
    """Split a frame into chunks of at most chunk_size bytes.

    The plan ends with an empty terminal chunk. An empty frame produces only
    the terminal chunk.

    Args:
        frame: Frame to split
        chunk_size: Maximum bytes per write, must be > 0

    Returns:
        Lazy, restartable ChunkPlan

    Raises:
        InvalidChunkSizeError: If chunk_size is not positive
    """
    if not isinstance(chunk_size, int) or chunk_size <= 0:
        raise InvalidChunkSizeError(f"Chunk size must be > 0, got {chunk_size!r}")
    return ChunkPlan(frame, chunk_size)
