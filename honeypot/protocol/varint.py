"""
VarInt codec

7 bits of magnitude per byte, least significant group first, high bit set on
every byte except the last. Values are unsigned 32-bit, so at most 5 bytes.
"""
import asyncio
from typing import Tuple

from honeypot.exceptions import MalformedVarIntError, TruncatedStreamError
from honeypot.models import UINT32_MAX

MAX_VARINT_BYTES = 5


def varint_size(value: int) -> int:
    """Number of bytes encode_varint(value) produces."""
    if value < 1 << 7:
        return 1
    if value < 1 << 14:
        return 2
    if value < 1 << 21:
        return 3
    if value < 1 << 28:
        return 4
    return 5


def encode_varint(value: int) -> bytes:
    """Minimal-length encoding of an unsigned 32-bit value."""
    if value < 0 or value > UINT32_MAX:
        raise ValueError(f"VarInt out of range: {value}")

    buf = bytearray()
    while True:
        b = value & 0x7F
        value >>= 7
        if value:
            buf.append(b | 0x80)
        else:
            buf.append(b)
            return bytes(buf)


def decode_varint(data: bytes, offset: int = 0) -> Tuple[int, int]:
    """
    Decode a VarInt from a byte buffer.

    Returns:
        Tuple of (value, bytes_consumed)

    Raises:
        TruncatedStreamError: buffer ended before the final byte
        MalformedVarIntError: no final byte within 5 bytes
    """
    result = 0
    for i in range(MAX_VARINT_BYTES):
        if offset + i >= len(data):
            raise TruncatedStreamError(
                "buffer ended inside VarInt",
                details={"offset": offset, "consumed": i},
            )
        b = data[offset + i]
        result |= (b & 0x7F) << (7 * i)
        if not b & 0x80:
            return result & UINT32_MAX, i + 1

    raise MalformedVarIntError("VarInt is too long", details={"offset": offset})


async def read_varint(reader: asyncio.StreamReader) -> Tuple[int, int]:
    """
    Decode a VarInt from a stream, one byte at a time.

    Returns:
        Tuple of (value, bytes_consumed)
    """
    result = 0
    for i in range(MAX_VARINT_BYTES):
        try:
            chunk = await reader.readexactly(1)
        except asyncio.IncompleteReadError as e:
            raise TruncatedStreamError(
                "stream ended inside VarInt", details={"consumed": i}
            ) from e
        except OSError as e:
            raise TruncatedStreamError(
                f"stream failed inside VarInt: {e}", details={"consumed": i}
            ) from e

        b = chunk[0]
        result |= (b & 0x7F) << (7 * i)
        if not b & 0x80:
            return result & UINT32_MAX, i + 1

    raise MalformedVarIntError("VarInt is too long")
