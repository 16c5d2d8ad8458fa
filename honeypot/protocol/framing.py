"""
Packet framing

Every packet on the wire is ``VarInt length | VarInt id | payload`` where the
length counts the id and payload bytes but not itself.
"""
import asyncio
from typing import Optional

from honeypot.exceptions import FrameLengthError, TruncatedStreamError, UnexpectedPacketIdError, WriteError
from honeypot.models import Frame
from honeypot.protocol.varint import encode_varint, read_varint, varint_size


async def read_frame(
    reader: asyncio.StreamReader,
    expected_id: Optional[int] = None,
    max_length: Optional[int] = None,
) -> Frame:
    """
    Read one complete frame from the stream.

    Args:
        reader: Peer stream
        expected_id: Packet id the caller's state requires, if any
        max_length: Largest declared length accepted, if any

    Returns:
        Frame with the decoded id and exactly ``length - size(id)`` payload bytes

    Raises:
        TruncatedStreamError: stream ended mid-frame
        MalformedVarIntError: length or id VarInt too long
        FrameLengthError: declared length too small for the id, or above max_length
        UnexpectedPacketIdError: id differs from expected_id
    """
    length, _ = await read_varint(reader)
    if max_length is not None and length > max_length:
        raise FrameLengthError(
            f"frame length {length} exceeds limit {max_length}",
            details={"length": length, "max_length": max_length},
        )

    packet_id, id_size = await read_varint(reader)
    payload_length = length - id_size
    if payload_length < 0:
        raise FrameLengthError(
            f"frame length {length} shorter than its packet id",
            details={"length": length, "id_size": id_size},
        )

    try:
        payload = await reader.readexactly(payload_length)
    except asyncio.IncompleteReadError as e:
        raise TruncatedStreamError(
            f"stream ended after {len(e.partial)} of {payload_length} payload bytes",
            details={"packet_id": packet_id, "expected": payload_length, "received": len(e.partial)},
        ) from e
    except OSError as e:
        raise TruncatedStreamError(f"stream failed inside payload: {e}") from e

    if expected_id is not None and packet_id != expected_id:
        raise UnexpectedPacketIdError(expected_id, packet_id)

    return Frame(id=packet_id, payload=payload)


def encode_frame(packet_id: int, payload: bytes) -> bytes:
    """Serialize a frame into a single buffer."""
    length = varint_size(packet_id) + len(payload)
    return encode_varint(length) + encode_varint(packet_id) + payload


async def write_frame(writer: asyncio.StreamWriter, packet_id: int, payload: bytes) -> None:
    """
    Write one frame in a single buffered write.

    Raises:
        WriteError: stream rejected the write or the flush
    """
    data = encode_frame(packet_id, payload)
    try:
        writer.write(data)
        await writer.drain()
    except (OSError, RuntimeError) as e:
        raise WriteError(
            f"failed to write frame: {e}",
            details={"packet_id": packet_id, "data_size": len(data)},
        ) from e
