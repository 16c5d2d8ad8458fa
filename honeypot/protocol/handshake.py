"""Handshake packet (serverbound 0x00, handshaking state)"""
import struct

from honeypot.models import Handshake
from honeypot.protocol.strings import PayloadReader, encode_string
from honeypot.protocol.varint import encode_varint

HANDSHAKE_PACKET_ID = 0x00


def decode_handshake(payload: bytes) -> Handshake:
    """
    Parse protocol version, server address, port and next state, in that order.

    The address and version are taken as-is. Bytes after the next-state byte
    are ignored.

    Raises:
        ProtocolError: the first field that fails to decode
    """
    reader = PayloadReader(payload)
    protocol_version = reader.read_varint()
    server_address = reader.read_string()
    server_port = reader.read_unsigned_short()
    next_state = reader.read_byte()

    return Handshake(
        protocol_version=protocol_version,
        server_address=server_address,
        server_port=server_port,
        next_state=next_state,
    )


def encode_handshake(handshake: Handshake) -> bytes:
    return (
        encode_varint(handshake.protocol_version)
        + encode_string(handshake.server_address)
        + struct.pack(">HB", handshake.server_port, handshake.next_state)
    )
