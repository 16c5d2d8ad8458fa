"""
String codec and payload cursor

Strings are a VarInt byte length followed by that many UTF-8 bytes. Packet
payloads are already fully buffered by the framer, so field decoding works on
an in-memory cursor rather than the stream.
"""
import struct

from honeypot.exceptions import EmptyStringError, StringDecodeError, TruncatedStreamError
from honeypot.protocol.varint import decode_varint, encode_varint


class PayloadReader:
    """Reads protocol fields sequentially from a packet payload."""

    def __init__(self, data: bytes, offset: int = 0):
        self.data = data
        self.offset = offset

    @property
    def remaining(self) -> int:
        return len(self.data) - self.offset

    def read_bytes(self, length: int) -> bytes:
        if length > self.remaining:
            raise TruncatedStreamError(
                f"need {length} bytes, {self.remaining} remaining",
                details={"offset": self.offset, "needed": length},
            )
        result = self.data[self.offset:self.offset + length]
        self.offset += length
        return result

    def read_byte(self) -> int:
        return self.read_bytes(1)[0]

    def read_unsigned_short(self) -> int:
        """Unsigned 16-bit, big-endian."""
        return struct.unpack(">H", self.read_bytes(2))[0]

    def read_varint(self) -> int:
        value, consumed = decode_varint(self.data, self.offset)
        self.offset += consumed
        return value

    def read_string(self, errors: str = "strict") -> str:
        """
        Read a length-prefixed UTF-8 string.

        Args:
            errors: codec error handler; "replace" keeps undecodable bytes as U+FFFD

        Raises:
            EmptyStringError: declared length is zero
            TruncatedStreamError: fewer bytes remain than declared
            StringDecodeError: bytes are not valid UTF-8 (strict handler only)
        """
        length = self.read_varint()
        if length < 1:
            raise EmptyStringError("invalid string length", details={"offset": self.offset})
        raw = self.read_bytes(length)
        try:
            return raw.decode("utf-8", errors)
        except UnicodeDecodeError as e:
            raise StringDecodeError(f"string is not valid UTF-8: {e}") from e


def decode_string(data: bytes, errors: str = "strict") -> str:
    """Decode a single String starting at the beginning of ``data``."""
    return PayloadReader(data).read_string(errors)


def encode_string(value: str) -> bytes:
    raw = value.encode("utf-8")
    return encode_varint(len(raw)) + raw
